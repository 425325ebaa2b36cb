import pytest

import app as qr_app


@pytest.fixture
def client():
    qr_app.app.config["TESTING"] = True
    qr_app.qr_records.clear()
    with qr_app.app.test_client() as test_client:
        yield test_client
    qr_app.qr_records.clear()

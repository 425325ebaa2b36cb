import base64
import io

from PIL import Image

import app as qr_app

PNG_PREFIX = "data:image/png;base64,"


def decode_data_uri(uri):
    assert uri.startswith(PNG_PREFIX)
    return Image.open(io.BytesIO(base64.b64decode(uri[len(PNG_PREFIX):])))


def save(client, **overrides):
    body = {"title": "Menu", "type": "WEBSITE", "content": "https://example.com/menu"}
    body.update(overrides)
    return client.post("/api/qr/save", json=body)


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.get_json() == {"status": "ok"}


def test_generate_with_raw_content(client):
    response = client.post(
        "/api/qr/generate",
        json={"content": "HELLO WORLD", "settings": {"size": 300, "errorCorrection": "Q"}},
    )
    assert response.status_code == 200
    body = response.get_json()
    assert body["success"] is True
    assert body["content"] == "HELLO WORLD"
    assert body["version"] == 1
    assert body["mode"] == "ALPHANUMERIC"
    assert 0 <= body["mask"] <= 7
    assert body["settings"] == {
        "size": 300,
        "color": "#000000",
        "backgroundColor": "#ffffff",
        "errorCorrection": "Q",
        "margin": qr_app.DEFAULT_MARGIN,
    }
    assert decode_data_uri(body["qrCodeDataURL"]).size == (300, 300)


def test_generate_from_typed_fields(client):
    response = client.post(
        "/api/qr/generate",
        json={"type": "WIFI", "fields": {"ssid": "Home", "password": "secret"}},
    )
    assert response.status_code == 200
    assert response.get_json()["content"] == "WIFI:T:WPA;S:Home;P:secret;;"


def test_generate_requires_content(client):
    response = client.post("/api/qr/generate", json={})
    assert response.status_code == 400
    assert response.get_json() == {"error": "Content is required"}


def test_generate_rejects_bad_settings(client):
    response = client.post(
        "/api/qr/generate", json={"content": "x", "settings": {"errorCorrection": "Z"}}
    )
    assert response.status_code == 400
    assert response.get_json()["code"] == "invalid_error_correction_level"

    response = client.post("/api/qr/generate", json={"content": "x", "settings": {"size": "big"}})
    assert response.status_code == 400
    assert "size" in response.get_json()["error"]


def test_generate_reports_oversized_payload(client):
    response = client.post("/api/qr/generate", json={"content": "x" * 3000})
    assert response.status_code == 400
    assert response.get_json()["code"] == "payload_too_large"


def test_generate_reports_missing_field(client):
    response = client.post("/api/qr/generate", json={"type": "EMAIL", "fields": {}})
    assert response.status_code == 400
    assert response.get_json()["code"] == "missing_field"


def test_get_qr_png(client):
    response = client.get("/qr", query_string={"data": "https://example.com", "size": 200})
    assert response.status_code == 200
    assert response.mimetype == "image/png"
    image = Image.open(io.BytesIO(response.data))
    assert image.size == (200, 200)


def test_get_qr_requires_data(client):
    response = client.get("/qr")
    assert response.status_code == 400


def test_get_qr_rejects_bad_ecc(client):
    response = client.get("/qr", query_string={"data": "x", "ecc": "P"})
    assert response.status_code == 400


def test_save_and_fetch(client):
    response = save(client)
    assert response.status_code == 201
    record = response.get_json()["qrCode"]
    assert record["title"] == "Menu"
    assert record["downloadCount"] == 0
    assert record["scanCount"] == 0
    assert "qrCodeData" not in record

    response = client.get(f"/api/qr/{record['id']}")
    assert response.status_code == 200
    fetched = response.get_json()
    assert fetched["content"] == "https://example.com/menu"
    assert decode_data_uri(fetched["qrCodeData"]).format == "PNG"


def test_save_keeps_client_image(client):
    record = save(client, qrCodeData="data:image/png;base64,AAAA").get_json()["qrCode"]
    fetched = client.get(f"/api/qr/{record['id']}").get_json()
    assert fetched["qrCodeData"] == "data:image/png;base64,AAAA"


def test_save_requires_title_and_type(client):
    response = client.post("/api/qr/save", json={"content": "x"})
    assert response.status_code == 400
    assert response.get_json() == {"error": "Missing required fields"}


def test_save_rejects_unencodable_content(client):
    response = save(client, content="x" * 3000)
    assert response.status_code == 400
    assert not qr_app.qr_records


def test_list_is_newest_first(client):
    first = save(client, title="First").get_json()["qrCode"]
    second = save(client, title="Second").get_json()["qrCode"]
    qr_app.qr_records[first["id"]]["createdAt"] = "2000-01-01T00:00:00+00:00"

    codes = client.get("/api/qr").get_json()["qrCodes"]
    assert [code["id"] for code in codes] == [second["id"], first["id"]]
    assert all("qrCodeData" not in code for code in codes)


def test_update(client):
    record = save(client).get_json()["qrCode"]
    before = client.get(f"/api/qr/{record['id']}").get_json()
    response = client.put(
        f"/api/qr/{record['id']}",
        json={"title": "Lunch menu", "content": "https://example.com/lunch",
              "settings": {"color": "#ff0000"}},
    )
    assert response.status_code == 200
    updated = response.get_json()
    assert updated["title"] == "Lunch menu"
    assert updated["content"] == "https://example.com/lunch"
    assert updated["settings"]["color"] == "#ff0000"
    assert updated["settings"]["size"] == qr_app.DEFAULT_SIZE
    assert updated["qrCodeData"] != before["qrCodeData"]


def test_update_with_fields_uses_record_type(client):
    record = save(client, type="PHONE", content="tel:+100").get_json()["qrCode"]
    response = client.put(f"/api/qr/{record['id']}", json={"fields": {"phone": "+1 555"}})
    assert response.status_code == 200
    assert response.get_json()["content"] == "tel:+1555"


def test_update_rejects_invalid_settings(client):
    record = save(client).get_json()["qrCode"]
    response = client.put(f"/api/qr/{record['id']}", json={"settings": {"color": "nope"}})
    assert response.status_code == 400
    assert response.get_json()["code"] == "invalid_color"
    assert qr_app.qr_records[record["id"]]["settings"]["color"] == "#000000"


def test_delete(client):
    record = save(client).get_json()["qrCode"]
    assert client.delete(f"/api/qr/{record['id']}").status_code == 200
    assert client.get(f"/api/qr/{record['id']}").status_code == 404
    assert client.delete(f"/api/qr/{record['id']}").status_code == 404


def test_counters(client):
    record = save(client).get_json()["qrCode"]
    for _ in range(2):
        response = client.post(f"/api/qr/{record['id']}/download")
    assert response.get_json() == {"success": True, "downloadCount": 2}
    response = client.post(f"/api/qr/{record['id']}/scan")
    assert response.get_json() == {"success": True, "scanCount": 1}

    fetched = client.get(f"/api/qr/{record['id']}").get_json()
    assert (fetched["downloadCount"], fetched["scanCount"]) == (2, 1)


def test_unknown_record(client):
    for method, path in (
        ("get", "/api/qr/missing"),
        ("put", "/api/qr/missing"),
        ("delete", "/api/qr/missing"),
        ("post", "/api/qr/missing/download"),
        ("post", "/api/qr/missing/scan"),
        ("get", "/qr/missing"),
    ):
        response = getattr(client, method)(path, json={})
        assert response.status_code == 404
        assert response.get_json() == {"error": "qr_code_not_found"}


def test_serve_saved_png(client):
    record = save(client, settings={"size": 128}).get_json()["qrCode"]
    response = client.get(f"/qr/{record['id']}")
    assert response.status_code == 200
    assert response.mimetype == "image/png"
    assert Image.open(io.BytesIO(response.data)).size == (128, 128)


def test_generate_rejects_non_object_json(client):
    for body in (
        {"content": "x", "settings": "big"},
        {"type": "WIFI", "fields": "ssid"},
        ["x"],
    ):
        response = client.post("/api/qr/generate", json=body)
        assert response.status_code == 400
        assert "must be a JSON object" in response.get_json()["error"]


def test_save_rejects_non_object_json(client):
    response = client.post("/api/qr/save", json=["Menu", "WEBSITE"])
    assert response.status_code == 400
    assert response.get_json() == {"error": "Request body must be a JSON object"}

    response = save(client, settings=[256])
    assert response.status_code == 400
    assert not qr_app.qr_records


def test_update_rejects_non_object_json(client):
    record = save(client).get_json()["qrCode"]
    for body in ("new title", {"settings": "red"}, {"fields": ["+1 555"]}):
        response = client.put(f"/api/qr/{record['id']}", json=body)
        assert response.status_code == 400
    assert qr_app.qr_records[record["id"]]["title"] == "Menu"

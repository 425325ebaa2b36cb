import logging
import os
import threading
import uuid
from datetime import datetime, timezone
from io import BytesIO
from typing import Any, Dict, List, Optional, Tuple, TypedDict

from flask import Flask, jsonify, request, send_file

from qrforge import QRCodeError, format_payload, generate_qr
from qrforge.generator import RenderedQR

DEFAULT_SIZE = int(os.getenv("QR_DEFAULT_SIZE", "256"))
DEFAULT_MARGIN = int(os.getenv("QR_DEFAULT_MARGIN", "4"))
DEFAULT_ERROR_CORRECTION = os.getenv("QR_DEFAULT_ERROR_CORRECTION", "M")

logger = logging.getLogger(__name__)


class QRSettings(TypedDict):
    size: int
    color: str
    backgroundColor: str
    errorCorrection: str
    margin: int


class QRRecord(TypedDict):
    id: str
    title: str
    type: str
    content: str
    qrCodeData: str
    settings: QRSettings
    downloadCount: int
    scanCount: int
    createdAt: str
    updatedAt: str


app = Flask(__name__)

# In-memory store mapping record IDs to saved QR codes.
qr_records: Dict[str, QRRecord] = {}
_records_lock = threading.Lock()


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _normalize_settings(raw: Optional[Dict[str, Any]]) -> QRSettings:
    """Fill in defaults for any styling option the client left out."""
    raw = _json_object(raw, "settings")
    return {
        "size": _as_int(raw.get("size"), DEFAULT_SIZE, "size"),
        "color": raw.get("color") or "#000000",
        "backgroundColor": raw.get("backgroundColor") or "#ffffff",
        "errorCorrection": raw.get("errorCorrection") or DEFAULT_ERROR_CORRECTION,
        "margin": _as_int(raw.get("margin"), DEFAULT_MARGIN, "margin"),
    }


def _as_int(value: Any, default: int, name: str) -> int:
    if value is None or value == "":
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValueError(f"{name} must be an integer") from None


def _json_object(value: Any, name: str) -> Dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ValueError(f"{name} must be a JSON object")
    return value


def _request_body() -> Dict[str, Any]:
    return _json_object(request.get_json(silent=True), "Request body")


def _resolve_content(payload: Dict[str, Any]) -> str:
    """Raw ``content`` wins; otherwise build it from ``type`` and ``fields``."""
    content = payload.get("content")
    if isinstance(content, str) and content.strip():
        return content
    if payload.get("fields") is not None:
        return format_payload(payload.get("type"), _json_object(payload["fields"], "fields"))
    raise ValueError("Content is required")


def _render(content: str, settings: QRSettings) -> RenderedQR:
    return generate_qr(
        content,
        error_correction=settings["errorCorrection"],
        pixel_size=settings["size"],
        foreground=settings["color"],
        background=settings["backgroundColor"],
        margin=settings["margin"],
    )


def _error_response(exc: Exception) -> Tuple[Any, int]:
    logger.warning("QR request rejected: %s", exc)
    body = {"error": str(exc)}
    if isinstance(exc, QRCodeError):
        body["code"] = exc.code
    return jsonify(body), 400


def _public_record(record: QRRecord, include_image: bool = False) -> Dict[str, Any]:
    fields = ["id", "title", "type", "content", "settings", "downloadCount",
              "scanCount", "createdAt", "updatedAt"]
    if include_image:
        fields.append("qrCodeData")
    return {name: record[name] for name in fields}


def _not_found():
    return jsonify({"error": "qr_code_not_found"}), 404


@app.route("/health", methods=["GET"])
def health_check():
    return jsonify({"status": "ok"}), 200


@app.route("/api/qr/generate", methods=["POST"])
def generate_qr_code():
    try:
        payload = _request_body()
        content = _resolve_content(payload)
        settings = _normalize_settings(payload.get("settings"))
        rendered = _render(content, settings)
    except ValueError as exc:
        return _error_response(exc)

    matrix = rendered.matrix
    return jsonify(
        {
            "success": True,
            "qrCodeDataURL": rendered.data_uri(),
            "content": content,
            "settings": settings,
            "version": matrix.version,
            "mode": matrix.mode.name,
            "mask": matrix.mask,
        }
    ), 200


@app.route("/qr", methods=["GET"])
def serve_generated_qr():
    data = request.args.get("data")
    if not data:
        return jsonify({"error": "Missing ?data parameter"}), 400
    try:
        settings = _normalize_settings(
            {
                "size": request.args.get("size"),
                "errorCorrection": request.args.get("ecc"),
                "color": request.args.get("color"),
                "backgroundColor": request.args.get("background"),
                "margin": request.args.get("margin"),
            }
        )
        rendered = _render(data, settings)
    except ValueError as exc:
        return _error_response(exc)
    return send_file(BytesIO(rendered.png_bytes()), mimetype="image/png")


@app.route("/api/qr/save", methods=["POST"])
def save_qr_code():
    try:
        payload = _request_body()
    except ValueError as exc:
        return _error_response(exc)
    title = str(payload.get("title") or "").strip()
    qr_type = str(payload.get("type") or "").strip()
    if not title or not qr_type:
        return jsonify({"error": "Missing required fields"}), 400

    try:
        content = _resolve_content(payload)
        settings = _normalize_settings(payload.get("settings"))
        rendered = _render(content, settings)
    except ValueError as exc:
        return _error_response(exc)

    image_data = payload.get("qrCodeData") or rendered.data_uri()
    timestamp = _now()
    record: QRRecord = {
        "id": uuid.uuid4().hex,
        "title": title,
        "type": qr_type,
        "content": content,
        "qrCodeData": image_data,
        "settings": settings,
        "downloadCount": 0,
        "scanCount": 0,
        "createdAt": timestamp,
        "updatedAt": timestamp,
    }
    with _records_lock:
        qr_records[record["id"]] = record
    logger.info("Saved QR code %s (%s)", record["id"], qr_type)
    return jsonify({"success": True, "qrCode": _public_record(record)}), 201


@app.route("/api/qr", methods=["GET"])
def list_qr_codes():
    with _records_lock:
        records: List[QRRecord] = list(qr_records.values())
    records.sort(key=lambda record: record["createdAt"], reverse=True)
    return jsonify({"qrCodes": [_public_record(record) for record in records]}), 200


@app.route("/api/qr/<record_id>", methods=["GET"])
def get_qr_code(record_id: str):
    record = qr_records.get(record_id)
    if not record:
        return _not_found()
    return jsonify(_public_record(record, include_image=True)), 200


@app.route("/api/qr/<record_id>", methods=["PUT"])
def update_qr_code(record_id: str):
    record = qr_records.get(record_id)
    if not record:
        return _not_found()

    try:
        payload = _request_body()
        if payload.get("content") or payload.get("fields") is not None:
            content = _resolve_content({"type": record["type"], **payload})
        else:
            content = record["content"]
        changes = _json_object(payload.get("settings"), "settings")
        settings = _normalize_settings({**record["settings"], **changes})
        image_data = _render(content, settings).data_uri()
    except ValueError as exc:
        return _error_response(exc)

    with _records_lock:
        record = qr_records.get(record_id)
        if not record:
            return _not_found()
        record["title"] = str(payload.get("title") or record["title"]).strip()
        record["type"] = str(payload.get("type") or record["type"]).strip()
        record["content"] = content
        record["settings"] = settings
        record["qrCodeData"] = image_data
        record["updatedAt"] = _now()
    return jsonify(_public_record(record, include_image=True)), 200


@app.route("/api/qr/<record_id>", methods=["DELETE"])
def delete_qr_code(record_id: str):
    with _records_lock:
        record = qr_records.pop(record_id, None)
    if not record:
        return _not_found()
    logger.info("Deleted QR code %s", record_id)
    return jsonify({"success": True}), 200


def _increment(record_id: str, counter: str):
    with _records_lock:
        record = qr_records.get(record_id)
        if not record:
            return _not_found()
        record[counter] += 1
        value = record[counter]
    return jsonify({"success": True, counter: value}), 200


@app.route("/api/qr/<record_id>/download", methods=["POST"])
def register_download(record_id: str):
    return _increment(record_id, "downloadCount")


@app.route("/api/qr/<record_id>/scan", methods=["POST"])
def register_scan(record_id: str):
    return _increment(record_id, "scanCount")


@app.route("/qr/<record_id>", methods=["GET"])
def serve_qr_code(record_id: str):
    record = qr_records.get(record_id)
    if not record:
        return _not_found()
    buffer = BytesIO(_render(record["content"], record["settings"]).png_bytes())
    return send_file(
        buffer,
        mimetype="image/png",
        as_attachment=False,
        download_name=f"{record_id}.png",
    )


if __name__ == "__main__":
    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    app.run(host="0.0.0.0", port=int(os.getenv("PORT", "5000")))

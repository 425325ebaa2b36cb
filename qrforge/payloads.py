"""Turn typed content (website, contact, WiFi, ...) into QR payload text."""

import re
from enum import Enum
from typing import Any, Callable, Dict, List, Mapping, Optional
from urllib.parse import quote, urlencode

from qrforge.errors import MissingField, UnsupportedContentType


class ContentType(str, Enum):
    WEBSITE = "WEBSITE"
    TEXT = "TEXT"
    EMAIL = "EMAIL"
    PHONE = "PHONE"
    SMS = "SMS"
    VCARD = "VCARD"
    BUSINESS = "BUSINESS"
    MECARD = "MECARD"
    WIFI = "WIFI"
    FACEBOOK = "FACEBOOK"
    INSTAGRAM = "INSTAGRAM"
    WHATSAPP = "WHATSAPP"
    VIDEO = "VIDEO"
    IMAGE = "IMAGE"
    MP3 = "MP3"
    MENU = "MENU"
    APP = "APP"
    COUPON = "COUPON"
    PDF = "PDF"


_SCHEME_RE = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.-]*:")


def _field(fields: Mapping[str, Any], name: str) -> str:
    value = fields.get(name)
    return "" if value is None else str(value).strip()


def _required(fields: Mapping[str, Any], name: str) -> str:
    value = _field(fields, name)
    if not value:
        raise MissingField(f"{name} is required")
    return value


def _escape_wifi(value: str) -> str:
    return re.sub(r'([\\;,:"])', r"\\\1", value)


def _escape_vcard(value: str) -> str:
    value = re.sub(r"([\\;,])", r"\\\1", value)
    return value.replace("\r\n", "\n").replace("\n", "\\n")


def _escape_mecard(value: str) -> str:
    return re.sub(r'([\\;,:"])', r"\\\1", value)


def format_url(fields: Mapping[str, Any]) -> str:
    url = _required(fields, "url")
    if not _SCHEME_RE.match(url):
        url = f"https://{url}"
    return url


def format_text(fields: Mapping[str, Any]) -> str:
    text = fields.get("text")
    if text is None or not str(text).strip():
        raise MissingField("text is required")
    return str(text)


def format_email(fields: Mapping[str, Any]) -> str:
    address = _required(fields, "email")
    query = {
        key: value
        for key, value in (("subject", _field(fields, "subject")), ("body", _field(fields, "body")))
        if value
    }
    if not query:
        return f"mailto:{address}"
    return f"mailto:{address}?{urlencode(query, quote_via=quote)}"


def _phone_number(fields: Mapping[str, Any]) -> str:
    return re.sub(r"\s+", "", _required(fields, "phone"))


def format_phone(fields: Mapping[str, Any]) -> str:
    return f"tel:{_phone_number(fields)}"


def format_sms(fields: Mapping[str, Any]) -> str:
    number = _phone_number(fields)
    message = _field(fields, "message")
    if message:
        return f"sms:{number}?body={quote(message, safe='')}"
    return f"sms:{number}"


def format_whatsapp(fields: Mapping[str, Any]) -> str:
    digits = re.sub(r"\D", "", _required(fields, "phone"))
    if not digits:
        raise MissingField("phone must contain digits")
    message = _field(fields, "message")
    if message:
        return f"https://wa.me/{digits}?text={quote(message, safe='')}"
    return f"https://wa.me/{digits}"


def format_wifi(fields: Mapping[str, Any]) -> str:
    """``WIFI:T:<auth>;S:<ssid>;P:<password>;H:true;;`` (ZXing convention)."""
    ssid = _required(fields, "ssid")
    password = _field(fields, "password")
    encryption = _field(fields, "encryption").upper() or ("WPA" if password else "NOPASS")
    if encryption in ("NONE", "OPEN", "NOPASS"):
        encryption = "nopass"
        password = ""
    parts = [f"T:{encryption}", f"S:{_escape_wifi(ssid)}"]
    if password:
        parts.append(f"P:{_escape_wifi(password)}")
    if str(fields.get("hidden", "")).lower() in ("1", "true", "yes"):
        parts.append("H:true")
    return "WIFI:" + ";".join(parts) + ";;"


def _vcard(fields: Mapping[str, Any], organization: str) -> str:
    first = _field(fields, "first_name")
    last = _field(fields, "last_name")
    full_name = " ".join(part for part in (first, last) if part) or organization

    lines: List[str] = ["BEGIN:VCARD", "VERSION:3.0"]
    lines.append(f"N:{_escape_vcard(last)};{_escape_vcard(first)};;;")
    lines.append(f"FN:{_escape_vcard(full_name)}")
    optional = (
        ("ORG", organization),
        ("TITLE", _field(fields, "title")),
        ("TEL", _field(fields, "phone")),
        ("EMAIL", _field(fields, "email")),
        ("URL", _field(fields, "url")),
        ("ADR", _field(fields, "address")),
        ("NOTE", _field(fields, "note")),
    )
    for name, value in optional:
        if not value:
            continue
        if name == "ADR":
            # Free text address goes into the street component
            lines.append(f"ADR:;;{_escape_vcard(value)};;;;")
        else:
            lines.append(f"{name}:{_escape_vcard(value)}")
    lines.append("END:VCARD")
    return "\r\n".join(lines)


def format_vcard(fields: Mapping[str, Any]) -> str:
    if not (_field(fields, "first_name") or _field(fields, "last_name")):
        raise MissingField("first_name or last_name is required")
    return _vcard(fields, _field(fields, "organization"))


def format_business(fields: Mapping[str, Any]) -> str:
    return _vcard(fields, _required(fields, "organization"))


def format_mecard(fields: Mapping[str, Any]) -> str:
    first = _field(fields, "first_name")
    last = _field(fields, "last_name")
    if not (first or last):
        raise MissingField("first_name or last_name is required")
    name = ",".join(_escape_mecard(part) for part in (last, first) if part)
    parts = [f"N:{name}"]
    for key, field_name in (
        ("TEL", "phone"), ("EMAIL", "email"), ("URL", "url"), ("ADR", "address"), ("NOTE", "note"),
    ):
        value = _field(fields, field_name)
        if value:
            parts.append(f"{key}:{_escape_mecard(value)}")
    return "MECARD:" + ";".join(parts) + ";;"


def format_coupon(fields: Mapping[str, Any]) -> str:
    code = _required(fields, "code")
    description = _field(fields, "description")
    return f"{description}\n{code}" if description else code


_FORMATTERS: Dict[ContentType, Callable[[Mapping[str, Any]], str]] = {
    ContentType.WEBSITE: format_url,
    ContentType.FACEBOOK: format_url,
    ContentType.INSTAGRAM: format_url,
    ContentType.VIDEO: format_url,
    ContentType.IMAGE: format_url,
    ContentType.MP3: format_url,
    ContentType.MENU: format_url,
    ContentType.APP: format_url,
    ContentType.PDF: format_url,
    ContentType.TEXT: format_text,
    ContentType.EMAIL: format_email,
    ContentType.PHONE: format_phone,
    ContentType.SMS: format_sms,
    ContentType.WHATSAPP: format_whatsapp,
    ContentType.WIFI: format_wifi,
    ContentType.VCARD: format_vcard,
    ContentType.BUSINESS: format_business,
    ContentType.MECARD: format_mecard,
    ContentType.COUPON: format_coupon,
}


def parse_content_type(value: Any) -> ContentType:
    if isinstance(value, ContentType):
        return value
    try:
        return ContentType(str(value).strip().upper())
    except ValueError:
        raise UnsupportedContentType(f"Unsupported content type {value!r}") from None


def format_payload(content_type: Any, fields: Optional[Mapping[str, Any]]) -> str:
    """Build the text a scanner expects for ``content_type`` from ``fields``.

    Only blank required fields are rejected; anything deeper is left to the
    caller.
    """
    formatter = _FORMATTERS[parse_content_type(content_type)]
    return formatter(fields or {})

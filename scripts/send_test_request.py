import argparse
import base64
import json
from pathlib import Path
from typing import Any, Dict, List, Optional

import requests

CONTENT_TYPES = [
    "WEBSITE", "TEXT", "EMAIL", "PHONE", "SMS", "VCARD", "BUSINESS", "MECARD", "WIFI",
    "FACEBOOK", "INSTAGRAM", "WHATSAPP", "VIDEO", "IMAGE", "MP3", "MENU", "APP",
    "COUPON", "PDF",
]


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Ask the QR service to render a QR code and save it as PNG."
    )
    parser.add_argument(
        "content",
        nargs="?",
        help="Raw text or URL to encode. Omit it to build the payload from --field.",
    )
    parser.add_argument(
        "--host",
        default="http://127.0.0.1:5000",
        help="Server host (default: http://127.0.0.1:5000).",
    )
    parser.add_argument(
        "--type",
        dest="content_type",
        type=str.upper,
        choices=CONTENT_TYPES,
        default="TEXT",
        help="Content type used with --field and --save (default: TEXT).",
    )
    parser.add_argument(
        "--field",
        action="append",
        default=[],
        metavar="NAME=VALUE",
        help="Formatter field, e.g. --field ssid=Home. Can be repeated.",
    )
    parser.add_argument("--size", type=int, default=256, help="Image size in pixels.")
    parser.add_argument("--margin", type=int, help="Quiet zone in modules.")
    parser.add_argument(
        "--ecc",
        default="M",
        type=str.upper,
        choices=["L", "M", "Q", "H"],
        help="Error correction level (default: M).",
    )
    parser.add_argument("--color", default="#000000", help="Module color.")
    parser.add_argument("--background", default="#ffffff", help="Background color.")
    parser.add_argument(
        "--save",
        metavar="TITLE",
        help="Store the QR code on the server under TITLE instead of only rendering it.",
    )
    parser.add_argument(
        "--qr-output",
        type=Path,
        default=Path("qr_code.png"),
        help="Path to save the QR code image (default: qr_code.png).",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Print the payload instead of sending the request.",
    )
    args = parser.parse_args(argv)
    if not args.content and not args.field:
        parser.error("either content or at least one --field is required")
    return args


def parse_fields(pairs: List[str]) -> Dict[str, str]:
    fields = {}
    for pair in pairs:
        name, sep, value = pair.partition("=")
        if not sep or not name:
            raise ValueError(f"Invalid field {pair!r}, expected NAME=VALUE")
        fields[name.strip()] = value
    return fields


def build_payload(args: argparse.Namespace) -> Dict[str, Any]:
    settings: Dict[str, Any] = {
        "size": args.size,
        "color": args.color,
        "backgroundColor": args.background,
        "errorCorrection": args.ecc,
    }
    if args.margin is not None:
        settings["margin"] = args.margin

    payload: Dict[str, Any] = {"type": args.content_type, "settings": settings}
    if args.content:
        payload["content"] = args.content
    else:
        payload["fields"] = parse_fields(args.field)
    if args.save:
        payload["title"] = args.save
    return payload


def save_qr_code(data_uri: str, output_path: Path) -> None:
    _, _, image_b64 = data_uri.partition("base64,")
    output_path.write_bytes(base64.b64decode(image_b64))


def main(argv: Optional[List[str]] = None) -> None:
    args = parse_args(argv)
    payload = build_payload(args)

    if args.dry_run:
        print(json.dumps(payload, indent=2))
        return

    host = args.host.rstrip("/")
    endpoint = "/api/qr/save" if args.save else "/api/qr/generate"
    response = requests.post(f"{host}{endpoint}", json=payload, timeout=10)

    print(f"Status: {response.status_code}")
    response.raise_for_status()
    data = response.json()

    if args.save:
        record = data["qrCode"]
        print(json.dumps(record, indent=2))
        image = requests.get(f"{host}/qr/{record['id']}", timeout=10)
        image.raise_for_status()
        args.qr_output.write_bytes(image.content)
        print(f"Saved QR code to {args.qr_output.resolve()}")
        return

    data_uri = data.pop("qrCodeDataURL", None)
    print(json.dumps(data, indent=2))
    if data_uri:
        save_qr_code(data_uri, args.qr_output)
        print(f"Saved QR code to {args.qr_output.resolve()}")
    else:
        print("No QR code returned in response.")


if __name__ == "__main__":
    main()

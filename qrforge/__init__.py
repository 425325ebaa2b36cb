"""QR Code encoding and rendering."""

from qrforge.encoder import ModuleMatrix, encode
from qrforge.errors import (
    InvalidColor,
    InvalidErrorCorrectionLevel,
    InvalidMargin,
    InvalidMaskPattern,
    InvalidPixelSize,
    InvalidVersion,
    MissingField,
    PayloadTooLarge,
    QRCodeError,
    UnsupportedCharacter,
    UnsupportedContentType,
)
from qrforge.generator import RenderedQR, generate_qr
from qrforge.payloads import ContentType, format_payload
from qrforge.raster import rasterize, to_data_uri, to_png_bytes
from qrforge.tables import EncodingMode, ErrorCorrectionLevel

__version__ = "1.0.0"

__all__ = [
    "ContentType",
    "EncodingMode",
    "ErrorCorrectionLevel",
    "InvalidColor",
    "InvalidErrorCorrectionLevel",
    "InvalidMargin",
    "InvalidMaskPattern",
    "InvalidPixelSize",
    "InvalidVersion",
    "MissingField",
    "ModuleMatrix",
    "PayloadTooLarge",
    "QRCodeError",
    "RenderedQR",
    "UnsupportedCharacter",
    "UnsupportedContentType",
    "encode",
    "format_payload",
    "generate_qr",
    "rasterize",
    "to_data_uri",
    "to_png_bytes",
]

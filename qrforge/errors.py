"""Errors raised while formatting, encoding or rendering QR codes."""


class QRCodeError(ValueError):
    """Base class for every error raised by qrforge.

    ``code`` is a short machine readable identifier that the HTTP layer
    returns next to the human readable message.
    """

    code = "qr_code_error"


class PayloadTooLarge(QRCodeError):
    code = "payload_too_large"


class UnsupportedCharacter(QRCodeError):
    code = "unsupported_character"


class InvalidErrorCorrectionLevel(QRCodeError):
    code = "invalid_error_correction_level"


class InvalidPixelSize(QRCodeError):
    code = "invalid_pixel_size"


class InvalidVersion(QRCodeError):
    code = "invalid_version"


class InvalidMaskPattern(QRCodeError):
    code = "invalid_mask_pattern"


class InvalidColor(QRCodeError):
    code = "invalid_color"


class InvalidMargin(QRCodeError):
    code = "invalid_margin"


class UnsupportedContentType(QRCodeError):
    code = "unsupported_content_type"


class MissingField(QRCodeError):
    code = "missing_field"

"""One call from payload to rendered QR code."""

from dataclasses import dataclass
from typing import Union

from PIL import Image

from qrforge.bitstream import Payload
from qrforge.encoder import ModuleMatrix, encode
from qrforge.raster import (
    DEFAULT_MARGIN,
    DEFAULT_PIXEL_SIZE,
    Color,
    rasterize,
    to_data_uri,
    to_png_bytes,
)
from qrforge.tables import ErrorCorrectionLevel


@dataclass(frozen=True)
class RenderedQR:
    matrix: ModuleMatrix
    image: Image.Image

    def png_bytes(self) -> bytes:
        return to_png_bytes(self.image)

    def data_uri(self) -> str:
        return to_data_uri(self.image)


def generate_qr(
    payload: Payload,
    error_correction: Union[ErrorCorrectionLevel, str] = ErrorCorrectionLevel.M,
    pixel_size: int = DEFAULT_PIXEL_SIZE,
    foreground: Color = "#000000",
    background: Color = "#ffffff",
    margin: int = DEFAULT_MARGIN,
) -> RenderedQR:
    """Encode ``payload`` and render it.

    Nothing is returned unless both steps succeed.
    """
    matrix = encode(payload, error_correction)
    image = rasterize(
        matrix,
        pixel_size=pixel_size,
        foreground=foreground,
        background=background,
        margin=margin,
    )
    return RenderedQR(matrix=matrix, image=image)

"""Turn a module matrix into a Pillow image."""

import base64
from io import BytesIO
from typing import Tuple, Union

from PIL import Image, ImageColor

from qrforge.encoder import ModuleMatrix
from qrforge.errors import InvalidColor, InvalidMargin, InvalidPixelSize

DEFAULT_PIXEL_SIZE = 256
DEFAULT_MARGIN = 4
MAX_PIXEL_SIZE = 8192

Color = Union[str, Tuple[int, ...]]


def parse_color(value: Color) -> Tuple[int, ...]:
    if isinstance(value, str):
        try:
            return ImageColor.getrgb(value)
        except ValueError as exc:
            raise InvalidColor(f"Unknown color {value!r}") from exc
    if (
        isinstance(value, (tuple, list))
        and len(value) in (3, 4)
        and all(isinstance(c, int) and 0 <= c <= 255 for c in value)
    ):
        return tuple(value)
    raise InvalidColor(f"Color must be a color string or an RGB(A) tuple, got {value!r}")


def module_scale(matrix: ModuleMatrix, pixel_size: int, margin: int) -> int:
    """Integer number of pixels per module for a ``pixel_size`` wide image."""
    if not isinstance(margin, int) or margin < 0:
        raise InvalidMargin(f"Margin must be a non-negative number of modules, got {margin!r}")
    if not isinstance(pixel_size, int) or not 0 < pixel_size <= MAX_PIXEL_SIZE:
        raise InvalidPixelSize(
            f"Pixel size must be between 1 and {MAX_PIXEL_SIZE}, got {pixel_size!r}"
        )
    modules = matrix.size + 2 * margin
    if pixel_size < modules:
        raise InvalidPixelSize(
            f"Pixel size {pixel_size} is too small for a {modules}x{modules} "
            "module symbol (including quiet zone)"
        )
    return pixel_size // modules


def rasterize(
    matrix: ModuleMatrix,
    pixel_size: int = DEFAULT_PIXEL_SIZE,
    foreground: Color = "#000000",
    background: Color = "#ffffff",
    margin: int = DEFAULT_MARGIN,
) -> Image.Image:
    """Render ``matrix`` onto a square ``pixel_size`` x ``pixel_size`` image.

    Each module becomes a ``scale`` x ``scale`` block where ``scale`` is the
    largest integer that fits the symbol plus ``margin`` quiet zone modules.
    The symbol is centred; pixels left over widen the quiet zone.
    """
    fill = parse_color(foreground)
    back = parse_color(background)
    if _with_alpha(fill) == _with_alpha(back):
        raise InvalidColor("Foreground and background colors must differ")
    scale = module_scale(matrix, pixel_size, margin)

    size = matrix.size
    symbol = Image.frombytes(
        "L", (size, size), b"".join(row.replace(b"\x01", b"\xff") for row in matrix.modules)
    )
    scaled = size * scale
    symbol = symbol.resize((scaled, scaled), Image.Resampling.NEAREST)

    mode = "RGBA" if len(fill) == 4 or len(back) == 4 else "RGB"
    if mode == "RGBA":
        fill, back = _with_alpha(fill), _with_alpha(back)
    image = Image.new(mode, (pixel_size, pixel_size), back)
    offset = (pixel_size - scaled) // 2
    image.paste(fill, (offset, offset, offset + scaled, offset + scaled), mask=symbol)
    return image


def _with_alpha(color: Tuple[int, ...]) -> Tuple[int, ...]:
    return color if len(color) == 4 else color + (255,)


def to_png_bytes(image: Image.Image) -> bytes:
    buffer = BytesIO()
    image.save(buffer, format="PNG")
    return buffer.getvalue()


def to_data_uri(image: Image.Image) -> str:
    """PNG image as a ``data:`` URI ready for an ``<img src>``."""
    encoded = base64.b64encode(to_png_bytes(image)).decode("ascii")
    return f"data:image/png;base64,{encoded}"

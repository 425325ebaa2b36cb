"""QR Code symbol encoder (ISO/IEC 18004, model 2, versions 1-40)."""

import logging
from dataclasses import dataclass
from itertools import chain, zip_longest
from typing import Iterator, List, Optional, Sequence, Tuple, Union

from qrforge import reed_solomon
from qrforge.bitstream import Payload, Segment, build_data_codewords, make_segment
from qrforge.errors import InvalidMaskPattern, InvalidVersion, PayloadTooLarge
from qrforge.masking import MASK_PATTERNS, apply_mask, choose_mask
from qrforge.matrix import MatrixBuilder
from qrforge.tables import (
    MAX_VERSION,
    MIN_VERSION,
    EncodingMode,
    ErrorCorrectionLevel,
    block_layout,
    data_codewords,
    format_info,
    version_info,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ModuleMatrix:
    """An encoded symbol: one ``bytes`` row per module row, 1 meaning dark."""

    version: int
    error_correction: ErrorCorrectionLevel
    mode: EncodingMode
    mask: int
    modules: Tuple[bytes, ...]

    @property
    def size(self) -> int:
        return len(self.modules)

    def is_dark(self, row: int, col: int) -> bool:
        return self.modules[row][col] == 1

    def __iter__(self) -> Iterator[bytes]:
        return iter(self.modules)

    def to_bitmap(self, margin: int = 0) -> List[List[bool]]:
        """Monochrome bitmap (True = dark) surrounded by ``margin`` light modules."""
        width = self.size + 2 * margin
        blank = [False] * width
        bitmap = [list(blank) for _ in range(margin)]
        for row in self.modules:
            bitmap.append([False] * margin + [bool(m) for m in row] + [False] * margin)
        bitmap.extend(list(blank) for _ in range(margin))
        return bitmap

    def __str__(self) -> str:
        return "\n".join("".join("#" if m else "." for m in row) for row in self.modules)


def select_version(segment: Segment, level: ErrorCorrectionLevel) -> int:
    """Smallest version whose data capacity holds ``segment``."""
    for version in range(MIN_VERSION, MAX_VERSION + 1):
        if _fits(segment, version, level):
            return version
    raise PayloadTooLarge(
        f"Data too large: {segment.char_count} characters in {segment.mode.name.lower()} "
        f"mode exceed the capacity of version {MAX_VERSION} at error correction level "
        f"{level.value}. Use a lower error correction level or a shorter payload."
    )


def _fits(segment: Segment, version: int, level: ErrorCorrectionLevel) -> bool:
    return (
        segment.fits_count_indicator(version)
        and segment.bit_length(version) <= data_codewords(version, level) * 8
    )


def add_error_correction(
    codewords: Sequence[int], version: int, level: ErrorCorrectionLevel
) -> List[int]:
    """Split into blocks, append RS parity and interleave the final sequence."""
    data_blocks = []
    ec_blocks = []
    offset = 0
    for data_count, ec_count in block_layout(version, level):
        block = list(codewords[offset:offset + data_count])
        offset += data_count
        data_blocks.append(block)
        ec_blocks.append(reed_solomon.remainder(block, ec_count))
    if offset != len(codewords):
        raise ValueError(
            f"Expected {offset} data codewords for version {version}-{level.value}, "
            f"got {len(codewords)}"
        )
    return [
        codeword
        for codeword in chain(
            chain.from_iterable(zip_longest(*data_blocks)),
            chain.from_iterable(zip_longest(*ec_blocks)),
        )
        if codeword is not None
    ]


def _codeword_bits(codewords: Sequence[int]) -> Iterator[int]:
    for codeword in codewords:
        for shift in range(7, -1, -1):
            yield (codeword >> shift) & 1


def encode(
    payload: Payload,
    error_correction: Union[ErrorCorrectionLevel, str] = ErrorCorrectionLevel.M,
    mode: Optional[EncodingMode] = None,
    version: Optional[int] = None,
    mask: Optional[int] = None,
) -> ModuleMatrix:
    """Encode ``payload`` into a QR Code module matrix.

    :param payload: Text (numeric, alphanumeric, Kanji or UTF-8 bytes) or raw bytes.
    :param error_correction: ``L``, ``M``, ``Q`` or ``H``.
    :param mode: Force an encoding mode instead of detecting it.
    :param version: Use exactly this version instead of the smallest fitting one.
    :param mask: Use this mask pattern instead of the lowest penalty one.
    :raises PayloadTooLarge: No (or not the requested) version holds the payload.
    :raises UnsupportedCharacter: ``mode`` cannot represent the payload.
    """
    level = ErrorCorrectionLevel.parse(error_correction)
    if mask is not None and (
        not isinstance(mask, int) or isinstance(mask, bool) or not 0 <= mask < len(MASK_PATTERNS)
    ):
        raise InvalidMaskPattern(f"Mask pattern must be between 0 and 7, got {mask!r}")

    segment = make_segment(payload, mode)
    if version is None:
        version = select_version(segment, level)
    else:
        if (
            not isinstance(version, int)
            or isinstance(version, bool)
            or not MIN_VERSION <= version <= MAX_VERSION
        ):
            raise InvalidVersion(f"Version must be between 1 and 40, got {version!r}")
        if not _fits(segment, version, level):
            raise PayloadTooLarge(
                f"Data too large for version {version} at error correction level {level.value}"
            )

    codewords = add_error_correction(
        build_data_codewords(segment, version, level), version, level
    )

    builder = MatrixBuilder(version)
    builder.draw_function_patterns()
    builder.place_bits(_codeword_bits(codewords))

    if mask is None:
        mask, masked = choose_mask(builder.modules, builder.function)
    else:
        masked = apply_mask(builder.modules, builder.function, mask)
    builder.modules = masked
    builder.draw_format_info(format_info(level, mask))
    if version >= 7:
        builder.draw_version_info(version_info(version))

    logger.debug(
        "Encoded %d characters: mode=%s version=%d level=%s mask=%d",
        segment.char_count, segment.mode.name, version, level.value, mask,
    )
    return ModuleMatrix(
        version=version,
        error_correction=level,
        mode=segment.mode,
        mask=mask,
        modules=tuple(bytes(row) for row in builder.modules),
    )

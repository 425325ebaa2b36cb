"""Fixed tables from ISO/IEC 18004 (QR Code model 2, versions 1-40).

Every table is an immutable tuple indexed by ``version - 1``; per-level
tables are ordered L, M, Q, H (see :attr:`ErrorCorrectionLevel.ordinal`).
"""

from enum import Enum
from typing import Tuple

from qrforge.errors import InvalidErrorCorrectionLevel

MIN_VERSION = 1
MAX_VERSION = 40


class ErrorCorrectionLevel(str, Enum):
    L = "L"
    M = "M"
    Q = "Q"
    H = "H"

    @property
    def ordinal(self) -> int:
        return "LMQH".index(self.value)

    @property
    def format_bits(self) -> int:
        """Two bit indicator used in the format information."""
        return _FORMAT_BITS[self.value]

    @classmethod
    def parse(cls, value) -> "ErrorCorrectionLevel":
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().upper())
            except ValueError:
                pass
        raise InvalidErrorCorrectionLevel(
            f"Unsupported error correction level {value!r}. Supported: L, M, Q, H"
        )


_FORMAT_BITS = {"L": 0b01, "M": 0b00, "Q": 0b11, "H": 0b10}


class EncodingMode(Enum):
    """Data modes; the value is the 4 bit mode indicator."""

    NUMERIC = 0b0001
    ALPHANUMERIC = 0b0010
    BYTE = 0b0100
    KANJI = 0b1000

    def char_count_bits(self, version: int) -> int:
        """Width of the character count indicator for ``version``."""
        if version <= 9:
            column = 0
        elif version <= 26:
            column = 1
        else:
            column = 2
        return _CHAR_COUNT_BITS[self][column]


_CHAR_COUNT_BITS = {
    EncodingMode.NUMERIC: (10, 12, 14),
    EncodingMode.ALPHANUMERIC: (9, 11, 13),
    EncodingMode.BYTE: (8, 16, 16),
    EncodingMode.KANJI: (8, 10, 12),
}

ALPHANUMERIC_CHARSET = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ $%*+-./:"

# Total number of codewords (data + error correction) per version.
TOTAL_CODEWORDS: Tuple[int, ...] = (
    26, 44, 70, 100, 134, 172, 196, 242, 292, 346,
    404, 466, 532, 581, 655, 733, 815, 901, 991, 1085,
    1156, 1258, 1364, 1474, 1588, 1706, 1828, 1921, 2051, 2185,
    2323, 2465, 2611, 2761, 2876, 3034, 3196, 3362, 3532, 3706,
)

# Number of data codewords per version, as (L, M, Q, H).
DATA_CODEWORDS: Tuple[Tuple[int, int, int, int], ...] = (
    (19, 16, 13, 9), (34, 28, 22, 16), (55, 44, 34, 26), (80, 64, 48, 36),
    (108, 86, 62, 46), (136, 108, 76, 60), (156, 124, 88, 66), (194, 154, 110, 86),
    (232, 182, 132, 100), (274, 216, 154, 122), (324, 254, 180, 140), (370, 290, 206, 158),
    (428, 334, 244, 180), (461, 365, 261, 197), (523, 415, 295, 223), (589, 453, 325, 253),
    (647, 507, 367, 283), (721, 563, 397, 313), (795, 627, 445, 341), (861, 669, 485, 385),
    (932, 714, 512, 406), (1006, 782, 568, 442), (1094, 860, 614, 464), (1174, 914, 664, 514),
    (1276, 1000, 718, 538), (1370, 1062, 754, 596), (1468, 1128, 808, 628), (1531, 1193, 871, 661),
    (1631, 1267, 911, 701), (1735, 1373, 985, 745), (1843, 1455, 1033, 793), (1955, 1541, 1115, 845),
    (2071, 1631, 1171, 901), (2191, 1725, 1231, 961), (2306, 1812, 1286, 986), (2434, 1914, 1354, 1054),
    (2566, 1992, 1426, 1096), (2702, 2102, 1502, 1142), (2812, 2216, 1582, 1222), (2956, 2334, 1666, 1276),
)

# Error correction codewords per block, as (L, M, Q, H).
EC_CODEWORDS_PER_BLOCK: Tuple[Tuple[int, int, int, int], ...] = (
    (7, 10, 13, 17), (10, 16, 22, 28), (15, 26, 18, 22), (20, 18, 26, 16),
    (26, 24, 18, 22), (18, 16, 24, 28), (20, 18, 18, 26), (24, 22, 22, 26),
    (30, 22, 20, 24), (18, 26, 24, 28), (20, 30, 28, 24), (24, 22, 26, 28),
    (26, 22, 24, 22), (30, 24, 20, 24), (22, 24, 30, 24), (24, 28, 24, 30),
    (28, 28, 28, 28), (30, 26, 28, 28), (28, 26, 26, 26), (28, 26, 30, 28),
    (28, 26, 28, 30), (28, 28, 30, 24), (30, 28, 30, 30), (30, 28, 30, 30),
    (26, 28, 30, 30), (28, 28, 28, 30), (30, 28, 30, 30), (30, 28, 30, 30),
    (30, 28, 30, 30), (30, 28, 30, 30), (30, 28, 30, 30), (30, 28, 30, 30),
    (30, 28, 30, 30), (30, 28, 30, 30), (30, 28, 30, 30), (30, 28, 30, 30),
    (30, 28, 30, 30), (30, 28, 30, 30), (30, 28, 30, 30), (30, 28, 30, 30),
)

# Number of error correction blocks, as (L, M, Q, H).
NUM_BLOCKS: Tuple[Tuple[int, int, int, int], ...] = (
    (1, 1, 1, 1), (1, 1, 1, 1), (1, 1, 2, 2), (1, 2, 2, 4), (1, 2, 4, 4),
    (2, 4, 4, 4), (2, 4, 6, 5), (2, 4, 6, 6), (2, 5, 8, 8), (4, 5, 8, 8),
    (4, 5, 8, 11), (4, 8, 10, 11), (4, 9, 12, 16), (4, 9, 16, 16), (6, 10, 12, 18),
    (6, 10, 17, 16), (6, 11, 16, 19), (6, 13, 18, 21), (7, 14, 21, 25), (8, 16, 20, 25),
    (8, 17, 23, 25), (9, 17, 23, 34), (9, 18, 25, 30), (10, 20, 27, 32), (12, 21, 29, 35),
    (12, 23, 34, 37), (12, 25, 34, 40), (13, 26, 35, 42), (14, 28, 38, 45), (15, 29, 40, 48),
    (16, 31, 43, 51), (17, 33, 45, 54), (18, 35, 48, 57), (19, 37, 51, 60), (19, 38, 53, 63),
    (20, 40, 56, 66), (21, 43, 59, 70), (22, 45, 62, 74), (24, 47, 65, 77), (25, 49, 68, 81),
)

# Bits left over after the last codeword has been placed.
REMAINDER_BITS: Tuple[int, ...] = (
    0, 7, 7, 7, 7, 7, 0, 0, 0, 0,
    0, 0, 0, 3, 3, 3, 3, 3, 3, 3,
    4, 4, 4, 4, 4, 4, 4, 3, 3, 3,
    3, 3, 3, 3, 0, 0, 0, 0, 0, 0,
)

# Row/column coordinates of alignment pattern centres (empty for version 1).
ALIGNMENT_POSITIONS: Tuple[Tuple[int, ...], ...] = (
    (),
    (6, 18), (6, 22), (6, 26), (6, 30), (6, 34),
    (6, 22, 38), (6, 24, 42), (6, 26, 46), (6, 28, 50), (6, 30, 54), (6, 32, 58), (6, 34, 62),
    (6, 26, 46, 66), (6, 26, 48, 70), (6, 26, 50, 74), (6, 30, 54, 78), (6, 30, 56, 82),
    (6, 30, 58, 86), (6, 34, 62, 90),
    (6, 28, 50, 72, 94), (6, 26, 50, 74, 98), (6, 30, 54, 78, 102), (6, 28, 54, 80, 106),
    (6, 32, 58, 84, 110), (6, 30, 58, 86, 114), (6, 34, 62, 90, 118),
    (6, 26, 50, 74, 98, 122), (6, 30, 54, 78, 102, 126), (6, 26, 52, 78, 104, 130),
    (6, 30, 56, 82, 108, 134), (6, 34, 60, 86, 112, 138), (6, 30, 58, 86, 114, 142),
    (6, 34, 62, 90, 118, 146),
    (6, 30, 54, 78, 102, 126, 150), (6, 24, 50, 76, 102, 128, 154), (6, 28, 54, 80, 106, 132, 158),
    (6, 32, 58, 84, 110, 136, 162), (6, 26, 54, 82, 110, 138, 166), (6, 30, 58, 86, 114, 142, 170),
)

# 15 bit format information words (BCH(15,5), already XORed with 0x5412),
# indexed by (format_bits << 3) | mask.
FORMAT_INFO: Tuple[int, ...] = (
    # M
    0b101010000010010, 0b101000100100101, 0b101111001111100, 0b101101101001011,
    0b100010111111001, 0b100000011001110, 0b100111110010111, 0b100101010100000,
    # L
    0b111011111000100, 0b111001011110011, 0b111110110101010, 0b111100010011101,
    0b110011000101111, 0b110001100011000, 0b110110001000001, 0b110100101110110,
    # H
    0b001011010001001, 0b001001110111110, 0b001110011100111, 0b001100111010000,
    0b000011101100010, 0b000001001010101, 0b000110100001100, 0b000100000111011,
    # Q
    0b011010101011111, 0b011000001101000, 0b011111100110001, 0b011101000000110,
    0b010010010110100, 0b010000110000011, 0b010111011011010, 0b010101111101101,
)

# 18 bit version information words (BCH(18,6)) for versions 7-40.
VERSION_INFO: Tuple[int, ...] = (
    0x07C94, 0x085BC, 0x09A99, 0x0A4D3, 0x0BBF6, 0x0C762, 0x0D847, 0x0E60D,
    0x0F928, 0x10B78, 0x1145D, 0x12A17, 0x13532, 0x149A6, 0x15683, 0x168C9,
    0x177EC, 0x18EC4, 0x191E1, 0x1AFAB, 0x1B08E, 0x1CC1A, 0x1D33F, 0x1ED75,
    0x1F250, 0x209D5, 0x216F0, 0x228BA, 0x2379F, 0x24B0B, 0x2542E, 0x26A64,
    0x27541, 0x28C69,
)


def symbol_size(version: int) -> int:
    return 17 + 4 * version


def data_codewords(version: int, level: ErrorCorrectionLevel) -> int:
    return DATA_CODEWORDS[version - 1][level.ordinal]


def block_layout(version: int, level: ErrorCorrectionLevel) -> Tuple[Tuple[int, int], ...]:
    """Return ``(data_codewords, ec_codewords)`` for every block, in order.

    Short blocks come first; long blocks carry one extra data codeword.
    """
    num_blocks = NUM_BLOCKS[version - 1][level.ordinal]
    ec_per_block = EC_CODEWORDS_PER_BLOCK[version - 1][level.ordinal]
    short_len, num_long = divmod(data_codewords(version, level), num_blocks)
    num_short = num_blocks - num_long
    return tuple(
        (short_len + (0 if i < num_short else 1), ec_per_block)
        for i in range(num_blocks)
    )


def format_info(level: ErrorCorrectionLevel, mask: int) -> int:
    return FORMAT_INFO[(level.format_bits << 3) | mask]


def version_info(version: int) -> int:
    return VERSION_INFO[version - 7]

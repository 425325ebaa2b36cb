from concurrent.futures import ThreadPoolExecutor

import pytest

from qrforge import encode
from qrforge.encoder import add_error_correction
from qrforge.errors import (
    InvalidErrorCorrectionLevel,
    InvalidMaskPattern,
    InvalidVersion,
    PayloadTooLarge,
    QRCodeError,
    UnsupportedCharacter,
)
from qrforge.masking import MASK_PATTERNS
from qrforge.matrix import MatrixBuilder, zigzag_positions
from qrforge.tables import EncodingMode, ErrorCorrectionLevel, format_info, version_info

HELLO_WORLD_1M = (
    [32, 91, 11, 120, 209, 114, 220, 77, 67, 64, 236, 17, 236, 17, 236, 17]
    + [196, 35, 39, 119, 235, 215, 231, 226, 93, 23]
)


def read_codewords(symbol):
    """Unmask the data area of ``symbol`` and read it back in placement order."""
    builder = MatrixBuilder(symbol.version)
    builder.draw_function_patterns()
    pattern = MASK_PATTERNS[symbol.mask]
    bits = [
        symbol.modules[row][col] ^ pattern(row, col)
        for row, col in zigzag_positions(symbol.size)
        if not builder.function[row][col]
    ]
    return [
        int("".join(map(str, bits[i:i + 8])), 2)
        for i in range(0, len(bits) - len(bits) % 8, 8)
    ]


def read_format_word(symbol):
    word = 0
    for i in range(8):
        word |= symbol.modules[8][symbol.size - 1 - i] << i
    for i in range(8, 15):
        word |= symbol.modules[symbol.size - 15 + i][8] << i
    return word


def test_hello_world():
    symbol = encode("HELLO WORLD", "M")
    assert symbol.version == 1
    assert symbol.size == 21
    assert symbol.mode is EncodingMode.ALPHANUMERIC
    assert symbol.error_correction is ErrorCorrectionLevel.M
    assert read_codewords(symbol) == HELLO_WORLD_1M


def test_format_info_matches_level_and_mask():
    symbol = encode("https://example.com", ErrorCorrectionLevel.Q)
    assert read_format_word(symbol) == format_info(ErrorCorrectionLevel.Q, symbol.mask)
    assert symbol.is_dark(symbol.size - 8, 8)


def test_version_info_is_written_from_version_7():
    symbol = encode("A" * 200, "M")
    assert symbol.version >= 7
    word = 0
    for i in range(18):
        word |= symbol.modules[i // 3][symbol.size - 11 + i % 3] << i
    assert word == version_info(symbol.version)


def test_encoding_is_deterministic():
    first = encode("Deterministic output", "H")
    second = encode("Deterministic output", "H")
    assert first == second


def test_pinned_mask_is_used():
    for mask in range(8):
        assert encode("HELLO WORLD", "M", mask=mask).mask == mask


def test_interleaving_with_multiple_blocks():
    # 5-Q: blocks of 15, 15, 16 and 16 data codewords
    data = list(range(62))
    final = add_error_correction(data, 5, ErrorCorrectionLevel.Q)
    assert len(final) == 134
    assert final[:8] == [0, 15, 30, 46, 1, 16, 31, 47]
    # Only the long blocks contribute a 16th data codeword
    assert final[60:62] == [45, 61]


def test_add_error_correction_rejects_wrong_length():
    with pytest.raises(ValueError):
        add_error_correction([0] * 15, 1, ErrorCorrectionLevel.M)


@pytest.mark.parametrize(
    "payload, level, expected_version",
    [
        ("1" * 41, "L", 1),
        ("1" * 42, "L", 2),
        ("a" * 14, "M", 1),
        ("a" * 15, "M", 2),
        ("a" * 2953, "L", 40),
        ("1" * 7089, "L", 40),
    ],
)
def test_smallest_fitting_version(payload, level, expected_version):
    assert encode(payload, level).version == expected_version


@pytest.mark.parametrize(
    "payload, level",
    [("a" * 2954, "L"), ("1" * 7090, "L"), ("A" * 1853, "H")],
)
def test_payload_too_large(payload, level):
    with pytest.raises(PayloadTooLarge) as excinfo:
        encode(payload, level)
    assert "error correction" in str(excinfo.value)


def test_higher_error_correction_needs_larger_symbols():
    versions = [encode("https://example.com/path", level).version for level in "LMQH"]
    assert versions == sorted(versions)
    assert versions[0] < versions[-1]


def test_empty_payload():
    symbol = encode("")
    assert symbol.version == 1
    assert symbol.mode is EncodingMode.BYTE
    assert read_codewords(symbol)[:16] == [0x40, 0x00] + [236, 17] * 7


def test_bytes_payload():
    symbol = encode(b"\x00\xff\x10binary")
    assert symbol.mode is EncodingMode.BYTE
    assert read_codewords(symbol)[:2] == [0x40, 0x90]


def test_kanji_payload():
    assert encode("点茗").mode is EncodingMode.KANJI


def test_forced_mode():
    assert encode("12345", mode=EncodingMode.BYTE).mode is EncodingMode.BYTE
    with pytest.raises(UnsupportedCharacter):
        encode("hello", mode=EncodingMode.NUMERIC)


def test_pinned_version():
    assert encode("HELLO WORLD", version=10).version == 10
    with pytest.raises(PayloadTooLarge):
        encode("a" * 100, version=1)


@pytest.mark.parametrize(
    "kwargs, error",
    [
        ({"error_correction": "X"}, InvalidErrorCorrectionLevel),
        ({"error_correction": None}, InvalidErrorCorrectionLevel),
        ({"version": 0}, InvalidVersion),
        ({"version": 41}, InvalidVersion),
        ({"mask": 8}, InvalidMaskPattern),
        ({"mask": -1}, InvalidMaskPattern),
    ],
)
def test_invalid_arguments(kwargs, error):
    with pytest.raises(error) as excinfo:
        encode("HELLO", **kwargs)
    assert isinstance(excinfo.value, QRCodeError)
    assert isinstance(excinfo.value, ValueError)


def test_to_bitmap_adds_quiet_zone():
    symbol = encode("HELLO WORLD")
    bitmap = symbol.to_bitmap(margin=4)
    assert len(bitmap) == len(bitmap[0]) == 29
    assert not any(bitmap[0])
    assert not any(row[0] for row in bitmap)
    assert bitmap[4][4] is True
    assert symbol.to_bitmap()[0][0] is True


def test_str_renders_rows():
    lines = str(encode("HELLO WORLD")).splitlines()
    assert len(lines) == 21
    assert lines[0].startswith("#######.")


def test_concurrent_encoding_matches_sequential():
    payloads = [f"payload number {i}" for i in range(24)]
    expected = [encode(p, "Q") for p in payloads]
    with ThreadPoolExecutor(max_workers=8) as pool:
        results = list(pool.map(lambda p: encode(p, "Q"), payloads))
    assert results == expected


@pytest.mark.parametrize(
    "kwargs, error",
    [({"mask": True}, InvalidMaskPattern), ({"version": True}, InvalidVersion)],
)
def test_booleans_are_not_accepted_as_numbers(kwargs, error):
    with pytest.raises(error):
        encode("HELLO", **kwargs)

"""Data analysis and bit stream construction."""

from typing import List, NamedTuple, Optional, Union

from qrforge.errors import UnsupportedCharacter
from qrforge.tables import (
    ALPHANUMERIC_CHARSET,
    EncodingMode,
    ErrorCorrectionLevel,
    data_codewords,
)

Payload = Union[str, bytes]

_DIGITS = frozenset(b"0123456789")
_ALPHANUMERIC = frozenset(ALPHANUMERIC_CHARSET.encode("ascii"))
_PAD_CODEWORDS = (0xEC, 0x11)


class BitBuffer:
    __slots__ = ("_bits",)

    def __init__(self) -> None:
        self._bits = bytearray()

    def append_bits(self, value: int, length: int) -> None:
        if value >> length:
            raise ValueError(f"{value} does not fit into {length} bits")
        self._bits.extend((value >> i) & 1 for i in reversed(range(length)))

    def extend(self, other: "BitBuffer") -> None:
        self._bits.extend(other._bits)

    def to_codewords(self) -> List[int]:
        """Pack the bits into bytes, most significant bit first."""
        if len(self._bits) % 8:
            raise ValueError("Bit stream is not aligned to a codeword boundary")
        codewords = []
        for offset in range(0, len(self._bits), 8):
            value = 0
            for bit in self._bits[offset:offset + 8]:
                value = (value << 1) | bit
            codewords.append(value)
        return codewords

    def __len__(self) -> int:
        return len(self._bits)

    def __iter__(self):
        return iter(self._bits)


class Segment(NamedTuple):
    mode: EncodingMode
    char_count: int
    bits: BitBuffer

    def bit_length(self, version: int) -> int:
        """Size of the segment including mode and count indicators."""
        return 4 + self.mode.char_count_bits(version) + len(self.bits)

    def fits_count_indicator(self, version: int) -> bool:
        return self.char_count < (1 << self.mode.char_count_bits(version))


def _to_kanji_bytes(payload: Payload) -> Optional[bytes]:
    """Shift JIS bytes of ``payload`` if it is made of Kanji only, else None."""
    if isinstance(payload, str):
        try:
            payload = payload.encode("shift_jis")
        except UnicodeEncodeError:
            return None
    if not payload or len(payload) % 2:
        return None
    for i in range(0, len(payload), 2):
        trail = payload[i + 1]
        if not 0x40 <= trail <= 0xFC or trail == 0x7F:
            return None
        code = (payload[i] << 8) | trail
        if not (0x8140 <= code <= 0x9FFC or 0xE040 <= code <= 0xEBBF):
            return None
    return payload


def _to_bytes(payload: Payload) -> bytes:
    if isinstance(payload, bytes):
        return payload
    return payload.encode("utf-8")


def _is_ascii_subset(payload: Payload, allowed: frozenset) -> bool:
    if isinstance(payload, str):
        return all(ord(char) < 128 and ord(char) in allowed for char in payload)
    return all(byte in allowed for byte in payload)


def detect_mode(payload: Payload) -> EncodingMode:
    """Pick the most compact single mode able to represent ``payload``.

    Kanji is only chosen for text; raw bytes fall back to byte mode. An empty
    payload is encoded in byte mode.
    """
    if not payload:
        return EncodingMode.BYTE
    if _is_ascii_subset(payload, _DIGITS):
        return EncodingMode.NUMERIC
    if _is_ascii_subset(payload, _ALPHANUMERIC):
        return EncodingMode.ALPHANUMERIC
    if isinstance(payload, str) and _to_kanji_bytes(payload) is not None:
        return EncodingMode.KANJI
    return EncodingMode.BYTE


def make_segment(payload: Payload, mode: Optional[EncodingMode] = None) -> Segment:
    """Encode ``payload`` in ``mode`` (detected when omitted)."""
    if mode is None:
        mode = detect_mode(payload)
    buffer = BitBuffer()

    if mode is EncodingMode.NUMERIC:
        if not _is_ascii_subset(payload, _DIGITS):
            raise UnsupportedCharacter("Numeric mode only accepts the digits 0-9")
        digits = _to_bytes(payload).decode("ascii")
        for i in range(0, len(digits), 3):
            chunk = digits[i:i + 3]
            buffer.append_bits(int(chunk), len(chunk) * 3 + 1)
        return Segment(mode, len(digits), buffer)

    if mode is EncodingMode.ALPHANUMERIC:
        if not _is_ascii_subset(payload, _ALPHANUMERIC):
            raise UnsupportedCharacter(
                f"Alphanumeric mode only accepts {ALPHANUMERIC_CHARSET!r}"
            )
        text = _to_bytes(payload).decode("ascii")
        to_value = ALPHANUMERIC_CHARSET.index
        for i in range(0, len(text), 2):
            chunk = text[i:i + 2]
            if len(chunk) == 2:
                buffer.append_bits(to_value(chunk[0]) * 45 + to_value(chunk[1]), 11)
            else:
                buffer.append_bits(to_value(chunk), 6)
        return Segment(mode, len(text), buffer)

    if mode is EncodingMode.KANJI:
        data = _to_kanji_bytes(payload)
        if data is None:
            raise UnsupportedCharacter(
                "Kanji mode only accepts double byte Shift JIS characters"
            )
        for i in range(0, len(data), 2):
            code = (data[i] << 8) | data[i + 1]
            code -= 0x8140 if code <= 0x9FFC else 0xC140
            buffer.append_bits((code >> 8) * 0xC0 + (code & 0xFF), 13)
        return Segment(mode, len(data) // 2, buffer)

    data = _to_bytes(payload)
    for byte in data:
        buffer.append_bits(byte, 8)
    return Segment(EncodingMode.BYTE, len(data), buffer)


def build_data_codewords(
    segment: Segment, version: int, level: ErrorCorrectionLevel
) -> List[int]:
    """Assemble the complete, padded data codeword sequence."""
    capacity = data_codewords(version, level) * 8
    buffer = BitBuffer()
    buffer.append_bits(segment.mode.value, 4)
    buffer.append_bits(segment.char_count, segment.mode.char_count_bits(version))
    buffer.extend(segment.bits)
    if len(buffer) > capacity:
        raise ValueError("Segment does not fit into the symbol")

    buffer.append_bits(0, min(4, capacity - len(buffer)))
    buffer.append_bits(0, -len(buffer) % 8)
    codewords = buffer.to_codewords()
    pad_count = capacity // 8 - len(codewords)
    codewords.extend(_PAD_CODEWORDS[i % 2] for i in range(pad_count))
    return codewords

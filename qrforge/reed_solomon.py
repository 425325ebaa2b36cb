"""Reed-Solomon error correction over GF(2^8).

The field uses the primitive polynomial x^8 + x^4 + x^3 + x^2 + 1 (0x11D)
with generator alpha = 2, as mandated for QR codes.
"""

from types import MappingProxyType
from typing import List, Mapping, Sequence, Tuple

from qrforge.tables import EC_CODEWORDS_PER_BLOCK

PRIMITIVE_POLYNOMIAL = 0x11D


def _build_field_tables() -> Tuple[Tuple[int, ...], Tuple[int, ...]]:
    exp = [0] * 512
    log = [0] * 256
    value = 1
    for power in range(255):
        exp[power] = value
        exp[power + 255] = value  # Avoids a modulo in multiply()
        log[value] = power
        value <<= 1
        if value & 0x100:
            value ^= PRIMITIVE_POLYNOMIAL
    return tuple(exp), tuple(log)


EXP_TABLE, LOG_TABLE = _build_field_tables()


def multiply(a: int, b: int) -> int:
    if a == 0 or b == 0:
        return 0
    return EXP_TABLE[LOG_TABLE[a] + LOG_TABLE[b]]


def _compute_generator(degree: int) -> Tuple[int, ...]:
    """Coefficients of prod(x - alpha^i) for i < degree.

    Highest power first; the leading coefficient (always 1) is omitted.
    """
    coefficients = [0] * (degree - 1) + [1]
    root = 1
    for _ in range(degree):
        for j in range(degree):
            coefficients[j] = multiply(coefficients[j], root)
            if j + 1 < degree:
                coefficients[j] ^= coefficients[j + 1]
        root = multiply(root, 0x02)
    return tuple(coefficients)


GENERATOR_POLYNOMIALS: Mapping[int, Tuple[int, ...]] = MappingProxyType({
    degree: _compute_generator(degree)
    for degree in sorted({n for row in EC_CODEWORDS_PER_BLOCK for n in row})
})


def generator_polynomial(degree: int) -> Tuple[int, ...]:
    try:
        return GENERATOR_POLYNOMIALS[degree]
    except KeyError:
        return _compute_generator(degree)


def remainder(data: Sequence[int], degree: int) -> List[int]:
    """Return the ``degree`` error correction codewords for ``data``."""
    generator = generator_polynomial(degree)
    result = [0] * degree
    for codeword in data:
        factor = codeword ^ result.pop(0)
        result.append(0)
        if factor:
            for i, coefficient in enumerate(generator):
                result[i] ^= multiply(coefficient, factor)
    return result

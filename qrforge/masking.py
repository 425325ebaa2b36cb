"""Data mask patterns and the penalty rules used to pick one."""

from typing import Callable, List, Sequence, Tuple

PENALTY_N1 = 3
PENALTY_N2 = 3
PENALTY_N3 = 40
PENALTY_N4 = 10

MaskFunction = Callable[[int, int], bool]

# Indexed by mask reference; arguments are (row, col).
MASK_PATTERNS: Tuple[MaskFunction, ...] = (
    lambda i, j: (i + j) % 2 == 0,
    lambda i, j: i % 2 == 0,
    lambda i, j: j % 3 == 0,
    lambda i, j: (i + j) % 3 == 0,
    lambda i, j: (i // 2 + j // 3) % 2 == 0,
    lambda i, j: (i * j) % 2 + (i * j) % 3 == 0,
    lambda i, j: ((i * j) % 2 + (i * j) % 3) % 2 == 0,
    lambda i, j: ((i + j) % 2 + (i * j) % 3) % 2 == 0,
)

_FINDER_LIKE = bytes((1, 0, 1, 1, 1, 0, 1))


def apply_mask(
    modules: Sequence[bytearray], function: Sequence[bytearray], mask: int
) -> List[bytearray]:
    """Return a copy of ``modules`` with ``mask`` XORed onto the data cells."""
    pattern = MASK_PATTERNS[mask]
    masked = []
    for i, (row, reserved) in enumerate(zip(modules, function)):
        row = bytearray(row)
        for j in range(len(row)):
            if not reserved[j] and pattern(i, j):
                row[j] ^= 1
        masked.append(row)
    return masked


def _run_penalty(line: bytes) -> int:
    """N1: every run of five or more same coloured modules."""
    score = 0
    run_color = None
    run_length = 0
    for module in line:
        if module == run_color:
            run_length += 1
        else:
            if run_length >= 5:
                score += PENALTY_N1 + run_length - 5
            run_color = module
            run_length = 1
    if run_length >= 5:
        score += PENALTY_N1 + run_length - 5
    return score


def _finder_like_penalty(line: bytes) -> int:
    """N3: 1:1:3:1:1 patterns with four light modules on either side.

    Modules outside the symbol count as light.
    """
    size = len(line)
    score = 0
    index = line.find(_FINDER_LIKE)
    while index != -1:
        end = index + 7
        if (
            index in (0, size - 7)
            or not any(line[max(index - 4, 0):index])
            or not any(line[end:end + 4])
        ):
            score += PENALTY_N3
            index = line.find(_FINDER_LIKE, end)
        else:
            index = line.find(_FINDER_LIKE, index + 4)
    return score


def penalty_breakdown(modules: Sequence[bytearray]) -> Tuple[int, int, int, int]:
    """Return the (N1, N2, N3, N4) penalty scores of a masked matrix."""
    rows = [bytes(row) for row in modules]
    columns = [bytes(column) for column in zip(*rows)]
    size = len(rows)

    n1 = sum(_run_penalty(line) for line in rows) + sum(_run_penalty(line) for line in columns)

    n2 = 0
    for i in range(size - 1):
        upper, lower = rows[i], rows[i + 1]
        for j in range(size - 1):
            if upper[j] == upper[j + 1] == lower[j] == lower[j + 1]:
                n2 += PENALTY_N2

    n3 = sum(_finder_like_penalty(line) for line in rows)
    n3 += sum(_finder_like_penalty(line) for line in columns)

    total = size * size
    dark = sum(sum(row) for row in rows)
    # Number of whole 5% steps the dark ratio deviates from 50%
    n4 = PENALTY_N4 * (abs(dark * 20 - total * 10) // total)
    return n1, n2, n3, n4


def penalty_score(modules: Sequence[bytearray]) -> int:
    return sum(penalty_breakdown(modules))


def choose_mask(
    modules: Sequence[bytearray], function: Sequence[bytearray]
) -> Tuple[int, List[bytearray]]:
    """Evaluate all eight masks and return the best one with its matrix.

    Ties go to the lowest mask reference.
    """
    candidates = [apply_mask(modules, function, mask) for mask in range(len(MASK_PATTERNS))]
    scores = [(penalty_score(masked), mask) for mask, masked in enumerate(candidates)]
    _, best = min(scores)
    return best, candidates[best]

"""Module placement: function patterns, codeword flow and format areas."""

from typing import Iterable, Iterator, List, Tuple

from qrforge.tables import ALIGNMENT_POSITIONS, symbol_size

LIGHT = 0
DARK = 1

Grid = List[bytearray]


def zigzag_positions(size: int) -> Iterator[Tuple[int, int]]:
    """Yield every ``(row, col)`` in codeword placement order.

    Columns are walked in pairs from the right edge, alternately upwards and
    downwards; the vertical timing column 6 is skipped. Function modules are
    yielded too, callers filter them out.
    """
    for right in range(size - 1, 0, -2):
        if right <= 6:
            right -= 1
        upward = ((right + 1) & 2) == 0
        for vertical in range(size):
            row = size - 1 - vertical if upward else vertical
            yield row, right
            yield row, right - 1


class MatrixBuilder:
    """Mutable working area for one symbol.

    ``modules`` holds the colour of every cell, ``function`` flags the cells
    that belong to function patterns or reserved areas and therefore never
    receive data or mask bits.
    """

    def __init__(self, version: int) -> None:
        self.version = version
        self.size = symbol_size(version)
        self.modules: Grid = [bytearray(self.size) for _ in range(self.size)]
        self.function: Grid = [bytearray(self.size) for _ in range(self.size)]

    def _set_function(self, row: int, col: int, dark: int) -> None:
        self.modules[row][col] = dark
        self.function[row][col] = 1

    def draw_function_patterns(self) -> None:
        size = self.size
        for i in range(size):
            self._set_function(6, i, DARK if i % 2 == 0 else LIGHT)
            self._set_function(i, 6, DARK if i % 2 == 0 else LIGHT)

        self._draw_finder(3, 3)
        self._draw_finder(3, size - 4)
        self._draw_finder(size - 4, 3)

        positions = ALIGNMENT_POSITIONS[self.version - 1]
        last = len(positions) - 1
        for i, row in enumerate(positions):
            for j, col in enumerate(positions):
                # Skip the three corners occupied by finder patterns
                if (i, j) in ((0, 0), (0, last), (last, 0)):
                    continue
                self._draw_alignment(row, col)

        # Reserve format and version areas; they stay light until the mask is known
        self.draw_format_info(0, dark_module=False)
        if self.version >= 7:
            self.draw_version_info(0)

    def _draw_finder(self, center_row: int, center_col: int) -> None:
        for dr in range(-4, 5):
            for dc in range(-4, 5):
                row, col = center_row + dr, center_col + dc
                if 0 <= row < self.size and 0 <= col < self.size:
                    distance = max(abs(dr), abs(dc))
                    self._set_function(row, col, DARK if distance not in (2, 4) else LIGHT)

    def _draw_alignment(self, center_row: int, center_col: int) -> None:
        for dr in range(-2, 3):
            for dc in range(-2, 3):
                distance = max(abs(dr), abs(dc))
                self._set_function(
                    center_row + dr, center_col + dc, DARK if distance != 1 else LIGHT
                )

    def draw_format_info(self, word: int, dark_module: bool = True) -> None:
        """Write the 15 bit format word into both copies."""
        size = self.size

        def bit(i: int) -> int:
            return (word >> i) & 1

        # Around the top left finder
        for i in range(6):
            self._set_function(i, 8, bit(i))
        self._set_function(7, 8, bit(6))
        self._set_function(8, 8, bit(7))
        self._set_function(8, 7, bit(8))
        for i in range(9, 15):
            self._set_function(8, 14 - i, bit(i))

        # Split between the top right and bottom left finders
        for i in range(8):
            self._set_function(8, size - 1 - i, bit(i))
        for i in range(8, 15):
            self._set_function(size - 15 + i, 8, bit(i))
        self._set_function(size - 8, 8, DARK if dark_module else LIGHT)

    def draw_version_info(self, word: int) -> None:
        """Write the 18 bit version word into both 6x3 blocks."""
        for i in range(18):
            bit = (word >> i) & 1
            near = i // 3
            far = self.size - 11 + i % 3
            self._set_function(near, far, bit)
            self._set_function(far, near, bit)

    def place_bits(self, bits: Iterable[int]) -> int:
        """Flow ``bits`` into the non-function cells along the zigzag.

        Cells left over once ``bits`` is exhausted (the remainder bits) stay
        light. Returns the number of bits placed.
        """
        stream = iter(bits)
        placed = 0
        for row, col in zigzag_positions(self.size):
            if self.function[row][col]:
                continue
            bit = next(stream, None)
            if bit is None:
                continue
            self.modules[row][col] = bit
            placed += 1
        if next(stream, None) is not None:
            raise ValueError("Codewords exceed the data area of the symbol")
        return placed

    def data_module_count(self) -> int:
        return sum(self.size - sum(row) for row in self.function)

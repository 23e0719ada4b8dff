"""
A square on the board

(placed in its own module as multiple other modules need to import it)

Coordinates are (row, col), both counted from 0:
* row 0 is the black back rank (rank 8 in algebraic notation), row 7 the white back rank (rank 1).
* col 0 is the a-file, col 7 the h-file.
"""

from __future__ import annotations

from dataclasses import dataclass

from src.core.shared_types import Color

# Chess board is always 8x8. Just in case we want to try some funky stuff, make it adjustable
BOARD_DIMENSIONS = (8, 8)


@dataclass(frozen=True)
class Square:
    row: int
    col: int

    @classmethod
    def from_algebraic(cls, sq: str) -> Square:
        """Algebraic notation: 'a8' is (0, 0), 'h1' is (7, 7)"""
        col = ord(sq[0]) - ord("a")
        row = BOARD_DIMENSIONS[0] - int(sq[1])
        return cls(row, col)

    def to_algebraic(self) -> str:
        return f"{chr(self.col + ord('a'))}{BOARD_DIMENSIONS[0] - self.row}"

    def is_within_bounds(self) -> bool:
        return (0 <= self.row < BOARD_DIMENSIONS[0]) and (
            0 <= self.col < BOARD_DIMENSIONS[1]
        )

    @property
    def color(self) -> Color:
        """Fixed color of the square: a8 (0, 0) is a light square."""
        return Color.WHITE if (self.row + self.col) % 2 == 0 else Color.BLACK

    def offset(self, d_row: int, d_col: int) -> Square:
        return Square(self.row + d_row, self.col + d_col)


def all_squares() -> list[Square]:
    """Every square on the board, row by row"""
    return [
        Square(row, col)
        for row in range(BOARD_DIMENSIONS[0])
        for col in range(BOARD_DIMENSIONS[1])
    ]

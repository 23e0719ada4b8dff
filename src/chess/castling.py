"""Helpers for implementing Castling rules. Need to be imported by multiple sources"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from src.chess.pieces import BACK_ROW, HOME_COLUMNS, RosterSlot
from src.chess.square import Square
from src.core.shared_types import Color


class CastlingSide(Enum):
    """Values are the column delta of the king when castling to that side."""

    KING_SIDE = 2
    QUEEN_SIDE = -2


@dataclass(frozen=True)
class CastlingSquares:
    """
    Store the squares where king/rook start from/end up in by castling.
    NOTE: only meaningful while neither king nor rook has moved. The moved flags are checked separately.
    """

    king_from: Square
    king_to: Square
    rook_from: Square
    rook_to: Square
    rook_slot: RosterSlot

    @property
    def path(self) -> list[Square]:
        """Squares strictly between the king and the rook. All of them must be empty to castle."""
        row = self.king_from.row
        low, high = sorted([self.king_from.col, self.rook_from.col])
        return [Square(row, col) for col in range(low + 1, high)]


def _castling_squares(color: Color, side: CastlingSide) -> CastlingSquares:
    row = BACK_ROW[color]
    king_col = HOME_COLUMNS[RosterSlot.KING]
    rook_slot = (
        RosterSlot.ROOK_2 if side == CastlingSide.KING_SIDE else RosterSlot.ROOK_1
    )
    step = 1 if side == CastlingSide.KING_SIDE else -1
    return CastlingSquares(
        king_from=Square(row, king_col),
        king_to=Square(row, king_col + side.value),
        rook_from=Square(row, HOME_COLUMNS[rook_slot]),
        # the rook jumps over the king and lands right next to it
        rook_to=Square(row, king_col + side.value - step),
        rook_slot=rook_slot,
    )


# The moves (in classical chess) made when castling
CASTLING_RULES: dict[tuple[Color, CastlingSide], CastlingSquares] = {
    (color, side): _castling_squares(color, side)
    for color in Color
    for side in CastlingSide
}


def castling_side(
    color: Color, king_from: Square, king_to: Square
) -> Optional[CastlingSide]:
    """Which side the king castles to by moving between the two squares (None: not a castling move)"""
    for side in CastlingSide:
        rule = CASTLING_RULES[(color, side)]
        if rule.king_from == king_from and rule.king_to == king_to:
            return side
    return None

"""
Type definitions used across layers
"""

from enum import StrEnum


class Status(StrEnum):
    IN_PROGRESS = "in progress"
    WON = "won"
    TIED = "tied"
    ERRORED = "errored"


# --- Values equal the names, because the wire protocol sends the names (ex. "CONNECT WHITE")


class Color(StrEnum):
    WHITE = "WHITE"
    BLACK = "BLACK"

    @property
    def opponent(self) -> "Color":
        return Color.BLACK if self == Color.WHITE else Color.WHITE


class PieceType(StrEnum):
    PAWN = "PAWN"
    KNIGHT = "KNIGHT"
    BISHOP = "BISHOP"
    ROOK = "ROOK"
    QUEEN = "QUEEN"
    KING = "KING"


# A pawn may only turn into one of these
PROMOTION_OPTIONS: tuple[PieceType, ...] = (
    PieceType.KNIGHT,
    PieceType.BISHOP,
    PieceType.ROOK,
    PieceType.QUEEN,
)

# Color of the first connection of every pair. That player also opens the game.
FIRST_PLAYER_COLOR: Color = Color.BLACK

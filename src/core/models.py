"""
Boundary layer data model(s).

These objects are handed across boundaries: from the Game or the client model to their subscribers (a presentation layer),
and from a finished session to the archive (DB layer).
They are immutable copies, so whoever receives them can never mutate the state of a running game.
"""

from dataclasses import dataclass
from typing import Optional

from src.core.shared_types import Color, PieceType, Status

# Type aliases to make the models easier to read
Coordinates = tuple[int, int]  # (row, col)
ColorName = str
PeerName = str


@dataclass(frozen=True)
class PieceView:
    type: PieceType
    color: Color
    moved: bool


@dataclass(frozen=True)
class BoardSnapshot:
    """Full copy of the board: grid[row][col] is the piece on that square (or None)."""

    grid: tuple[tuple[Optional[PieceView], ...], ...]
    captured: dict[Color, tuple[PieceView, ...]]
    fen: str

    def piece(self, row: int, col: int) -> Optional[PieceView]:
        return self.grid[row][col]


@dataclass(frozen=True)
class GameSnapshot:
    """What a subscriber gets after every committed mutation of a game."""

    board: BoardSnapshot
    turn: Color
    status: Status
    winner: Optional[Color] = None
    promotion_pending: Optional[Coordinates] = None
    error: Optional[str] = None


@dataclass(frozen=True)
class ClientSnapshot:
    """What a presentation layer gets from the client model: everything it needs to draw one frame."""

    board: BoardSnapshot
    color: Optional[Color]
    my_turn: bool
    status: Status
    winner: Optional[Color] = None
    selection: Optional[Coordinates] = None
    promotion_pending: Optional[Coordinates] = None
    message: Optional[str] = None


@dataclass
class GameRecord:
    """Transport-safe summary of a finished game, used between the server and the DB layer."""

    players: dict[ColorName, PeerName]
    moves: list[str]
    status: str
    winner: Optional[str] = None
    error: Optional[str] = None
    final_fen: str = ""

"""Defines the chess pieces and the fixed roster each player starts with"""

from dataclasses import dataclass
from enum import Enum, auto
from typing import Optional

from src.chess.square import Square
from src.core.shared_types import Color, PieceType

PieceId = int

FEN_TO_PIECE: dict[str, PieceType] = {
    "p": PieceType.PAWN,
    "n": PieceType.KNIGHT,
    "b": PieceType.BISHOP,
    "r": PieceType.ROOK,
    "q": PieceType.QUEEN,
    "k": PieceType.KING,
}

PIECE_TO_FEN: dict[PieceType, str] = {value: key for key, value in FEN_TO_PIECE.items()}


class RosterSlot(Enum):
    """Identity of each of the 16 starting pieces of one player. Order matters: it indexes the roster."""

    PAWN_1 = auto()
    PAWN_2 = auto()
    PAWN_3 = auto()
    PAWN_4 = auto()
    PAWN_5 = auto()
    PAWN_6 = auto()
    PAWN_7 = auto()
    PAWN_8 = auto()
    ROOK_1 = auto()
    ROOK_2 = auto()
    BISHOP_1 = auto()
    BISHOP_2 = auto()
    KNIGHT_1 = auto()
    KNIGHT_2 = auto()
    QUEEN = auto()
    KING = auto()

    @property
    def index(self) -> int:
        return self.value - 1


# Which slots a piece type may fill (in order) when a board gets built from a FEN string
SLOTS_BY_TYPE: dict[PieceType, list[RosterSlot]] = {
    PieceType.PAWN: [slot for slot in RosterSlot if slot.name.startswith("PAWN")],
    PieceType.ROOK: [RosterSlot.ROOK_1, RosterSlot.ROOK_2],
    PieceType.BISHOP: [RosterSlot.BISHOP_1, RosterSlot.BISHOP_2],
    PieceType.KNIGHT: [RosterSlot.KNIGHT_1, RosterSlot.KNIGHT_2],
    PieceType.QUEEN: [RosterSlot.QUEEN],
    PieceType.KING: [RosterSlot.KING],
}


# Home row of the major pieces and of the pawns, per color. White sits at the bottom (row 7) and moves UP (towards row 0)
BACK_ROW: dict[Color, int] = {Color.WHITE: 7, Color.BLACK: 0}
PAWN_ROW: dict[Color, int] = {Color.WHITE: 6, Color.BLACK: 1}
PAWN_DIRECTION: dict[Color, int] = {Color.WHITE: -1, Color.BLACK: 1}
PROMOTION_ROW: dict[Color, int] = {Color.WHITE: 0, Color.BLACK: 7}

# Starting column of every non-pawn slot. Pawn N starts on column N - 1.
HOME_COLUMNS: dict[RosterSlot, int] = {
    RosterSlot.ROOK_1: 0,
    RosterSlot.KNIGHT_1: 1,
    RosterSlot.BISHOP_1: 2,
    RosterSlot.QUEEN: 3,
    RosterSlot.KING: 4,
    RosterSlot.BISHOP_2: 5,
    RosterSlot.KNIGHT_2: 6,
    RosterSlot.ROOK_2: 7,
}


def slot_type(slot: RosterSlot) -> PieceType:
    """The piece type a roster slot starts the game as"""
    return next(piece_type for piece_type, slots in SLOTS_BY_TYPE.items() if slot in slots)


def home_square(color: Color, slot: RosterSlot) -> Square:
    """Square the piece in the given roster slot starts the game on"""
    if slot_type(slot) == PieceType.PAWN:
        return Square(PAWN_ROW[color], slot.index)
    return Square(BACK_ROW[color], HOME_COLUMNS[slot])


def parse_fen_character(character: str) -> tuple[Color, PieceType]:
    """lower case: Black pieces, upper case: White pieces"""
    color = Color.WHITE if character.isupper() else Color.BLACK
    return color, FEN_TO_PIECE[character.lower()]


@dataclass
class Piece:
    id: PieceId
    type: PieceType
    color: Color
    square: Square
    slot: Optional[RosterSlot]
    moved: bool = False
    alive: bool = True

    def to_fen(self) -> str:
        return (
            PIECE_TO_FEN[self.type].upper()
            if self.color == Color.WHITE
            else PIECE_TO_FEN[self.type].lower()
        )

    def move_to(self, square: Square) -> None:
        self.square = square
        self.moved = True

    def die(self) -> None:
        self.alive = False

    @property
    def row(self) -> int:
        return self.square.row

    @property
    def col(self) -> int:
        return self.square.col

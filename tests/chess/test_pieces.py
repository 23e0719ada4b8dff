"""Unit tests for /src/chess/pieces.py"""

import pytest

from src.chess.pieces import (
    Piece,
    RosterSlot,
    home_square,
    parse_fen_character,
    slot_type,
)
from src.chess.square import Square
from src.core.shared_types import Color, PieceType


@pytest.mark.parametrize(
    "character, color, piece_type",
    [
        ("P", Color.WHITE, PieceType.PAWN),
        ("n", Color.BLACK, PieceType.KNIGHT),
        ("B", Color.WHITE, PieceType.BISHOP),
        ("r", Color.BLACK, PieceType.ROOK),
        ("Q", Color.WHITE, PieceType.QUEEN),
        ("k", Color.BLACK, PieceType.KING),
    ],
)
def test_fen_characters(character: str, color: Color, piece_type: PieceType) -> None:
    """Upper case is white, lower case black. Converting back gives the same character."""
    assert parse_fen_character(character) == (color, piece_type)
    piece = Piece(id=0, type=piece_type, color=color, square=Square(0, 0), slot=None)
    assert piece.to_fen() == character


def test_unknown_fen_character() -> None:
    with pytest.raises(KeyError):
        parse_fen_character("x")


def test_roster_has_sixteen_slots() -> None:
    assert len(RosterSlot) == 16
    assert sorted(slot.index for slot in RosterSlot) == list(range(16))


@pytest.mark.parametrize(
    "slot, piece_type",
    [
        (RosterSlot.PAWN_1, PieceType.PAWN),
        (RosterSlot.PAWN_8, PieceType.PAWN),
        (RosterSlot.ROOK_2, PieceType.ROOK),
        (RosterSlot.BISHOP_1, PieceType.BISHOP),
        (RosterSlot.KNIGHT_2, PieceType.KNIGHT),
        (RosterSlot.QUEEN, PieceType.QUEEN),
        (RosterSlot.KING, PieceType.KING),
    ],
)
def test_slot_type(slot: RosterSlot, piece_type: PieceType) -> None:
    assert slot_type(slot) == piece_type


@pytest.mark.parametrize(
    "color, slot, algebraic",
    [
        (Color.WHITE, RosterSlot.KING, "e1"),
        (Color.WHITE, RosterSlot.QUEEN, "d1"),
        (Color.WHITE, RosterSlot.ROOK_1, "a1"),
        (Color.WHITE, RosterSlot.ROOK_2, "h1"),
        (Color.WHITE, RosterSlot.PAWN_5, "e2"),
        (Color.BLACK, RosterSlot.KING, "e8"),
        (Color.BLACK, RosterSlot.KNIGHT_1, "b8"),
        (Color.BLACK, RosterSlot.PAWN_1, "a7"),
    ],
)
def test_home_squares(color: Color, slot: RosterSlot, algebraic: str) -> None:
    assert home_square(color, slot) == Square.from_algebraic(algebraic)


def test_moved_flag_is_never_reset() -> None:
    piece = Piece(
        id=0,
        type=PieceType.ROOK,
        color=Color.WHITE,
        square=Square(7, 0),
        slot=RosterSlot.ROOK_1,
    )
    assert not piece.moved
    piece.move_to(Square(5, 0))
    piece.move_to(Square(7, 0))
    assert piece.moved
    assert (piece.row, piece.col) == (7, 0)


def test_die() -> None:
    piece = Piece(id=3, type=PieceType.PAWN, color=Color.BLACK, square=Square(1, 0), slot=None)
    assert piece.alive
    piece.die()
    assert not piece.alive

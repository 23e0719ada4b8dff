"""The Game board implements all rules that effect the `position` (in chess: the configuration of pieces on the board)

The board is the sole owner of the pieces:
* `pieces` is an arena, a piece's id is its index in that list.
* `position` maps every square onto the id of the piece standing there (or None).
* pieces store their own square; the two must always agree.
"""

from dataclasses import dataclass, field
from typing import Optional, Self

from src.chess.castling import CASTLING_RULES, castling_side
from src.chess.moves import AppliedMove, is_legal_move, reaches_promotion_row
from src.chess.pieces import (
    SLOTS_BY_TYPE,
    Piece,
    PieceId,
    RosterSlot,
    home_square,
    parse_fen_character,
    slot_type,
)
from src.chess.square import BOARD_DIMENSIONS, Square, all_squares
from src.core.exceptions import InvariantError
from src.core.models import BoardSnapshot, PieceView
from src.core.shared_types import PROMOTION_OPTIONS, Color, PieceType

STARTING_POSITION_FEN = "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR"


def _empty_rosters() -> dict[Color, list[Optional[PieceId]]]:
    return {color: [None] * len(RosterSlot) for color in Color}


@dataclass
class Board:
    pieces: list[Piece] = field(default_factory=list)
    position: dict[Square, Optional[PieceId]] = field(
        default_factory=lambda: {square: None for square in all_squares()}
    )
    rosters: dict[Color, list[Optional[PieceId]]] = field(
        default_factory=_empty_rosters
    )
    # pieces taken, keyed by the color that took them
    captured: dict[Color, list[Piece]] = field(
        default_factory=lambda: {color: [] for color in Color}
    )

    # --- CREATION ---
    @classmethod
    def standard(cls) -> Self:
        """All 32 pieces on their starting squares"""
        board = cls()
        for color in Color:
            for slot in RosterSlot:
                board.place_piece(slot_type(slot), color, home_square(color, slot), slot)
        return board

    @classmethod
    def from_fen(cls, fen_str: str) -> Self:
        """Construct a board using the first part of a FEN string (the piece placement).

        ex. standard starting position:
        rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR
        means:
        * black pieces are on row 0 (the 8th rank), starting with rook on a8, knight on b8, etc.
        * pawns cover row 1 (7th rank) entirely
        * rows 2 through 5 have 8 consecutive empty squares
        * row 6 (2nd rank) holds the white pawns (capital letters)
        * row 7 (1st rank) holds the white pieces.

        Roster slots: a piece standing on the home square of one of its slots takes that slot and counts as unmoved.
        Any other piece takes the next free slot of its type and counts as moved. Surplus pieces (ex. a third rook) get no slot.
        """
        placements: list[tuple[Square, str]] = []
        for row, fen_one_rank in enumerate(fen_str.split("/")):
            col = 0
            for character in fen_one_rank:
                if character.isalpha():
                    placements.append((Square(row, col), character))
                    col += 1
                else:
                    # A number denotes the amount of empty squares after each other
                    col += int(character)

        board = cls()
        taken: dict[Color, set[RosterSlot]] = {color: set() for color in Color}
        resolved: dict[Square, tuple[Optional[RosterSlot], bool]] = {}

        # first pass: pieces on their home squares
        for square, character in placements:
            color, piece_type = parse_fen_character(character)
            for slot in SLOTS_BY_TYPE[piece_type]:
                if slot not in taken[color] and home_square(color, slot) == square:
                    taken[color].add(slot)
                    resolved[square] = (slot, False)
                    break

        # second pass: everything else
        for square, character in placements:
            if square in resolved:
                continue
            color, piece_type = parse_fen_character(character)
            free_slots = [s for s in SLOTS_BY_TYPE[piece_type] if s not in taken[color]]
            slot = free_slots[0] if free_slots else None
            if slot is not None:
                taken[color].add(slot)
            resolved[square] = (slot, True)

        for square, character in placements:
            color, piece_type = parse_fen_character(character)
            slot, moved = resolved[square]
            board.place_piece(piece_type, color, square, slot, moved=moved)
        return board

    def place_piece(
        self,
        piece_type: PieceType,
        color: Color,
        square: Square,
        slot: Optional[RosterSlot] = None,
        moved: bool = False,
    ) -> Piece:
        """Put a new piece on an empty square (board setup only, never during play)"""
        if square not in self.position:
            raise InvariantError(f"Cannot place a piece outside the board: {square}")
        if self.position[square] is not None:
            raise InvariantError(f"Cannot place a piece on occupied square {square}")

        piece = Piece(
            id=len(self.pieces),
            type=piece_type,
            color=color,
            square=square,
            slot=slot,
            moved=moved,
        )
        self.pieces.append(piece)
        self.position[square] = piece.id
        if slot is not None:
            self.rosters[color][slot.index] = piece.id
        return piece

    def to_fen(self) -> str:
        """Rows are separated by slashes in FEN string. Row 0 (the 8th rank) comes first."""
        return "/".join(self._row_to_fen(row) for row in range(BOARD_DIMENSIONS[0]))

    def _row_to_fen(self, row: int) -> str:
        """FEN string of a single row"""
        fen_characters: list[str] = []
        empty_count = 0
        for col in range(BOARD_DIMENSIONS[1]):
            piece = self.piece_at(Square(row, col))

            if piece is not None:
                if empty_count > 0:
                    fen_characters.append(str(empty_count))
                    empty_count = 0
                fen_characters.append(piece.to_fen())
            else:
                empty_count += 1

        # if the entire row is empty, then we still place this number in the string
        if empty_count > 0:
            fen_characters.append(str(empty_count))
        return "".join(fen_characters)

    # --- LOOKUPS ---
    def piece_at(self, square: Square) -> Optional[Piece]:
        piece_id = self.position.get(square)
        if piece_id is None:
            return None
        return self.pieces[piece_id]

    def piece_by_slot(self, color: Color, slot: RosterSlot) -> Optional[Piece]:
        piece_id = self.rosters[color][slot.index]
        if piece_id is None:
            return None
        return self.pieces[piece_id]

    def king(self, color: Color) -> Optional[Piece]:
        return self.piece_by_slot(color, RosterSlot.KING)

    def active_pieces(self, color: Color) -> list[Piece]:
        """All pieces of that color still standing on the board"""
        return [
            self.pieces[piece_id]
            for piece_id in self.position.values()
            if piece_id is not None and self.pieces[piece_id].color == color
        ]

    # --- RULES ---
    def check_move(self, piece: Piece, square: Square) -> bool:
        """Legality predicate, see moves.py"""
        return is_legal_move(piece, square, self)

    def in_check(self, color: Color) -> bool:
        """Can any living opponent piece (their king aside) move onto the square of this color's king?"""
        king = self.king(color)
        if king is None or not king.alive:
            return False

        for opponent in self.active_pieces(color.opponent):
            if opponent.type == PieceType.KING:
                continue
            if is_legal_move(opponent, king.square, self):
                return True
        return False

    def game_over(self) -> bool:
        return any(self._king_is_dead(color) for color in Color)

    def winner(self) -> Optional[Color]:
        """The color whose king survived, if exactly one king got taken"""
        dead = [color for color in Color if self._king_is_dead(color)]
        if len(dead) != 1:
            return None
        return dead[0].opponent

    def _king_is_dead(self, color: Color) -> bool:
        king = self.king(color)
        return king is not None and not king.alive

    # --- MUTATIONS ---
    def move_piece(self, piece: Piece, square: Square) -> AppliedMove:
        """
        Update the position on the board
        ----

        The caller already confirmed the move is legal. This does NOT validate the geometry again.

        1. lift the piece from its square (the square must point back to this piece)
        2. take whatever stands on the target square
        3. put the piece down on the target square
        4. castling: the king brings the rook along
        5. a pawn on its promotion row leaves a promotion pending
        """
        from_square = piece.square
        if self.position.get(from_square) != piece.id:
            raise InvariantError(
                f"State of piece not updated correctly: {piece.type} {piece.color} claims {from_square}, "
                f"board holds {self.piece_at(from_square)}"
            )
        if square not in self.position:
            raise InvariantError(f"Cannot move a piece off the board: {square}")

        self.position[from_square] = None
        captured = self._take_piece(square, by_color=piece.color)
        self.position[square] = piece.id
        piece.move_to(square)

        castled_rook = None
        if piece.type == PieceType.KING:
            castled_rook = self._move_castling_rook(piece, from_square, square)

        return AppliedMove(
            piece=piece,
            from_square=from_square,
            to_square=square,
            captured=captured,
            castled_rook=castled_rook,
            promotion_pending=reaches_promotion_row(piece, square),
        )

    def promote(self, square: Square, piece_type: PieceType) -> Piece:
        """Replace the pawn on the square by a fresh piece of the chosen type (same color, same roster slot)"""
        pawn = self.piece_at(square)
        if pawn is None or not reaches_promotion_row(pawn, square):
            raise InvariantError(f"No pawn waiting for promotion on {square}: {pawn}")
        if piece_type not in PROMOTION_OPTIONS:
            raise InvariantError(f"A pawn cannot promote into a {piece_type}")

        promoted = Piece(
            id=len(self.pieces),
            type=piece_type,
            color=pawn.color,
            square=square,
            slot=pawn.slot,
            moved=True,
        )
        self.pieces.append(promoted)
        self.position[square] = promoted.id
        if pawn.slot is not None:
            self.rosters[pawn.color][pawn.slot.index] = promoted.id
        return promoted

    def _take_piece(self, square: Square, by_color: Color) -> Optional[Piece]:
        taken = self.piece_at(square)
        if taken is None:
            return None
        taken.die()
        self.captured[by_color].append(taken)
        return taken

    def _move_castling_rook(
        self, king: Piece, from_square: Square, to_square: Square
    ) -> Optional[Piece]:
        """Second half of a castling move. Returns the rook that moved (None if the king move was no castling move)"""
        side = castling_side(king.color, from_square, to_square)
        if side is None:
            return None

        rule = CASTLING_RULES[(king.color, side)]
        rook = self.piece_by_slot(king.color, rule.rook_slot)
        if rook is None or rook.square != rule.rook_from:
            raise InvariantError(f"Castling {side.name}: rook not found on {rule.rook_from}")
        if self.position.get(rule.rook_from) != rook.id:
            raise InvariantError(f"Castling {side.name}: {rule.rook_from} does not hold the rook")
        if self.position.get(rule.rook_to) is not None:
            raise InvariantError(f"Castling {side.name}: {rule.rook_to} is occupied")

        self.position[rule.rook_from] = None
        self.position[rule.rook_to] = rook.id
        rook.move_to(rule.rook_to)
        return rook

    # --- SNAPSHOTS ---
    def _row_pieces(self, row: int) -> list[Optional[Piece]]:
        return [self.piece_at(Square(row, col)) for col in range(BOARD_DIMENSIONS[1])]

    def snapshot(self) -> BoardSnapshot:
        """Immutable copy for subscribers"""

        def _view(piece: Piece) -> PieceView:
            return PieceView(type=piece.type, color=piece.color, moved=piece.moved)

        grid = tuple(
            tuple(
                _view(piece) if piece is not None else None
                for piece in self._row_pieces(row)
            )
            for row in range(BOARD_DIMENSIONS[0])
        )
        captured = {
            color: tuple(_view(piece) for piece in pieces)
            for color, pieces in self.captured.items()
        }
        return BoardSnapshot(grid=grid, captured=captured, fen=self.to_fen())

"""
Geometry/Base movement and capturing rules

Key idea: Use strategy pattern to define the legality predicate for each piece type.

The predicate answers "may this piece go to that square?" and ignores whether the move would leave
the mover's own king in check (the game ends by capturing the king instead).
"""

from dataclasses import dataclass
from typing import Callable, Optional, Protocol

from src.chess.castling import CASTLING_RULES, castling_side
from src.chess.pieces import PAWN_DIRECTION, PAWN_ROW, PROMOTION_ROW, Piece, RosterSlot
from src.chess.square import Square
from src.core.shared_types import Color, PieceType


class Board(Protocol):
    """Just the parts the movement rules need"""

    def piece_at(self, square: Square) -> Optional[Piece]: ...
    def piece_by_slot(self, color: Color, slot: RosterSlot) -> Optional[Piece]: ...
    def in_check(self, color: Color) -> bool: ...


Vector = tuple[int, int]

KNIGHT_DELTAS: list[Vector] = [
    (2, 1),
    (2, -1),
    (-2, 1),
    (-2, -1),
    (1, 2),
    (1, -2),
    (-1, 2),
    (-1, -2),
]
KING_DELTAS: list[Vector] = [
    (0, 1),
    (0, -1),
    (1, 0),
    (-1, 0),
    (1, 1),
    (1, -1),
    (-1, 1),
    (-1, -1),
]
DIAGONALS: list[Vector] = [(1, 1), (-1, 1), (1, -1), (-1, -1)]
STRAIGHTS: list[Vector] = [(1, 0), (-1, 0), (0, 1), (0, -1)]


@dataclass(frozen=True)
class AppliedMove:
    """What happened on the board when a (legal) move was carried out"""

    piece: Piece
    from_square: Square
    to_square: Square
    captured: Optional[Piece] = None
    castled_rook: Optional[Piece] = None
    promotion_pending: bool = False


# --- BASE RULE ---
def is_available(piece: Piece, target: Square, board: Board) -> bool:
    """Every piece: the target lies on the board, is not where the piece stands, and is empty or holds an opponent's piece"""
    if not target.is_within_bounds() or target == piece.square:
        return False
    occupant = board.piece_at(target)
    return occupant is None or occupant.color != piece.color


# --- PATH WALKING ---
def direction_towards(
    square: Square, target: Square, directions: list[Vector]
) -> Optional[Vector]:
    """The direction (if any, out of the given ones) in which you travel in a straight line from square to target"""
    d_row = target.row - square.row
    d_col = target.col - square.col
    for dr, dc in directions:
        # the target lies along (dr, dc) if both deltas are the same positive multiple of it
        steps = max(abs(d_row), abs(d_col))
        if steps > 0 and (dr * steps, dc * steps) == (d_row, d_col):
            return dr, dc
    return None


def raycasting_move(
    piece: Piece, target: Square, board: Board, directions: list[Vector]
) -> bool:
    """
    Raycasting algorithm
    -----

    ---
    The main trick we use to check the 'line of sight of a piece'.
    Walk from the piece's square towards the target until we hit another piece or
    reach the target.

    ---
    Returns TRUE if the target is reached and is either empty or holds an opponent's piece.
    """
    direction = direction_towards(piece.square, target, directions)
    if direction is None:
        return False

    dr, dc = direction
    square = piece.square
    while True:
        square = square.offset(dr, dc)
        if not square.is_within_bounds():
            return False

        occupant = board.piece_at(square)
        if square == target:
            return occupant is None or occupant.color != piece.color

        if occupant is not None:
            # blocked before reaching the target
            return False


def single_step_move(
    piece: Piece, target: Square, deltas: list[Vector]
) -> bool:
    """Raycasting is for sliding pieces. This is the equivalent for kings and knights that just jump by one of the deltas"""
    d_row = target.row - piece.row
    d_col = target.col - piece.col
    return (d_row, d_col) in deltas


# --- MOVEMENT RULES PER PIECE TYPE ---
def is_legal_pawn_move(piece: Piece, target: Square, board: Board) -> bool:
    """
    A pawn:
    - moves by a single square forward onto an empty square.
    - It can move by two in their first move (so when on their starting row), if both squares are empty
    - takes diagonally (one step forward), only when there is an opponent's piece to take

    NOTE: No en passant.
    """
    forward = PAWN_DIRECTION[piece.color]
    d_row = target.row - piece.row
    d_col = target.col - piece.col
    occupant = board.piece_at(target)

    if d_col == 0:
        if d_row == forward:
            return occupant is None
        if d_row == 2 * forward and piece.row == PAWN_ROW[piece.color]:
            in_between = board.piece_at(piece.square.offset(forward, 0))
            return in_between is None and occupant is None
        return False

    if abs(d_col) == 1 and d_row == forward:
        return occupant is not None and occupant.color != piece.color

    return False


def is_legal_knight_move(piece: Piece, target: Square, board: Board) -> bool:
    """Knights always move such that |delta_row| + |delta_col| = 3"""
    return single_step_move(piece, target, KNIGHT_DELTAS)


def is_legal_bishop_move(piece: Piece, target: Square, board: Board) -> bool:
    """Bishops move diagonally: |delta_row| = |delta_col|"""
    return raycasting_move(piece, target, board, DIAGONALS)


def is_legal_rook_move(piece: Piece, target: Square, board: Board) -> bool:
    """Rooks move either horizontally or vertically"""
    return raycasting_move(piece, target, board, STRAIGHTS)


def is_legal_queen_move(piece: Piece, target: Square, board: Board) -> bool:
    """
    The Queen combines the rook moves (horizontal + vertical movements) and bishop moves (diagonal movement)
    """
    return is_legal_rook_move(piece, target, board) or is_legal_bishop_move(
        piece, target, board
    )


def is_legal_king_move(piece: Piece, target: Square, board: Board) -> bool:
    """
    The king can move by a single square at the time.

    Castling is modelled as a special king move.
    """
    return single_step_move(piece, target, KING_DELTAS) or is_legal_castling_move(
        piece, target, board
    )


# -- STRATEGY PATTERN: MOVEMENT RULES ---
MoveRuleFn = Callable[[Piece, Square, Board], bool]
MOVEMENT_RULES: dict[PieceType, MoveRuleFn] = {
    PieceType.PAWN: is_legal_pawn_move,
    PieceType.KNIGHT: is_legal_knight_move,
    PieceType.BISHOP: is_legal_bishop_move,
    PieceType.ROOK: is_legal_rook_move,
    PieceType.QUEEN: is_legal_queen_move,
    PieceType.KING: is_legal_king_move,
}


def is_legal_move(piece: Piece, target: Square, board: Board) -> bool:
    """Legality predicate: base rule AND the rule of the piece type"""
    if not piece.alive:
        return False
    if not is_available(piece, target, board):
        return False
    movement_rule = MOVEMENT_RULES[piece.type]
    return movement_rule(piece, target, board)


# -- CASTLING MOVES ---
def is_legal_castling_move(king: Piece, target: Square, board: Board) -> bool:
    """
    **you are allowed to castle if**

    * Your king never moved, and is not currently in check (you cannot castle out of a check).
    * The king moves along its home row, two squares towards one of its own rooks.
    * That rook is still standing on its starting square and never moved.
    * Every square between the king and the rook is empty.
    """
    if king.type != PieceType.KING or king.moved:
        return False

    side = castling_side(king.color, king.square, target)
    if side is None:
        return False

    rule = CASTLING_RULES[(king.color, side)]
    rook = board.piece_by_slot(king.color, rule.rook_slot)
    if rook is None or not rook.alive or rook.moved:
        return False
    if rook.type != PieceType.ROOK or rook.square != rule.rook_from:
        return False

    if any(board.piece_at(square) is not None for square in rule.path):
        return False

    return not board.in_check(king.color)


# -- PAWN PROMOTION --
def reaches_promotion_row(piece: Piece, target: Square) -> bool:
    """check if the move is a pawn move reaching the final row of its direction of travel"""
    return piece.type == PieceType.PAWN and target.row == PROMOTION_ROW[piece.color]

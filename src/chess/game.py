"""
The Game class is the entrypoint into the domain layer for the server's game sessions (and for a client mirroring a game).
It is responsible for orchestrating all the business logic required to play a turn:
whose turn it is, which piece may move where, pending promotions, and when (and how) the game ends.

It knows nothing about connections. Whoever drives it (a session) translates its errors into protocol messages.
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, Optional, Self

from src.chess.board import Board
from src.chess.moves import AppliedMove
from src.chess.pieces import Piece
from src.chess.square import Square
from src.core.exceptions import GameStateError, IllegalMoveError, NotYourTurnError
from src.core.models import GameSnapshot
from src.core.shared_types import PROMOTION_OPTIONS, Color, PieceType, Status

logger = logging.getLogger(__name__)

Subscriber = Callable[[GameSnapshot], None]


@dataclass
class Game:
    # --- DOMAIN LAYER API CALLED BY THE SESSION ---

    board: Board
    turn: Color = Color.WHITE
    status: Status = Status.IN_PROGRESS
    moves: list[AppliedMove] = field(default_factory=list)
    promotion_square: Optional[Square] = None
    error: Optional[str] = None
    _winner: Optional[Color] = None
    _subscribers: list[Subscriber] = field(default_factory=list, repr=False)

    @classmethod
    def new(cls, turn: Color = Color.WHITE) -> Self:
        """Standard starting position, white to move unless told otherwise"""
        return cls(board=Board.standard(), turn=turn)

    @property
    def winner(self) -> Optional[Color]:
        return self._winner

    @property
    def is_over(self) -> bool:
        return self.status != Status.IN_PROGRESS

    # --- SUBSCRIPTIONS ---
    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Receive a snapshot after every committed mutation. Returns a function that cancels the subscription."""
        self._subscribers.append(callback)

        def _unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return _unsubscribe

    def snapshot(self) -> GameSnapshot:
        promotion = (
            (self.promotion_square.row, self.promotion_square.col)
            if self.promotion_square
            else None
        )
        return GameSnapshot(
            board=self.board.snapshot(),
            turn=self.turn,
            status=self.status,
            winner=self._winner,
            promotion_pending=promotion,
            error=self.error,
        )

    def _notify_subscribers(self) -> None:
        snapshot = self.snapshot()
        for subscriber in list(self._subscribers):
            # a broken presentation layer must not stop the game
            try:
                subscriber(snapshot)
            except Exception:
                logger.exception("Subscriber %r failed", subscriber)

    # --- PLAYING ---
    def make_move(self, color: Color, from_square: Square, to_square: Square) -> AppliedMove:
        """
        Attempt to make a move
        -----

        1. the game must be in progress and not waiting for a promotion
        2. it must be your turn
        3. there must be a piece of your own on the starting square
        4. the rules engine must accept the target square
        5. update the board
        6. promotion pending? --> the turn does NOT pass until `promote()` is called
        7. otherwise pass the turn and check for the end of the game
        """
        self._assert_in_progress()
        if self.promotion_square is not None:
            raise GameStateError(
                f"Waiting for the pawn on {self.promotion_square.to_algebraic()} to be promoted."
            )
        self._assert_your_turn(color)

        piece = self._own_piece_at(color, from_square)
        if not self.board.check_move(piece, to_square):
            raise IllegalMoveError(
                f"Move not allowed: {piece.type} from {from_square.to_algebraic()} to {to_square.to_algebraic()}"
            )

        applied = self.board.move_piece(piece, to_square)
        self.moves.append(applied)

        if applied.promotion_pending:
            self.promotion_square = to_square
        else:
            self._end_turn()

        self._notify_subscribers()
        return applied

    def promote(self, color: Color, piece_type: PieceType) -> Piece:
        """Resolve the pending promotion by replacing the pawn with a piece of the chosen type"""
        self._assert_in_progress()
        if self.promotion_square is None:
            raise GameStateError("There is no pawn waiting for promotion.")
        self._assert_your_turn(color)
        if piece_type not in PROMOTION_OPTIONS:
            raise IllegalMoveError(
                f"Cannot promote into {piece_type}. Pick one from {','.join(PROMOTION_OPTIONS)}"
            )

        promoted = self.board.promote(self.promotion_square, piece_type)
        self.promotion_square = None
        self._end_turn()
        self._notify_subscribers()
        return promoted

    def abort(self, reason: str) -> None:
        """The game ends because of an error (protocol violation, lost connection, bug)"""
        self._change_status(Status.ERRORED)
        self.error = reason
        self._notify_subscribers()

    def declare_tie(self) -> None:
        """
        NOTE: The rules engine itself never ends a game in a tie (no stalemate / repetition / material detection).
        This is the only way to reach Status.TIED.
        """
        self._change_status(Status.TIED)
        self._notify_subscribers()

    # -- PRIVATE HELPERS ---
    def _end_turn(self) -> None:
        """Pass the turn and update the game status (game ends once a king got taken)"""
        if self.board.game_over():
            self._winner = self.board.winner()
            self._change_status(Status.WON if self._winner is not None else Status.TIED)
            return
        self.turn = self.turn.opponent

    def _change_status(self, new_status: Status) -> None:
        """A game leaves IN_PROGRESS exactly once"""
        self._assert_in_progress()
        self.status = new_status

    def _assert_in_progress(self) -> None:
        if self.status != Status.IN_PROGRESS:
            raise GameStateError(f"Game is not in progress. status: {self.status}")

    def _assert_your_turn(self, color: Color) -> None:
        """You must wait for your turn before making a move."""
        if color != self.turn:
            raise NotYourTurnError(
                f"It is not your turn. Waiting for {self.turn.name} to make a move first."
            )

    def _own_piece_at(self, color: Color, square: Square) -> Piece:
        if not square.is_within_bounds():
            raise IllegalMoveError(f"Square {square} lies outside the board.")
        piece = self.board.piece_at(square)
        if piece is None:
            raise IllegalMoveError(f"There is no piece on {square.to_algebraic()}.")
        if piece.color != color:
            raise IllegalMoveError(
                f"The {piece.type} on {square.to_algebraic()} belongs to {piece.color.name}."
            )
        return piece

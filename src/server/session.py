"""
A game session referees one game between exactly two connections, in its own thread.

Setup --> Active --> Terminated (won / lost / tied / errored)

The first connection plays BLACK and moves first, the second plays WHITE.
Every turn:
1. MAKE_MOVE to the mover, then block on the mover's next line (must be MOVE)
2. the Game validates and applies the move
3. pawn reached its promotion row? CHOOSE to the mover, block on its CHOSE, promote
4. MOVE_MADE (and CHOSE, after a promotion) to both connections

Any error ends this session only: both peers get an ERROR.
Both connections are always closed at the end.
"""

import logging
import threading
from typing import Callable, Optional

from src.chess.game import Game
from src.chess.moves import AppliedMove
from src.chess.pieces import PIECE_TO_FEN, Piece
from src.chess.square import Square
from src.core.exceptions import (
    InvariantError,
    ProtocolError,
    StreamClosedError,
    UnexpectedMessageError,
)
from src.core.models import GameRecord
from src.core.shared_types import FIRST_PLAYER_COLOR, Color, Status
from src.protocol.connection import Connection

logger = logging.getLogger(__name__)

PLAYER_COLORS: tuple[Color, Color] = (FIRST_PLAYER_COLOR, FIRST_PLAYER_COLOR.opponent)

RecordCallback = Callable[[GameRecord], None]


class GameSession(threading.Thread):
    """Owns one Game and drives both connections in alternating turns"""

    def __init__(
        self,
        first: Connection,
        second: Connection,
        on_finished: Optional[RecordCallback] = None,
        game: Optional[Game] = None,
        name: Optional[str] = None,
    ) -> None:
        super().__init__(name=name or f"game-{first.name}-{second.name}")
        self.connections: tuple[Connection, Connection] = (first, second)
        self.game = game if game is not None else Game.new(turn=FIRST_PLAYER_COLOR)
        self.on_finished = on_finished
        self.move_log: list[str] = []

    def connection_for(self, color: Color) -> Connection:
        return self.connections[PLAYER_COLORS.index(color)]

    # --- THREAD ENTRYPOINT ---
    def run(self) -> None:
        logger.info(
            "%s: starting game, WHITE=%s BLACK=%s",
            self.name,
            self.connection_for(Color.WHITE).name,
            self.connection_for(Color.BLACK).name,
        )
        try:
            self._start_game()
            self._play()
            self._report_outcome()
        except InvariantError as e:
            logger.exception("%s: BUG, board bookkeeping went wrong: %s", self.name, e)
            self._fail(f"Internal server error: {e}")
        except (ProtocolError, StreamClosedError) as e:
            logger.warning("%s: game ended with an error: %s", self.name, e)
            self._fail(str(e))
        except Exception as e:
            logger.exception("%s: BUG, unexpected error: %s", self.name, e)
            self._fail(f"Internal server error: {e}")
        finally:
            self._close_connections()
            self._publish_record()
        logger.info("%s: finished, status: %s", self.name, self.game.status)

    # --- PHASES ---
    def _start_game(self) -> None:
        """Tell both sides their color, then start"""
        for connection, color in zip(self.connections, PLAYER_COLORS):
            connection.connect(color)
        for connection in self.connections:
            connection.start_game()

    def _play(self) -> None:
        """The turn loop. Exactly one read is in flight at a time."""
        while not self.game.is_over:
            color = self.game.turn
            mover = self.connection_for(color)

            mover.make_move()
            move = mover.receive_move()
            from_square = Square(move.start_row, move.start_col)
            to_square = Square(move.row, move.col)

            applied = self.game.make_move(color, from_square, to_square)
            promoted: Optional[Piece] = None
            if applied.promotion_pending:
                promoted = self._ask_promotion(mover, color, to_square)

            self._log_move(applied, promoted)
            for connection in self.connections:
                connection.move_made(
                    from_square.row, from_square.col, to_square.row, to_square.col
                )
            if promoted is not None:
                for connection in self.connections:
                    connection.chose(promoted.type, promoted.color, promoted.row, promoted.col)

    def _ask_promotion(self, mover: Connection, color: Color, square: Square) -> Piece:
        """The turn does not pass until the owner of the pawn picked the piece type"""
        mover.choose(square.row, square.col)
        choice = mover.receive_chose()
        if choice.color != color or (choice.row, choice.col) != (square.row, square.col):
            raise UnexpectedMessageError(
                f"Expected a promotion choice for the {color.name} pawn on ({square.row}, {square.col}), "
                f"got {choice.piece_type} {choice.color.name} ({choice.row}, {choice.col})."
            )
        return self.game.promote(color, choice.piece_type)

    def _report_outcome(self) -> None:
        """Win/lose, or tie if nobody won"""
        winner = self.game.winner
        if winner is None:
            for connection in self.connections:
                self._send_quietly(connection, connection.game_tied)
            return

        winning = self.connection_for(winner)
        losing = self.connection_for(winner.opponent)
        self._send_quietly(winning, winning.game_won)
        self._send_quietly(losing, losing.game_lost)

    def _fail(self, reason: str) -> None:
        """Error path: the game is aborted and both peers are told so"""
        if not self.game.is_over:
            self.game.abort(reason)
        for connection in self.connections:
            self._send_quietly(connection, lambda c=connection: c.error(reason))

    # --- HELPERS ---
    def _send_quietly(self, connection: Connection, send: Callable[[], None]) -> None:
        """At the end of the game a peer may be gone already. That must not stop us from telling the other one."""
        if connection.closed:
            return
        try:
            send()
        except StreamClosedError as e:
            logger.info("%s: could not notify %s: %s", self.name, connection.name, e)

    def _close_connections(self) -> None:
        for connection in self.connections:
            connection.close()

    def _log_move(self, applied: AppliedMove, promoted: Optional[Piece]) -> None:
        """Keep a UCI-like record: 'e2e4', 'e7e8q'"""
        notation = f"{applied.from_square.to_algebraic()}{applied.to_square.to_algebraic()}"
        if promoted is not None:
            notation += PIECE_TO_FEN[promoted.type]
        self.move_log.append(notation)
        logger.debug("%s: %s played %s", self.name, applied.piece.color.name, notation)

    def _publish_record(self) -> None:
        if self.on_finished is None:
            return
        winner = self.game.winner if self.game.status == Status.WON else None
        record = GameRecord(
            players={
                color.name: connection.name
                for color, connection in zip(PLAYER_COLORS, self.connections)
            },
            moves=list(self.move_log),
            status=self.game.status.name.lower(),
            winner=winner.name if winner else None,
            error=self.game.error,
            final_fen=self.game.board.to_fen(),
        )
        self.on_finished(record)

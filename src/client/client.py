"""
Headless client model
---

Everything a presentation layer (window, terminal, bot) needs, without any drawing:
* mirrors the server's board from MOVE_MADE and CHOSE broadcasts (the server stays authoritative)
* tracks its own color, whose turn it is, a pending promotion and the outcome
* validates a selection locally before anything is sent

The presentation layer calls `select_source`, `select_destination` and `choose_promotion`,
and subscribes to a ClientSnapshot after every change.
"""

import logging
import threading
from typing import Callable, Optional, Self

from src.chess.game import Game
from src.chess.square import Square
from src.core.exceptions import ChessError, ProtocolError, StreamClosedError
from src.core.models import ClientSnapshot, Coordinates
from src.core.shared_types import (
    FIRST_PLAYER_COLOR,
    PROMOTION_OPTIONS,
    Color,
    PieceType,
    Status,
)
from src.protocol.connection import Connection
from src.protocol.messages import (
    ChooseMessage,
    ChoseMessage,
    ConnectMessage,
    ErrorMessage,
    GameLostMessage,
    GameTiedMessage,
    GameWonMessage,
    MakeMoveMessage,
    Message,
    MoveMadeMessage,
    StartGameMessage,
)

logger = logging.getLogger(__name__)

ClientSubscriber = Callable[[ClientSnapshot], None]


def _coordinates(square: Optional[Square]) -> Optional[Coordinates]:
    return (square.row, square.col) if square is not None else None


class ChessClient:
    """One player's view of a game played on the server"""

    def __init__(self, connection: Connection) -> None:
        self.connection = connection
        self.game = Game.new(turn=FIRST_PLAYER_COLOR)
        self.color: Optional[Color] = None
        self.started = False
        self.my_turn = False
        self.status = Status.IN_PROGRESS
        self.winner: Optional[Color] = None
        self.selection: Optional[Square] = None
        self.promotion_square: Optional[Square] = None
        self.message: Optional[str] = None
        self._subscribers: list[ClientSubscriber] = []
        # the reader thread and the presentation layer both mutate the model
        self._lock = threading.RLock()
        self._thread: Optional[threading.Thread] = None

    @classmethod
    def connect(cls, host: str, port: int) -> Self:
        return cls(Connection.open(host, port))

    @property
    def is_over(self) -> bool:
        return self.status != Status.IN_PROGRESS

    # --- SUBSCRIPTIONS ---
    def subscribe(self, callback: ClientSubscriber) -> Callable[[], None]:
        """Receive a snapshot after every change. Returns a function that cancels the subscription."""
        with self._lock:
            self._subscribers.append(callback)

        def _unsubscribe() -> None:
            with self._lock:
                if callback in self._subscribers:
                    self._subscribers.remove(callback)

        return _unsubscribe

    def snapshot(self) -> ClientSnapshot:
        with self._lock:
            return ClientSnapshot(
                board=self.game.board.snapshot(),
                color=self.color,
                my_turn=self.my_turn,
                status=self.status,
                winner=self.winner,
                selection=_coordinates(self.selection),
                promotion_pending=_coordinates(self.promotion_square),
                message=self.message,
            )

    def _notify_subscribers(self) -> None:
        snapshot = self.snapshot()
        for subscriber in list(self._subscribers):
            try:
                subscriber(snapshot)
            except Exception:
                logger.exception("Subscriber %r failed", subscriber)

    # --- ENTRY POINTS FOR THE PRESENTATION LAYER ---
    def select_source(self, square: Square) -> bool:
        """Pick up one of your own pieces. Only while it is your turn."""
        with self._lock:
            if not self._can_move():
                return False
            piece = self.game.board.piece_at(square) if square.is_within_bounds() else None
            if piece is None or piece.color != self.color:
                return False
            self.selection = square
            self._notify_subscribers()
            return True

    def select_destination(self, square: Square) -> bool:
        """Drop the selected piece. Sends the move if the local rules engine accepts it."""
        with self._lock:
            if not self._can_move() or self.selection is None:
                return False
            piece = self.game.board.piece_at(self.selection)
            if piece is None or not square.is_within_bounds():
                return False
            if not self.game.board.check_move(piece, square):
                return False

            from_square = self.selection
            if not self._send(
                lambda: self.connection.move(from_square.row, from_square.col, square.row, square.col)
            ):
                return False
            self.selection = None
            self.my_turn = False
            self._notify_subscribers()
            return True

    def choose_promotion(self, piece_type: PieceType) -> bool:
        """Answer the server's CHOOSE"""
        with self._lock:
            square = self.promotion_square
            if square is None or self.color is None or piece_type not in PROMOTION_OPTIONS:
                return False
            color = self.color
            if not self._send(
                lambda: self.connection.chose(piece_type, color, square.row, square.col)
            ):
                return False
            self.promotion_square = None
            self._notify_subscribers()
            return True

    def _can_move(self) -> bool:
        return (
            self.started
            and self.my_turn
            and not self.is_over
            and self.promotion_square is None
        )

    # --- READING FROM THE SERVER ---
    def start(self) -> threading.Thread:
        """Process server messages in a background (daemon) thread"""
        self._thread = threading.Thread(target=self.run, name="chess-client", daemon=True)
        self._thread.start()
        return self._thread

    def run(self) -> None:
        """Process server messages until the game is over or the connection is lost"""
        try:
            while not self.is_over:
                try:
                    message = self.connection.receive()
                except StreamClosedError as e:
                    logger.info("Connection lost: %s", e)
                    self._finish(Status.ERRORED, message="Connection to the server lost.")
                    self._notify_subscribers()
                    break
                except ProtocolError as e:
                    logger.warning("Server sent an invalid message: %s", e)
                    self._finish(Status.ERRORED, message=str(e))
                    self._notify_subscribers()
                    break
                self.handle(message)
        finally:
            self.connection.close()

    def handle(self, message: Message) -> None:
        """Apply one server message to the model"""
        handlers: dict[type[Message], Callable] = {
            ConnectMessage: self._on_connect,
            StartGameMessage: self._on_start_game,
            MakeMoveMessage: self._on_make_move,
            MoveMadeMessage: self._on_move_made,
            ChooseMessage: self._on_choose,
            ChoseMessage: self._on_chose,
            GameWonMessage: self._on_game_won,
            GameLostMessage: self._on_game_lost,
            GameTiedMessage: self._on_game_tied,
            ErrorMessage: self._on_error,
        }
        handler = handlers.get(type(message))
        if handler is None:
            logger.warning("Ignoring %s, not meant for clients", message.verb)
            return
        with self._lock:
            handler(message)
            self._notify_subscribers()

    def _on_connect(self, message: ConnectMessage) -> None:
        self.color = message.color
        self.message = f"You play {message.color.name}."

    def _on_start_game(self, message: StartGameMessage) -> None:
        self.started = True
        self.message = "Game started."

    def _on_make_move(self, message: MakeMoveMessage) -> None:
        self.my_turn = True
        self.message = "Your move."

    def _on_move_made(self, message: MoveMadeMessage) -> None:
        from_square = Square(message.start_row, message.start_col)
        to_square = Square(message.row, message.col)
        try:
            self.game.make_move(self.game.turn, from_square, to_square)
        except ChessError as e:
            # the server accepted a move our copy of the board rejects: the two are out of sync
            logger.error("Cannot mirror %s -> %s: %s", from_square, to_square, e)
            self._finish(Status.ERRORED, message=f"Out of sync with the server: {e}")
            return
        self.selection = None
        self.message = None

    def _on_choose(self, message: ChooseMessage) -> None:
        self.promotion_square = Square(message.row, message.col)
        self.message = "Choose a piece for your pawn."

    def _on_chose(self, message: ChoseMessage) -> None:
        try:
            self.game.promote(message.color, message.piece_type)
        except ChessError as e:
            logger.error("Cannot mirror promotion into %s: %s", message.piece_type, e)
            self._finish(Status.ERRORED, message=f"Out of sync with the server: {e}")

    def _on_game_won(self, message: GameWonMessage) -> None:
        self._finish(Status.WON, winner=self.color, message="You won!")

    def _on_game_lost(self, message: GameLostMessage) -> None:
        winner = self.color.opponent if self.color else None
        self._finish(Status.WON, winner=winner, message="You lost.")

    def _on_game_tied(self, message: GameTiedMessage) -> None:
        self._finish(Status.TIED, message="Tie.")

    def _on_error(self, message: ErrorMessage) -> None:
        self._finish(Status.ERRORED, message=message.message or "The server ended the game.")

    # --- HELPERS ---
    def _finish(
        self, status: Status, winner: Optional[Color] = None, message: Optional[str] = None
    ) -> None:
        with self._lock:
            if self.is_over:
                return
            self.status = status
            self.winner = winner
            self.message = message
            self.my_turn = False
            self.selection = None
            self.promotion_square = None

    def _send(self, send: Callable[[], None]) -> bool:
        try:
            send()
        except StreamClosedError as e:
            logger.info("Could not reach the server: %s", e)
            self._finish(Status.ERRORED, message="Connection to the server lost.")
            self._notify_subscribers()
            return False
        return True

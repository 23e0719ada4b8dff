"""
Wraps a socket in a line reader and writer, and speaks the protocol over it.

* writes are flushed immediately (one message per line)
* reads block until a full line is available
* end of stream or any OSError becomes a StreamClosedError. Nothing is retried.
* a line that is not UTF-8 text is an InvalidMessageError, like any other malformed line
"""

import logging
import socket
from typing import Optional, Self, TypeVar

from src.core.exceptions import (
    InvalidMessageError,
    StreamClosedError,
    UnexpectedMessageError,
)
from src.core.shared_types import Color, PieceType
from src.protocol.codec import decode, encode
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
    MoveMessage,
    StartGameMessage,
)

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=Message)


class Connection:
    """One peer of a game, on the other end of a socket"""

    def __init__(self, sock: socket.socket, address: Optional[tuple] = None) -> None:
        self.sock = sock
        self.address = address
        self._reader = sock.makefile("r", encoding="utf-8", newline="\n")
        self._writer = sock.makefile("w", encoding="utf-8", newline="\n")
        self._closed = False

    @classmethod
    def open(cls, host: str, port: int) -> Self:
        """Client side: connect to a server"""
        sock = socket.create_connection((host, port))
        return cls(sock, (host, port))

    @property
    def name(self) -> str:
        if self.address:
            return ":".join(str(part) for part in self.address[:2])
        return f"socket-{self.sock.fileno()}"

    @property
    def closed(self) -> bool:
        return self._closed

    def __repr__(self) -> str:
        return f"Connection({self.name})"

    # --- LOW LEVEL ---
    def send(self, message: Message) -> None:
        line = encode(message)
        try:
            self._writer.write(line)
            self._writer.flush()
        except (OSError, ValueError) as e:
            # ValueError: the file object was closed underneath us
            raise StreamClosedError(f"Failed to write to {self.name}: {e}") from e
        logger.debug("%s <- %s", self.name, line.rstrip())

    def receive(self) -> Message:
        """Block until one full message is read"""
        try:
            line = self._reader.readline()
        except UnicodeDecodeError as e:
            raise InvalidMessageError(f"Line from {self.name} is not valid UTF-8: {e}") from e
        except (OSError, ValueError) as e:
            raise StreamClosedError(f"Failed to read from {self.name}: {e}") from e

        if not line:
            raise StreamClosedError(f"{self.name} closed the connection.")

        logger.debug("%s -> %s", self.name, line.rstrip())
        return decode(line)

    def receive_expected(self, message_type: type[M]) -> M:
        """Receive one message and make sure it is of the given type"""
        message = self.receive()
        if not isinstance(message, message_type):
            raise UnexpectedMessageError(
                f"Expected {message_type.verb} from {self.name}, got {message.verb}."
            )
        return message

    def close(self) -> None:
        """Close the socket. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        try:
            # wakes up a reader blocked on this socket
            self.sock.shutdown(socket.SHUT_RDWR)
        except OSError:
            # already disconnected
            pass
        for stream in (self._writer, self._reader):
            try:
                stream.close()
            except OSError as e:
                logger.debug("Error closing stream of %s: %s", self.name, e)
        self.sock.close()

    # --- SERVER -> CLIENT ---
    def connect(self, color: Color) -> None:
        self.send(ConnectMessage(color=color))

    def start_game(self) -> None:
        self.send(StartGameMessage())

    def make_move(self) -> None:
        self.send(MakeMoveMessage())

    def move_made(self, start_row: int, start_col: int, row: int, col: int) -> None:
        self.send(
            MoveMadeMessage(start_row=start_row, start_col=start_col, row=row, col=col)
        )

    def choose(self, row: int, col: int) -> None:
        self.send(ChooseMessage(row=row, col=col))

    def game_won(self) -> None:
        self.send(GameWonMessage())

    def game_lost(self) -> None:
        self.send(GameLostMessage())

    def game_tied(self) -> None:
        self.send(GameTiedMessage())

    def error(self, message: Optional[str] = None) -> None:
        self.send(ErrorMessage(message=message))

    # --- BOTH DIRECTIONS ---
    def chose(self, piece_type: PieceType, color: Color, row: int, col: int) -> None:
        self.send(ChoseMessage(piece_type=piece_type, color=color, row=row, col=col))

    # --- CLIENT -> SERVER ---
    def move(self, start_row: int, start_col: int, row: int, col: int) -> None:
        self.send(MoveMessage(start_row=start_row, start_col=start_col, row=row, col=col))

    def receive_move(self) -> MoveMessage:
        return self.receive_expected(MoveMessage)

    def receive_chose(self) -> ChoseMessage:
        return self.receive_expected(ChoseMessage)

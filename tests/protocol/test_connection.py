"""Unit tests for /src/protocol/connection.py"""

import socket

import pytest

from src.core.exceptions import InvalidMessageError, StreamClosedError, UnexpectedMessageError
from src.core.shared_types import Color, PieceType
from src.protocol.connection import Connection
from src.protocol.messages import (
    ChooseMessage,
    ChoseMessage,
    ConnectMessage,
    ErrorMessage,
    MoveMadeMessage,
    MoveMessage,
    StartGameMessage,
)


def test_name() -> None:
    sock_a, sock_b = socket.socketpair()
    try:
        assert Connection(sock_a, ("127.0.0.1", 5000)).name == "127.0.0.1:5000"
        assert Connection(sock_b).name.startswith("socket-")
    finally:
        sock_a.close()
        sock_b.close()


def test_send_and_receive(connection_pair: tuple[Connection, Connection]) -> None:
    server, client = connection_pair
    server.connect(Color.BLACK)
    server.start_game()
    server.move_made(6, 4, 4, 4)
    server.choose(0, 1)
    server.error("bye")

    assert client.receive() == ConnectMessage(color=Color.BLACK)
    assert client.receive() == StartGameMessage()
    assert client.receive() == MoveMadeMessage(start_row=6, start_col=4, row=4, col=4)
    assert client.receive() == ChooseMessage(row=0, col=1)
    assert client.receive() == ErrorMessage(message="bye")


def test_client_messages(connection_pair: tuple[Connection, Connection]) -> None:
    server, client = connection_pair
    client.move(6, 4, 4, 4)
    client.chose(PieceType.ROOK, Color.WHITE, 0, 4)

    assert server.receive_move() == MoveMessage(start_row=6, start_col=4, row=4, col=4)
    assert server.receive_chose() == ChoseMessage(
        piece_type=PieceType.ROOK, color=Color.WHITE, row=0, col=4
    )


def test_unexpected_message(connection_pair: tuple[Connection, Connection]) -> None:
    server, client = connection_pair
    client.chose(PieceType.QUEEN, Color.WHITE, 0, 4)
    with pytest.raises(UnexpectedMessageError):
        server.receive_move()


def test_malformed_line(connection_pair: tuple[Connection, Connection]) -> None:
    server, client = connection_pair
    client.sock.sendall(b"MOVE e2 e4\n")
    with pytest.raises(InvalidMessageError):
        server.receive()


def test_line_that_is_not_utf8(connection_pair: tuple[Connection, Connection]) -> None:
    server, client = connection_pair
    client.sock.sendall(b"MOVE \xff\xfe 4 4 4\n")
    with pytest.raises(InvalidMessageError, match="not valid UTF-8"):
        server.receive()


def test_peer_closed(connection_pair: tuple[Connection, Connection]) -> None:
    server, client = connection_pair
    client.close()
    with pytest.raises(StreamClosedError):
        server.receive()


def test_send_after_close(connection_pair: tuple[Connection, Connection]) -> None:
    server, _ = connection_pair
    server.close()
    assert server.closed
    with pytest.raises(StreamClosedError):
        server.make_move()


def test_close_is_idempotent(connection_pair: tuple[Connection, Connection]) -> None:
    server, _ = connection_pair
    server.close()
    server.close()
    assert server.closed

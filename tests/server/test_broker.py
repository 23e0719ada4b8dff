"""Unit tests for /src/server/broker.py: pairing real TCP connections into games"""

import time
from typing import Callable, Iterator

import pytest

from src.core.exceptions import StreamClosedError
from src.core.models import GameRecord
from src.core.shared_types import Color
from src.protocol.connection import Connection
from src.protocol.messages import ConnectMessage, ErrorMessage, StartGameMessage
from src.server.broker import Broker

CLIENT_TIMEOUT = 5.0


@pytest.fixture
def records() -> list[GameRecord]:
    return []


@pytest.fixture
def broker(records: list[GameRecord]) -> Iterator[Broker]:
    broker = Broker.create("127.0.0.1", 0, on_finished=records.append)
    broker.start()
    try:
        yield broker
    finally:
        broker.shutdown()


def open_client(broker: Broker) -> Connection:
    host, port = broker.address
    connection = Connection.open(host, port)
    connection.sock.settimeout(CLIENT_TIMEOUT)
    return connection


def wait_until(condition: Callable[[], bool], timeout: float = CLIENT_TIMEOUT) -> None:
    deadline = time.monotonic() + timeout
    while not condition():
        assert time.monotonic() < deadline, "timed out"
        time.sleep(0.01)


def test_fifo_pairing(broker: Broker, records: list[GameRecord]) -> None:
    """Arrivals A, B, C, D: A plays B (A is BLACK), C plays D (C is BLACK)"""
    a = open_client(broker)
    b = open_client(broker)
    assert a.receive() == ConnectMessage(color=Color.BLACK)
    assert b.receive() == ConnectMessage(color=Color.WHITE)

    c = open_client(broker)
    d = open_client(broker)
    assert c.receive() == ConnectMessage(color=Color.BLACK)
    assert d.receive() == ConnectMessage(color=Color.WHITE)

    for client in (a, b, c, d):
        assert client.receive() == StartGameMessage()
    assert len(broker.sessions) == 2

    # one game breaking down leaves the other one running
    # (A and C are BLACK, so they are the ones asked for the opening move)
    a.close()
    assert isinstance(b.receive(), ErrorMessage)
    wait_until(lambda: len(broker.sessions) == 1)
    assert len(records) == 1

    c.close()
    wait_until(lambda: len(broker.sessions) == 0)
    assert len(records) == 2
    assert all(record.status == "errored" for record in records)

    for client in (b, d):
        client.close()


def test_shutdown_drops_unpaired_connections(broker: Broker) -> None:
    lonely = open_client(broker)
    wait_until(lambda: len(broker.queue) == 1)

    broker.shutdown()

    with pytest.raises(StreamClosedError):
        lonely.receive()
    assert not broker.listener.is_alive()


def test_shutdown_waits_for_running_games(broker: Broker, records: list[GameRecord]) -> None:
    black = open_client(broker)
    white = open_client(broker)
    assert black.receive() == ConnectMessage(color=Color.BLACK)
    assert white.receive() == ConnectMessage(color=Color.WHITE)

    # the game only ends once a player leaves, shutdown joins it
    black.close()
    broker.shutdown()

    assert broker.sessions == []
    assert len(records) == 1
    white.close()

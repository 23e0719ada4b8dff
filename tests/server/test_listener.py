"""Unit tests for /src/server/listener.py"""

import threading
from unittest.mock import Mock

import pytest

from src.protocol.connection import Connection
from src.server.listener import ConnectionQueue, Listener

JOIN_TIMEOUT = 5.0


def fake_connection(name: str) -> Mock:
    connection = Mock(spec=Connection)
    connection.name = name
    return connection


def test_pairs_in_arrival_order() -> None:
    """Four arrivals A, B, C, D make the pairs (A, B) and (C, D)"""
    queue = ConnectionQueue()
    a, b, c, d = (fake_connection(name) for name in "ABCD")
    for connection in (a, b, c, d):
        queue.put(connection)

    assert queue.take_pair() == (a, b)
    assert queue.take_pair() == (c, d)
    assert len(queue) == 0


def test_take_pair_waits_for_the_second_connection() -> None:
    queue = ConnectionQueue()
    pairs: list = []
    waiter = threading.Thread(target=lambda: pairs.append(queue.take_pair()))
    waiter.start()

    a, b = fake_connection("A"), fake_connection("B")
    queue.put(a)
    waiter.join(0.1)
    assert waiter.is_alive(), "one connection is not a pair"

    queue.put(b)
    waiter.join(JOIN_TIMEOUT)
    assert pairs == [(a, b)]


def test_close_wakes_up_waiters() -> None:
    queue = ConnectionQueue()
    pairs: list = []
    waiter = threading.Thread(target=lambda: pairs.append(queue.take_pair()))
    waiter.start()

    queue.put(fake_connection("A"))
    queue.close()
    waiter.join(JOIN_TIMEOUT)

    assert not waiter.is_alive()
    assert pairs == [None]
    assert queue.closed
    assert [connection.name for connection in queue.drain()] == ["A"]
    assert len(queue) == 0


def test_listener_queues_accepted_connections() -> None:
    queue = ConnectionQueue()
    listener = Listener("127.0.0.1", 0, queue, poll_interval=0.05)
    host, port = listener.address
    assert port != 0
    listener.start()

    clients = [Connection.open(host, port) for _ in range(2)]
    pair = None
    try:
        pair = queue.take_pair()
        assert pair is not None
        assert all(isinstance(connection, Connection) for connection in pair)
    finally:
        listener.close()
        listener.join(JOIN_TIMEOUT)
        for connection in clients:
            connection.close()
        for connection in queue.drain():
            connection.close()
        if pair:
            for connection in pair:
                connection.close()

    assert not listener.is_alive()
    assert queue.closed


def test_listener_close_before_any_connection() -> None:
    queue = ConnectionQueue()
    listener = Listener("127.0.0.1", 0, queue, poll_interval=0.05)
    listener.start()
    listener.close()
    listener.join(JOIN_TIMEOUT)
    assert not listener.is_alive()
    assert queue.take_pair() is None


def test_port_in_use() -> None:
    queue = ConnectionQueue()
    listener = Listener("127.0.0.1", 0, queue)
    try:
        with pytest.raises(OSError):
            Listener("127.0.0.1", listener.address[1], ConnectionQueue())
    finally:
        listener.close()

"""
Accepting connections
---

The Listener thread accepts incoming connections and pushes each one into a ConnectionQueue,
the only state shared between threads of the server. The Broker waits on that queue for pairs.

Closing the listening socket stops the listener, which in turn closes the queue (so nobody waits forever).
"""

import logging
import socket
import threading
from collections import deque
from typing import Optional

from src.protocol.connection import Connection

logger = logging.getLogger(__name__)

# how often (seconds) a blocked accept() wakes up to see if the listener got closed
ACCEPT_POLL_INTERVAL = 0.5


class ConnectionQueue:
    """FIFO of connections waiting for an opponent, guarded by a condition variable"""

    def __init__(self) -> None:
        self._pending: deque[Connection] = deque()
        self._condition = threading.Condition()
        self._closed = False

    def __len__(self) -> int:
        with self._condition:
            return len(self._pending)

    @property
    def closed(self) -> bool:
        with self._condition:
            return self._closed

    def put(self, connection: Connection) -> None:
        with self._condition:
            self._pending.append(connection)
            self._condition.notify_all()

    def take_pair(self) -> Optional[tuple[Connection, Connection]]:
        """Block until two connections are available (in arrival order). None once the queue is closed."""
        with self._condition:
            self._condition.wait_for(lambda: len(self._pending) >= 2 or self._closed)
            if len(self._pending) < 2:
                return None
            first = self._pending.popleft()
            second = self._pending.popleft()
            return first, second

    def close(self) -> None:
        """Wake up every waiter. Connections still queued stay there until drained."""
        with self._condition:
            self._closed = True
            self._condition.notify_all()

    def drain(self) -> list[Connection]:
        """Remove (and return) whatever is still waiting"""
        with self._condition:
            leftovers = list(self._pending)
            self._pending.clear()
            return leftovers


class Listener(threading.Thread):
    """Accept loop, in its own thread"""

    def __init__(
        self,
        host: str,
        port: int,
        queue: ConnectionQueue,
        poll_interval: float = ACCEPT_POLL_INTERVAL,
    ) -> None:
        super().__init__(name="listener", daemon=True)
        self.queue = queue
        self._server = socket.create_server((host, port))
        self._server.settimeout(poll_interval)
        self._stopped = threading.Event()

    @property
    def address(self) -> tuple[str, int]:
        """(host, port) actually bound. Useful when asking for port 0."""
        host, port = self._server.getsockname()[:2]
        return host, port

    def run(self) -> None:
        logger.info("Listening on %s:%s", *self.address)
        try:
            while not self._stopped.is_set():
                try:
                    client_socket, address = self._server.accept()
                except TimeoutError:
                    continue
                except OSError as e:
                    if not self._stopped.is_set():
                        logger.error("Listening socket failed: %s", e)
                    break

                # accepted sockets block; reads never time out
                client_socket.settimeout(None)
                connection = Connection(client_socket, address)
                logger.info("Accepted connection from %s", connection.name)
                self.queue.put(connection)
        finally:
            self._server.close()
            self.queue.close()
            logger.info("Stopped listening")

    def close(self) -> None:
        """Stop accepting new connections"""
        self._stopped.set()
        self._server.close()

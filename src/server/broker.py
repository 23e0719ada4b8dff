"""
Pairing connections into games
---

The Broker takes connections off the queue two at a time, in arrival order, and spawns a GameSession for each pair.
The first connection of a pair plays BLACK and opens the game.

It keeps a registry of the sessions it spawned, so that shutting down can:
1. stop the listener (no new connections, no new pairs)
2. wait for the pairing loop to exit
3. wait for every running game to finish (games are never interrupted)
"""

import logging
import threading
from itertools import count
from typing import Optional, Self

from src.core.models import GameRecord
from src.protocol.connection import Connection
from src.server.listener import ConnectionQueue, Listener
from src.server.session import GameSession, RecordCallback

logger = logging.getLogger(__name__)


class Broker:
    """Pairs queued connections FIFO and owns the spawned sessions"""

    def __init__(
        self,
        listener: Listener,
        queue: ConnectionQueue,
        on_finished: Optional[RecordCallback] = None,
    ) -> None:
        self.listener = listener
        self.queue = queue
        self.on_finished = on_finished
        self._sessions: list[GameSession] = []
        self._lock = threading.Lock()
        self._game_numbers = count(1)
        self._thread: Optional[threading.Thread] = None

    @classmethod
    def create(
        cls, host: str, port: int, on_finished: Optional[RecordCallback] = None
    ) -> Self:
        """Convenience: a broker with its own queue and listener (bound, not yet started)"""
        queue = ConnectionQueue()
        listener = Listener(host, port, queue)
        return cls(listener, queue, on_finished)

    @property
    def address(self) -> tuple[str, int]:
        return self.listener.address

    @property
    def sessions(self) -> list[GameSession]:
        """Sessions still running"""
        with self._lock:
            return [session for session in self._sessions if session.is_alive()]

    # --- LIFECYCLE ---
    def start(self) -> None:
        """Start listening and pairing in background threads"""
        self.listener.start()
        self._thread = threading.Thread(target=self.serve_forever, name="broker")
        self._thread.start()

    def serve_forever(self) -> None:
        """Pairing loop. Returns once the queue got closed (the listener stopped)."""
        while True:
            pair = self.queue.take_pair()
            if pair is None:
                break
            self.spawn(*pair)
        logger.info("Stopped pairing players")

    def wait(self, poll_interval: float = 0.5) -> None:
        """Block until the pairing loop ends (joins in small steps so KeyboardInterrupt gets through)"""
        if self._thread is None:
            return
        while self._thread.is_alive():
            self._thread.join(timeout=poll_interval)

    def shutdown(self) -> None:
        """Stop the listener first, then wait for the pairing loop and every spawned game"""
        logger.info("Shutting down: no longer accepting connections")
        self.listener.close()
        if self.listener.is_alive():
            self.listener.join()
        # the listener closes the queue when it exits; make sure of it if it never ran
        self.queue.close()
        if self._thread is not None:
            self._thread.join()

        for connection in self.queue.drain():
            logger.info("Dropping %s, still waiting for an opponent", connection.name)
            connection.close()

        with self._lock:
            sessions = list(self._sessions)
        for session in sessions:
            session.join()
        logger.info("All games finished")

    # --- PAIRING ---
    def spawn(self, first: Connection, second: Connection) -> GameSession:
        """One new game for the pair. The first connection plays BLACK."""
        session = GameSession(
            first,
            second,
            on_finished=self._on_finished,
            name=f"game-{next(self._game_numbers)}",
        )
        with self._lock:
            self._sessions = [s for s in self._sessions if s.is_alive()]
            self._sessions.append(session)
        logger.info("Paired %s (BLACK) with %s (WHITE) in %s", first.name, second.name, session.name)
        session.start()
        return session

    def _on_finished(self, record: GameRecord) -> None:
        if self.on_finished is not None:
            self.on_finished(record)

"""Orchestration between the game server and the persistence layer: the archive of finished games."""

import logging
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from src.core.exceptions import RepositoryError
from src.core.models import GameRecord
from src.db.repository import GameRecordRepository
from src.db.sql_repository import SQLGameRecordRepository

logger = logging.getLogger(__name__)


class ArchiveService:
    """Stores finished games. Every call opens its own DB session, as games finish on different threads."""

    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self.session_factory = session_factory

    def store(self, record: GameRecord) -> UUID | None:
        """
        Called by a game session when it ends.
        ----
        A failing archive must not take the server down: errors are logged, and None is returned.
        """
        try:
            with self.session_factory() as db:
                _, record_id = self._repository(db).create_record(record)
        except SQLAlchemyError:
            logger.exception("Could not archive game between %s", record.players)
            return None
        logger.info("Archived game %s (%s)", record_id, record.status)
        return record_id

    def get_record(self, record_id: UUID) -> GameRecord:
        """Attempt to find the game in the repository and raise error if it fails."""
        with self.session_factory() as db:
            record = self._repository(db).get_record(record_id)
        if record is None:
            raise RepositoryError(f"Game record with {record_id=} not found.")
        return record

    def list_records(self) -> list[tuple[UUID, GameRecord]]:
        with self.session_factory() as db:
            return self._repository(db).list_records()

    def _repository(self, db: Session) -> GameRecordRepository:
        return SQLGameRecordRepository(db)

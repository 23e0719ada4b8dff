"""Implementation of (GameRecord)Repository using SQLAlchemy"""

from uuid import UUID, uuid4

from sqlalchemy import select
from sqlalchemy.orm import Session

from src.core.models import GameRecord
from src.db.schema import DBGameRecord


class SQLGameRecordRepository:
    """Data stored using SQL / methods implemented using SQLAlchemy"""

    def __init__(self, db_session: Session) -> None:
        self.db = db_session

    def get_record(self, record_id: UUID) -> GameRecord | None:
        """Get record by ID, if it exists."""
        record_db = self._fetch_record(record_id)
        if record_db:
            return self._to_model(record_db)
        return None

    def create_record(self, record: GameRecord) -> tuple[GameRecord, UUID]:
        """Store a finished game and return the stored data + newly created record ID."""

        new_id = uuid4()
        record_db = DBGameRecord(
            id=new_id,
            players=record.players,
            moves=record.moves,
            status=record.status,
            winner=record.winner,
            error=record.error,
            final_fen=record.final_fen,
        )
        self.db.add(record_db)
        self.db.commit()
        self.db.refresh(record_db)
        return self._to_model(record_db), new_id

    def list_records(self) -> list[tuple[UUID, GameRecord]]:
        """All records, oldest first."""
        query = select(DBGameRecord).order_by(DBGameRecord.created_at)
        return [
            (record_db.id, self._to_model(record_db))
            for record_db in self.db.scalars(query)
        ]

    def _fetch_record(self, record_id: UUID) -> DBGameRecord | None:
        query = select(DBGameRecord).where(DBGameRecord.id == record_id)
        return self.db.scalar(query)

    def _to_model(self, record_db: DBGameRecord) -> GameRecord:
        """Convert SQLAlchemy model to data transfer model."""
        return GameRecord(
            players=record_db.players,
            moves=record_db.moves,
            status=record_db.status,
            winner=record_db.winner,
            error=record_db.error,
            final_fen=record_db.final_fen,
        )

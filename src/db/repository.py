"""Protocol repository (can implement later for something other than SQL Alchemy)"""

from typing import Protocol
from uuid import UUID

from src.core.models import GameRecord


class GameRecordRepository(Protocol):
    """Persistence layer orchestration for the archive of finished games"""

    def get_record(self, record_id: UUID) -> GameRecord | None:
        """Get record by ID, if it exists."""
        ...

    def create_record(self, record: GameRecord) -> tuple[GameRecord, UUID]:
        """Store a finished game and return the stored data + newly created record ID."""
        ...

    def list_records(self) -> list[tuple[UUID, GameRecord]]:
        """All records, oldest first."""
        ...

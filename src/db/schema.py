"""Database tables / schema"""

from datetime import datetime, timezone
from typing import Optional
from uuid import UUID

from sqlalchemy import JSON
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    pass


class DBGameRecord(Base):
    """One finished game (won, tied or aborted by an error)"""

    __tablename__ = "game_records"
    id: Mapped[UUID] = mapped_column(primary_key=True)
    players: Mapped[dict[str, str]] = mapped_column(JSON)
    moves: Mapped[list[str]] = mapped_column(JSON, default=list)
    status: Mapped[str]
    winner: Mapped[Optional[str]]
    error: Mapped[Optional[str]]
    final_fen: Mapped[str]
    created_at: Mapped[datetime] = mapped_column(default=utc_now)

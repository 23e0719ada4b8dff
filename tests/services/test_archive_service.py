"""Unit tests for src/services/archive_service.py"""

import threading
from unittest.mock import MagicMock
from uuid import uuid4

import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session, sessionmaker

from src.core.exceptions import RepositoryError
from src.core.models import GameRecord
from src.services.archive_service import ArchiveService


def make_record(status: str = "won") -> GameRecord:
    return GameRecord(
        players={"WHITE": "a", "BLACK": "b"},
        moves=["f2f3", "e7e5", "g2g4", "d8h4"],
        status=status,
        winner="BLACK" if status == "won" else None,
        final_fen="rnb1kbnr/pppp1ppp/8/4p3/6Pq/5P2/PPPPP2P/RNBQKBNR",
    )


def test_store_and_get(session_factory: sessionmaker[Session]) -> None:
    archive = ArchiveService(session_factory)
    record = make_record()
    record_id = archive.store(record)
    assert record_id is not None
    assert archive.get_record(record_id) == record


def test_get_unknown_record(session_factory: sessionmaker[Session]) -> None:
    archive = ArchiveService(session_factory)
    with pytest.raises(RepositoryError):
        archive.get_record(uuid4())


def test_store_from_other_threads(session_factory: sessionmaker[Session]) -> None:
    """Sessions end on their own threads. Each store uses its own DB session."""
    archive = ArchiveService(session_factory)
    threads = [
        threading.Thread(target=archive.store, args=(make_record(status),))
        for status in ("won", "tied", "errored")
    ]
    for thread in threads:
        thread.start()
        thread.join()

    statuses = sorted(record.status for _, record in archive.list_records())
    assert statuses == ["errored", "tied", "won"]


def test_store_failure_is_logged_not_raised(caplog: pytest.LogCaptureFixture) -> None:
    failing_factory = MagicMock()
    failing_factory.return_value.__enter__.side_effect = OperationalError(
        "INSERT", {}, Exception("database is locked")
    )
    archive = ArchiveService(failing_factory)

    assert archive.store(make_record()) is None
    assert "Could not archive game" in caplog.text

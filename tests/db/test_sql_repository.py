"""Unit tests for src/db/sql_repository.py"""

from uuid import uuid4

from sqlalchemy.orm import Session

from src.core.models import GameRecord
from src.db.sql_repository import SQLGameRecordRepository


def make_record(**overrides: object) -> GameRecord:
    fields: dict = {
        "players": {"WHITE": "127.0.0.1:50000", "BLACK": "127.0.0.1:50001"},
        "moves": ["e2e4", "e7e5", "d1h5"],
        "status": "won",
        "winner": "WHITE",
        "error": None,
        "final_fen": "rnbqkbnr/pppp1ppp/8/4p2Q/4P3/8/PPPP1PPP/RNB1KBNR",
    }
    fields.update(overrides)
    return GameRecord(**fields)


def test_create_record(db_session_repo: Session) -> None:
    """Conversion from a GameRecord to DBGameRecord for a new entry to the database."""
    record = make_record()
    repo = SQLGameRecordRepository(db_session_repo)
    record_in_db, _ = repo.create_record(record)
    assert isinstance(record_in_db, GameRecord)
    assert record_in_db == record


def test_get_record_by_id(db_session_repo: Session) -> None:
    """Create a record, then fetch it from db."""
    repo = SQLGameRecordRepository(db_session_repo)
    expected, record_id = repo.create_record(make_record(status="errored", winner=None, error="gone"))
    found = repo.get_record(record_id)
    assert found == expected


def test_get_unknown_record(db_session_repo: Session) -> None:
    """
    Should return None if ID does not match anything in database.

    NOTE with an empty database, any id is a valid test case.
    """
    repo = SQLGameRecordRepository(db_session_repo)
    assert repo.get_record(uuid4()) is None


def test_list_records(db_session_repo: Session) -> None:
    repo = SQLGameRecordRepository(db_session_repo)
    assert repo.list_records() == []

    _, first_id = repo.create_record(make_record(moves=["e2e4"]))
    _, second_id = repo.create_record(make_record(status="tied", winner=None))

    records = repo.list_records()
    assert {record_id for record_id, _ in records} == {first_id, second_id}
    assert len(records) == 2

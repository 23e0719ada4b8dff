"""
Start the chess server

    python -m src.server.main 8888 [--host 0.0.0.0] [--database-url sqlite:///games.db] [--log-level INFO]

Browse the archive of finished games instead of serving:

    python -m src.server.main --database-url sqlite:///games.db --list-games
    python -m src.server.main --database-url sqlite:///games.db --show-game <id>

Command line arguments override the environment (see src/core/config.py).
"""

import argparse
import logging
import sys
from typing import Optional, Sequence, TextIO
from uuid import UUID

from src.core.config import Settings
from src.core.exceptions import RepositoryError
from src.db.database import create_session_factory
from src.server.broker import Broker
from src.services.archive_service import ArchiveService

logger = logging.getLogger(__name__)


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Pairs up players and referees their chess games.")
    parser.add_argument("port", type=int, nargs="?", help="port to listen on")
    parser.add_argument("--host", help="interface to listen on")
    parser.add_argument("--database-url", help="SQLAlchemy URL to archive finished games in")
    parser.add_argument("--log-level", help="DEBUG, INFO, WARNING or ERROR")
    archive = parser.add_mutually_exclusive_group()
    archive.add_argument("--list-games", action="store_true", help="list archived games and exit")
    archive.add_argument("--show-game", type=UUID, metavar="ID", help="print one archived game and exit")
    return parser.parse_args(argv)


def load_settings(args: argparse.Namespace) -> Settings:
    """Environment first, the command line wins"""
    settings = Settings.from_env()
    overrides = {
        "port": args.port,
        "host": args.host,
        "database_url": args.database_url,
        "log_level": args.log_level,
    }
    return Settings(
        **{
            **settings.model_dump(),
            **{key: value for key, value in overrides.items() if value is not None},
        }
    )


def build_broker(settings: Settings) -> Broker:
    """Listener + broker, and the archive if a database is configured"""
    on_finished = None
    if settings.database_url:
        archive = ArchiveService(create_session_factory(settings.database_url))
        on_finished = archive.store
    return Broker.create(settings.host, settings.port, on_finished=on_finished)


def show_archive(archive: ArchiveService, record_id: Optional[UUID], out: TextIO) -> None:
    """One line per game, or every detail of a single game"""
    if record_id is None:
        for stored_id, record in archive.list_records():
            players = " vs ".join(f"{color}={peer}" for color, peer in record.players.items())
            out.write(
                f"{stored_id}  {record.status:<8} winner={record.winner or '-'} "
                f"moves={len(record.moves)}  {players}\n"
            )
        return

    record = archive.get_record(record_id)
    out.write(f"id:      {record_id}\n")
    for color, peer in record.players.items():
        out.write(f"{color.lower() + ':':<9}{peer}\n")
    out.write(f"status:  {record.status}\n")
    out.write(f"winner:  {record.winner or '-'}\n")
    if record.error:
        out.write(f"error:   {record.error}\n")
    out.write(f"moves:   {' '.join(record.moves)}\n")
    out.write(f"final:   {record.final_fen}\n")


def main(argv: Optional[Sequence[str]] = None) -> None:
    args = parse_args(argv)
    settings = load_settings(args)
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s [%(threadName)s] %(name)s: %(message)s",
    )

    if args.list_games or args.show_game is not None:
        if not settings.database_url:
            raise SystemExit("The archive needs a database: pass --database-url or set CHESS_DATABASE_URL.")
        archive = ArchiveService(create_session_factory(settings.database_url))
        try:
            show_archive(archive, args.show_game, sys.stdout)
        except RepositoryError as e:
            raise SystemExit(str(e)) from e
        return

    broker = build_broker(settings)
    broker.start()
    try:
        broker.wait()
    except KeyboardInterrupt:
        logger.info("Interrupted")
    finally:
        broker.shutdown()


if __name__ == "__main__":
    main()

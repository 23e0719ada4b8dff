"""
Configuration of the chess server.

Values come from environment variables, falling back to the defaults below.
The command line (see src/server/main.py) can override them again.

* CHESS_SERVER_HOST   interface to listen on
* CHESS_SERVER_PORT   port to listen on
* CHESS_DATABASE_URL  SQLAlchemy URL of the archive of finished games (unset: no archive)
* CHESS_LOG_LEVEL     DEBUG / INFO / WARNING / ERROR
"""

import logging
import os
from typing import Any, Optional, Self

from pydantic import BaseModel, ConfigDict, field_validator

DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 8888
DEFAULT_LOG_LEVEL = "INFO"


def _get(name: str, default: Any) -> Any:
    """Environment variable (still a string, the model does the conversion) or the default"""
    value = os.environ.get(name)
    if value is None or value == "":
        return default
    return value


class Settings(BaseModel):
    model_config = ConfigDict(frozen=True)

    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    database_url: Optional[str] = None
    log_level: str = DEFAULT_LOG_LEVEL

    @classmethod
    def from_env(cls) -> Self:
        return cls(
            host=_get("CHESS_SERVER_HOST", DEFAULT_HOST),
            port=_get("CHESS_SERVER_PORT", DEFAULT_PORT),
            database_url=_get("CHESS_DATABASE_URL", None),
            log_level=_get("CHESS_LOG_LEVEL", DEFAULT_LOG_LEVEL),
        )

    @field_validator("port")
    @classmethod
    def validate_port(cls, value: int) -> int:
        # 0: let the OS pick a free port
        if not 0 <= value <= 65535:
            raise ValueError(f"Port must lie between 0 and 65535, got {value}")
        return value

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in logging.getLevelNamesMapping():
            raise ValueError(f"Unknown log level: {value!r}")
        return level

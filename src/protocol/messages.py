"""Wire protocol messages

One model per verb. Field order is the order of the argument tokens on the wire.

ex. "MOVE 6 4 4 4" --> MoveMessage(start_row=6, start_col=4, row=4, col=4)
"""

from enum import StrEnum
from typing import ClassVar, Optional

from pydantic import BaseModel, ConfigDict, field_validator

from src.chess.square import BOARD_DIMENSIONS
from src.core.shared_types import PROMOTION_OPTIONS, Color, PieceType


class Verb(StrEnum):
    CONNECT = "CONNECT"
    STARTGAME = "STARTGAME"
    MAKE_MOVE = "MAKE_MOVE"
    MOVE = "MOVE"
    MOVE_MADE = "MOVE_MADE"
    CHOOSE = "CHOOSE"
    CHOSE = "CHOSE"
    GAME_WON = "GAME_WON"
    GAME_LOST = "GAME_LOST"
    GAME_TIED = "GAME_TIED"
    ERROR = "ERROR"


def _validate_coordinate(value: int) -> int:
    if not 0 <= value < BOARD_DIMENSIONS[0]:
        raise ValueError(
            f"Coordinate {value} lies outside the board (0 - {BOARD_DIMENSIONS[0] - 1})."
        )
    return value


class Message(BaseModel):
    """Base class: a verb followed by the fields of the model as space separated tokens"""

    model_config = ConfigDict(frozen=True)

    verb: ClassVar[Verb]

    def tokens(self) -> list[str]:
        return [str(getattr(self, name)) for name in type(self).model_fields]


# --- SERVER -> CLIENT ---
class ConnectMessage(Message):
    verb: ClassVar[Verb] = Verb.CONNECT
    color: Color

    @field_validator("color", mode="before")
    @classmethod
    def validate_color(cls, value: object) -> object:
        if isinstance(value, str):
            return value.upper()
        return value


class StartGameMessage(Message):
    verb: ClassVar[Verb] = Verb.STARTGAME


class MakeMoveMessage(Message):
    verb: ClassVar[Verb] = Verb.MAKE_MOVE


class GameWonMessage(Message):
    verb: ClassVar[Verb] = Verb.GAME_WON


class GameLostMessage(Message):
    verb: ClassVar[Verb] = Verb.GAME_LOST


class GameTiedMessage(Message):
    verb: ClassVar[Verb] = Verb.GAME_TIED


class ErrorMessage(Message):
    """The only message with free text: everything after the verb is the (optional) message"""

    verb: ClassVar[Verb] = Verb.ERROR
    message: Optional[str] = None

    @field_validator("message")
    @classmethod
    def validate_single_line(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        return " ".join(value.split()) or None

    def tokens(self) -> list[str]:
        return [self.message] if self.message else []


class ChooseMessage(Message):
    """Server asks the owner of the pawn on (row, col) which piece it becomes"""

    verb: ClassVar[Verb] = Verb.CHOOSE
    row: int
    col: int

    @field_validator("row", "col")
    @classmethod
    def validate_coordinates(cls, value: int) -> int:
        return _validate_coordinate(value)


# --- MOVES (both directions) ---
class _MoveFields(Message):
    start_row: int
    start_col: int
    row: int
    col: int

    @field_validator("start_row", "start_col", "row", "col")
    @classmethod
    def validate_coordinates(cls, value: int) -> int:
        return _validate_coordinate(value)


class MoveMessage(_MoveFields):
    """client -> server: the move the player wants to make"""

    verb: ClassVar[Verb] = Verb.MOVE


class MoveMadeMessage(_MoveFields):
    """server -> both clients: the move that was accepted"""

    verb: ClassVar[Verb] = Verb.MOVE_MADE


class ChoseMessage(Message):
    """client -> server: the promotion choice; server -> both clients: the promotion carried out"""

    verb: ClassVar[Verb] = Verb.CHOSE
    piece_type: PieceType
    color: Color
    row: int
    col: int

    @field_validator("piece_type", mode="before")
    @classmethod
    def validate_piece_type(cls, value: object) -> object:
        if isinstance(value, str) and value.upper() not in PROMOTION_OPTIONS:
            raise ValueError(
                f"Cannot promote into {value!r}. Pick one from {','.join(PROMOTION_OPTIONS)}"
            )
        return value.upper() if isinstance(value, str) else value

    @field_validator("color", mode="before")
    @classmethod
    def validate_color(cls, value: object) -> object:
        if isinstance(value, str):
            return value.upper()
        return value

    @field_validator("row", "col")
    @classmethod
    def validate_coordinates(cls, value: int) -> int:
        return _validate_coordinate(value)


MESSAGE_TYPES: dict[Verb, type[Message]] = {
    message_type.verb: message_type
    for message_type in [
        ConnectMessage,
        StartGameMessage,
        MakeMoveMessage,
        MoveMessage,
        MoveMadeMessage,
        ChooseMessage,
        ChoseMessage,
        GameWonMessage,
        GameLostMessage,
        GameTiedMessage,
        ErrorMessage,
    ]
}

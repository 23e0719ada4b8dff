"""Unit tests for /src/protocol/codec.py and /src/protocol/messages.py"""

import pytest

from src.core.exceptions import InvalidMessageError, ProtocolError
from src.core.shared_types import Color, PieceType
from src.protocol.codec import decode, encode
from src.protocol.messages import (
    ChooseMessage,
    ChoseMessage,
    ConnectMessage,
    ErrorMessage,
    GameLostMessage,
    GameTiedMessage,
    GameWonMessage,
    MakeMoveMessage,
    Message,
    MoveMadeMessage,
    MoveMessage,
    StartGameMessage,
)


@pytest.mark.parametrize(
    "message, line",
    [
        (ConnectMessage(color=Color.WHITE), "CONNECT WHITE\n"),
        (StartGameMessage(), "STARTGAME\n"),
        (MakeMoveMessage(), "MAKE_MOVE\n"),
        (MoveMessage(start_row=6, start_col=4, row=4, col=4), "MOVE 6 4 4 4\n"),
        (MoveMadeMessage(start_row=1, start_col=3, row=3, col=3), "MOVE_MADE 1 3 3 3\n"),
        (ChooseMessage(row=0, col=1), "CHOOSE 0 1\n"),
        (
            ChoseMessage(piece_type=PieceType.QUEEN, color=Color.WHITE, row=0, col=1),
            "CHOSE QUEEN WHITE 0 1\n",
        ),
        (GameWonMessage(), "GAME_WON\n"),
        (GameLostMessage(), "GAME_LOST\n"),
        (GameTiedMessage(), "GAME_TIED\n"),
        (ErrorMessage(message="Opponent left"), "ERROR Opponent left\n"),
        (ErrorMessage(), "ERROR\n"),
    ],
)
def test_encode_decode(message: Message, line: str) -> None:
    assert encode(message) == line
    assert decode(line) == message


def test_decode_without_terminator() -> None:
    assert decode("MOVE 6 4 4 4") == MoveMessage(start_row=6, start_col=4, row=4, col=4)


def test_decode_is_lenient_about_case_of_names() -> None:
    assert decode("CONNECT black") == ConnectMessage(color=Color.BLACK)
    assert decode("CHOSE knight Black 7 0") == ChoseMessage(
        piece_type=PieceType.KNIGHT, color=Color.BLACK, row=7, col=0
    )


def test_error_message_is_a_single_line() -> None:
    message = ErrorMessage(message="Line one\nline two")
    assert encode(message) == "ERROR Line one line two\n"


@pytest.mark.parametrize(
    "line",
    [
        "",
        "   \n",
        "HELLO",
        "move 6 4 4 4",
        "MOVE 6 4 4",
        "MOVE 6 4 4 4 4",
        "MOVE 6 4 x 4",
        "MOVE 6 4 8 4",
        "MOVE -1 4 4 4",
        "CONNECT",
        "CONNECT PURPLE",
        "STARTGAME now",
        "CHOOSE 0",
        "CHOSE KING WHITE 0 1",
        "CHOSE PAWN WHITE 0 1",
        "CHOSE QUEEN WHITE 0 9",
    ],
)
def test_invalid_lines(line: str) -> None:
    with pytest.raises(InvalidMessageError):
        decode(line)


def test_invalid_message_is_a_protocol_error() -> None:
    with pytest.raises(ProtocolError):
        decode("NOPE")


def test_coordinates_validated_on_construction() -> None:
    with pytest.raises(ValueError):
        MoveMessage(start_row=8, start_col=0, row=0, col=0)

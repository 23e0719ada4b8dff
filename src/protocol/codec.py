"""
Line oriented text protocol
---

Every message is a single line: a verb followed by space separated argument tokens, terminated by a newline.

ex.
* "CONNECT WHITE"
* "MOVE 6 5 4 5"
* "CHOSE QUEEN WHITE 0 4"
* "ERROR Lost connection to the opponent"
"""

from pydantic import ValidationError

from src.core.exceptions import InvalidMessageError
from src.protocol.messages import MESSAGE_TYPES, ErrorMessage, Message, Verb

LINE_TERMINATOR = "\n"


def encode(message: Message) -> str:
    """Message --> one newline-terminated line"""
    return " ".join([message.verb, *message.tokens()]) + LINE_TERMINATOR


def decode(line: str) -> Message:
    """One line (with or without the terminator) --> Message

    Raises InvalidMessageError for an empty line, an unknown verb, the wrong number of arguments,
    or arguments that do not validate (non-integer / out of range coordinates, unknown color, ...).
    """
    tokens = line.strip().split()
    if not tokens:
        raise InvalidMessageError("Received an empty line.")

    verb_token, *arguments = tokens
    if verb_token not in Verb.__members__:
        raise InvalidMessageError(f"Unknown verb: {verb_token!r}")
    message_type = MESSAGE_TYPES[Verb(verb_token)]

    if message_type is ErrorMessage:
        return ErrorMessage(message=" ".join(arguments) or None)

    field_names = list(message_type.model_fields)
    if len(arguments) != len(field_names):
        raise InvalidMessageError(
            f"{verb_token} expects {len(field_names)} argument(s) ({' '.join(field_names) or 'none'}), got {len(arguments)}: {line.strip()!r}"
        )

    try:
        return message_type(**dict(zip(field_names, arguments)))
    except ValidationError as e:
        raise InvalidMessageError(f"Cannot interpret {line.strip()!r}: {e}") from e

"""
Errors raised across layers.

Three families matter to a running game:
* ProtocolError: the peer sent something we cannot accept (bad line, wrong verb, illegal move).
* StreamClosedError: the byte stream to a peer broke or ended.
* InvariantError: board bookkeeping disagrees with itself. Never expected; indicates a bug.

Any of them ends the game it occurs in, and only that game.
"""


class ChessError(Exception):
    """Base class for every error raised by this package."""


# --- PROTOCOL ERRORS ---
class ProtocolError(ChessError):
    """The peer violated the protocol or the rules of the game."""


class InvalidMessageError(ProtocolError):
    """A line could not be decoded into a message (unknown verb, bad arguments, ...)."""


class UnexpectedMessageError(ProtocolError):
    """A well-formed message arrived, but not the one the current state expects."""


class IllegalMoveError(ProtocolError):
    """The rules engine rejected the move."""


class NotYourTurnError(ProtocolError):
    """A player tried to act while waiting for the opponent."""


class GameStateError(ProtocolError):
    """The game is not in a state that accepts the requested action."""


# --- STREAM ERRORS ---
class StreamClosedError(ChessError):
    """Reading from / writing to a peer failed or the peer closed the stream."""


# --- BUGS ---
class InvariantError(ChessError):
    """Board/piece bookkeeping mismatch. The legality checks and the mutation routine disagree."""


# --- PERSISTENCE ---
class RepositoryError(ChessError):
    """Archived game could not be found / stored."""

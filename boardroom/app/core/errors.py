"""
Error taxonomy for rejected client requests.

Every error here is reported to the offending connection only, as an
`error` event carrying the human-readable message. None of them is fatal:
the request is rejected and room state is left untouched.

GameError subclasses ValueError so callers that only care about
"bad input" can keep catching ValueError.
"""


class GameError(ValueError):
    """Base class for all request-level game errors"""
    default_message = "Request rejected"

    def __init__(self, message: str = None):
        super().__init__(message or self.default_message)

    @property
    def message(self) -> str:
        return self.args[0]


class RoomNotFound(GameError):
    default_message = "Game not found"


class RoomFull(GameError):
    default_message = "Game is full"


class NotYourTurn(GameError):
    default_message = "Not your turn"


class InvalidMove(GameError):
    default_message = "Invalid move"


class ColumnFull(InvalidMove):
    default_message = "Column is full"


class InvalidName(GameError):
    default_message = "Name must be between 2 and 15 characters"


class AlreadyInRoom(GameError):
    default_message = "You are already in a game"


class NotInRoom(GameError):
    default_message = "You are not a player in this game"


class MessageTooLong(GameError):
    default_message = "Message is too long (max 200 characters)"

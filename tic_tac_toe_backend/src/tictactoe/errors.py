"""Exception taxonomy for the game engine.

Every failure raised by the stores and the coordinator derives from
GameError and carries a short machine-readable ``code``. The HTTP layer maps
the four families (not found, invalid argument, invalid state, conflict) to
status codes; the core never deals with transport concerns.
"""


class GameError(Exception):
    """Base class for all engine failures."""

    code = "error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFound(GameError):
    code = "not_found"


class UnknownPlayer(NotFound):
    """The mover is not one of the players joined to the game."""

    code = "unknown_player"


class InvalidArgument(GameError):
    code = "invalid_argument"


class NameTooLong(InvalidArgument):
    code = "name_too_long"


class InvalidName(InvalidArgument):
    code = "invalid_name"


class InvalidEmail(InvalidArgument):
    code = "invalid_email"


class OutOfBounds(InvalidArgument):
    code = "out_of_bounds"


class InvalidState(GameError):
    code = "wrong_state"


class ActiveGame(InvalidState):
    """An active game cannot be deleted."""

    code = "active_conflict"


class Occupied(InvalidState):
    code = "occupied"


class WrongTurn(GameError):
    code = "wrong_turn"


class Conflict(GameError):
    code = "conflict"


class GameFull(Conflict):
    code = "full"


class DuplicatePlayer(Conflict):
    code = "duplicate"


class DuplicateEmail(Conflict):
    code = "duplicate_email"


class PlayerAlreadyActive(Conflict):
    """The player already sits in another game that is still active."""

    code = "global_active_conflict"

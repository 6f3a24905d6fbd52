"""
Errors raised by the rules engine, the game store and the HTTP layer.

Engine methods raise; the reducer turns InvalidActionError into a
rejected command and the server maps the rest to status codes.
"""


class MonopolyError(Exception):
    """Root of every worldpoly error."""


class GameNotFoundError(MonopolyError):
    """No game is stored under the requested id."""


class InvalidActionError(MonopolyError):
    """A command's preconditions do not hold.

    The message is the human-readable reason shown to the player.
    """


class UnknownPropertyError(MonopolyError):
    """A property id does not exist on the static board."""


class StaleStateError(MonopolyError):
    """A write was attempted against an outdated game version."""


class DatabaseError(MonopolyError):
    """The SQL store could not complete an operation."""


class ValidationError(MonopolyError):
    """Malformed settings, documents or request input."""

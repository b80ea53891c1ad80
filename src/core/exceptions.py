"""
Custom exceptions shared by all layers.

Every exception carries an ErrorKind, the API layer only looks at the kind to decide on a response status.
"""

from enum import StrEnum


class ErrorKind(StrEnum):
    INVALID_INPUT = "invalid input"
    INVALID_MOVE = "invalid move"
    NOT_FOUND = "not found"
    CONFLICT = "conflict"
    TOO_LARGE = "too large"
    CORRUPT = "corrupt"
    IO_FAILURE = "io failure"
    INTERNAL = "internal"


class GameError(Exception):
    """Top-level exception of this project."""

    kind: ErrorKind = ErrorKind.INTERNAL

    def __init__(self, message: str, *causes: BaseException) -> None:
        # causes are appended like "message: cause1: cause2"
        self.message = "".join([message, *(f": {cause}" for cause in causes)])
        super().__init__(self.message)


# -- Request / rule violations --
class InvalidInputError(GameError):
    """Malformed board or game id."""

    kind = ErrorKind.INVALID_INPUT


class InvalidRequestError(InvalidInputError):
    """Request body could not be interpreted."""


class InvalidMoveError(GameError):
    """Well-formed board, but not a legal transition from the stored one."""

    kind = ErrorKind.INVALID_MOVE


class GameFinishedError(GameError):
    """Move submitted against a game that already has a terminal status."""

    kind = ErrorKind.CONFLICT


class InternalGameError(GameError):
    kind = ErrorKind.INTERNAL


# -- Persistence --
class RepositoryError(GameError):
    """Anything that went wrong in the persistence layer."""

    kind = ErrorKind.IO_FAILURE


class NotFoundError(RepositoryError):
    kind = ErrorKind.NOT_FOUND


class RecordTooLargeError(RepositoryError):
    kind = ErrorKind.TOO_LARGE


class CorruptRecordError(RepositoryError):
    kind = ErrorKind.CORRUPT


class StorageIOError(RepositoryError):
    kind = ErrorKind.IO_FAILURE


class StoreClosedError(StorageIOError):
    """Operation attempted after the store was shut down."""

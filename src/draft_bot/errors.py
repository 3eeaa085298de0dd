"""Domain error codes and exceptions raised by the session core.

Errors propagate unchanged to the Discord layer, which decides how to present
them. ``str(err)`` is always the user-safe message.
"""

from __future__ import annotations

from enum import Enum


class ErrorCode(Enum):
    """Domain error codes."""

    ALREADY_MEMBER = "ALREADY_MEMBER"
    SESSION_CLOSED = "SESSION_CLOSED"
    OWNER_CANNOT_LEAVE = "OWNER_CANNOT_LEAVE"
    INVALID_CAPACITY = "INVALID_CAPACITY"
    NO_ACTIVE_SESSION = "NO_ACTIVE_SESSION"
    EMPTY_MESSAGE = "EMPTY_MESSAGE"
    OWNERSHIP_MISMATCH = "OWNERSHIP_MISMATCH"
    NOT_FOUND = "NOT_FOUND"
    ALREADY_EXISTS = "ALREADY_EXISTS"
    READ_ONLY = "READ_ONLY"
    INVALID_PARAMETER = "INVALID_PARAMETER"
    ANNOUNCEMENT_FAILED = "ANNOUNCEMENT_FAILED"


class DraftBotError(Exception):
    """Base domain error with code and user-safe message."""

    code: ErrorCode = ErrorCode.INVALID_PARAMETER

    def __init__(self, message: str, *, code: ErrorCode | None = None) -> None:
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code

    def __str__(self) -> str:
        return self.message

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.code.value}: {self.message!r})"


class AlreadyMemberError(DraftBotError):
    code = ErrorCode.ALREADY_MEMBER

    def __init__(self, user_id: str, session_id: str) -> None:
        super().__init__("You have already joined this session")
        self.user_id = user_id
        self.session_id = session_id


class SessionClosedError(DraftBotError):
    code = ErrorCode.SESSION_CLOSED

    def __init__(self, session_id: str) -> None:
        super().__init__("Can't join session - already closed")
        self.session_id = session_id


class OwnerCannotLeaveError(DraftBotError):
    code = ErrorCode.OWNER_CANNOT_LEAVE

    def __init__(self, user_id: str) -> None:
        super().__init__("Owner trying to leave - use `/delete` to delete the session")
        self.user_id = user_id


class InvalidCapacityError(DraftBotError):
    code = ErrorCode.INVALID_CAPACITY

    def __init__(self, requested: int, confirmed: int) -> None:
        if requested < 1:
            message = "Minimum allowed capacity is 1"
        else:
            message = (
                f"There are {confirmed} people already confirmed - some of them will need "
                f"to leave before I can lower the capacity to {requested}"
            )
        super().__init__(message)
        self.requested = requested
        self.confirmed = confirmed


class NoActiveSessionError(DraftBotError):
    code = ErrorCode.NO_ACTIVE_SESSION

    def __init__(self, message: str = "You don't have an open session") -> None:
        super().__init__(message)


class EmptyMessageError(DraftBotError):
    code = ErrorCode.EMPTY_MESSAGE

    def __init__(self) -> None:
        super().__init__("Unable to broadcast - empty message")


class OwnershipMismatchError(DraftBotError):
    code = ErrorCode.OWNERSHIP_MISMATCH

    def __init__(self, user_id: str, session_id: str) -> None:
        super().__init__("createdSessionId for user does not match ownerId for session")
        self.user_id = user_id
        self.session_id = session_id


class NotFoundError(DraftBotError):
    code = ErrorCode.NOT_FOUND


class SessionNotFoundError(NotFoundError):
    def __init__(self, server_id: str, session_id: str) -> None:
        super().__init__("Could not find session with provided id")
        self.server_id = server_id
        self.session_id = session_id


class UserNotFoundError(NotFoundError):
    def __init__(self, server_id: str, user_id: str) -> None:
        super().__init__("Could not find user with provided id")
        self.server_id = server_id
        self.user_id = user_id


class AlreadyExistsError(DraftBotError):
    code = ErrorCode.ALREADY_EXISTS

    def __init__(self, server_id: str, session_id: str) -> None:
        super().__init__("Session with provided id already exists")
        self.server_id = server_id
        self.session_id = session_id


class ReadOnlyError(DraftBotError):
    code = ErrorCode.READ_ONLY

    def __init__(self, operation: str) -> None:
        super().__init__(f"READ-ONLY: cannot {operation} on a snapshot view")
        self.operation = operation


class InvalidParameterError(DraftBotError):
    code = ErrorCode.INVALID_PARAMETER


class AnnouncementError(DraftBotError):
    code = ErrorCode.ANNOUNCEMENT_FAILED

    def __init__(self) -> None:
        super().__init__(
            "Cannot create a session - announcement channel was not set up. Bot might require a restart"
        )


__all__ = [
    "ErrorCode",
    "DraftBotError",
    "AlreadyMemberError",
    "SessionClosedError",
    "OwnerCannotLeaveError",
    "InvalidCapacityError",
    "NoActiveSessionError",
    "EmptyMessageError",
    "OwnershipMismatchError",
    "NotFoundError",
    "SessionNotFoundError",
    "UserNotFoundError",
    "AlreadyExistsError",
    "ReadOnlyError",
    "InvalidParameterError",
    "AnnouncementError",
]

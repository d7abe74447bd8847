# resumekit/models/errors.py
"""
Remote store error type.

Every failure raised by a ResumeStore implementation is a RemoteError.
The code lets stores and the CLI tell failures apart; the sync layer
treats all codes the same.
"""

from enum import Enum


class ErrorCode(Enum):
    """Failure categories reported by remote stores."""

    UNAUTHORIZED = "unauthorized"
    NOT_FOUND = "not_found"
    FORBIDDEN = "forbidden"
    VALIDATION = "validation"
    SERVER = "server"


class RemoteError(Exception):
    """
    Failure reported by a remote resume store.

    Attributes:
        message: Human-readable message (may be empty)
        code: Failure category
    """

    def __init__(self, message: str = "", code: ErrorCode = ErrorCode.SERVER) -> None:
        super().__init__(message)
        self.message = message
        self.code = code

    def __repr__(self) -> str:
        return f"RemoteError({self.message!r}, code={self.code.value})"


def unauthorized() -> RemoteError:
    return RemoteError("Please sign in to continue", ErrorCode.UNAUTHORIZED)


def not_found() -> RemoteError:
    return RemoteError("Resume not found", ErrorCode.NOT_FOUND)


def forbidden() -> RemoteError:
    return RemoteError("You don't have access to this resume", ErrorCode.FORBIDDEN)

"""Errors raised by the draw engine and its storage backends."""

from __future__ import annotations

from typing import List, Optional


class StorageError(Exception):
    """Base error for every failure talking to the document store."""


class TransportError(StorageError):
    """The store could not be reached, or answered with an error status."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


class DecodeError(StorageError):
    """The store answered with a JSON shape we do not understand."""


class PartialWriteError(StorageError):
    """A multi-step write stopped after some of its steps were applied.

    Nothing is rolled back: ``completed_steps`` lists what is now persisted.
    """

    def __init__(
        self,
        operation: str,
        place,
        completed_steps: List[str],
        failed_step: str,
        cause: Exception,
    ):
        self.operation = operation
        self.place = place
        self.completed_steps = list(completed_steps)
        self.failed_step = failed_step
        self.cause = cause
        super().__init__(
            f"{operation} stopped at {failed_step!r} after {self.completed_steps}: {cause}"
        )


class JarDecodeError(ValueError):
    """A storage key does not map back to a LINE conversation."""


class UnknownActionError(ValueError):
    """A postback payload names an action this bot does not know."""


class MessagingError(Exception):
    """The LINE Messaging API could not be reached, or rejected a call."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)

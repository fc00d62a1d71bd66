"""Rejection channel used to short-circuit a request pipeline."""

from __future__ import annotations

from typing import Any, TypeVar

import msgspec

from .exceptions import HttpError
from .http import Status

T = TypeVar("T")


class NotFound(msgspec.Struct, frozen=True):
    """No route matched the request path."""

    status: int = int(Status.NOT_FOUND)


class MethodNotAllowed(msgspec.Struct, frozen=True):
    """The path exists but not for the request method."""

    allowed: tuple[str, ...] = ()
    status: int = int(Status.METHOD_NOT_ALLOWED)


class PayloadTooLarge(msgspec.Struct, frozen=True):
    """The request body exceeded the configured limit."""

    limit: int = 0
    status: int = int(Status.PAYLOAD_TOO_LARGE)


class Rejection(Exception):
    """Opaque token raised out of a handler and handed to the recovery chain."""

    def __init__(self, reason: Any) -> None:
        super().__init__(reason)
        self.reason = reason

    def find(self, kind: type[T]) -> T | None:
        """Return the carried reason if it is an instance of ``kind``."""

        if isinstance(self.reason, kind):
            return self.reason
        return None

    def is_not_found(self) -> bool:
        return isinstance(self.reason, NotFound)

    def __repr__(self) -> str:
        return f"Rejection({self.reason!r})"


def reject(reason: Any) -> Rejection:
    """Wrap ``reason`` in a :class:`Rejection`."""

    return Rejection(reason)


def _rejection_for(status: Status, message: str | None, args: tuple[Any, ...]) -> Rejection:
    error = HttpError(status)
    if message is not None:
        error = error.with_message(message % args if args else message)
    return reject(error)


def reject_not_found(message: str | None = None, *args: Any) -> Rejection:
    return _rejection_for(Status.NOT_FOUND, message, args)


def reject_bad_request(message: str | None = None, *args: Any) -> Rejection:
    return _rejection_for(Status.BAD_REQUEST, message, args)


def reject_forbidden(message: str | None = None, *args: Any) -> Rejection:
    return _rejection_for(Status.FORBIDDEN, message, args)


__all__ = [
    "MethodNotAllowed",
    "NotFound",
    "PayloadTooLarge",
    "Rejection",
    "reject",
    "reject_bad_request",
    "reject_forbidden",
    "reject_not_found",
]

"""Status codes and their canonical reason phrases."""

from __future__ import annotations

from enum import IntEnum
from http import HTTPStatus as _HTTPStatus


class Status(IntEnum):
    """Codes callers reach for when classifying a failure."""

    OK = 200
    CREATED = 201
    NO_CONTENT = 204
    BAD_REQUEST = 400
    FORBIDDEN = 403
    NOT_FOUND = 404
    METHOD_NOT_ALLOWED = 405
    CONFLICT = 409
    PAYLOAD_TOO_LARGE = 413
    UNPROCESSABLE_ENTITY = 422
    TOO_MANY_REQUESTS = 429
    INTERNAL_SERVER_ERROR = 500
    BAD_GATEWAY = 502


def ensure_status(status: int | Status) -> int:
    """Return ``status`` as an ``int``; codes outside 100..599 raise ``ValueError``."""

    code = int(status)
    if not 100 <= code <= 599:
        raise ValueError(f"{status!r} is not an HTTP status code")
    return code


def canonical_reason(status: int | Status) -> str | None:
    """Return the registered phrase for ``status``, ``None`` for unregistered codes."""

    try:
        return _HTTPStatus(int(status)).phrase
    except ValueError:
        return None


def reason_phrase(status: int | Status) -> str:
    return canonical_reason(status) or ""


__all__ = ["Status", "canonical_reason", "ensure_status", "reason_phrase"]

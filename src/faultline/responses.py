"""Outgoing responses.

Factories here only set the content type. Hardening headers are added once,
by the application, after recovery has produced the final response.
"""

from __future__ import annotations

from typing import Any, Iterable

import msgspec
from msgspec import structs

from .http import Status

Headers = tuple[tuple[str, str], ...]

HARDENING_HEADERS: Headers = (
    ("strict-transport-security", "max-age=63072000; includeSubDomains"),
    ("x-content-type-options", "nosniff"),
    ("x-frame-options", "DENY"),
    ("content-security-policy", "default-src 'none'"),
)

_TEXT = "text/plain; charset=utf-8"
_JSON = "application/json"


class Response(msgspec.Struct, frozen=True):
    """Status, header pairs and an already-encoded body."""

    status: int = int(Status.OK)
    headers: Headers = ()
    body: bytes = b""

    def header(self, name: str) -> str | None:
        wanted = name.lower()
        return next((value for key, value in self.headers if key.lower() == wanted), None)

    @property
    def text(self) -> str:
        return self.body.decode("utf-8")

    def harden(self, extra: Iterable[tuple[str, str]] = HARDENING_HEADERS) -> "Response":
        """Return a copy carrying every header of ``extra`` this response does not set itself."""

        present = {key.lower() for key, _ in self.headers}
        missing = tuple(pair for pair in extra if pair[0].lower() not in present)
        if not missing:
            return self
        return structs.replace(self, headers=self.headers + missing)


def PlainTextResponse(text: str, *, status: int = int(Status.OK), headers: Headers = ()) -> Response:
    return Response(status=status, headers=(("content-type", _TEXT),) + headers, body=text.encode("utf-8"))


def JSONResponse(data: Any, *, status: int = int(Status.OK), headers: Headers = ()) -> Response:
    return Response(status=status, headers=(("content-type", _JSON),) + headers, body=msgspec.json.encode(data))


def EmptyResponse(status: int = int(Status.NO_CONTENT)) -> Response:
    return Response(status=status)


__all__ = ["HARDENING_HEADERS", "EmptyResponse", "JSONResponse", "PlainTextResponse", "Response"]

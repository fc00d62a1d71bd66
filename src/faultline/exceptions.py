"""Framework exception types and the HTTP error value."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Iterator

from .http import Status, canonical_reason, ensure_status

if TYPE_CHECKING:  # pragma: no cover - typing helpers only
    from .rejection import Rejection


class FaultlineError(Exception):
    """Base error type."""


class Failure(FaultlineError):
    """Chainable wrapper for failure values that are not exceptions.

    ``value`` is kept untouched so loggers and tests can inspect it. When the
    value exposes a ``cause`` (or ``source``) attribute of its own, that link is
    adapted too, so the chain survives the conversion.
    """

    def __init__(self, value: Any, cause: BaseException | None = None) -> None:
        super().__init__(value)
        self.value = value
        if cause is not None:
            self.__cause__ = cause

    def __str__(self) -> str:
        return str(self.value)


def as_failure(value: Any) -> BaseException:
    """Return ``value`` as an exception suitable for ``__cause__`` chaining."""

    return _as_failure(value, set())


def _as_failure(value: Any, seen: set[int]) -> BaseException:
    if isinstance(value, BaseException):
        return value
    seen.add(id(value))
    nested = getattr(value, "cause", None)
    if nested is None:
        nested = getattr(value, "source", None)
    if callable(nested):
        nested = nested()
    if nested is None or id(nested) in seen:
        return Failure(value)
    return Failure(value, _as_failure(nested, seen))


class HttpError(FaultlineError):
    """HTTP status, optional client message and optional operator-facing cause.

    Builder methods never mutate the receiver; each returns a new error. The
    cause is stored as ``__cause__`` and is only ever consumed by logging.
    """

    def __init__(self, status: int | Status, message: str | None = None, *, cause: Any = None) -> None:
        code = ensure_status(status)
        super().__init__(code, message)
        self._status = code
        self._message = None if message is None else str(message)
        # only the explicit cause chain is reported
        self.__suppress_context__ = True
        if cause is not None:
            self.__cause__ = as_failure(cause)

    @property
    def status(self) -> int:
        return self._status

    @property
    def message(self) -> str | None:
        return self._message

    @property
    def cause(self) -> BaseException | None:
        return self.__cause__

    def with_status(self, status: int | Status) -> "HttpError":
        """Return a copy carrying ``status``."""

        return HttpError(status, self._message, cause=self.__cause__)

    def with_message(self, message: str) -> "HttpError":
        """Return a copy carrying the client-visible ``message``."""

        return HttpError(self._status, message, cause=self.__cause__)

    def with_cause(self, cause: Any) -> "HttpError":
        """Return a copy whose cause chain starts at ``cause``."""

        return HttpError(self._status, self._message, cause=cause)

    with_source = with_cause

    def reject(self) -> "Rejection":
        """Lift the error into the pipeline's rejection channel."""

        from .rejection import reject

        return reject(self)

    def __str__(self) -> str:
        reason = canonical_reason(self._status)
        if reason is None:
            return f"fail with status {self._status}"
        return f"fail with status {self._status} {reason}"

    def __repr__(self) -> str:
        return f"HttpError(status={self._status}, message={self._message!r})"


def iter_causes(error: BaseException) -> Iterator[BaseException]:
    """Yield the links of ``error``'s cause chain, outermost first.

    Explicit causes win; implicit context is followed unless it was suppressed.
    A link already visited ends the walk.
    """

    seen = {id(error)}
    current = _next_link(error)
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        yield current
        current = _next_link(current)


def _next_link(error: BaseException) -> BaseException | None:
    if error.__cause__ is not None:
        return error.__cause__
    if error.__suppress_context__:
        return None
    return error.__context__


def status(code: int | Status) -> HttpError:
    return HttpError(code)


def ok() -> HttpError:
    return HttpError(Status.OK)


def no_content() -> HttpError:
    return HttpError(Status.NO_CONTENT)


def bad_request() -> HttpError:
    return HttpError(Status.BAD_REQUEST)


def forbidden() -> HttpError:
    return HttpError(Status.FORBIDDEN)


def not_found() -> HttpError:
    return HttpError(Status.NOT_FOUND)


def internal_server_error(cause: Any) -> HttpError:
    """Return a 500 error; the cause is required so operators can see what failed."""

    if cause is None:
        raise ValueError("internal_server_error requires a cause")
    return HttpError(Status.INTERNAL_SERVER_ERROR, cause=cause)


__all__ = [
    "Failure",
    "FaultlineError",
    "HttpError",
    "as_failure",
    "bad_request",
    "forbidden",
    "internal_server_error",
    "iter_causes",
    "no_content",
    "not_found",
    "ok",
    "status",
]

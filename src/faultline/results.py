"""Result values and the conversion of failures into rejections.

``Ok`` and ``Err`` let call sites keep a failure as a value and classify it
with an HTTP status only when they decide how it should surface:

    port = attempt(int, raw).client_err().unwrap()

Every conversion keeps the original failure as the cause of the resulting
:class:`~faultline.exceptions.HttpError`; nothing is discarded.
"""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Generic, Iterator, TypeVar, Union

from .exceptions import Failure, HttpError
from .http import Status, ensure_status
from .rejection import Rejection, reject

T = TypeVar("T")
U = TypeVar("U")
E = TypeVar("E")

MessageFactory = Callable[[], str]


@dataclass(slots=True, frozen=True)
class Ok(Generic[T]):
    value: T

    def is_ok(self) -> bool:
        return True

    def is_err(self) -> bool:
        return False

    def unwrap(self) -> T:
        return self.value

    def unwrap_or(self, default: Any) -> T:
        return self.value

    def map(self, func: Callable[[T], U]) -> "Ok[U]":
        return Ok(func(self.value))

    def client_err(self) -> "Ok[T]":
        return self

    def server_err(self) -> "Ok[T]":
        return self

    def with_err_status(self, status: int | Status) -> "Ok[T]":
        ensure_status(status)
        return self

    def with_err_msg(self, status: int | Status, message: MessageFactory) -> "Ok[T]":
        ensure_status(status)
        return self


@dataclass(slots=True, frozen=True)
class Err(Generic[E]):
    error: E

    def is_ok(self) -> bool:
        return False

    def is_err(self) -> bool:
        return True

    def unwrap(self) -> Any:
        """Raise the carried error; non-exception values are raised as :class:`Failure`."""

        if isinstance(self.error, BaseException):
            raise self.error
        raise Failure(self.error)

    def unwrap_or(self, default: U) -> U:
        return default

    def map(self, func: Callable[[Any], Any]) -> "Err[E]":
        return self

    def client_err(self) -> "Err[Rejection]":
        return self.with_err_status(Status.BAD_REQUEST)

    def server_err(self) -> "Err[Rejection]":
        return self.with_err_status(Status.INTERNAL_SERVER_ERROR)

    def with_err_status(self, status: int | Status) -> "Err[Rejection]":
        return Err(reject(HttpError(status, cause=self.error)))

    def with_err_msg(self, status: int | Status, message: MessageFactory) -> "Err[Rejection]":
        code = ensure_status(status)
        return Err(reject(HttpError(code, message(), cause=self.error)))


Result = Union[Ok[T], Err[E]]


def attempt(func: Callable[..., T], /, *args: Any, **kwargs: Any) -> Result[T, Exception]:
    """Call ``func`` and capture its outcome as a :data:`Result`."""

    try:
        return Ok(func(*args, **kwargs))
    except Exception as exc:
        return Err(exc)


async def attempt_async(func: Callable[..., Awaitable[T]], /, *args: Any, **kwargs: Any) -> Result[T, Exception]:
    """Await ``func`` and capture its outcome as a :data:`Result`."""

    try:
        return Ok(await func(*args, **kwargs))
    except Exception as exc:
        return Err(exc)


@contextmanager
def rejecting(
    status: int | Status = Status.BAD_REQUEST,
    message: str | MessageFactory | None = None,
) -> Iterator[None]:
    """Re-raise failures escaping the block as rejections carrying ``status``.

    Rejections raised inside the block propagate untouched and a raised
    ``HttpError`` keeps its own status and message. ``message`` may be a
    callable, in which case it only runs when the block fails.
    """

    code = ensure_status(status)
    try:
        yield
    except Rejection:
        raise
    except HttpError as exc:
        raise exc.reject() from None
    except Exception as exc:
        text = message() if callable(message) else message
        raise HttpError(code, text, cause=exc).reject() from exc


__all__ = [
    "Err",
    "MessageFactory",
    "Ok",
    "Result",
    "attempt",
    "attempt_async",
    "rejecting",
]

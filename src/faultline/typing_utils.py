"""Conversion of raw path and query values."""

from __future__ import annotations

import types
from typing import Any, Union, get_args, get_origin

import msgspec

from .http import Status
from .results import Err, Ok, Result, attempt

_TRUE = frozenset({"1", "true", "yes", "on"})
_FALSE = frozenset({"0", "false", "no", "off"})


def convert_primitive(value: str, annotation: Any, *, source: str) -> Any:
    """Convert ``value`` into ``annotation``.

    Failures raise a 400 :class:`~faultline.rejection.Rejection` naming
    ``source``; the parsing error is kept as its cause.
    """

    return (
        _convert(value, annotation)
        .with_err_msg(Status.BAD_REQUEST, lambda: f"invalid value for {source}")
        .unwrap()
    )


def _convert(value: str, annotation: Any) -> Result[Any, Exception]:
    origin = get_origin(annotation)
    if origin is Union or origin is types.UnionType:
        last: Result[Any, Exception] = Err(ValueError(f"no option of {annotation!r} accepted {value!r}"))
        for option in get_args(annotation):
            if option is type(None):
                continue
            last = _convert(value, option)
            if last.is_ok():
                return last
        return last
    if annotation in {str, Any} or annotation is None:
        return Ok(value)
    if annotation in {int, float}:
        return attempt(annotation, value)
    if annotation is bool:
        lowered = value.lower()
        if lowered in _TRUE:
            return Ok(True)
        if lowered in _FALSE:
            return Ok(False)
        return Err(ValueError(f"expected a boolean, got {value!r}"))
    return attempt(msgspec.convert, value, type=annotation, strict=False)


__all__ = ["convert_primitive"]

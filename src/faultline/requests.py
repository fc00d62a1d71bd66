"""The request object handed to route handlers."""

from __future__ import annotations

from functools import cached_property
from typing import Any, Mapping, TypeVar, get_type_hints
from urllib.parse import parse_qsl

import msgspec

from .http import Status
from .results import attempt, rejecting
from .typing_utils import convert_primitive

T = TypeVar("T")


class Request:
    """Read-only view of one incoming request.

    The decoding helpers reject with 400 when the client sent something
    unusable, so handlers never see a parser exception.
    """

    def __init__(
        self,
        *,
        method: str,
        path: str,
        headers: Mapping[str, str] | None = None,
        path_params: Mapping[str, str] | None = None,
        query_string: str = "",
        body: bytes | None = None,
    ) -> None:
        self.method = method.upper()
        self.path = path
        self.headers = {name.lower(): value for name, value in (headers or {}).items()}
        self.path_params = dict(path_params or {})
        self.query_string = query_string
        self.body = body or b""

    @cached_property
    def query_params(self) -> dict[str, list[str]]:
        """Every value sent for each query key, in arrival order."""

        params: dict[str, list[str]] = {}
        for key, value in parse_qsl(self.query_string, keep_blank_values=True):
            params.setdefault(key, []).append(value)
        return params

    def header(self, name: str, default: str | None = None) -> str | None:
        return self.headers.get(name.lower(), default)

    def text(self) -> str:
        return self.body.decode("utf-8")

    def query(self, model: type[T]) -> T:
        """Build ``model`` from the query string; the last value of a repeated key wins."""

        hints = get_type_hints(model)
        values = {
            key: convert_primitive(sent[-1], hints.get(key, str), source=f"query:{key}")
            for key, sent in self.query_params.items()
        }
        with rejecting(Status.BAD_REQUEST, "invalid query parameters"):
            return msgspec.convert(values, type=model)

    async def json(self, model: type[T] | None = None) -> T | Any:
        if not self.body:
            document = None
        else:
            document = (
                attempt(msgspec.json.decode, self.body)
                .with_err_msg(Status.BAD_REQUEST, lambda: "malformed JSON body")
                .unwrap()
            )
        if model is None:
            return document
        with rejecting(Status.BAD_REQUEST, "invalid request body"):
            return msgspec.convert(document, type=model)


__all__ = ["Request"]

"""In-process client for exercising an application from tests."""

from __future__ import annotations

from typing import Any, Mapping
from urllib.parse import urlencode

import msgspec

from .application import FaultlineApp
from .responses import Response


class TestClient:
    """Sends requests straight to :meth:`FaultlineApp.dispatch`.

    Used as an async context manager it also runs the startup and shutdown
    hooks, so rejections and recovery behave as they would behind a server.
    """

    __test__ = False

    def __init__(self, app: FaultlineApp) -> None:
        self.app = app

    async def __aenter__(self) -> "TestClient":
        await self.app.startup()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.app.shutdown()

    async def request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        content: bytes = b"",
        query: Mapping[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> Response:
        sent = dict(headers or {})
        if json is not None:
            content = msgspec.json.encode(json)
            sent.setdefault("content-type", "application/json")
        return await self.app.dispatch(
            method,
            path,
            query_string=urlencode(query or {}, doseq=True),
            headers=sent,
            body=content,
        )

    async def get(self, path: str, **kwargs: Any) -> Response:
        return await self.request("GET", path, **kwargs)

    async def post(self, path: str, **kwargs: Any) -> Response:
        return await self.request("POST", path, **kwargs)

    async def put(self, path: str, **kwargs: Any) -> Response:
        return await self.request("PUT", path, **kwargs)

    async def delete(self, path: str, **kwargs: Any) -> Response:
        return await self.request("DELETE", path, **kwargs)

"""Around-style middleware for route handlers."""

from __future__ import annotations

from typing import Awaitable, Callable, Sequence

from .requests import Request
from .responses import Response

Handler = Callable[[Request], Awaitable[Response]]
MiddlewareCallable = Callable[[Request, Handler], Awaitable[Response]]


def chain(middlewares: Sequence[MiddlewareCallable], endpoint: Handler) -> Handler:
    """Wrap ``endpoint`` so that ``middlewares[0]`` runs outermost.

    A middleware refuses a request by raising a rejection instead of awaiting
    the next handler; the rejection leaves the chain untouched.
    """

    handler = endpoint
    for middleware in reversed(middlewares):
        handler = _link(middleware, handler)
    return handler


def _link(middleware: MiddlewareCallable, downstream: Handler) -> Handler:
    async def call(request: Request) -> Response:
        return await middleware(request, downstream)

    return call


__all__ = ["Handler", "MiddlewareCallable", "chain"]

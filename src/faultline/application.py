"""The request pipeline and its recovery boundary."""

from __future__ import annotations

import inspect
import logging
from typing import Any, Awaitable, Callable, Iterable, Mapping, Union

import msgspec

from .config import AppConfig
from .exceptions import HttpError, internal_server_error
from .middleware import MiddlewareCallable, chain
from .recovery import Logger, recover, recover_fallback
from .rejection import PayloadTooLarge, Rejection, reject
from .requests import Request
from .responses import EmptyResponse, JSONResponse, PlainTextResponse, Response
from .routing import Endpoint, Route, Router
from .typing_utils import convert_primitive

RecoveryOutcome = Union[Response, Rejection]
RecoveryStep = Callable[[Rejection], Union[RecoveryOutcome, Awaitable[RecoveryOutcome]]]
Hook = Callable[[], Union[Awaitable[None], None]]
Scope = Mapping[str, Any]
Receive = Callable[[], Awaitable[Mapping[str, Any]]]
Send = Callable[[Mapping[str, Any]], Awaitable[None]]

logger = logging.getLogger(__name__)


async def _resolve(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value


class FaultlineApp:
    """Routes requests to handlers and turns every failure into a response.

    Rejections, raised :class:`HttpError` values and unexpected exceptions all
    end in :meth:`handle_rejection`: the built-in :func:`recover` first, then
    the steps registered with :meth:`recover`, then :func:`recover_fallback`.
    """

    def __init__(self, config: AppConfig | None = None, *, logger: Logger | None = None) -> None:
        self.config = config or AppConfig()
        self.logger = logger
        self.router = Router()
        self._middlewares: list[MiddlewareCallable] = []
        self._recovery_steps: list[RecoveryStep] = []
        self._hooks: dict[str, list[Hook]] = {"startup": [], "shutdown": []}

    @classmethod
    def from_config(cls, config: AppConfig | Mapping[str, Any], *, logger: Logger | None = None) -> "FaultlineApp":
        if not isinstance(config, AppConfig):
            config = msgspec.convert(config, type=AppConfig)
        return cls(config, logger=logger)

    def route(
        self, path: str, *, methods: Iterable[str], name: str | None = None
    ) -> Callable[[Endpoint], Endpoint]:
        def register(endpoint: Endpoint) -> Endpoint:
            self.router.add_route(path, methods=tuple(methods), endpoint=endpoint, name=name)
            return endpoint

        return register

    def get(self, path: str, *, name: str | None = None) -> Callable[[Endpoint], Endpoint]:
        return self.route(path, methods=("GET",), name=name)

    def post(self, path: str, *, name: str | None = None) -> Callable[[Endpoint], Endpoint]:
        return self.route(path, methods=("POST",), name=name)

    def put(self, path: str, *, name: str | None = None) -> Callable[[Endpoint], Endpoint]:
        return self.route(path, methods=("PUT",), name=name)

    def delete(self, path: str, *, name: str | None = None) -> Callable[[Endpoint], Endpoint]:
        return self.route(path, methods=("DELETE",), name=name)

    def include(self, *handlers: Endpoint) -> None:
        self.router.include(handlers)

    def add_middleware(self, middleware: MiddlewareCallable) -> None:
        """Append ``middleware``; the first one added runs outermost."""

        self._middlewares.append(middleware)

    def recover(self, step: RecoveryStep) -> RecoveryStep:
        """Register ``step`` to handle rejections the built-in recovery passes on.

        Steps run in registration order. Returning a :class:`Response` ends the
        chain; returning the rejection hands it to the next step.
        """

        self._recovery_steps.append(step)
        return step

    async def handle_rejection(self, rejection: Rejection) -> Response:
        """Run the recovery chain for ``rejection``; always yields a response."""

        outcome: RecoveryOutcome = recover(rejection, logger=self.logger, config=self.config.recovery)
        for step in self._recovery_steps:
            if isinstance(outcome, Response):
                return outcome
            outcome = await _resolve(step(outcome))
            if not isinstance(outcome, (Response, Rejection)):
                raise TypeError(f"recovery step {step!r} returned {type(outcome).__name__}")
        if isinstance(outcome, Response):
            return outcome
        return recover_fallback(outcome, logger=self.logger)

    def on_startup(self, hook: Hook) -> Hook:
        self._hooks["startup"].append(hook)
        return hook

    def on_shutdown(self, hook: Hook) -> Hook:
        self._hooks["shutdown"].append(hook)
        return hook

    async def startup(self) -> None:
        for hook in self._hooks["startup"]:
            await _resolve(hook())

    async def shutdown(self) -> None:
        for hook in self._hooks["shutdown"]:
            await _resolve(hook())

    async def dispatch(
        self,
        method: str,
        path: str,
        *,
        query_string: str | None = None,
        headers: Mapping[str, str] | None = None,
        body: bytes | None = None,
    ) -> Response:
        """Run one request through routing, the handler and, on failure, recovery.

        Whatever the outcome, the response gets the hardening headers when
        ``config.security_headers`` is set.
        """

        path, _, inline_query = path.partition("?")
        query = "&".join(part for part in (query_string, inline_query) if part)
        response = await self._respond(Request(method=method, path=path, headers=headers, query_string=query, body=body))
        if self.config.security_headers:
            return response.harden()
        return response

    async def _respond(self, request: Request) -> Response:
        try:
            limit = self.config.max_request_body_bytes
            if limit is not None and len(request.body) > limit:
                raise reject(PayloadTooLarge(limit=limit))
            found = self.router.find(request.method, request.path)
            request.path_params = dict(found.params)

            async def endpoint(req: Request) -> Response:
                return await self._call_endpoint(found.route, req)

            return await chain(self._middlewares, endpoint)(request)
        except Rejection as rejection:
            return await self.handle_rejection(rejection)
        except HttpError as error:
            return await self.handle_rejection(error.reject())
        except Exception as exc:
            return await self.handle_rejection(internal_server_error(exc).reject())

    async def _call_endpoint(self, route: Route, request: Request) -> Response:
        arguments = {}
        for name, parameter in route.signature.parameters.items():
            value = await self._bind(route, request, name, parameter)
            if value is not inspect.Parameter.empty:
                arguments[name] = value
        return _as_response(await _resolve(route.endpoint(**arguments)))

    async def _bind(self, route: Route, request: Request, name: str, parameter: inspect.Parameter) -> Any:
        """Return the value for one handler parameter, or ``Parameter.empty`` to use its default."""

        annotation = route.type_hints.get(name, parameter.annotation)
        if annotation is Request:
            return request
        if name in route.param_names:
            if annotation is inspect.Parameter.empty:
                annotation = str
            return convert_primitive(request.path_params[name], annotation, source=name)
        if isinstance(annotation, type) and issubclass(annotation, msgspec.Struct):
            return await request.json(annotation)
        if parameter.default is not inspect.Parameter.empty:
            return inspect.Parameter.empty
        raise TypeError(f"cannot bind parameter {name!r} of {route.endpoint!r}")

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        kind = scope.get("type")
        if kind == "http":
            await self._serve_http(scope, receive, send)
        elif kind == "lifespan":
            await self._serve_lifespan(receive, send)
        else:
            raise RuntimeError(f"unsupported ASGI scope type {kind!r}")

    async def _serve_http(self, scope: Scope, receive: Receive, send: Send) -> None:
        response = await self.dispatch(
            scope["method"],
            scope["path"],
            query_string=(scope.get("query_string") or b"").decode("latin-1"),
            headers={name.decode("latin-1"): value.decode("latin-1") for name, value in scope.get("headers", [])},
            body=await _receive_body(receive, self.config.max_request_body_bytes),
        )
        raw_headers = [(name.encode("latin-1"), value.encode("latin-1")) for name, value in response.headers]
        await send({"type": "http.response.start", "status": response.status, "headers": raw_headers})
        await send({"type": "http.response.body", "body": response.body})

    async def _serve_lifespan(self, receive: Receive, send: Send) -> None:
        while True:
            event = (await receive()).get("type")
            if event == "lifespan.startup":
                try:
                    await self.startup()
                except Exception as exc:
                    logger.exception("startup hook failed")
                    await send({"type": "lifespan.startup.failed", "message": str(exc)})
                    return
                await send({"type": "lifespan.startup.complete"})
            elif event == "lifespan.shutdown":
                await self.shutdown()
                await send({"type": "lifespan.shutdown.complete"})
                return


async def _receive_body(receive: Receive, limit: int | None) -> bytes:
    """Collect the request body, stopping early once it grows past ``limit``."""

    chunks = bytearray()
    while True:
        message = await receive()
        if message.get("type") != "http.request":
            break
        chunks += message.get("body", b"")
        if not message.get("more_body", False) or (limit is not None and len(chunks) > limit):
            break
    return bytes(chunks)


def _as_response(result: Any) -> Response:
    if isinstance(result, Response):
        return result
    if result is None:
        return EmptyResponse()
    if isinstance(result, str):
        return PlainTextResponse(result)
    return JSONResponse(result)


__all__ = ["FaultlineApp", "RecoveryStep"]

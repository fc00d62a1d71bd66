"""Path routing.

Placeholders are ``{name}`` (one segment) or ``{name:path}`` (the rest of the
path, slashes included). A path nobody serves rejects with :class:`NotFound`;
a path served only under other verbs rejects with :class:`MethodNotAllowed`.
"""

from __future__ import annotations

import inspect
import re
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Iterable, Mapping, Sequence, get_type_hints

import msgspec
import rure
from rure.regex import RegexObject

from .rejection import MethodNotAllowed, NotFound, reject

Endpoint = Callable[..., Awaitable[Any] | Any]

_PLACEHOLDER = re.compile(r"\{([A-Za-z_]\w*)(?::(\w+))?\}")
_SEGMENTS = {None: "[^/]+", "path": ".*"}
_ROUTE_ATTR = "__faultline_route__"


class RouteInfo(msgspec.Struct, frozen=True):
    """Routing metadata left on a function by :func:`route`."""

    path: str
    methods: tuple[str, ...]
    name: str | None = None


@dataclass(slots=True, frozen=True)
class Route:
    path: str
    methods: tuple[str, ...]
    endpoint: Endpoint
    name: str | None
    pattern: RegexObject
    param_names: tuple[str, ...]
    signature: inspect.Signature
    type_hints: Mapping[str, Any]

    def serves(self, method: str) -> bool:
        return method in self.methods or "*" in self.methods

    def match(self, path: str) -> dict[str, str] | None:
        captures = self.pattern.match(path)
        if captures is None:
            return None
        return {name: captures.group(name) for name in self.param_names}


@dataclass(slots=True, frozen=True)
class RouteMatch:
    route: Route
    params: Mapping[str, str]


def compile_path(path: str) -> tuple[RegexObject, tuple[str, ...]]:
    """Compile a route template; unknown converters raise ``ValueError``."""

    names: list[str] = []

    def placeholder(found: re.Match[str]) -> str:
        name, converter = found.groups()
        if converter not in _SEGMENTS:
            raise ValueError(f"unsupported path converter {converter!r} in {path!r}")
        names.append(name)
        return f"(?P<{name}>{_SEGMENTS[converter]})"

    return rure.compile(f"^{_PLACEHOLDER.sub(placeholder, path)}$"), tuple(names)


class Router:
    def __init__(self) -> None:
        self.routes: list[Route] = []

    def add_route(
        self,
        path: str,
        *,
        methods: Sequence[str],
        endpoint: Endpoint,
        name: str | None = None,
    ) -> Route:
        pattern, param_names = compile_path(path)
        route = Route(
            path=path,
            methods=tuple(dict.fromkeys(method.upper() for method in methods)),
            endpoint=endpoint,
            name=name,
            pattern=pattern,
            param_names=param_names,
            signature=inspect.signature(endpoint),
            type_hints=get_type_hints(endpoint),
        )
        self.routes.append(route)
        return route

    def find(self, method: str, path: str) -> RouteMatch:
        """Return the first route registered for ``method`` on ``path``, or reject."""

        method = method.upper()
        allowed: list[str] = []
        for route in self.routes:
            params = route.match(path)
            if params is None:
                continue
            if route.serves(method):
                return RouteMatch(route=route, params=params)
            allowed.extend(route.methods)
        if allowed:
            raise reject(MethodNotAllowed(allowed=tuple(dict.fromkeys(allowed))))
        raise reject(NotFound())

    def include(self, handlers: Iterable[Endpoint]) -> None:
        """Register functions decorated with :func:`route`, :func:`get` or :func:`post`."""

        for handler in handlers:
            info: RouteInfo | None = getattr(handler, _ROUTE_ATTR, None)
            if info is None:
                raise ValueError(f"{handler!r} has no route metadata")
            self.add_route(info.path, methods=info.methods, endpoint=handler, name=info.name)


def route(path: str, *, methods: Sequence[str], name: str | None = None) -> Callable[[Endpoint], Endpoint]:
    def mark(func: Endpoint) -> Endpoint:
        setattr(func, _ROUTE_ATTR, RouteInfo(path=path, methods=tuple(methods), name=name))
        return func

    return mark


def get(path: str, *, name: str | None = None) -> Callable[[Endpoint], Endpoint]:
    return route(path, methods=("GET",), name=name)


def post(path: str, *, name: str | None = None) -> Callable[[Endpoint], Endpoint]:
    return route(path, methods=("POST",), name=name)


__all__ = ["Route", "RouteInfo", "RouteMatch", "Router", "compile_path", "get", "post", "route"]

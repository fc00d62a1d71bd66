"""Serving a :class:`FaultlineApp` with Granian."""

from __future__ import annotations

from typing import Any

import msgspec
from granian import Granian

from .application import FaultlineApp

TARGET = f"{__name__}:load_app"

_served: FaultlineApp | None = None


class ServerConfig(msgspec.Struct, frozen=True):
    host: str = "127.0.0.1"
    port: int = 8000
    interface: str = "asgi"
    loop: str = "auto"
    workers: int = 1

    def granian_options(self) -> dict[str, Any]:
        if self.workers < 1:
            raise ValueError("workers must be at least 1")
        return {
            "address": self.host,
            "port": self.port,
            "interface": self.interface,
            "loop": self.loop,
            "workers": self.workers,
        }


def load_app() -> FaultlineApp:
    """Return the application handed to :func:`create_server` in this process."""

    if _served is None:
        raise RuntimeError("no faultline application is being served")
    return _served


def create_server(app: FaultlineApp, config: ServerConfig | None = None) -> Granian:
    global _served
    options = (config or ServerConfig()).granian_options()
    _served = app
    return Granian(TARGET, **options)


def run(app: FaultlineApp, config: ServerConfig | None = None) -> None:
    """Serve ``app`` until Granian exits."""

    global _served
    server = create_server(app, config)
    try:
        server.serve(target_loader=load_app, wrap_loader=False)
    finally:
        _served = None

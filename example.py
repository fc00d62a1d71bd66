"""Minimal faultline application.

Run ``pip install -e .`` once, then ``python example.py`` to serve a small
inventory API on ``http://127.0.0.1:8000``. Try:

* ``GET /items/1`` for a success,
* ``GET /items/99`` for a 404 carrying a client message,
* ``GET /items/abc`` for a 400 produced by path conversion,
* ``GET /reports/q3`` for an opaque 500 whose cause only shows up in the log,
* ``GET /brew`` for a custom rejection handled by an extra recovery step.

Set ``FAULTLINE_PORT`` to listen elsewhere.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from faultline import FaultlineApp, Rejection, Status, attempt, internal_server_error, reject, reject_forbidden
from faultline.requests import Request
from faultline.responses import PlainTextResponse, Response
from faultline.server import ServerConfig, run

_ITEMS = {1: {"id": 1, "name": "Rocket"}, 2: {"id": 2, "name": "Portal"}}


def create_app() -> FaultlineApp:
    """Instantiate the demo application."""

    app = FaultlineApp()

    @app.get("/items/{item_id}")
    async def read_item(item_id: int) -> dict[str, object]:
        return attempt(_ITEMS.__getitem__, item_id).with_err_msg(
            Status.NOT_FOUND, lambda: f"item {item_id} does not exist"
        ).unwrap()

    @app.get("/reports/{name}")
    async def read_report(name: str) -> str:
        path = Path("reports") / f"{name}.txt"
        try:
            return path.read_text(encoding="utf-8")
        except OSError as exc:
            raise internal_server_error(exc).reject()

    @app.post("/admin")
    async def admin(request: Request) -> str:
        if request.header("x-admin") != "yes":
            raise reject_forbidden("admin header missing")
        return "welcome"

    @app.get("/brew")
    async def brew() -> str:
        raise reject("teapot")

    @app.recover
    def teapot(rejection: Rejection) -> Response | Rejection:
        if rejection.find(str) == "teapot":
            return PlainTextResponse("short and stout", status=418)
        return rejection

    return app


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    run(create_app(), ServerConfig(port=int(os.getenv("FAULTLINE_PORT", "8000"))))

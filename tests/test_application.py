from __future__ import annotations

import logging
from typing import Any, AsyncIterator

import msgspec
import pytest
import pytest_asyncio

from faultline.application import FaultlineApp
from faultline.config import AppConfig
from faultline.exceptions import bad_request, internal_server_error, not_found
from faultline.http import Status
from faultline.rejection import NotFound, Rejection, reject
from faultline.requests import Request
from faultline.responses import HARDENING_HEADERS, JSONResponse, PlainTextResponse, Response
from faultline.results import attempt, rejecting
from faultline.testing import TestClient

LOGGER = "faultline.recovery"


class CreateUser(msgspec.Struct):
    email: str


class QuotaExceeded(msgspec.Struct, frozen=True):
    remaining: int = 0


class UserStore:
    def __init__(self) -> None:
        self._users: dict[int, dict[str, Any]] = {1: {"id": 1, "email": "ada@example.com"}}

    def fetch(self, user_id: int) -> dict[str, Any]:
        return dict(self._users[user_id])

    def create(self, payload: CreateUser) -> dict[str, Any]:
        user_id = max(self._users) + 1
        record = {"id": user_id, "email": payload.email}
        self._users[user_id] = record
        return dict(record)


@pytest_asyncio.fixture
async def app() -> AsyncIterator[FaultlineApp]:
    store = UserStore()
    application = FaultlineApp()

    @application.get("/users/{user_id}")
    async def read_user(user_id: int) -> dict[str, Any]:
        return attempt(store.fetch, user_id).with_err_msg(
            Status.NOT_FOUND, lambda: f"no user {user_id}"
        ).unwrap()

    @application.post("/users")
    async def create_user(payload: CreateUser) -> Response:
        if "@" not in payload.email:
            raise bad_request().with_message("invalid email").reject()
        return JSONResponse(store.create(payload), status=int(Status.CREATED))

    @application.get("/reports/{name}")
    async def report(name: str) -> str:
        try:
            raise FileNotFoundError(2, "No such file or directory", f"/srv/reports/{name}")
        except OSError as exc:
            raise internal_server_error(exc).reject()

    @application.get("/plain")
    async def plain(request: Request) -> str:
        return f"hello {request.query_params.get('name', ['world'])[-1]}"

    @application.delete("/users/{user_id}")
    async def delete_user(user_id: int) -> None:
        return None

    @application.get("/crash")
    async def crash() -> str:
        raise RuntimeError("database password is hunter2")

    @application.get("/raw-error")
    async def raw_error() -> str:
        raise not_found().with_message("gone fishing")

    @application.get("/quota")
    async def quota() -> str:
        raise reject(QuotaExceeded(remaining=0))

    yield application


@pytest.mark.asyncio
async def test_success_responses(app: FaultlineApp) -> None:
    async with TestClient(app) as client:
        user = await client.get("/users/1")
        plain = await client.get("/plain", query={"name": "ada"})
        deleted = await client.delete("/users/1")
    assert user.status == 200
    assert msgspec.json.decode(user.body) == {"id": 1, "email": "ada@example.com"}
    assert plain.text == "hello ada"
    assert deleted.status == 204
    for header, value in HARDENING_HEADERS:
        assert (header, value) in plain.headers


@pytest.mark.asyncio
async def test_struct_body_is_bound(app: FaultlineApp) -> None:
    async with TestClient(app) as client:
        created = await client.post("/users", json={"email": "grace@example.com"})
        invalid = await client.post("/users", json={"email": "nope"})
        malformed = await client.post("/users", content=b"{oops")
    assert created.status == 201
    assert msgspec.json.decode(created.body)["email"] == "grace@example.com"
    assert (invalid.status, invalid.text) == (400, "invalid email")
    assert (malformed.status, malformed.text) == (400, "malformed JSON body")


@pytest.mark.asyncio
async def test_lookup_failure_renders_message(app: FaultlineApp, caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.ERROR, logger=LOGGER)
    async with TestClient(app) as client:
        response = await client.get("/users/42")
    assert response.status == 404
    assert response.text == "no user 42"
    messages = [record.getMessage() for record in caplog.records if record.name == LOGGER]
    assert messages == ["fail with status 404 Not Found", "  -> 42"]


@pytest.mark.asyncio
async def test_path_conversion_failure_is_bad_request(app: FaultlineApp) -> None:
    async with TestClient(app) as client:
        response = await client.get("/users/not-a-number")
    assert response.status == 400
    assert response.text == "invalid value for user_id"


@pytest.mark.asyncio
async def test_server_error_hides_cause(app: FaultlineApp, caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.ERROR, logger=LOGGER)
    async with TestClient(app) as client:
        response = await client.get("/reports/q3.csv")
    assert response.status == 500
    assert response.text == "Internal Server Error"
    assert "/srv/reports" not in response.text
    assert any("/srv/reports/q3.csv" in record.getMessage() for record in caplog.records)


@pytest.mark.asyncio
async def test_unexpected_exception_becomes_opaque_500(app: FaultlineApp, caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.ERROR, logger=LOGGER)
    async with TestClient(app) as client:
        response = await client.get("/crash")
    assert response.status == 500
    assert response.text == "Internal Server Error"
    assert "hunter2" not in response.text
    assert any("hunter2" in record.getMessage() for record in caplog.records)


@pytest.mark.asyncio
async def test_raised_http_error_is_lifted(app: FaultlineApp) -> None:
    async with TestClient(app) as client:
        response = await client.get("/raw-error")
    assert (response.status, response.text) == (404, "gone fishing")


@pytest.mark.asyncio
async def test_routing_rejections_use_fallback(app: FaultlineApp) -> None:
    async with TestClient(app) as client:
        missing = await client.get("/nowhere")
        wrong_method = await client.put("/users/1")
    assert (missing.status, missing.text) == (404, "Not Found")
    assert wrong_method.status == 405
    assert wrong_method.header("allow") == "GET, DELETE"


@pytest.mark.asyncio
async def test_foreign_rejection_reaches_custom_recovery(app: FaultlineApp) -> None:
    seen: list[Rejection] = []

    @app.recover
    async def ignore(rejection: Rejection) -> Response | Rejection:
        seen.append(rejection)
        return rejection

    @app.recover
    def quota_exceeded(rejection: Rejection) -> Response | Rejection:
        reason = rejection.find(QuotaExceeded)
        if reason is None:
            return rejection
        return PlainTextResponse("slow down", status=int(Status.TOO_MANY_REQUESTS))

    async with TestClient(app) as client:
        limited = await client.get("/quota")
        missing = await client.get("/nowhere")
        handled = await client.get("/raw-error")
    assert (limited.status, limited.text) == (429, "slow down")
    assert missing.status == 404
    assert handled.status == 404
    assert [rejection.find(QuotaExceeded) is not None for rejection in seen] == [True, False]
    assert seen[1].find(NotFound) is not None


@pytest.mark.asyncio
async def test_unhandled_foreign_rejection_is_opaque(app: FaultlineApp) -> None:
    async with TestClient(app) as client:
        response = await client.get("/quota")
    assert response.status == 500
    assert "remaining" not in response.text


@pytest.mark.asyncio
async def test_recovery_step_must_return_response_or_rejection(app: FaultlineApp) -> None:
    @app.recover
    def broken(rejection: Rejection) -> Any:
        return "oops"

    with pytest.raises(TypeError):
        await app.handle_rejection(reject(NotFound()))


@pytest.mark.asyncio
async def test_body_limit_rejects_large_payloads() -> None:
    app = FaultlineApp(AppConfig(max_request_body_bytes=8))

    @app.post("/upload")
    async def upload(request: Request) -> str:
        return str(len(request.body))

    async with TestClient(app) as client:
        small = await client.post("/upload", content=b"1234")
        large = await client.post("/upload", content=b"123456789")
    assert small.text == "4"
    assert large.status == 413


@pytest.mark.asyncio
async def test_injected_logger_receives_chain(caplog: pytest.LogCaptureFixture) -> None:
    custom = logging.getLogger("tests.audit")
    caplog.set_level(logging.ERROR, logger="tests.audit")
    app = FaultlineApp(logger=custom)

    @app.get("/fail")
    async def fail() -> str:
        return attempt(int, "x").server_err().unwrap()

    async with TestClient(app) as client:
        response = await client.get("/fail")
    assert response.status == 500
    names = {record.name for record in caplog.records}
    assert names == {"tests.audit"}


@pytest.mark.asyncio
async def test_lifecycle_hooks_run() -> None:
    app = FaultlineApp()
    events: list[str] = []

    @app.on_startup
    async def started() -> None:
        events.append("startup")

    @app.on_shutdown
    def stopped() -> None:
        events.append("shutdown")

    async with TestClient(app):
        events.append("request")
    assert events == ["startup", "request", "shutdown"]


@pytest.mark.asyncio
async def test_unbindable_parameter_is_server_error() -> None:
    app = FaultlineApp()

    @app.get("/odd")
    async def odd(mystery: UserStore) -> str:
        return "unreachable"

    async with TestClient(app) as client:
        response = await client.get("/odd")
    assert response.status == 500


@pytest.mark.asyncio
async def test_recovered_responses_are_hardened(app: FaultlineApp) -> None:
    async with TestClient(app) as client:
        missing = await client.get("/nowhere")
        crashed = await client.get("/crash")
        deleted = await client.delete("/users/1")
    for response in (missing, crashed, deleted):
        for header, value in HARDENING_HEADERS:
            assert (header, value) in response.headers


@pytest.mark.asyncio
async def test_hardening_headers_can_be_disabled() -> None:
    app = FaultlineApp(AppConfig(security_headers=False))

    @app.get("/x")
    async def x() -> str:
        return "x"

    async with TestClient(app) as client:
        found = await client.get("/x")
        missing = await client.get("/missing")
    assert (found.status, missing.status) == (200, 404)
    for response in (found, missing):
        assert response.header("x-frame-options") is None
        assert response.headers == (("content-type", "text/plain; charset=utf-8"),)


@pytest.mark.asyncio
async def test_http_error_raised_in_rejecting_block_keeps_status() -> None:
    app = FaultlineApp()

    @app.get("/accounts/{name}")
    async def account(name: str) -> str:
        with rejecting(Status.BAD_REQUEST, "unreadable account"):
            if name != "ada":
                raise not_found().with_message(f"no account {name}")
            return name

    async with TestClient(app) as client:
        found = await client.get("/accounts/ada")
        missing = await client.get("/accounts/bob")
    assert (found.status, found.text) == (200, "ada")
    assert (missing.status, missing.text) == (404, "no account bob")

"""HTTP error classification and recovery for asynchronous request pipelines."""

from .application import FaultlineApp
from .config import AppConfig, RecoveryConfig
from .exceptions import (
    Failure,
    FaultlineError,
    HttpError,
    bad_request,
    forbidden,
    internal_server_error,
    iter_causes,
    no_content,
    not_found,
    ok,
    status,
)
from .http import Status, canonical_reason, reason_phrase
from .recovery import log_cause_chain, recover, recover_fallback, render_error
from .rejection import (
    MethodNotAllowed,
    NotFound,
    PayloadTooLarge,
    Rejection,
    reject,
    reject_bad_request,
    reject_forbidden,
    reject_not_found,
)
from .requests import Request
from .responses import EmptyResponse, JSONResponse, PlainTextResponse, Response
from .results import Err, Ok, Result, attempt, attempt_async, rejecting
from .routing import get, post, route
from .testing import TestClient

__all__ = [
    "AppConfig",
    "EmptyResponse",
    "Err",
    "Failure",
    "FaultlineApp",
    "FaultlineError",
    "HttpError",
    "JSONResponse",
    "MethodNotAllowed",
    "NotFound",
    "Ok",
    "PayloadTooLarge",
    "PlainTextResponse",
    "RecoveryConfig",
    "Rejection",
    "Request",
    "Response",
    "Result",
    "Status",
    "TestClient",
    "attempt",
    "attempt_async",
    "bad_request",
    "canonical_reason",
    "forbidden",
    "get",
    "internal_server_error",
    "iter_causes",
    "log_cause_chain",
    "no_content",
    "not_found",
    "ok",
    "post",
    "reason_phrase",
    "recover",
    "recover_fallback",
    "reject",
    "reject_bad_request",
    "reject_forbidden",
    "reject_not_found",
    "rejecting",
    "render_error",
    "route",
    "status",
]

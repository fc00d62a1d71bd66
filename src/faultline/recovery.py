"""Recovery boundary turning rejections into client-visible responses.

:func:`recover` is the only place where the text sent for an
:class:`~faultline.exceptions.HttpError` is decided. The cause chain goes to
the log, never to the body.
"""

from __future__ import annotations

import logging
from typing import Union

from .config import RecoveryConfig
from .exceptions import HttpError, iter_causes
from .http import Status, reason_phrase
from .rejection import MethodNotAllowed, NotFound, PayloadTooLarge, Rejection
from .responses import PlainTextResponse, Response

Logger = Union[logging.Logger, logging.LoggerAdapter]

_DEFAULT_CONFIG = RecoveryConfig()


def recover(
    rejection: Rejection,
    *,
    logger: Logger | None = None,
    config: RecoveryConfig | None = None,
) -> Response | Rejection:
    """Render ``rejection`` if it carries an :class:`HttpError`, else hand it back."""

    error = rejection.find(HttpError)
    if error is None:
        return rejection
    cfg = config or _DEFAULT_CONFIG
    log_cause_chain(error, _resolve_logger(logger, cfg), config=cfg)
    return render_error(error)


def render_error(error: HttpError) -> Response:
    """Build the plain-text response for ``error`` without touching its cause."""

    body = error.message if error.message is not None else reason_phrase(error.status)
    return PlainTextResponse(body, status=error.status)


def log_cause_chain(
    error: BaseException,
    logger: Logger,
    *,
    config: RecoveryConfig | None = None,
) -> int:
    """Log ``error`` and every link below it at ERROR; return the number of links."""

    cfg = config or _DEFAULT_CONFIG
    logger.error("%s", error)
    depth = 0
    for depth, cause in enumerate(iter_causes(error), start=1):
        logger.error("%s%s", cfg.link_prefix(depth), cause)
    return depth


def recover_fallback(rejection: Rejection, *, logger: Logger | None = None) -> Response:
    """Terminal step: render framework rejections and hide anything unknown behind a 500."""

    if rejection.find(NotFound) is not None:
        return PlainTextResponse(reason_phrase(Status.NOT_FOUND), status=int(Status.NOT_FOUND))
    not_allowed = rejection.find(MethodNotAllowed)
    if not_allowed is not None:
        return PlainTextResponse(
            reason_phrase(Status.METHOD_NOT_ALLOWED),
            status=int(Status.METHOD_NOT_ALLOWED),
            headers=(("allow", ", ".join(not_allowed.allowed)),),
        )
    if rejection.find(PayloadTooLarge) is not None:
        return PlainTextResponse(reason_phrase(Status.PAYLOAD_TOO_LARGE), status=int(Status.PAYLOAD_TOO_LARGE))
    error = rejection.find(HttpError)
    if error is not None:
        return render_error(error)
    _resolve_logger(logger, _DEFAULT_CONFIG).warning("unhandled rejection: %r", rejection.reason)
    return PlainTextResponse(
        reason_phrase(Status.INTERNAL_SERVER_ERROR),
        status=int(Status.INTERNAL_SERVER_ERROR),
    )


def _resolve_logger(candidate: Logger | None, config: RecoveryConfig) -> Logger:
    if candidate is not None:
        return candidate
    return logging.getLogger(config.logger_name)


__all__ = [
    "Logger",
    "log_cause_chain",
    "recover",
    "recover_fallback",
    "render_error",
]

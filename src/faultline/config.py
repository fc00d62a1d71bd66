"""Application configuration objects."""

from __future__ import annotations

from msgspec import Struct


class RecoveryConfig(Struct, frozen=True):
    """How the recovery boundary logs cause chains."""

    logger_name: str = "faultline.recovery"
    chain_prefix: str = "-> "
    chain_indent: str = "  "

    def link_prefix(self, depth: int) -> str:
        """Return the prefix for the cause at ``depth`` (1 for the first cause)."""

        return self.chain_indent * depth + self.chain_prefix


class AppConfig(Struct, frozen=True):
    """Typed configuration for a :class:`~faultline.application.FaultlineApp`."""

    max_request_body_bytes: int | None = 1_048_576
    security_headers: bool = True
    recovery: RecoveryConfig = RecoveryConfig()

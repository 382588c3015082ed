"""
function_rollback.config — Runtime configuration resolved from the environment.

CLI flags take precedence; see cli.build_config.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

DEFAULT_STAGE = "dev"
# A lock must outlive the slowest checkpoint or rollback, including the
# download and re-upload of a large archive; expiry is the only cleanup
# for a run that dies while holding it.
DEFAULT_LOCK_TTL_SECONDS = 900
DEFAULT_FETCH_TIMEOUT_SECONDS = 60
DEFAULT_MAX_ATTEMPTS = 3


@dataclass(frozen=True)
class RollbackConfig:
    region: str
    stage: str = DEFAULT_STAGE
    service: str | None = None
    lock_table: str | None = None
    lock_ttl_seconds: int = DEFAULT_LOCK_TTL_SECONDS
    fetch_timeout_seconds: int = DEFAULT_FETCH_TIMEOUT_SECONDS
    max_attempts: int = DEFAULT_MAX_ATTEMPTS


def get_aws_region() -> str:
    region = os.environ.get("AWS_REGION", "").strip()
    if not region:
        raise RuntimeError("AWS_REGION environment variable not set")
    return region


def _optional(name: str) -> str | None:
    value = os.environ.get(name, "").strip()
    return value or None


def _int_env(name: str, default: int) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise RuntimeError(f"{name} must be an integer, got {raw!r}") from exc
    if value <= 0:
        raise RuntimeError(f"{name} must be positive, got {value}")
    return value


def load_config(*, region: str | None = None) -> RollbackConfig:
    return RollbackConfig(
        region=region or get_aws_region(),
        stage=_optional("FUNCTION_ROLLBACK_STAGE") or DEFAULT_STAGE,
        service=_optional("FUNCTION_ROLLBACK_SERVICE"),
        lock_table=_optional("FUNCTION_ROLLBACK_LOCK_TABLE"),
        lock_ttl_seconds=_int_env("FUNCTION_ROLLBACK_LOCK_TTL_SECONDS", DEFAULT_LOCK_TTL_SECONDS),
        fetch_timeout_seconds=_int_env(
            "FUNCTION_ROLLBACK_FETCH_TIMEOUT_SECONDS", DEFAULT_FETCH_TIMEOUT_SECONDS
        ),
        max_attempts=_int_env("FUNCTION_ROLLBACK_MAX_ATTEMPTS", DEFAULT_MAX_ATTEMPTS),
    )

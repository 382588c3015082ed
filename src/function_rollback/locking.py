"""
function_rollback.locking — Optional per-function advisory lock in DynamoDB.

Serialises checkpoint and rollback runs against the same function when a lock
table is configured.  Without one, concurrent runs are not coordinated.

Lock record:
  PK:  LOCK#function-rollback#<function-name>
  SK:  METADATA
  ttl: epoch seconds; expiry frees a lock left by a crashed run

The table needs PK/SK string keys and TTL enabled on the `ttl` attribute.
Lock table failures surface as step `lock` errors, never as raw botocore ones.
"""

from __future__ import annotations

import os
import socket
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any
from uuid import uuid4

from aws_lambda_powertools import Logger
from botocore.exceptions import BotoCoreError, ClientError

from function_rollback.client import aws_error_code
from function_rollback.config import DEFAULT_LOCK_TTL_SECONDS
from function_rollback.exceptions import ProviderError, RollbackError, Step, TransportError

logger = Logger(service="function-rollback")

DEFAULT_TTL_SECONDS = DEFAULT_LOCK_TTL_SECONDS
_LOCK_PREFIX = "LOCK#function-rollback#"
_CONDITION_FAILED = "ConditionalCheckFailedException"


class LockError(RollbackError):
    """Base class for advisory lock errors."""

    def __init__(self, message: str, *, function_name: str) -> None:
        super().__init__(message, function_name=function_name, step=Step.LOCK)


class LockAlreadyHeldError(LockError):
    """Raised when another checkpoint or rollback holds the function's lock."""


class LockOwnershipError(LockError):
    """Raised when the stored lock is no longer the one this run acquired."""


@dataclass(frozen=True)
class LockRecord:
    """The lock a run holds; release_lock only deletes this exact record."""

    function_name: str
    lock_id: str
    acquired_by: str
    expires_at: int

    @property
    def key(self) -> dict[str, Any]:
        return {"PK": {"S": f"{_LOCK_PREFIX}{self.function_name}"}, "SK": {"S": "METADATA"}}


def default_owner(operation: str) -> str:
    user = os.environ.get("USER") or os.environ.get("USERNAME") or "unknown"
    host = socket.gethostname() or "unknown-host"
    return f"function-rollback/{operation}:{user}@{host}"


@contextmanager
def _lock_table_call(
    function_name: str, on_condition_failed: Callable[[], LockError]
) -> Iterator[None]:
    try:
        yield
    except ClientError as exc:
        code = aws_error_code(exc)
        if code == _CONDITION_FAILED:
            raise on_condition_failed() from exc
        message = exc.response.get("Error", {}).get("Message") or str(exc)
        raise ProviderError(
            f"{code or 'UnknownError'}: {message}",
            function_name=function_name,
            step=Step.LOCK,
            error_code=code,
        ) from exc
    except BotoCoreError as exc:
        raise TransportError(str(exc), function_name=function_name, step=Step.LOCK) from exc


def acquire_lock(
    ddb_client: Any,
    *,
    table_name: str,
    function_name: str,
    acquired_by: str,
    ttl_seconds: int = DEFAULT_TTL_SECONDS,
    now: datetime | None = None,
) -> LockRecord:
    """Write the function's lock record, or raise LockAlreadyHeldError.

    An expired lock that DynamoDB has not swept yet is treated as free.
    """
    epoch = int((now or datetime.now(UTC)).timestamp())
    record = LockRecord(
        function_name=function_name,
        lock_id=str(uuid4()),
        acquired_by=acquired_by,
        expires_at=epoch + ttl_seconds,
    )
    acquired_at = datetime.fromtimestamp(epoch, UTC).strftime("%Y-%m-%dT%H:%M:%SZ")

    def _held() -> LockError:
        return LockAlreadyHeldError(
            f"Another checkpoint or rollback is running for {function_name}",
            function_name=function_name,
        )

    with _lock_table_call(function_name, _held):
        ddb_client.put_item(
            TableName=table_name,
            Item={
                **record.key,
                "functionName": {"S": function_name},
                "lockId": {"S": record.lock_id},
                "acquiredBy": {"S": acquired_by},
                "acquiredAt": {"S": acquired_at},
                "ttl": {"N": str(record.expires_at)},
            },
            ConditionExpression="attribute_not_exists(PK) OR #ttl < :now",
            ExpressionAttributeNames={"#ttl": "ttl"},
            ExpressionAttributeValues={":now": {"N": str(epoch)}},
        )
    logger.info(
        "Acquired function lock",
        function_name=function_name,
        lock_id=record.lock_id,
        expires_at=record.expires_at,
    )
    return record


def release_lock(ddb_client: Any, record: LockRecord, *, table_name: str) -> bool:
    """Delete the lock if it is still ours; False when it had already expired away."""

    def _taken_over() -> LockError:
        return LockOwnershipError(
            f"Lock for {record.function_name} is held by another run; refusing to release",
            function_name=record.function_name,
        )

    with _lock_table_call(record.function_name, _taken_over):
        response = ddb_client.delete_item(
            TableName=table_name,
            Key=record.key,
            ConditionExpression="attribute_not_exists(PK) OR lockId = :lock_id",
            ExpressionAttributeValues={":lock_id": {"S": record.lock_id}},
            ReturnValues="ALL_OLD",
        )
    return "Attributes" in response


@contextmanager
def held_lock(
    ddb_client: Any,
    *,
    table_name: str,
    function_name: str,
    acquired_by: str,
    ttl_seconds: int = DEFAULT_TTL_SECONDS,
) -> Iterator[LockRecord]:
    """Hold the function's lock around the body.

    A failed release never replaces the body's outcome; the record is left to
    expire with its TTL.
    """
    record = acquire_lock(
        ddb_client,
        table_name=table_name,
        function_name=function_name,
        acquired_by=acquired_by,
        ttl_seconds=ttl_seconds,
    )
    try:
        yield record
    finally:
        try:
            release_lock(ddb_client, record, table_name=table_name)
        except RollbackError as exc:
            logger.warning(
                "Could not release function lock; it will expire with its TTL",
                function_name=function_name,
                lock_id=record.lock_id,
                expires_at=record.expires_at,
                error=str(exc),
            )

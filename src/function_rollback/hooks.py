"""
function_rollback.hooks — Lifecycle entry points for a deploy tool.

A host deploy tool calls the checkpoint hook before it uploads new code and
the rollback hook when an operator asks for a rollback.  Both validate the
target first, then run their pipeline, optionally under the per-function lock.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import Any

from function_rollback.checkpoint import create_checkpoint
from function_rollback.client import CodeFetcher, LambdaFunctions
from function_rollback.locking import DEFAULT_TTL_SECONDS, default_owner, held_lock
from function_rollback.models import CheckpointResult, FunctionTarget, RestoreResult
from function_rollback.naming import validate_target
from function_rollback.restore import restore_checkpoint

DEPLOY_HOOK = "before:deploy:function:deploy"
ROLLBACK_HOOK = "rollback:function:rollback"


class FunctionRollback:
    def __init__(
        self,
        functions: LambdaFunctions,
        *,
        fetcher: CodeFetcher,
        ddb_client: Any = None,
        lock_table: str | None = None,
        lock_ttl_seconds: int = DEFAULT_TTL_SECONDS,
    ) -> None:
        if lock_table and ddb_client is None:
            raise ValueError("ddb_client is required when lock_table is set")
        self._functions = functions
        self._fetcher = fetcher
        self._ddb = ddb_client
        self._lock_table = lock_table
        self._lock_ttl_seconds = lock_ttl_seconds

    @property
    def hooks(self) -> dict[str, Callable[[FunctionTarget], Any]]:
        return {DEPLOY_HOOK: self.checkpoint, ROLLBACK_HOOK: self.rollback}

    @contextmanager
    def _exclusive(self, function_name: str, operation: str) -> Iterator[None]:
        if not self._lock_table:
            yield
            return
        with held_lock(
            self._ddb,
            table_name=self._lock_table,
            function_name=function_name,
            acquired_by=default_owner(operation),
            ttl_seconds=self._lock_ttl_seconds,
        ):
            yield

    def checkpoint(self, target: FunctionTarget) -> CheckpointResult:
        validate_target(target)
        with self._exclusive(target.function_name, "checkpoint"):
            return create_checkpoint(self._functions, target)

    def rollback(self, target: FunctionTarget) -> RestoreResult:
        validate_target(target)
        with self._exclusive(target.function_name, "rollback"):
            return restore_checkpoint(self._functions, target, fetcher=self._fetcher)

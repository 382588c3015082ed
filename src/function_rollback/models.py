"""
function_rollback.models — Immutable values threaded through each pipeline step.

Nothing here is persisted locally; the Lambda service owns every version and
alias record.  These dataclasses only carry one step's result to the next.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum


class AliasAction(StrEnum):
    UPDATED = "updated"
    CREATED = "created"


@dataclass(frozen=True)
class FunctionTarget:
    """The deployable unit an operation acts on.

    function_name is the deployed Lambda name, not the short name in a
    service definition (see naming.deployed_function_name).
    """

    function_name: str
    stage: str | None = None
    region: str | None = None


@dataclass(frozen=True)
class PublishedVersion:
    function_name: str
    version: str
    previous_version: str | None  # newest numbered version before this publish

    @property
    def checkpoint_version(self) -> str:
        """The version that was live when the publish started.

        On the very first publish there is no older version; the one just
        published snapshots the same pre-deploy code, so it is used instead.
        """
        return self.previous_version or self.version


@dataclass(frozen=True)
class CheckpointResult:
    function_name: str
    alias_name: str
    published_version: str
    target_version: str
    alias_action: AliasAction


@dataclass(frozen=True)
class CheckpointRecord:
    """GetFunction output qualified by the checkpoint alias."""

    function_name: str
    alias_name: str
    version: str
    code_location: str  # pre-signed, time-limited URL
    code_size: int
    code_sha256: str | None = None


@dataclass(frozen=True)
class RestoreResult:
    function_name: str
    alias_name: str
    restored_version: str
    code_size: int
    code_sha256: str | None = None

"""
function_rollback.exceptions — Tagged failures for the checkpoint/restore pipelines.

Every error names the function it was raised for and the pipeline step that
failed, so an operator can tell a half-finished checkpoint (version published,
alias untouched) from one that never started.
"""

from __future__ import annotations

from enum import StrEnum


class Step(StrEnum):
    VALIDATE = "validate"
    LIST_VERSIONS = "list_versions"
    PUBLISH = "publish"
    UPDATE_ALIAS = "update_alias"
    CREATE_ALIAS = "create_alias"
    RESOLVE_CHECKPOINT = "resolve_checkpoint"
    FETCH = "fetch"
    UPLOAD = "upload"
    LOCK = "lock"


class RollbackError(RuntimeError):
    """Base class for checkpoint and rollback failures."""

    def __init__(self, message: str, *, function_name: str, step: Step) -> None:
        super().__init__(message)
        self.function_name = function_name
        self.step = step


class InvalidTargetError(RollbackError, ValueError):
    """Raised when the function name, stage or region is malformed."""

    def __init__(self, message: str, *, function_name: str) -> None:
        super().__init__(message, function_name=function_name, step=Step.VALIDATE)


class TransportError(RollbackError):
    """Raised when the Lambda API could not be reached at all."""


class ProviderError(RollbackError):
    """
    Raised when the Lambda API answered with an error.

    Attributes:
        error_code: The AWS error code (e.g. ResourceNotFoundException).
    """

    def __init__(
        self,
        message: str,
        *,
        function_name: str,
        step: Step,
        error_code: str,
    ) -> None:
        super().__init__(message, function_name=function_name, step=step)
        self.error_code = error_code


class FunctionNotFound(ProviderError):
    pass


class PublishError(ProviderError):
    """Raised when publish_version is rejected (e.g. nothing changed since the last publish)."""


class AliasNotFound(ProviderError):
    """The checkpoint alias does not exist yet. The only error that falls back to create."""


class AliasUpdateDenied(ProviderError):
    """The caller is not permitted to repoint the checkpoint alias."""


class AliasConflict(ProviderError):
    """The checkpoint alias already exists and could not be created."""


class CheckpointNotFound(ProviderError):
    """No checkpoint alias exists, so there is nothing to roll back to."""


class PayloadRejected(ProviderError):
    """The restored archive was refused by update_function_code (too large, malformed)."""


class CheckpointNotRestorable(RollbackError):
    """The checkpoint record has no downloadable code location (image-packaged function)."""


class CodeFetchError(RollbackError):
    """Raised when the checkpoint archive could not be downloaded intact."""

    def __init__(
        self,
        message: str,
        *,
        function_name: str,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message, function_name=function_name, step=Step.FETCH)
        self.status_code = status_code

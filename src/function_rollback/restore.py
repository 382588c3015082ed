"""
function_rollback.restore — Rollback executor.

Restores a function's live code from its checkpoint alias:
  1. GetFunction qualified by <function>-rollback.
  2. Download the archive from the returned pre-signed Code.Location.
  3. UpdateFunctionCode (unqualified, i.e. $LATEST) with those bytes.

No version is published and the alias is never touched, so running the
rollback again re-uploads the same checkpoint.
"""

from __future__ import annotations

from aws_lambda_powertools import Logger

from function_rollback.client import CodeFetcher, LambdaFunctions
from function_rollback.exceptions import CheckpointNotRestorable, Step
from function_rollback.models import CheckpointRecord, FunctionTarget, RestoreResult
from function_rollback.naming import checkpoint_alias_name

logger = Logger(service="function-rollback")

_SIZE_UNITS = ("B", "KB", "MB", "GB")


def format_size(size: int) -> str:
    """Human-readable byte count using 1024 steps, e.g. 1536 -> '1.5 KB'."""
    if size < 1024:
        return f"{size} B"
    value = size / 1024
    for unit in _SIZE_UNITS[1:-1]:
        if value < 1024:
            return f"{value:.1f} {unit}"
        value /= 1024
    return f"{value:.1f} {_SIZE_UNITS[-1]}"


def get_checkpoint(functions: LambdaFunctions, target: FunctionTarget) -> CheckpointRecord:
    name = target.function_name
    alias_name = checkpoint_alias_name(name)
    logger.info("Resolving checkpoint", function_name=name, alias_name=alias_name)

    response = functions.get_function(name, alias_name)
    configuration = response.get("Configuration", {})
    location = response.get("Code", {}).get("Location")
    if not location:
        raise CheckpointNotRestorable(
            f"Checkpoint {alias_name} has no downloadable code (package type "
            f"{configuration.get('PackageType', 'unknown')})",
            function_name=name,
            step=Step.RESOLVE_CHECKPOINT,
        )
    return CheckpointRecord(
        function_name=name,
        alias_name=alias_name,
        version=str(configuration.get("Version", "")),
        code_location=location,
        code_size=int(configuration.get("CodeSize", 0)),
        code_sha256=configuration.get("CodeSha256"),
    )


def restore_function(
    functions: LambdaFunctions,
    checkpoint: CheckpointRecord,
    *,
    fetcher: CodeFetcher,
) -> RestoreResult:
    name = checkpoint.function_name
    logger.info(
        f"Downloading checkpoint ({format_size(checkpoint.code_size)})",
        function_name=name,
        version=checkpoint.version,
        code_size=checkpoint.code_size,
    )
    archive = fetcher.fetch(
        checkpoint.code_location,
        function_name=name,
        expected_size=checkpoint.code_size or None,
    )

    logger.info(
        f"Uploading function code ({format_size(len(archive))})",
        function_name=name,
        version=checkpoint.version,
        code_size=len(archive),
    )
    response = functions.update_function_code(name, archive)
    logger.info("Rolled back function", function_name=name, version=checkpoint.version)
    return RestoreResult(
        function_name=name,
        alias_name=checkpoint.alias_name,
        restored_version=checkpoint.version,
        code_size=len(archive),
        code_sha256=response.get("CodeSha256"),
    )


def restore_checkpoint(
    functions: LambdaFunctions,
    target: FunctionTarget,
    *,
    fetcher: CodeFetcher,
) -> RestoreResult:
    checkpoint = get_checkpoint(functions, target)
    return restore_function(functions, checkpoint, fetcher=fetcher)

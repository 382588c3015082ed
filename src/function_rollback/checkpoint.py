"""
function_rollback.checkpoint — Pre-deploy checkpoint publisher.

Runs before every deploy:
  1. Record the newest published version (the code live right now).
  2. Publish the current code as a new immutable version.
  3. Point <function>-rollback at the version recorded in step 1.

The alias is upserted: update first, create only when the update reports the
alias missing.  Every other failure stops the pipeline.  A version published
before a later step fails is left in place.
"""

from __future__ import annotations

from aws_lambda_powertools import Logger

from function_rollback.client import LambdaFunctions
from function_rollback.exceptions import AliasNotFound
from function_rollback.models import (
    AliasAction,
    CheckpointResult,
    FunctionTarget,
    PublishedVersion,
)
from function_rollback.naming import checkpoint_alias_name

logger = Logger(service="function-rollback")


def publish_version(functions: LambdaFunctions, target: FunctionTarget) -> PublishedVersion:
    name = target.function_name
    previous = functions.latest_published_version(name)
    version = functions.publish_version(name)
    logger.info(
        "Published new version",
        function_name=name,
        version=version,
        previous_version=previous,
    )
    return PublishedVersion(function_name=name, version=version, previous_version=previous)


def set_checkpoint_alias(
    functions: LambdaFunctions, published: PublishedVersion
) -> CheckpointResult:
    """Upsert the checkpoint alias onto published.checkpoint_version."""
    name = published.function_name
    alias_name = checkpoint_alias_name(name)
    target_version = published.checkpoint_version

    try:
        functions.update_alias(name, alias_name, target_version)
        action = AliasAction.UPDATED
    except AliasNotFound:
        logger.info("Checkpoint alias missing, creating", function_name=name, alias_name=alias_name)
        functions.create_alias(name, alias_name, target_version)
        action = AliasAction.CREATED

    logger.info(
        f"Checkpoint alias {action}",
        function_name=name,
        alias_name=alias_name,
        version=target_version,
    )
    return CheckpointResult(
        function_name=name,
        alias_name=alias_name,
        published_version=published.version,
        target_version=target_version,
        alias_action=action,
    )


def create_checkpoint(functions: LambdaFunctions, target: FunctionTarget) -> CheckpointResult:
    published = publish_version(functions, target)
    return set_checkpoint_alias(functions, published)

"""
function_rollback.naming — Checkpoint alias convention and target validation.

The alias name is the only link between the checkpoint publisher and the
rollback executor, so both must derive it from here.
"""

from __future__ import annotations

import re

from function_rollback.exceptions import InvalidTargetError
from function_rollback.models import FunctionTarget

CHECKPOINT_ALIAS_SUFFIX = "-rollback"
MAX_ALIAS_NAME_LENGTH = 128

_FUNCTION_NAME_RE = re.compile(r"^[A-Za-z0-9_-]{1,64}$")
_STAGE_RE = re.compile(r"^[A-Za-z0-9_-]{1,64}$")
_REGION_RE = re.compile(r"^[a-z]{2}(-[a-z]+)+-\d$")


def checkpoint_alias_name(function_name: str) -> str:
    return f"{function_name}{CHECKPOINT_ALIAS_SUFFIX}"


def deployed_function_name(function: str, *, service: str | None, stage: str | None) -> str:
    """Return the Lambda name a function is deployed under.

    Serverless-style services deploy `hello` as `<service>-<stage>-hello`;
    without a service the name is used as given.
    """
    if not service:
        return function
    if not stage:
        raise InvalidTargetError(
            f"A stage is required to resolve {function!r} within service {service!r}",
            function_name=function,
        )
    return f"{service}-{stage}-{function}"


def validate_target(target: FunctionTarget) -> FunctionTarget:
    """Raise InvalidTargetError unless the target is well-formed. Returns the target."""
    name = target.function_name
    if not _FUNCTION_NAME_RE.match(name or ""):
        raise InvalidTargetError(
            f"Invalid function name {name!r}: expected 1-64 of [A-Za-z0-9_-]",
            function_name=name,
        )
    if len(checkpoint_alias_name(name)) > MAX_ALIAS_NAME_LENGTH:
        raise InvalidTargetError(
            f"Checkpoint alias for {name!r} exceeds {MAX_ALIAS_NAME_LENGTH} characters",
            function_name=name,
        )
    if target.stage is not None and not _STAGE_RE.match(target.stage):
        raise InvalidTargetError(f"Invalid stage {target.stage!r}", function_name=name)
    if target.region is not None and not _REGION_RE.match(target.region):
        raise InvalidTargetError(f"Invalid region {target.region!r}", function_name=name)
    return target

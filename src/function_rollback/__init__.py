"""
function_rollback — Pre-deploy checkpoints and one-step rollback for AWS Lambda.

Before each deploy the current code is published as a version and the alias
<function>-rollback is pointed at the pre-deploy version.  A rollback
re-uploads the code behind that alias as the function's live code.
"""

from function_rollback.checkpoint import create_checkpoint
from function_rollback.client import CodeFetcher, LambdaFunctions
from function_rollback.exceptions import RollbackError, Step
from function_rollback.hooks import FunctionRollback
from function_rollback.models import CheckpointResult, FunctionTarget, RestoreResult
from function_rollback.naming import checkpoint_alias_name
from function_rollback.restore import restore_checkpoint

__all__ = [
    "CheckpointResult",
    "CodeFetcher",
    "FunctionRollback",
    "FunctionTarget",
    "LambdaFunctions",
    "RestoreResult",
    "RollbackError",
    "Step",
    "checkpoint_alias_name",
    "create_checkpoint",
    "restore_checkpoint",
]

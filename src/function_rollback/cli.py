"""
function-rollback — Checkpoint a Lambda function before deploy, or roll it back.

Usage:
    function-rollback checkpoint --function hello --stage prod --region eu-west-2
    function-rollback rollback -f hello -s prod -r eu-west-2

checkpoint publishes the current code as a new version and points
<function>-rollback at the version that was live before it.
rollback re-uploads the code behind <function>-rollback as the live code.

Exit codes:
    0  success
    1  the checkpoint or rollback failed (the failing step is printed)
    2  invalid arguments or configuration
"""

from __future__ import annotations

import argparse
import sys
from dataclasses import replace

import boto3

from function_rollback.client import CodeFetcher, LambdaFunctions, build_lambda_client
from function_rollback.config import RollbackConfig, load_config
from function_rollback.exceptions import InvalidTargetError, RollbackError
from function_rollback.hooks import DEPLOY_HOOK, ROLLBACK_HOOK, FunctionRollback
from function_rollback.models import CheckpointResult, FunctionTarget, RestoreResult
from function_rollback.naming import deployed_function_name
from function_rollback.restore import format_size

_HOOK_FOR_COMMAND = {"checkpoint": DEPLOY_HOOK, "rollback": ROLLBACK_HOOK}


def _positive_int(raw: str) -> int:
    try:
        value = int(raw)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected a positive integer, got {raw!r}") from None
    if value <= 0:
        raise argparse.ArgumentTypeError(f"expected a positive integer, got {raw!r}")
    return value


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="function-rollback",
        description=__doc__,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    for command, help_text in (
        ("checkpoint", "Publish a version and point <function>-rollback at the pre-deploy code"),
        ("rollback", "Rollback the function to the previous version"),
    ):
        sub = subparsers.add_parser(command, help=help_text)
        sub.add_argument("-f", "--function", required=True, help="Name of the function")
        sub.add_argument("-s", "--stage", default=None, help="Stage of the function")
        sub.add_argument("-r", "--region", default=None, help="Region of the function")
        sub.add_argument(
            "--service",
            default=None,
            help="Service name; deploys resolve to <service>-<stage>-<function>",
        )
        sub.add_argument(
            "--lock-table",
            default=None,
            help="DynamoDB table for the per-function lock (default: no locking)",
        )
        sub.add_argument(
            "--fetch-timeout",
            type=_positive_int,
            default=None,
            help="Checkpoint download timeout in seconds (default 60)",
        )

    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> RollbackConfig:
    config = load_config(region=args.region)
    overrides: dict[str, object] = {}
    if args.stage:
        overrides["stage"] = args.stage
    if args.service:
        overrides["service"] = args.service
    if args.lock_table:
        overrides["lock_table"] = args.lock_table
    if args.fetch_timeout is not None:
        overrides["fetch_timeout_seconds"] = args.fetch_timeout
    return replace(config, **overrides) if overrides else config


def build_runner(config: RollbackConfig) -> FunctionRollback:
    lambda_client = build_lambda_client(config.region, max_attempts=config.max_attempts)
    functions = LambdaFunctions(lambda_client)
    ddb_client = boto3.client("dynamodb", region_name=config.region) if config.lock_table else None
    return FunctionRollback(
        functions,
        fetcher=CodeFetcher(timeout_seconds=config.fetch_timeout_seconds),
        ddb_client=ddb_client,
        lock_table=config.lock_table,
        lock_ttl_seconds=config.lock_ttl_seconds,
    )


def _report(result: CheckpointResult | RestoreResult) -> None:
    if isinstance(result, CheckpointResult):
        print(f"Publish the new version: {result.published_version}")
        print(
            f"{result.alias_action.capitalize()} the alias: "
            f"{result.alias_name} = {result.target_version}"
        )
    else:
        print(
            f"Successfully rolled back function: {result.function_name} "
            f"to version {result.restored_version} ({format_size(result.code_size)})"
        )


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    try:
        config = build_config(args)
        target = FunctionTarget(
            function_name=deployed_function_name(
                args.function, service=config.service, stage=config.stage
            ),
            stage=config.stage,
            region=config.region,
        )
        runner = build_runner(config)
        if args.command == "rollback":
            print(f"Rolling back function: {target.function_name}...")
        result = runner.hooks[_HOOK_FOR_COMMAND[args.command]](target)
    except InvalidTargetError as exc:
        print(str(exc), file=sys.stderr)
        return 2
    except RollbackError as exc:
        print(f"{exc.step} failed for {exc.function_name}: {exc}", file=sys.stderr)
        return 1
    except RuntimeError as exc:
        print(str(exc), file=sys.stderr)
        return 2
    _report(result)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

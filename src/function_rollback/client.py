"""
function_rollback.client — Lambda API and code-download transport.

LambdaFunctions wraps a boto3 Lambda client and translates botocore failures
into the tagged errors in function_rollback.exceptions.  Retries and timeouts
are the transport's concern: they are configured on the botocore Config and
the requests timeout, never re-implemented by the pipelines.

CodeFetcher downloads the pre-signed Code.Location of a checkpoint.  That URL
is not part of the Lambda API and needs no AWS credentials.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import boto3
import requests
from aws_lambda_powertools import Logger
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from function_rollback.exceptions import (
    AliasConflict,
    AliasNotFound,
    AliasUpdateDenied,
    CheckpointNotFound,
    CodeFetchError,
    FunctionNotFound,
    PayloadRejected,
    ProviderError,
    PublishError,
    Step,
    TransportError,
)

logger = Logger(service="function-rollback")

_NOT_FOUND = "ResourceNotFoundException"
_ACCESS_DENIED = "AccessDeniedException"
_CONFLICT = "ResourceConflictException"
_PAYLOAD_ERROR_CODES = frozenset(
    {
        "RequestTooLargeException",
        "InvalidParameterValueException",
        "CodeStorageExceededException",
        "CodeVerificationFailedException",
    }
)
_LATEST = "$LATEST"


def build_lambda_client(region: str, *, max_attempts: int = 3) -> Any:
    config = Config(retries={"max_attempts": max_attempts, "mode": "standard"})
    return boto3.client("lambda", region_name=region, config=config)


def aws_error_code(error: ClientError) -> str:
    return error.response.get("Error", {}).get("Code", "")


def _error_class(code: str, step: Step) -> type[ProviderError]:
    if code == _NOT_FOUND:
        if step is Step.UPDATE_ALIAS:
            return AliasNotFound
        if step is Step.RESOLVE_CHECKPOINT:
            return CheckpointNotFound
        return FunctionNotFound
    if code == _ACCESS_DENIED and step is Step.UPDATE_ALIAS:
        return AliasUpdateDenied
    if code == _CONFLICT and step is Step.CREATE_ALIAS:
        return AliasConflict
    if code in _PAYLOAD_ERROR_CODES and step is Step.UPLOAD:
        return PayloadRejected
    if step is Step.PUBLISH:
        return PublishError
    return ProviderError


@contextmanager
def _lambda_call(function_name: str, step: Step) -> Iterator[None]:
    try:
        yield
    except ClientError as exc:
        code = aws_error_code(exc)
        message = exc.response.get("Error", {}).get("Message") or str(exc)
        raise _error_class(code, step)(
            f"{code or 'UnknownError'}: {message}",
            function_name=function_name,
            step=step,
            error_code=code,
        ) from exc
    except BotoCoreError as exc:
        raise TransportError(str(exc), function_name=function_name, step=step) from exc


def _version_number(version: str) -> int | None:
    return int(version) if version.isdigit() else None


class LambdaFunctions:
    """The Lambda operations the checkpoint and rollback pipelines need."""

    def __init__(self, lambda_client: Any) -> None:
        self._lambda: Any = lambda_client

    def latest_published_version(self, function_name: str) -> str | None:
        """Return the highest numbered version, or None if only $LATEST exists."""
        newest: int | None = None
        with _lambda_call(function_name, Step.LIST_VERSIONS):
            paginator = self._lambda.get_paginator("list_versions_by_function")
            for page in paginator.paginate(FunctionName=function_name):
                for entry in page.get("Versions", []):
                    number = _version_number(str(entry.get("Version", _LATEST)))
                    if number is not None and (newest is None or number > newest):
                        newest = number
        return None if newest is None else str(newest)

    def publish_version(self, function_name: str) -> str:
        with _lambda_call(function_name, Step.PUBLISH):
            response = self._lambda.publish_version(FunctionName=function_name)
        return str(response["Version"])

    def update_alias(self, function_name: str, alias_name: str, version: str) -> None:
        with _lambda_call(function_name, Step.UPDATE_ALIAS):
            self._lambda.update_alias(
                FunctionName=function_name,
                Name=alias_name,
                FunctionVersion=version,
            )

    def create_alias(self, function_name: str, alias_name: str, version: str) -> None:
        with _lambda_call(function_name, Step.CREATE_ALIAS):
            self._lambda.create_alias(
                FunctionName=function_name,
                Name=alias_name,
                FunctionVersion=version,
                Description="Pre-deploy checkpoint used by rollback",
            )

    def get_function(self, function_name: str, qualifier: str) -> dict[str, Any]:
        with _lambda_call(function_name, Step.RESOLVE_CHECKPOINT):
            return self._lambda.get_function(FunctionName=function_name, Qualifier=qualifier)

    def update_function_code(self, function_name: str, zip_file: bytes) -> dict[str, Any]:
        with _lambda_call(function_name, Step.UPLOAD):
            return self._lambda.update_function_code(FunctionName=function_name, ZipFile=zip_file)


class CodeFetcher:
    """Downloads a checkpoint archive from its pre-signed location."""

    def __init__(
        self,
        *,
        timeout_seconds: int = 60,
        session: requests.Session | None = None,
    ) -> None:
        self._timeout = timeout_seconds
        self._session = session or requests.Session()

    def fetch(self, url: str, *, function_name: str, expected_size: int | None = None) -> bytes:
        """Return the raw archive bytes.

        Raises CodeFetchError on network failure, a non-2xx answer, or a body
        whose length differs from expected_size.
        """
        try:
            response = self._session.get(url, timeout=self._timeout)
            response.raise_for_status()
        except requests.HTTPError as exc:
            status = exc.response.status_code if exc.response is not None else None
            raise CodeFetchError(
                f"Checkpoint download returned HTTP {status}",
                function_name=function_name,
                status_code=status,
            ) from exc
        except requests.RequestException as exc:
            raise CodeFetchError(
                f"Checkpoint download failed: {exc}", function_name=function_name
            ) from exc

        body = response.content
        if expected_size is not None and len(body) != expected_size:
            logger.error(
                "Checkpoint archive size mismatch",
                function_name=function_name,
                expected_size=expected_size,
                received_size=len(body),
            )
            raise CodeFetchError(
                f"Checkpoint download truncated: got {len(body)} of {expected_size} bytes",
                function_name=function_name,
                status_code=response.status_code,
            )
        return body

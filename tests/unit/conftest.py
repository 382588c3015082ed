"""Shared fakes for the checkpoint/rollback tests.

FakeLambda mimics the slice of the boto3 Lambda client the pipelines use and
raises real botocore ClientErrors, so the error translation in
function_rollback.client runs unmodified.
"""

from __future__ import annotations

import base64
import hashlib
from typing import Any

import pytest
import requests
from botocore.exceptions import ClientError
from function_rollback.client import CodeFetcher, LambdaFunctions

FUNCTION_NAME = "hello"
REGION = "eu-west-2"
_LOCATION_PREFIX = "https://awslambda-eu-west-2-tasks.s3.eu-west-2.amazonaws.com/snapshots/"


def client_error(code: str, operation: str, message: str = "") -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": message or code}}, operation)


def code_sha256(code: bytes) -> str:
    return base64.b64encode(hashlib.sha256(code).digest()).decode("ascii")


class _FakeVersionsPaginator:
    def __init__(self, fake: FakeLambda) -> None:
        self._fake = fake

    def paginate(self, *, FunctionName: str) -> Any:
        self._fake._enter("list_versions_by_function", FunctionName)
        entries = [{"Version": "$LATEST"}] + [{"Version": v} for v in self._fake.versions]
        size = self._fake.page_size
        for start in range(0, len(entries), size):
            yield {"Versions": entries[start : start + size]}


class FakeLambda:
    """In-memory stand-in for boto3.client("lambda")."""

    def __init__(self, function_name: str = FUNCTION_NAME, live_code: bytes = b"v1-code") -> None:
        self.function_name = function_name
        self.live_code = live_code
        self.versions: dict[str, bytes] = {}
        self.aliases: dict[str, str] = {}
        self.calls: list[str] = []
        self.errors: dict[str, Exception] = {}
        self.page_size = 50
        self.package_type = "Zip"

    def _enter(self, operation: str, function_name: str) -> None:
        self.calls.append(operation)
        if operation in self.errors:
            raise self.errors[operation]
        if function_name != self.function_name:
            raise client_error(
                "ResourceNotFoundException", operation, f"Function not found: {function_name}"
            )

    def get_paginator(self, operation: str) -> _FakeVersionsPaginator:
        assert operation == "list_versions_by_function"
        return _FakeVersionsPaginator(self)

    def publish_version(self, *, FunctionName: str) -> dict[str, Any]:
        self._enter("publish_version", FunctionName)
        version = str(len(self.versions) + 1)
        self.versions[version] = self.live_code
        return {"FunctionName": FunctionName, "Version": version}

    def update_alias(
        self, *, FunctionName: str, Name: str, FunctionVersion: str
    ) -> dict[str, Any]:
        self._enter("update_alias", FunctionName)
        if Name not in self.aliases:
            raise client_error(
                "ResourceNotFoundException", "UpdateAlias", f"Alias not found: {Name}"
            )
        self.aliases[Name] = FunctionVersion
        return {"Name": Name, "FunctionVersion": FunctionVersion}

    def create_alias(
        self, *, FunctionName: str, Name: str, FunctionVersion: str, Description: str = ""
    ) -> dict[str, Any]:
        self._enter("create_alias", FunctionName)
        if Name in self.aliases:
            raise client_error("ResourceConflictException", "CreateAlias", f"Alias exists: {Name}")
        self.aliases[Name] = FunctionVersion
        return {"Name": Name, "FunctionVersion": FunctionVersion, "Description": Description}

    def get_function(self, *, FunctionName: str, Qualifier: str) -> dict[str, Any]:
        self._enter("get_function", FunctionName)
        version = self.aliases.get(Qualifier)
        if version is None:
            raise client_error(
                "ResourceNotFoundException", "GetFunction", f"Alias not found: {Qualifier}"
            )
        code = self.versions[version]
        result: dict[str, Any] = {
            "Configuration": {
                "FunctionName": FunctionName,
                "Version": version,
                "CodeSize": len(code),
                "CodeSha256": code_sha256(code),
                "PackageType": self.package_type,
            },
            "Code": {"RepositoryType": "S3"},
        }
        if self.package_type == "Zip":
            result["Code"]["Location"] = f"{_LOCATION_PREFIX}{FunctionName}-{version}"
        return result

    def update_function_code(self, *, FunctionName: str, ZipFile: bytes) -> dict[str, Any]:
        self._enter("update_function_code", FunctionName)
        self.live_code = ZipFile
        return {
            "FunctionName": FunctionName,
            "CodeSize": len(ZipFile),
            "CodeSha256": code_sha256(ZipFile),
        }


class FakeSession:
    """requests.Session stand-in serving checkpoint archives out of a FakeLambda."""

    def __init__(self, fake: FakeLambda) -> None:
        self._fake = fake
        self.requested: list[str] = []
        self.status_code = 200
        self.truncate_to: int | None = None

    def get(self, url: str, timeout: int) -> requests.Response:
        self.requested.append(url)
        version = url.rsplit("-", 1)[1]
        body = self._fake.versions[version]
        if self.truncate_to is not None:
            body = body[: self.truncate_to]
        response = requests.Response()
        response.status_code = self.status_code
        response._content = body
        response.url = url
        return response


@pytest.fixture
def fake_lambda() -> FakeLambda:
    return FakeLambda()


@pytest.fixture
def functions(fake_lambda: FakeLambda) -> LambdaFunctions:
    return LambdaFunctions(fake_lambda)


@pytest.fixture
def fake_session(fake_lambda: FakeLambda) -> FakeSession:
    return FakeSession(fake_lambda)


@pytest.fixture
def fetcher(fake_session: FakeSession) -> CodeFetcher:
    return CodeFetcher(timeout_seconds=5, session=fake_session)  # type: ignore[arg-type]


@pytest.fixture
def aws_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Set minimal AWS env vars required by the CLI and moto."""
    monkeypatch.setenv("AWS_REGION", REGION)
    monkeypatch.setenv("AWS_DEFAULT_REGION", REGION)
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")  # pragma: allowlist secret
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")  # pragma: allowlist secret
    monkeypatch.setenv("AWS_SESSION_TOKEN", "testing")

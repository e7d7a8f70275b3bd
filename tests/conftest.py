"""Pytest configuration and shared fixtures for all tests."""

import json
import os
import sys
import threading
from datetime import datetime, timezone
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError

# Add repository root to Python path for all tests
root_dir = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
if root_dir not in sys.path:
    sys.path.insert(0, root_dir)

from prbuild.common.config import BridgeSettings  # noqa: E402
from prbuild.webhook.signature import compute_signature  # noqa: E402


WEBHOOK_SECRET = "It's a Secret to Everybody"
GITHUB_USERNAME = "ci-bot"
GITHUB_TOKEN = "ghp_test_token"

SECRET_NAMES = {
    "username": "/ci/github/username",
    "token": "/ci/github/access-token",
    "webhook": "/ci/github/webhook-secret",
}

BUILD_ID = "widgets-pr:0b5e7a35-5a4c-4cd8-9f1e-6b0c4a7b2c11"


def make_client_error(code: str, operation: str, message: str = "boom") -> ClientError:
    return ClientError({'Error': {'Code': code, 'Message': message}}, operation)


def create_mock_ssm(parameters=None):
    """Create a mock SSM client serving the given parameters."""
    if parameters is None:
        parameters = {
            SECRET_NAMES["username"]: GITHUB_USERNAME,
            SECRET_NAMES["token"]: GITHUB_TOKEN,
            SECRET_NAMES["webhook"]: WEBHOOK_SECRET,
        }

    mock_client = MagicMock()

    def mock_get_parameter(Name, WithDecryption):
        if Name not in parameters:
            raise make_client_error('ParameterNotFound', 'GetParameter', f"{Name} not found")
        return {'Parameter': {'Name': Name, 'Type': 'SecureString', 'Value': parameters[Name]}}

    mock_client.get_parameter.side_effect = mock_get_parameter
    return mock_client


def make_build(build_id: str = BUILD_ID, status: str = "IN_PROGRESS", number: int = 42) -> dict:
    return {
        'id': build_id,
        'arn': f"arn:aws:codebuild:eu-west-1:123456789012:build/{build_id}",
        'buildStatus': status,
        'sourceVersion': f"pr/{number}",
        'projectName': 'widgets-pr',
        'startTime': datetime(2025, 1, 1, 12, 0, 0, tzinfo=timezone.utc),
    }


def create_mock_codebuild(build=None):
    """Create a mock CodeBuild client returning one build."""
    build = build or make_build()
    mock_client = MagicMock()
    mock_client.start_build.return_value = {'build': build}
    mock_client.batch_get_builds.return_value = {'builds': [build], 'buildsNotFound': []}
    return mock_client


def make_pull_request(number: int = 42, owner: str = "acme", repo: str = "widgets",
                      sha: str = "abc123") -> dict:
    return {
        "number": number,
        "title": "Add sprockets",
        "state": "open",
        "head": {"ref": "feature/sprockets", "sha": sha},
        "base": {
            "ref": "main",
            "repo": {"name": repo, "full_name": f"{owner}/{repo}", "owner": {"login": owner}},
        },
    }


def make_webhook_payload(**kwargs) -> dict:
    return {"action": "opened", "number": kwargs.get("number", 42),
            "pull_request": make_pull_request(**kwargs)}


def make_lambda_event(payload, secret: str = WEBHOOK_SECRET, signed: bool = True) -> dict:
    """Build an API Gateway proxy event the way GitHub delivers it (indented JSON)."""
    body = json.dumps(payload, indent=2)
    headers = {"Content-Type": "application/json", "X-GitHub-Event": "pull_request"}
    if signed:
        headers["X-Hub-Signature"] = compute_signature(secret, body.encode("utf-8"))
    return {"headers": headers, "body": body, "isBase64Encoded": False}


@pytest.fixture
def settings():
    return BridgeSettings(
        build_project="widgets-pr",
        ssm_github_username=SECRET_NAMES["username"],
        ssm_github_access_token=SECRET_NAMES["token"],
        ssm_github_secret_token=SECRET_NAMES["webhook"],
        aws_default_region="eu-west-1",
    )


@pytest.fixture
def mock_ssm():
    return create_mock_ssm()


@pytest.fixture
def mock_codebuild():
    return create_mock_codebuild()


class BridgeHarness:
    """A fully wired bridge over mock AWS and GitHub clients.

    Every create_status and start_build call is appended to ``calls`` in
    order, so tests can assert on ordering across collaborators.
    """

    def __init__(self, settings, mock_ssm, mock_codebuild):
        from prbuild.handlers import build_bridge

        self.calls = []
        self.ssm = mock_ssm
        self.codebuild = mock_codebuild
        self.github = MagicMock()
        self.create_status = self.github.get_repo.return_value.get_commit.return_value.create_status
        self.create_status.side_effect = self._record_status

        start_result = mock_codebuild.start_build.return_value

        def record_start(**kwargs):
            self.calls.append(("start_build", kwargs))
            return start_result

        mock_codebuild.start_build.side_effect = record_start

        self.bridge = build_bridge(
            settings,
            ssm_client=mock_ssm,
            codebuild_client=mock_codebuild,
            github_factory=lambda base_url, auth: self.github,
        )

    def _record_status(self, **kwargs):
        self.calls.append(("create_status", kwargs))

    def fail_status_publishes(self, from_call: int = 1, status: int = 500):
        """Make create_status fail from the given 1-based call onwards."""
        from github import GithubException

        def flaky(**kwargs):
            attempt = len(self.published()) + len(self.failed) + 1
            if attempt >= from_call:
                self.failed.append(kwargs)
                raise GithubException(status=status, data={'message': 'fail'}, headers={})
            self.calls.append(("create_status", kwargs))

        self.failed = []
        self.create_status.side_effect = flaky

    def published(self):
        return [kw for name, kw in self.calls if name == "create_status"]

    def build_starts(self):
        return [kw for name, kw in self.calls if name == "start_build"]


@pytest.fixture
def harness(settings, mock_ssm, mock_codebuild):
    return BridgeHarness(settings, mock_ssm, mock_codebuild)


class FailingServer:
    """Local HTTP server answering every request with 500, counting requests."""

    def __init__(self):
        self.requests = []
        server = self

        class Handler(BaseHTTPRequestHandler):

            def _fail(self):
                length = int(self.headers.get('Content-Length') or 0)
                if length:
                    self.rfile.read(length)
                server.requests.append((self.command, self.path))
                body = b'{"message": "Internal Server Error"}'
                self.send_response(500)
                self.send_header('Content-Type', 'application/json')
                self.send_header('Content-Length', str(len(body)))
                self.end_headers()
                self.wfile.write(body)

            do_GET = do_POST = _fail

            def log_message(self, format, *args):
                pass

        self._httpd = ThreadingHTTPServer(('127.0.0.1', 0), Handler)
        self.url = f"http://127.0.0.1:{self._httpd.server_address[1]}"
        self._thread = threading.Thread(target=self._httpd.serve_forever, daemon=True)

    def start(self):
        self._thread.start()
        return self

    def stop(self):
        self._httpd.shutdown()
        self._httpd.server_close()


@pytest.fixture
def failing_server():
    server = FailingServer().start()
    yield server
    server.stop()


@pytest.fixture
def aws_test_credentials(monkeypatch):
    monkeypatch.setenv('AWS_ACCESS_KEY_ID', 'testing')
    monkeypatch.setenv('AWS_SECRET_ACCESS_KEY', 'testing')
    monkeypatch.setenv('AWS_DEFAULT_REGION', 'eu-west-1')
    monkeypatch.delenv('AWS_PROFILE', raising=False)
    monkeypatch.delenv('AWS_MAX_ATTEMPTS', raising=False)
    monkeypatch.delenv('AWS_RETRY_MODE', raising=False)

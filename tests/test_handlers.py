"""Tests for the Lambda entry points."""

import json
from unittest.mock import MagicMock

import pytest

from prbuild import handlers
from prbuild.common.exceptions import (
    AuthenticationError,
    BuildLookupError,
    NotBuildableEvent,
    StatusPublishError,
)

from conftest import (
    BUILD_ID,
    make_build,
    make_lambda_event,
    make_pull_request,
    make_webhook_payload,
)


@pytest.fixture
def bridge(harness, monkeypatch):
    monkeypatch.setattr(handlers, "get_bridge", lambda: harness.bridge)
    return harness.bridge


def _invocations(bridge, handler, outcome):
    return bridge.metrics.registry.get_sample_value(
        "prbuild_invocations_total", {"handler": handler, "outcome": outcome}
    )


class TestStartBuild:

    def test_returns_pull_request_and_build(self, bridge, harness):
        result = handlers.start_build(make_lambda_event(make_webhook_payload()), None)

        assert result["build"]["id"] == BUILD_ID
        assert result["pull_request"]["number"] == 42
        json.dumps(result)
        assert len(harness.published()) == 2
        assert _invocations(bridge, "start_build", "success") == 1.0

    def test_unsigned_delivery_raises(self, bridge, harness):
        with pytest.raises(AuthenticationError):
            handlers.start_build(make_lambda_event(make_webhook_payload(), signed=False), None)

        assert harness.calls == []
        assert _invocations(bridge, "start_build", "rejected") == 1.0
        assert bridge.metrics.registry.get_sample_value(
            "prbuild_authentication_failures_total"
        ) == 1.0

    def test_undecodable_body_rejected(self, bridge, harness):
        event = {"headers": {"X-Hub-Signature": "sha1=00"}, "body": "!!!notb64",
                 "isBase64Encoded": True}

        with pytest.raises(AuthenticationError):
            handlers.start_build(event, None)

        assert harness.calls == []
        assert _invocations(bridge, "start_build", "rejected") == 1.0

    def test_not_a_pr_raises(self, bridge):
        with pytest.raises(NotBuildableEvent):
            handlers.start_build(make_lambda_event({"zen": "Speak like a human."}), None)

        assert _invocations(bridge, "start_build", "ignored") == 1.0


class TestCheckBuildStatus:

    def test_replaces_build_with_current_record(self, bridge, harness):
        harness.codebuild.batch_get_builds.return_value = {
            'builds': [make_build(status="SUCCEEDED")], 'buildsNotFound': []
        }
        event = {"pull_request": make_pull_request(), "build": {"id": BUILD_ID}}

        result = handlers.check_build_status(event, None)

        assert result["pull_request"] == event["pull_request"]
        assert result["build"]["buildStatus"] == "SUCCEEDED"
        assert result["build"]["id"] == BUILD_ID
        json.dumps(result)
        # input event is not mutated
        assert event["build"] == {"id": BUILD_ID}

    def test_missing_build_id_raises(self, bridge):
        with pytest.raises(BuildLookupError):
            handlers.check_build_status({"build": {}}, None)

    def test_unknown_build_raises(self, bridge, harness):
        harness.codebuild.batch_get_builds.return_value = {'builds': [], 'buildsNotFound': ["x:1"]}

        with pytest.raises(BuildLookupError):
            handlers.check_build_status({"build": {"id": "x:1"}}, None)


class TestBuildDone:

    def test_publishes_final_status(self, bridge, harness):
        event = {
            "pull_request": make_pull_request(),
            "build": {"id": BUILD_ID, "buildStatus": "FAILED", "sourceVersion": "pr/42"},
        }

        assert handlers.build_done(event, None) is None

        published = harness.published()
        assert len(published) == 1
        assert published[0]["state"] == "failure"

    def test_null_build_status_publishes_pending(self, bridge, harness):
        event = {
            "pull_request": make_pull_request(),
            "build": {"id": BUILD_ID, "buildStatus": None, "sourceVersion": "pr/42"},
        }

        handlers.build_done(event, None)

        published = harness.published()
        assert len(published) == 1
        assert published[0]["state"] == "pending"
        assert published[0]["description"] == "Build UNKNOWN..."

    def test_publish_failure_raises(self, bridge, harness):
        harness.fail_status_publishes(from_call=1)
        event = {
            "pull_request": make_pull_request(),
            "build": {"id": BUILD_ID, "buildStatus": "SUCCEEDED"},
        }

        with pytest.raises(StatusPublishError):
            handlers.build_done(event, None)

    def test_missing_build_raises_lookup_error(self, bridge):
        with pytest.raises(BuildLookupError):
            handlers.build_done({"pull_request": make_pull_request()}, None)

    def test_missing_pull_request_not_buildable(self, bridge):
        with pytest.raises(NotBuildableEvent):
            handlers.build_done({"build": {"id": BUILD_ID, "buildStatus": "FAILED"}}, None)


def test_metrics_pushed_when_gateway_configured(harness, monkeypatch):
    harness.bridge.settings = harness.bridge.settings.model_copy(
        update={"prometheus_gateway_url": "http://pushgateway:9091"}
    )
    monkeypatch.setattr(handlers, "get_bridge", lambda: harness.bridge)
    push = MagicMock()
    monkeypatch.setattr("prbuild.common.metrics.push_to_gateway", push)

    handlers.start_build(make_lambda_event(make_webhook_payload()), None)

    push.assert_called_once()
    assert push.call_args.args[0] == "http://pushgateway:9091"
    assert push.call_args.kwargs["job"] == "prbuild-start_build"


def test_get_bridge_is_built_once_from_env(monkeypatch):
    monkeypatch.setenv("BUILD_PROJECT", "widgets-pr")
    monkeypatch.setenv("SSM_GITHUB_USERNAME", "/u")
    monkeypatch.setenv("SSM_GITHUB_ACCESS_TOKEN", "/t")
    monkeypatch.setenv("SSM_GITHUB_SECRET_TOKEN", "/s")
    monkeypatch.setenv("AWS_DEFAULT_REGION", "eu-west-1")
    monkeypatch.setattr(handlers, "configure_logging", MagicMock())
    monkeypatch.setattr(handlers, "build_bridge", MagicMock(side_effect=lambda s: object()))
    handlers.get_bridge.cache_clear()

    try:
        first = handlers.get_bridge()
        second = handlers.get_bridge()
    finally:
        handlers.get_bridge.cache_clear()

    assert first is second
    handlers.build_bridge.assert_called_once()
    assert handlers.build_bridge.call_args.args[0].build_project == "widgets-pr"


@pytest.mark.parametrize("handler,event", [
    ("check_build_status", {"build": {"id": BUILD_ID}}),
    ("build_done", {"pull_request": make_pull_request(),
                    "build": {"id": BUILD_ID, "buildStatus": "SUCCEEDED"}}),
])
def test_logging_configured_before_first_log_line(harness, monkeypatch, handler, event):
    order = []

    def get_bridge():
        order.append("configure")
        return harness.bridge

    logger = MagicMock()
    logger.info.side_effect = lambda *args, **kwargs: order.append("log")
    monkeypatch.setattr(handlers, "get_bridge", get_bridge)
    monkeypatch.setattr(handlers, "logger", logger)

    getattr(handlers, handler)(event, None)

    assert order[0] == "configure"
    assert "log" in order

"""Lambda handlers for the pull-request build bridge.

Three entry points are exposed:
- start_build: API Gateway target for the GitHub webhook
- check_build_status: polled by the scheduler with {"build": {"id": ...}}
- build_done: called by the scheduler once the build has finished

The component graph is built once per Lambda container so the GitHub
credential session survives warm invocations.
"""

import functools
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

import structlog
from pydantic import ValidationError

from prbuild.build.engine import CodeBuildEngine
from prbuild.build.models import BuildRecord
from prbuild.build.orchestrator import BuildOrchestrator, parse_pull_request
from prbuild.build.poller import BuildStatusPoller
from prbuild.build.reconciler import StatusReconciler
from prbuild.common.config import BridgeSettings, get_settings
from prbuild.common.exceptions import AuthenticationError, BuildLookupError, NotBuildableEvent
from prbuild.common.logging import configure_logging
from prbuild.common.metrics import BridgeMetrics
from prbuild.github.client import CommitStatusClient
from prbuild.github.session import CredentialSession
from prbuild.ssm.store import SecretFetcher
from prbuild.webhook.models import WebhookEvent
from prbuild.webhook.signature import SignatureAuthenticator

logger = structlog.get_logger()


@dataclass
class Bridge:
    """The wired component graph shared by all handlers in a process."""
    settings: BridgeSettings
    metrics: BridgeMetrics
    session: CredentialSession
    orchestrator: BuildOrchestrator
    poller: BuildStatusPoller
    reconciler: StatusReconciler


def build_bridge(
    settings: BridgeSettings,
    ssm_client=None,
    codebuild_client=None,
    github_factory: Optional[Callable] = None,
) -> Bridge:
    """
    Wire the bridge components from settings.

    Args:
        settings: Bridge configuration
        ssm_client: Optional boto3 SSM client (for testing)
        codebuild_client: Optional boto3 CodeBuild client (for testing)
        github_factory: Optional Github object factory (for testing)

    Returns:
        Bridge with every component sharing one credential session
    """
    metrics = BridgeMetrics()
    secrets = SecretFetcher(ssm_client=ssm_client)
    engine = CodeBuildEngine(codebuild_client=codebuild_client)
    status_client = CommitStatusClient(
        base_url=settings.github_base_url,
        github_factory=github_factory,
    )
    session = CredentialSession(
        secrets=secrets,
        username_name=settings.ssm_github_username,
        token_name=settings.ssm_github_access_token,
        client=status_client,
    )
    authenticator = SignatureAuthenticator(secrets, settings.ssm_github_secret_token)

    orchestrator = BuildOrchestrator(
        authenticator=authenticator,
        session=session,
        status_client=status_client,
        engine=engine,
        project_name=settings.build_project,
        region=settings.aws_default_region,
        context=settings.status_context,
        metrics=metrics,
    )
    reconciler = StatusReconciler(
        session=session,
        status_client=status_client,
        region=settings.aws_default_region,
        context=settings.status_context,
        metrics=metrics,
    )
    return Bridge(
        settings=settings,
        metrics=metrics,
        session=session,
        orchestrator=orchestrator,
        poller=BuildStatusPoller(engine),
        reconciler=reconciler,
    )


@functools.lru_cache(maxsize=None)
def get_bridge() -> Bridge:
    """Return the process-wide bridge, building it on first use."""
    settings = get_settings()
    configure_logging(settings.log_level, settings.log_json)
    logger.info("Bridge initialised",
                build_project=settings.build_project,
                region=settings.aws_default_region)
    return build_bridge(settings)


def _invoke(name: str, bridge: Bridge, operation: Callable[[], Any]) -> Any:
    try:
        result = operation()
    except AuthenticationError as e:
        bridge.metrics.record_authentication_failure()
        bridge.metrics.record_invocation(name, "rejected")
        logger.error(f"{name} failed", error_type=type(e).__name__, error=str(e))
        raise
    except NotBuildableEvent as e:
        bridge.metrics.record_invocation(name, "ignored")
        logger.info(f"{name} ignored event", reason=str(e))
        raise
    except Exception as e:
        bridge.metrics.record_invocation(name, "error")
        logger.error(f"{name} failed", error_type=type(e).__name__, error=str(e), exc_info=True)
        raise
    else:
        bridge.metrics.record_invocation(name, "success")
        return result
    finally:
        bridge.metrics.push(bridge.settings.prometheus_gateway_url, job=f"prbuild-{name}")


def _parse_build(data: Any) -> BuildRecord:
    try:
        return BuildRecord.model_validate(data or {})
    except ValidationError as e:
        raise BuildLookupError("Event carries no valid build record", build_id="") from e


def start_build(event, context):
    """
    Lambda handler for the GitHub pull_request webhook.

    Args:
        event: API Gateway event with headers and body
        context: Lambda context

    Returns:
        {"pull_request": ..., "build": ...} for the started build
    """
    bridge = get_bridge()

    def operation() -> Dict[str, Any]:
        webhook = WebhookEvent.from_lambda_event(event)
        return bridge.orchestrator.start_build(webhook).to_payload()

    return _invoke("start_build", bridge, operation)


def check_build_status(event, context):
    """
    Lambda handler polling a build's status.

    Args:
        event: Scheduler state with build.id
        context: Lambda context

    Returns:
        The input event with build replaced by the current build record
    """
    bridge = get_bridge()
    logger.info("check_build_status", build=event.get("build"))

    def operation() -> Dict[str, Any]:
        build_id = (event.get("build") or {}).get("id")
        if not build_id:
            raise BuildLookupError("Event carries no build id", build_id="")
        build = bridge.poller.check_status(build_id)
        response = dict(event)
        response["build"] = build.to_payload()
        return response

    return _invoke("check_build_status", bridge, operation)


def build_done(event, context):
    """
    Lambda handler publishing the final commit status for a build.

    Args:
        event: Scheduler state with pull_request and build
        context: Lambda context
    """
    bridge = get_bridge()
    logger.info("build_done", build=event.get("build"))

    def operation() -> None:
        pull_request = parse_pull_request(event.get("pull_request"))
        build = _parse_build(event.get("build"))
        bridge.reconciler.reconcile(pull_request, build)

    _invoke("build_done", bridge, operation)

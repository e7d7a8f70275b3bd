"""Build start orchestration for pull-request webhooks.

The BuildOrchestrator turns an authenticated pull_request delivery into a
CodeBuild run, bracketed by two commit statuses:

1. Authenticate the delivery (X-Hub-Signature)
2. Reject anything that is not a pull_request event
3. Ensure GitHub credentials are installed
4. Publish pending "Setting up the build..." - the build is never started
   if this write fails
5. Start the build
6. Publish pending "Build is running..." with a console link - a failure
   here is logged only, the build keeps running

Source:
- prbuild/webhook/signature.py (SignatureAuthenticator)
- prbuild/github/session.py (CredentialSession)
- prbuild/build/engine.py (CodeBuildEngine)
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional

import structlog
from pydantic import ValidationError

from prbuild.build.engine import CodeBuildEngine
from prbuild.build.models import BuildRecord, BuildRequest, console_url
from prbuild.common.exceptions import NotBuildableEvent, StatusPublishError
from prbuild.common.metrics import BridgeMetrics
from prbuild.github.client import CommitStatusClient
from prbuild.github.models import CommitState, CommitStatus
from prbuild.github.session import CredentialSession
from prbuild.webhook.models import PullRequest, WebhookEvent
from prbuild.webhook.signature import SignatureAuthenticator

logger = structlog.get_logger()

SETUP_DESCRIPTION = "Setting up the build..."
RUNNING_DESCRIPTION = "Build is running..."


@dataclass
class BuildStartResult:
    """Outcome of a successful start_build.

    Attributes:
        pull_request: The pull_request section as received.
        build: The record of the started build.
    """
    pull_request: Dict[str, Any]
    build: BuildRecord

    def to_payload(self) -> Dict[str, Any]:
        """Serialize to the {pull_request, build} handler result."""
        return {
            "pull_request": self.pull_request,
            "build": self.build.to_payload(),
        }


def parse_pull_request(data: Any) -> PullRequest:
    """Validate a pull_request section.

    Raises:
        NotBuildableEvent: If the section is missing required fields.
    """
    try:
        return PullRequest.model_validate(data)
    except ValidationError as e:
        raise NotBuildableEvent(
            f"pull_request section is malformed: {e.error_count()} invalid field(s)"
        ) from e


class BuildOrchestrator:
    """Starts CodeBuild runs for authenticated pull-request deliveries.

    Attributes:
        authenticator: Verifies X-Hub-Signature.
        session: GitHub credential session.
        status_client: Commit status sink.
        engine: CodeBuild adapter.
        project_name: CodeBuild project to start.
        region: Region used for console links.
        context: Commit status context name.
    """

    def __init__(
        self,
        authenticator: SignatureAuthenticator,
        session: CredentialSession,
        status_client: CommitStatusClient,
        engine: CodeBuildEngine,
        project_name: str,
        region: str,
        context: str = "CodeBuild",
        metrics: Optional[BridgeMetrics] = None,
    ):
        self.authenticator = authenticator
        self.session = session
        self.status_client = status_client
        self.engine = engine
        self.project_name = project_name
        self.region = region
        self.context = context
        self.metrics = metrics or BridgeMetrics()

    def start_build(self, event: WebhookEvent) -> BuildStartResult:
        """Authenticate a delivery and start a build for its pull request.

        Args:
            event: The webhook delivery.

        Returns:
            BuildStartResult with the pull request and the started build.

        Raises:
            AuthenticationError: If the signature is missing or wrong.
            SecretUnavailable: If the webhook secret cannot be read.
            NotBuildableEvent: If the delivery is not a pull_request event.
            CredentialSetupError: If GitHub credentials cannot be set up.
            StatusPublishError: If the initial pending status cannot be written.
            BuildStartError: If CodeBuild does not start the build.
        """
        self.authenticator.authenticate_event(event)

        if not event.is_pull_request:
            logger.info("Ignoring non pull_request event", keys=sorted(event.payload))
            raise NotBuildableEvent("Not a PR")

        raw_pull_request = event.payload["pull_request"]
        pull_request = parse_pull_request(raw_pull_request)
        log = logger.bind(pr=pull_request.pr_id, sha=pull_request.head_sha)
        log.info("Cleared checks, this is a buildable event")

        request = BuildRequest.for_pull_request(self.project_name, pull_request.number)
        status = CommitStatus(
            owner=pull_request.owner,
            repo=pull_request.repository,
            sha=pull_request.head_sha,
            state=CommitState.PENDING,
            context=self.context,
            description=SETUP_DESCRIPTION,
        )

        self.session.ensure()

        # The build must not start unless the pending status is visible
        try:
            self.status_client.create_status(status)
        except StatusPublishError:
            self.metrics.record_status_publish_failure("setup")
            log.error("Initial status could not be published, build not started")
            raise
        self.metrics.record_status_published(status.state.value)

        build = self.engine.start(request)
        self.metrics.record_build_started()

        running = status.model_copy(update={
            "description": RUNNING_DESCRIPTION,
            "target_url": console_url(self.region, build.id),
        })
        try:
            self.status_client.create_status(running)
            self.metrics.record_status_published(running.state.value)
        except StatusPublishError as e:
            self.metrics.record_status_publish_failure("running")
            log.warning("Running status not published, build continues",
                        build_id=build.id,
                        error=str(e))

        log.info("start_build:success", build_id=build.id)
        return BuildStartResult(pull_request=raw_pull_request, build=build)

"""Commit status reconciliation for finished (or running) builds.

CodeBuild status to GitHub commit state:

    SUCCEEDED                   -> success
    FAILED                      -> failure
    FAULT, STOPPED, TIMED_OUT   -> error
    anything else               -> pending
"""

from typing import Dict, Optional

import structlog

from prbuild.build.models import BuildRecord, BuildStatus, console_url
from prbuild.common.exceptions import StatusPublishError
from prbuild.common.metrics import BridgeMetrics
from prbuild.github.client import CommitStatusClient
from prbuild.github.models import CommitState, CommitStatus
from prbuild.github.session import CredentialSession
from prbuild.webhook.models import PullRequest

logger = structlog.get_logger()

UNKNOWN_STATUS = "UNKNOWN"

STATE_BY_BUILD_STATUS: Dict[str, CommitState] = {
    BuildStatus.SUCCEEDED.value: CommitState.SUCCESS,
    BuildStatus.FAILED.value: CommitState.FAILURE,
    BuildStatus.FAULT.value: CommitState.ERROR,
    BuildStatus.STOPPED.value: CommitState.ERROR,
    BuildStatus.TIMED_OUT.value: CommitState.ERROR,
}


def map_build_status(build_status: Optional[str]) -> CommitState:
    """Map a CodeBuild status to a commit state, pending when unknown."""
    return STATE_BY_BUILD_STATUS.get(build_status, CommitState.PENDING)


class StatusReconciler:
    """Publishes the commit status matching a build's current status."""

    def __init__(
        self,
        session: CredentialSession,
        status_client: CommitStatusClient,
        region: str,
        context: str = "CodeBuild",
        metrics: Optional[BridgeMetrics] = None,
    ):
        self.session = session
        self.status_client = status_client
        self.region = region
        self.context = context
        self.metrics = metrics or BridgeMetrics()

    def reconcile(self, pull_request: PullRequest, build: BuildRecord) -> CommitStatus:
        """Publish the commit status for a build of a pull request.

        Args:
            pull_request: The pull request the build belongs to.
            build: The build record carrying buildStatus.

        Returns:
            The published CommitStatus.

        Raises:
            CredentialSetupError: If GitHub credentials cannot be set up.
            StatusPublishError: If GitHub rejects the write. Not retried; the
                next scheduler cycle may call reconcile again.
        """
        log = logger.bind(pr=pull_request.pr_id, build_id=build.id)
        log.info("Found commit identifier",
                 source_version=build.source_version,
                 sha=pull_request.head_sha)

        state = map_build_status(build.build_status)
        log.info("Github state will be", state=state.value, build_status=build.build_status)

        self.session.ensure()

        status = CommitStatus(
            owner=pull_request.owner,
            repo=pull_request.repository,
            sha=pull_request.head_sha,
            state=state,
            context=self.context,
            description=f"Build {build.build_status or UNKNOWN_STATUS}...",
            target_url=console_url(self.region, build.id),
        )
        try:
            self.status_client.create_status(status)
        except StatusPublishError as e:
            self.metrics.record_status_publish_failure("reconcile")
            log.error("Build status not published", error=str(e))
            raise

        self.metrics.record_status_published(state.value)
        return status

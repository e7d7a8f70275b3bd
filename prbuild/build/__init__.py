"""CodeBuild orchestration: start, poll and reconcile builds."""

from prbuild.build.engine import CodeBuildEngine
from prbuild.build.models import BuildRecord, BuildRequest, BuildStatus, console_url
from prbuild.build.orchestrator import BuildOrchestrator, BuildStartResult
from prbuild.build.poller import BuildStatusPoller
from prbuild.build.reconciler import StatusReconciler, map_build_status

__all__ = [
    "BuildOrchestrator",
    "BuildRecord",
    "BuildRequest",
    "BuildStartResult",
    "BuildStatus",
    "BuildStatusPoller",
    "CodeBuildEngine",
    "StatusReconciler",
    "console_url",
    "map_build_status",
]

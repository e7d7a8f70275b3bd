"""Prometheus metrics for the pull-request build bridge.

Metrics Defined:
- prbuild_invocations_total: Handler invocations by handler and outcome
- prbuild_builds_started_total: Builds started in CodeBuild
- prbuild_statuses_published_total: Commit statuses written, by state
- prbuild_status_publish_failures_total: Failed status writes, by phase
- prbuild_authentication_failures_total: Rejected webhook deliveries

Lambda functions do not expose a scrape endpoint, so the registry is pushed
to a Pushgateway at the end of each invocation when one is configured.
"""

from typing import Optional

import structlog
from prometheus_client import CollectorRegistry, Counter, push_to_gateway

logger = structlog.get_logger()


class BridgeMetrics:
    """Container for the bridge's Prometheus metrics.

    Each instance owns its registry so that several instances (one per test,
    one per process in production) never collide on metric names.
    """

    def __init__(self, registry: Optional[CollectorRegistry] = None):
        self.registry = registry or CollectorRegistry()

        self.invocations_total = Counter(
            "prbuild_invocations_total",
            "Handler invocations",
            ["handler", "outcome"],
            registry=self.registry,
        )
        self.builds_started_total = Counter(
            "prbuild_builds_started_total",
            "Builds started in CodeBuild",
            registry=self.registry,
        )
        self.statuses_published_total = Counter(
            "prbuild_statuses_published_total",
            "Commit statuses published to GitHub",
            ["state"],
            registry=self.registry,
        )
        self.status_publish_failures_total = Counter(
            "prbuild_status_publish_failures_total",
            "Commit status writes that failed",
            ["phase"],
            registry=self.registry,
        )
        self.authentication_failures_total = Counter(
            "prbuild_authentication_failures_total",
            "Webhook deliveries rejected by signature check",
            registry=self.registry,
        )

    def record_invocation(self, handler: str, outcome: str):
        """Record a handler invocation and its outcome."""
        self.invocations_total.labels(handler=handler, outcome=outcome).inc()

    def record_build_started(self):
        """Record a build start."""
        self.builds_started_total.inc()

    def record_status_published(self, state: str):
        """Record a published commit status."""
        self.statuses_published_total.labels(state=state).inc()

    def record_status_publish_failure(self, phase: str):
        """Record a failed commit status write."""
        self.status_publish_failures_total.labels(phase=phase).inc()

    def record_authentication_failure(self):
        """Record a rejected webhook delivery."""
        self.authentication_failures_total.inc()

    def push(self, gateway_url: Optional[str], job: str = "prbuild"):
        """Push metrics to a Prometheus gateway if one is configured."""
        if not gateway_url:
            return
        try:
            push_to_gateway(gateway_url, job=job, registry=self.registry)
            logger.debug("Metrics pushed to gateway", gateway_url=gateway_url)
        except Exception as e:
            logger.warning("Failed to push metrics", error=str(e))

"""Build status polling.

Stateless passthrough to CodeBuild; the external scheduler decides how often
to ask.
"""

import structlog

from prbuild.build.engine import CodeBuildEngine
from prbuild.build.models import BuildRecord

logger = structlog.get_logger()


class BuildStatusPoller:
    """Queries CodeBuild for the current state of a build."""

    def __init__(self, engine: CodeBuildEngine):
        self.engine = engine

    def check_status(self, build_id: str) -> BuildRecord:
        """Return the current record for a build.

        Raises:
            BuildLookupError: If CodeBuild fails or does not know the build.
        """
        build = self.engine.query(build_id)
        logger.info("check_build_status:success",
                    build_id=build.id,
                    build_status=build.build_status)
        return build

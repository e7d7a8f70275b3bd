"""CodeBuild adapter: start builds and look them up by id."""

from botocore.exceptions import BotoCoreError, ClientError
import structlog

from prbuild.build.models import BuildRecord, BuildRequest
from prbuild.common.aws import aws_client
from prbuild.common.exceptions import BuildLookupError, BuildStartError

logger = structlog.get_logger()


def _error_summary(e: ClientError) -> str:
    error = e.response.get('Error', {})
    return f"{error.get('Code', '')} - {error.get('Message', str(e))}"


class CodeBuildEngine:
    """
    Thin wrapper over the boto3 CodeBuild client.

    No call is retried; the scheduler driving the bridge owns retry policy.
    """

    def __init__(self, codebuild_client=None):
        """
        Initialize CodeBuildEngine.

        Args:
            codebuild_client: Optional boto3 CodeBuild client (for testing)
        """
        self._codebuild = codebuild_client or aws_client('codebuild')

    def start(self, request: BuildRequest) -> BuildRecord:
        """
        Start a build.

        Args:
            request: Project and source version to build

        Returns:
            The new build's record

        Raises:
            BuildStartError: If CodeBuild rejects the request or is unreachable
        """
        try:
            response = self._codebuild.start_build(
                projectName=request.project_name,
                sourceVersion=request.source_version
            )
        except ClientError as e:
            logger.error("Build start rejected",
                         project=request.project_name,
                         source_version=request.source_version,
                         error=_error_summary(e))
            raise BuildStartError(
                f"CodeBuild error starting {request.project_name}: {_error_summary(e)}"
            ) from e
        except BotoCoreError as e:
            logger.error("CodeBuild unreachable", project=request.project_name, error=str(e))
            raise BuildStartError(f"CodeBuild connection error: {str(e)}") from e

        build = BuildRecord.model_validate(response['build'])
        logger.info("Build started",
                    project=request.project_name,
                    source_version=request.source_version,
                    build_id=build.id)
        return build

    def query(self, build_id: str) -> BuildRecord:
        """
        Look up a single build by id.

        Args:
            build_id: CodeBuild build id

        Returns:
            The build's current record

        Raises:
            BuildLookupError: If the lookup fails or the build is unknown
        """
        try:
            response = self._codebuild.batch_get_builds(ids=[build_id])
        except ClientError as e:
            logger.error("Build lookup rejected", build_id=build_id, error=_error_summary(e))
            raise BuildLookupError(
                f"CodeBuild error looking up {build_id}: {_error_summary(e)}",
                build_id=build_id
            ) from e
        except BotoCoreError as e:
            logger.error("CodeBuild unreachable", build_id=build_id, error=str(e))
            raise BuildLookupError(
                f"CodeBuild connection error: {str(e)}",
                build_id=build_id
            ) from e

        builds = response.get('builds') or []
        if not builds:
            raise BuildLookupError(f"Build not found: {build_id}", build_id=build_id)

        return BuildRecord.model_validate(builds[0])

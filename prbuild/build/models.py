"""CodeBuild request and record models."""

from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


CONSOLE_URL_TEMPLATE = (
    "https://{region}.console.aws.amazon.com/codebuild/home"
    "?region={region}#/builds/{build_id}/view/new"
)


class BuildStatus(str, Enum):
    """Build status vocabulary reported by CodeBuild."""

    IN_PROGRESS = "IN_PROGRESS"
    SUCCEEDED = "SUCCEEDED"
    FAILED = "FAILED"
    FAULT = "FAULT"
    STOPPED = "STOPPED"
    TIMED_OUT = "TIMED_OUT"


class BuildRequest(BaseModel):
    """Parameters for a CodeBuild start_build call.

    Attributes:
        project_name: The CodeBuild project to run.
        source_version: Source reference, "pr/<number>" for pull requests.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    project_name: str = Field(..., min_length=1, alias="projectName")
    source_version: str = Field(..., min_length=1, alias="sourceVersion")

    @classmethod
    def for_pull_request(cls, project_name: str, number: int) -> "BuildRequest":
        """Build the request for a pull request number."""
        return cls(project_name=project_name, source_version=f"pr/{number}")


class BuildRecord(BaseModel):
    """A build as reported by CodeBuild.

    Only the fields the bridge reads are typed; the rest of the record is
    kept so it can be handed back to the scheduler.

    Attributes:
        id: The CodeBuild build id ("<project>:<uuid>").
        build_status: Current status, see BuildStatus. None when the
            caller sent an explicit null.
        source_version: The source reference the build was started for.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: str = Field(..., min_length=1)
    build_status: Optional[str] = Field(
        default=BuildStatus.IN_PROGRESS.value, alias="buildStatus"
    )
    source_version: Optional[str] = Field(default=None, alias="sourceVersion")

    def to_payload(self) -> Dict[str, Any]:
        """Serialize to a JSON-safe dict using CodeBuild's field names."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


def console_url(region: str, build_id: str) -> str:
    """Link to the build in the CodeBuild console."""
    return CONSOLE_URL_TEMPLATE.format(region=region, build_id=build_id)

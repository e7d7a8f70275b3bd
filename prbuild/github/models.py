"""Commit status and credential models for the GitHub side of the bridge."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class CommitState(str, Enum):
    """States GitHub accepts for a commit status."""

    PENDING = "pending"
    SUCCESS = "success"
    FAILURE = "failure"
    ERROR = "error"


class CommitStatus(BaseModel):
    """A commit status write for one (sha, context).

    GitHub keeps the latest write per (sha, context), so publishing a new
    CommitStatus for the same pair supersedes the previous one.

    Attributes:
        owner: Repository owner login.
        repo: Repository name.
        sha: Commit the status is attached to.
        state: One of pending, success, failure, error.
        context: Label distinguishing this status from other checks.
        description: Short human-readable description.
        target_url: Optional link shown next to the status.
    """

    model_config = ConfigDict(frozen=True)

    owner: str = Field(..., min_length=1)
    repo: str = Field(..., min_length=1)
    sha: str = Field(..., min_length=1)
    state: CommitState
    context: str = Field(..., min_length=1)
    description: str
    target_url: Optional[str] = None


@dataclass(frozen=True)
class Credentials:
    """Basic-auth credential pair for the GitHub API.

    The password is a personal access token and is kept out of repr.
    """
    username: str
    password: str = field(repr=False)

"""GitHub commit status client using PyGithub.

Provides the single write the bridge needs: create a commit status on a
repository's commit. Credentials are installed once by CredentialSession;
until then every publish is refused.
"""

from typing import Optional

import requests
import structlog
from github import Auth, Github, GithubException

from prbuild.common.exceptions import CredentialSetupError, StatusPublishError
from prbuild.github.models import CommitStatus, Credentials

logger = structlog.get_logger()


class CommitStatusClient:
    """
    Client for publishing commit statuses to GitHub.

    PyGithub handles request signing and pagination; this client only maps
    its failures onto StatusPublishError.
    """

    def __init__(self, base_url: str = "https://api.github.com", github_factory=None):
        """
        Initialize the client without credentials.

        Args:
            base_url: Base URL for GitHub API (supports GitHub Enterprise)
            github_factory: Optional callable building the Github object
                            from (base_url, auth) (for testing)
        """
        self.base_url = base_url
        self._github_factory = github_factory or _default_github
        self._github: Optional[Github] = None

    @property
    def is_authenticated(self) -> bool:
        """True once credentials have been installed."""
        return self._github is not None

    def install_credentials(self, credentials: Credentials) -> None:
        """
        Install basic-auth credentials used for all later requests.

        Args:
            credentials: Username and access token pair
        """
        auth = Auth.Login(credentials.username, credentials.password)
        self._github = self._github_factory(self.base_url, auth)
        logger.info("GitHub credentials installed", username=credentials.username)

    def create_status(self, status: CommitStatus) -> None:
        """
        Publish a commit status.

        Args:
            status: The status to write

        Raises:
            CredentialSetupError: If no credentials were installed
            StatusPublishError: If GitHub rejects the write or is unreachable
        """
        if self._github is None:
            raise CredentialSetupError("GitHub credentials have not been installed")

        full_name = f"{status.owner}/{status.repo}"
        kwargs = {
            "state": status.state.value,
            "description": status.description,
            "context": status.context,
        }
        if status.target_url:
            kwargs["target_url"] = status.target_url

        try:
            repo = self._github.get_repo(full_name)
            commit = repo.get_commit(status.sha)
            commit.create_status(**kwargs)
        except GithubException as e:
            message = e.data.get('message', '') if isinstance(e.data, dict) else ''
            logger.error("Commit status rejected",
                         repository=full_name,
                         sha=status.sha,
                         status_code=e.status,
                         message=message)
            raise StatusPublishError(
                f"GitHub rejected status for {full_name}@{status.sha}: {e.status} {message}".rstrip(),
                status_code=e.status
            ) from e
        except requests.RequestException as e:
            logger.error("GitHub unreachable",
                         repository=full_name,
                         sha=status.sha,
                         error=str(e))
            raise StatusPublishError(
                f"GitHub request failed for {full_name}@{status.sha}: {str(e)}"
            ) from e

        logger.info("Commit status published",
                    repository=full_name,
                    sha=status.sha,
                    state=status.state.value,
                    description=status.description)


def _default_github(base_url: str, auth: Auth.Login) -> Github:
    # Lazy objects skip the repository and commit GETs; one attempt per write.
    return Github(base_url=base_url, auth=auth, lazy=True, retry=None)

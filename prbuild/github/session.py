"""Process-wide GitHub credential session.

The session moves from UNSET to SET exactly once. The first caller reads the
username and access token from SSM and installs them into the commit status
client; every later caller finds the session SET and returns immediately.
There is no expiry or rotation: a Lambda container keeps its credentials
until it is recycled.
"""

import threading
from enum import Enum

import structlog

from prbuild.common.exceptions import CredentialSetupError, SecretUnavailable
from prbuild.github.client import CommitStatusClient
from prbuild.github.models import Credentials
from prbuild.ssm.store import SecretFetcher

logger = structlog.get_logger()


class CredentialState(str, Enum):
    """Lifecycle of a CredentialSession."""

    UNSET = "unset"
    SET = "set"


class CredentialSession:
    """Lazily established, lock-guarded GitHub credentials.

    Attributes:
        secrets: Fetcher for the credential parameters.
        username_name: SSM parameter name of the GitHub username.
        token_name: SSM parameter name of the GitHub access token.
        client: Commit status client that receives the credentials.
    """

    def __init__(
        self,
        secrets: SecretFetcher,
        username_name: str,
        token_name: str,
        client: CommitStatusClient,
    ):
        self.secrets = secrets
        self.username_name = username_name
        self.token_name = token_name
        self.client = client
        self._state = CredentialState.UNSET
        self._lock = threading.Lock()

    @property
    def state(self) -> CredentialState:
        return self._state

    def ensure(self) -> None:
        """Make sure credentials are installed, fetching them on first use.

        Raises:
            CredentialSetupError: If either secret cannot be fetched. The
                session stays UNSET so a later call can try again.
        """
        if self._state is CredentialState.SET:
            return

        with self._lock:
            if self._state is CredentialState.SET:
                return

            logger.info("Setting up GitHub credentials")
            try:
                username = self.secrets.fetch(self.username_name)
                token = self.secrets.fetch(self.token_name)
            except SecretUnavailable as e:
                logger.error("GitHub credential setup failed", parameter=e.name)
                raise CredentialSetupError(
                    f"Could not read GitHub credentials: {e}"
                ) from e

            self.client.install_credentials(Credentials(username=username, password=token))
            self._state = CredentialState.SET

"""Error taxonomy for the pull-request build bridge."""

from typing import Optional


class BridgeError(Exception):
    """Base exception for bridge errors."""
    pass


class AuthenticationError(BridgeError):
    """Raised when a webhook signature is missing or does not match."""
    pass


class NotBuildableEvent(BridgeError):
    """Raised when a webhook event is not a pull-request event."""
    pass


class SecretUnavailable(BridgeError):
    """Raised when a secret cannot be read from the parameter store.

    Attributes:
        name: The parameter name that was requested.
    """

    def __init__(self, message: str, name: str):
        self.name = name
        super().__init__(message)


class CredentialSetupError(BridgeError):
    """Raised when GitHub credentials cannot be established."""
    pass


class BuildStartError(BridgeError):
    """Raised when CodeBuild refuses or fails to start a build."""
    pass


class BuildLookupError(BridgeError):
    """Raised when a build cannot be looked up in CodeBuild.

    Attributes:
        build_id: The build identifier that was queried.
    """

    def __init__(self, message: str, build_id: str):
        self.build_id = build_id
        super().__init__(message)


class StatusPublishError(BridgeError):
    """Raised when a commit status cannot be written to GitHub.

    Attributes:
        status_code: HTTP status code returned by GitHub, if any.
    """

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)

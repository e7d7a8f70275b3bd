"""GitHub commit status publishing and credential handling."""

from prbuild.github.client import CommitStatusClient
from prbuild.github.models import CommitState, CommitStatus, Credentials
from prbuild.github.session import CredentialSession, CredentialState

__all__ = [
    "CommitState",
    "CommitStatus",
    "CommitStatusClient",
    "CredentialSession",
    "CredentialState",
    "Credentials",
]

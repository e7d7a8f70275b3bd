"""SSM Parameter Store access for bridge secrets."""

from .store import SecretFetcher

__all__ = ["SecretFetcher"]

"""X-Hub-Signature verification for GitHub webhook deliveries.

GitHub signs each delivery with HMAC-SHA1 over the raw request body using the
webhook secret, and sends the result as "sha1=<hex digest>". The check below
compares the complete header value, prefix included.
"""

import hashlib
import hmac
from typing import Optional

import structlog

from prbuild.common.exceptions import AuthenticationError
from prbuild.ssm.store import SecretFetcher
from prbuild.webhook.models import WebhookEvent

logger = structlog.get_logger()

SIGNATURE_HEADER = "X-Hub-Signature"


def compute_signature(secret: str, body: bytes) -> str:
    """Compute the X-Hub-Signature value for a body.

    Args:
        secret: The webhook secret.
        body: The raw request body.

    Returns:
        "sha1=" followed by the hex HMAC-SHA1 digest.
    """
    digest = hmac.new(secret.encode("utf-8"), body, hashlib.sha1).hexdigest()
    return "sha1=" + digest


class SignatureAuthenticator:
    """Verifies webhook deliveries against the secret held in SSM.

    The secret is read from the parameter store on every check and is never
    logged.
    """

    def __init__(self, secrets: SecretFetcher, secret_name: str):
        """Initialize the authenticator.

        Args:
            secrets: Fetcher used to read the webhook secret.
            secret_name: SSM parameter name of the webhook secret.
        """
        self.secrets = secrets
        self.secret_name = secret_name

    def authenticate(self, body: bytes, signature: Optional[str]) -> None:
        """Verify a signature over a raw body.

        Args:
            body: The raw request body.
            signature: The X-Hub-Signature header value, if present.

        Raises:
            AuthenticationError: If the header is missing or does not match.
            SecretUnavailable: If the webhook secret cannot be read.
        """
        if not signature:
            logger.warning("Webhook rejected", reason="missing signature header")
            raise AuthenticationError(f"No {SIGNATURE_HEADER} found on request")

        secret = self.secrets.fetch(self.secret_name)
        expected = compute_signature(secret, body)

        if not hmac.compare_digest(expected.encode("utf-8"), signature.encode("utf-8")):
            logger.warning("Webhook rejected", reason="signature mismatch")
            raise AuthenticationError(f"{SIGNATURE_HEADER} incorrect")

        logger.info("Authentication by X-Hub-Signature successful")

    def authenticate_event(self, event: WebhookEvent) -> None:
        """Verify the signature of a received webhook event."""
        self.authenticate(event.raw_body, event.header(SIGNATURE_HEADER))

"""GitHub webhook parsing and authentication.

Deliveries are authenticated with the X-Hub-Signature HMAC before any
payload field is acted upon. Only pull_request events are buildable.
"""

from .models import PullRequest, WebhookEvent
from .signature import SIGNATURE_HEADER, SignatureAuthenticator, compute_signature

__all__ = [
    "PullRequest",
    "SIGNATURE_HEADER",
    "SignatureAuthenticator",
    "WebhookEvent",
    "compute_signature",
]

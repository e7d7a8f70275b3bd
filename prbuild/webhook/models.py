"""GitHub webhook event models for the build bridge.

This module defines the data models for the GitHub pull_request webhook
deliveries that trigger builds. Only a handful of payload fields are consumed:

{
  "pull_request": {
    "number": 42,
    "head": {"sha": "abc123"},
    "base": {"repo": {"name": "widgets", "owner": {"login": "acme"}}}
  }
}

Every other field of the pull_request section is retained so that it can be
passed back to the scheduler unchanged.
"""

import base64
import json
from typing import Any, Dict, Mapping, Optional

import structlog
from pydantic import BaseModel, ConfigDict, Field

from prbuild.common.exceptions import AuthenticationError

logger = structlog.get_logger()


class RepositoryOwner(BaseModel):
    """Owner (user or organization) of a repository."""

    model_config = ConfigDict(extra="allow")

    login: str = Field(..., min_length=1)


class Repository(BaseModel):
    """Repository reference inside a pull request."""

    model_config = ConfigDict(extra="allow")

    name: str = Field(..., min_length=1)
    owner: RepositoryOwner


class PullRequestHead(BaseModel):
    """Head of a pull request: the commit that gets built."""

    model_config = ConfigDict(extra="allow")

    sha: str = Field(..., min_length=1)


class PullRequestBase(BaseModel):
    """Base of a pull request: the repository receiving the change."""

    model_config = ConfigDict(extra="allow")

    repo: Repository


class PullRequest(BaseModel):
    """The pull_request section of a webhook payload.

    Attributes:
        number: The pull request number within the base repository.
        head: The head commit reference.
        base: The base repository reference.
    """

    model_config = ConfigDict(extra="allow")

    number: int = Field(..., gt=0)
    head: PullRequestHead
    base: PullRequestBase

    @property
    def owner(self) -> str:
        """Login of the base repository owner."""
        return self.base.repo.owner.login

    @property
    def repository(self) -> str:
        """Name of the base repository."""
        return self.base.repo.name

    @property
    def head_sha(self) -> str:
        """Sha of the head commit."""
        return self.head.sha

    @property
    def pr_id(self) -> str:
        """Canonical identifier in format "{owner}/{repository}#{number}"."""
        return f"{self.owner}/{self.repository}#{self.number}"


class WebhookEvent(BaseModel):
    """A webhook delivery as received by the trigger runtime.

    The raw body is kept byte-for-byte because the signature is computed
    over exactly those bytes.

    Attributes:
        raw_body: The request body exactly as received.
        headers: Request headers.
        payload: The decoded JSON body, or an empty dict if it is not JSON.
    """

    model_config = ConfigDict(frozen=True)

    raw_body: bytes
    headers: Dict[str, str] = Field(default_factory=dict)
    payload: Dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_lambda_event(cls, event: Mapping[str, Any]) -> "WebhookEvent":
        """Build a WebhookEvent from a Lambda invocation event.

        API Gateway proxy integrations pass the body as the received string,
        optionally base64 encoded. Non-proxy integrations pass a parsed
        object; its bytes can only be reconstructed, so the signature will
        match only if the sender used the same compact layout.

        Args:
            event: The Lambda event with "headers" and "body" keys.

        Returns:
            WebhookEvent for the delivery.

        Raises:
            AuthenticationError: If a base64 flagged body cannot be decoded.
        """
        headers = {
            str(k): str(v) for k, v in (event.get("headers") or {}).items()
            if v is not None
        }
        body = event.get("body")

        if isinstance(body, (dict, list)):
            logger.warning(
                "Webhook body arrived pre-parsed, re-serializing for signature check"
            )
            raw_body = json.dumps(
                body, separators=(",", ":"), ensure_ascii=False
            ).encode("utf-8")
            payload = body if isinstance(body, dict) else {}
            return cls(raw_body=raw_body, headers=headers, payload=payload)

        if body is None:
            raw_body = b""
        elif isinstance(body, bytes):
            raw_body = body
        elif event.get("isBase64Encoded"):
            try:
                raw_body = base64.b64decode(body, validate=True)
            except ValueError as e:
                # No signature can match bytes that cannot be recovered
                raise AuthenticationError("Webhook body is not valid base64") from e
        else:
            raw_body = str(body).encode("utf-8")

        return cls(raw_body=raw_body, headers=headers, payload=_decode_payload(raw_body))

    def header(self, name: str) -> Optional[str]:
        """Look up a header case-insensitively."""
        wanted = name.lower()
        for key, value in self.headers.items():
            if key.lower() == wanted:
                return value
        return None

    @property
    def is_pull_request(self) -> bool:
        """True if the payload carries a pull_request section."""
        return "pull_request" in self.payload


def _decode_payload(raw_body: bytes) -> Dict[str, Any]:
    if not raw_body:
        return {}
    try:
        payload = json.loads(raw_body)
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        logger.warning("Webhook body is not JSON", error=str(e))
        return {}
    if not isinstance(payload, dict):
        logger.warning("Webhook body is not a JSON object", body_type=type(payload).__name__)
        return {}
    return payload

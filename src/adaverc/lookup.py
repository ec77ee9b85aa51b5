"""
Client for the remote verification service.

The service accepts a digest and reports whether it was registered, and
with what form/response metadata. Requests are a single JSON POST:

    {"digest": "<64 hex chars>"}

Responses:

    {"verified": true, "message": "...",
     "metadata": {"formId": "...", "responseId": "...", "timestamp": "..."},
     "storedAt": "..."}

Failed requests answer with a non-2xx status and an ``error`` field.
No retries are made; timeouts are the caller's to choose.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Optional

import httpx

from .dispatch import Resolution, validate_digest
from .errors import VerificationServiceError

logger = logging.getLogger("adaverc.lookup")

DEFAULT_TIMEOUT = 30.0
DEFAULT_PAYLOAD_KEY = "digest"

_FALLBACK_ERROR = "Verification failed"


# =============================================================================
# RESPONSE TYPES
# =============================================================================

@dataclass
class ResponseMetadata:
    """Registration details for a verified digest."""
    form_id: str
    response_id: str
    timestamp: str  # ISO 8601

    @classmethod
    def from_dict(cls, data: dict) -> "ResponseMetadata":
        return cls(
            form_id=str(data.get("formId", "")),
            response_id=str(data.get("responseId", "")),
            timestamp=str(data.get("timestamp", "")),
        )

    def to_dict(self) -> dict:
        return {
            "formId": self.form_id,
            "responseId": self.response_id,
            "timestamp": self.timestamp,
        }


@dataclass
class VerificationResult:
    """Verification service answer for one digest."""
    verified: bool
    message: str
    metadata: Optional[ResponseMetadata] = None
    stored_at: Optional[str] = None  # ISO 8601

    @classmethod
    def from_dict(cls, data: dict) -> "VerificationResult":
        if not isinstance(data, dict) or not isinstance(data.get("verified"), bool):
            raise VerificationServiceError(
                "Malformed verification response: missing boolean 'verified'"
            )
        metadata = data.get("metadata")
        stored_at = data.get("storedAt")
        return cls(
            verified=data["verified"],
            message=str(data.get("message", "")),
            metadata=ResponseMetadata.from_dict(metadata) if isinstance(metadata, dict) else None,
            stored_at=str(stored_at) if stored_at is not None else None,
        )

    def to_dict(self) -> dict:
        out: dict[str, Any] = {"verified": self.verified, "message": self.message}
        if self.metadata is not None:
            out["metadata"] = self.metadata.to_dict()
        if self.stored_at is not None:
            out["storedAt"] = self.stored_at
        return out


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO 8601 timestamp; ``Z`` is accepted and naive means UTC."""
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


# =============================================================================
# CLIENT
# =============================================================================

class VerificationClient:
    """HTTP client for the verification service.

    ``transport`` is passed through to httpx; tests use ``httpx.MockTransport``.
    """

    def __init__(
        self,
        endpoint: str,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        payload_key: str = DEFAULT_PAYLOAD_KEY,
        headers: Optional[dict[str, str]] = None,
        transport: Optional[httpx.BaseTransport | httpx.AsyncBaseTransport] = None,
    ) -> None:
        if not endpoint:
            raise VerificationServiceError("No verification endpoint configured")
        self.endpoint = endpoint
        self.timeout = timeout
        self.payload_key = payload_key
        self.headers = {"Content-Type": "application/json", **(headers or {})}
        self._transport = transport

    def _payload(self, digest: str) -> dict[str, str]:
        return {self.payload_key: validate_digest(digest)}

    def verify(self, digest: str) -> VerificationResult:
        """Look up a digest (blocking)."""
        payload = self._payload(digest)
        logger.info("Verifying digest %s… at %s", digest[:12], self.endpoint)
        try:
            with httpx.Client(timeout=self.timeout, transport=self._transport) as client:
                response = client.post(self.endpoint, json=payload, headers=self.headers)
        except httpx.HTTPError as e:
            logger.warning("Verification request failed: %s", e)
            raise VerificationServiceError(f"Verification request failed: {e}") from e
        return self._handle_response(response)

    async def verify_async(self, digest: str) -> VerificationResult:
        """Look up a digest without blocking the event loop."""
        payload = self._payload(digest)
        logger.info("Verifying digest %s… at %s", digest[:12], self.endpoint)
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(self.endpoint, json=payload, headers=self.headers)
        except httpx.HTTPError as e:
            logger.warning("Verification request failed: %s", e)
            raise VerificationServiceError(f"Verification request failed: {e}") from e
        return self._handle_response(response)

    def _handle_response(self, response: httpx.Response) -> VerificationResult:
        try:
            data = response.json()
        except ValueError:
            data = None

        if not response.is_success:
            message = _FALLBACK_ERROR
            if isinstance(data, dict) and data.get("error"):
                message = str(data["error"])
            logger.warning(
                "Verification service returned %d: %s", response.status_code, message,
            )
            raise VerificationServiceError(message, status_code=response.status_code)

        if data is None:
            raise VerificationServiceError(
                "Verification service returned a non-JSON body",
                status_code=response.status_code,
            )
        result = VerificationResult.from_dict(data)
        logger.info("Digest verified=%s", result.verified)
        return result


def verify_submission(client: VerificationClient, resolution: Resolution) -> VerificationResult:
    """Send a resolved submission's digest to the verification service."""
    return client.verify(resolution.digest)

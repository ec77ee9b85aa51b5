"""
Adaverc error types.

Parse fallbacks (content that is not JSON, array members that cannot be
reinterpreted) are not errors and never raise.
"""

from typing import Optional


class AdavercError(Exception):
    """Base class for all adaverc errors."""


class ValidationError(AdavercError):
    """Input rejected before hashing: empty input, malformed digest, or
    nesting beyond the configured depth cap."""


class EncodingError(AdavercError):
    """A value could not be serialized to canonical JSON.

    Indicates a value outside the JSON domain reached the digest engine.
    """


class VerificationServiceError(AdavercError):
    """The verification service could not be reached or rejected the request."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class ConfigError(AdavercError):
    """Raised when verifier configuration is invalid."""

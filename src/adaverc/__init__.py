"""
Adaverc — deterministic content digests for dataset verification.

Canonicalizes JSON or plain-text content so that key order and array
order do not matter, hashes it with SHA-256, and checks the digest
against a remote verification service.
"""

__version__ = "0.1.0"

from .canonical import canonicalize
from .hashing import (
    canonical_json_bytes,
    canonical_json_text,
    sha256_hex,
    is_digest,
    HASH_ALGORITHM,
    DIGEST_VERSION,
)
from .dispatch import (
    compute_digest,
    hash_content,
    parse_content,
    validate_digest,
    resolve,
    InputMode,
    Resolution,
    Submission,
    SubmissionState,
)
from .errors import (
    AdavercError,
    ValidationError,
    EncodingError,
    VerificationServiceError,
    ConfigError,
)
from .lookup import VerificationClient, VerificationResult, ResponseMetadata
from .config import VerifierConfig, load_config

__all__ = [
    "__version__",
    "canonicalize",
    "canonical_json_bytes",
    "canonical_json_text",
    "sha256_hex",
    "is_digest",
    "HASH_ALGORITHM",
    "DIGEST_VERSION",
    "compute_digest",
    "hash_content",
    "parse_content",
    "validate_digest",
    "resolve",
    "InputMode",
    "Resolution",
    "Submission",
    "SubmissionState",
    "AdavercError",
    "ValidationError",
    "EncodingError",
    "VerificationServiceError",
    "ConfigError",
    "VerificationClient",
    "VerificationResult",
    "ResponseMetadata",
    "VerifierConfig",
    "load_config",
]

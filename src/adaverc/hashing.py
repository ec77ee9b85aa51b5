"""
Canonical JSON codec and SHA-256 digests.

Serialization follows RFC 8785 (JCS): compact output, ECMAScript number
formatting and JSON.stringify string escaping, so a digest computed here
matches one computed by a browser or any other JCS implementation over
the same canonical value.
"""

import hashlib
import json
import logging
import re
from typing import Any, Union

import jcs

from .errors import EncodingError

logger = logging.getLogger("adaverc.hashing")

JsonValue = Union[dict[str, Any], list[Any], str, int, float, bool, None]

# Registered digests are permanently bound to this scheme. Any change to
# canonicalization, serialization or the hash function must bump the version.
HASH_ALGORITHM = "sha256"
DIGEST_VERSION = 1
DIGEST_HEX_LENGTH = 64

_DIGEST_RE = re.compile(r"[0-9a-f]{64}")

# Largest integer a double represents exactly (Number.MAX_SAFE_INTEGER).
MAX_SAFE_INTEGER = 2**53 - 1
_SAFE_INTEGER_DIGITS = len(str(MAX_SAFE_INTEGER))


# =============================================================================
# SERIALIZATION
# =============================================================================

def canonical_json_bytes(obj: Any) -> bytes:
    """Serialize object to canonical JSON bytes (UTF-8)."""
    try:
        return jcs.canonicalize(obj)
    except (TypeError, ValueError, OverflowError) as e:
        # UnicodeEncodeError (lone surrogates) is a ValueError
        logger.error("Canonical encoding failed for %s: %s", type(obj).__name__, e)
        raise EncodingError(f"Value cannot be canonically encoded: {e}") from e


def canonical_json_text(obj: Any) -> str:
    """Serialize object to canonical JSON text."""
    return canonical_json_bytes(obj).decode("utf-8")


def _parse_constant(name: str) -> Any:
    raise ValueError(f"{name} is not a valid JSON number")


def _parse_int(text: str) -> Union[int, float, None]:
    if len(text.lstrip("-")) > _SAFE_INTEGER_DIGITS:
        # Past any safe integer; also keeps int() clear of its digit limit
        return _parse_float(text)
    value = int(text)
    if abs(value) > MAX_SAFE_INTEGER:
        return _parse_float(text)
    return value


def _parse_float(text: str) -> Union[float, None]:
    value = float(text)
    if value in (float("inf"), float("-inf")):
        # A double cannot hold it; JSON.stringify renders Infinity as null
        return None
    return value


def decode_json(text: str) -> JsonValue:
    """Parse JSON text with double-precision number semantics.

    Raises ValueError (json.JSONDecodeError) on anything that is not a
    single JSON document, including NaN and Infinity literals.
    """
    return json.loads(
        text,
        parse_constant=_parse_constant,
        parse_int=_parse_int,
        parse_float=_parse_float,
    )


# =============================================================================
# DIGESTS
# =============================================================================

def sha256_hex(data: bytes) -> str:
    """Return lowercase hex SHA-256 digest."""
    return hashlib.sha256(data).hexdigest()


def digest_canonical(canonical: Any) -> str:
    """Hash an already canonicalized value."""
    return sha256_hex(canonical_json_bytes(canonical))


def is_digest(text: Any) -> bool:
    """True if text is exactly 64 lowercase hex characters."""
    return isinstance(text, str) and _DIGEST_RE.fullmatch(text) is not None

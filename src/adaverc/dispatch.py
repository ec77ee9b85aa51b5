"""
Input-mode dispatch: turn one verification submission into a digest.

A submission is either a digest the caller already holds ("digest" mode)
or content to canonicalize and hash ("content" mode). Content is trimmed
and parsed as JSON when possible; anything that does not parse is hashed
as a single string.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from .canonical import canonicalize
from .errors import AdavercError, ValidationError
from .hashing import JsonValue, decode_json, digest_canonical, is_digest

logger = logging.getLogger("adaverc.dispatch")

# Nesting levels accepted in content mode before canonicalization
DEFAULT_MAX_DEPTH = 100

# ECMAScript WhiteSpace and LineTerminator code points (String#trim)
_TRIM_CHARS = (
    "\t\n\x0b\x0c\r \xa0\u1680"
    "\u2000\u2001\u2002\u2003\u2004\u2005\u2006\u2007\u2008\u2009\u200a"
    "\u2028\u2029\u202f\u205f\u3000\ufeff"
)

EMPTY_DIGEST_MESSAGE = "Please enter a hash to verify"
EMPTY_CONTENT_MESSAGE = "Please enter content to hash and verify"


class InputMode(str, Enum):
    DIGEST = "digest"
    CONTENT = "content"

    @classmethod
    def parse(cls, mode: Any) -> "InputMode":
        """Accept an InputMode or its name; ``hash`` is an alias for digest."""
        if isinstance(mode, InputMode):
            return mode
        name = str(mode).strip().lower()
        if name == "hash":
            return cls.DIGEST
        try:
            return cls(name)
        except ValueError:
            raise ValidationError(
                f"Unknown input mode {mode!r} (expected 'digest' or 'content')"
            ) from None


class SubmissionState(str, Enum):
    AWAITING_INPUT = "awaiting_input"
    RESOLVED = "resolved"


@dataclass(frozen=True)
class Resolution:
    """Outcome of a successful submission: the digest to look up."""
    mode: InputMode
    digest: str
    source: str                    # "digest", "json" or "text"
    value: Optional[JsonValue] = None

    def payload(self, key: str = "digest") -> dict[str, str]:
        """Request body for the verification service."""
        return {key: self.digest}


# =============================================================================
# HELPERS
# =============================================================================

def trim_text(text: str) -> str:
    """Strip surrounding whitespace the way String#trim does."""
    return text.strip(_TRIM_CHARS)


def value_depth(value: Any) -> int:
    """Nesting depth of a value: scalars are 0, ``[]`` and ``{}`` are 1."""
    depth = 0
    stack = [(value, 0)]
    while stack:
        node, level = stack.pop()
        if isinstance(node, dict):
            children = node.values()
        elif isinstance(node, list):
            children = node
        else:
            depth = max(depth, level)
            continue
        depth = max(depth, level + 1)
        stack.extend((child, level + 1) for child in children)
    return depth


def validate_digest(text: Any) -> str:
    """Return text unchanged if it is a well-formed digest."""
    if not text:
        raise ValidationError(EMPTY_DIGEST_MESSAGE)
    if not is_digest(text):
        raise ValidationError(
            "Digest must be exactly 64 lowercase hexadecimal characters"
        )
    return text


def parse_content(text: str) -> tuple[JsonValue, str]:
    """Parse trimmed content as JSON, falling back to the text itself.

    Returns ``(value, source)`` where source is ``"json"`` or ``"text"``.
    """
    trimmed = trim_text(text or "")
    if not trimmed:
        raise ValidationError(EMPTY_CONTENT_MESSAGE)
    try:
        return decode_json(trimmed), "json"
    except RecursionError:
        raise ValidationError("Content is nested too deeply to parse") from None
    except ValueError as e:
        logger.debug("Content is not JSON, hashing as text: %s", e)
        return trimmed, "text"


def compute_digest(value: JsonValue, max_depth: int = DEFAULT_MAX_DEPTH) -> str:
    """Canonicalize a value and return its digest."""
    depth = value_depth(value)
    if depth > max_depth:
        raise ValidationError(
            f"Content nesting depth {depth} exceeds the limit of {max_depth}"
        )
    try:
        return digest_canonical(canonicalize(value))
    except RecursionError:
        raise ValidationError(
            f"Content nesting depth {depth} is too deep to canonicalize"
        ) from None


def hash_content(text: str, max_depth: int = DEFAULT_MAX_DEPTH) -> str:
    """Digest raw content exactly as content-mode verification would."""
    value, _ = parse_content(text)
    return compute_digest(value, max_depth)


# =============================================================================
# SUBMISSION
# =============================================================================

class Submission:
    """A single verification request.

    Moves from AWAITING_INPUT to RESOLVED once. The outcome (a Resolution
    or the error that prevented one) is kept, so resolving again returns it unchanged.
    """

    def __init__(self, mode: Any, text: Optional[str], max_depth: int = DEFAULT_MAX_DEPTH):
        self.mode = mode
        self.text = text
        self.max_depth = max_depth
        self._state = SubmissionState.AWAITING_INPUT
        self._resolution: Optional[Resolution] = None
        self._error: Optional[AdavercError] = None

    @property
    def state(self) -> SubmissionState:
        return self._state

    @property
    def error(self) -> Optional[AdavercError]:
        return self._error

    def resolve(self) -> Resolution:
        if self._state is SubmissionState.AWAITING_INPUT:
            try:
                self._resolution = self._compute()
            except AdavercError as e:
                self._error = e
            self._state = SubmissionState.RESOLVED
        if self._error is not None:
            raise self._error
        return self._resolution

    def _compute(self) -> Resolution:
        mode = InputMode.parse(self.mode)
        if mode is InputMode.DIGEST:
            digest = validate_digest(self.text)
            return Resolution(mode=mode, digest=digest, source="digest")

        value, source = parse_content(self.text)
        digest = compute_digest(value, self.max_depth)
        logger.debug("Content (%s) hashed to %s", source, digest[:16])
        return Resolution(mode=mode, digest=digest, source=source, value=value)

    def __repr__(self) -> str:
        return f"Submission(mode={self.mode!r}, state={self._state.value!r})"


def resolve(mode: Any, text: Optional[str], max_depth: int = DEFAULT_MAX_DEPTH) -> Resolution:
    """Resolve a one-off submission."""
    return Submission(mode, text, max_depth).resolve()

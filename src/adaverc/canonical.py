"""
Order-independent canonical form for JSON values.

Two values that differ only in object key order, or in the order of
array elements, canonicalize to the same structure:

- Object keys are ordered by UTF-16 code unit, the order JavaScript's
  default sort and RFC 8785 both use.
- Arrays of scalars are sorted by each element's string form.
- Arrays holding any object or array are sorted by the canonical JSON
  text of each (already canonicalized) element, then each text is read
  back into a value. A member whose text cannot be read back stays in
  the array as that text.

Children are always canonicalized before their parent is sorted.
Input values are never mutated; every container in the result is new.
"""

import logging
from typing import Any

from .hashing import JsonValue, canonical_json_text, decode_json

logger = logging.getLogger("adaverc.canonical")


def is_container(value: Any) -> bool:
    """True for objects and arrays."""
    return isinstance(value, (dict, list))


def sort_key(text: str) -> bytes:
    """Collation key ordering strings by UTF-16 code unit."""
    return text.encode("utf-16-be", "surrogatepass")


def scalar_text(value: Any) -> str:
    """String form of a scalar as JavaScript's String() renders it."""
    if isinstance(value, str):
        return value
    # null, true, false and ECMAScript number text
    return canonical_json_text(value)


def canonicalize(value: JsonValue) -> JsonValue:
    """Return the canonical form of a JSON value."""
    if isinstance(value, dict):
        return {key: canonicalize(value[key]) for key in sorted(value, key=sort_key)}
    if isinstance(value, list):
        return _canonicalize_array(value)
    return value


def _canonicalize_array(items: list) -> list:
    if len(items) < 2:
        return [canonicalize(item) for item in items]

    if not any(is_container(item) for item in items):
        return sorted(items, key=lambda item: sort_key(scalar_text(item)))

    members = [canonical_json_text(canonicalize(item)) for item in items]
    members.sort(key=sort_key)
    return [_reinterpret(text) for text in members]


def _reinterpret(text: str) -> JsonValue:
    """Read a serialized array member back into a value, or keep the text."""
    try:
        return decode_json(text)
    except (ValueError, RecursionError) as e:
        logger.debug("Keeping array member as serialized text (%s): %.60s", e, text)
        return text

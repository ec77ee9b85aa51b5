#!/usr/bin/env python3
"""
Regenerate golden digest vectors from the current implementation.

Golden vectors pin the exact canonical text and digest for a set of
inputs. Registered digests depend on them never changing, so only run
this when DIGEST_VERSION is bumped, and review every changed digest.

Usage:  python generate_golden.py
"""

import json
import sys
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent / "src"))

from adaverc.canonical import canonicalize
from adaverc.dispatch import parse_content
from adaverc.hashing import DIGEST_VERSION, canonical_json_text, sha256_hex


VECTORS_PATH = Path(__file__).parent / "golden" / "vectors.json"


def generate_golden_vectors():
    """Recompute canonical text and digest for every golden vector."""
    with open(VECTORS_PATH) as f:
        vectors = json.load(f)

    print(f"Regenerating golden vectors (digest_version={DIGEST_VERSION})...")
    print(f"Output: {VECTORS_PATH}")
    print()

    changed = 0
    for vector in vectors:
        value, source = parse_content(vector["content"])
        canonical = canonical_json_text(canonicalize(value))
        digest = sha256_hex(canonical.encode("utf-8"))

        icon = "✓"
        if digest != vector.get("digest"):
            icon = "✗"
            changed += 1
        vector.update(parsed_as=source, canonical=canonical, digest=digest)
        print(f"  [{icon}] {vector['id']}: {digest[:16]}… — {vector['description']}")

    with open(VECTORS_PATH, "w") as f:
        json.dump(vectors, f, indent=2, ensure_ascii=False)
        f.write("\n")

    print()
    print(f"Done. {len(vectors)} vectors, {changed} changed.")


if __name__ == "__main__":
    generate_golden_vectors()

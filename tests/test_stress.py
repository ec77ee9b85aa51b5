"""
Determinism stress tests — shuffled authoring order, concurrent callers.

Generates nested values from a fixed seed, re-authors them with shuffled
keys and array elements, and checks every variant hashes identically,
including when hashed from many threads at once.
"""

import random
from concurrent.futures import ThreadPoolExecutor

import pytest

from adaverc.canonical import canonicalize
from adaverc.dispatch import compute_digest, hash_content
from adaverc.hashing import canonical_json_text

SEEDS = list(range(25))


# =============================================================================
# GENERATORS
# =============================================================================

def _scalar(rng: random.Random):
    kind = rng.randrange(6)
    if kind == 0:
        return None
    if kind == 1:
        return rng.random() < 0.5
    if kind == 2:
        return rng.randrange(-1000, 1000)
    if kind == 3:
        return round(rng.uniform(-100, 100), 3)
    if kind == 4:
        return "".join(rng.choice("abcxyzé✓ ") for _ in range(rng.randrange(0, 6)))
    return f"k{rng.randrange(100)}"


def _value(rng: random.Random, depth: int = 0):
    if depth >= 4 or rng.random() < 0.3:
        return _scalar(rng)
    if rng.random() < 0.5:
        return {f"key{i}_{rng.randrange(50)}": _value(rng, depth + 1)
                for i in range(rng.randrange(0, 5))}
    return [_value(rng, depth + 1) for _ in range(rng.randrange(0, 5))]


def _shuffled(value, rng: random.Random):
    """Same value with key insertion order and array order shuffled."""
    if isinstance(value, dict):
        items = [(k, _shuffled(v, rng)) for k, v in value.items()]
        rng.shuffle(items)
        return dict(items)
    if isinstance(value, list):
        items = [_shuffled(v, rng) for v in value]
        rng.shuffle(items)
        return items
    return value


# =============================================================================
# PROPERTIES
# =============================================================================

class TestShuffledAuthoring:
    @pytest.mark.parametrize("seed", SEEDS)
    def test_shuffled_variants_hash_identically(self, seed):
        rng = random.Random(seed)
        value = _value(rng)
        expected = compute_digest(value)
        for _ in range(5):
            assert compute_digest(_shuffled(value, rng)) == expected

    @pytest.mark.parametrize("seed", SEEDS)
    def test_canonical_form_stable(self, seed):
        rng = random.Random(seed)
        value = _value(rng)
        first = canonical_json_text(canonicalize(value))
        assert canonical_json_text(canonicalize(value)) == first
        assert canonical_json_text(canonicalize(canonicalize(value))) == first


class TestConcurrency:
    def test_threads_agree(self):
        rng = random.Random(1234)
        values = [_value(rng) for _ in range(40)]
        expected = [compute_digest(v) for v in values]

        with ThreadPoolExecutor(max_workers=8) as pool:
            for _ in range(5):
                assert list(pool.map(compute_digest, values)) == expected

    def test_same_input_many_threads(self):
        content = '{"answers": [{"q": 2, "a": "no"}, {"q": 1, "a": "yes"}], "form": "f-1"}'
        expected = hash_content(content)
        with ThreadPoolExecutor(max_workers=16) as pool:
            results = list(pool.map(hash_content, [content] * 200))
        assert set(results) == {expected}

    def test_large_flat_array(self):
        rng = random.Random(7)
        items = [rng.randrange(10**6) for _ in range(20000)]
        shuffled = list(items)
        rng.shuffle(shuffled)
        assert compute_digest(items) == compute_digest(shuffled)

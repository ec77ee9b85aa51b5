"""
Adaverc demo — order-independent content digests.

Run:  python demo.py
"""

from adaverc import hash_content, resolve, ValidationError

# Same response, authored two ways
a = '{"respondent": "r-17", "answers": [{"q": 2, "a": "no"}, {"q": 1, "a": "yes"}]}'
b = '{"answers": [{"a": "yes", "q": 1}, {"a": "no", "q": 2}], "respondent": "r-17"}'

print(f"A: {hash_content(a)}")
print(f"B: {hash_content(b)}")
print(f"Match: {hash_content(a) == hash_content(b)}")

# Plain text is hashed as a single string
print(f"Text: {hash_content('hello world')}")

# Digests are validated before lookup
try:
    resolve("digest", "ABC123")
except ValidationError as e:
    print(f"Rejected: {e}")

# With a verification service:
# from adaverc import load_config
# client = load_config("examples/verifier.yaml").build_client()
# print(client.verify(hash_content(a)))

"""
Key Hasher

Maps an arbitrary cache key to a fixed-length, filesystem-safe identifier.

Uses MD5 for fast hashing (collision risk acceptable for cache):
- Deterministic: same key -> same identifier
- 32 lowercase hex chars, no path separators
- Worst case of a collision is a detected key mismatch, i.e. a cache miss
"""

import hashlib


def hash_key(key: str) -> str:
    """
    Hash a cache key into its on-disk identifier.

    Args:
        key: Original cache key (any string, lone surrogates included)

    Returns:
        32 character lowercase hex digest
    """
    return hashlib.md5(key.encode("utf-8", errors="surrogatepass")).hexdigest()

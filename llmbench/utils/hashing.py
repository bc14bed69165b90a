# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Hashing utilities for llmbench.

Recordings are keyed by a digest of the source path, so the same baseline
always maps to the same recording file across runs and machines that share
a checkout layout. SHA-256 everywhere. There's no reason to reach for a
weaker hash just because this isn't a security boundary.
"""

import hashlib


def compute_sha256_bytes(data: bytes) -> str:
    """Lowercase hex SHA-256 digest of raw bytes."""
    return hashlib.sha256(data).hexdigest()


def short_digest(text: str, length: int = 12) -> str:
    """
    A stable, truncated SHA-256 of a UTF-8 string.

    Twelve hex characters (48 bits) is plenty to tell baselines apart inside
    one recordings directory.
    """
    if length < 1:
        raise ValueError(f"Digest length must be positive, got {length}")
    return compute_sha256_bytes(text.encode("utf-8"))[:length]

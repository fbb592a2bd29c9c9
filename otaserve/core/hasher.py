"""Content-addressing helpers for assets and update identities.

Every value here is a pure function of the input bytes: the same file
always yields the same hash, key and update id, regardless of where it
lives or which platform asked for it.
"""

from __future__ import annotations

import base64
import hashlib


def sha256_hex(data: bytes) -> str:
    """Return the SHA-256 hex digest of raw bytes."""
    return hashlib.sha256(data).hexdigest()


def md5_hex(data: bytes) -> str:
    """Return the MD5 hex digest of raw bytes (the asset ``key``)."""
    return hashlib.md5(data).hexdigest()


def base64url(encoded: str) -> str:
    """Make a standard base64 string URL-safe and strip its padding."""
    return encoded.replace("+", "-").replace("/", "_").rstrip("=")


def asset_hash(data: bytes) -> str:
    """URL-safe, unpadded base64 of the SHA-256 digest (the asset ``hash``)."""
    digest = hashlib.sha256(data).digest()
    return base64url(base64.b64encode(digest).decode("ascii"))


def sha256_hex_to_uuid(value: str) -> str:
    """Format the first 32 hex characters of a digest as 8-4-4-4-12.

    >>> sha256_hex_to_uuid("0123456789abcdef" * 4)
    '01234567-89ab-cdef-0123-456789abcdef'
    """
    return (
        f"{value[0:8]}-{value[8:12]}-{value[12:16]}-{value[16:20]}-{value[20:32]}"
    )


def compute_update_id(metadata_bytes: bytes) -> str:
    """Update id of a bundle: UUID-formatted SHA-256 of its metadata document."""
    return sha256_hex_to_uuid(sha256_hex(metadata_bytes))

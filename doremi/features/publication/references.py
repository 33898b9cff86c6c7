"""
Playable reference resolution.

A reference that only lives inside the publisher's own session (a `blob:`
handle created by the browser, or no reference at all) cannot be handed to
other consumers. It is replaced by a URI from a fixed rotation pool, chosen
by a stable hash of the content id so the same id always gets the same URI.
"""

import hashlib
from typing import Optional, Sequence

REFERENCE_POOL = (
    "https://commondatastorage.googleapis.com/gtv-videos-bucket/sample/BigBuckBunny.mp4",
    "https://commondatastorage.googleapis.com/gtv-videos-bucket/sample/ElephantsDream.mp4",
    "https://commondatastorage.googleapis.com/gtv-videos-bucket/sample/ForBiggerBlazes.mp4",
    "https://commondatastorage.googleapis.com/gtv-videos-bucket/sample/ForBiggerEscapes.mp4",
    "https://commondatastorage.googleapis.com/gtv-videos-bucket/sample/ForBiggerFun.mp4",
)

EPHEMERAL_SCHEMES = ("blob:",)


def stable_hash(content_id: str) -> int:
    """SHA-256 of the UTF-8 id as a big-endian integer (same value in every process)."""
    return int.from_bytes(hashlib.sha256(content_id.encode("utf-8")).digest(), "big")


def pool_index(content_id: str, pool_size: int) -> int:
    if pool_size < 1:
        raise ValueError("reference pool is empty")
    return stable_hash(content_id) % pool_size


def is_ephemeral(reference: Optional[str]) -> bool:
    if not reference or not reference.strip():
        return True
    return reference.strip().lower().startswith(EPHEMERAL_SCHEMES)


def resolve_playable_reference(
    content_id: str,
    reference: Optional[str],
    pool: Sequence[str] = REFERENCE_POOL,
) -> str:
    """Return a durable URI for `content_id`: durable references pass through, trimmed."""
    if not is_ephemeral(reference):
        return reference.strip()
    return pool[pool_index(content_id, len(pool))]

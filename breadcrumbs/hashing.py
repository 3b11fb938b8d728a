"""Content addressing helpers."""

from __future__ import annotations

import hashlib


def hash_bytes(data: bytes) -> str:
    """Return the lowercase SHA-256 hex digest of ``data``."""
    return hashlib.sha256(data).hexdigest()


def hash_text(text: str) -> str:
    return hash_bytes(text.encode("utf-8"))


__all__ = ["hash_bytes", "hash_text"]

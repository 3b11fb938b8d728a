"""Source-control helpers."""

from .revision import GitRevisionProvider

__all__ = ["GitRevisionProvider"]

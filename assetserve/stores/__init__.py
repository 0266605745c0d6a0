"""Shared in-process stores."""

from .hash_cache import HashCache, ReadWriteLock

__all__ = ["HashCache", "ReadWriteLock"]

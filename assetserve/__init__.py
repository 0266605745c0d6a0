"""Fingerprinted static asset serving with filesystem-driven cache invalidation."""

from .errors import (
    AssetError,
    AssetNotFoundError,
    AssetReadError,
    UnknownMountError,
    WatchSetupError,
)
from .hashing import hash_of, token_for
from .models import Mount
from .server import AssetServer

__all__ = [
    "AssetError",
    "AssetNotFoundError",
    "AssetReadError",
    "AssetServer",
    "Mount",
    "UnknownMountError",
    "WatchSetupError",
    "hash_of",
    "token_for",
]

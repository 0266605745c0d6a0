"""Exception types raised by the asset server and their HTTP statuses."""

from __future__ import annotations


class AssetError(RuntimeError):
    """Base class for asset serving failures."""

    status_code = 500


class AssetNotFoundError(AssetError):
    """Raised when a request does not map to a servable file under a mount."""

    status_code = 404


class AssetReadError(AssetError):
    """Raised when a file exists but cannot be opened or stat'ed."""

    status_code = 500


class UnknownMountError(AssetError):
    """Raised when a URL is requested for a prefix that was never mounted."""

    status_code = 404


class WatchSetupError(AssetError):
    """Raised when a directory cannot be subscribed for change notifications."""

    status_code = 500


__all__ = [
    "AssetError",
    "AssetNotFoundError",
    "AssetReadError",
    "UnknownMountError",
    "WatchSetupError",
]

"""Core data models shared across assetserve components."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
import posixpath


def normalise_prefix(prefix: str) -> str:
    """Return ``prefix`` with exactly one leading and one trailing slash."""
    stripped = prefix.strip().strip("/")
    if not stripped:
        return "/"
    return f"/{stripped}/"


def clean_relative(name: str) -> str:
    """Clean ``name`` as if rooted at ``/`` so ``..`` cannot climb above it."""
    cleaned = posixpath.normpath("/" + name.replace("\\", "/"))
    return cleaned.lstrip("/")


def join_url(prefix: str, name: str) -> str:
    """Join a mount prefix and a relative name into a clean public URL."""
    joined = posixpath.normpath(f"{prefix}/{name}".replace("\\", "/"))
    # normpath keeps a leading double slash, which is not a valid URL path
    if joined.startswith("//"):
        joined = "/" + joined.lstrip("/")
    return joined


@dataclass(frozen=True)
class Mount:
    """A URL prefix bound to a directory on disk."""

    prefix: str
    directory: Path
    root_files: bool = False

    @classmethod
    def create(cls, prefix: str, directory: str | Path, *, root_files: bool = False) -> "Mount":
        return cls(
            prefix=normalise_prefix(prefix),
            directory=Path(directory).expanduser().resolve(),
            root_files=root_files,
        )

    def url_for(self, name: str) -> str:
        """Public URL of ``name``, relative to the mount directory."""
        return join_url(self.prefix, clean_relative(name))

    def url_for_path(self, path: Path) -> str | None:
        """Public URL of an absolute file path, or ``None`` if outside the mount."""
        try:
            relative = Path(path).relative_to(self.directory)
        except ValueError:
            return None
        return self.url_for(relative.as_posix())


__all__ = ["Mount", "clean_relative", "join_url", "normalise_prefix"]

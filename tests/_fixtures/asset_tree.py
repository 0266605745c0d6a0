"""Helper utilities for constructing temporary asset directories in tests."""

from __future__ import annotations

from pathlib import Path
from typing import Mapping, Union

Content = Union[str, bytes]


class AssetTree:
    """Writes files into a throwaway static directory."""

    def __init__(self, tmp_path: Path, name: str = "static") -> None:
        self.root = tmp_path / name
        self.root.mkdir()

    def write(self, files: Mapping[str, Content]) -> None:
        """Write `path -> contents` entries below the root."""
        for relative, content in files.items():
            path = self.root / relative
            path.parent.mkdir(parents=True, exist_ok=True)
            if isinstance(content, bytes):
                path.write_bytes(content)
            else:
                path.write_text(content, encoding="utf-8")

    def remove(self, relative: str) -> None:
        (self.root / relative).unlink()

    def path(self, relative: str = "") -> Path:
        return self.root / relative if relative else self.root


__all__ = ["AssetTree"]

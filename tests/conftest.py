from __future__ import annotations

from pathlib import Path
from typing import Iterator

import pytest

from assetserve.config import WatchConfig
from assetserve.server import AssetServer
from tests._fixtures.asset_tree import AssetTree


@pytest.fixture
def asset_tree(tmp_path: Path) -> AssetTree:
    """Provide a static directory rooted at the pytest tmp_path."""
    return AssetTree(tmp_path)


@pytest.fixture
def server() -> Iterator[AssetServer]:
    """An asset server without filesystem watching."""
    with AssetServer(watch=WatchConfig(enabled=False)) as instance:
        yield instance


@pytest.fixture
def watching_server() -> Iterator[AssetServer]:
    """An asset server using a fast polling observer."""
    with AssetServer(watch=WatchConfig(use_polling=True, poll_interval=0.1)) as instance:
        yield instance

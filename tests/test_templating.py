"""Tests for the Jinja2 asset helpers."""

from __future__ import annotations

from pathlib import Path

from jinja2 import DictLoader, Environment

from assetserve.hashing import token_for
from assetserve.server import AssetServer
from assetserve.templating import create_environment, install_template_globals
from tests._fixtures.asset_tree import AssetTree


def test_template_renders_fingerprinted_url(server: AssetServer, asset_tree: AssetTree) -> None:
    asset_tree.write({"app.css": "body {}"})
    server.mount("/static/", asset_tree.path())
    env = install_template_globals(
        Environment(loader=DictLoader({"page.html": "<link href=\"{{ asset_url('/static/', 'app.css') }}\">"})),
        server,
    )

    html = env.get_template("page.html").render()

    assert html == f'<link href="/static/app.css?v={token_for(b"body {}")}">'


def test_create_environment_loads_templates(
    server: AssetServer, asset_tree: AssetTree, tmp_path: Path
) -> None:
    asset_tree.write({"app.js": "1"})
    server.mount("/js/", asset_tree.path())
    templates = tmp_path / "templates"
    templates.mkdir()
    (templates / "base.html").write_text("{{ asset_url('/js/', 'app.js') }}", encoding="utf-8")

    env = create_environment(templates, server)

    assert env.get_template("base.html").render() == f"/js/app.js?v={token_for(b'1')}"

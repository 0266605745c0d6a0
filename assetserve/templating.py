"""Expose fingerprinted asset URLs to Jinja2 templates."""

from __future__ import annotations

from pathlib import Path

from jinja2 import Environment, FileSystemLoader, select_autoescape

from .server import AssetServer


def install_template_globals(env: Environment, server: AssetServer) -> Environment:
    """Register ``asset_url(prefix, name)`` as a global on ``env``."""
    env.globals["asset_url"] = server.asset_url
    return env


def create_environment(templates_dir: Path, server: AssetServer) -> Environment:
    """Build a template environment rooted at ``templates_dir`` with asset helpers."""
    env = Environment(
        loader=FileSystemLoader(str(templates_dir)),
        autoescape=select_autoescape(["html", "xml"]),
        trim_blocks=True,
        lstrip_blocks=True,
    )
    return install_template_globals(env, server)


__all__ = ["create_environment", "install_template_globals"]

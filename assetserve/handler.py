"""HTTP endpoint serving files below one mount."""

from __future__ import annotations

import asyncio
from email.utils import parsedate
import os
from pathlib import Path
import stat
from typing import Mapping, Tuple

from starlette.requests import Request
from starlette.responses import FileResponse, Response
from starlette.staticfiles import NotModifiedResponse

from .config import CacheConfig, PassthroughConfig
from .errors import AssetNotFoundError, AssetReadError
from .logging import get_logger
from .models import Mount, clean_relative


class AssetHandler:
    """Serves files from ``mount.directory`` for requests under ``mount.prefix``."""

    def __init__(
        self,
        mount: Mount,
        *,
        cache: CacheConfig | None = None,
        passthrough: PassthroughConfig | None = None,
    ) -> None:
        self.mount = mount
        self.cache = cache or CacheConfig()
        self.passthrough = passthrough or PassthroughConfig()
        self.logger = get_logger("handler")

    async def __call__(self, request: Request) -> Response:
        request_path = request.url.path
        target, stat_result = await asyncio.get_running_loop().run_in_executor(
            None, self.resolve, request_path
        )

        headers = {}
        if self.cache.query_param in request.query_params:
            headers["Cache-Control"] = f"public, max-age={self.cache.max_age}"
            headers["Expires"] = self.cache.expires

        # HEAD bodies are dropped by FileResponse based on the ASGI scope.
        response = FileResponse(target, headers=headers, stat_result=stat_result)
        if request.method in ("GET", "HEAD") and _is_not_modified(
            response.headers, request.headers
        ):
            return NotModifiedResponse(response.headers)
        return response

    def relative_path(self, request_path: str) -> str:
        """Map a request path to a path relative to the mount directory."""
        prefix = self.mount.prefix
        if request_path.startswith(prefix):
            return request_path[len(prefix):]
        if request_path.rstrip("/") == prefix.rstrip("/"):
            return ""
        if is_passthrough(request_path, self.passthrough):
            return request_path
        raise AssetNotFoundError(f"{request_path} is not served by {prefix}")

    def resolve(self, request_path: str) -> Tuple[Path, os.stat_result]:
        """Return the file backing ``request_path`` and its stat result.

        Raises :class:`AssetNotFoundError` for missing files, directories and
        paths escaping the mount, :class:`AssetReadError` for other I/O errors.
        """
        relative = self.relative_path(request_path)
        cleaned = clean_relative(relative)
        root = self.mount.directory
        target = (root / cleaned).resolve() if cleaned not in ("", ".") else root
        try:
            target.relative_to(root)
        except ValueError:
            self.logger.warning("Rejected %s: resolves outside %s", request_path, root)
            raise AssetNotFoundError(f"{request_path} not found") from None

        try:
            stat_result = os.stat(target)
        except (FileNotFoundError, NotADirectoryError):
            self.logger.info("Error serving %s: no such file %s", request_path, target)
            raise AssetNotFoundError(f"{request_path} not found") from None
        except OSError as exc:
            self.logger.error("Error serving %s: %s", request_path, exc)
            raise AssetReadError(f"Cannot read {request_path}") from exc

        if not stat.S_ISREG(stat_result.st_mode):
            raise AssetNotFoundError(f"{request_path} not found")
        if not os.access(target, os.R_OK):
            self.logger.error("Error serving %s: %s is not readable", request_path, target)
            raise AssetReadError(f"Cannot read {request_path}")
        return target, stat_result


def is_passthrough(request_path: str, passthrough: PassthroughConfig) -> bool:
    """Whether ``request_path`` is served from a mount root without stripping."""
    if request_path in passthrough.names:
        return True
    return len(request_path) > 1 and request_path[1] in passthrough.markers


def _is_not_modified(
    response_headers: Mapping[str, str], request_headers: Mapping[str, str]
) -> bool:
    if_none_match = request_headers.get("if-none-match")
    if if_none_match:
        etag = response_headers.get("etag")
        return etag in [tag.strip(" W/") for tag in if_none_match.split(",")]

    if_modified_since = request_headers.get("if-modified-since")
    last_modified = response_headers.get("last-modified")
    if not if_modified_since or not last_modified:
        return False
    since = parsedate(if_modified_since)
    modified = parsedate(last_modified)
    return since is not None and modified is not None and since >= modified


__all__ = ["AssetHandler", "is_passthrough"]

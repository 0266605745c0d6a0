"""Mount table, hash cache and watches bundled into one server object."""

from __future__ import annotations

from pathlib import Path
import threading
from typing import Dict, List, Optional

from .config import AssetServeConfig, CacheConfig, PassthroughConfig, WatchConfig
from .errors import AssetNotFoundError, UnknownMountError
from .handler import AssetHandler, is_passthrough
from .logging import get_logger
from .models import Mount, clean_relative, normalise_prefix
from .stores import HashCache
from .watcher import WatchRegistrar, WatchSubscription


class AssetServer:
    """Serves fingerprinted static assets from one or more mounted directories.

    Each mount gets a recursive filesystem watch that keeps the hash cache in
    step with the files on disk. ``close()`` cancels every watch; the server
    can also be used as a context manager.
    """

    def __init__(
        self,
        *,
        cache: CacheConfig | None = None,
        watch: WatchConfig | None = None,
        passthrough: PassthroughConfig | None = None,
    ) -> None:
        self.cache_config = cache or CacheConfig()
        self.watch_config = watch or WatchConfig()
        self.passthrough = passthrough or PassthroughConfig()
        self.hashes = HashCache(
            algorithm=self.cache_config.algorithm,
            token_length=self.cache_config.token_length,
        )
        self.registrar = WatchRegistrar(
            self._on_change,
            use_polling=self.watch_config.use_polling,
            poll_interval=self.watch_config.poll_interval,
        )
        self._mounts: Dict[str, Mount] = {}
        self._handlers: Dict[str, AssetHandler] = {}
        self._subscriptions: Dict[str, WatchSubscription] = {}
        self._lock = threading.Lock()
        self.logger = get_logger("server")

    @classmethod
    def from_config(cls, config: AssetServeConfig) -> "AssetServer":
        server = cls(cache=config.cache, watch=config.watch, passthrough=config.passthrough)
        for entry in config.mounts:
            server.mount(entry.prefix, entry.directory, root_files=entry.root_files)
        return server

    def mount(
        self, prefix: str, directory: str | Path, *, root_files: bool = False
    ) -> AssetHandler:
        """Register ``directory`` under ``prefix`` and return its request handler.

        Registering an existing prefix again replaces it and cancels the
        previous watch. Raises :class:`WatchSetupError` if watching fails.
        """
        mount = Mount.create(prefix, directory, root_files=root_files)
        subscription: Optional[WatchSubscription] = None
        if self.watch_config.enabled:
            subscription = self.registrar.watch(mount)
        handler = AssetHandler(mount, cache=self.cache_config, passthrough=self.passthrough)

        with self._lock:
            replaced = mount.prefix in self._mounts
            previous = self._subscriptions.pop(mount.prefix, None)
            self._mounts[mount.prefix] = mount
            self._handlers[mount.prefix] = handler
            if subscription is not None:
                self._subscriptions[mount.prefix] = subscription
        if previous is not None:
            previous.cancel()
        if replaced:
            self.hashes.discard_prefix(mount.prefix, keep=self._nested_prefixes(mount.prefix))
            self.logger.info("Replaced mount %s", mount.prefix)
        self.logger.info("Mounted %s at %s", mount.directory, mount.prefix)
        return handler

    def _nested_prefixes(self, prefix: str) -> List[str]:
        with self._lock:
            return [p for p in self._mounts if p != prefix and p.startswith(prefix)]

    def _on_change(
        self,
        mount: Mount,
        changed_path: Path,
        *,
        deleted: bool = False,
        directory: bool = False,
    ) -> None:
        self.hashes.invalidate(
            mount,
            changed_path,
            deleted=deleted,
            directory=directory,
            keep=self._nested_prefixes(mount.prefix),
        )

    @property
    def mounts(self) -> List[Mount]:
        with self._lock:
            return list(self._mounts.values())

    def handler_for(self, prefix: str) -> AssetHandler:
        key = normalise_prefix(prefix)
        with self._lock:
            handler = self._handlers.get(key)
        if handler is None:
            raise UnknownMountError(f"No mount registered for {prefix}")
        return handler

    def get_mount(self, prefix: str) -> Mount:
        return self.handler_for(prefix).mount

    def handler_for_path(self, request_path: str) -> AssetHandler:
        """Pick the handler for an incoming request path.

        The longest matching prefix wins. Passthrough paths that match no
        prefix go to the first mount flagged ``root_files``.
        """
        with self._lock:
            handlers = sorted(
                self._handlers.values(), key=lambda h: len(h.mount.prefix), reverse=True
            )
        for handler in handlers:
            prefix = handler.mount.prefix
            if request_path.startswith(prefix) or request_path == prefix.rstrip("/"):
                return handler
        if is_passthrough(request_path, self.passthrough):
            for handler in handlers:
                if handler.mount.root_files:
                    return handler
        raise AssetNotFoundError(f"{request_path} not found")

    def asset_url(self, prefix: str, name: str) -> str:
        """Return the public URL of ``name`` with a ``?v=<token>`` suffix when known.

        A missing cache entry is computed synchronously; if the file cannot be
        hashed the bare URL is returned.
        """
        mount = self.get_mount(prefix)
        url = mount.url_for(name)
        path = mount.directory / clean_relative(name)
        token = self.hashes.lookup_or_compute(url, path)
        if token:
            return f"{url}?{self.cache_config.query_param}={token}"
        return url

    def close(self) -> None:
        with self._lock:
            subscriptions = list(self._subscriptions.values())
            self._subscriptions.clear()
        for subscription in subscriptions:
            subscription.cancel()
        self.registrar.stop()

    def __enter__(self) -> "AssetServer":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


__all__ = ["AssetServer"]

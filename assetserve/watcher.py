"""Filesystem change subscriptions for mounted asset directories."""

from __future__ import annotations

import os
from pathlib import Path
import threading
from typing import Callable, Optional

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer
from watchdog.observers.api import BaseObserver, ObservedWatch
from watchdog.observers.polling import PollingObserver

from .errors import WatchSetupError
from .logging import get_logger
from .models import Mount

ChangeCallback = Callable[..., None]


class _MountEventHandler(FileSystemEventHandler):
    """Translates watchdog events below one mount into change callbacks."""

    def __init__(self, mount: Mount, callback: ChangeCallback) -> None:
        super().__init__()
        self.mount = mount
        self.callback = callback
        self.logger = get_logger("watcher")

    def on_modified(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._deliver(event.src_path, deleted=False)

    def on_created(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._deliver(event.src_path, deleted=False)

    def on_deleted(self, event: FileSystemEvent) -> None:
        self._deliver(event.src_path, deleted=True, directory=event.is_directory)

    def on_moved(self, event: FileSystemEvent) -> None:
        # a directory moved out of the tree arrives with no per-file events
        self._deliver(event.src_path, deleted=True, directory=event.is_directory)
        if not event.is_directory:
            self._deliver(event.dest_path, deleted=False)

    def _deliver(
        self, raw_path: str | bytes, *, deleted: bool, directory: bool = False
    ) -> None:
        path = Path(os.fsdecode(raw_path))
        try:
            self.callback(self.mount, path, deleted=deleted, directory=directory)
        except Exception:  # keep the observer thread alive
            self.logger.exception(
                "Error handling change to %s under %s", path, self.mount.directory
            )


class WatchSubscription:
    """Recursive watch over one mount directory."""

    def __init__(self, mount: Mount, observer: BaseObserver, watch: ObservedWatch) -> None:
        self.mount = mount
        self._observer = observer
        self._watch: Optional[ObservedWatch] = watch

    @property
    def active(self) -> bool:
        return self._watch is not None and self._observer.is_alive()

    def cancel(self) -> None:
        watch, self._watch = self._watch, None
        if watch is None:
            return
        try:
            self._observer.unschedule(watch)
        except KeyError:
            # observer already stopped and forgot its watches
            pass


class WatchRegistrar:
    """Owns the watchdog observer and hands out per-mount subscriptions."""

    def __init__(
        self,
        callback: ChangeCallback,
        *,
        use_polling: bool = False,
        poll_interval: float = 1.0,
    ) -> None:
        self.callback = callback
        self.use_polling = use_polling
        self.poll_interval = poll_interval
        self._observer: Optional[BaseObserver] = None
        self._lock = threading.Lock()
        self.logger = get_logger("watcher")

    def watch(self, mount: Mount) -> WatchSubscription:
        """Subscribe ``mount.directory`` and all subdirectories.

        Raises :class:`WatchSetupError` when the subscription cannot be made.
        """
        if not mount.directory.is_dir():
            raise WatchSetupError(f"Cannot watch {mount.directory}: not a directory")
        handler = _MountEventHandler(mount, self.callback)
        with self._lock:
            observer = self._ensure_observer()
            try:
                watch = observer.schedule(handler, str(mount.directory), recursive=True)
            except OSError as exc:
                raise WatchSetupError(f"Cannot watch {mount.directory}: {exc}") from exc
        self.logger.info("Watching %s for %s", mount.directory, mount.prefix)
        return WatchSubscription(mount, observer, watch)

    def stop(self, timeout: float | None = 5.0) -> None:
        with self._lock:
            observer, self._observer = self._observer, None
        if observer is None:
            return
        observer.stop()
        observer.join(timeout)
        self.logger.debug("Stopped filesystem observer")

    @property
    def running(self) -> bool:
        return self._observer is not None and self._observer.is_alive()

    def _ensure_observer(self) -> BaseObserver:
        if self._observer is None:
            if self.use_polling:
                self.logger.debug("Using polling observer for filesystem events")
                observer: BaseObserver = PollingObserver(timeout=self.poll_interval)
            else:
                observer = Observer()
            observer.daemon = True
            try:
                observer.start()
            except OSError as exc:
                raise WatchSetupError(f"Cannot start filesystem observer: {exc}") from exc
            self._observer = observer
        return self._observer


__all__ = ["ChangeCallback", "WatchRegistrar", "WatchSubscription"]

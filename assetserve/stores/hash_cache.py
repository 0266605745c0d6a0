"""Process-wide cache of content tokens keyed by public asset URL."""

from __future__ import annotations

from contextlib import contextmanager
from pathlib import Path
import threading
from typing import Dict, Iterable, Iterator, Optional

from ..hashing import DEFAULT_ALGORITHM, DEFAULT_TOKEN_LENGTH, hash_of
from ..logging import get_logger
from ..models import Mount


class ReadWriteLock:
    """Shared/exclusive lock; waiting writers block new readers."""

    def __init__(self) -> None:
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._writers_waiting = 0

    @contextmanager
    def read(self) -> Iterator[None]:
        with self._cond:
            while self._writer or self._writers_waiting:
                self._cond.wait()
            self._readers += 1
        try:
            yield
        finally:
            with self._cond:
                self._readers -= 1
                if not self._readers:
                    self._cond.notify_all()

    @contextmanager
    def write(self) -> Iterator[None]:
        with self._cond:
            self._writers_waiting += 1
            try:
                while self._writer or self._readers:
                    self._cond.wait()
            finally:
                self._writers_waiting -= 1
            self._writer = True
        try:
            yield
        finally:
            with self._cond:
                self._writer = False
                self._cond.notify_all()


class HashCache:
    """Maps public URLs to short content tokens.

    Reads take the shared lock and writes the exclusive one. File I/O always
    happens outside the lock; only the publish step is serialised.
    """

    def __init__(
        self,
        *,
        algorithm: str = DEFAULT_ALGORITHM,
        token_length: int = DEFAULT_TOKEN_LENGTH,
    ) -> None:
        self.algorithm = algorithm
        self.token_length = token_length
        self._tokens: Dict[str, str] = {}
        self._lock = ReadWriteLock()
        self.logger = get_logger("hash_cache")

    def resolve(self, url: str) -> Optional[str]:
        with self._lock.read():
            return self._tokens.get(url)

    def publish(self, url: str, token: str) -> None:
        with self._lock.write():
            self._tokens[url] = token

    def discard(self, url: str) -> None:
        with self._lock.write():
            self._tokens.pop(url, None)

    def discard_prefix(self, prefix: str, *, keep: Iterable[str] = ()) -> int:
        """Drop every entry whose URL lives under ``prefix``.

        URLs under any of the ``keep`` prefixes survive, so a nested mount
        keeps its tokens when the outer one is dropped.
        """
        kept = tuple(keep)
        with self._lock.write():
            stale = [
                url
                for url in self._tokens
                if url.startswith(prefix) and not url.startswith(kept)
            ]
            for url in stale:
                del self._tokens[url]
        return len(stale)

    def clear(self) -> None:
        with self._lock.write():
            self._tokens.clear()

    def snapshot(self) -> Dict[str, str]:
        with self._lock.read():
            return dict(self._tokens)

    def hash_of(self, path: Path) -> str:
        return hash_of(path, algorithm=self.algorithm, length=self.token_length)

    def lookup_or_compute(self, url: str, path: Path) -> Optional[str]:
        """Return the cached token for ``url``, hashing ``path`` on a miss.

        Concurrent misses for the same URL each hash the file; the last
        publish wins. Returns ``None`` and caches nothing if hashing fails.
        """
        token = self.resolve(url)
        if token is not None:
            return token
        try:
            token = self.hash_of(path)
        except OSError as exc:
            self.logger.debug("Cannot hash %s: %s", path, exc)
            return None
        self.publish(url, token)
        return token

    def invalidate(
        self,
        mount: Mount,
        changed_path: Path,
        *,
        deleted: bool = False,
        directory: bool = False,
        keep: Iterable[str] = (),
    ) -> None:
        """Refresh or drop the entry for a file below ``mount``.

        A deleted directory drops every entry beneath it, except URLs under
        the ``keep`` prefixes. Other directory events are ignored; files that
        appear inside them are hashed on first lookup.
        """
        url = mount.url_for_path(Path(changed_path))
        if url is None:
            self.logger.debug("Ignoring change outside %s: %s", mount.directory, changed_path)
            return
        if directory:
            if deleted:
                dropped = self.discard_prefix(url.rstrip("/") + "/", keep=keep)
                self.logger.debug("Dropped %d tokens under deleted %s", dropped, url)
            return
        if deleted:
            self.discard(url)
            self.logger.debug("Dropped token for deleted %s", url)
            return
        try:
            token = self.hash_of(Path(changed_path))
        except OSError as exc:
            self.discard(url)
            self.logger.debug("Dropped token for %s: %s", url, exc)
            return
        self.publish(url, token)
        self.logger.debug("Refreshed token for %s -> %s", url, token)

    def __contains__(self, url: object) -> bool:
        with self._lock.read():
            return url in self._tokens

    def __len__(self) -> int:
        with self._lock.read():
            return len(self._tokens)


__all__ = ["HashCache", "ReadWriteLock"]

"""Content tokens used to fingerprint asset URLs."""

from __future__ import annotations

import hashlib
from pathlib import Path
from typing import Callable, Dict
import zlib

DEFAULT_ALGORITHM = "adler32"
DEFAULT_TOKEN_LENGTH = 4

_CHECKSUMS: Dict[str, Callable[[bytes], int]] = {
    "adler32": zlib.adler32,
    "crc32": zlib.crc32,
}
_DIGESTS = ("md5", "sha1", "sha256")


def available_algorithms() -> list[str]:
    """Return the names accepted by :func:`token_for`."""
    return sorted([*_CHECKSUMS, *_DIGESTS])


def token_for(
    data: bytes,
    *,
    algorithm: str = DEFAULT_ALGORITHM,
    length: int = DEFAULT_TOKEN_LENGTH,
) -> str:
    """Return a short hex token derived from ``data``.

    Checksums are zero-padded to ``length`` hex digits and then cut to the
    first ``length`` characters, so a 32-bit Adler-32 value of ``0x620062``
    yields ``"6200"``. Digests are cut from their hex representation.
    """
    if length <= 0:
        raise ValueError("token length must be positive")
    name = algorithm.lower()
    checksum = _CHECKSUMS.get(name)
    if checksum is not None:
        value = checksum(data) & 0xFFFFFFFF
        return format(value, f"0{length}x")[:length]
    if name in _DIGESTS:
        return hashlib.new(name, data).hexdigest()[:length]
    raise ValueError(
        f"Unknown hash algorithm '{algorithm}'. Expected one of: "
        + ", ".join(available_algorithms())
    )


def hash_of(
    path: Path,
    *,
    algorithm: str = DEFAULT_ALGORITHM,
    length: int = DEFAULT_TOKEN_LENGTH,
) -> str:
    """Read ``path`` fully and return its token. ``OSError`` propagates."""
    data = Path(path).read_bytes()
    return token_for(data, algorithm=algorithm, length=length)


__all__ = [
    "DEFAULT_ALGORITHM",
    "DEFAULT_TOKEN_LENGTH",
    "available_algorithms",
    "hash_of",
    "token_for",
]

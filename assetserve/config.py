"""Configuration loading for assetserve (.assetserve.yml)."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import yaml

from .hashing import DEFAULT_ALGORITHM, DEFAULT_TOKEN_LENGTH, available_algorithms

CONFIG_FILENAME = ".assetserve.yml"


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be parsed."""


@dataclass
class ServerConfig:
    """Address the HTTP service binds to."""

    host: str = "127.0.0.1"
    port: int = 8000


@dataclass
class CacheConfig:
    """Content token and cache header settings."""

    algorithm: str = DEFAULT_ALGORITHM
    token_length: int = DEFAULT_TOKEN_LENGTH
    query_param: str = "v"
    max_age: int = 315360000
    expires: str = "Thu, 31 Dec 2037 23:55:55 GMT"


@dataclass
class WatchConfig:
    """Filesystem watching behaviour."""

    enabled: bool = True
    use_polling: bool = False
    poll_interval: float = 1.0


@dataclass
class PassthroughConfig:
    """Request paths served from the mount root without prefix stripping."""

    names: List[str] = field(default_factory=lambda: ["/favicon.ico", "/robots.txt"])
    markers: List[str] = field(default_factory=lambda: ["f", "r"])


@dataclass
class MountConfig:
    """A prefix/directory pair declared in the config file."""

    prefix: str
    directory: Path
    root_files: bool = False


@dataclass
class AssetServeConfig:
    """Represents the settings defined in .assetserve.yml."""

    root: Path
    server: ServerConfig = field(default_factory=ServerConfig)
    cache: CacheConfig = field(default_factory=CacheConfig)
    watch: WatchConfig = field(default_factory=WatchConfig)
    passthrough: PassthroughConfig = field(default_factory=PassthroughConfig)
    mounts: List[MountConfig] = field(default_factory=list)


def load_config(config_path: Path) -> AssetServeConfig:
    """Load configuration from disk, returning defaults when the file is absent."""
    config_file = _resolve_config_path(Path(config_path))
    root = config_file.parent.resolve()

    if not config_file.exists():
        return AssetServeConfig(root=root)

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping at the root")

    config = AssetServeConfig(root=root)

    server_data = _as_dict(data.get("server"))
    if server_data:
        config.server.host = _as_str(server_data.get("host")) or config.server.host
        port = _as_int(server_data.get("port"))
        if port is not None:
            config.server.port = port

    cache_data = _as_dict(data.get("cache"))
    if cache_data:
        algorithm = _as_str(cache_data.get("algorithm"))
        if algorithm:
            if algorithm.lower() not in available_algorithms():
                raise ConfigError(
                    f"Unknown cache.algorithm '{algorithm}'. Expected one of: "
                    + ", ".join(available_algorithms())
                )
            config.cache.algorithm = algorithm.lower()
        token_length = _as_int(cache_data.get("token_length"))
        if token_length is not None:
            if token_length <= 0:
                raise ConfigError("cache.token_length must be a positive integer")
            config.cache.token_length = token_length
        config.cache.query_param = (
            _as_str(cache_data.get("query_param")) or config.cache.query_param
        )
        max_age = _as_int(cache_data.get("max_age"))
        if max_age is not None:
            config.cache.max_age = max_age
        config.cache.expires = _as_str(cache_data.get("expires")) or config.cache.expires

    watch_data = _as_dict(data.get("watch"))
    if watch_data:
        enabled = _as_bool(watch_data.get("enabled"))
        if enabled is not None:
            config.watch.enabled = enabled
        use_polling = _as_bool(watch_data.get("use_polling"))
        if use_polling is not None:
            config.watch.use_polling = use_polling
        interval = _as_float(watch_data.get("poll_interval"))
        if interval is not None:
            config.watch.poll_interval = interval

    passthrough_data = _as_dict(data.get("passthrough"))
    if passthrough_data:
        if "names" in passthrough_data:
            config.passthrough.names = _as_str_list(passthrough_data.get("names"))
        if "markers" in passthrough_data:
            markers = _as_str_list(passthrough_data.get("markers"))
            if any(len(marker) != 1 for marker in markers):
                raise ConfigError("passthrough.markers must be single characters")
            config.passthrough.markers = markers

    config.mounts = _parse_mounts(data.get("mounts"), root)
    return config


def _parse_mounts(value: Any, root: Path) -> List[MountConfig]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise ConfigError("mounts must be a list of {prefix, directory} mappings")
    mounts: List[MountConfig] = []
    for index, item in enumerate(value):
        entry = _as_dict(item)
        prefix = _as_str(entry.get("prefix"))
        directory = _as_str(entry.get("directory"))
        if not prefix or not directory:
            raise ConfigError(f"mounts[{index}] needs both 'prefix' and 'directory'")
        mounts.append(
            MountConfig(
                prefix=prefix,
                directory=(root / directory).resolve(),
                root_files=_as_bool(entry.get("root_files")) or False,
            )
        )
    return mounts


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Dict[str, Any]:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded or {}


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float, bool)) else None


def _as_float(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return None
    return None


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            return None
    return None


def _as_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "1"}:
            return True
        if lowered in {"false", "no", "0"}:
            return False
    return None


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float, bool))]
    return []


__all__ = [
    "AssetServeConfig",
    "CacheConfig",
    "CONFIG_FILENAME",
    "ConfigError",
    "MountConfig",
    "PassthroughConfig",
    "ServerConfig",
    "WatchConfig",
    "load_config",
]

"""Cache configuration management."""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import orjson

from fetchcache.utils import to_local_path

DEFAULT_CACHE_DIR = Path.home() / ".fetchcache"
DEFAULT_METRIC_PREFIX = "fetchcache.file.cache"


@dataclass
class CacheConfig:
    """Configuration for the local file cache.

    Attributes:
        cache_dir: Root directory for cached files. May also be given as a
            file:// URI string.
        metric_prefix: Prefix for the gauge names exposed by the cache
    """

    cache_dir: Path = DEFAULT_CACHE_DIR
    metric_prefix: str = DEFAULT_METRIC_PREFIX

    def __post_init__(self):
        """Normalize cache_dir, keeping file:// URIs as given."""
        if self.cache_dir is None:
            self.cache_dir = DEFAULT_CACHE_DIR
        elif isinstance(self.cache_dir, str):
            if "://" not in self.cache_dir:
                self.cache_dir = Path(self.cache_dir).expanduser()
        else:
            self.cache_dir = Path(self.cache_dir).expanduser()

    @classmethod
    def load(cls, config_path: Optional[Path] = None) -> "CacheConfig":
        """Load configuration from file.

        Args:
            config_path: Path to config file. If None, uses default location.

        Returns:
            CacheConfig instance (defaults if the file does not exist)
        """
        if config_path is None:
            config_path = DEFAULT_CACHE_DIR / "config.json"

        config_path = Path(config_path)
        if not config_path.exists():
            return cls()

        with open(config_path, "rb") as f:
            data = orjson.loads(f.read())

        return cls(**data)

    def save(self, config_path: Optional[Path] = None) -> None:
        """Save configuration to file.

        Args:
            config_path: Path to config file. If None, uses
                <cache_dir>/config.json.
        """
        if config_path is None:
            config_path = to_local_path(self.cache_dir) / "config.json"

        config_path = Path(config_path)
        config_path.parent.mkdir(parents=True, exist_ok=True)

        data = {
            "cache_dir": str(self.cache_dir),
            "metric_prefix": self.metric_prefix,
        }

        with open(config_path, "wb") as f:
            f.write(orjson.dumps(data, option=orjson.OPT_INDENT_2))

    @classmethod
    def from_env(cls) -> "CacheConfig":
        """Create configuration from environment variables.

        Environment variables:
            FETCHCACHE_CACHE_DIR: Cache directory path or file:// URI
            FETCHCACHE_METRIC_PREFIX: Prefix for gauge names

        Returns:
            CacheConfig instance
        """
        config = cls()

        if os.getenv("FETCHCACHE_CACHE_DIR"):
            config = cls(cache_dir=os.getenv("FETCHCACHE_CACHE_DIR"))

        if os.getenv("FETCHCACHE_METRIC_PREFIX"):
            config.metric_prefix = os.getenv("FETCHCACHE_METRIC_PREFIX")

        return config


# Global cache configuration instance
_global_config: Optional[CacheConfig] = None


def get_global_config() -> CacheConfig:
    """Get global cache configuration.

    Environment variables win over the config file, which wins over defaults.

    Returns:
        Global CacheConfig instance
    """
    global _global_config
    if _global_config is None:
        if os.getenv("FETCHCACHE_CACHE_DIR") or os.getenv("FETCHCACHE_METRIC_PREFIX"):
            _global_config = CacheConfig.from_env()
        else:
            _global_config = CacheConfig.load()
    return _global_config


def set_global_config(config: Optional[CacheConfig]) -> None:
    """Set global cache configuration.

    Args:
        config: CacheConfig instance to use globally, or None to reset
    """
    global _global_config
    _global_config = config

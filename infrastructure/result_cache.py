"""
Content-addressed response cache.

A cache entry is one fully assembled FeatureCollection stored under the
sha256 of the resolved query text. Entries are written to a temporary
file in the cache directory and renamed into place, so a reader sees
either the complete previous entry or the complete new one.

Exports:
    ResultCache: Interface (key_for, get, put)
    NullResultCache: Always misses (default)
    FileResultCache: One <hash>.json file per entry
    create_result_cache: Build the cache selected by ServiceConfig
"""

import hashlib
import json
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, Optional

from config import ServiceConfig
from util_logger import LoggerFactory, ComponentType

logger = LoggerFactory.create_logger(ComponentType.ADAPTER, "ResultCache")


class ResultCache(ABC):
    """Interface for response caches."""

    enabled: bool = True

    @staticmethod
    def key_for(text: str) -> str:
        """Stable content hash of the resolved query text."""
        return hashlib.sha256(text.encode("utf-8")).hexdigest()

    @abstractmethod
    def get(self, key: str) -> Optional[Dict[str, Any]]:
        pass

    @abstractmethod
    def put(self, key: str, response: Dict[str, Any]) -> None:
        pass


class NullResultCache(ResultCache):
    """Cache that never stores anything."""

    enabled = False

    def get(self, key: str) -> Optional[Dict[str, Any]]:
        return None

    def put(self, key: str, response: Dict[str, Any]) -> None:
        return None


class FileResultCache(ResultCache):
    """
    Flat-file cache: `<cache_dir>/<key>.json`.

    put() overwrites an existing entry; the rename makes it atomic for
    readers on the same filesystem.
    """

    def __init__(self, cache_dir: str):
        self.cache_dir = Path(cache_dir)
        self.cache_dir.mkdir(parents=True, exist_ok=True)

    def _path(self, key: str) -> Path:
        return self.cache_dir / f"{key}.json"

    def get(self, key: str) -> Optional[Dict[str, Any]]:
        path = self._path(key)
        try:
            with path.open("r", encoding="utf-8") as f:
                return json.load(f)
        except FileNotFoundError:
            return None
        except (OSError, ValueError) as e:
            logger.warning(f"Ignoring unreadable cache entry {path.name}: {e}")
            return None

    def put(self, key: str, response: Dict[str, Any]) -> None:
        fd, tmp_name = tempfile.mkstemp(dir=self.cache_dir, prefix=f".{key}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(response, f)
            os.replace(tmp_name, self._path(key))
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
        logger.debug(f"Cached response {key}")


def create_result_cache(config: ServiceConfig) -> ResultCache:
    """Return the cache selected by CACHE_ENABLED / CACHE_DIR."""
    if config.cache_enabled:
        logger.info(f"Response cache enabled at {config.cache_dir}")
        return FileResultCache(config.cache_dir)
    return NullResultCache()

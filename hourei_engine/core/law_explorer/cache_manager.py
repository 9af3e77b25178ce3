"""
Tiered TTL cache for law API results.

Search results and law details are cached so repeated lookups do not hit the
upstream API. Each cache strategy is an ordered chain of storage backends,
tried in priority order; every backend is wrapped so that a failing tier
(unwritable directory, corrupted file, ...) degrades to the next one instead of
raising.

Key Features:
- Three tiers: memory (process-local), session (temporary directory created on first write, removed on close), disk (durable)
- Keys composed as "namespace:key", entries stored as {"value", "expires_at"}
- TTL floor of one second; stale entries are evicted when read
- Explicitly constructed instances with an injectable clock, no module-level state
"""

import hashlib
import logging
import pickle
import shutil
import tempfile
import time
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from hourei_engine.core.law_explorer.config import DEFAULT_CACHE_DIR, MIN_CACHE_TTL_MS
from hourei_engine.core.law_explorer.models import CacheStrategy

logger = logging.getLogger(__name__)

DEFAULT_NAMESPACE = "global"
DEFAULT_TTL_MS = 5 * 60 * 1000
SESSION_DIR_PREFIX = "hourei-session-"


class StorageBackend:
    """Minimal key/value interface every cache tier implements."""

    name = "storage"

    def get(self, key: str) -> Optional[Dict[str, Any]]:
        raise NotImplementedError

    def set(self, key: str, entry: Dict[str, Any]) -> None:
        raise NotImplementedError

    def delete(self, key: str) -> None:
        raise NotImplementedError

    def clear(self) -> None:
        raise NotImplementedError


class MemoryStorage(StorageBackend):
    name = "memory"

    def __init__(self):
        self._entries: Dict[str, Dict[str, Any]] = {}

    def get(self, key: str) -> Optional[Dict[str, Any]]:
        return self._entries.get(key)

    def set(self, key: str, entry: Dict[str, Any]) -> None:
        self._entries[key] = entry

    def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


class FileStorage(StorageBackend):
    """
    Pickle-file storage, one file per key.

    File names are a sha256 digest of the composed key, so arbitrary keys are
    safe on every filesystem.
    """

    name = "disk"

    def __init__(self, cache_dir: str = DEFAULT_CACHE_DIR):
        self.cache_dir = Path(cache_dir)

    def _path_for(self, key: str) -> Path:
        digest = hashlib.sha256(key.encode("utf-8")).hexdigest()
        return self.cache_dir / f"law_{digest[:32]}.pkl"

    def get(self, key: str) -> Optional[Dict[str, Any]]:
        cache_file = self._path_for(key)
        if not cache_file.exists():
            return None
        try:
            with open(cache_file, "rb") as f:
                return pickle.load(f)
        except Exception:
            # Remove corrupted cache file before reporting the failure
            cache_file.unlink(missing_ok=True)
            raise

    def set(self, key: str, entry: Dict[str, Any]) -> None:
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        with open(self._path_for(key), "wb") as f:
            pickle.dump(entry, f)

    def delete(self, key: str) -> None:
        self._path_for(key).unlink(missing_ok=True)

    def clear(self) -> None:
        if not self.cache_dir.exists():
            return
        for cache_file in self.cache_dir.glob("law_*.pkl"):
            cache_file.unlink(missing_ok=True)


class SessionStorage(FileStorage):
    """
    File storage in a private temporary directory that lives as long as the session.

    The directory is created on the first write and removed by close().
    """

    name = "session"

    def __init__(self, cache_dir: Optional[str] = None):
        self.cache_dir = Path(cache_dir) if cache_dir else None

    def get(self, key: str) -> Optional[Dict[str, Any]]:
        if self.cache_dir is None:
            return None
        return super().get(key)

    def set(self, key: str, entry: Dict[str, Any]) -> None:
        if self.cache_dir is None:
            self.cache_dir = Path(tempfile.mkdtemp(prefix=SESSION_DIR_PREFIX))
        super().set(key, entry)

    def delete(self, key: str) -> None:
        if self.cache_dir is not None:
            super().delete(key)

    def clear(self) -> None:
        if self.cache_dir is not None:
            super().clear()

    def close(self) -> None:
        if self.cache_dir is None:
            return
        shutil.rmtree(self.cache_dir, ignore_errors=True)
        self.cache_dir = None


class SafeStorage(StorageBackend):
    """Wrap a backend so that read/write failures are logged and swallowed."""

    def __init__(self, backend: StorageBackend):
        self.backend = backend
        self.name = backend.name

    def get(self, key: str) -> Optional[Dict[str, Any]]:
        try:
            return self.backend.get(key)
        except Exception as e:
            logger.warning(f"Failed to read {self.name} cache entry {key}: {e}")
            return None

    def set(self, key: str, entry: Dict[str, Any]) -> None:
        try:
            self.backend.set(key, entry)
        except Exception as e:
            logger.warning(f"Failed to write {self.name} cache entry {key}: {e}")

    def delete(self, key: str) -> None:
        try:
            self.backend.delete(key)
        except Exception as e:
            logger.warning(f"Failed to delete {self.name} cache entry {key}: {e}")

    def clear(self) -> None:
        try:
            self.backend.clear()
        except Exception as e:
            logger.warning(f"Failed to clear {self.name} cache: {e}")


class LawCache:
    """
    TTL cache over an ordered chain of storage tiers.

    Strategy chains, highest priority first:
    - memory:  [memory]
    - session: [session, memory]
    - disk:    [disk, session, memory]

    Reads walk the chain and return the first fresh entry. Writes go to every
    tier of the chain, so the memory tier always mirrors the latest value.
    """

    def __init__(
        self,
        cache_dir: str = DEFAULT_CACHE_DIR,
        clock: Callable[[], float] = time.time,
        memory: Optional[StorageBackend] = None,
        session: Optional[StorageBackend] = None,
        disk: Optional[StorageBackend] = None,
    ):
        """
        Args:
            cache_dir: Directory of the durable tier
            clock: Returns the current time in seconds
            memory: Override for the memory tier
            session: Override for the session tier (a temporary directory by default)
            disk: Override for the durable tier
        """
        self.clock = clock
        self.memory = SafeStorage(memory if memory is not None else MemoryStorage())
        self.session = SafeStorage(session if session is not None else SessionStorage())
        self.disk = SafeStorage(disk if disk is not None else FileStorage(cache_dir))
        self._chains: Dict[CacheStrategy, List[StorageBackend]] = {
            CacheStrategy.MEMORY: [self.memory],
            CacheStrategy.SESSION: [self.session, self.memory],
            CacheStrategy.DISK: [self.disk, self.session, self.memory],
        }

    @staticmethod
    def build_key(key: str, namespace: Optional[str] = None) -> str:
        return f"{namespace or DEFAULT_NAMESPACE}:{key}"

    def _now_ms(self) -> float:
        return self.clock() * 1000

    def _chain(self, strategy: Any) -> List[StorageBackend]:
        return self._chains[CacheStrategy(strategy)]

    def get(self, key: str, namespace: Optional[str] = None, strategy: Any = CacheStrategy.SESSION) -> Optional[Any]:
        """
        Look up a cached value.

        Args:
            key: Raw key within the namespace
            namespace: Key namespace (default "global")
            strategy: CacheStrategy or its string value

        Returns:
            The cached value, or None on a miss
        """
        composed = self.build_key(key, namespace)
        now = self._now_ms()
        for tier in self._chain(strategy):
            entry = tier.get(composed)
            if not isinstance(entry, dict) or "expires_at" not in entry:
                continue
            if entry["expires_at"] < now:
                tier.delete(composed)
                continue
            logger.debug(f"✓ Cache HIT ({tier.name}) {composed}")
            return entry.get("value")
        logger.debug(f"Cache MISS {composed}")
        return None

    def set(
        self,
        key: str,
        value: Any,
        namespace: Optional[str] = None,
        strategy: Any = CacheStrategy.SESSION,
        ttl_ms: Optional[int] = None,
    ) -> None:
        """
        Store a value in every tier of the strategy's chain.

        Args:
            key: Raw key within the namespace
            value: Value to cache (must be picklable for file tiers)
            namespace: Key namespace (default "global")
            strategy: CacheStrategy or its string value
            ttl_ms: Time to live in milliseconds, never below one second
        """
        composed = self.build_key(key, namespace)
        ttl = max(ttl_ms if ttl_ms is not None else DEFAULT_TTL_MS, MIN_CACHE_TTL_MS)
        entry = {"value": value, "expires_at": self._now_ms() + ttl}
        for tier in self._chain(strategy):
            tier.set(composed, entry)
        logger.debug(f"Cache SET {composed} (ttl={ttl}ms)")

    def invalidate(self, key: str, namespace: Optional[str] = None, strategy: Any = CacheStrategy.DISK) -> None:
        """Remove one entry from every tier of the strategy's chain."""
        composed = self.build_key(key, namespace)
        for tier in self._chain(strategy):
            tier.delete(composed)

    def clear(self) -> None:
        """Empty every tier."""
        for tier in (self.memory, self.session, self.disk):
            tier.clear()
        logger.info("Cleared law cache")

    def close(self) -> None:
        """Drop the session tier's temporary directory."""
        backend = self.session.backend
        if isinstance(backend, SessionStorage):
            backend.close()

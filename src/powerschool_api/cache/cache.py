"""Key-value token cache with per-entry time-to-live.

:class:`AuthSession <powerschool_api.auth.AuthSession>` mirrors the bearer
token into a :class:`TokenCache` under the configured cache key, with a TTL
equal to the ``expires_in`` seconds returned by the token endpoint.  The
``powerschool clear`` command calls :meth:`TokenCache.forget`.

:class:`DiskTokenCache` uses :mod:`diskcache`, whose ``set`` is atomic, so
several processes sharing one cache key can at worst re-authenticate
redundantly.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Optional

import diskcache


class TokenCache(ABC):
    """Interface of the key-value store that holds bearer tokens."""

    @abstractmethod
    def get(self, key: str) -> Optional[Any]:
        """Return the value stored under *key*, or ``None`` when absent or expired."""
        ...

    @abstractmethod
    def put(self, key: str, value: Any, ttl: Optional[int] = None) -> None:
        """Store *value* under *key*, expiring after *ttl* seconds (``None`` = never)."""
        ...

    @abstractmethod
    def forget(self, key: str) -> None:
        """Remove *key*. A missing key is not an error."""
        ...


class DiskTokenCache(TokenCache):
    """Disk-backed :class:`TokenCache`.

    Args:
        cache_dir: Root directory for the cache.  A ``tokens/``
            subdirectory is created inside it.

    Example::

        from powerschool_api.cache import DiskTokenCache
        from powerschool_api.config import get_cache_dir

        cache = DiskTokenCache(get_cache_dir())
        cache.put("powerschool_token", "abc", ttl=3600)
        assert cache.get("powerschool_token") == "abc"
    """

    def __init__(self, cache_dir: str | Path) -> None:
        self._directory = Path(cache_dir) / "tokens"
        self._cache = diskcache.Cache(str(self._directory))

    @property
    def directory(self) -> Path:
        """Directory holding the cache files."""
        return self._directory

    def get(self, key: str) -> Optional[Any]:
        return self._cache.get(key)

    def put(self, key: str, value: Any, ttl: Optional[int] = None) -> None:
        self._cache.set(key, value, expire=ttl)

    def forget(self, key: str) -> None:
        self._cache.delete(key)

    def close(self) -> None:
        """Close the underlying :class:`diskcache.Cache` and release resources."""
        self._cache.close()

    def __enter__(self) -> DiskTokenCache:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

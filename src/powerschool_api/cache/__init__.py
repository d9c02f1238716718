"""Token caching for powerschool_api.

This package provides the :class:`TokenCache` interface consumed by
:class:`~powerschool_api.auth.AuthSession` and :class:`DiskTokenCache`, a
:mod:`diskcache` implementation that shares the bearer token between
processes on the same machine until its ``expires_in`` TTL runs out.
"""

from powerschool_api.cache.cache import DiskTokenCache, TokenCache

__all__ = ["DiskTokenCache", "TokenCache"]

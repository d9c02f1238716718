"""Tests for the disk-backed token cache."""

from __future__ import annotations

import time

import pytest

from powerschool_api.cache import DiskTokenCache, TokenCache


@pytest.fixture()
def cache(tmp_path):
    c = DiskTokenCache(tmp_path)
    yield c
    c.close()


class TestDiskTokenCache:
    def test_is_a_token_cache(self, cache: DiskTokenCache) -> None:
        assert isinstance(cache, TokenCache)

    def test_put_and_get(self, cache: DiskTokenCache) -> None:
        cache.put("powerschool_token", "abc", ttl=3600)
        assert cache.get("powerschool_token") == "abc"

    def test_missing_key_returns_none(self, cache: DiskTokenCache) -> None:
        assert cache.get("missing") is None

    def test_forget(self, cache: DiskTokenCache) -> None:
        cache.put("powerschool_token", "abc")
        cache.forget("powerschool_token")
        assert cache.get("powerschool_token") is None

    def test_forget_missing_key(self, cache: DiskTokenCache) -> None:
        cache.forget("never-set")

    def test_ttl_expiry(self, cache: DiskTokenCache) -> None:
        cache.put("short", "abc", ttl=1)
        time.sleep(1.2)
        assert cache.get("short") is None

    def test_no_ttl_never_expires(self, cache: DiskTokenCache) -> None:
        cache.put("forever", "abc")
        assert cache.get("forever") == "abc"

    def test_directory(self, cache: DiskTokenCache, tmp_path) -> None:
        assert cache.directory == tmp_path / "tokens"
        assert cache.directory.is_dir()

    def test_shared_between_instances(self, tmp_path) -> None:
        with DiskTokenCache(tmp_path) as first:
            first.put("powerschool_token", "shared")
        with DiskTokenCache(tmp_path) as second:
            assert second.get("powerschool_token") == "shared"


class TestTokenCacheInterface:
    def test_cannot_instantiate_abstract(self) -> None:
        with pytest.raises(TypeError):
            TokenCache()  # type: ignore[abstract]

"""Tests for ValkeyClient with redis-py patched out."""

from unittest.mock import patch

import pytest
import redis

from clients.valkey_client import ValkeyClient


@pytest.fixture
def redis_mock():
    with patch("clients.valkey_client.redis.from_url") as from_url:
        yield from_url.return_value


class TestValkeyClientInit:
    """Connection initialization."""

    def test_pings_on_connect(self, redis_mock):
        ValkeyClient("redis://localhost:6379/0")
        redis_mock.ping.assert_called_once()

    def test_connection_failure_propagates(self, redis_mock):
        """Fail fast: no silent fallback when Valkey is down."""
        redis_mock.ping.side_effect = redis.ConnectionError("refused")
        with pytest.raises(redis.ConnectionError):
            ValkeyClient("redis://localhost:6379/0")


class TestBasicOperations:
    """Get/set/delete operations."""

    def test_set_with_ttl_uses_setex(self, redis_mock):
        client = ValkeyClient("redis://localhost:6379/0")
        client.set("revalidate:/dashboard", "2025-01-01T00:00:00+00:00", expire_seconds=60)
        redis_mock.setex.assert_called_once_with("revalidate:/dashboard", 60, "2025-01-01T00:00:00+00:00")

    def test_set_without_ttl(self, redis_mock):
        client = ValkeyClient("redis://localhost:6379/0")
        client.set("k", "v")
        redis_mock.set.assert_called_once_with("k", "v")

    def test_get_missing_returns_none(self, redis_mock):
        """Get on non-existent key returns None (not error)."""
        redis_mock.get.return_value = None
        assert ValkeyClient("redis://x").get("missing") is None

    def test_delete_reports_existence(self, redis_mock):
        client = ValkeyClient("redis://x")
        redis_mock.delete.return_value = 1
        assert client.delete("k") is True
        redis_mock.delete.return_value = 0
        assert client.delete("k") is False

"""Tests for ValkeyClient - Redis-compatible cache store."""

from unittest.mock import Mock

import pytest
import redis

from clients.valkey_client import ValkeyClient


@pytest.fixture
def redis_mock(monkeypatch):
    mock = Mock()
    from_url = Mock(return_value=mock)
    monkeypatch.setattr(redis, "from_url", from_url)
    mock.from_url = from_url
    return mock


@pytest.fixture
def valkey(redis_mock):
    return ValkeyClient("redis://cache.test:6379/0")


class TestValkeyClientInit:
    """Connection initialization."""

    def test_connects_and_pings(self, redis_mock, valkey):
        redis_mock.from_url.assert_called_once_with("redis://cache.test:6379/0", decode_responses=True)
        redis_mock.ping.assert_called_once()

    def test_unreachable_raises(self, redis_mock):
        redis_mock.ping.side_effect = redis.ConnectionError("refused")

        with pytest.raises(redis.ConnectionError):
            ValkeyClient("redis://cache.test:6379/0")


class TestBasicOperations:
    """Get/set operations."""

    def test_get(self, redis_mock, valkey):
        redis_mock.get.return_value = "0.92"
        assert valkey.get("exchange_rate:usd:eur") == "0.92"

    def test_get_missing_returns_none(self, redis_mock, valkey):
        redis_mock.get.return_value = None
        assert valkey.get("missing") is None

    def test_set_without_expiry(self, redis_mock, valkey):
        valkey.set("key", "value")

        redis_mock.set.assert_called_once_with("key", "value")
        redis_mock.setex.assert_not_called()

    def test_set_with_expiry(self, redis_mock, valkey):
        valkey.set("key", "value", expire_seconds=3600)

        redis_mock.setex.assert_called_once_with("key", 3600, "value")
        redis_mock.set.assert_not_called()

    def test_ping(self, valkey):
        assert valkey.ping() is True

    def test_close(self, redis_mock, valkey):
        valkey.close()
        redis_mock.close.assert_called_once()

"""
Valkey (Redis-compatible) client, used as a short-lived cache.

Simple wrapper around redis-py. Connection URL from Vault.
Raises on connection failure; callers that treat the cache as optional
catch redis.RedisError themselves.
"""

import logging

import redis

logger = logging.getLogger(__name__)


class ValkeyClient:
    """
    Redis-compatible client for Valkey.

    Usage:
        client = ValkeyClient("redis://localhost:6379/0")
        client.set("key", "value", expire_seconds=300)
        value = client.get("key")  # Returns None if missing
    """

    def __init__(self, url: str):
        """
        Initialize Valkey connection.

        Args:
            url: Redis-compatible connection URL (e.g., redis://localhost:6379/0)

        Raises:
            redis.ConnectionError: If connection fails
        """
        self._client = redis.from_url(url, decode_responses=True)
        self._client.ping()
        logger.info("ValkeyClient connected")

    def ping(self) -> bool:
        """
        Health check.

        Returns True if Valkey responds.
        Raises redis.ConnectionError if unreachable.
        """
        self._client.ping()
        return True

    def get(self, key: str) -> str | None:
        """Get value by key. None if the key doesn't exist."""
        return self._client.get(key)

    def set(self, key: str, value: str, expire_seconds: int | None = None) -> None:
        """
        Set key to value, optionally with expiration.

        Args:
            key: Key to set
            value: Value to store
            expire_seconds: TTL in seconds (None or 0 for no expiration)
        """
        if expire_seconds:
            self._client.setex(key, expire_seconds, value)
        else:
            self._client.set(key, value)

    def close(self) -> None:
        """Close the connection."""
        self._client.close()
        logger.info("ValkeyClient closed")

from __future__ import annotations

from typing import Any, Optional

from redis import Redis
from redis.exceptions import RedisError

from authsession.storage.errors import StorageError


class RedisStorage:
    """Redis-backed session storage for server-side and multi-tenant use.

    Keys are namespaced ``<prefix>:<namespace>:<key>`` so independent sessions
    can share one Redis database without colliding.
    """

    # Default operation timeout for Redis commands
    DEFAULT_OPERATION_TIMEOUT = 5.0

    def __init__(
        self,
        redis_url: Optional[str] = None,
        *,
        namespace: str = "default",
        prefix: str = "authsession",
        client: Any = None,
        socket_timeout: float = DEFAULT_OPERATION_TIMEOUT,
    ) -> None:
        if client is None and not redis_url:
            raise ValueError("redis_url or client is required")
        self.redis_url = redis_url
        self.namespace = namespace
        self.prefix = prefix
        self.client = client or Redis.from_url(
            redis_url,
            decode_responses=True,
            socket_timeout=socket_timeout,
            socket_connect_timeout=socket_timeout,
        )

    def _key(self, key: str) -> str:
        return f"{self.prefix}:{self.namespace}:{key}"

    def verify_connection(self) -> None:
        """Assert Redis connectivity before handing the storage to a store."""
        try:
            self.client.ping()
        except RedisError as exc:
            raise StorageError(f"redis unavailable: {exc}") from exc

    def get(self, key: str) -> Optional[str]:
        try:
            value = self.client.get(self._key(key))
        except RedisError as exc:
            raise StorageError(f"redis read failed: {exc}", {"key": key}) from exc
        if isinstance(value, bytes):
            return value.decode()
        return value

    def set(self, key: str, value: str) -> None:
        try:
            self.client.set(self._key(key), value)
        except RedisError as exc:
            raise StorageError(f"redis write failed: {exc}", {"key": key}) from exc

    def remove(self, key: str) -> None:
        try:
            self.client.delete(self._key(key))
        except RedisError as exc:
            raise StorageError(f"redis delete failed: {exc}", {"key": key}) from exc

    def close(self) -> None:
        self.client.close()

"""Redis infrastructure: connection health for the API, run locks for the worker."""

import threading
from typing import Any

import redis
import redis.asyncio as aioredis
import structlog

from order_sync_service.config import get_settings
from order_sync_service.exceptions import ImportAlreadyRunning
from shared.constants import RUN_LOCK_PREFIX

logger = structlog.get_logger()

_redis_client: aioredis.Redis | None = None
_sync_redis_client: redis.Redis | None = None


async def get_redis_client() -> aioredis.Redis | None:
    """Get or create the global async Redis client."""
    global _redis_client
    if _redis_client is None:
        settings = get_settings()
        try:
            _redis_client = aioredis.from_url(
                settings.redis_url,
                decode_responses=False,
                socket_connect_timeout=2,
                socket_timeout=2,
                retry_on_timeout=True,
            )
            await _redis_client.ping()
            logger.info("Redis connection established")
        except Exception as e:
            logger.warning("Redis unavailable", error=str(e))
            _redis_client = None
    return _redis_client


async def close_redis() -> None:
    """Close the Redis connection on shutdown."""
    global _redis_client
    if _redis_client:
        await _redis_client.close()
        _redis_client = None


def get_sync_redis_client() -> redis.Redis | None:
    """Get or create the global sync Redis client used by the worker."""
    global _sync_redis_client
    if _sync_redis_client is None:
        settings = get_settings()
        try:
            _sync_redis_client = redis.Redis.from_url(
                settings.redis_url,
                socket_connect_timeout=2,
                socket_timeout=5,
                retry_on_timeout=True,
            )
            _sync_redis_client.ping()
        except redis.RedisError as e:
            logger.warning("Redis unavailable, using process local run locks", error=str(e))
            _sync_redis_client = None
    return _sync_redis_client


_local_locks: dict[str, threading.Lock] = {}
_local_locks_guard = threading.Lock()


def _local_lock(name: str) -> threading.Lock:
    with _local_locks_guard:
        return _local_locks.setdefault(name, threading.Lock())


class RunLock:
    """Non-blocking per-shop lock so two imports of one shop never overlap.

    Backed by a Redis lock that expires after ``timeout`` seconds. Without
    Redis a process local lock is used.
    """

    def __init__(self, client: redis.Redis | None, shop_id: str, timeout: int = 3600):
        self.name = f"{RUN_LOCK_PREFIX}:{shop_id}"
        self.shop_id = shop_id
        self._lock: Any = (
            client.lock(self.name, timeout=timeout, blocking=False)
            if client is not None
            else _local_lock(self.name)
        )
        self._distributed = client is not None

    def __enter__(self) -> "RunLock":
        acquired = self._lock.acquire(blocking=False)
        if not acquired:
            raise ImportAlreadyRunning(f"import for shop '{self.shop_id}' is already running")
        return self

    def __exit__(self, *exc_info: Any) -> None:
        try:
            self._lock.release()
        except redis.exceptions.LockError as e:
            # lock expired while the run was still going
            logger.warning("Run lock already released", lock=self.name, error=str(e))

"""Unit tests for the per-shop run lock."""

import pytest
import redis

from order_sync_service.exceptions import ImportAlreadyRunning
from order_sync_service.infrastructure.redis import RunLock


class FakeRedisLock:
    def __init__(self, acquired: bool = True, expired: bool = False) -> None:
        self.acquired = acquired
        self.expired = expired
        self.released = False

    def acquire(self, blocking: bool = True) -> bool:
        return self.acquired

    def release(self) -> None:
        if self.expired:
            raise redis.exceptions.LockNotOwnedError("Cannot release a lock that's no longer owned")
        self.released = True


class FakeRedis:
    def __init__(self, lock: FakeRedisLock) -> None:
        self._lock = lock
        self.names: list[str] = []

    def lock(self, name: str, timeout: int, blocking: bool) -> FakeRedisLock:
        self.names.append(name)
        return self._lock


class TestLocalRunLock:
    """Without Redis the lock is process local."""

    def test_second_run_of_same_shop_is_rejected(self) -> None:
        with RunLock(None, "local-shop-a"):
            with pytest.raises(ImportAlreadyRunning):
                with RunLock(None, "local-shop-a"):
                    pass

    def test_lock_is_released_after_run(self) -> None:
        with RunLock(None, "local-shop-b"):
            pass
        with RunLock(None, "local-shop-b"):
            pass

    def test_different_shops_do_not_block(self) -> None:
        with RunLock(None, "local-shop-c"):
            with RunLock(None, "local-shop-d"):
                pass


class TestRedisRunLock:
    def test_lock_name(self) -> None:
        client = FakeRedis(FakeRedisLock())

        with RunLock(client, "shop1"):
            pass

        assert client.names == ["order-sync:lock:shop1"]
        assert client._lock.released is True

    def test_held_lock_raises(self) -> None:
        with pytest.raises(ImportAlreadyRunning, match="already running"):
            with RunLock(FakeRedis(FakeRedisLock(acquired=False)), "shop1"):
                pass

    def test_expired_lock_release_is_tolerated(self) -> None:
        with RunLock(FakeRedis(FakeRedisLock(expired=True)), "shop1"):
            pass

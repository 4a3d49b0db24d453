"""Redis lock backend implementing IDeploymentLock."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager

import redis
from redis.exceptions import LockError as RedisLockError
from redis.exceptions import RedisError

from filestack.core.exceptions import LockError


class RedisDeploymentLock:
    """Production IDeploymentLock backed by a Redis lease lock."""

    KEY_PREFIX = "filestack:lock:"

    def __init__(self, host: str = "localhost", port: int = 6379, db: int = 0,
                 lease_seconds: int = 1800, blocking_timeout: float = 10.0) -> None:
        self._host = host
        self._port = port
        self._db = db
        self._lease_seconds = lease_seconds
        self._blocking_timeout = blocking_timeout
        self._client = redis.Redis(host=host, port=port, db=db, decode_responses=True)

    @contextmanager
    def hold(self, key: str) -> Iterator[None]:
        name = f"{self.KEY_PREFIX}{key}"
        try:
            lock = self._client.lock(
                name, timeout=self._lease_seconds, blocking_timeout=self._blocking_timeout,
                # acquired and released from different threads by the async passes
                thread_local=False,
            )
            acquired = lock.acquire()
        except RedisError as exc:
            raise LockError(f"Redis lock {name!r} could not be acquired: {exc}") from exc
        if not acquired:
            raise LockError(f"Deployment {key!r} is locked by another pass")
        try:
            yield
        finally:
            try:
                lock.release()
            except RedisLockError as exc:
                # The lease expired mid-pass; another pass may already hold it.
                raise LockError(f"Redis lock {name!r} was lost before release: {exc}") from exc

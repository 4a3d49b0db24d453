"""Tests for worker-thread calls and async lock holding."""

from __future__ import annotations

import asyncio
import time
from unittest.mock import patch

import fakeredis
import pytest

from filestack.core.exceptions import LockError
from filestack.deploy.execution import WorkerCall, hold_lock
from filestack.persistence.memory_backend import MemoryDeploymentLock
from filestack.persistence.redis_backend import RedisDeploymentLock


def _slow(value, delay=0.1):
    time.sleep(delay)
    return value


async def test_wait_returns_result():
    assert await WorkerCall(_slow, "done", 0).wait(1.0) == "done"


async def test_settle_after_timeout_returns_late_result():
    call = WorkerCall(_slow, "late")
    with pytest.raises(TimeoutError):
        await call.wait(0.01)
    assert await call.settle() == (True, "late")


async def test_settle_reports_failure():
    def boom():
        time.sleep(0.05)
        raise RuntimeError("boom")

    call = WorkerCall(boom)
    with pytest.raises(TimeoutError):
        await call.wait(0.01)
    assert await call.settle() == (False, None)


async def test_hold_lock_releases_on_error():
    lock = MemoryDeploymentLock(blocking_timeout=0.1)
    with pytest.raises(RuntimeError):
        async with hold_lock(lock, "files"):
            assert lock.locked("files")
            raise RuntimeError("boom")
    assert not lock.locked("files")


async def test_hold_lock_refused_while_held():
    lock = MemoryDeploymentLock(blocking_timeout=0.05)
    async with hold_lock(lock, "files"):
        with pytest.raises(LockError):
            async with hold_lock(lock, "files"):
                pass


async def test_hold_lock_with_redis_backend():
    server = fakeredis.FakeServer()
    with patch("redis.Redis", return_value=fakeredis.FakeRedis(server=server, decode_responses=True)):
        lock = RedisDeploymentLock(blocking_timeout=0.05)
    client = fakeredis.FakeRedis(server=server, decode_responses=True)

    async with hold_lock(lock, "files"):
        assert client.exists("filestack:lock:files")
    assert not client.exists("filestack:lock:files")

"""In-memory backends for unit tests: dict-backed fakes."""

from __future__ import annotations

import threading
from collections.abc import Iterator
from contextlib import contextmanager

from filestack.core.exceptions import LockError
from filestack.models.deployment import DeploymentState
from filestack.persistence.serialization import dumps, loads, next_revision, retain


class MemoryStateStore:
    """Dict-backed IStateStore; keeps serialized copies so callers can't mutate it."""

    def __init__(self) -> None:
        self._states: dict[str, str] = {}
        self._guard = threading.Lock()

    def load(self, deployment_id: str) -> DeploymentState | None:
        raw = self._states.get(deployment_id)
        return loads(raw) if raw is not None else None

    def save(self, state: DeploymentState) -> DeploymentState:
        with self._guard:
            stored = next_revision(self.load(state.deployment_id), state)
            self._states[state.deployment_id] = dumps(stored)
            return stored

    def clear(self, deployment_id: str, preserving: set[str]) -> DeploymentState | None:
        with self._guard:
            current = self.load(deployment_id)
            if current is None:
                return None
            kept = retain(current, preserving)
            if kept is None:
                del self._states[deployment_id]
                return None
            stored = next_revision(current, kept)
            self._states[deployment_id] = dumps(stored)
            return stored


class MemoryDeploymentLock:
    """Process-local IDeploymentLock."""

    def __init__(self, blocking_timeout: float = 10.0) -> None:
        self._blocking_timeout = blocking_timeout
        self._locks: dict[str, threading.Lock] = {}
        self._guard = threading.Lock()

    @contextmanager
    def hold(self, key: str) -> Iterator[None]:
        with self._guard:
            lock = self._locks.setdefault(key, threading.Lock())
        if not lock.acquire(timeout=self._blocking_timeout):
            raise LockError(f"Deployment {key!r} is locked by another pass")
        try:
            yield
        finally:
            lock.release()

    def locked(self, key: str) -> bool:
        with self._guard:
            lock = self._locks.get(key)
        return lock is not None and lock.locked()

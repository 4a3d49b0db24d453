"""Shared test doubles: re-export memory backends and the fake cloud."""

from __future__ import annotations

from filestack.adapters.memory import FakeCloud, create_memory_registry
from filestack.persistence.memory_backend import MemoryDeploymentLock, MemoryStateStore

__all__ = ["FakeCloud", "MemoryDeploymentLock", "MemoryStateStore", "create_memory_registry"]

"""Protocol interfaces for the deployer's pluggable seams.

Adapters, state stores and locks are matched structurally, so backends
and test doubles need no common base class.
"""

from __future__ import annotations

from contextlib import AbstractContextManager
from typing import Any, Protocol, runtime_checkable

from filestack.models.deployment import DeploymentState

# ---------------------------------------------------------------------------
# Provisioner Adapters
# ---------------------------------------------------------------------------

@runtime_checkable
class IResourceAdapter(Protocol):
    """One external resource, bound to its identity if it was applied before."""

    def apply(self, spec: dict[str, Any]) -> dict[str, Any]: ...

    def remove(self) -> None: ...

    def identity(self) -> dict[str, Any]: ...


@runtime_checkable
class IAdapterFactory(Protocol):
    """Build an adapter for a resource name and its previously stored identity."""

    def __call__(self, name: str, identity: dict[str, Any] | None = None) -> IResourceAdapter: ...


# ---------------------------------------------------------------------------
# Reconciliation State Store
# ---------------------------------------------------------------------------

@runtime_checkable
class IStateStore(Protocol):
    """Durable copy of the deployment state across passes."""

    def load(self, deployment_id: str) -> DeploymentState | None: ...

    def save(self, state: DeploymentState) -> DeploymentState: ...

    def clear(self, deployment_id: str, preserving: set[str]) -> DeploymentState | None: ...


# ---------------------------------------------------------------------------
# Locking
# ---------------------------------------------------------------------------

@runtime_checkable
class IDeploymentLock(Protocol):
    """Serializes passes that target the same deployment id."""

    def hold(self, key: str) -> AbstractContextManager[None]: ...

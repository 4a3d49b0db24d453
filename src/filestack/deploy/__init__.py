"""Deployment and teardown passes for the file service."""

from __future__ import annotations

from filestack.adapters import AdapterRegistry, create_adapter_registry
from filestack.core.config import AppSettings
from filestack.deploy.orchestrator import DeploymentOrchestrator
from filestack.deploy.teardown import TeardownCoordinator
from filestack.persistence import create_persistence


def create_orchestrator(
    settings: AppSettings | None = None,
    *,
    region: str | None = None,
    adapters: AdapterRegistry | None = None,
) -> DeploymentOrchestrator:
    """Wire an orchestrator from settings; `region` overrides the AWS default."""
    if settings is None:
        settings = AppSettings()
    state_store, lock = create_persistence(settings)
    return DeploymentOrchestrator(
        adapters=adapters or create_adapter_registry(settings, region=region),
        state_store=state_store,
        lock=lock,
        deployment_id=settings.deployment_id,
        code_root=settings.code_root,
        apply_timeout=settings.apply_timeout,
    )


def create_teardown_coordinator(
    settings: AppSettings | None = None,
    *,
    region: str | None = None,
    adapters: AdapterRegistry | None = None,
) -> TeardownCoordinator:
    if settings is None:
        settings = AppSettings()
    state_store, lock = create_persistence(settings)
    return TeardownCoordinator(
        adapters=adapters or create_adapter_registry(settings, region=region),
        state_store=state_store,
        lock=lock,
        deployment_id=settings.deployment_id,
        remove_timeout=settings.apply_timeout,
    )


__all__ = [
    "DeploymentOrchestrator",
    "TeardownCoordinator",
    "create_orchestrator",
    "create_teardown_coordinator",
]

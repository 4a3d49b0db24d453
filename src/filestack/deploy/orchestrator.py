"""Deployment orchestrator: applies the file service's resources in dependency order."""

from __future__ import annotations

import asyncio

from filestack.core.exceptions import ProvisioningError
from filestack.core.logging import bind_context
from filestack.core.protocols import IAdapterFactory, IDeploymentLock, IResourceAdapter, IStateStore
from filestack.deploy.blueprint import API_GATEWAY, STORAGE, build_resource_specs, derive_routing_rules
from filestack.deploy.execution import WorkerCall, hold_lock
from filestack.deploy.graph import OutputGraph, dependency_order, resolve_references
from filestack.models.deployment import (
    CompositeResult,
    DeploymentResult,
    DeploymentState,
    ResourceKind,
    ResourceRecord,
    ResourceSpec,
)
from filestack.models.inputs import DeploymentConfig


class DeploymentOrchestrator:
    """Creates or updates every resource, strictly one at a time.

    State is saved after each resource, so a failed or cancelled pass
    leaves exactly the resources that completed recorded; nothing is
    rolled back.
    """

    def __init__(
        self,
        *,
        adapters: dict[ResourceKind, IAdapterFactory],
        state_store: IStateStore,
        lock: IDeploymentLock,
        deployment_id: str,
        code_root: str = "functions",
        apply_timeout: float | None = 300.0,
    ) -> None:
        self._adapters = adapters
        self._store = state_store
        self._lock = lock
        self._deployment_id = deployment_id
        self._code_root = code_root
        self._apply_timeout = apply_timeout

    async def deploy(self, config: DeploymentConfig) -> DeploymentResult:
        specs = build_resource_specs(
            config, deployment_id=self._deployment_id, code_root=self._code_root,
        )
        graph, state = await self.reconcile(specs)
        result = CompositeResult(
            api=dict(graph[API_GATEWAY]),
            storage=dict(graph[STORAGE]),
            cdn_origin_url=str(graph[API_GATEWAY].get("url", "")),
            derived_routing_rules=derive_routing_rules(),
        )
        return DeploymentResult(result=result, state=state)

    async def reconcile(self, specs: list[ResourceSpec]) -> tuple[OutputGraph, DeploymentState]:
        """Apply `specs` in dependency order and return the pass's outputs and state.

        An apply that outlives a cancellation or timeout is waited for while
        the lock is still held, and recorded if it succeeded.

        Raises:
            DependencyError: before any adapter runs, for a bad reference graph.
            UnresolvedReferenceError: a source did not produce a referenced key.
            ProvisioningError: an adapter failed or timed out.
        """
        ordered = dependency_order(specs)
        log = bind_context(deployment_id=self._deployment_id)
        unhandled = next((spec for spec in ordered if spec.kind not in self._adapters), None)
        if unhandled is not None:
            raise ProvisioningError(unhandled.name, f"no adapter registered for {unhandled.kind}")

        async with hold_lock(self._lock, self._deployment_id):
            state = self._store.load(self._deployment_id) or DeploymentState(
                deployment_id=self._deployment_id,
            )
            graph = OutputGraph()
            log.info("deploy_started", resources=[spec.name for spec in ordered])

            for step, spec in enumerate(ordered, 1):
                resolved = resolve_references(graph, spec)
                previous = state.resources.get(spec.name)
                adapter = self._adapters[spec.kind](
                    spec.name, previous.identity if previous is not None else None,
                )
                log.info("resource_applying", resource=spec.name, kind=str(spec.kind),
                         step=step, total=len(ordered))
                call = WorkerCall(adapter.apply, resolved)
                try:
                    outputs = await call.wait(self._apply_timeout)
                except (asyncio.CancelledError, TimeoutError) as exc:
                    completed, outputs = await call.settle()
                    if completed:
                        state = self._record(graph, state, spec, adapter, outputs)
                    if isinstance(exc, asyncio.CancelledError):
                        log.warning("deploy_cancelled", resource=spec.name, recorded=completed)
                        raise
                    log.error("resource_failed", resource=spec.name, error="timeout", recorded=completed)
                    raise ProvisioningError(
                        spec.name, f"timed out after {self._apply_timeout}s",
                    ) from exc
                except Exception as exc:
                    log.error("resource_failed", resource=spec.name, error=str(exc))
                    raise ProvisioningError(spec.name, exc) from exc

                state = self._record(graph, state, spec, adapter, outputs)

            log.info("deploy_completed", resources=len(graph), version=state.version)
        return graph, state

    def _record(
        self,
        graph: OutputGraph,
        state: DeploymentState,
        spec: ResourceSpec,
        adapter: IResourceAdapter,
        outputs: dict,
    ) -> DeploymentState:
        graph.record(spec.name, outputs)
        record = ResourceRecord(kind=spec.kind, outputs=dict(outputs), identity=adapter.identity())
        return self._store.save(state.with_resource(spec.name, record))

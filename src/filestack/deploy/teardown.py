"""Teardown coordinator: removes resources in reverse, never the data-bearing bucket."""

from __future__ import annotations

import asyncio

from filestack.core.exceptions import TeardownError
from filestack.core.logging import bind_context
from filestack.core.protocols import IAdapterFactory, IDeploymentLock, IStateStore
from filestack.deploy.execution import WorkerCall, hold_lock
from filestack.models.deployment import ResourceKind, TeardownOutcome, TeardownReport

# Storage can only be deleted out of band; it is added to every preserve set.
ALWAYS_PRESERVED = frozenset({ResourceKind.STORAGE})


class TeardownCoordinator:
    """Best-effort removal: one stuck resource does not block the others."""

    def __init__(
        self,
        *,
        adapters: dict[ResourceKind, IAdapterFactory],
        state_store: IStateStore,
        lock: IDeploymentLock,
        deployment_id: str,
        remove_timeout: float | None = 300.0,
    ) -> None:
        self._adapters = adapters
        self._store = state_store
        self._lock = lock
        self._deployment_id = deployment_id
        self._remove_timeout = remove_timeout

    async def teardown(self, preserve_kinds: set[ResourceKind] | None = None) -> TeardownReport:
        """Remove every recorded resource whose kind is not preserved.

        Failed resources stay in the state alongside the preserved ones so
        a later teardown can retry them.

        Raises:
            TeardownError: after all removals were attempted, if any failed.
        """
        preserve = set(preserve_kinds or ()) | ALWAYS_PRESERVED
        log = bind_context(deployment_id=self._deployment_id)
        report = TeardownReport(deployment_id=self._deployment_id)

        async with hold_lock(self._lock, self._deployment_id):
            state = self._store.load(self._deployment_id)
            if state is None or state.is_empty:
                log.info("teardown_nothing_deployed")
                return report

            for name, record in reversed(list(state.resources.items())):
                if record.kind in preserve:
                    log.warning("resource_preserved", resource=name, kind=str(record.kind),
                                message="Skipping deletion, this must be done manually.")
                    report.outcomes.append(TeardownOutcome(
                        resource=name, kind=record.kind, status="skipped",
                        detail=f"{record.kind} is preserved",
                    ))
                    continue

                factory = self._adapters.get(record.kind)
                call: WorkerCall | None = None
                try:
                    if factory is None:
                        raise LookupError(f"no adapter registered for {record.kind}")
                    call = WorkerCall(factory(name, record.identity).remove)
                    await call.wait(self._remove_timeout)
                except asyncio.CancelledError:
                    # State is only cleared at the end; removals are safe to repeat.
                    if call is not None:
                        await call.settle()
                    log.warning("teardown_cancelled", resource=name)
                    raise
                except Exception as exc:
                    removed, detail = False, str(exc)
                    if isinstance(exc, TimeoutError) and call is not None:
                        removed, _ = await call.settle()
                        detail = f"timed out after {self._remove_timeout}s"
                    if not removed:
                        log.error("resource_remove_failed", resource=name, error=detail)
                        report.outcomes.append(TeardownOutcome(
                            resource=name, kind=record.kind, status="failed", detail=detail,
                        ))
                        continue
                    log.warning("resource_remove_slow", resource=name, timeout=self._remove_timeout)

                log.info("resource_removed", resource=name, kind=str(record.kind))
                report.outcomes.append(TeardownOutcome(resource=name, kind=record.kind, status="removed"))

            keep = state.names_of_kinds(preserve) | set(report.failures)
            self._store.clear(self._deployment_id, keep)

        log.info("teardown_completed", removed=report.removed, skipped=report.skipped,
                 failed=sorted(report.failures))
        if report.failures:
            raise TeardownError(report.failures, report)
        return report

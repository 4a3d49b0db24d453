"""Versioning and JSON encoding shared by the state store backends."""

from __future__ import annotations

from datetime import datetime, timezone

from pydantic import ValidationError

from filestack.core.exceptions import StateConflictError, StateStoreError
from filestack.models.deployment import DeploymentState


def next_revision(current: DeploymentState | None, incoming: DeploymentState) -> DeploymentState:
    """Stamp `incoming` as the successor of `current`.

    `incoming.version` must equal the version it was derived from; a
    mismatch means another pass saved in between.
    """
    current_version = current.version if current is not None else 0
    if incoming.version != current_version:
        raise StateConflictError(incoming.deployment_id, incoming.version)
    return incoming.model_copy(
        update={"version": current_version + 1, "updated_at": datetime.now(timezone.utc)}
    )


def retain(state: DeploymentState, preserving: set[str]) -> DeploymentState | None:
    """Drop every resource not named in `preserving`; None when nothing is left."""
    kept = {name: rec for name, rec in state.resources.items() if name in preserving}
    if not kept:
        return None
    return state.model_copy(update={"resources": kept})


def dumps(state: DeploymentState) -> str:
    return state.model_dump_json(indent=2)


def loads(raw: str | bytes) -> DeploymentState:
    try:
        return DeploymentState.model_validate_json(raw)
    except ValidationError as exc:
        raise StateStoreError(f"Stored deployment state is unreadable: {exc}") from exc

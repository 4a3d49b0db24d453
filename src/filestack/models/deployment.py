"""Resource specs, deployment state and result models."""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class ResourceKind(StrEnum):
    STORAGE = "Storage"
    COMPUTE_FUNCTION = "ComputeFunction"
    NOTIFICATION_WIRING = "NotificationWiring"
    API_ROUTING = "ApiRouting"


class Reference(BaseModel):
    """Copy `source.output_key` into the dotted `field` of a resource's config."""

    model_config = ConfigDict(frozen=True)

    field: str
    source: str
    output_key: str


class ResourceSpec(BaseModel):
    """A single provisionable unit and the outputs it consumes."""

    name: str
    kind: ResourceKind
    config: dict[str, Any] = Field(default_factory=dict)
    references: list[Reference] = Field(default_factory=list)

    @property
    def sources(self) -> set[str]:
        return {ref.source for ref in self.references}


class ResourceRecord(BaseModel):
    """Persisted outputs and adapter identity of one applied resource."""

    model_config = ConfigDict(extra="ignore")

    kind: ResourceKind
    outputs: dict[str, Any] = Field(default_factory=dict)
    identity: dict[str, Any] = Field(default_factory=dict)


class DeploymentState(BaseModel):
    """Durable record of the last successful deployment pass.

    `resources` keeps insertion order, which is the order the resources
    were applied in. Unknown fields are dropped on load so older readers
    keep working as the resource set grows.
    """

    model_config = ConfigDict(extra="ignore")

    deployment_id: str
    version: int = 0
    resources: dict[str, ResourceRecord] = Field(default_factory=dict)
    updated_at: Optional[datetime] = None

    @property
    def is_empty(self) -> bool:
        return not self.resources

    def with_resource(self, name: str, record: ResourceRecord) -> DeploymentState:
        """Return a copy with `name` recorded; an existing entry keeps its position."""
        resources = dict(self.resources)
        resources[name] = record
        return self.model_copy(update={"resources": resources})

    def names_of_kinds(self, kinds: set[ResourceKind]) -> set[str]:
        return {name for name, record in self.resources.items() if record.kind in kinds}


class RoutingRule(BaseModel):
    """CDN cache rule keyed by path pattern."""

    path_pattern: str
    ttl: int


class CompositeResult(BaseModel):
    """Externally visible result of a deployment pass."""

    api: dict[str, Any]
    storage: dict[str, Any]
    cdn_origin_url: str = ""
    derived_routing_rules: list[RoutingRule] = Field(default_factory=list)


class DeploymentResult(BaseModel):
    result: CompositeResult
    state: DeploymentState


class TeardownOutcome(BaseModel):
    resource: str
    kind: ResourceKind
    status: Literal["removed", "failed", "skipped"]
    detail: str = ""


class TeardownReport(BaseModel):
    """Every resource a teardown pass looked at and what happened to it."""

    deployment_id: str
    outcomes: list[TeardownOutcome] = Field(default_factory=list)

    @property
    def failures(self) -> dict[str, str]:
        return {o.resource: o.detail for o in self.outcomes if o.status == "failed"}

    @property
    def removed(self) -> list[str]:
        return [o.resource for o in self.outcomes if o.status == "removed"]

    @property
    def skipped(self) -> list[str]:
        return [o.resource for o in self.outcomes if o.status == "skipped"]

    @property
    def succeeded(self) -> bool:
        return not self.failures

"""In-memory adapters for unit tests: a dict-backed fake cloud."""

from __future__ import annotations

from dataclasses import dataclass, field
from functools import partial
from typing import Any, Callable

from filestack.core.exceptions import AdapterError
from filestack.models.deployment import ResourceKind

ACCOUNT = "000000000000"


@dataclass
class FakeCloud:
    """Shared backing store for the memory adapters.

    `calls` records every (action, resource name) in invocation order;
    `failures` maps (action, resource name) to an error message to raise.
    """

    region: str = "us-east-1"
    buckets: dict[str, dict[str, Any]] = field(default_factory=dict)
    functions: dict[str, dict[str, Any]] = field(default_factory=dict)
    notifications: dict[str, dict[str, dict[str, Any]]] = field(default_factory=dict)
    apis: dict[str, dict[str, Any]] = field(default_factory=dict)
    calls: list[tuple[str, str]] = field(default_factory=list)
    failures: dict[tuple[str, str], str] = field(default_factory=dict)
    hooks: dict[tuple[str, str], Callable[[], None]] = field(default_factory=dict)

    def fail(self, action: str, resource: str, message: str = "injected failure") -> None:
        self.failures[(action, resource)] = message

    def record(self, action: str, resource: str, kind: ResourceKind) -> None:
        self.calls.append((action, resource))
        hook = self.hooks.get((action, resource))
        if hook is not None:
            hook()
        message = self.failures.get((action, resource))
        if message is not None:
            raise AdapterError(kind, message)

    def invoked(self, action: str) -> list[str]:
        return [name for act, name in self.calls if act == action]


class _MemoryAdapter:
    kind: ResourceKind

    def __init__(self, name: str, identity: dict[str, Any] | None = None, *, cloud: FakeCloud) -> None:
        self._resource = name
        self._identity = dict(identity or {})
        self._cloud = cloud

    def identity(self) -> dict[str, Any]:
        return dict(self._identity)


class MemoryStorageAdapter(_MemoryAdapter):
    kind = ResourceKind.STORAGE

    def apply(self, spec: dict[str, Any]) -> dict[str, Any]:
        self._cloud.record("apply", self._resource, self.kind)
        bucket = spec["name"]
        region = spec.get("region", self._cloud.region)
        self._cloud.buckets[bucket] = {"region": region, "options": dict(spec)}
        self._identity = {"name": bucket, "region": region}
        return {"name": bucket, "arn": f"arn:aws:s3:::{bucket}", "region": region}

    def remove(self) -> None:
        self._cloud.record("remove", self._resource, self.kind)
        self._cloud.buckets.pop(self._identity.get("name", ""), None)


class MemoryFunctionAdapter(_MemoryAdapter):
    kind = ResourceKind.COMPUTE_FUNCTION

    def apply(self, spec: dict[str, Any]) -> dict[str, Any]:
        self._cloud.record("apply", self._resource, self.kind)
        function_name = spec["name"]
        previous = self._cloud.functions.get(function_name, {})
        version = previous.get("version", 0) + 1
        self._cloud.functions[function_name] = {"version": version, "spec": dict(spec)}
        self._identity = {"name": function_name}
        arn = f"arn:aws:lambda:{self._cloud.region}:{ACCOUNT}:function:{function_name}"
        return {"name": function_name, "arn": arn, "version": str(version)}

    def remove(self) -> None:
        self._cloud.record("remove", self._resource, self.kind)
        self._cloud.functions.pop(self._identity.get("name", ""), None)


class MemoryNotificationAdapter(_MemoryAdapter):
    kind = ResourceKind.NOTIFICATION_WIRING

    def apply(self, spec: dict[str, Any]) -> dict[str, Any]:
        self._cloud.record("apply", self._resource, self.kind)
        bucket = spec["bucket"]
        rules = self._cloud.notifications.setdefault(bucket, {})
        rules[spec["rule_id"]] = {
            "function_arn": spec["function_arn"],
            "events": list(spec.get("events", [])),
        }
        self._identity = {"rule_id": spec["rule_id"], "bucket": bucket}
        return {
            "rule_id": spec["rule_id"],
            "bucket": bucket,
            "function_arn": spec["function_arn"],
            "events": list(spec.get("events", [])),
        }

    def remove(self) -> None:
        self._cloud.record("remove", self._resource, self.kind)
        rules = self._cloud.notifications.get(self._identity.get("bucket", ""), {})
        rules.pop(self._identity.get("rule_id", ""), None)


class MemoryRoutingAdapter(_MemoryAdapter):
    kind = ResourceKind.API_ROUTING

    def apply(self, spec: dict[str, Any]) -> dict[str, Any]:
        self._cloud.record("apply", self._resource, self.kind)
        api_name = spec["name"]
        api_id = self._identity.get("api_id")
        if api_id not in self._cloud.apis:
            api_id = next(
                (i for i, a in self._cloud.apis.items() if a["name"] == api_name),
                f"api{len(self._cloud.apis) + 1:04d}",
            )
        url = f"https://{api_id}.execute-api.{self._cloud.region}.amazonaws.com"
        self._cloud.apis[api_id] = {"name": api_name, "endpoints": list(spec.get("endpoints", []))}
        self._identity = {"api_id": api_id, "name": api_name}
        return {"api_id": api_id, "name": api_name, "url": url, "region": self._cloud.region}

    def remove(self) -> None:
        self._cloud.record("remove", self._resource, self.kind)
        self._cloud.apis.pop(self._identity.get("api_id", ""), None)


def create_memory_registry(cloud: FakeCloud) -> dict[ResourceKind, Any]:
    """Adapter registry wired to a FakeCloud instead of AWS."""
    return {
        ResourceKind.STORAGE: partial(MemoryStorageAdapter, cloud=cloud),
        ResourceKind.COMPUTE_FUNCTION: partial(MemoryFunctionAdapter, cloud=cloud),
        ResourceKind.NOTIFICATION_WIRING: partial(MemoryNotificationAdapter, cloud=cloud),
        ResourceKind.API_ROUTING: partial(MemoryRoutingAdapter, cloud=cloud),
    }

"""Output graph, dependency ordering and reference resolution."""

from __future__ import annotations

import copy
from collections.abc import Iterator, Mapping
from types import MappingProxyType
from typing import Any

from filestack.core.exceptions import DependencyError, UnresolvedReferenceError
from filestack.models.deployment import ResourceSpec


class OutputGraph:
    """Outputs of every resource applied so far in this pass, in apply order.

    An entry is added only after its resource's apply succeeded and is
    read-only from then on.
    """

    def __init__(self) -> None:
        self._outputs: dict[str, Mapping[str, Any]] = {}

    def record(self, name: str, outputs: Mapping[str, Any]) -> None:
        if name in self._outputs:
            raise ValueError(f"Outputs for {name!r} already recorded in this pass")
        self._outputs[name] = MappingProxyType(dict(outputs))

    def get(self, name: str) -> Mapping[str, Any] | None:
        return self._outputs.get(name)

    def __getitem__(self, name: str) -> Mapping[str, Any]:
        return self._outputs[name]

    def __contains__(self, name: object) -> bool:
        return name in self._outputs

    def __iter__(self) -> Iterator[str]:
        return iter(self._outputs)

    def __len__(self) -> int:
        return len(self._outputs)


def dependency_order(specs: list[ResourceSpec]) -> list[ResourceSpec]:
    """Topologically sort specs, keeping declaration order among independent ones.

    Raises:
        DependencyError: duplicate names, references to undeclared
            resources, or a reference cycle.
    """
    by_name: dict[str, ResourceSpec] = {}
    for spec in specs:
        if spec.name in by_name:
            raise DependencyError(f"Resource {spec.name!r} is declared more than once")
        by_name[spec.name] = spec

    for spec in specs:
        for ref in spec.references:
            if ref.source not in by_name:
                raise DependencyError(
                    f"Resource {spec.name!r} references undeclared resource {ref.source!r}"
                )

    pending = {spec.name: set(spec.sources) for spec in specs}
    ordered: list[ResourceSpec] = []
    while pending:
        ready = next((name for name, deps in pending.items() if not deps), None)
        if ready is None:
            raise DependencyError(f"Reference cycle among resources: {', '.join(sorted(pending))}")
        ordered.append(by_name[ready])
        del pending[ready]
        for deps in pending.values():
            deps.discard(ready)
    return ordered


def resolve_references(graph: OutputGraph, spec: ResourceSpec) -> dict[str, Any]:
    """Return a copy of `spec.config` with every reference filled in.

    All references are looked up before anything is merged, so a missing
    output leaves nothing half-resolved.
    """
    resolved: list[tuple[str, Any]] = []
    for ref in spec.references:
        outputs = graph.get(ref.source)
        if outputs is None or ref.output_key not in outputs:
            raise UnresolvedReferenceError(spec.name, ref.source, ref.output_key)
        resolved.append((ref.field, outputs[ref.output_key]))

    config = copy.deepcopy(spec.config)
    for field, value in resolved:
        _set_path(config, field, value)
    return config


def _set_path(target: dict[str, Any], dotted: str, value: Any) -> None:
    """Assign into nested dicts/lists; numeric parts index existing lists."""
    *parents, leaf = dotted.split(".")
    node: Any = target
    for part in parents:
        if isinstance(node, list):
            node = node[int(part)]
            continue
        child = node.get(part)
        if not isinstance(child, (dict, list)):
            child = {}
            node[part] = child
        node = child
    if isinstance(node, list):
        node[int(leaf)] = value
    else:
        node[leaf] = value

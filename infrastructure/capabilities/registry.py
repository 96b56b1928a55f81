"""Capability registry: phase ordering, dependencies and handler registration."""

from collections.abc import Callable
from dataclasses import dataclass
from enum import IntEnum
import heapq
from typing import Any, Protocol

import pulumi

from infrastructure.capabilities.context import CapabilityContext


class Phase(IntEnum):
    """Execution phase order for capabilities (lower runs first)."""

    FOUNDATION = 0
    INFRASTRUCTURE = 1
    COMPUTE = 2
    NETWORKING = 3


class CapabilityHandler(Protocol):
    """Protocol for capability handler functions."""

    def __call__(self, section_config: dict[str, Any], ctx: CapabilityContext) -> None:
        ...


@dataclass
class CapabilityDef:
    """Registered capability: handler, phase, and optional dependencies."""

    handler: Callable[[dict[str, Any], CapabilityContext], None]
    phase: Phase
    requires: list[str]


CAPABILITIES: dict[str, CapabilityDef] = {}


def register(
    name: str,
    phase: Phase,
    requires: list[str] | None = None,
) -> Callable[[CapabilityHandler], CapabilityHandler]:
    """Decorator to register a capability handler in CAPABILITIES."""

    def decorator(fn: CapabilityHandler) -> CapabilityHandler:
        CAPABILITIES[name] = CapabilityDef(
            handler=fn,
            phase=phase,
            requires=requires or [],
        )
        return fn

    return decorator


def execution_order(
    declared: list[str],
    capabilities: dict[str, CapabilityDef] | None = None,
) -> list[str]:
    """Order declared capabilities by phase, then by requires, then by name.

    Declared names without a registered capability are skipped (they are
    consumed elsewhere, e.g. by the foundation). Raises RuntimeError when a
    requirement is not declared, runs in a later phase, or forms a cycle.
    """
    caps = CAPABILITIES if capabilities is None else capabilities
    names = sorted({n for n in declared if n in caps})

    dependents: dict[str, list[str]] = {n: [] for n in names}
    pending: dict[str, int] = {}
    for name in names:
        cap = caps[name]
        for req in sorted(set(cap.requires)):
            if req not in names:
                raise RuntimeError(
                    f"capability {name!r} requires {req!r}, which is not declared"
                )
            if caps[req].phase > cap.phase:
                raise RuntimeError(
                    f"capability {name!r} ({cap.phase.name}) requires {req!r}, "
                    f"which runs in a later phase ({caps[req].phase.name})"
                )
            dependents[req].append(name)
        pending[name] = len(set(cap.requires))

    ready = [(caps[n].phase, n) for n in names if pending[n] == 0]
    heapq.heapify(ready)
    order: list[str] = []
    while ready:
        _phase, name = heapq.heappop(ready)
        order.append(name)
        for dep in dependents[name]:
            pending[dep] -= 1
            if pending[dep] == 0:
                heapq.heappush(ready, (caps[dep].phase, dep))

    if len(order) != len(names):
        stuck = sorted(n for n in names if n not in order)
        raise RuntimeError(f"capability dependency cycle among: {', '.join(stuck)}")
    return order


def run_capabilities(spec_sections: dict[str, Any], ctx: CapabilityContext) -> list[str]:
    """Run the handler of every declared capability in execution order."""
    order = execution_order(list(spec_sections.keys()))
    for name in order:
        pulumi.log.info(f"Provisioning capability '{name}'")
        CAPABILITIES[name].handler(spec_sections[name] or {}, ctx)
    return order

"""Capability execution context: config, shared lookups, providers, handoff values and stack exports."""

from dataclasses import dataclass, field
from typing import Any

import pulumi_aws

from infrastructure.config import PlatformConfig
from infrastructure.shared.lookups import SharedInfrastructure


@dataclass
class CapabilityContext:
    """State threaded through the foundation and every capability handler.

    Values handed between capabilities live under dotted keys
    ("network.subnets.private", "compute.load_balancer"); each key and each
    export is written once. edge_provider targets us-east-1 and is only set
    when the stack region differs.
    """

    config: PlatformConfig
    infra: SharedInfrastructure
    aws_provider: pulumi_aws.Provider
    edge_provider: pulumi_aws.Provider | None = None
    _outputs: dict[str, Any] = field(default_factory=dict)
    _exports: dict[str, Any] = field(default_factory=dict)

    @property
    def cdn_provider(self) -> pulumi_aws.Provider:
        """Provider for resources CloudFront consumes (its certificate)."""
        return self.edge_provider or self.aws_provider

    def set(self, key: str, value: Any) -> None:
        if key in self._outputs:
            raise RuntimeError(f"context key {key!r} is already set")
        self._outputs[key] = value

    def get(self, key: str, default: Any = None) -> Any:
        """Optional lookup: default when no capability set key."""
        return self._outputs.get(key, default)

    def require(self, key: str) -> Any:
        """Mandatory lookup; RuntimeError lists the keys that do exist."""
        if key not in self._outputs:
            available = ", ".join(sorted(self._outputs)) or "(none)"
            raise RuntimeError(
                f"missing required key: {key!r}. Available keys: {available}"
            )
        return self._outputs[key]

    def export(self, key: str, value: Any) -> None:
        if key in self._exports:
            raise RuntimeError(f"stack export {key!r} registered twice")
        self._exports[key] = value

    @property
    def exports(self) -> dict[str, Any]:
        """Copy of the registered stack exports, in registration order."""
        return dict(self._exports)

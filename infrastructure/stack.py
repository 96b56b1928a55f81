"""Stack composition: shared lookups, foundation, then declared capabilities in order."""

from typing import Any

import pulumi_aws

from infrastructure.capabilities import provision_foundation, run_capabilities
from infrastructure.capabilities.context import CapabilityContext
from infrastructure.config import PlatformConfig
from infrastructure.shared.lookups import lookup_shared_infrastructure


def build_stack(
    config: PlatformConfig,
    aws_provider: pulumi_aws.Provider,
    edge_provider: pulumi_aws.Provider | None = None,
) -> dict[str, Any]:
    """Declare every resource for config and return the stack exports."""
    infra = lookup_shared_infrastructure(config, aws_provider)
    ctx = CapabilityContext(
        config=config,
        infra=infra,
        aws_provider=aws_provider,
        edge_provider=edge_provider,
    )
    spec_sections = config.spec_sections
    provision_foundation(spec_sections, ctx)
    run_capabilities(spec_sections, ctx)
    return ctx.exports

"""DNS capability: alias records for the backend ALB and the frontend distribution."""

from typing import Any

from infrastructure.capabilities.context import CapabilityContext
from infrastructure.capabilities.registry import Phase, register
from infrastructure.networking.dns import create_alias_record


@register("dns", phase=Phase.NETWORKING)
def dns_handler(
    section_config: dict[str, Any],
    ctx: CapabilityContext,
) -> None:
    """Point <backendSubdomain>.<domain> at the ALB and <frontend subdomain>.<domain>
    at the distribution, for whichever of the two was provisioned.
    """
    config = ctx.config
    service_name = config.service_name
    zone_id = ctx.infra.zone_id

    load_balancer = ctx.get("compute.load_balancer")
    if load_balancer is not None:
        fqdn = config.dns.backend_fqdn
        create_alias_record(
            f"{service_name}_backend_alias",
            zone_id,
            fqdn,
            load_balancer.dns_name,
            load_balancer.zone_id,
            ctx.aws_provider,
            evaluate_target_health=True,
        )
        ctx.export("backend_domain_url", f"https://{fqdn}")

    distribution = ctx.get("frontend.distribution")
    if distribution is not None:
        fqdn = ctx.require("frontend.fqdn")
        create_alias_record(
            f"{service_name}_frontend_alias",
            zone_id,
            fqdn,
            distribution.domain_name,
            distribution.hosted_zone_id,
            ctx.aws_provider,
        )
        ctx.export("frontend_url", f"https://{fqdn}")

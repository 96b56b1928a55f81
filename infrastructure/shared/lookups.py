"""Lookup shared infrastructure (hosted zone, account, availability zones)."""

from dataclasses import dataclass

import pulumi
import pulumi_aws

from infrastructure.config import PlatformConfig


@dataclass
class SharedInfrastructure:
    """Pre-existing resources the stack builds on."""

    account_id: str
    availability_zones: list[str]
    zone_id: str
    zone_name: str


def lookup_shared_infrastructure(
    config: PlatformConfig,
    aws_provider: pulumi_aws.Provider,
) -> SharedInfrastructure:
    """Lookup all shared infrastructure resources.

    Returns dataclass with all shared resource identifiers.
    Does not create any resources.
    """
    invoke_opts = pulumi.InvokeOptions(provider=aws_provider)

    identity = pulumi_aws.get_caller_identity(opts=invoke_opts)

    azs = pulumi_aws.get_availability_zones(state="available", opts=invoke_opts)
    if not azs.names:
        raise SystemExit(f"No available availability zones in {config.region}")
    zone_names = sorted(azs.names)[: config.network.max_azs]
    if len(zone_names) < config.network.max_azs:
        pulumi.log.warn(
            f"network.maxAzs={config.network.max_azs} but only {len(zone_names)} zones available"
        )

    # Hosted zone: pinned id wins over lookup by name
    if config.dns.hosted_zone_id:
        zone = pulumi_aws.route53.get_zone(zone_id=config.dns.hosted_zone_id, opts=invoke_opts)
    else:
        zone = pulumi_aws.route53.get_zone(
            name=config.dns.domain_name,
            private_zone=False,
            opts=invoke_opts,
        )
    zone_name = zone.name.rstrip(".")
    if zone_name != config.dns.domain_name:
        raise SystemExit(
            f"Hosted zone {zone.zone_id} is for {zone_name}, not {config.dns.domain_name}"
        )

    return SharedInfrastructure(
        account_id=identity.account_id,
        availability_zones=zone_names,
        zone_id=zone.zone_id,
        zone_name=zone_name,
    )

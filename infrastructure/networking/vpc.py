"""VPC with public, private-with-egress and isolated subnet tiers.

Subnet CIDRs are planned up front (plan_subnets) so that the same
configuration always yields the same layout.
"""

from dataclasses import dataclass, field
import ipaddress

import pulumi
import pulumi_aws

from infrastructure.config import NetworkConfig, SubnetGroupConfig


@dataclass(frozen=True)
class SubnetPlan:
    group: str
    type: str
    availability_zone: str
    cidr_block: str


@dataclass
class VpcOutputs:
    vpc: pulumi_aws.ec2.Vpc
    public_subnet_ids: list[pulumi.Output[str]] = field(default_factory=list)
    private_subnet_ids: list[pulumi.Output[str]] = field(default_factory=list)
    isolated_subnet_ids: list[pulumi.Output[str]] = field(default_factory=list)
    nat_gateways: list[pulumi_aws.ec2.NatGateway] = field(default_factory=list)

    @property
    def vpc_id(self) -> pulumi.Output[str]:
        return self.vpc.id

    @property
    def cidr_block(self) -> pulumi.Output[str]:
        return self.vpc.cidr_block


def plan_subnets(
    vpc_cidr: str,
    availability_zones: list[str],
    groups: list[SubnetGroupConfig],
) -> list[SubnetPlan]:
    """Allocate one subnet per AZ per group, in declared order.

    Each block is aligned to its own size and placed after the previous
    allocation. Raises SystemExit if the layout does not fit the VPC.
    """
    network = ipaddress.ip_network(vpc_cidr)
    cursor = int(network.network_address)
    end = int(network.broadcast_address)
    plans: list[SubnetPlan] = []
    for group in groups:
        if group.cidr_mask < network.prefixlen:
            raise SystemExit(
                f"subnet group {group.name!r}: /{group.cidr_mask} is larger than VPC {vpc_cidr}"
            )
        size = 2 ** (network.max_prefixlen - group.cidr_mask)
        for az in availability_zones:
            if cursor % size:
                cursor += size - cursor % size
            if cursor + size - 1 > end:
                raise SystemExit(f"subnet group {group.name!r} does not fit in VPC {vpc_cidr}")
            block = ipaddress.ip_network((cursor, group.cidr_mask))
            plans.append(
                SubnetPlan(
                    group=group.name,
                    type=group.type,
                    availability_zone=az,
                    cidr_block=str(block),
                )
            )
            cursor += size
    return plans


def create_vpc(
    service_name: str,
    network: NetworkConfig,
    availability_zones: list[str],
    aws_provider: pulumi_aws.Provider,
) -> VpcOutputs:
    """Create VPC, internet gateway, subnets, NAT gateways and route tables."""
    opts = pulumi.ResourceOptions(provider=aws_provider)
    plans = plan_subnets(network.cidr, availability_zones, network.subnets)

    vpc = pulumi_aws.ec2.Vpc(
        f"{service_name}_vpc",
        cidr_block=network.cidr,
        enable_dns_hostnames=True,
        enable_dns_support=True,
        tags={"Name": f"{service_name}-vpc"},
        opts=opts,
    )
    outputs = VpcOutputs(vpc=vpc)

    subnets: dict[SubnetPlan, pulumi_aws.ec2.Subnet] = {}
    for plan in plans:
        subnets[plan] = pulumi_aws.ec2.Subnet(
            f"{service_name}_{plan.group}_{plan.availability_zone}",
            vpc_id=vpc.id,
            cidr_block=plan.cidr_block,
            availability_zone=plan.availability_zone,
            map_public_ip_on_launch=plan.type == "public",
            tags={
                "Name": f"{service_name}-{plan.group}-{plan.availability_zone}",
                "network": plan.type,
            },
            opts=opts,
        )

    public = [p for p in plans if p.type == "public"]
    if public:
        igw = pulumi_aws.ec2.InternetGateway(
            f"{service_name}_igw",
            vpc_id=vpc.id,
            tags={"Name": f"{service_name}-igw"},
            opts=opts,
        )
        public_rt = pulumi_aws.ec2.RouteTable(
            f"{service_name}_public_rt",
            vpc_id=vpc.id,
            tags={"Name": f"{service_name}-public"},
            opts=opts,
        )
        pulumi_aws.ec2.Route(
            f"{service_name}_public_default_route",
            route_table_id=public_rt.id,
            destination_cidr_block="0.0.0.0/0",
            gateway_id=igw.id,
            opts=opts,
        )
        for plan in public:
            subnet = subnets[plan]
            outputs.public_subnet_ids.append(subnet.id)
            pulumi_aws.ec2.RouteTableAssociation(
                f"{service_name}_{plan.group}_{plan.availability_zone}_rta",
                subnet_id=subnet.id,
                route_table_id=public_rt.id,
                opts=opts,
            )

    private = [p for p in plans if p.type == "private"]
    if private:
        # NAT gateways live in the first N public subnets (by AZ order)
        nat_count = min(network.nat_gateways, len(availability_zones))
        for i, plan in enumerate(public[:nat_count]):
            eip = pulumi_aws.ec2.Eip(
                f"{service_name}_nat_eip_{i}",
                domain="vpc",
                tags={"Name": f"{service_name}-nat-{i}"},
                opts=opts,
            )
            outputs.nat_gateways.append(
                pulumi_aws.ec2.NatGateway(
                    f"{service_name}_nat_{i}",
                    allocation_id=eip.id,
                    subnet_id=subnets[plan].id,
                    tags={"Name": f"{service_name}-nat-{i}"},
                    opts=opts,
                )
            )

    for plan in plans:
        if plan.type == "public":
            continue
        subnet = subnets[plan]
        prefix = f"{service_name}_{plan.group}_{plan.availability_zone}"
        rt = pulumi_aws.ec2.RouteTable(
            f"{prefix}_rt",
            vpc_id=vpc.id,
            tags={"Name": f"{service_name}-{plan.group}-{plan.availability_zone}"},
            opts=opts,
        )
        if plan.type == "private":
            nat = outputs.nat_gateways[
                availability_zones.index(plan.availability_zone) % len(outputs.nat_gateways)
            ]
            pulumi_aws.ec2.Route(
                f"{prefix}_default_route",
                route_table_id=rt.id,
                destination_cidr_block="0.0.0.0/0",
                nat_gateway_id=nat.id,
                opts=opts,
            )
            outputs.private_subnet_ids.append(subnet.id)
        else:
            outputs.isolated_subnet_ids.append(subnet.id)
        pulumi_aws.ec2.RouteTableAssociation(
            f"{prefix}_rta",
            subnet_id=subnet.id,
            route_table_id=rt.id,
            opts=opts,
        )

    pulumi.log.info(
        f"VPC {network.cidr}: {len(outputs.public_subnet_ids)} public, "
        f"{len(outputs.private_subnet_ids)} private, "
        f"{len(outputs.isolated_subnet_ids)} isolated subnets"
    )
    return outputs

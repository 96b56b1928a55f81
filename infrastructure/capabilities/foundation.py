"""Foundation provisioning: VPC, certificates, security groups and IAM roles shared by capabilities."""

from infrastructure.capabilities.context import CapabilityContext


def provision_foundation(spec_sections: dict, ctx: CapabilityContext) -> None:
    """Create what declared sections share before any capability runs.

    compute gets the VPC, the regional certificate, security groups and IAM
    roles. frontend gets a certificate CloudFront can use: the regional one
    when the stack already runs in us-east-1, otherwise a second one there.
    A frontend-only stack creates neither VPC nor regional certificate.

    Imports builder modules inside the function so tests can patch them at their source.
    """
    from infrastructure.networking.certificate import create_certificate

    declared = set(spec_sections.keys())
    config = ctx.config
    service_name = config.service_name
    aws_provider = ctx.aws_provider

    regional_certificate = None
    if "compute" in declared:
        _provision_network(ctx)
        regional_certificate = create_certificate(
            service_name,
            config.dns.domain_name,
            ctx.infra.zone_id,
            aws_provider,
        )
        ctx.set("certificates.regional.arn", regional_certificate.certificate_arn)
        ctx.export("certificate_arn", regional_certificate.certificate_arn)
        _provision_compute_access(ctx)

    if "frontend" in declared:
        if regional_certificate is not None and ctx.edge_provider is None:
            ctx.set("certificates.edge.arn", regional_certificate.certificate_arn)
        else:
            # one validation record serves both certificates
            edge_certificate = create_certificate(
                f"{service_name}_edge",
                config.dns.domain_name,
                ctx.infra.zone_id,
                ctx.cdn_provider,
                validation_record_fqdns=(
                    regional_certificate.validation_record_fqdns
                    if regional_certificate is not None
                    else None
                ),
            )
            ctx.set("certificates.edge.arn", edge_certificate.certificate_arn)


def _provision_network(ctx: CapabilityContext) -> None:
    from infrastructure.networking.vpc import create_vpc

    vpc = create_vpc(
        ctx.config.service_name,
        ctx.config.network,
        ctx.infra.availability_zones,
        ctx.aws_provider,
    )
    ctx.set("network.vpc", vpc)
    ctx.set("network.vpc.id", vpc.vpc_id)
    ctx.set("network.subnets.public", vpc.public_subnet_ids)
    ctx.set("network.subnets.private", vpc.private_subnet_ids)
    ctx.set("network.subnets.isolated", vpc.isolated_subnet_ids)
    ctx.export("vpc_id", vpc.vpc_id)


def _provision_compute_access(ctx: CapabilityContext) -> None:
    """Security groups and IAM roles for the ECS service and its capacity instances."""
    from infrastructure.iam.roles import create_instance_role, create_task_roles
    from infrastructure.networking.security_groups import (
        create_ecs_security_group,
        create_instance_security_group,
        create_load_balancer_security_group,
    )

    service_name = ctx.config.service_name
    compute = ctx.config.compute
    aws_provider = ctx.aws_provider
    vpc_id = ctx.require("network.vpc.id")

    alb_sg = create_load_balancer_security_group(
        service_name,
        vpc_id,
        aws_provider,
        allow_http=compute.redirect_http if compute else True,
    )
    ctx.set("security_groups.alb.id", alb_sg.id)

    ecs_sg = create_ecs_security_group(
        service_name,
        vpc_id,
        compute.port if compute else 80,
        alb_sg.id,
        aws_provider,
    )
    ctx.set("security_groups.compute", ecs_sg)
    ctx.set("security_groups.compute.id", ecs_sg.id)

    instance_sg = create_instance_security_group(service_name, vpc_id, aws_provider)
    ctx.set("security_groups.instances.id", instance_sg.id)

    task_role, exec_role = create_task_roles(service_name, aws_provider)
    ctx.set("iam.task_role", task_role)
    ctx.set("iam.exec_role", exec_role)

    _instance_role, instance_profile = create_instance_role(service_name, aws_provider)
    ctx.set("iam.instance_profile", instance_profile)

"""Compute capability: ECS on Fargate behind an ALB, with EC2 capacity and table access."""

import os
from typing import Any

import pulumi

from infrastructure.capabilities.context import CapabilityContext
from infrastructure.capabilities.registry import Phase, register
from infrastructure.compute.ecr import create_ecr_repository
from infrastructure.compute.ecs_cluster import create_capacity_provider, create_ecs_cluster
from infrastructure.compute.ecs_service import create_ecs_service
from infrastructure.compute.ecs_task import create_task_definition
from infrastructure.compute.log_group import create_log_group
from infrastructure.database.dynamodb import table_env_var, table_physical_name
from infrastructure.iam.policies import grant_table_read_write
from infrastructure.loadbalancer.alb import create_listeners, create_load_balancer
from infrastructure.loadbalancer.target_group import create_target_group


def _container_env(ctx: CapabilityContext) -> list[dict[str, str]]:
    """Table names plus declared secrets found in the environment."""
    config = ctx.config
    env: list[dict[str, str]] = []
    if config.database:
        for tbl in config.database.tables:
            env.append(
                {"name": table_env_var(tbl), "value": table_physical_name(config.service_name, tbl)}
            )
    for name in config.secrets:
        value = os.environ.get(name)
        if value:
            env.append({"name": name, "value": value})
            pulumi.log.info(f"Secret '{name}' will be passed to container")
        else:
            pulumi.log.warn(
                f"Secret '{name}' declared in platform.yaml but not found in environment"
            )
    return env


@register("compute", phase=Phase.COMPUTE)
def compute_handler(
    section_config: dict[str, Any],
    ctx: CapabilityContext,
) -> None:
    """Provision log group, ECR, cluster + capacity provider, ALB, listeners, task, service.

    Uses foundation outputs: network subnets, security groups, IAM roles and
    the regional certificate. Grants the task role read/write on every
    table the database capability declared.
    Section_config is ignored; config comes from ctx.config.
    """
    config = ctx.config
    compute = config.compute
    if compute is None:
        raise RuntimeError("compute capability declared without compute config")
    if not (compute.source / "Dockerfile").is_file():
        raise SystemExit(f"compute source must contain a Dockerfile: {compute.source}")

    service_name = config.service_name
    aws_provider = ctx.aws_provider

    vpc_id = ctx.require("network.vpc.id")
    public_subnets = ctx.require("network.subnets.public")
    private_subnets = ctx.require("network.subnets.private")
    if not public_subnets or not private_subnets:
        raise SystemExit("compute needs both public and private subnet groups")
    security_group = ctx.require("security_groups.compute")
    task_role = ctx.require("iam.task_role")
    exec_role = ctx.require("iam.exec_role")
    certificate_arn = ctx.require("certificates.regional.arn")

    log_group = create_log_group(service_name, compute.logs, aws_provider)
    ecr_repo = create_ecr_repository(service_name, aws_provider)
    cluster = create_ecs_cluster(service_name, aws_provider)
    create_capacity_provider(
        service_name,
        cluster,
        compute.capacity,
        private_subnets,
        ctx.require("security_groups.instances.id"),
        ctx.require("iam.instance_profile"),
        aws_provider,
    )

    # set by the database capability, which runs in an earlier phase
    table_arns = ctx.get("dynamodb.table_arns", [])
    if table_arns:
        grant_table_read_write(
            f"{service_name}_dynamodb_policy",
            task_role,
            table_arns,
            aws_provider,
        )

    task_def = create_task_definition(
        service_name,
        compute,
        config.region,
        ecr_repo,
        log_group,
        task_role,
        exec_role,
        _container_env(ctx),
        aws_provider,
    )

    target_group = create_target_group(service_name, compute, vpc_id, aws_provider)
    load_balancer = create_load_balancer(
        service_name,
        public_subnets,
        ctx.require("security_groups.alb.id"),
        aws_provider,
    )
    listeners = create_listeners(
        service_name,
        load_balancer,
        target_group,
        certificate_arn,
        aws_provider,
        redirect_http=compute.redirect_http,
    )
    ecs_service = create_ecs_service(
        service_name=service_name,
        compute=compute,
        cluster=cluster,
        task_def=task_def,
        target_group=target_group,
        security_group=security_group,
        subnet_ids=private_subnets,
        listeners=listeners,
        aws_provider=aws_provider,
    )

    ctx.set("compute.load_balancer", load_balancer)
    ctx.export("backend_url", load_balancer.dns_name)
    ctx.export("ecr_repository_uri", ecr_repo.repository_url)
    ctx.export("ecs_cluster_name", cluster.name)
    ctx.export("ecs_service_name", ecs_service.name)

"""ECS Fargate task definition and container definition builder."""

import json
from typing import Any

import pulumi
import pulumi_aws

from infrastructure.config import ComputeConfig


def _make_container_def(
    uri: str,
    compute: ComputeConfig,
    region: str,
    log_group_name: str,
    container_env: list[dict[str, str]],
) -> str:
    """Build ECS container definition JSON string."""
    env_vars = [{"name": k, "value": v} for k, v in sorted(compute.environment.items())]
    env_vars.append({"name": "PORT", "value": str(compute.port)})
    env_vars.extend(container_env)
    container_spec: dict[str, Any] = {
        "name": compute.container_name,
        "image": uri,
        "essential": True,
        "memory": compute.container_memory,
        "portMappings": [
            {
                "containerPort": compute.port,
                "protocol": "tcp",
            }
        ],
        "environment": env_vars,
        "logConfiguration": {
            "logDriver": "awslogs",
            "options": {
                "awslogs-region": region,
                "awslogs-group": log_group_name,
                "awslogs-stream-prefix": compute.logs.stream_prefix,
            },
        },
    }
    return json.dumps([container_spec])


def create_task_definition(
    service_name: str,
    compute: ComputeConfig,
    region: str,
    ecr_repo: pulumi_aws.ecr.Repository,
    log_group: pulumi_aws.cloudwatch.LogGroup,
    task_role: pulumi_aws.iam.Role,
    exec_role: pulumi_aws.iam.Role,
    container_env: list[dict[str, str]],
    aws_provider: pulumi_aws.Provider,
) -> pulumi_aws.ecs.TaskDefinition:
    """Create ECS Fargate task definition running <repository>:latest."""
    container_def = ecr_repo.repository_url.apply(
        lambda url: _make_container_def(
            f"{url}:latest", compute, region, compute.logs.group_name, container_env
        )
    )
    return pulumi_aws.ecs.TaskDefinition(
        f"{service_name}_task",
        family=service_name,
        cpu=str(compute.cpu),
        memory=str(compute.memory),
        network_mode="awsvpc",
        requires_compatibilities=["FARGATE"],
        execution_role_arn=exec_role.arn,
        task_role_arn=task_role.arn,
        container_definitions=container_def,
        opts=pulumi.ResourceOptions(provider=aws_provider, depends_on=[log_group]),
    )

"""ECS Fargate service."""

import pulumi
import pulumi_aws

from infrastructure.config import ComputeConfig


def _sanitize_ecs_service_name(service_name: str) -> str:
    """ECS service name must be <= 32 chars; replace . and / with _."""
    return service_name.replace(".", "_").replace("/", "_")[:32]


def create_ecs_service(
    service_name: str,
    compute: ComputeConfig,
    cluster: pulumi_aws.ecs.Cluster,
    task_def: pulumi_aws.ecs.TaskDefinition,
    target_group: pulumi_aws.lb.TargetGroup,
    security_group: pulumi_aws.ec2.SecurityGroup,
    subnet_ids: list[pulumi.Output[str]],
    listeners: list[pulumi_aws.lb.Listener],
    aws_provider: pulumi_aws.Provider,
) -> pulumi_aws.ecs.Service:
    """Create ECS Fargate service in the private subnets, registered with the target group."""
    return pulumi_aws.ecs.Service(
        f"{service_name}_svc",
        name=_sanitize_ecs_service_name(service_name),
        cluster=cluster.arn,
        task_definition=task_def.arn,
        desired_count=compute.desired_count,
        launch_type="FARGATE",
        health_check_grace_period_seconds=compute.health_check.interval,
        load_balancers=[
            pulumi_aws.ecs.ServiceLoadBalancerArgs(
                target_group_arn=target_group.arn,
                container_name=compute.container_name,
                container_port=compute.port,
            )
        ],
        network_configuration=pulumi_aws.ecs.ServiceNetworkConfigurationArgs(
            assign_public_ip=False,
            subnets=subnet_ids,
            security_groups=[security_group.id],
        ),
        deployment_circuit_breaker=pulumi_aws.ecs.ServiceDeploymentCircuitBreakerArgs(
            enable=True,
            rollback=True,
        ),
        opts=pulumi.ResourceOptions(
            provider=aws_provider,
            depends_on=listeners,
        ),
    )

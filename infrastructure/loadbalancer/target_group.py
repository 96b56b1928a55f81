"""ALB target group for ECS tasks (container port, health check)."""

import pulumi
import pulumi_aws

from infrastructure.config import ComputeConfig


def create_target_group(
    service_name: str,
    compute: ComputeConfig,
    vpc_id: pulumi.Input[str],
    aws_provider: pulumi_aws.Provider,
) -> pulumi_aws.lb.TargetGroup:
    """Create IP target group on the container port with the configured health check."""
    hc = compute.health_check
    return pulumi_aws.lb.TargetGroup(
        f"{service_name}_tg",
        name=f"{service_name}-tg"[:32].rstrip("-"),
        port=compute.port,
        protocol="HTTP",
        vpc_id=vpc_id,
        target_type="ip",
        health_check=pulumi_aws.lb.TargetGroupHealthCheckArgs(
            path=hc.path,
            protocol="HTTP",
            interval=hc.interval,
            timeout=hc.timeout,
            healthy_threshold=hc.healthy_threshold,
            unhealthy_threshold=hc.unhealthy_threshold,
        ),
        deregistration_delay=60,
        opts=pulumi.ResourceOptions(provider=aws_provider),
    )

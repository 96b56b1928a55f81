"""CloudWatch log group for container logs."""

import pulumi
import pulumi_aws

from infrastructure.config import LogConfig


def create_log_group(
    service_name: str,
    logs: LogConfig,
    aws_provider: pulumi_aws.Provider,
) -> pulumi_aws.cloudwatch.LogGroup:
    """Create the log group the awslogs driver writes to; deleted with the stack."""
    return pulumi_aws.cloudwatch.LogGroup(
        f"{service_name}_log_group",
        name=logs.group_name,
        retention_in_days=logs.retention_days,
        skip_destroy=False,
        opts=pulumi.ResourceOptions(provider=aws_provider),
    )

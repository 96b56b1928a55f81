"""ECS cluster and its EC2 auto-scaling capacity provider."""

import base64
from dataclasses import dataclass

import pulumi
import pulumi_aws

from infrastructure.config import CapacityConfig

ECS_OPTIMIZED_AMI_PARAMETER = "/aws/service/ecs/optimized-ami/amazon-linux-2/recommended/image_id"


@dataclass
class CapacityOutputs:
    launch_template: pulumi_aws.ec2.LaunchTemplate
    auto_scaling_group: pulumi_aws.autoscaling.Group
    capacity_provider: pulumi_aws.ecs.CapacityProvider
    cluster_capacity_providers: pulumi_aws.ecs.ClusterCapacityProviders


def _ecs_user_data(cluster_name: str) -> str:
    """Base64 user data that registers the instance with the cluster."""
    script = "#!/bin/bash\n" f"echo ECS_CLUSTER={cluster_name} >> /etc/ecs/ecs.config\n"
    return base64.b64encode(script.encode()).decode()


def create_ecs_cluster(
    service_name: str,
    aws_provider: pulumi_aws.Provider,
) -> pulumi_aws.ecs.Cluster:
    """Create ECS cluster for the service."""
    return pulumi_aws.ecs.Cluster(
        f"{service_name}_cluster",
        name=service_name,
        settings=[
            pulumi_aws.ecs.ClusterSettingArgs(
                name="containerInsights",
                value="disabled",
            )
        ],
        opts=pulumi.ResourceOptions(provider=aws_provider),
    )


def create_capacity_provider(
    service_name: str,
    cluster: pulumi_aws.ecs.Cluster,
    capacity: CapacityConfig,
    subnet_ids: list[pulumi.Output[str]],
    security_group_id: pulumi.Input[str],
    instance_profile: pulumi_aws.iam.InstanceProfile,
    aws_provider: pulumi_aws.Provider,
) -> CapacityOutputs:
    """Attach an auto-scaling group of ECS-optimized instances to the cluster.

    FARGATE stays registered on the cluster so Fargate services keep working
    next to the EC2 capacity.
    """
    opts = pulumi.ResourceOptions(provider=aws_provider)
    ami = pulumi_aws.ssm.get_parameter(
        name=ECS_OPTIMIZED_AMI_PARAMETER,
        opts=pulumi.InvokeOptions(provider=aws_provider),
    )

    launch_template = pulumi_aws.ec2.LaunchTemplate(
        f"{service_name}_launch_template",
        name_prefix=f"{service_name}-ecs-",
        image_id=ami.value,
        instance_type=capacity.instance_type,
        user_data=cluster.name.apply(_ecs_user_data),
        iam_instance_profile=pulumi_aws.ec2.LaunchTemplateIamInstanceProfileArgs(
            arn=instance_profile.arn,
        ),
        vpc_security_group_ids=[security_group_id],
        metadata_options=pulumi_aws.ec2.LaunchTemplateMetadataOptionsArgs(
            http_tokens="required",
            http_endpoint="enabled",
        ),
        opts=opts,
    )

    asg = pulumi_aws.autoscaling.Group(
        f"{service_name}_asg",
        name_prefix=f"{service_name}-ecs-",
        min_size=capacity.min_size,
        max_size=capacity.max_size,
        vpc_zone_identifiers=subnet_ids,
        launch_template=pulumi_aws.autoscaling.GroupLaunchTemplateArgs(
            id=launch_template.id,
            version="$Latest",
        ),
        protect_from_scale_in=False,
        tags=[
            pulumi_aws.autoscaling.GroupTagArgs(
                key="AmazonECSManaged",
                value="true",
                propagate_at_launch=True,
            ),
            pulumi_aws.autoscaling.GroupTagArgs(
                key="Name",
                value=f"{service_name}-ecs",
                propagate_at_launch=True,
            ),
        ],
        opts=pulumi.ResourceOptions(provider=aws_provider, ignore_changes=["desired_capacity"]),
    )

    capacity_provider = pulumi_aws.ecs.CapacityProvider(
        f"{service_name}_capacity_provider",
        name=f"{service_name}-asg",
        auto_scaling_group_provider=pulumi_aws.ecs.CapacityProviderAutoScalingGroupProviderArgs(
            auto_scaling_group_arn=asg.arn,
            managed_termination_protection="DISABLED",
            managed_scaling=pulumi_aws.ecs.CapacityProviderAutoScalingGroupProviderManagedScalingArgs(
                status="ENABLED",
                target_capacity=100,
            ),
        ),
        opts=opts,
    )

    cluster_providers = pulumi_aws.ecs.ClusterCapacityProviders(
        f"{service_name}_cluster_capacity_providers",
        cluster_name=cluster.name,
        capacity_providers=[capacity_provider.name, "FARGATE"],
        default_capacity_provider_strategies=[
            pulumi_aws.ecs.ClusterCapacityProvidersDefaultCapacityProviderStrategyArgs(
                capacity_provider=capacity_provider.name,
                weight=1,
            )
        ],
        opts=opts,
    )

    return CapacityOutputs(
        launch_template=launch_template,
        auto_scaling_group=asg,
        capacity_provider=capacity_provider,
        cluster_capacity_providers=cluster_providers,
    )

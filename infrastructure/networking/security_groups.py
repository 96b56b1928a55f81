"""Security groups for the load balancer, ECS tasks and capacity instances."""

import pulumi
import pulumi_aws


def _egress_all() -> list[pulumi_aws.ec2.SecurityGroupEgressArgs]:
    return [
        pulumi_aws.ec2.SecurityGroupEgressArgs(
            protocol="-1",
            from_port=0,
            to_port=0,
            cidr_blocks=["0.0.0.0/0"],
        ),
    ]


def create_load_balancer_security_group(
    service_name: str,
    vpc_id: pulumi.Input[str],
    aws_provider: pulumi_aws.Provider,
    allow_http: bool = True,
) -> pulumi_aws.ec2.SecurityGroup:
    """Create security group for the public ALB: HTTPS (and HTTP for redirect) from anywhere."""
    ingress = [
        pulumi_aws.ec2.SecurityGroupIngressArgs(
            protocol="tcp",
            from_port=443,
            to_port=443,
            cidr_blocks=["0.0.0.0/0"],
            description="HTTPS from internet",
        ),
    ]
    if allow_http:
        ingress.append(
            pulumi_aws.ec2.SecurityGroupIngressArgs(
                protocol="tcp",
                from_port=80,
                to_port=80,
                cidr_blocks=["0.0.0.0/0"],
                description="HTTP from internet (redirected to HTTPS)",
            )
        )
    return pulumi_aws.ec2.SecurityGroup(
        f"{service_name}_alb_sg",
        name=f"{service_name}-alb",
        vpc_id=vpc_id,
        description=f"Public load balancer for {service_name}",
        ingress=ingress,
        egress=_egress_all(),
        opts=pulumi.ResourceOptions(provider=aws_provider),
    )


def create_ecs_security_group(
    service_name: str,
    vpc_id: pulumi.Input[str],
    container_port: int,
    alb_sg_id: pulumi.Input[str],
    aws_provider: pulumi_aws.Provider,
) -> pulumi_aws.ec2.SecurityGroup:
    """Create security group for ECS tasks: container port from the ALB only, egress all."""
    return pulumi_aws.ec2.SecurityGroup(
        f"{service_name}_ecs_sg",
        name=f"{service_name}-ecs",
        vpc_id=vpc_id,
        description=f"ECS tasks for {service_name}",
        ingress=[
            pulumi_aws.ec2.SecurityGroupIngressArgs(
                protocol="tcp",
                from_port=container_port,
                to_port=container_port,
                security_groups=[alb_sg_id],
                description="Container port from ALB",
            ),
        ],
        egress=_egress_all(),
        opts=pulumi.ResourceOptions(provider=aws_provider),
    )


def create_instance_security_group(
    service_name: str,
    vpc_id: pulumi.Input[str],
    aws_provider: pulumi_aws.Provider,
) -> pulumi_aws.ec2.SecurityGroup:
    """Create security group for capacity provider instances: no ingress, egress all."""
    return pulumi_aws.ec2.SecurityGroup(
        f"{service_name}_instance_sg",
        name=f"{service_name}-instances",
        vpc_id=vpc_id,
        description=f"ECS container instances for {service_name}",
        egress=_egress_all(),
        opts=pulumi.ResourceOptions(provider=aws_provider),
    )

"""Internet-facing Application Load Balancer and its listeners."""

import pulumi
import pulumi_aws

SSL_POLICY = "ELBSecurityPolicy-TLS13-1-2-2021-06"


def create_load_balancer(
    service_name: str,
    public_subnet_ids: list[pulumi.Output[str]],
    security_group_id: pulumi.Input[str],
    aws_provider: pulumi_aws.Provider,
) -> pulumi_aws.lb.LoadBalancer:
    """Create internet-facing ALB in the public subnets."""
    return pulumi_aws.lb.LoadBalancer(
        f"{service_name}_alb",
        name=f"{service_name}-alb"[:32].rstrip("-"),
        internal=False,
        load_balancer_type="application",
        security_groups=[security_group_id],
        subnets=public_subnet_ids,
        drop_invalid_header_fields=True,
        opts=pulumi.ResourceOptions(provider=aws_provider),
    )


def create_listeners(
    service_name: str,
    load_balancer: pulumi_aws.lb.LoadBalancer,
    target_group: pulumi_aws.lb.TargetGroup,
    certificate_arn: pulumi.Input[str],
    aws_provider: pulumi_aws.Provider,
    redirect_http: bool = True,
) -> list[pulumi_aws.lb.Listener]:
    """Create the HTTPS 443 listener forwarding to the target group.

    With redirect_http, port 80 answers with a permanent redirect to HTTPS.
    The HTTPS listener is always first in the returned list.
    """
    https = pulumi_aws.lb.Listener(
        f"{service_name}_https_listener",
        load_balancer_arn=load_balancer.arn,
        port=443,
        protocol="HTTPS",
        ssl_policy=SSL_POLICY,
        certificate_arn=certificate_arn,
        default_actions=[
            pulumi_aws.lb.ListenerDefaultActionArgs(
                type="forward",
                target_group_arn=target_group.arn,
            )
        ],
        opts=pulumi.ResourceOptions(provider=aws_provider),
    )
    listeners = [https]
    if redirect_http:
        listeners.append(
            pulumi_aws.lb.Listener(
                f"{service_name}_http_listener",
                load_balancer_arn=load_balancer.arn,
                port=80,
                protocol="HTTP",
                default_actions=[
                    pulumi_aws.lb.ListenerDefaultActionArgs(
                        type="redirect",
                        redirect=pulumi_aws.lb.ListenerDefaultActionRedirectArgs(
                            port="443",
                            protocol="HTTPS",
                            status_code="HTTP_301",
                        ),
                    )
                ],
                opts=pulumi.ResourceOptions(provider=aws_provider),
            )
        )
    return listeners

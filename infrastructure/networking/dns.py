"""Route 53 alias records (hostname -> ALB or CloudFront)."""

import pulumi
import pulumi_aws


def create_alias_record(
    resource_name: str,
    zone_id: str,
    record_name: str,
    target_dns_name: pulumi.Input[str],
    target_zone_id: pulumi.Input[str],
    aws_provider: pulumi_aws.Provider,
    evaluate_target_health: bool = False,
) -> pulumi_aws.route53.Record:
    """Create an A alias record: record_name -> target."""
    return pulumi_aws.route53.Record(
        resource_name,
        zone_id=zone_id,
        name=record_name,
        type="A",
        aliases=[
            pulumi_aws.route53.RecordAliasArgs(
                name=target_dns_name,
                zone_id=target_zone_id,
                evaluate_target_health=evaluate_target_health,
            )
        ],
        opts=pulumi.ResourceOptions(provider=aws_provider),
    )

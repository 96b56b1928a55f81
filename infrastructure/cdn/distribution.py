"""CloudFront distribution in front of the website bucket."""

import pulumi
import pulumi_aws

from infrastructure.config import FrontendConfig

# AWS managed "CachingOptimized" cache policy
CACHING_OPTIMIZED_POLICY_ID = "658327ea-f89d-4fab-a63d-7e88639e58f6"


def create_distribution(
    service_name: str,
    website_endpoint: pulumi.Input[str],
    alias: str,
    certificate_arn: pulumi.Input[str],
    frontend: FrontendConfig,
    aws_provider: pulumi_aws.Provider,
) -> pulumi_aws.cloudfront.Distribution:
    """Create a distribution with the bucket website endpoint as HTTP-only custom origin.

    certificate_arn must be an us-east-1 certificate covering alias.
    """
    origin_id = f"{service_name}-website"
    return pulumi_aws.cloudfront.Distribution(
        f"{service_name}_distribution",
        enabled=True,
        is_ipv6_enabled=True,
        comment=f"{service_name} frontend",
        aliases=[alias],
        price_class=frontend.price_class,
        origins=[
            pulumi_aws.cloudfront.DistributionOriginArgs(
                origin_id=origin_id,
                domain_name=website_endpoint,
                custom_origin_config=pulumi_aws.cloudfront.DistributionOriginCustomOriginConfigArgs(
                    http_port=80,
                    https_port=443,
                    origin_protocol_policy="http-only",
                    origin_ssl_protocols=["TLSv1.2"],
                ),
            )
        ],
        default_cache_behavior=pulumi_aws.cloudfront.DistributionDefaultCacheBehaviorArgs(
            target_origin_id=origin_id,
            viewer_protocol_policy="redirect-to-https",
            allowed_methods=["GET", "HEAD", "OPTIONS"],
            cached_methods=["GET", "HEAD"],
            cache_policy_id=CACHING_OPTIMIZED_POLICY_ID,
            compress=True,
        ),
        restrictions=pulumi_aws.cloudfront.DistributionRestrictionsArgs(
            geo_restriction=pulumi_aws.cloudfront.DistributionRestrictionsGeoRestrictionArgs(
                restriction_type="none",
            ),
        ),
        viewer_certificate=pulumi_aws.cloudfront.DistributionViewerCertificateArgs(
            acm_certificate_arn=certificate_arn,
            ssl_support_method="sni-only",
            minimum_protocol_version="TLSv1.2_2021",
        ),
        opts=pulumi.ResourceOptions(provider=aws_provider),
    )

"""Public S3 website bucket for the static frontend."""

from dataclasses import dataclass
import json

import pulumi
import pulumi_aws

from infrastructure.config import FrontendConfig


@dataclass
class WebsiteBucket:
    bucket: pulumi_aws.s3.BucketV2
    website: pulumi_aws.s3.BucketWebsiteConfigurationV2
    policy: pulumi_aws.s3.BucketPolicy

    @property
    def website_endpoint(self) -> pulumi.Output[str]:
        return self.website.website_endpoint

    @property
    def website_url(self) -> pulumi.Output[str]:
        return self.website.website_endpoint.apply(lambda e: f"http://{e}")


def public_read_policy(bucket_arn: str) -> str:
    return json.dumps(
        {
            "Version": "2012-10-17",
            "Statement": [
                {
                    "Sid": "PublicReadGetObject",
                    "Effect": "Allow",
                    "Principal": "*",
                    "Action": "s3:GetObject",
                    "Resource": f"{bucket_arn}/*",
                }
            ],
        }
    )


def create_website_bucket(
    service_name: str,
    bucket_name: str,
    frontend: FrontendConfig,
    aws_provider: pulumi_aws.Provider,
) -> WebsiteBucket:
    """Create a bucket serving a static website with public read access.

    bucket_name is the frontend FQDN (e.g. front.social-commerce.app).
    ACLs stay blocked; public access is granted by bucket policy only.
    Objects are removed with the bucket on destroy.
    """
    opts = pulumi.ResourceOptions(provider=aws_provider)

    bucket = pulumi_aws.s3.BucketV2(
        f"{service_name}_web_bucket",
        bucket=bucket_name,
        force_destroy=True,
        tags={"Name": bucket_name},
        opts=opts,
    )

    ownership = pulumi_aws.s3.BucketOwnershipControls(
        f"{service_name}_web_bucket_ownership",
        bucket=bucket.id,
        rule=pulumi_aws.s3.BucketOwnershipControlsRuleArgs(
            object_ownership="BucketOwnerEnforced",
        ),
        opts=opts,
    )

    public_access = pulumi_aws.s3.BucketPublicAccessBlock(
        f"{service_name}_web_bucket_public_access",
        bucket=bucket.id,
        block_public_acls=True,
        ignore_public_acls=True,
        block_public_policy=False,
        restrict_public_buckets=False,
        opts=opts,
    )

    website = pulumi_aws.s3.BucketWebsiteConfigurationV2(
        f"{service_name}_web_bucket_website",
        bucket=bucket.id,
        index_document=pulumi_aws.s3.BucketWebsiteConfigurationV2IndexDocumentArgs(
            suffix=frontend.index_document,
        ),
        error_document=pulumi_aws.s3.BucketWebsiteConfigurationV2ErrorDocumentArgs(
            key=frontend.error_document,
        ),
        opts=opts,
    )

    policy = pulumi_aws.s3.BucketPolicy(
        f"{service_name}_web_bucket_policy",
        bucket=bucket.id,
        policy=bucket.arn.apply(public_read_policy),
        opts=pulumi.ResourceOptions(
            provider=aws_provider,
            depends_on=[public_access, ownership],
        ),
    )

    return WebsiteBucket(bucket=bucket, website=website, policy=policy)

"""Frontend capability: S3 website bucket, asset upload and CloudFront distribution."""

from typing import Any

from infrastructure.capabilities.context import CapabilityContext
from infrastructure.capabilities.registry import Phase, register


@register("frontend", phase=Phase.INFRASTRUCTURE)
def frontend_handler(
    section_config: dict[str, Any],
    ctx: CapabilityContext,
) -> None:
    """Provision the static site: public bucket named after the frontend FQDN,
    the built assets from spec.frontend.source, and a distribution serving
    the FQDN with the edge certificate. The alias record is left to dns.
    """
    from infrastructure.cdn.distribution import create_distribution
    from infrastructure.storage.deployment import upload_directory
    from infrastructure.storage.s3 import create_website_bucket

    config = ctx.config
    frontend = config.frontend
    if frontend is None:
        raise RuntimeError("frontend capability declared without frontend config")

    service_name = config.service_name
    fqdn = frontend.fqdn(config.dns.domain_name)

    site = create_website_bucket(service_name, fqdn, frontend, ctx.aws_provider)
    upload_directory(
        service_name,
        site.bucket,
        frontend.source,
        frontend.index_document,
        ctx.aws_provider,
        depends_on=[site.policy],
    )

    distribution = create_distribution(
        service_name,
        site.website_endpoint,
        fqdn,
        ctx.require("certificates.edge.arn"),
        frontend,
        ctx.aws_provider,
    )

    ctx.set("frontend.distribution", distribution)
    ctx.set("frontend.fqdn", fqdn)
    ctx.export("frontend_bucket_name", site.bucket.bucket)
    ctx.export("frontend_bucket_website_url", site.website_url)
    ctx.export("frontend_distribution_id", distribution.id)

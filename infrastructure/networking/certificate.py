"""ACM wildcard certificate with Route 53 DNS validation."""

import pulumi
import pulumi_aws


def create_certificate(
    resource_prefix: str,
    domain_name: str,
    zone_id: str,
    aws_provider: pulumi_aws.Provider,
    validation_record_fqdns: pulumi.Input[list[str]] | None = None,
) -> pulumi_aws.acm.CertificateValidation:
    """Create a certificate for domain_name and *.domain_name, validated through DNS.

    The apex and the wildcard share one validation record. ACM issues the
    same record for the same domain in every region of an account, so a
    second certificate passes the first one's validation_record_fqdns
    instead of writing the record again. Returns the validation resource;
    use its certificate_arn so consumers wait for issuance.
    """
    opts = pulumi.ResourceOptions(provider=aws_provider)
    certificate = pulumi_aws.acm.Certificate(
        f"{resource_prefix}_certificate",
        domain_name=domain_name,
        subject_alternative_names=[f"*.{domain_name}"],
        validation_method="DNS",
        tags={"Name": domain_name},
        opts=opts,
    )

    if validation_record_fqdns is None:
        options = certificate.domain_validation_options
        record = pulumi_aws.route53.Record(
            f"{resource_prefix}_certificate_validation_record",
            zone_id=zone_id,
            name=options.apply(lambda o: o[0].resource_record_name),
            type=options.apply(lambda o: o[0].resource_record_type),
            records=[options.apply(lambda o: o[0].resource_record_value)],
            ttl=60,
            allow_overwrite=True,
            opts=opts,
        )
        validation_record_fqdns = [record.fqdn]

    return pulumi_aws.acm.CertificateValidation(
        f"{resource_prefix}_certificate_validation",
        certificate_arn=certificate.arn,
        validation_record_fqdns=validation_record_fqdns,
        opts=opts,
    )

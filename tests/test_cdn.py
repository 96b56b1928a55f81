"""Tests for the CloudFront distribution."""

from pathlib import Path
from unittest.mock import MagicMock, patch

from infrastructure.cdn.distribution import CACHING_OPTIMIZED_POLICY_ID, create_distribution
from infrastructure.config import FrontendConfig


@patch("infrastructure.cdn.distribution.pulumi_aws.cloudfront.Distribution")
def test_create_distribution(mock_dist: MagicMock) -> None:
    """Distribution serves the alias over HTTPS from the bucket website endpoint."""
    frontend = FrontendConfig(source=Path("/srv/build"), price_class="PriceClass_200")

    result = create_distribution(
        "svc",
        "front.example.com.s3-website-us-west-2.amazonaws.com",
        "front.example.com",
        "arn:aws:acm:us-east-1:1:certificate/abc",
        frontend,
        MagicMock(),
    )

    assert result is mock_dist.return_value
    call_kw = mock_dist.call_args[1]
    assert call_kw["aliases"] == ["front.example.com"]
    assert call_kw["price_class"] == "PriceClass_200"
    origin = call_kw["origins"][0]
    assert origin.domain_name == "front.example.com.s3-website-us-west-2.amazonaws.com"
    assert origin.custom_origin_config.origin_protocol_policy == "http-only"
    behavior = call_kw["default_cache_behavior"]
    assert behavior.target_origin_id == origin.origin_id
    assert behavior.viewer_protocol_policy == "redirect-to-https"
    assert behavior.cache_policy_id == CACHING_OPTIMIZED_POLICY_ID
    cert = call_kw["viewer_certificate"]
    assert cert.acm_certificate_arn == "arn:aws:acm:us-east-1:1:certificate/abc"
    assert cert.ssl_support_method == "sni-only"

"""Tests for shared infrastructure lookups."""

from unittest.mock import MagicMock, patch

import pytest

from infrastructure.config import DnsConfig, NetworkConfig, PlatformConfig
from infrastructure.shared.lookups import SharedInfrastructure, lookup_shared_infrastructure


def _config(hosted_zone_id: str | None = None, max_azs: int = 2) -> PlatformConfig:
    return PlatformConfig(
        service_name="chapter-3",
        region="us-west-2",
        raw_spec={},
        dns=DnsConfig(domain_name="social-commerce.app", hosted_zone_id=hosted_zone_id),
        network=NetworkConfig(max_azs=max_azs),
    )


@patch("infrastructure.shared.lookups.pulumi_aws.route53.get_zone")
@patch("infrastructure.shared.lookups.pulumi_aws.get_availability_zones")
@patch("infrastructure.shared.lookups.pulumi_aws.get_caller_identity")
def test_lookup_shared_infrastructure(
    mock_identity: MagicMock,
    mock_azs: MagicMock,
    mock_get_zone: MagicMock,
) -> None:
    """Account, sorted AZs capped at maxAzs and the public zone for the domain."""
    mock_identity.return_value.account_id = "123456789012"
    mock_azs.return_value.names = ["us-west-2c", "us-west-2a", "us-west-2b"]
    mock_get_zone.return_value.zone_id = "Z123"
    mock_get_zone.return_value.name = "social-commerce.app."

    infra = lookup_shared_infrastructure(_config(), MagicMock())

    assert isinstance(infra, SharedInfrastructure)
    assert infra.account_id == "123456789012"
    assert infra.availability_zones == ["us-west-2a", "us-west-2b"]
    assert infra.zone_id == "Z123"
    assert infra.zone_name == "social-commerce.app"
    zone_kw = mock_get_zone.call_args[1]
    assert zone_kw["name"] == "social-commerce.app"
    assert zone_kw["private_zone"] is False


@patch("infrastructure.shared.lookups.pulumi_aws.route53.get_zone")
@patch("infrastructure.shared.lookups.pulumi_aws.get_availability_zones")
@patch("infrastructure.shared.lookups.pulumi_aws.get_caller_identity")
def test_lookup_uses_pinned_zone_id(
    mock_identity: MagicMock,
    mock_azs: MagicMock,
    mock_get_zone: MagicMock,
) -> None:
    mock_azs.return_value.names = ["us-west-2a"]
    mock_get_zone.return_value.zone_id = "ZPINNED"
    mock_get_zone.return_value.name = "social-commerce.app"

    infra = lookup_shared_infrastructure(_config(hosted_zone_id="ZPINNED"), MagicMock())

    assert mock_get_zone.call_args[1]["zone_id"] == "ZPINNED"
    assert "name" not in mock_get_zone.call_args[1]
    assert infra.availability_zones == ["us-west-2a"]


@patch("infrastructure.shared.lookups.pulumi_aws.route53.get_zone")
@patch("infrastructure.shared.lookups.pulumi_aws.get_availability_zones")
@patch("infrastructure.shared.lookups.pulumi_aws.get_caller_identity")
def test_lookup_rejects_zone_for_other_domain(
    mock_identity: MagicMock,
    mock_azs: MagicMock,
    mock_get_zone: MagicMock,
) -> None:
    mock_azs.return_value.names = ["us-west-2a"]
    mock_get_zone.return_value.zone_id = "ZOTHER"
    mock_get_zone.return_value.name = "example.com."

    with pytest.raises(SystemExit, match="not social-commerce.app"):
        lookup_shared_infrastructure(_config(hosted_zone_id="ZOTHER"), MagicMock())


@patch("infrastructure.shared.lookups.pulumi_aws.get_availability_zones")
@patch("infrastructure.shared.lookups.pulumi_aws.get_caller_identity")
def test_lookup_no_availability_zones(mock_identity: MagicMock, mock_azs: MagicMock) -> None:
    mock_azs.return_value.names = []
    with pytest.raises(SystemExit, match="availability zones"):
        lookup_shared_infrastructure(_config(), MagicMock())

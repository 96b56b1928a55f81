"""Tests for load balancer modules (target group, ALB, listeners)."""

from pathlib import Path
from unittest.mock import MagicMock, patch

from infrastructure.config import ComputeConfig, HealthCheckConfig, LogConfig
from infrastructure.loadbalancer.alb import SSL_POLICY, create_listeners, create_load_balancer
from infrastructure.loadbalancer.target_group import create_target_group


@patch("infrastructure.loadbalancer.target_group.pulumi_aws.lb.TargetGroup")
def test_create_target_group(mock_tg: MagicMock) -> None:
    """Target group uses the container port and the configured health check."""
    compute = ComputeConfig(
        source=Path("/srv/server"),
        container_name="svc",
        logs=LogConfig(group_name="g", stream_prefix="p"),
        port=8080,
        health_check=HealthCheckConfig(path="/healthz", interval=30),
    )
    create_target_group("my-service", compute, "vpc-1", MagicMock())
    call_kw = mock_tg.call_args[1]
    assert call_kw["name"] == "my-service-tg"
    assert call_kw["port"] == 8080
    assert call_kw["vpc_id"] == "vpc-1"
    assert call_kw["target_type"] == "ip"
    assert call_kw["health_check"].path == "/healthz"
    assert call_kw["health_check"].interval == 30
    assert call_kw["health_check"].unhealthy_threshold == 3


@patch("infrastructure.loadbalancer.target_group.pulumi_aws.lb.TargetGroup")
def test_target_group_name_truncated(mock_tg: MagicMock) -> None:
    compute = ComputeConfig(
        source=Path("/srv/server"),
        container_name="svc",
        logs=LogConfig(group_name="g", stream_prefix="p"),
    )
    create_target_group("a-very-long-service-name-for-testing", compute, "vpc-1", MagicMock())
    assert len(mock_tg.call_args[1]["name"]) == 32


@patch("infrastructure.loadbalancer.target_group.pulumi_aws.lb.TargetGroup")
def test_target_group_name_never_ends_with_hyphen(mock_tg: MagicMock) -> None:
    """A 31-character service name truncates to a trailing hyphen, which AWS rejects."""
    compute = ComputeConfig(
        source=Path("/srv/server"),
        container_name="svc",
        logs=LogConfig(group_name="g", stream_prefix="p"),
    )
    create_target_group("s" * 31, compute, "vpc-1", MagicMock())
    assert mock_tg.call_args[1]["name"] == "s" * 31


@patch("infrastructure.loadbalancer.alb.pulumi_aws.lb.LoadBalancer")
def test_load_balancer_name_never_ends_with_hyphen(mock_lb: MagicMock) -> None:
    create_load_balancer("s" * 31, ["subnet-a"], "sg-alb", MagicMock())
    assert mock_lb.call_args[1]["name"] == "s" * 31


@patch("infrastructure.loadbalancer.alb.pulumi_aws.lb.LoadBalancer")
def test_create_load_balancer(mock_lb: MagicMock) -> None:
    create_load_balancer("svc", ["subnet-a", "subnet-b"], "sg-alb", MagicMock())
    call_kw = mock_lb.call_args[1]
    assert call_kw["internal"] is False
    assert call_kw["load_balancer_type"] == "application"
    assert call_kw["subnets"] == ["subnet-a", "subnet-b"]
    assert call_kw["security_groups"] == ["sg-alb"]


@patch("infrastructure.loadbalancer.alb.pulumi_aws.lb.Listener")
def test_create_listeners_https_forward_and_http_redirect(mock_listener: MagicMock) -> None:
    https_listener = MagicMock()
    http_listener = MagicMock()
    mock_listener.side_effect = [https_listener, http_listener]
    target_group = MagicMock()

    listeners = create_listeners("svc", MagicMock(), target_group, "arn:cert", MagicMock())

    assert listeners == [https_listener, http_listener]
    https_kw = mock_listener.call_args_list[0][1]
    assert https_kw["port"] == 443
    assert https_kw["protocol"] == "HTTPS"
    assert https_kw["certificate_arn"] == "arn:cert"
    assert https_kw["ssl_policy"] == SSL_POLICY
    assert https_kw["default_actions"][0].type == "forward"
    assert https_kw["default_actions"][0].target_group_arn is target_group.arn

    http_kw = mock_listener.call_args_list[1][1]
    assert http_kw["port"] == 80
    redirect = http_kw["default_actions"][0].redirect
    assert redirect.protocol == "HTTPS"
    assert redirect.port == "443"
    assert redirect.status_code == "HTTP_301"


@patch("infrastructure.loadbalancer.alb.pulumi_aws.lb.Listener")
def test_create_listeners_without_redirect(mock_listener: MagicMock) -> None:
    listeners = create_listeners(
        "svc", MagicMock(), MagicMock(), "arn:cert", MagicMock(), redirect_http=False
    )
    assert len(listeners) == 1
    assert mock_listener.call_args[1]["port"] == 443

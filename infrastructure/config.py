"""Platform.yaml configuration loading and validation."""

from dataclasses import dataclass, field
import os
from pathlib import Path
from typing import Any

import jsonschema
import pulumi
import pulumi_aws
import yaml

from infrastructure.spec.validator import validate_platform_spec

TAG_MANAGED = "platform-engine-managed"
TAG_SERVICE = "service"
EDGE_REGION = "us-east-1"


@dataclass
class DnsConfig:
    domain_name: str
    backend_subdomain: str = "api"
    hosted_zone_id: str | None = None

    @property
    def backend_fqdn(self) -> str:
        return f"{self.backend_subdomain}.{self.domain_name}"


@dataclass
class SubnetGroupConfig:
    name: str
    type: str  # public | private | isolated
    cidr_mask: int = 24


def _default_subnet_groups() -> list[SubnetGroupConfig]:
    return [
        SubnetGroupConfig(name="ingress", type="public", cidr_mask=24),
        SubnetGroupConfig(name="compute", type="private", cidr_mask=24),
        SubnetGroupConfig(name="rds", type="isolated", cidr_mask=28),
    ]


@dataclass
class NetworkConfig:
    cidr: str = "10.0.0.0/16"
    max_azs: int = 2
    nat_gateways: int = 1
    subnets: list[SubnetGroupConfig] = field(default_factory=_default_subnet_groups)

    def has_type(self, subnet_type: str) -> bool:
        return any(s.type == subnet_type for s in self.subnets)


@dataclass
class TableConfig:
    name: str
    partition_key: str
    partition_key_type: str = "S"
    sort_key: str | None = None
    sort_key_type: str | None = None
    ttl_attribute: str | None = None
    billing_mode: str = "PAY_PER_REQUEST"
    point_in_time_recovery: bool = True
    removal_policy: str = "destroy"

    @property
    def slug(self) -> str:
        """Name with '-' and '.' folded to '_': resource names, export keys, env vars."""
        return self.name.replace("-", "_").replace(".", "_")


@dataclass
class DatabaseConfig:
    tables: list[TableConfig] = field(default_factory=list)


@dataclass
class HealthCheckConfig:
    path: str = "/healthcheck"
    interval: int = 60
    timeout: int = 5
    healthy_threshold: int = 2
    unhealthy_threshold: int = 3


@dataclass
class CapacityConfig:
    instance_type: str = "t2.micro"
    min_size: int = 1
    max_size: int = 3


@dataclass
class LogConfig:
    group_name: str
    stream_prefix: str
    retention_days: int = 1


@dataclass
class ComputeConfig:
    source: Path
    container_name: str
    logs: LogConfig
    port: int = 80
    cpu: int = 256
    memory: int = 512
    container_memory: int = 256
    desired_count: int = 1
    redirect_http: bool = True
    health_check: HealthCheckConfig = field(default_factory=HealthCheckConfig)
    capacity: CapacityConfig = field(default_factory=CapacityConfig)
    environment: dict[str, str] = field(default_factory=dict)


@dataclass
class FrontendConfig:
    source: Path
    subdomain: str = "front"
    index_document: str = "index.html"
    error_document: str = "index.html"
    price_class: str = "PriceClass_100"

    def fqdn(self, domain_name: str) -> str:
        return f"{self.subdomain}.{domain_name}"


@dataclass
class PlatformConfig:
    """Parsed and validated platform.yaml configuration."""

    service_name: str
    region: str
    raw_spec: dict[str, Any]
    dns: DnsConfig
    base_dir: Path = field(default_factory=Path.cwd)
    network: NetworkConfig = field(default_factory=NetworkConfig)
    database: DatabaseConfig | None = None
    compute: ComputeConfig | None = None
    frontend: FrontendConfig | None = None
    secrets: list[str] = field(default_factory=list)

    @property
    def spec_sections(self) -> dict[str, Any]:
        """Return declared (non-None) spec section names and their config (for registry)."""
        sections = ["dns", "network", "database", "compute", "frontend"]
        return {
            k: self.raw_spec[k]
            for k in sections
            if k in self.raw_spec and self.raw_spec[k] is not None
        }

    @property
    def needs_edge_certificate(self) -> bool:
        """CloudFront only accepts certificates issued in us-east-1."""
        return self.frontend is not None and self.region != EDGE_REGION

    @classmethod
    def from_file(cls, path: str) -> "PlatformConfig":
        """Load and validate platform.yaml from file path."""
        if not Path(path).exists():
            raise SystemExit(f"platform.yaml not found: {path}")

        with open(path, encoding="utf-8") as f:
            platform: dict[str, Any] = yaml.safe_load(f)

        try:
            validate_platform_spec(platform)
        except jsonschema.ValidationError as e:
            raise SystemExit(str(e)) from e

        metadata = platform["metadata"]
        spec = platform["spec"]
        service_name = metadata["name"]
        base_dir = Path(path).resolve().parent
        aws_config = pulumi.Config("aws")
        region = aws_config.require("region")

        d = spec["dns"]
        dns = DnsConfig(
            domain_name=d["domainName"],
            backend_subdomain=d.get("backendSubdomain", "api"),
            hosted_zone_id=d.get("hostedZoneId"),
        )

        network = NetworkConfig()
        if spec.get("network") is not None:
            n = spec["network"]
            groups = n.get("subnets")
            network = NetworkConfig(
                cidr=n.get("cidr", "10.0.0.0/16"),
                max_azs=n.get("maxAzs", 2),
                nat_gateways=n.get("natGateways", 1),
                subnets=[
                    SubnetGroupConfig(
                        name=g["name"],
                        type=g["type"],
                        cidr_mask=g.get("cidrMask", 24),
                    )
                    for g in groups
                ]
                if groups
                else _default_subnet_groups(),
            )
        _check_network(network)

        database = None
        if spec.get("database") is not None:
            database = DatabaseConfig(
                tables=[
                    TableConfig(
                        name=t["name"],
                        partition_key=t["partitionKey"],
                        partition_key_type=t.get("partitionKeyType", "S"),
                        sort_key=t.get("sortKey"),
                        sort_key_type=t.get("sortKeyType", "S") if t.get("sortKey") else None,
                        ttl_attribute=t.get("ttlAttribute"),
                        billing_mode=t.get("billingMode", "PAY_PER_REQUEST"),
                        point_in_time_recovery=t.get("pointInTimeRecovery", True),
                        removal_policy=t.get("removalPolicy", "destroy"),
                    )
                    for t in spec["database"]["tables"]
                ]
            )
            _check_tables(database.tables)

        compute = None
        if spec.get("compute") is not None:
            c = spec["compute"]
            hc = c.get("healthCheck") or {}
            cap = c.get("capacity") or {}
            logs = c.get("logs") or {}
            compute = ComputeConfig(
                source=_resolve_source(base_dir, c["source"]),
                container_name=c.get("containerName") or _sanitize_container_name(service_name),
                port=c.get("port", 80),
                cpu=c.get("cpu", 256),
                memory=c.get("memory", 512),
                container_memory=c.get("containerMemory", 256),
                desired_count=c.get("desiredCount", 1),
                redirect_http=c.get("redirectHttp", True),
                health_check=HealthCheckConfig(
                    path=hc.get("path", "/healthcheck"),
                    interval=hc.get("interval", 60),
                    timeout=hc.get("timeout", 5),
                    healthy_threshold=hc.get("healthyThreshold", 2),
                    unhealthy_threshold=hc.get("unhealthyThreshold", 3),
                ),
                capacity=CapacityConfig(
                    instance_type=cap.get("instanceType", "t2.micro"),
                    min_size=cap.get("min", 1),
                    max_size=cap.get("max", 3),
                ),
                logs=LogConfig(
                    group_name=logs.get("groupName", f"{service_name}-ecs-logs"),
                    stream_prefix=logs.get("streamPrefix", service_name),
                    retention_days=logs.get("retentionDays", 1),
                ),
                environment=c.get("environment", {}),
            )
            _check_compute(compute)

        frontend = None
        if spec.get("frontend") is not None:
            fe = spec["frontend"]
            frontend = FrontendConfig(
                source=_resolve_source(base_dir, fe["source"]),
                subdomain=fe.get("subdomain", "front"),
                index_document=fe.get("indexDocument", "index.html"),
                error_document=fe.get("errorDocument", "index.html"),
                price_class=fe.get("priceClass", "PriceClass_100"),
            )

        return cls(
            service_name=service_name,
            region=region,
            raw_spec=spec,
            dns=dns,
            base_dir=base_dir,
            network=network,
            database=database,
            compute=compute,
            frontend=frontend,
            secrets=spec.get("secrets", []),
        )


def _sanitize_container_name(service_name: str) -> str:
    return service_name.replace(".", "-").replace("/", "-")[:255]


def _resolve_source(base_dir: Path, source: str) -> Path:
    p = Path(source)
    return p if p.is_absolute() else (base_dir / p).resolve()


def _check_network(network: NetworkConfig) -> None:
    """Reject subnet layouts that cannot route (schema cannot express these)."""
    if network.has_type("private"):
        if not network.has_type("public"):
            raise SystemExit("private subnets need a public subnet group for NAT gateways")
        if network.nat_gateways < 1:
            raise SystemExit("private subnets need network.natGateways >= 1")
    names = [s.name for s in network.subnets]
    if len(names) != len(set(names)):
        raise SystemExit(f"duplicate subnet group names: {names}")


def _check_tables(tables: list[TableConfig]) -> None:
    """Table names must stay distinct once folded into resource names and env vars."""
    seen: dict[str, str] = {}
    for table in tables:
        key = table.slug.lower()
        if key in seen:
            raise SystemExit(
                f"database tables {seen[key]!r} and {table.name!r} collide "
                f"(both map to DYNAMODB_TABLE_{key.upper()})"
            )
        seen[key] = table.name


def _check_compute(compute: ComputeConfig) -> None:
    if compute.capacity.min_size > compute.capacity.max_size:
        raise SystemExit("compute.capacity.min must not exceed compute.capacity.max")
    hc = compute.health_check
    # ALB target groups reject a timeout that is not shorter than the interval
    if hc.timeout >= hc.interval:
        raise SystemExit(
            f"compute.healthCheck.timeout ({hc.timeout}) must be less than "
            f"compute.healthCheck.interval ({hc.interval})"
        )
    if compute.container_memory > compute.memory:
        raise SystemExit(
            f"compute.containerMemory ({compute.container_memory}) must not exceed "
            f"compute.memory ({compute.memory})"
        )


def load_platform_config() -> PlatformConfig:
    """Load platform.yaml from PLATFORM_YAML_PATH environment variable."""
    path = os.environ.get("PLATFORM_YAML_PATH")
    if not path:
        raise SystemExit("PLATFORM_YAML_PATH environment variable required")
    if not Path(path).exists():
        raise SystemExit("PLATFORM_YAML_PATH must point to platform.yaml")
    return PlatformConfig.from_file(path)


def create_aws_provider(
    service_name: str,
    region: str,
    name: str = "aws-tagged",
) -> pulumi_aws.Provider:
    """Create AWS provider with default resource tags."""
    return pulumi_aws.Provider(
        name,
        region=region,
        default_tags=pulumi_aws.ProviderDefaultTagsArgs(
            tags={
                TAG_SERVICE: service_name,
                TAG_MANAGED: "true",
                "managed-by": "platform-engine",
            }
        ),
    )

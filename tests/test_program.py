"""Whole-program tests: build_stack against the Pulumi mock engine.

Unlike the capability tests, nothing here seeds the context by hand: the
foundation and every capability run for real, so a context key one side sets
under a different name than the other requires fails the run.
"""

from pathlib import Path
from unittest.mock import MagicMock, patch

import pulumi
import pulumi_aws
import yaml

from infrastructure.config import EDGE_REGION, PlatformConfig
from infrastructure.stack import build_stack

FIXTURES = Path(__file__).resolve().parent.parent / "fixtures"
REGION = "eu-west-1"

ROUTE53_RECORD = "aws:route53/record:Record"


class RecordingMocks(pulumi.runtime.Mocks):
    """Answers AWS lookups and records every (type, name) registration."""

    def __init__(self) -> None:
        self.registered: list[tuple[str, str]] = []

    def new_resource(self, args: pulumi.runtime.MockResourceArgs):
        self.registered.append((args.typ, args.name))
        outputs = dict(args.inputs)
        if args.typ.startswith("pulumi:providers:"):
            return [f"{args.name}_id", outputs]
        outputs.setdefault("name", args.name)
        outputs.setdefault("arn", f"arn:aws:mock:{REGION}:123456789012:{args.name}")
        if args.typ == "aws:acm/certificate:Certificate":
            domain = args.inputs["domainName"]
            outputs["domainValidationOptions"] = [
                {
                    "domainName": domain,
                    "resourceRecordName": f"_abc.{domain}.",
                    "resourceRecordType": "CNAME",
                    "resourceRecordValue": "_xyz.acm-validations.aws.",
                }
            ]
        elif args.typ == "aws:ecr/repository:Repository":
            outputs["repositoryUrl"] = f"123456789012.dkr.ecr.{REGION}.amazonaws.com/{args.name}"
        elif args.typ == "aws:s3/bucketWebsiteConfigurationV2:BucketWebsiteConfigurationV2":
            outputs["websiteEndpoint"] = f"{args.name}.s3-website-{REGION}.amazonaws.com"
        elif args.typ == "aws:lb/loadBalancer:LoadBalancer":
            outputs["dnsName"] = f"{args.name}.{REGION}.elb.amazonaws.com"
            outputs["zoneId"] = "ZALB"
        elif args.typ == "aws:cloudfront/distribution:Distribution":
            outputs["domainName"] = "d111111abcdef8.cloudfront.net"
            outputs["hostedZoneId"] = "Z2FDTNDATAQYW2"
        return [f"{args.name}_id", outputs]

    def call(self, args: pulumi.runtime.MockCallArgs):
        if args.token == "aws:index/getCallerIdentity:getCallerIdentity":
            return {
                "accountId": "123456789012",
                "arn": "arn:aws:iam::123456789012:root",
                "id": "123456789012",
                "userId": "mock",
            }
        if args.token == "aws:index/getAvailabilityZones:getAvailabilityZones":
            return {"names": [f"{REGION}a", f"{REGION}b", f"{REGION}c"], "id": REGION}
        if args.token == "aws:route53/getZone:getZone":
            return {"zoneId": "Z0MOCK", "name": f"{args.args['name']}.", "id": "Z0MOCK"}
        if args.token == "aws:ssm/getParameter:getParameter":
            name = args.args["name"]
            return {"name": name, "value": "ami-0123456789abcdef0", "type": "String", "id": name}
        return {}


def _write_platform_yaml(tmp_path: Path, fixture: str) -> Path:
    """Copy a fixture with its sources pointed at real directories under tmp_path."""
    platform = yaml.safe_load((FIXTURES / fixture).read_text())
    spec = platform["spec"]
    if "compute" in spec:
        server = tmp_path / "server"
        server.mkdir()
        (server / "Dockerfile").write_text("FROM node:20-alpine\n")
        spec["compute"]["source"] = str(server)
    if "frontend" in spec:
        build = tmp_path / "build"
        (build / "static").mkdir(parents=True)
        (build / "index.html").write_text("<html></html>")
        (build / "static" / "main.js").write_text("console.log('hi')")
        spec["frontend"]["source"] = str(build)
    path = tmp_path / "platform.yaml"
    path.write_text(yaml.safe_dump(platform))
    return path


def _load(path: Path) -> PlatformConfig:
    aws_config = MagicMock()
    aws_config.require.return_value = REGION
    with patch("infrastructure.config.pulumi.Config", return_value=aws_config):
        return PlatformConfig.from_file(str(path))


def _synthesize(config: PlatformConfig) -> tuple[list[tuple[str, str]], dict]:
    """Run the program once under fresh mocks; return registrations and exports."""
    mocks = RecordingMocks()
    pulumi.runtime.set_mocks(mocks, project="social-commerce", stack="test", preview=False)
    result: dict = {}

    @pulumi.runtime.test
    def program():
        aws_provider = pulumi_aws.Provider("aws-tagged", region=config.region)
        edge_provider = None
        if config.needs_edge_certificate:
            edge_provider = pulumi_aws.Provider("aws-edge", region=EDGE_REGION)
        result["exports"] = build_stack(config, aws_provider, edge_provider)

    program()
    return mocks.registered, result["exports"]


def test_full_stack_synthesizes_identically_twice(tmp_path: Path) -> None:
    config = _load(_write_platform_yaml(tmp_path, "social-commerce.yaml"))

    first, exports = _synthesize(config)
    second, _ = _synthesize(config)

    assert sorted(first) == sorted(second)
    assert len(first) == len(set(first)), "a resource was declared twice"
    assert set(exports) == {
        "vpc_id",
        "certificate_arn",
        "dynamodb_table_main",
        "dynamodb_table_names",
        "backend_url",
        "ecr_repository_uri",
        "ecs_cluster_name",
        "ecs_service_name",
        "frontend_bucket_name",
        "frontend_bucket_website_url",
        "frontend_distribution_id",
        "backend_domain_url",
        "frontend_url",
    }


def test_full_stack_declares_every_resource_family(tmp_path: Path) -> None:
    config = _load(_write_platform_yaml(tmp_path, "social-commerce.yaml"))

    registered, _ = _synthesize(config)

    types = {typ for typ, _name in registered}
    for expected in (
        "aws:ec2/vpc:Vpc",
        "aws:ec2/natGateway:NatGateway",
        "aws:dynamodb/table:Table",
        "aws:iam/rolePolicy:RolePolicy",
        "aws:ecs/cluster:Cluster",
        "aws:ecs/capacityProvider:CapacityProvider",
        "aws:autoscaling/group:Group",
        "aws:ecs/service:Service",
        "aws:lb/loadBalancer:LoadBalancer",
        "aws:s3/bucketObjectv2:BucketObjectv2",
        "aws:cloudfront/distribution:Distribution",
    ):
        assert expected in types, expected

    # regional (eu-west-1) and CloudFront (us-east-1) certificates, one validation record
    certificates = [n for t, n in registered if t == "aws:acm/certificate:Certificate"]
    assert sorted(certificates) == ["chapter-3_certificate", "chapter-3_edge_certificate"]
    validation_records = [
        n for t, n in registered if t == ROUTE53_RECORD and n.endswith("_validation_record")
    ]
    assert validation_records == ["chapter-3_certificate_validation_record"]


def test_frontend_only_stack_has_no_network(tmp_path: Path) -> None:
    config = _load(_write_platform_yaml(tmp_path, "minimal.yaml"))

    registered, exports = _synthesize(config)

    types = {typ for typ, _name in registered}
    assert "aws:ec2/vpc:Vpc" not in types
    assert "aws:ec2/natGateway:NatGateway" not in types
    assert "aws:ecs/cluster:Cluster" not in types
    certificates = [n for t, n in registered if t == "aws:acm/certificate:Certificate"]
    assert certificates == ["storefront_edge_certificate"]
    assert "vpc_id" not in exports
    assert "frontend_url" in exports

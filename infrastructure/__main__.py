"""
Platform engine: provisions one stack from platform.yaml.
Creates the VPC, certificate(s), DynamoDB tables, the ECS service behind an
HTTPS load balancer, the static frontend behind CloudFront and the Route53
aliases pointing at both.
"""

import pulumi

from infrastructure.config import EDGE_REGION, create_aws_provider, load_platform_config
from infrastructure.stack import build_stack

config = load_platform_config()
aws_provider = create_aws_provider(config.service_name, config.region)

# CloudFront certificates must live in us-east-1
edge_provider = None
if config.needs_edge_certificate:
    edge_provider = create_aws_provider(config.service_name, EDGE_REGION, name="aws-edge")

for key, value in build_stack(config, aws_provider, edge_provider).items():
    pulumi.export(key, value)

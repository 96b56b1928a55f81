"""Inline IAM grants from compute roles to data resources."""

import json
from typing import Any

import pulumi
import pulumi_aws

DYNAMODB_READ_WRITE_ACTIONS = [
    "dynamodb:BatchGetItem",
    "dynamodb:GetRecords",
    "dynamodb:GetShardIterator",
    "dynamodb:Query",
    "dynamodb:GetItem",
    "dynamodb:Scan",
    "dynamodb:ConditionCheckItem",
    "dynamodb:BatchWriteItem",
    "dynamodb:PutItem",
    "dynamodb:UpdateItem",
    "dynamodb:DeleteItem",
    "dynamodb:DescribeTable",
]


def table_read_write_policy(table_arns: list[str]) -> str:
    """Policy document: item-level read/write on the tables and their indexes."""
    return json.dumps(
        {
            "Version": "2012-10-17",
            "Statement": [
                {
                    "Effect": "Allow",
                    "Action": DYNAMODB_READ_WRITE_ACTIONS,
                    "Resource": list(table_arns) + [f"{arn}/index/*" for arn in table_arns],
                }
            ],
        }
    )


def grant_table_read_write(
    resource_name: str,
    role: pulumi_aws.iam.Role,
    table_arns: list[Any],
    aws_provider: pulumi_aws.Provider,
) -> pulumi_aws.iam.RolePolicy:
    """Attach an inline policy granting data read/write on the given table ARNs."""
    policy_doc = pulumi.Output.all(*table_arns).apply(table_read_write_policy)
    return pulumi_aws.iam.RolePolicy(
        resource_name,
        role=role.name,
        policy=policy_doc,
        opts=pulumi.ResourceOptions(provider=aws_provider),
    )

"""DynamoDB Table provisioning."""

import pulumi
import pulumi_aws

from infrastructure.config import TableConfig


def table_physical_name(service_name: str, table: TableConfig) -> str:
    return f"{service_name}-{table.name}"


def table_env_var(table: TableConfig) -> str:
    """Container environment variable carrying the physical table name."""
    return "DYNAMODB_TABLE_" + table.slug.upper()


def create_dynamodb_table(
    service_name: str,
    table: TableConfig,
    aws_provider: pulumi_aws.Provider,
) -> pulumi_aws.dynamodb.Table:
    """Create a DynamoDB table with the given key schema.

    removal_policy "retain" keeps the table (and turns on deletion
    protection) when the stack is destroyed.
    """
    resource_name = f"{service_name}_{table.slug}_table"

    attribute_defs = [
        pulumi_aws.dynamodb.TableAttributeArgs(
            name=table.partition_key,
            type=table.partition_key_type,
        )
    ]

    if table.sort_key and table.sort_key_type:
        attribute_defs.append(
            pulumi_aws.dynamodb.TableAttributeArgs(
                name=table.sort_key,
                type=table.sort_key_type,
            )
        )

    ttl_spec = None
    if table.ttl_attribute:
        ttl_spec = pulumi_aws.dynamodb.TableTtlArgs(
            attribute_name=table.ttl_attribute,
            enabled=True,
        )

    retain = table.removal_policy == "retain"
    extra: dict = {}
    if table.billing_mode == "PROVISIONED":
        extra["read_capacity"] = 5
        extra["write_capacity"] = 5

    return pulumi_aws.dynamodb.Table(
        resource_name,
        name=table_physical_name(service_name, table),
        billing_mode=table.billing_mode,
        hash_key=table.partition_key,
        range_key=table.sort_key,
        attributes=attribute_defs,
        ttl=ttl_spec,
        point_in_time_recovery=pulumi_aws.dynamodb.TablePointInTimeRecoveryArgs(
            enabled=table.point_in_time_recovery,
        ),
        deletion_protection_enabled=retain,
        tags={"Name": table.name},
        opts=pulumi.ResourceOptions(provider=aws_provider, retain_on_delete=retain),
        **extra,
    )

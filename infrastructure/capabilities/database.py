"""Database capability: DynamoDB tables."""

from typing import Any

from infrastructure.capabilities.context import CapabilityContext
from infrastructure.capabilities.registry import Phase, register


@register("database", phase=Phase.INFRASTRUCTURE)
def database_handler(
    section_config: dict[str, Any],
    ctx: CapabilityContext,
) -> None:
    """Provision DynamoDB tables declared under spec.database.tables.

    Stores each table ARN for the compute capability, which grants its task
    role read/write access. Section_config is ignored; config comes from ctx.config.
    """
    from infrastructure.database.dynamodb import create_dynamodb_table

    database = ctx.config.database
    tables = database.tables if database else []
    service_name = ctx.config.service_name

    table_names: list[Any] = []
    table_arns: list[Any] = []
    for tbl in tables:
        table = create_dynamodb_table(
            service_name=service_name,
            table=tbl,
            aws_provider=ctx.aws_provider,
        )
        ctx.set(f"dynamodb.tables.{tbl.name}.arn", table.arn)
        ctx.set(f"dynamodb.tables.{tbl.name}.name", table.name)
        table_names.append(table.name)
        table_arns.append(table.arn)
        ctx.export(f"dynamodb_table_{tbl.slug}", table.name)

    ctx.set("dynamodb.table_arns", table_arns)
    ctx.set("dynamodb.table_names", table_names)
    ctx.export("dynamodb_table_names", table_names)

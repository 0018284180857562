from typing import Any, Dict, List, Optional

import structlog
from botocore.exceptions import ClientError

from app.modules.inventory.adapters.aws.base import AWSResourceProvider
from app.modules.inventory.schemas.common import tags_from_list
from app.modules.inventory.schemas.dynamodb import (
    AttributeDefinition,
    DynamoDbTable,
    GlobalSecondaryIndex,
    KeySchemaElement,
    LocalSecondaryIndex,
    Projection,
    ProvisionedThroughput,
)
from app.shared.adapters.aws_enrichment import Enrichment
from app.shared.adapters.aws_errors import aws_error_codes, aws_operation
from app.shared.adapters.aws_pagination import aws_token_pages, collect_pages

logger = structlog.get_logger()

table_not_found = aws_error_codes("ResourceNotFoundException")
continuous_backups_unavailable = aws_error_codes("ContinuousBackupsUnavailableException")


def _key_schema(raw: Optional[List[Dict[str, Any]]]) -> List[KeySchemaElement]:
    return [
        KeySchemaElement(
            attribute_name=k.get("AttributeName", ""), key_type=k.get("KeyType", "")
        )
        for k in raw or []
    ]


def _projection(raw: Optional[Dict[str, Any]]) -> Projection:
    raw = raw or {}
    return Projection(
        projection_type=raw.get("ProjectionType") or "ALL",
        non_key_attributes=raw.get("NonKeyAttributes"),
    )


def _throughput(raw: Optional[Dict[str, Any]]) -> Optional[ProvisionedThroughput]:
    if not raw:
        return None
    return ProvisionedThroughput(
        read_capacity_units=raw.get("ReadCapacityUnits", 0),
        write_capacity_units=raw.get("WriteCapacityUnits", 0),
    )


def map_table(table: Dict[str, Any]) -> DynamoDbTable:
    stream = table.get("StreamSpecification") or {}
    return DynamoDbTable(
        table_name=table.get("TableName", ""),
        table_arn=table.get("TableArn", ""),
        table_status=table.get("TableStatus", ""),
        creation_date_time=table.get("CreationDateTime"),
        item_count=table.get("ItemCount", 0),
        table_size_bytes=table.get("TableSizeBytes", 0),
        billing_mode=(table.get("BillingModeSummary") or {}).get("BillingMode")
        or "PROVISIONED",
        provisioned_throughput=_throughput(table.get("ProvisionedThroughput")),
        key_schema=_key_schema(table.get("KeySchema")),
        attribute_definitions=[
            AttributeDefinition(
                attribute_name=a.get("AttributeName", ""),
                attribute_type=a.get("AttributeType", ""),
            )
            for a in table.get("AttributeDefinitions") or []
        ],
        global_secondary_indexes=[
            GlobalSecondaryIndex(
                index_name=gsi.get("IndexName", ""),
                index_arn=gsi.get("IndexArn"),
                index_status=gsi.get("IndexStatus"),
                key_schema=_key_schema(gsi.get("KeySchema")),
                projection=_projection(gsi.get("Projection")),
                item_count=gsi.get("ItemCount", 0),
                index_size_bytes=gsi.get("IndexSizeBytes", 0),
                provisioned_throughput=_throughput(gsi.get("ProvisionedThroughput")),
            )
            for gsi in table.get("GlobalSecondaryIndexes") or []
        ],
        local_secondary_indexes=[
            LocalSecondaryIndex(
                index_name=lsi.get("IndexName", ""),
                index_arn=lsi.get("IndexArn"),
                key_schema=_key_schema(lsi.get("KeySchema")),
                projection=_projection(lsi.get("Projection")),
                item_count=lsi.get("ItemCount", 0),
                index_size_bytes=lsi.get("IndexSizeBytes", 0),
            )
            for lsi in table.get("LocalSecondaryIndexes") or []
        ],
        stream_enabled=bool(stream.get("StreamEnabled")),
        stream_view_type=stream.get("StreamViewType"),
        deletion_protection_enabled=table.get("DeletionProtectionEnabled", False),
        table_class=(table.get("TableClassSummary") or {}).get("TableClass"),
    )


def apply_ttl(table: DynamoDbTable, response: Dict[str, Any]) -> DynamoDbTable:
    description = response.get("TimeToLiveDescription") or {}
    return table.model_copy(
        update={
            "ttl_enabled": description.get("TimeToLiveStatus") == "ENABLED",
            "ttl_attribute_name": description.get("AttributeName"),
        }
    )


def apply_pitr(table: DynamoDbTable, response: Dict[str, Any]) -> DynamoDbTable:
    pitr = (response.get("ContinuousBackupsDescription") or {}).get(
        "PointInTimeRecoveryDescription"
    ) or {}
    return table.model_copy(
        update={
            "pitr_enabled": pitr.get("PointInTimeRecoveryStatus") == "ENABLED",
            "latest_restorable_date_time": pitr.get("LatestRestorableDateTime"),
        }
    )


def apply_tags(table: DynamoDbTable, tags: List[Dict[str, Any]]) -> DynamoDbTable:
    return table.model_copy(update={"tags": tags_from_list(tags)})


class DynamoDbProvider(AWSResourceProvider):
    service_name = "dynamodb"

    @aws_operation("dynamodb.list_tables")
    async def list_tables(self, account_name: str) -> List[str]:
        async with self._client(account_name) as client:
            names = await collect_pages(
                aws_token_pages(
                    client.list_tables,
                    items_key="TableNames",
                    request_token="ExclusiveStartTableName",
                    response_token="LastEvaluatedTableName",
                ),
                operation_name="dynamodb.list_tables",
            )
        logger.debug("dynamodb_tables_listed", account=account_name, count=len(names))
        return names

    @aws_operation("dynamodb.describe_table")
    async def get_table(
        self, account_name: str, table_name: str, *, require_complete: bool = False
    ) -> Optional[DynamoDbTable]:
        async with self._client(account_name) as client:
            try:
                response = await client.describe_table(TableName=table_name)
            except ClientError as e:
                if table_not_found(e):
                    return None
                raise
            raw = response.get("Table")
            if not raw:
                return None

            async def fetch_tags(table: DynamoDbTable) -> List[Dict[str, Any]]:
                return await collect_pages(
                    aws_token_pages(
                        client.list_tags_of_resource,
                        items_key="Tags",
                        request_token="NextToken",
                        ResourceArn=table.table_arn,
                    ),
                    operation_name="dynamodb.list_tags_of_resource",
                )

            enrichments: List[Enrichment[DynamoDbTable, Any]] = [
                Enrichment(
                    name="dynamodb.ttl",
                    fetch=lambda t: client.describe_time_to_live(TableName=t.table_name),
                    apply=apply_ttl,
                ),
                Enrichment(
                    name="dynamodb.pitr",
                    fetch=lambda t: client.describe_continuous_backups(
                        TableName=t.table_name
                    ),
                    apply=apply_pitr,
                    is_absent=continuous_backups_unavailable,
                ),
                Enrichment(name="dynamodb.tags", fetch=fetch_tags, apply=apply_tags),
            ]
            result = await self.enricher.enrich(
                [map_table(raw)], enrichments, require_complete=require_complete
            )
        if require_complete:
            result.raise_for_failures()
        return result.items[0]

    async def list_tables_with_details(
        self, account_name: str, *, batch_size: Optional[int] = None
    ) -> List[DynamoDbTable]:
        """
        Describe every table in batches. Tables that disappear between listing
        and describing, or whose describe call or any facet fails, are left out.
        """
        names = await self.list_tables(account_name)
        outcomes = await self.enricher.run_in_batches(
            names,
            lambda name: self.get_table(account_name, name, require_complete=True),
            feature="dynamodb.describe_table",
            batch_size=batch_size,
        )
        return [o.value for o in outcomes if o.is_value and o.value is not None]

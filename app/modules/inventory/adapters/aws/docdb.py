from typing import Any, Dict, List, Optional

import structlog
from botocore.exceptions import ClientError

from app.modules.inventory.adapters.aws.base import AWSResourceProvider
from app.modules.inventory.adapters.aws.rds import (
    cluster_not_found,
    instance_not_found,
    map_cluster_parameter_group,
    map_endpoint,
    map_members,
    security_group_ids,
)
from app.modules.inventory.schemas.common import tags_from_list
from app.modules.inventory.schemas.docdb import (
    DOCDB_ENGINE,
    DocumentDbCluster,
    DocumentDbInstance,
    DocumentDbSnapshot,
)
from app.modules.inventory.schemas.rds import DbParameterGroup
from app.shared.adapters.aws_errors import aws_operation
from app.shared.adapters.aws_pagination import aws_token_pages, collect_pages

logger = structlog.get_logger()


def is_docdb(record: Dict[str, Any]) -> bool:
    """The DocumentDB API shares endpoints with RDS and returns both engines."""
    return (record.get("Engine") or DOCDB_ENGINE) == DOCDB_ENGINE


def map_cluster(cluster: Dict[str, Any]) -> DocumentDbCluster:
    return DocumentDbCluster(
        db_cluster_identifier=cluster.get("DBClusterIdentifier", ""),
        db_cluster_arn=cluster.get("DBClusterArn", ""),
        engine=cluster.get("Engine") or DOCDB_ENGINE,
        engine_version=cluster.get("EngineVersion", ""),
        status=cluster.get("Status", ""),
        master_username=cluster.get("MasterUsername"),
        endpoint=cluster.get("Endpoint"),
        reader_endpoint=cluster.get("ReaderEndpoint"),
        port=cluster.get("Port"),
        multi_az=cluster.get("MultiAZ", False),
        storage_encrypted=cluster.get("StorageEncrypted", False),
        kms_key_id=cluster.get("KmsKeyId"),
        db_subnet_group=cluster.get("DBSubnetGroup"),
        vpc_security_groups=security_group_ids(cluster.get("VpcSecurityGroups")),
        backup_retention_period=cluster.get("BackupRetentionPeriod", 0),
        preferred_backup_window=cluster.get("PreferredBackupWindow"),
        preferred_maintenance_window=cluster.get("PreferredMaintenanceWindow"),
        latest_restorable_time=cluster.get("LatestRestorableTime"),
        cluster_create_time=cluster.get("ClusterCreateTime"),
        deletion_protection=cluster.get("DeletionProtection", False),
        members=map_members(cluster.get("DBClusterMembers")),
        tags=tags_from_list(cluster.get("TagList")),
    )


def map_instance(instance: Dict[str, Any]) -> DocumentDbInstance:
    return DocumentDbInstance(
        db_instance_identifier=instance.get("DBInstanceIdentifier", ""),
        db_instance_arn=instance.get("DBInstanceArn", ""),
        db_instance_class=instance.get("DBInstanceClass", ""),
        engine=instance.get("Engine") or DOCDB_ENGINE,
        engine_version=instance.get("EngineVersion", ""),
        db_instance_status=instance.get("DBInstanceStatus", ""),
        db_cluster_identifier=instance.get("DBClusterIdentifier"),
        availability_zone=instance.get("AvailabilityZone"),
        endpoint=map_endpoint(instance.get("Endpoint")),
        promotion_tier=instance.get("PromotionTier"),
        publicly_accessible=instance.get("PubliclyAccessible", False),
        auto_minor_version_upgrade=instance.get("AutoMinorVersionUpgrade", False),
        instance_create_time=instance.get("InstanceCreateTime"),
        tags=tags_from_list(instance.get("TagList")),
    )


def map_snapshot(snapshot: Dict[str, Any]) -> DocumentDbSnapshot:
    return DocumentDbSnapshot(
        snapshot_identifier=snapshot.get("DBClusterSnapshotIdentifier", ""),
        snapshot_arn=snapshot.get("DBClusterSnapshotArn", ""),
        db_cluster_identifier=snapshot.get("DBClusterIdentifier", ""),
        snapshot_type=snapshot.get("SnapshotType", ""),
        status=snapshot.get("Status", ""),
        snapshot_create_time=snapshot.get("SnapshotCreateTime"),
        engine=snapshot.get("Engine") or DOCDB_ENGINE,
        engine_version=snapshot.get("EngineVersion", ""),
        storage_encrypted=snapshot.get("StorageEncrypted", False),
    )


class DocumentDbProvider(AWSResourceProvider):
    service_name = "docdb"

    @aws_operation("docdb.describe_db_clusters")
    async def list_clusters(self, account_name: str) -> List[DocumentDbCluster]:
        async with self._client(account_name) as client:
            raw = await collect_pages(
                aws_token_pages(
                    client.describe_db_clusters,
                    items_key="DBClusters",
                    request_token="Marker",
                ),
                operation_name="docdb.describe_db_clusters",
            )
        clusters = [map_cluster(c) for c in raw if is_docdb(c)]
        logger.debug("docdb_clusters_listed", account=account_name, count=len(clusters))
        return clusters

    @aws_operation("docdb.describe_db_clusters")
    async def get_cluster(
        self, account_name: str, db_cluster_identifier: str
    ) -> Optional[DocumentDbCluster]:
        async with self._client(account_name) as client:
            try:
                response = await client.describe_db_clusters(
                    DBClusterIdentifier=db_cluster_identifier
                )
            except ClientError as e:
                if cluster_not_found(e):
                    return None
                raise
        clusters = [c for c in response.get("DBClusters") or [] if is_docdb(c)]
        return map_cluster(clusters[0]) if clusters else None

    @aws_operation("docdb.describe_db_instances")
    async def list_instances(self, account_name: str) -> List[DocumentDbInstance]:
        async with self._client(account_name) as client:
            raw = await collect_pages(
                aws_token_pages(
                    client.describe_db_instances,
                    items_key="DBInstances",
                    request_token="Marker",
                ),
                operation_name="docdb.describe_db_instances",
            )
        instances = [map_instance(i) for i in raw if is_docdb(i)]
        logger.debug("docdb_instances_listed", account=account_name, count=len(instances))
        return instances

    @aws_operation("docdb.describe_db_instances")
    async def get_instance(
        self, account_name: str, db_instance_identifier: str
    ) -> Optional[DocumentDbInstance]:
        async with self._client(account_name) as client:
            try:
                response = await client.describe_db_instances(
                    DBInstanceIdentifier=db_instance_identifier
                )
            except ClientError as e:
                if instance_not_found(e):
                    return None
                raise
        instances = [i for i in response.get("DBInstances") or [] if is_docdb(i)]
        return map_instance(instances[0]) if instances else None

    @aws_operation("docdb.describe_db_cluster_parameter_groups")
    async def list_parameter_groups(self, account_name: str) -> List[DbParameterGroup]:
        async with self._client(account_name) as client:
            return await collect_pages(
                aws_token_pages(
                    client.describe_db_cluster_parameter_groups,
                    items_key="DBClusterParameterGroups",
                    request_token="Marker",
                    transform=map_cluster_parameter_group,
                ),
                operation_name="docdb.describe_db_cluster_parameter_groups",
            )

    @aws_operation("docdb.describe_db_cluster_snapshots")
    async def list_snapshots(
        self, account_name: str, db_cluster_identifier: Optional[str] = None
    ) -> List[DocumentDbSnapshot]:
        params: Dict[str, Any] = {}
        if db_cluster_identifier:
            params["DBClusterIdentifier"] = db_cluster_identifier
        async with self._client(account_name) as client:
            raw = await collect_pages(
                aws_token_pages(
                    client.describe_db_cluster_snapshots,
                    items_key="DBClusterSnapshots",
                    request_token="Marker",
                    **params,
                ),
                operation_name="docdb.describe_db_cluster_snapshots",
            )
        return [map_snapshot(s) for s in raw if is_docdb(s)]

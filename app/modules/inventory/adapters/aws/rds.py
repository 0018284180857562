from typing import Any, Dict, List, Optional

import structlog
from botocore.exceptions import ClientError

from app.modules.inventory.adapters.aws.base import AWSResourceProvider
from app.modules.inventory.schemas.common import tags_from_list
from app.modules.inventory.schemas.rds import (
    DbClusterMember,
    DbEndpoint,
    DbParameterGroup,
    RdsCluster,
    RdsInstance,
    RdsSnapshot,
    ServerlessV2Scaling,
)
from app.shared.adapters.aws_errors import aws_error_codes, aws_operation
from app.shared.adapters.aws_pagination import aws_token_pages, collect_pages

logger = structlog.get_logger()

# Older API versions report the instance fault without the "Fault" suffix.
instance_not_found = aws_error_codes("DBInstanceNotFound", "DBInstanceNotFoundFault")
cluster_not_found = aws_error_codes("DBClusterNotFoundFault")


def map_endpoint(raw: Optional[Dict[str, Any]]) -> Optional[DbEndpoint]:
    if not raw:
        return None
    return DbEndpoint(
        address=raw.get("Address", ""),
        port=raw.get("Port", 0),
        hosted_zone_id=raw.get("HostedZoneId"),
    )


def security_group_ids(groups: Optional[List[Dict[str, Any]]]) -> List[str]:
    return [g["VpcSecurityGroupId"] for g in groups or [] if g.get("VpcSecurityGroupId")]


def map_members(members: Optional[List[Dict[str, Any]]]) -> List[DbClusterMember]:
    return [
        DbClusterMember(
            db_instance_identifier=m.get("DBInstanceIdentifier", ""),
            is_cluster_writer=m.get("IsClusterWriter", False),
        )
        for m in members or []
    ]


def map_instance(instance: Dict[str, Any]) -> RdsInstance:
    parameter_groups = instance.get("DBParameterGroups") or []
    return RdsInstance(
        db_instance_identifier=instance.get("DBInstanceIdentifier", ""),
        db_instance_arn=instance.get("DBInstanceArn", ""),
        db_instance_class=instance.get("DBInstanceClass", ""),
        engine=instance.get("Engine", ""),
        engine_version=instance.get("EngineVersion", ""),
        db_instance_status=instance.get("DBInstanceStatus", ""),
        master_username=instance.get("MasterUsername"),
        allocated_storage=instance.get("AllocatedStorage", 0),
        availability_zone=instance.get("AvailabilityZone"),
        multi_az=instance.get("MultiAZ", False),
        endpoint=map_endpoint(instance.get("Endpoint")),
        storage_type=instance.get("StorageType") or "gp2",
        storage_encrypted=instance.get("StorageEncrypted", False),
        kms_key_id=instance.get("KmsKeyId"),
        publicly_accessible=instance.get("PubliclyAccessible", False),
        auto_minor_version_upgrade=instance.get("AutoMinorVersionUpgrade", False),
        db_parameter_group_name=parameter_groups[0].get("DBParameterGroupName")
        if parameter_groups
        else None,
        vpc_security_groups=security_group_ids(instance.get("VpcSecurityGroups")),
        db_subnet_group_name=(instance.get("DBSubnetGroup") or {}).get("DBSubnetGroupName"),
        backup_retention_period=instance.get("BackupRetentionPeriod", 0),
        preferred_backup_window=instance.get("PreferredBackupWindow"),
        preferred_maintenance_window=instance.get("PreferredMaintenanceWindow"),
        latest_restorable_time=instance.get("LatestRestorableTime"),
        instance_create_time=instance.get("InstanceCreateTime"),
        tags=tags_from_list(instance.get("TagList")),
    )


def map_cluster(cluster: Dict[str, Any]) -> RdsCluster:
    scaling = cluster.get("ServerlessV2ScalingConfiguration")
    return RdsCluster(
        db_cluster_identifier=cluster.get("DBClusterIdentifier", ""),
        db_cluster_arn=cluster.get("DBClusterArn", ""),
        engine=cluster.get("Engine", ""),
        engine_version=cluster.get("EngineVersion", ""),
        engine_mode=cluster.get("EngineMode"),
        status=cluster.get("Status", ""),
        master_username=cluster.get("MasterUsername"),
        allocated_storage=cluster.get("AllocatedStorage"),
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
        serverless_v2_scaling_configuration=ServerlessV2Scaling(
            min_capacity=scaling.get("MinCapacity"),
            max_capacity=scaling.get("MaxCapacity"),
        )
        if scaling
        else None,
        members=map_members(cluster.get("DBClusterMembers")),
        tags=tags_from_list(cluster.get("TagList")),
    )


def map_parameter_group(group: Dict[str, Any]) -> DbParameterGroup:
    return DbParameterGroup(
        name=group.get("DBParameterGroupName", ""),
        arn=group.get("DBParameterGroupArn", ""),
        family=group.get("DBParameterGroupFamily", ""),
        description=group.get("Description"),
    )


def map_cluster_parameter_group(group: Dict[str, Any]) -> DbParameterGroup:
    return DbParameterGroup(
        name=group.get("DBClusterParameterGroupName", ""),
        arn=group.get("DBClusterParameterGroupArn", ""),
        family=group.get("DBParameterGroupFamily", ""),
        description=group.get("Description"),
    )


def map_snapshot(snapshot: Dict[str, Any]) -> RdsSnapshot:
    return RdsSnapshot(
        snapshot_identifier=snapshot.get("DBSnapshotIdentifier", ""),
        snapshot_arn=snapshot.get("DBSnapshotArn", ""),
        db_identifier=snapshot.get("DBInstanceIdentifier", ""),
        snapshot_type=snapshot.get("SnapshotType", ""),
        status=snapshot.get("Status", ""),
        snapshot_create_time=snapshot.get("SnapshotCreateTime"),
        allocated_storage=snapshot.get("AllocatedStorage", 0),
        engine=snapshot.get("Engine", ""),
        engine_version=snapshot.get("EngineVersion", ""),
        encrypted=snapshot.get("Encrypted", False),
    )


def map_cluster_snapshot(snapshot: Dict[str, Any]) -> RdsSnapshot:
    return RdsSnapshot(
        snapshot_identifier=snapshot.get("DBClusterSnapshotIdentifier", ""),
        snapshot_arn=snapshot.get("DBClusterSnapshotArn", ""),
        db_identifier=snapshot.get("DBClusterIdentifier", ""),
        snapshot_type=snapshot.get("SnapshotType", ""),
        status=snapshot.get("Status", ""),
        snapshot_create_time=snapshot.get("SnapshotCreateTime"),
        allocated_storage=snapshot.get("AllocatedStorage", 0),
        engine=snapshot.get("Engine", ""),
        engine_version=snapshot.get("EngineVersion", ""),
        encrypted=snapshot.get("StorageEncrypted", False),
    )


class RdsProvider(AWSResourceProvider):
    service_name = "rds"

    @aws_operation("rds.describe_db_instances")
    async def list_instances(self, account_name: str) -> List[RdsInstance]:
        async with self._client(account_name) as client:
            instances = await collect_pages(
                aws_token_pages(
                    client.describe_db_instances,
                    items_key="DBInstances",
                    request_token="Marker",
                    transform=map_instance,
                ),
                operation_name="rds.describe_db_instances",
            )
        logger.debug("rds_instances_listed", account=account_name, count=len(instances))
        return instances

    @aws_operation("rds.describe_db_instances")
    async def get_instance(
        self, account_name: str, db_instance_identifier: str
    ) -> Optional[RdsInstance]:
        async with self._client(account_name) as client:
            try:
                response = await client.describe_db_instances(
                    DBInstanceIdentifier=db_instance_identifier
                )
            except ClientError as e:
                if instance_not_found(e):
                    return None
                raise
        instances = response.get("DBInstances") or []
        return map_instance(instances[0]) if instances else None

    @aws_operation("rds.describe_db_clusters")
    async def list_clusters(self, account_name: str) -> List[RdsCluster]:
        async with self._client(account_name) as client:
            clusters = await collect_pages(
                aws_token_pages(
                    client.describe_db_clusters,
                    items_key="DBClusters",
                    request_token="Marker",
                    transform=map_cluster,
                ),
                operation_name="rds.describe_db_clusters",
            )
        logger.debug("rds_clusters_listed", account=account_name, count=len(clusters))
        return clusters

    @aws_operation("rds.describe_db_clusters")
    async def get_cluster(
        self, account_name: str, db_cluster_identifier: str
    ) -> Optional[RdsCluster]:
        async with self._client(account_name) as client:
            try:
                response = await client.describe_db_clusters(
                    DBClusterIdentifier=db_cluster_identifier
                )
            except ClientError as e:
                if cluster_not_found(e):
                    return None
                raise
        clusters = response.get("DBClusters") or []
        return map_cluster(clusters[0]) if clusters else None

    @aws_operation("rds.describe_db_parameter_groups")
    async def list_parameter_groups(self, account_name: str) -> List[DbParameterGroup]:
        async with self._client(account_name) as client:
            return await collect_pages(
                aws_token_pages(
                    client.describe_db_parameter_groups,
                    items_key="DBParameterGroups",
                    request_token="Marker",
                    transform=map_parameter_group,
                ),
                operation_name="rds.describe_db_parameter_groups",
            )

    @aws_operation("rds.describe_db_cluster_parameter_groups")
    async def list_cluster_parameter_groups(
        self, account_name: str
    ) -> List[DbParameterGroup]:
        async with self._client(account_name) as client:
            return await collect_pages(
                aws_token_pages(
                    client.describe_db_cluster_parameter_groups,
                    items_key="DBClusterParameterGroups",
                    request_token="Marker",
                    transform=map_cluster_parameter_group,
                ),
                operation_name="rds.describe_db_cluster_parameter_groups",
            )

    @aws_operation("rds.describe_db_snapshots")
    async def list_snapshots(
        self, account_name: str, db_instance_identifier: Optional[str] = None
    ) -> List[RdsSnapshot]:
        params: Dict[str, Any] = {}
        if db_instance_identifier:
            params["DBInstanceIdentifier"] = db_instance_identifier
        async with self._client(account_name) as client:
            return await collect_pages(
                aws_token_pages(
                    client.describe_db_snapshots,
                    items_key="DBSnapshots",
                    request_token="Marker",
                    transform=map_snapshot,
                    **params,
                ),
                operation_name="rds.describe_db_snapshots",
            )

    @aws_operation("rds.describe_db_cluster_snapshots")
    async def list_cluster_snapshots(
        self, account_name: str, db_cluster_identifier: Optional[str] = None
    ) -> List[RdsSnapshot]:
        params: Dict[str, Any] = {}
        if db_cluster_identifier:
            params["DBClusterIdentifier"] = db_cluster_identifier
        async with self._client(account_name) as client:
            return await collect_pages(
                aws_token_pages(
                    client.describe_db_cluster_snapshots,
                    items_key="DBClusterSnapshots",
                    request_token="Marker",
                    transform=map_cluster_snapshot,
                    **params,
                ),
                operation_name="rds.describe_db_cluster_snapshots",
            )

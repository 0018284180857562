from typing import Any, Dict, List, Optional

import structlog
from botocore.exceptions import ClientError

from app.modules.inventory.adapters.aws.base import AWSResourceProvider
from app.modules.inventory.schemas.common import tags_from_list
from app.modules.inventory.schemas.efs import (
    EfsAccessPoint,
    EfsCreationInfo,
    EfsFileSystem,
    EfsLifecyclePolicy,
    EfsMountTarget,
    EfsPosixUser,
    EfsRootDirectory,
)
from app.shared.adapters.aws_errors import aws_error_codes, aws_operation
from app.shared.adapters.aws_pagination import aws_token_pages, collect_pages

logger = structlog.get_logger()

file_system_not_found = aws_error_codes("FileSystemNotFound")


def map_file_system(fs: Dict[str, Any]) -> EfsFileSystem:
    return EfsFileSystem(
        file_system_id=fs.get("FileSystemId", ""),
        file_system_arn=fs.get("FileSystemArn", ""),
        name=fs.get("Name"),
        creation_time=fs.get("CreationTime"),
        life_cycle_state=fs.get("LifeCycleState") or "unknown",
        number_of_mount_targets=fs.get("NumberOfMountTargets", 0),
        size_in_bytes=(fs.get("SizeInBytes") or {}).get("Value", 0),
        performance_mode=fs.get("PerformanceMode") or "generalPurpose",
        throughput_mode=fs.get("ThroughputMode") or "bursting",
        provisioned_throughput_in_mibps=fs.get("ProvisionedThroughputInMibps"),
        encrypted=fs.get("Encrypted", False),
        kms_key_id=fs.get("KmsKeyId"),
        tags=tags_from_list(fs.get("Tags")),
    )


def map_mount_target(mount_target: Dict[str, Any]) -> EfsMountTarget:
    return EfsMountTarget(
        mount_target_id=mount_target.get("MountTargetId", ""),
        file_system_id=mount_target.get("FileSystemId", ""),
        subnet_id=mount_target.get("SubnetId", ""),
        life_cycle_state=mount_target.get("LifeCycleState") or "unknown",
        ip_address=mount_target.get("IpAddress"),
        network_interface_id=mount_target.get("NetworkInterfaceId"),
        availability_zone_id=mount_target.get("AvailabilityZoneId"),
        availability_zone_name=mount_target.get("AvailabilityZoneName"),
        vpc_id=mount_target.get("VpcId"),
    )


def map_lifecycle_policy(policy: Dict[str, Any]) -> EfsLifecyclePolicy:
    return EfsLifecyclePolicy(
        transition_to_ia=policy.get("TransitionToIA"),
        transition_to_primary_storage_class=policy.get("TransitionToPrimaryStorageClass"),
        transition_to_archive=policy.get("TransitionToArchive"),
    )


def map_access_point(access_point: Dict[str, Any]) -> EfsAccessPoint:
    root_directory = None
    raw_root = access_point.get("RootDirectory")
    if raw_root:
        raw_info = raw_root.get("CreationInfo")
        root_directory = EfsRootDirectory(
            path=raw_root.get("Path"),
            creation_info=EfsCreationInfo(
                owner_uid=raw_info.get("OwnerUid", 0),
                owner_gid=raw_info.get("OwnerGid", 0),
                permissions=raw_info.get("Permissions") or "0755",
            )
            if raw_info
            else None,
        )

    posix_user = None
    raw_user = access_point.get("PosixUser")
    if raw_user:
        posix_user = EfsPosixUser(
            uid=raw_user.get("Uid", 0),
            gid=raw_user.get("Gid", 0),
            secondary_gids=raw_user.get("SecondaryGids"),
        )

    return EfsAccessPoint(
        access_point_id=access_point.get("AccessPointId", ""),
        access_point_arn=access_point.get("AccessPointArn", ""),
        file_system_id=access_point.get("FileSystemId", ""),
        name=access_point.get("Name"),
        life_cycle_state=access_point.get("LifeCycleState") or "unknown",
        root_directory=root_directory,
        posix_user=posix_user,
        tags=tags_from_list(access_point.get("Tags")),
    )


class EfsProvider(AWSResourceProvider):
    service_name = "efs"

    @aws_operation("efs.describe_file_systems")
    async def list_file_systems(self, account_name: str) -> List[EfsFileSystem]:
        async with self._client(account_name) as client:
            file_systems = await collect_pages(
                aws_token_pages(
                    client.describe_file_systems,
                    items_key="FileSystems",
                    request_token="Marker",
                    response_token="NextMarker",
                    transform=map_file_system,
                ),
                operation_name="efs.describe_file_systems",
            )
        logger.debug("efs_file_systems_listed", account=account_name, count=len(file_systems))
        return file_systems

    @aws_operation("efs.describe_file_systems")
    async def get_file_system(
        self, account_name: str, file_system_id: str
    ) -> Optional[EfsFileSystem]:
        async with self._client(account_name) as client:
            try:
                response = await client.describe_file_systems(
                    FileSystemId=file_system_id
                )
            except ClientError as e:
                if file_system_not_found(e):
                    return None
                raise
        file_systems = response.get("FileSystems") or []
        if not file_systems:
            return None
        return map_file_system(file_systems[0])

    @aws_operation("efs.describe_mount_targets")
    async def list_mount_targets(
        self, account_name: str, file_system_id: str
    ) -> List[EfsMountTarget]:
        async with self._client(account_name) as client:
            return await collect_pages(
                aws_token_pages(
                    client.describe_mount_targets,
                    items_key="MountTargets",
                    request_token="Marker",
                    response_token="NextMarker",
                    transform=map_mount_target,
                    FileSystemId=file_system_id,
                ),
                operation_name="efs.describe_mount_targets",
            )

    @aws_operation("efs.describe_lifecycle_configuration")
    async def get_lifecycle_configuration(
        self, account_name: str, file_system_id: str
    ) -> List[EfsLifecyclePolicy]:
        async with self._client(account_name) as client:
            try:
                response = await client.describe_lifecycle_configuration(
                    FileSystemId=file_system_id
                )
            except ClientError as e:
                if file_system_not_found(e):
                    return []
                raise
        return [map_lifecycle_policy(p) for p in response.get("LifecyclePolicies") or []]

    @aws_operation("efs.describe_access_points")
    async def list_access_points(
        self, account_name: str, file_system_id: Optional[str] = None
    ) -> List[EfsAccessPoint]:
        params: Dict[str, Any] = {}
        if file_system_id:
            params["FileSystemId"] = file_system_id
        async with self._client(account_name) as client:
            return await collect_pages(
                aws_token_pages(
                    client.describe_access_points,
                    items_key="AccessPoints",
                    request_token="NextToken",
                    transform=map_access_point,
                    **params,
                ),
                operation_name="efs.describe_access_points",
            )

from typing import Any, Dict, List, Optional

from botocore.exceptions import ClientError

from app.modules.inventory.adapters.aws.base import AWSResourceProvider
from app.modules.inventory.schemas.common import name_from_arn
from app.modules.inventory.schemas.ecs import (
    EcsCluster,
    EcsContainer,
    EcsDeployment,
    EcsPortMapping,
    EcsService,
    EcsTaskDefinition,
)
from app.shared.adapters.aws_errors import aws_error_codes, aws_operation
from app.shared.adapters.aws_pagination import aws_token_pages, collect_pages

# DescribeTaskDefinition reports unknown families/revisions as ClientException.
task_definition_not_found = aws_error_codes("ClientException")


def map_cluster(arn: str) -> EcsCluster:
    return EcsCluster(cluster_arn=arn, cluster_name=name_from_arn(arn))


def map_deployment(deployment: Dict[str, Any]) -> EcsDeployment:
    return EcsDeployment(
        id=deployment.get("id", ""),
        status=deployment.get("status", "UNKNOWN"),
        task_definition=deployment.get("taskDefinition", ""),
        desired_count=deployment.get("desiredCount", 0),
        running_count=deployment.get("runningCount", 0),
        pending_count=deployment.get("pendingCount", 0),
        created_at=deployment.get("createdAt"),
        updated_at=deployment.get("updatedAt"),
        rollout_state=deployment.get("rolloutState"),
    )


def map_service(service: Dict[str, Any]) -> EcsService:
    deployments = service.get("deployments")
    return EcsService(
        service_name=service.get("serviceName", ""),
        service_arn=service.get("serviceArn", ""),
        cluster_arn=service.get("clusterArn", ""),
        status=service.get("status", "UNKNOWN"),
        desired_count=service.get("desiredCount", 0),
        running_count=service.get("runningCount", 0),
        pending_count=service.get("pendingCount", 0),
        task_definition=service.get("taskDefinition", ""),
        launch_type=service.get("launchType"),
        platform_version=service.get("platformVersion"),
        deployments=[map_deployment(d) for d in deployments]
        if deployments is not None
        else None,
    )


def map_container(container: Dict[str, Any]) -> EcsContainer:
    environment = {
        entry["name"]: entry["value"]
        for entry in container.get("environment") or []
        if entry.get("name") and entry.get("value")
    }
    port_mappings = container.get("portMappings")
    return EcsContainer(
        name=container.get("name", ""),
        image=container.get("image", ""),
        cpu=container.get("cpu"),
        memory=container.get("memory"),
        memory_reservation=container.get("memoryReservation"),
        essential=container.get("essential", True),
        port_mappings=[
            EcsPortMapping(
                container_port=p.get("containerPort", 0),
                host_port=p.get("hostPort"),
                protocol=p.get("protocol") or "tcp",
            )
            for p in port_mappings
        ]
        if port_mappings is not None
        else None,
        environment=environment or None,
    )


def map_task_definition(task_definition: Dict[str, Any]) -> EcsTaskDefinition:
    return EcsTaskDefinition(
        task_definition_arn=task_definition.get("taskDefinitionArn", ""),
        family=task_definition.get("family", ""),
        revision=task_definition.get("revision", 0),
        status=task_definition.get("status", "UNKNOWN"),
        cpu=task_definition.get("cpu"),
        memory=task_definition.get("memory"),
        network_mode=task_definition.get("networkMode"),
        containers=[
            map_container(c) for c in task_definition.get("containerDefinitions") or []
        ],
    )


class EcsProvider(AWSResourceProvider):
    service_name = "ecs"

    @aws_operation("ecs.list_clusters")
    async def list_clusters(self, account_name: str) -> List[EcsCluster]:
        async with self._client(account_name) as client:
            return await collect_pages(
                aws_token_pages(
                    client.list_clusters,
                    items_key="clusterArns",
                    request_token="nextToken",
                    transform=map_cluster,
                ),
                operation_name="ecs.list_clusters",
            )

    @aws_operation("ecs.list_services")
    async def list_services(self, account_name: str, cluster: str) -> List[str]:
        async with self._client(account_name) as client:
            return await collect_pages(
                aws_token_pages(
                    client.list_services,
                    items_key="serviceArns",
                    request_token="nextToken",
                    transform=name_from_arn,
                    cluster=cluster,
                ),
                operation_name="ecs.list_services",
            )

    @aws_operation("ecs.describe_services")
    async def get_service(
        self, account_name: str, cluster: str, service_name: str
    ) -> Optional[EcsService]:
        async with self._client(account_name) as client:
            response = await client.describe_services(
                cluster=cluster, services=[service_name]
            )
        services = response.get("services") or []
        if not services:
            return None
        return map_service(services[0])

    @aws_operation("ecs.describe_task_definition")
    async def get_task_definition(
        self, account_name: str, task_definition: str
    ) -> Optional[EcsTaskDefinition]:
        async with self._client(account_name) as client:
            try:
                response = await client.describe_task_definition(
                    taskDefinition=task_definition
                )
            except ClientError as e:
                if task_definition_not_found(e):
                    return None
                raise
        raw = response.get("taskDefinition")
        if not raw:
            return None
        return map_task_definition(raw)

from typing import Any, Dict, List, Optional

import structlog
from botocore.exceptions import ClientError

from app.modules.inventory.adapters.aws.base import AWSResourceProvider
from app.modules.inventory.schemas.apigateway import (
    CorsConfiguration,
    EndpointConfiguration,
    HttpApi,
    HttpApiRoute,
    HttpApiStage,
    RestApi,
    RestApiDeployment,
    RestApiResource,
    RestApiStage,
)
from app.modules.inventory.schemas.common import tags_from_map
from app.shared.adapters.aws_errors import aws_error_codes, aws_operation
from app.shared.adapters.aws_pagination import aws_token_pages, collect_pages
from app.shared.adapters.aws_utils import AccountClientContext

logger = structlog.get_logger()

api_not_found = aws_error_codes("NotFoundException")


def map_rest_api(api: Dict[str, Any]) -> RestApi:
    endpoint = api.get("endpointConfiguration")
    return RestApi(
        id=api.get("id", ""),
        name=api.get("name", ""),
        description=api.get("description"),
        created_date=api.get("createdDate"),
        version=api.get("version"),
        endpoint_configuration=EndpointConfiguration(
            types=endpoint.get("types") or [],
            vpc_endpoint_ids=endpoint.get("vpcEndpointIds"),
        )
        if endpoint
        else None,
        policy=api.get("policy"),
        tags=tags_from_map(api.get("tags")),
    )


def map_rest_stage(stage: Dict[str, Any]) -> RestApiStage:
    return RestApiStage(
        stage_name=stage.get("stageName", ""),
        deployment_id=stage.get("deploymentId"),
        description=stage.get("description"),
        created_date=stage.get("createdDate"),
        last_updated_date=stage.get("lastUpdatedDate"),
        cache_cluster_enabled=stage.get("cacheClusterEnabled", False),
        cache_cluster_size=stage.get("cacheClusterSize"),
        cache_cluster_status=stage.get("cacheClusterStatus"),
        tracing_enabled=stage.get("tracingEnabled", False),
        tags=tags_from_map(stage.get("tags")),
    )


def map_deployment(deployment: Dict[str, Any]) -> RestApiDeployment:
    return RestApiDeployment(
        id=deployment.get("id", ""),
        description=deployment.get("description"),
        created_date=deployment.get("createdDate"),
    )


def map_resource(resource: Dict[str, Any]) -> RestApiResource:
    return RestApiResource(
        id=resource.get("id", ""),
        parent_id=resource.get("parentId"),
        path=resource.get("path", ""),
        methods=list(resource.get("resourceMethods") or {}),
    )


def map_http_api(api: Dict[str, Any]) -> HttpApi:
    cors = api.get("CorsConfiguration")
    return HttpApi(
        api_id=api.get("ApiId", ""),
        name=api.get("Name", ""),
        description=api.get("Description"),
        protocol_type=api.get("ProtocolType", ""),
        api_endpoint=api.get("ApiEndpoint"),
        created_date=api.get("CreatedDate"),
        version=api.get("Version"),
        cors_configuration=CorsConfiguration(
            allow_origins=cors.get("AllowOrigins"),
            allow_methods=cors.get("AllowMethods"),
            allow_headers=cors.get("AllowHeaders"),
            max_age=cors.get("MaxAge"),
        )
        if cors
        else None,
        tags=tags_from_map(api.get("Tags")),
    )


def map_http_stage(stage: Dict[str, Any]) -> HttpApiStage:
    return HttpApiStage(
        stage_name=stage.get("StageName", ""),
        deployment_id=stage.get("DeploymentId"),
        description=stage.get("Description"),
        created_date=stage.get("CreatedDate"),
        last_updated_date=stage.get("LastUpdatedDate"),
        auto_deploy=stage.get("AutoDeploy", False),
        tags=tags_from_map(stage.get("Tags")),
    )


def map_http_route(route: Dict[str, Any]) -> HttpApiRoute:
    return HttpApiRoute(
        route_id=route.get("RouteId", ""),
        route_key=route.get("RouteKey", ""),
        target=route.get("Target"),
        authorization_type=route.get("AuthorizationType"),
        authorizer_id=route.get("AuthorizerId"),
    )


class ApiGatewayProvider(AWSResourceProvider):
    """
    REST APIs live behind the `apigateway` service and paginate with
    `position`; HTTP/WebSocket APIs live behind `apigatewayv2` with `NextToken`.
    """

    service_name = "apigateway"
    v2_service_name = "apigatewayv2"

    def _v2_client(self, account_name: str) -> AccountClientContext:
        return self._clients.client_for(account_name, self.v2_service_name)

    # REST APIs (v1)

    @aws_operation("apigateway.get_rest_apis")
    async def list_rest_apis(self, account_name: str) -> List[RestApi]:
        async with self._client(account_name) as client:
            apis = await collect_pages(
                aws_token_pages(
                    client.get_rest_apis,
                    items_key="items",
                    request_token="position",
                    transform=map_rest_api,
                ),
                operation_name="apigateway.get_rest_apis",
            )
        logger.debug("rest_apis_listed", account=account_name, count=len(apis))
        return apis

    @aws_operation("apigateway.get_rest_api")
    async def get_rest_api(self, account_name: str, rest_api_id: str) -> Optional[RestApi]:
        async with self._client(account_name) as client:
            try:
                response = await client.get_rest_api(restApiId=rest_api_id)
            except ClientError as e:
                if api_not_found(e):
                    return None
                raise
        return map_rest_api(response)

    @aws_operation("apigateway.get_stages")
    async def get_rest_api_stages(
        self, account_name: str, rest_api_id: str
    ) -> List[RestApiStage]:
        # GetStages is not paginated.
        async with self._client(account_name) as client:
            response = await client.get_stages(restApiId=rest_api_id)
        return [map_rest_stage(s) for s in response.get("item") or []]

    @aws_operation("apigateway.get_deployments")
    async def get_rest_api_deployments(
        self, account_name: str, rest_api_id: str
    ) -> List[RestApiDeployment]:
        async with self._client(account_name) as client:
            return await collect_pages(
                aws_token_pages(
                    client.get_deployments,
                    items_key="items",
                    request_token="position",
                    transform=map_deployment,
                    restApiId=rest_api_id,
                ),
                operation_name="apigateway.get_deployments",
            )

    @aws_operation("apigateway.get_resources")
    async def get_rest_api_resources(
        self, account_name: str, rest_api_id: str
    ) -> List[RestApiResource]:
        async with self._client(account_name) as client:
            return await collect_pages(
                aws_token_pages(
                    client.get_resources,
                    items_key="items",
                    request_token="position",
                    transform=map_resource,
                    restApiId=rest_api_id,
                ),
                operation_name="apigateway.get_resources",
            )

    # HTTP APIs (v2)

    @aws_operation("apigatewayv2.get_apis")
    async def list_http_apis(self, account_name: str) -> List[HttpApi]:
        async with self._v2_client(account_name) as client:
            apis = await collect_pages(
                aws_token_pages(
                    client.get_apis,
                    items_key="Items",
                    request_token="NextToken",
                    transform=map_http_api,
                ),
                operation_name="apigatewayv2.get_apis",
            )
        logger.debug("http_apis_listed", account=account_name, count=len(apis))
        return apis

    @aws_operation("apigatewayv2.get_api")
    async def get_http_api(self, account_name: str, api_id: str) -> Optional[HttpApi]:
        async with self._v2_client(account_name) as client:
            try:
                response = await client.get_api(ApiId=api_id)
            except ClientError as e:
                if api_not_found(e):
                    return None
                raise
        return map_http_api(response)

    @aws_operation("apigatewayv2.get_stages")
    async def get_http_api_stages(
        self, account_name: str, api_id: str
    ) -> List[HttpApiStage]:
        async with self._v2_client(account_name) as client:
            return await collect_pages(
                aws_token_pages(
                    client.get_stages,
                    items_key="Items",
                    request_token="NextToken",
                    transform=map_http_stage,
                    ApiId=api_id,
                ),
                operation_name="apigatewayv2.get_stages",
            )

    @aws_operation("apigatewayv2.get_routes")
    async def get_http_api_routes(
        self, account_name: str, api_id: str
    ) -> List[HttpApiRoute]:
        async with self._v2_client(account_name) as client:
            return await collect_pages(
                aws_token_pages(
                    client.get_routes,
                    items_key="Items",
                    request_token="NextToken",
                    transform=map_http_route,
                    ApiId=api_id,
                ),
                operation_name="apigatewayv2.get_routes",
            )

from typing import Any, Dict, List, Optional

import structlog
from botocore.exceptions import ClientError

from app.modules.inventory.adapters.aws.base import AWSResourceProvider
from app.modules.inventory.schemas.common import tags_from_map
from app.modules.inventory.schemas.lambda_functions import LambdaFunction, LambdaVersion
from app.shared.adapters.aws_errors import aws_error_codes, aws_operation
from app.shared.adapters.aws_pagination import aws_token_pages, collect_pages

logger = structlog.get_logger()

function_not_found = aws_error_codes("ResourceNotFoundException")


def map_function(fn: Dict[str, Any]) -> LambdaFunction:
    return LambdaFunction(
        function_name=fn.get("FunctionName", ""),
        function_arn=fn.get("FunctionArn", ""),
        runtime=fn.get("Runtime"),
        handler=fn.get("Handler"),
        code_size=fn.get("CodeSize", 0),
        description=fn.get("Description"),
        timeout=fn.get("Timeout"),
        memory_size=fn.get("MemorySize"),
        last_modified=fn.get("LastModified"),
        version=fn.get("Version") or "$LATEST",
        environment=(fn.get("Environment") or {}).get("Variables"),
    )


def map_version(version: Dict[str, Any]) -> LambdaVersion:
    return LambdaVersion(
        version=version.get("Version") or "$LATEST",
        description=version.get("Description"),
        last_modified=version.get("LastModified"),
    )


class LambdaProvider(AWSResourceProvider):
    service_name = "lambda"

    @aws_operation("lambda.list_functions")
    async def list_functions(self, account_name: str) -> List[LambdaFunction]:
        async with self._client(account_name) as client:
            functions = await collect_pages(
                aws_token_pages(
                    client.list_functions,
                    items_key="Functions",
                    request_token="Marker",
                    response_token="NextMarker",
                    transform=map_function,
                ),
                operation_name="lambda.list_functions",
            )
        logger.debug("lambda_functions_listed", account=account_name, count=len(functions))
        return functions

    @aws_operation("lambda.get_function")
    async def get_function(
        self, account_name: str, function_name: str
    ) -> Optional[LambdaFunction]:
        async with self._client(account_name) as client:
            try:
                response = await client.get_function(FunctionName=function_name)
            except ClientError as e:
                if function_not_found(e):
                    return None
                raise
        configuration = response.get("Configuration")
        if not configuration:
            return None
        function = map_function(configuration)
        function.tags = tags_from_map(response.get("Tags"))
        return function

    @aws_operation("lambda.list_versions_by_function")
    async def list_versions(
        self, account_name: str, function_name: str
    ) -> List[LambdaVersion]:
        async with self._client(account_name) as client:
            return await collect_pages(
                aws_token_pages(
                    client.list_versions_by_function,
                    items_key="Versions",
                    request_token="Marker",
                    response_token="NextMarker",
                    transform=map_version,
                    FunctionName=function_name,
                ),
                operation_name="lambda.list_versions_by_function",
            )

    @aws_operation("lambda.get_function_configuration")
    async def get_function_configuration(
        self, account_name: str, function_name: str
    ) -> Optional[LambdaFunction]:
        async with self._client(account_name) as client:
            try:
                response = await client.get_function_configuration(
                    FunctionName=function_name
                )
            except ClientError as e:
                if function_not_found(e):
                    return None
                raise
        return map_function(response)

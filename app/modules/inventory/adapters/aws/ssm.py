from typing import Any, Dict, List, Optional

import structlog
from botocore.exceptions import ClientError

from app.modules.inventory.adapters.aws.base import AWSResourceProvider
from app.modules.inventory.schemas.ssm import MASKED_VALUE, SsmParameter
from app.shared.adapters.aws_errors import aws_error_codes, aws_operation
from app.shared.adapters.aws_pagination import aws_token_pages, collect_pages

logger = structlog.get_logger()

parameter_not_found = aws_error_codes("ParameterNotFound")


def map_parameter(parameter: Dict[str, Any], with_decryption: bool) -> SsmParameter:
    parameter_type = parameter.get("Type") or "String"
    value = parameter.get("Value", "")
    if parameter_type == "SecureString" and not with_decryption:
        value = MASKED_VALUE
    return SsmParameter(
        name=parameter.get("Name", ""),
        type=parameter_type,
        value=value,
        version=parameter.get("Version", 0),
        last_modified_date=parameter.get("LastModifiedDate"),
        arn=parameter.get("ARN"),
        data_type=parameter.get("DataType"),
    )


class SsmProvider(AWSResourceProvider):
    service_name = "ssm"

    @aws_operation("ssm.get_parameter")
    async def get_parameter(
        self, account_name: str, name: str, with_decryption: bool = False
    ) -> Optional[SsmParameter]:
        async with self._client(account_name) as client:
            try:
                response = await client.get_parameter(
                    Name=name, WithDecryption=with_decryption
                )
            except ClientError as e:
                if parameter_not_found(e):
                    return None
                raise
        parameter = response.get("Parameter")
        if not parameter:
            return None
        return map_parameter(parameter, with_decryption)

    @aws_operation("ssm.get_parameters_by_path")
    async def get_parameters_by_path(
        self,
        account_name: str,
        path: str,
        recursive: bool = True,
        with_decryption: bool = False,
    ) -> List[SsmParameter]:
        async with self._client(account_name) as client:
            parameters = await collect_pages(
                aws_token_pages(
                    client.get_parameters_by_path,
                    items_key="Parameters",
                    request_token="NextToken",
                    transform=lambda raw: map_parameter(raw, with_decryption),
                    Path=path,
                    Recursive=recursive,
                    WithDecryption=with_decryption,
                ),
                operation_name="ssm.get_parameters_by_path",
            )
        logger.debug("ssm_parameters_listed", path=path, count=len(parameters))
        return parameters

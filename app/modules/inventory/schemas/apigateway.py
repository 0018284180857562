from datetime import datetime
from typing import Dict, List, Optional

from pydantic import Field

from app.modules.inventory.schemas.common import InventoryModel


class EndpointConfiguration(InventoryModel):
    types: List[str] = Field(default_factory=list)
    vpc_endpoint_ids: Optional[List[str]] = None


class RestApi(InventoryModel):
    id: str
    name: str = ""
    description: Optional[str] = None
    created_date: Optional[datetime] = None
    version: Optional[str] = None
    endpoint_configuration: Optional[EndpointConfiguration] = None
    policy: Optional[str] = None
    tags: Optional[Dict[str, str]] = None


class RestApiStage(InventoryModel):
    stage_name: str
    deployment_id: Optional[str] = None
    description: Optional[str] = None
    created_date: Optional[datetime] = None
    last_updated_date: Optional[datetime] = None
    cache_cluster_enabled: bool = False
    cache_cluster_size: Optional[str] = None
    cache_cluster_status: Optional[str] = None
    tracing_enabled: bool = False
    tags: Optional[Dict[str, str]] = None


class RestApiDeployment(InventoryModel):
    id: str
    description: Optional[str] = None
    created_date: Optional[datetime] = None


class RestApiResource(InventoryModel):
    id: str
    parent_id: Optional[str] = None
    path: str = ""
    methods: List[str] = Field(default_factory=list)


class CorsConfiguration(InventoryModel):
    allow_origins: Optional[List[str]] = None
    allow_methods: Optional[List[str]] = None
    allow_headers: Optional[List[str]] = None
    max_age: Optional[int] = None


class HttpApi(InventoryModel):
    api_id: str
    name: str = ""
    description: Optional[str] = None
    protocol_type: str = ""
    api_endpoint: Optional[str] = None
    created_date: Optional[datetime] = None
    version: Optional[str] = None
    cors_configuration: Optional[CorsConfiguration] = None
    tags: Optional[Dict[str, str]] = None


class HttpApiStage(InventoryModel):
    stage_name: str
    deployment_id: Optional[str] = None
    description: Optional[str] = None
    created_date: Optional[datetime] = None
    last_updated_date: Optional[datetime] = None
    auto_deploy: bool = False
    tags: Optional[Dict[str, str]] = None


class HttpApiRoute(InventoryModel):
    route_id: str
    route_key: str = ""
    target: Optional[str] = None
    authorization_type: Optional[str] = None
    authorizer_id: Optional[str] = None

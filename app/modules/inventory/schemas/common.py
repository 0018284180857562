"""
Shared building blocks for normalized inventory entities.

Entities serialize with camelCase keys and omit unset optional fields.
Empty tag sets are always represented as an absent field, never as {}.
"""

from typing import Any, Dict, Iterable, Mapping, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class InventoryModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def tags_from_list(
    tag_list: Optional[Iterable[Mapping[str, Any]]],
    key_field: str = "Key",
    value_field: str = "Value",
) -> Optional[Dict[str, str]]:
    """Convert AWS `[{Key, Value}]` tag lists into a map; None when empty."""
    tags: Dict[str, str] = {}
    for tag in tag_list or []:
        key = tag.get(key_field)
        value = tag.get(value_field)
        if key and value:
            tags[key] = value
    return tags or None


def tags_from_map(mapping: Optional[Mapping[str, str]]) -> Optional[Dict[str, str]]:
    if not mapping:
        return None
    return dict(mapping)


def name_from_arn(arn: str) -> str:
    return arn.rsplit("/", 1)[-1] or arn


class AccountSummary(InventoryModel):
    name: str
    account_id: str
    region: str

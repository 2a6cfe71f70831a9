"""inspect_object: discover entity types and their properties."""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

from targetprocess_mcp.tools.base import TargetProcessTool


class InspectAction(str, Enum):
    LIST_TYPES = "list_types"
    GET_PROPERTIES = "get_properties"
    GET_PROPERTY_DETAILS = "get_property_details"


class InspectObjectInput(BaseModel):
    """Arguments for ``inspect_object``."""

    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    action: InspectAction
    entity_type: str | None = Field(default=None, alias="entityType")
    property_name: str | None = Field(default=None, alias="propertyName")

    @model_validator(mode="after")
    def _check_targets(self) -> "InspectObjectInput":
        if self.action is not InspectAction.LIST_TYPES and not self.entity_type:
            msg = f"entityType is required for {self.action.value}"
            raise ValueError(msg)
        if self.action is InspectAction.GET_PROPERTY_DETAILS and not self.property_name:
            msg = "propertyName is required for get_property_details"
            raise ValueError(msg)
        return self


def _properties(metadata: dict[str, Any]) -> dict[str, Any]:
    """Flatten the ``ResourceMetadataPropertiesDescription`` sections of a meta response."""
    description = metadata.get("ResourceMetadataPropertiesDescription") or {}
    properties: dict[str, Any] = {}
    for section in description.values():
        for item in (section or {}).get("Items", []):
            if item.get("Name"):
                properties[item["Name"]] = item
    return properties


class InspectObjectTool(TargetProcessTool):
    name = "inspect_object"
    description = (
        "Inspect the Target Process schema: list entity types, list the properties "
        "of an entity type, or describe a single property."
    )
    input_model = InspectObjectInput

    async def run(self, params: InspectObjectInput) -> Any:
        if params.action is InspectAction.LIST_TYPES:
            return await self.service.get_valid_entity_types()

        metadata = await self.service.get_entity_metadata(params.entity_type)
        properties = _properties(metadata or {})

        if params.action is InspectAction.GET_PROPERTIES:
            return {
                "entityType": params.entity_type,
                "description": (metadata or {}).get("Description"),
                "properties": sorted(properties),
            }

        details = properties.get(params.property_name)
        if details is None:
            msg = f"Property '{params.property_name}' not found on {params.entity_type}"
            raise LookupError(msg)
        return details

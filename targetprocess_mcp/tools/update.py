"""update_entity: change fields of an existing entity."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

from targetprocess_mcp.tools.base import TargetProcessTool
from targetprocess_mcp.tools.entity import EntityRef


class UpdateFields(BaseModel):
    """Fields that can be changed by ``update_entity``."""

    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    name: str | None = Field(default=None, min_length=1)
    description: str | None = None
    status: EntityRef | None = Field(default=None, description="Target entity state")
    assigned_user: EntityRef | None = Field(default=None, alias="assignedUser")

    @model_validator(mode="after")
    def _require_change(self) -> "UpdateFields":
        # Explicit nulls do not count as changes
        if not self.to_payload():
            msg = "at least one field must be provided"
            raise ValueError(msg)
        return self

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {}
        if self.name is not None:
            payload["Name"] = self.name
        if self.description is not None:
            payload["Description"] = self.description
        if self.status is not None:
            payload["EntityState"] = {"Id": self.status.id}
        if self.assigned_user is not None:
            payload["AssignedUser"] = {"Id": self.assigned_user.id}
        return payload


class UpdateEntityInput(BaseModel):
    """Arguments for ``update_entity``."""

    type: str = Field(..., min_length=1, description="Entity type")
    id: int = Field(..., gt=0, description="Entity id")
    fields: UpdateFields


class UpdateEntityTool(TargetProcessTool):
    name = "update_entity"
    description = "Update name, description, state or assignee of a Target Process entity."
    input_model = UpdateEntityInput

    async def run(self, params: UpdateEntityInput) -> Any:
        return await self.service.update_entity(params.type, params.id, params.fields.to_payload())

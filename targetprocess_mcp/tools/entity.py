"""get_entity and create_entity tools."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from targetprocess_mcp.tools.base import TargetProcessTool


class EntityRef(BaseModel):
    """Reference to another entity by id."""

    id: int = Field(..., gt=0)


class GetEntityInput(BaseModel):
    """Arguments for ``get_entity``."""

    model_config = ConfigDict(str_strip_whitespace=True)

    # General resolves any entity by id
    type: str = Field(default="General", min_length=1, description="Entity type")
    id: int = Field(..., gt=0, description="Entity id")
    include: list[str] | None = Field(default=None, description="Related data to include")


class CreateEntityInput(BaseModel):
    """Arguments for ``create_entity``."""

    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    type: str = Field(..., min_length=1, description="Entity type to create")
    name: str = Field(..., min_length=1, description="Entity name")
    description: str | None = Field(default=None, description="Entity description")
    project: EntityRef = Field(..., description="Project the entity belongs to")
    team: EntityRef | None = Field(default=None, description="Team to assign")
    assigned_user: EntityRef | None = Field(
        default=None, alias="assignedUser", description="User to assign"
    )

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"Name": self.name, "Project": {"Id": self.project.id}}
        if self.description is not None:
            payload["Description"] = self.description
        if self.team is not None:
            payload["Team"] = {"Id": self.team.id}
        if self.assigned_user is not None:
            payload["AssignedUser"] = {"Id": self.assigned_user.id}
        return payload


class GetEntityTool(TargetProcessTool):
    name = "get_entity"
    description = "Get a single Target Process entity by id, optionally with related data."
    input_model = GetEntityInput

    async def run(self, params: GetEntityInput) -> Any:
        return await self.service.get_entity(params.type, params.id, include=params.include)


class CreateEntityTool(TargetProcessTool):
    name = "create_entity"
    description = "Create a Target Process entity (UserStory, Bug, Task, ...) in a project."
    input_model = CreateEntityInput

    async def run(self, params: CreateEntityInput) -> Any:
        return await self.service.create_entity(params.type, params.to_payload())

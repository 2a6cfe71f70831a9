"""search_entities: query entities with a Targetprocess ``where`` clause."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from targetprocess_mcp.tools.base import TargetProcessTool


class SearchEntitiesInput(BaseModel):
    """Arguments for ``search_entities``."""

    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    type: str = Field(..., min_length=1, description="Entity type, e.g. UserStory, Bug, Task")
    where: str | None = Field(
        default=None,
        description="Filter expression, e.g. (EntityState.Name eq 'Open') and (Project.Id eq 12)",
    )
    include: list[str] | None = Field(
        default=None, description="Related data to include, e.g. ['Project', 'AssignedUser']"
    )
    take: int = Field(default=100, ge=1, le=1000, description="Maximum number of results")
    order_by: list[str] | None = Field(
        default=None,
        alias="orderBy",
        description="Sort expressions, e.g. ['CreateDate desc']",
    )


class SearchTool(TargetProcessTool):
    name = "search_entities"
    description = (
        "Search Target Process entities (UserStory, Bug, Task, Feature, ...) "
        "with an optional where clause, includes, sorting and result limit."
    )
    input_model = SearchEntitiesInput

    async def run(self, params: SearchEntitiesInput) -> Any:
        return await self.service.search_entities(
            params.type,
            where=params.where,
            include=params.include,
            take=params.take,
            order_by=params.order_by,
        )

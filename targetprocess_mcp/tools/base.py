"""
Base class for Target Process tools.

A tool is a thin adapter between MCP arguments and one service call:

    class GetEntityTool(TargetProcessTool):
        name = "get_entity"
        description = "Get a single entity by id"
        input_model = GetEntityInput

        async def run(self, params: GetEntityInput) -> Any:
            return await self.service.get_entity(params.type, params.id)

The descriptor is built from the class alone (``definition()``), so discovery
never needs a service. Instances hold nothing but the shared service.
"""

import json
import logging
from abc import ABC, abstractmethod
from typing import Any, ClassVar, Protocol

from mcp.types import Tool
from pydantic import BaseModel, ValidationError

from targetprocess_mcp.errors import ToolInputError

logger = logging.getLogger(__name__)


class EntityService(Protocol):
    """Backend operations the tools rely on (implemented by TargetProcessService)."""

    async def search_entities(
        self,
        entity_type: str,
        where: str | None = None,
        include: list[str] | None = None,
        take: int = 100,
        order_by: list[str] | None = None,
    ) -> list[dict[str, Any]]: ...

    async def get_entity(
        self, entity_type: str, entity_id: int, include: list[str] | None = None
    ) -> dict[str, Any]: ...

    async def create_entity(self, entity_type: str, data: dict[str, Any]) -> dict[str, Any]: ...

    async def update_entity(
        self, entity_type: str, entity_id: int, data: dict[str, Any]
    ) -> dict[str, Any]: ...

    async def get_valid_entity_types(self) -> list[str]: ...

    async def get_entity_metadata(self, entity_type: str) -> dict[str, Any]: ...


def text_content(data: Any) -> dict[str, Any]:
    """Wrap a JSON-serializable result as MCP text content."""
    return {"content": [{"type": "text", "text": json.dumps(data, indent=2, default=str)}]}


class TargetProcessTool(ABC):
    """Base class for tools exposed by the server."""

    # Subclasses must set these
    name: ClassVar[str] = ""
    description: ClassVar[str] = ""
    input_model: ClassVar[type[BaseModel]]

    def __init__(self, service: EntityService) -> None:
        self.service = service

    @classmethod
    def definition(cls) -> Tool:
        """Return the tool descriptor for discovery."""
        return Tool(
            name=cls.name,
            description=cls.description,
            inputSchema=cls.input_model.model_json_schema(),
        )

    def parse_arguments(self, arguments: dict[str, Any] | None) -> BaseModel:
        """Validate raw arguments against ``input_model``.

        Raises:
            ToolInputError: If arguments do not match the schema
        """
        try:
            return self.input_model.model_validate(arguments or {})
        except ValidationError as e:
            errors = [
                {"loc": ".".join(str(p) for p in err["loc"]), "msg": err["msg"]}
                for err in e.errors()
            ]
            summary = "; ".join(f"{err['loc'] or '<root>'}: {err['msg']}" for err in errors)
            raise ToolInputError(self.name, summary, errors) from e

    async def execute(self, arguments: dict[str, Any] | None) -> dict[str, Any]:
        """Validate arguments, run the tool and wrap its result as MCP content."""
        params = self.parse_arguments(arguments)
        logger.debug("Executing %s with %s", self.name, params)
        result = await self.run(params)
        return text_content(result)

    @abstractmethod
    async def run(self, params: Any) -> Any:
        """Perform the backend call for validated ``params``."""

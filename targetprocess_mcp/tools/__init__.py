"""Tool registry.

Every tool exposed by the server is listed in ``TOOL_CLASSES``; adding a tool
means adding it here. Order is the order of ``tools/list``.
"""

from mcp.types import Tool

from targetprocess_mcp.tools.base import EntityService, TargetProcessTool, text_content
from targetprocess_mcp.tools.entity import CreateEntityTool, GetEntityTool
from targetprocess_mcp.tools.inspect_object import InspectObjectTool
from targetprocess_mcp.tools.search import SearchTool
from targetprocess_mcp.tools.update import UpdateEntityTool

TOOL_CLASSES: tuple[type[TargetProcessTool], ...] = (
    SearchTool,
    GetEntityTool,
    CreateEntityTool,
    UpdateEntityTool,
    InspectObjectTool,
)

TOOL_NAMES: tuple[str, ...] = tuple(cls.name for cls in TOOL_CLASSES)


def tool_definitions() -> list[Tool]:
    """Descriptors for all tools, in registry order. Needs no service."""
    return [cls.definition() for cls in TOOL_CLASSES]


def build_tool_registry(service: EntityService) -> dict[str, TargetProcessTool]:
    """Instantiate every tool with the shared service."""
    return {cls.name: cls(service) for cls in TOOL_CLASSES}


__all__ = [
    "TOOL_CLASSES",
    "TOOL_NAMES",
    "CreateEntityTool",
    "EntityService",
    "GetEntityTool",
    "InspectObjectTool",
    "SearchTool",
    "TargetProcessTool",
    "UpdateEntityTool",
    "build_tool_registry",
    "text_content",
    "tool_definitions",
]

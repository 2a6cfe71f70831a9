"""Tool-call routing.

``Dispatcher`` maps a tool name to its instance, runs it, and sorts every
outcome into ``ToolOutcome`` or ``ProtocolFailure`` via ``normalize_error``.
It never raises for a failed call and holds no state besides the read-only
registry, so concurrent calls may interleave freely.
"""

import logging
from collections.abc import Mapping
from typing import Any

from targetprocess_mcp.errors import (
    DispatchResult,
    ProtocolFailure,
    ToolOutcome,
    UnknownToolError,
    normalize_error,
)
from targetprocess_mcp.tools import TargetProcessTool

logger = logging.getLogger(__name__)


class Dispatcher:
    """Routes tool calls to registered tools."""

    def __init__(self, registry: Mapping[str, TargetProcessTool]) -> None:
        self._registry = dict(registry)

    @property
    def tool_names(self) -> list[str]:
        return list(self._registry)

    async def dispatch(self, name: str, arguments: dict[str, Any] | None = None) -> DispatchResult:
        """Execute the named tool.

        Args:
            name: Registered tool name
            arguments: Raw tool arguments, passed through unvalidated

        Returns:
            ``ToolOutcome`` with the tool's payload verbatim (or an error
            envelope), or ``ProtocolFailure`` for protocol-level errors
        """
        tool = self._registry.get(name)
        if tool is None:
            logger.warning("Unknown tool requested: %s", name)
            return ProtocolFailure(UnknownToolError(name))

        try:
            payload = await tool.execute(arguments)
        except Exception as e:
            result = normalize_error(e)
            if isinstance(result, ProtocolFailure):
                logger.info("Tool %s rejected request: %s", name, result.message)
            else:
                logger.warning("Tool %s failed: %s", name, e, exc_info=True)
            return result

        return ToolOutcome.success(payload)


__all__ = ["Dispatcher"]

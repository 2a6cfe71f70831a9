"""
Error taxonomy and result types for the Target Process MCP server.

Two failure domains meet at the tool-call boundary:

- Protocol failures: the request itself is unusable (unknown tool, malformed
  arguments, missing configuration). These are ``McpError`` instances that
  already carry a JSON-RPC error code and are raised to the transport, which
  turns them into protocol-level error responses.
- Tool failures: the tool ran but the backend (or the tool itself) failed.
  These are converted into an ordinary tool result flagged with ``isError``
  so the calling agent sees them as tool output.

``normalize_error`` is the single place where an exception is sorted into one
of the two.
"""

from dataclasses import dataclass
from typing import Any

from mcp.shared.exceptions import McpError
from mcp.types import (
    INTERNAL_ERROR,
    INVALID_PARAMS,
    METHOD_NOT_FOUND,
    CallToolResult,
    ErrorData,
)

TOOL_ERROR_PREFIX = "Target Process API error"


# ============================================================================
# Protocol-fatal errors
# ============================================================================


class ConfigurationError(McpError):
    """No valid connection configuration could be resolved."""

    def __init__(self, message: str) -> None:
        super().__init__(ErrorData(code=INTERNAL_ERROR, message=message))
        self.message = message


class UnknownToolError(McpError):
    """A tool call named a tool that is not registered."""

    def __init__(self, tool_name: str) -> None:
        message = f"Unknown tool: {tool_name}"
        super().__init__(
            ErrorData(code=METHOD_NOT_FOUND, message=message, data={"tool": tool_name})
        )
        self.message = message
        self.tool_name = tool_name


class ToolInputError(McpError):
    """Tool arguments do not match the tool's input schema."""

    def __init__(self, tool_name: str, message: str, errors: list[dict[str, Any]] | None = None) -> None:
        full_message = f"Invalid arguments for {tool_name}: {message}"
        data: dict[str, Any] = {"tool": tool_name}
        if errors:
            data["errors"] = errors
        super().__init__(ErrorData(code=INVALID_PARAMS, message=full_message, data=data))
        self.message = full_message
        self.tool_name = tool_name


# ============================================================================
# Tool-level errors
# ============================================================================


class TargetProcessAPIError(Exception):
    """The Targetprocess REST API answered with an error status."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        """Initialize API error.

        Args:
            message: Error message reported by the API (or a summary of the response)
            status_code: HTTP status code (if applicable)
        """
        super().__init__(message)
        self.message = message
        self.status_code = status_code


# ============================================================================
# Dispatch results
# ============================================================================


@dataclass(frozen=True)
class ToolOutcome:
    """Result of a tool call that reached the tool, successful or not.

    Attributes:
        payload: Tool-defined result mapping (``content`` list, optional ``isError``)
        is_error: Whether the payload is an error envelope
    """

    payload: dict[str, Any]
    is_error: bool = False

    @classmethod
    def success(cls, payload: dict[str, Any]) -> "ToolOutcome":
        return cls(payload=payload, is_error=False)

    @classmethod
    def failure(cls, message: str) -> "ToolOutcome":
        return cls(
            payload={
                "content": [{"type": "text", "text": f"{TOOL_ERROR_PREFIX}: {message}"}],
                "isError": True,
            },
            is_error=True,
        )

    @property
    def text(self) -> str:
        """Concatenated text content, mostly useful for logging and tests."""
        return "\n".join(
            item.get("text", "") for item in self.payload.get("content", []) if item.get("type") == "text"
        )

    def to_call_tool_result(self) -> CallToolResult:
        """Convert to the MCP wire type."""
        return CallToolResult.model_validate(self.payload)


@dataclass(frozen=True)
class ProtocolFailure:
    """A failure that must surface as a JSON-RPC error, not as tool output."""

    error: McpError

    @property
    def code(self) -> int:
        return self.error.error.code

    @property
    def message(self) -> str:
        return self.error.error.message


DispatchResult = ToolOutcome | ProtocolFailure


def error_message(exc: BaseException) -> str:
    """Human-readable message for an exception.

    Prefers a non-empty ``message`` attribute, otherwise the string form.
    """
    message = getattr(exc, "message", None)
    if isinstance(message, str) and message:
        return message
    return str(exc) or type(exc).__name__


def normalize_error(exc: Exception) -> DispatchResult:
    """Classify a failure raised while dispatching a tool call.

    Args:
        exc: The exception caught around tool dispatch

    Returns:
        ``ProtocolFailure`` wrapping the very same exception when it already
        carries a protocol error code, otherwise an error ``ToolOutcome``.
    """
    if isinstance(exc, McpError):
        return ProtocolFailure(exc)
    return ToolOutcome.failure(error_message(exc))


__all__ = [
    "ConfigurationError",
    "DispatchResult",
    "ProtocolFailure",
    "TargetProcessAPIError",
    "ToolInputError",
    "ToolOutcome",
    "UnknownToolError",
    "error_message",
    "normalize_error",
]

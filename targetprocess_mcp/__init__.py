"""
Target Process MCP Server

Exposes Targetprocess entity operations (search, get, create, update,
inspect) as MCP tools over stdio.

Public API modules:
- targetprocess_mcp.config: Connection configuration
- targetprocess_mcp.service: Targetprocess REST client
- targetprocess_mcp.tools: Tool registry
- targetprocess_mcp.server: MCP server, dispatch and lifecycle
"""

try:
    from importlib.metadata import PackageNotFoundError, version

    try:
        __version__ = version("targetprocess-mcp")
    except PackageNotFoundError:
        # Development checkout, not installed
        __version__ = "0.1.0"
except ImportError:
    __version__ = "0.1.0"

__all__ = ["__version__"]

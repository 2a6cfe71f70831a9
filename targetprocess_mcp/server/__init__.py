"""MCP server layer.

- mcp_server.py: server wiring and stdio run loop
- dispatch.py: tool-call routing and error classification
- lifecycle.py: shutdown callbacks, signals, background warm-up
- main.py: command-line entry point
"""

from targetprocess_mcp.server.dispatch import Dispatcher
from targetprocess_mcp.server.lifecycle import CacheWarmup, LifecycleManager, WarmupStatus
from targetprocess_mcp.server.mcp_server import TargetProcessServer

__all__ = [
    "CacheWarmup",
    "Dispatcher",
    "LifecycleManager",
    "TargetProcessServer",
    "WarmupStatus",
]

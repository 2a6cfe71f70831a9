"""Target Process MCP server.

This module provides the server wrapper that:
1. Resolves the connection configuration
2. Builds the shared Targetprocess service
3. Builds the five tools around that service
4. Registers ``tools/list`` and ``tools/call`` on an MCP ``Server``
5. Serves over stdio, warming the entity-type cache in the background

Protocol failures (unknown tool, invalid arguments) are raised to the MCP
session and become JSON-RPC errors; every other failure is returned as tool
output flagged with ``isError``.

Example:
    server = TargetProcessServer()
    asyncio.run(server.run())
"""

import asyncio
import logging
import os
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from mcp.server import Server
from mcp.server.models import InitializationOptions
from mcp.server.stdio import stdio_server
from mcp.types import CallToolRequest, ServerResult, Tool

from targetprocess_mcp import __version__
from targetprocess_mcp.config import TargetProcessConfig, load_config
from targetprocess_mcp.errors import DispatchResult, ProtocolFailure
from targetprocess_mcp.server.dispatch import Dispatcher
from targetprocess_mcp.server.lifecycle import CacheWarmup, LifecycleManager
from targetprocess_mcp.service import TargetProcessService
from targetprocess_mcp.tools import build_tool_registry, tool_definitions

logger = logging.getLogger(__name__)

SERVER_NAME = "target-process-server"


class TargetProcessServer:
    """MCP server exposing Targetprocess entity operations as tools.

    Attributes:
        config: Resolved connection configuration
        service: Shared Targetprocess service
        tools: Tool instances keyed by name
        dispatcher: Tool-call router
        capabilities: Per-tool capability flags advertised at initialization
        server: Underlying MCP server
        lifecycle: Shutdown coordination
        warmup: Background entity-type cache warm-up
    """

    def __init__(
        self,
        config: TargetProcessConfig | None = None,
        *,
        config_path: str | Path | None = None,
        use_env: bool = True,
        service: TargetProcessService | None = None,
        server_name: str = SERVER_NAME,
    ) -> None:
        """Initialize the server. Nothing is connected until ``open()``.

        Args:
            config: Explicit configuration (skips resolution)
            config_path: Config file used when environment variables are absent
            use_env: Whether TP_DOMAIN/TP_TOKEN may be used
            service: Pre-built service (defaults to one built from ``config``)
            server_name: MCP server name

        Raises:
            ConfigurationError: If no valid configuration can be resolved
        """
        self.config = config if config is not None else load_config(config_path, use_env=use_env)
        self.service = service if service is not None else TargetProcessService(self.config)

        self.tools = build_tool_registry(self.service)
        self.dispatcher = Dispatcher(self.tools)
        self.capabilities: dict[str, bool] = {name: True for name in self.tools}

        self.server = Server(server_name, version=__version__)
        self._register_handlers()

        self.lifecycle = LifecycleManager()
        self.lifecycle.register_shutdown(self.service.close)
        self.warmup = CacheWarmup(self.service.initialize_entity_type_cache)

        self._opened = False
        self._loop: asyncio.AbstractEventLoop | None = None
        self._previous_exception_handler: Any = None

        logger.info("Created MCP server %s with tools: %s", server_name, ", ".join(self.tools))

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------

    def _register_handlers(self) -> None:
        @self.server.list_tools()
        async def list_tools() -> list[Tool]:
            return self.list_tools()

        # Registered directly: McpError must reach the session as a JSON-RPC error
        self.server.request_handlers[CallToolRequest] = self._handle_call_tool

    def list_tools(self) -> list[Tool]:
        """Descriptors for all registered tools."""
        return tool_definitions()

    async def call_tool(self, name: str, arguments: dict[str, Any] | None = None) -> DispatchResult:
        """Dispatch a tool call and return its classified result."""
        return await self.dispatcher.dispatch(name, arguments)

    async def _handle_call_tool(self, request: CallToolRequest) -> ServerResult:
        result = await self.call_tool(request.params.name, request.params.arguments)
        if isinstance(result, ProtocolFailure):
            raise result.error
        return ServerResult(result.to_call_tool_result())

    def initialization_options(self) -> InitializationOptions:
        return self.server.create_initialization_options(
            experimental_capabilities={"tools": dict(self.capabilities)}
        )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def open(self, install_signal_handlers: bool = True) -> None:
        """Connect the service and start background work.

        Returns as soon as the warm-up task is scheduled; it is never awaited here.
        """
        if self._opened:
            return
        await self.service.open()

        self._loop = asyncio.get_running_loop()
        self._previous_exception_handler = self._loop.get_exception_handler()
        self._loop.set_exception_handler(self._on_uncaught_error)

        if install_signal_handlers:
            self.lifecycle.install_signal_handlers()

        self.warmup.start()
        self._opened = True

    async def close(self) -> None:
        """Stop background work and release the service."""
        if not self._opened:
            return
        self._opened = False
        await self.warmup.cancel()
        self.lifecycle.remove_signal_handlers()
        if self._loop is not None:
            self._loop.set_exception_handler(self._previous_exception_handler)
            self._loop = None
        await self.lifecycle.shutdown()

    def _on_uncaught_error(self, loop: asyncio.AbstractEventLoop, context: dict[str, Any]) -> None:
        logger.error(
            "[MCP Error] %s",
            context.get("message", "unhandled error"),
            exc_info=context.get("exception"),
        )

    async def run(self) -> None:
        """Serve over stdio until the input stream closes or a shutdown signal arrives.

        After a termination signal the process exits with status 0 once the
        service is closed, without waiting for the client to close stdin.
        """
        await self.open()
        try:
            async with stdio_server() as (read_stream, write_stream):
                started_at = datetime.now(timezone.utc).isoformat()
                logger.info(
                    "Target Process MCP server running on stdio (started at %s)", started_at
                )
                await self._serve(read_stream, write_stream)
                if self.lifecycle.received_signal is not None:
                    # Leaving stdio_server() blocks on the stdin reader thread
                    await self.close()
                    exit_process(0)
        finally:
            await self.close()

    async def _serve(self, read_stream: Any, write_stream: Any) -> None:
        serve_task = asyncio.create_task(
            self.server.run(read_stream, write_stream, self.initialization_options())
        )
        stop_task = asyncio.create_task(self.lifecycle.shutdown_event.wait())

        done, _ = await asyncio.wait({serve_task, stop_task}, return_when=asyncio.FIRST_COMPLETED)
        if serve_task in done:
            stop_task.cancel()
            serve_task.result()
            return

        logger.info("Closing stdio transport")
        serve_task.cancel()
        try:
            await serve_task
        except asyncio.CancelledError:
            pass


def exit_process(code: int = 0) -> None:
    """Flush diagnostics and the protocol stream, then end the process immediately."""
    logger.info("Target Process MCP server exiting with status %d", code)
    logging.shutdown()
    sys.stdout.flush()
    os._exit(code)


__all__ = [
    "SERVER_NAME",
    "TargetProcessServer",
    "exit_process",
]

"""Command-line entry point for the Target Process MCP server.

Configuration can be supplied via:
1. TP_DOMAIN and TP_TOKEN environment variables (highest priority)
2. config/targetprocess.json next to the installed package
3. --config PATH, which ignores the environment variables entirely
"""

import argparse
import asyncio
import logging
import sys

from targetprocess_mcp import __version__
from targetprocess_mcp.errors import ConfigurationError
from targetprocess_mcp.observability import configure_logging
from targetprocess_mcp.server.mcp_server import TargetProcessServer

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="targetprocess-mcp",
        description="Target Process MCP Server (stdio)",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Configure through the environment
  export TP_DOMAIN=example.tpondemand.com
  export TP_TOKEN=<personal access token>
  targetprocess-mcp

  # Force a specific config file
  targetprocess-mcp --config ~/targetprocess.json
        """,
    )
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to a JSON config file (TP_DOMAIN/TP_TOKEN are ignored when given)",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: INFO)",
    )
    parser.add_argument(
        "--log-format",
        type=str,
        default="text",
        choices=["text", "json"],
        help="Diagnostic log format on stderr (default: text)",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def serve(config_path: str | None = None) -> int:
    """Build and run the server. Returns the process exit code."""
    try:
        server = TargetProcessServer(config_path=config_path, use_env=config_path is None)
    except ConfigurationError as e:
        logger.error("Failed to load configuration: %s", e.message)
        return 1

    try:
        asyncio.run(server.run())
    except KeyboardInterrupt:
        logger.info("Server stopped by user")
    return 0


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level, args.log_format)
    sys.exit(serve(args.config))


if __name__ == "__main__":
    main()

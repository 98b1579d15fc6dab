"""DBBase MCP server - read-only database access for AI agents."""

import asyncio
import logging
import sys
from pathlib import Path
from typing import Optional

import mcp.server.stdio
import mcp.types as types
from mcp.server import Server
from mcp.server.lowlevel import NotificationOptions
from mcp.server.models import InitializationOptions

from .constants import CONFIG_ENV_VAR, EXIT_FAILURE, EXIT_SUCCESS, SERVER_NAME, SERVER_VERSION
from .database.connection import load_active_profile, resolve_config_path
from .database.drivers import create_driver
from .database.health import ConnectionHealthTracker
from .errors import DBBaseError
from .tool_definitions import ToolDescriptions
from .tools import call_tool_impl

# Set up dbbase logger; stdout belongs to the stdio transport
logger = logging.getLogger("dbbase")
logger.setLevel(logging.INFO)
handler = logging.StreamHandler(sys.stderr)
handler.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))
logger.addHandler(handler)


class ToolCallError(DBBaseError):
    """Raised from the MCP handler so the response is flagged ``isError``."""


class DBBaseServer(Server):
    """Extended MCP Server that stores the active-connection configuration."""

    def __init__(self, name: str, config_path: Optional[str] = None, driver_factory=create_driver):
        super().__init__(name)
        self.config_path = config_path
        self.driver_factory = driver_factory
        self.tracker = ConnectionHealthTracker(driver_factory=driver_factory)


def build_server(config_path: Optional[str] = None, driver_factory=create_driver) -> DBBaseServer:
    """Create the server and register its handlers."""
    server = DBBaseServer(SERVER_NAME, config_path, driver_factory)

    @server.list_tools()
    async def list_tools() -> list[types.Tool]:
        """List the three database tools."""
        schemas = ToolDescriptions.input_schemas()
        return [
            types.Tool(name=name, description=description, inputSchema=schemas[name])
            for name, description in ToolDescriptions.descriptions().items()
        ]

    @server.call_tool()
    async def call_tool(name: str, arguments: dict) -> list[types.TextContent]:
        """Handle tool calls."""
        result = await call_tool_impl(
            name,
            arguments,
            config_path=server.config_path,
            driver_factory=server.driver_factory,
            tracker=server.tracker,
        )
        if result.is_error:
            raise ToolCallError(result.text)
        return [types.TextContent(type="text", text=result.text)]

    return server


async def test_active_connection(server: DBBaseServer) -> bool:
    """Probe the active connection once and report the outcome.

    Args:
        server: DBBaseServer instance

    Returns:
        True if the connection could be established
    """
    print()
    print(f"Config: {resolve_config_path(server.config_path)}")

    try:
        profile = load_active_profile(server.config_path)
    except DBBaseError as e:
        print("[FAILED] Test FAILED")
        print(f"Error: {e}")
        return False

    print(f"Connection: {profile.label} ({profile.target})")
    print("Testing connection...")

    online = await server.tracker.test_connection(profile)
    print()
    if online:
        print("[PASSED] Test PASSED")
    else:
        print("[FAILED] Test FAILED - backend unreachable (see log above)")
    return online


def parse_args(args: list[str]) -> tuple[Optional[str], bool]:
    """Parse ``[--config PATH] [--test]``; exits on bad usage."""
    config_path = None
    test_mode = False

    i = 0
    while i < len(args):
        if args[i] == "--test":
            test_mode = True
        elif args[i] == "--config":
            if i + 1 >= len(args):
                sys.stderr.write("Error: --config requires a value\n")
                sys.exit(EXIT_FAILURE)
            config_path = args[i + 1]
            i += 1
        elif args[i] in ("-h", "--help"):
            print_usage()
            sys.exit(EXIT_SUCCESS)
        else:
            sys.stderr.write(f"Error: Unknown argument '{args[i]}'\n")
            print_usage()
            sys.exit(EXIT_FAILURE)
        i += 1

    return config_path, test_mode


def print_usage() -> None:
    sys.stderr.write("Usage: dbbase-mcp [--config <path>] [--test]\n")
    sys.stderr.write("\n")
    sys.stderr.write("Optional Flags:\n")
    sys.stderr.write("  --config <path> - Active connection JSON file\n")
    sys.stderr.write(f"                    Default: ${CONFIG_ENV_VAR} or ./active_connection.json\n")
    sys.stderr.write("  --test          - Test the active connection and exit\n")


async def main():
    """Parse command line arguments and run the server."""
    config_path, test_mode = parse_args(sys.argv[1:])
    server = build_server(config_path)

    logger.info("Starting DBBase MCP Server")
    logger.info(f"Active connection file: {resolve_config_path(config_path)}")

    if test_mode:
        success = await test_active_connection(server)
        sys.exit(EXIT_SUCCESS if success else EXIT_FAILURE)

    try:
        async with mcp.server.stdio.stdio_server() as (read_stream, write_stream):
            init_options = InitializationOptions(
                server_name=SERVER_NAME,
                server_version=SERVER_VERSION,
                capabilities=server.get_capabilities(
                    notification_options=NotificationOptions(),
                    experimental_capabilities={},
                ),
                instructions=(
                    "Call get_schema before writing queries. run_read_query only accepts "
                    "SELECT/WITH statements and limits results automatically."
                ),
            )
            await server.run(read_stream, write_stream, init_options)
    except Exception as e:
        logger.error(f"MCP Server error: {type(e).__name__}: {e}")
        sys.exit(EXIT_FAILURE)


def run():
    """Entry point for the dbbase-mcp command."""
    asyncio.run(main())


if __name__ == "__main__":
    run()

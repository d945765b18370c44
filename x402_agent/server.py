"""
server.py — `x402-agent` entry point: serve the endpoints as MCP tools.

Startup order: .env → settings → logging → registry → wallet → payment
client → dispatcher → stdio transport. Configuration and schema errors
abort startup with exit status 1; after that, failed tool calls are
reported to the agent and the process keeps running.

Requires the "server" and "payments" extras.
"""

from __future__ import annotations

import asyncio
import logging
import sys
from typing import Any, Optional

from dotenv import load_dotenv
from mcp import types
from mcp.server.lowlevel import Server
from mcp.server.stdio import stdio_server

from . import __version__
from .config import AgentSettings
from .errors import ConfigurationError, SchemaConversionError
from .handlers import ToolDispatcher
from .payment import PaymentHandler
from .registry import EndpointRegistry
from .retry import RetryOptions
from .wallet import WalletManager, create_payment_client

logger = logging.getLogger("x402_agent.server")

LOG_FORMAT = "[%(asctime)s] %(levelname)s %(name)s: %(message)s"


class ToolCallFailed(Exception):
    """Carries the JSON error payload; the MCP server marks it isError."""


def configure_logging(debug: bool = False) -> None:
    """Log to stderr; stdout belongs to the stdio transport."""
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root = logging.getLogger("x402_agent")
    root.handlers[:] = [handler]
    root.setLevel(logging.DEBUG if debug else logging.INFO)
    root.propagate = False


def build_server(dispatcher: ToolDispatcher) -> Server:
    server = Server("x402-agent")

    @server.list_tools()
    async def list_tools() -> list[types.Tool]:
        return [
            types.Tool(
                name=tool["name"],
                description=tool["description"],
                inputSchema=tool["inputSchema"],
            )
            for tool in dispatcher.list_tools()["tools"]
        ]

    # ToolDispatcher owns argument validation so failures keep the
    # {"error", "tool"} payload shape.
    @server.call_tool(validate_input=False)
    async def call_tool(name: str, arguments: Optional[dict[str, Any]]) -> list[types.TextContent]:
        response = await dispatcher.call_tool(name, arguments)
        text = response["content"][0]["text"]
        if response.get("isError"):
            raise ToolCallFailed(text)
        return [types.TextContent(type="text", text=text)]

    return server


async def serve(settings: AgentSettings) -> None:
    registry = EndpointRegistry()
    config = registry.load(settings.config_path)

    wallet = WalletManager()
    account = wallet.initialize(config.wallet)
    http_client, payment_errors = create_payment_client(account, settings.timeout_seconds)

    async with PaymentHandler(
        http_client,
        retry=RetryOptions.from_settings(settings),
        payment_error_types=payment_errors,
        network=wallet.network,
    ) as payment_handler:
        dispatcher = ToolDispatcher(registry, payment_handler)
        server = build_server(dispatcher)

        logger.info(
            "x402-agent %s ready: endpoints=%s",
            __version__, ", ".join(registry.endpoint_ids()),
        )
        async with stdio_server() as (read_stream, write_stream):
            await server.run(
                read_stream, write_stream, server.create_initialization_options(),
            )
    logger.info("x402-agent shut down")


def main() -> None:
    load_dotenv()
    settings = AgentSettings()
    configure_logging(settings.debug)
    logger.info("Starting x402-agent: config=%s", settings.config_path)

    try:
        asyncio.run(serve(settings))
    except (ConfigurationError, SchemaConversionError) as exc:
        logger.error("Configuration error: %s", exc)
        print(f"\nConfiguration Error:\n{exc}", file=sys.stderr)
        print("\nPlease check your configuration file and try again.", file=sys.stderr)
        sys.exit(1)
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down")


if __name__ == "__main__":
    main()

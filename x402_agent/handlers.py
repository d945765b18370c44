"""
handlers.py — Tool listing and tool invocation for the agent transport.

ToolDispatcher sits between the agent-facing server and PaymentHandler.
It never lets an exception escape call_tool(): every failure is returned
as a structured {"error", "tool"} payload flagged isError, so one bad
call cannot take the process down.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Mapping, Optional

from pydantic import BaseModel

from .errors import TrustError, ValidationError, X402AgentError
from .payment import PaymentHandler
from .registry import EndpointRegistry
from .schema import json_schema_to_model, validate_arguments_against

logger = logging.getLogger("x402_agent.handlers")


class ToolDispatcher:
    """
    Exposes every registered endpoint as a tool.

    Argument models are built for all endpoints up front, so a malformed
    parameter schema raises SchemaConversionError here, at startup, rather
    than on the first call.
    """

    def __init__(self, registry: EndpointRegistry, payment_handler: PaymentHandler):
        self._registry = registry
        self._payment_handler = payment_handler
        self._argument_models: dict[str, Optional[type[BaseModel]]] = {}
        for endpoint in registry.get_all_endpoints():
            logger.debug("Registering tool: %s", endpoint.id)
            self._argument_models[endpoint.id] = json_schema_to_model(
                endpoint.parameters, model_name=_model_name(endpoint.id),
            )

    def list_tools(self) -> dict[str, list[dict[str, Any]]]:
        """One tool per endpoint: {name, description, inputSchema}."""
        return {
            "tools": [
                {
                    "name": endpoint.id,
                    "description": endpoint.description,
                    "inputSchema": endpoint.parameters.to_json_schema(),
                }
                for endpoint in self._registry.get_all_endpoints()
            ]
        }

    def argument_model(self, name: str) -> Optional[type[BaseModel]]:
        return self._argument_models.get(name)

    async def call_tool(
        self,
        name: str,
        arguments: Optional[Mapping[str, Any]] = None,
    ) -> dict[str, Any]:
        """
        Validate and execute one tool call.

        Returns {"content": [{"type": "text", "text": <json>}]} on success,
        with "isError": True added on failure.
        """
        args = dict(arguments or {})
        logger.debug("Tool call request: %s arguments=%s", name, args)

        try:
            endpoint = self._registry.get_endpoint(name)
            if endpoint is None:
                raise ValidationError(
                    f'Unknown tool: "{name}". '
                    f"Available tools: {', '.join(self._registry.endpoint_ids())}",
                    field="name",
                )
            if not endpoint.trusted:
                raise TrustError(name)

            validate_required_arguments(args, endpoint.required_parameters)
            validate_arguments_against(self._argument_models.get(name), args)

            result = await self._payment_handler.call_endpoint(endpoint, args)
        except X402AgentError as exc:
            logger.error("Tool call failed: tool=%s error=%s", name, exc)
            return _error_response(name, str(exc))
        except Exception as exc:
            logger.exception("Tool call failed unexpectedly: tool=%s", name)
            return _error_response(name, str(exc) or type(exc).__name__)

        return {
            "content": [
                {"type": "text", "text": json.dumps(result.to_dict(), indent=2)},
            ]
        }


def validate_required_arguments(arguments: Mapping[str, Any], required: list[str]) -> None:
    """Every required parameter must be present and not None."""
    for param in required:
        if param not in arguments:
            raise ValidationError(f'Missing required parameter: "{param}"', field=param)
        if arguments[param] is None:
            raise ValidationError(f'Parameter "{param}" cannot be null', field=param)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _error_response(tool: str, message: str) -> dict[str, Any]:
    return {
        "content": [
            {
                "type": "text",
                "text": json.dumps({"error": message, "tool": tool}, indent=2),
            }
        ],
        "isError": True,
    }


def _model_name(endpoint_id: str) -> str:
    return "".join(part.capitalize() for part in endpoint_id.split("_")) + "Arguments"

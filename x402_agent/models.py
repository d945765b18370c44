"""
models.py — Shared data structures for x402-agent-tools.

The configuration document is parsed into frozen pydantic models whose
aliases mirror the camelCase keys of endpoints.json. Per-call results are
plain dataclasses, since they are produced once and never validated.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

Network = Literal["base", "base-sepolia", "ethereum", "sepolia"]
HttpMethod = Literal["GET", "POST", "PUT", "PATCH", "DELETE"]
SchemaType = Literal["object", "string", "number", "boolean", "array"]

SUPPORTED_PROVIDERS = ("cdp-embedded",)
SUPPORTED_NETWORKS = ("base", "base-sepolia", "ethereum", "sepolia")
SUPPORTED_METHODS = ("GET", "POST", "PUT", "PATCH", "DELETE")
SUPPORTED_SCHEMA_TYPES = ("object", "string", "number", "boolean", "array")


class WalletConfig(BaseModel):
    """Wallet descriptor: provider, network and key material."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    provider: Literal["cdp-embedded"]
    network: Network
    private_key: str = Field(alias="privateKey", repr=False)


class ParameterSchema(BaseModel):
    """JSON-Schema-like description of the arguments an endpoint accepts."""

    model_config = ConfigDict(frozen=True, extra="allow")

    type: SchemaType
    properties: Optional[dict[str, ParameterSchema]] = None
    required: Optional[list[str]] = None
    items: Optional[ParameterSchema] = None
    enum: Optional[list[str]] = None
    description: Optional[str] = None

    def to_json_schema(self) -> dict[str, Any]:
        """Plain dict form, as advertised to the agent in tool listings."""
        return self.model_dump(exclude_none=True)


class Endpoint(BaseModel):
    """A single pay-per-call HTTP endpoint exposed as a tool."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str
    name: str
    url: str
    method: HttpMethod
    description: str
    category: Optional[str] = None
    parameters: ParameterSchema
    estimated_cost: Optional[str] = Field(default=None, alias="estimatedCost")
    trusted: bool

    @property
    def required_parameters(self) -> list[str]:
        return list(self.parameters.required or [])


class Config(BaseModel):
    """The complete, resolved configuration document."""

    model_config = ConfigDict(frozen=True)

    wallet: WalletConfig
    endpoints: list[Endpoint] = Field(min_length=1)


@dataclass(frozen=True)
class PaymentReceipt:
    """Payment metadata recovered from a response's headers."""
    tx_hash: str
    amount: Optional[str] = None


@dataclass
class EndpointCallResult:
    """
    Returned by PaymentHandler.call_endpoint(). `data` is the decoded
    response body; payment fields are set only when a receipt was found.
    """
    data: Any
    tx_hash: Optional[str] = None
    amount: Optional[str] = None
    payment_made: bool = False

    def to_dict(self) -> dict[str, Any]:
        """Wire form sent back to the agent; unset payment fields are omitted."""
        out: dict[str, Any] = {"data": self.data}
        if self.tx_hash is not None:
            out["txHash"] = self.tx_hash
        if self.amount is not None:
            out["amount"] = self.amount
        out["paymentMade"] = self.payment_made
        return out

"""
x402-agent-tools — Expose pay-per-call x402 HTTP endpoints as agent tools.

Public API:
    AgentSettings            — Environment-driven process settings
    EndpointRegistry         — Loads, validates and indexes endpoints.json
    validate_config          — Structural validation of a raw config document
    json_schema_to_model     — Parameter schema → pydantic argument model
    with_retries             — Async exponential-backoff retry
    RetryOptions             — Retry knobs (delays in seconds)
    PaymentHandler           — Payment-aware request executor
    extract_payment_receipt  — Receipt metadata from response headers
    ToolDispatcher           — Tool listing and invocation boundary
    WalletManager            — Wallet key loading (eth-account)
    create_payment_client    — x402 payment-capable httpx client
    Config, Endpoint, WalletConfig, ParameterSchema — Configuration models
    EndpointCallResult       — Normalized result of one call
    PaymentReceipt           — Extracted payment metadata
    X402AgentError           — Base exception
    ConfigurationError       — Fatal configuration problems
    ValidationError          — Unknown tool or bad arguments
    TrustError               — Call against an untrusted endpoint
    SchemaConversionError    — Unconvertible parameter schema
    NetworkError             — HTTP / transport failures
    PaymentError             — Payment handshake failures
"""

__version__ = "0.1.0"

from .config import AgentSettings
from .errors import (
    ConfigurationError,
    NetworkError,
    PaymentError,
    SchemaConversionError,
    TrustError,
    ValidationError,
    X402AgentError,
)
from .handlers import ToolDispatcher
from .models import (
    Config,
    Endpoint,
    EndpointCallResult,
    ParameterSchema,
    PaymentReceipt,
    WalletConfig,
)
from .payment import PaymentHandler, extract_payment_receipt
from .registry import EndpointRegistry
from .retry import RetryOptions, with_retries
from .schema import json_schema_to_model
from .validator import validate_config
from .wallet import WalletManager, create_payment_client

__all__ = [
    "__version__",
    "AgentSettings",
    "EndpointRegistry",
    "validate_config",
    "json_schema_to_model",
    "with_retries",
    "RetryOptions",
    "PaymentHandler",
    "extract_payment_receipt",
    "ToolDispatcher",
    "WalletManager",
    "create_payment_client",
    "Config",
    "Endpoint",
    "WalletConfig",
    "ParameterSchema",
    "EndpointCallResult",
    "PaymentReceipt",
    "X402AgentError",
    "ConfigurationError",
    "ValidationError",
    "TrustError",
    "SchemaConversionError",
    "NetworkError",
    "PaymentError",
]

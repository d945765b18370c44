"""
errors.py — Exception hierarchy for x402-agent-tools.

Every error raised by this package derives from X402AgentError so the
tool-call boundary can convert any of them into a structured payload.
ConfigurationError and SchemaConversionError are fatal at startup; the
rest are per-call failures reported back to the agent.
"""

from __future__ import annotations

from typing import Optional

# HTTP statuses in the 4xx range that still indicate a transient condition.
TRANSIENT_CLIENT_STATUSES = frozenset({408, 429})


class X402AgentError(Exception):
    """Base exception for all x402-agent errors."""

    retryable = True


class ConfigurationError(X402AgentError):
    """Configuration file missing, malformed, or referencing unset env vars."""

    retryable = False


class ValidationError(X402AgentError):
    """Unknown tool name or invalid call arguments."""

    retryable = False

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class TrustError(X402AgentError):
    """Call attempted against an endpoint not marked trusted."""

    retryable = False

    def __init__(self, endpoint_id: str):
        super().__init__(
            f'Endpoint "{endpoint_id}" is not trusted for autonomous execution. '
            'Set "trusted": true in the endpoint configuration to allow autonomous calls.'
        )
        self.endpoint_id = endpoint_id


class SchemaConversionError(X402AgentError):
    """A parameter schema could not be turned into an argument model."""

    retryable = False

    def __init__(
        self,
        message: str,
        schema_type: Optional[str] = None,
        property_path: Optional[str] = None,
    ):
        super().__init__(message)
        self.schema_type = schema_type
        self.property_path = property_path


class NetworkError(X402AgentError):
    """
    Non-2xx response, transport failure, or retries exhausted.

    Client-class statuses (4xx) are not retryable, except the transient
    ones in TRANSIENT_CLIENT_STATUSES.
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        url: Optional[str] = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.url = url

    @property
    def retryable(self) -> bool:
        if self.status_code is None:
            return True
        if self.status_code in TRANSIENT_CLIENT_STATUSES:
            return True
        return not 400 <= self.status_code < 500


class PaymentError(X402AgentError):
    """The payment handshake for an endpoint failed."""

    retryable = False

    def __init__(
        self,
        message: str,
        endpoint_id: Optional[str] = None,
        tx_hash: Optional[str] = None,
        amount: Optional[str] = None,
    ):
        super().__init__(message)
        self.endpoint_id = endpoint_id
        self.tx_hash = tx_hash
        self.amount = amount

"""
payment.py — Payment-aware request executor.

PaymentHandler turns an Endpoint plus call arguments into an HTTP request,
sends it through the injected payment-capable client, and normalizes the
result.

Design goals:
  - The client is opaque: when a server answers 402 it performs the x402
    handshake and retries on its own. Nothing here signs or pays.
  - Every call is wrapped in with_retries(); 4xx responses (other than
    408/429) and payment failures are never retried.
  - Payment receipts arrive in several encodings. They are recovered by an
    ordered tuple of independent parsers; the first match wins and a
    malformed header degrades to "no payment info", never to an error.
  - Failure classification is typed. Exceptions listed in
    `payment_error_types` (supplied by the transport) become PaymentError;
    everything else unclassified becomes NetworkError.
"""

from __future__ import annotations

import base64
import binascii
import json
import logging
import re
from typing import Any, Callable, Mapping, Optional

import httpx

from .audit import log_transaction
from .errors import NetworkError, PaymentError, X402AgentError
from .models import Endpoint, EndpointCallResult, PaymentReceipt
from .retry import RetryOptions, with_retry_options
from .wallet import NetworkInfo

logger = logging.getLogger("x402_agent.payment")

PAYMENT_RESPONSE_HEADER = "X-PAYMENT-RESPONSE"
TRANSACTION_HASH_HEADER = "X-Transaction-Hash"

QUERY_METHODS = frozenset({"GET", "DELETE"})
BODY_METHODS = frozenset({"POST", "PUT", "PATCH"})

_TX_HASH_PATTERN = re.compile(r"tx_hash:([0-9a-fA-Fx]+)")
_TX_HASH_KEYS = ("transaction", "txHash", "transactionHash", "tx_hash")
_AMOUNT_KEYS = ("amount", "value")


# ---------------------------------------------------------------------------
# Payment receipt extraction
# ---------------------------------------------------------------------------

def _receipt_from_json(text: str) -> Optional[PaymentReceipt]:
    parsed = json.loads(text)
    if not isinstance(parsed, dict):
        return None
    tx_hash = next((parsed[k] for k in _TX_HASH_KEYS if parsed.get(k)), None)
    if not tx_hash:
        return None
    amount = next((parsed[k] for k in _AMOUNT_KEYS if parsed.get(k) is not None), None)
    return PaymentReceipt(
        tx_hash=str(tx_hash),
        amount=str(amount) if amount is not None else None,
    )


def parse_base64_json(value: str) -> Optional[PaymentReceipt]:
    """x402 settlement response: base64-encoded JSON."""
    try:
        decoded = base64.b64decode(value, validate=True).decode("utf-8")
        return _receipt_from_json(decoded)
    except (binascii.Error, UnicodeDecodeError, ValueError):
        return None


def parse_raw_json(value: str) -> Optional[PaymentReceipt]:
    """Some servers skip the base64 step and send the JSON as-is."""
    try:
        return _receipt_from_json(value)
    except ValueError:
        return None


def parse_tx_hash_pair(value: str) -> Optional[PaymentReceipt]:
    """`tx_hash:0x...` somewhere in the header value."""
    match = _TX_HASH_PATTERN.search(value)
    return PaymentReceipt(tx_hash=match.group(1)) if match else None


def parse_bare_hash(value: str) -> Optional[PaymentReceipt]:
    """The header value is the transaction hash itself."""
    return PaymentReceipt(tx_hash=value) if value.startswith("0x") else None


PAYMENT_RESPONSE_PARSERS: tuple[Callable[[str], Optional[PaymentReceipt]], ...] = (
    parse_base64_json,
    parse_raw_json,
    parse_tx_hash_pair,
    parse_bare_hash,
)


def from_payment_response_header(headers: httpx.Headers) -> Optional[PaymentReceipt]:
    value = headers.get(PAYMENT_RESPONSE_HEADER)
    if not value:
        return None
    value = value.strip()
    for parser in PAYMENT_RESPONSE_PARSERS:
        receipt = parser(value)
        if receipt is not None:
            return receipt
    return None


def from_transaction_hash_header(headers: httpx.Headers) -> Optional[PaymentReceipt]:
    value = headers.get(TRANSACTION_HASH_HEADER)
    return PaymentReceipt(tx_hash=value) if value else None


RECEIPT_STRATEGIES: tuple[Callable[[httpx.Headers], Optional[PaymentReceipt]], ...] = (
    from_payment_response_header,
    from_transaction_hash_header,
)


def extract_payment_receipt(headers: httpx.Headers) -> Optional[PaymentReceipt]:
    """
    Try each receipt strategy in order and return the first match.
    Returns None when no strategy recognizes the headers; never raises.
    """
    for strategy in RECEIPT_STRATEGIES:
        try:
            receipt = strategy(headers)
        except Exception:
            logger.debug("Receipt strategy %s failed", strategy.__name__, exc_info=True)
            continue
        if receipt is not None:
            return receipt

    logger.debug(
        "Response headers (no payment info found): %s",
        {k.lower(): v for k, v in headers.items()},
    )
    return None


# ---------------------------------------------------------------------------
# Executor
# ---------------------------------------------------------------------------

class PaymentHandler:
    """
    Calls x402-protected endpoints through a payment-capable httpx client.

    Usage:
        handler = PaymentHandler(client, retry=RetryOptions.from_settings(settings))
        result = await handler.call_endpoint(endpoint, {"q": "weather"})

    Pass an httpx.AsyncClient on a mock transport in tests.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        *,
        retry: Optional[RetryOptions] = None,
        payment_error_types: tuple[type[BaseException], ...] = (),
        network: Optional[NetworkInfo] = None,
    ):
        self._http = http_client
        self._retry = retry or RetryOptions()
        self._payment_error_types = payment_error_types
        self._network = network

    async def call_endpoint(
        self,
        endpoint: Endpoint,
        arguments: Optional[Mapping[str, Any]] = None,
    ) -> EndpointCallResult:
        """
        Execute one call against `endpoint` and return the normalized result.

        Raises:
            NetworkError:  non-2xx response, transport failure, retries exhausted.
            PaymentError:  the payment handshake failed.
        """
        args = dict(arguments or {})
        logger.info(
            "Calling endpoint: id=%s method=%s url=%s",
            endpoint.id, endpoint.method, endpoint.url,
        )
        logger.debug("Arguments for %s: %s", endpoint.id, args)

        try:
            result = await with_retry_options(
                lambda: self._make_request(endpoint, args),
                self._retry,
                label=endpoint.id,
            )
        except Exception as exc:
            log_transaction(endpoint.id, "failed", error=str(exc))
            raise

        log_transaction(
            endpoint.id, "success", tx_hash=result.tx_hash, amount=result.amount,
        )
        return result

    async def aclose(self) -> None:
        await self._http.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *args):
        await self.aclose()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _make_request(
        self,
        endpoint: Endpoint,
        args: dict[str, Any],
    ) -> EndpointCallResult:
        try:
            response = await self._send(endpoint, args)
            receipt = extract_payment_receipt(response.headers)

            if not response.is_success:
                _raise_for_status(response, endpoint, receipt)

            data = _decode_body(response)
        except X402AgentError:
            raise
        except self._payment_error_types as exc:
            raise PaymentError(
                f"Payment failed for endpoint {endpoint.id}: {exc}",
                endpoint_id=endpoint.id,
            ) from exc
        except Exception as exc:
            raise NetworkError(
                f"Request failed for endpoint {endpoint.id}: {exc}",
                url=endpoint.url,
            ) from exc

        if receipt is not None:
            logger.info(
                "Payment successful: endpoint=%s tx_hash=%s amount=%s",
                endpoint.id, receipt.tx_hash, receipt.amount or "unknown",
            )
            if self._network is not None:
                logger.info("View transaction: %s", self._network.explorer_tx_url(receipt.tx_hash))
            return EndpointCallResult(
                data=data,
                tx_hash=receipt.tx_hash,
                amount=receipt.amount,
                payment_made=True,
            )

        logger.debug("Request successful (no payment detected): endpoint=%s", endpoint.id)
        return EndpointCallResult(data=data)

    async def _send(self, endpoint: Endpoint, args: dict[str, Any]) -> httpx.Response:
        if endpoint.method in QUERY_METHODS:
            return await self._http.request(
                endpoint.method,
                endpoint.url,
                params=build_query_params(args),
            )
        logger.debug("Request body for %s: %s", endpoint.id, args)
        return await self._http.request(
            endpoint.method,
            endpoint.url,
            content=json.dumps(args).encode("utf-8"),
            headers={"Content-Type": "application/json"},
        )


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def build_query_params(args: Mapping[str, Any]) -> dict[str, str]:
    """Stringify call arguments for a query string; None values are dropped."""
    return {key: _stringify(value) for key, value in args.items() if value is not None}


def _stringify(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, tuple)):
        return ",".join(_stringify(item) for item in value)
    if isinstance(value, dict):
        return json.dumps(value, separators=(",", ":"))
    return str(value)


def _raise_for_status(
    response: httpx.Response,
    endpoint: Endpoint,
    receipt: Optional[PaymentReceipt] = None,
) -> None:
    """
    Translate a final non-2xx response into a typed error. A 402 here
    means the transport could not settle the payment; a receipt header on
    it (a settlement the server then refused) is kept on the error.
    """
    status = response.status_code
    detail = response.text or response.reason_phrase
    if status == 402:
        raise PaymentError(
            f"Payment failed for endpoint {endpoint.id}: HTTP 402: {detail}",
            endpoint_id=endpoint.id,
            tx_hash=receipt.tx_hash if receipt else None,
            amount=receipt.amount if receipt else None,
        )
    raise NetworkError(f"HTTP {status}: {detail}", status_code=status, url=endpoint.url)


def _decode_body(response: httpx.Response) -> Any:
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text

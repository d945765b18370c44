"""
wallet.py — Wallet key loading and the payment-capable HTTP client.

The wallet descriptor from endpoints.json is turned into an eth-account
LocalAccount. The x402 handshake itself (reading the 402 challenge,
signing, resubmitting) belongs to the x402 client library; this module
only builds that client and tells PaymentHandler which of its exceptions
mean "payment failed".
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

import httpx
from eth_account import Account
from eth_account.signers.local import LocalAccount

from .errors import ConfigurationError
from .models import WalletConfig

logger = logging.getLogger("x402_agent.wallet")


@dataclass(frozen=True)
class NetworkInfo:
    chain_id: int
    rpc_url: str
    explorer_url: str

    def explorer_tx_url(self, tx_hash: str) -> str:
        return f"{self.explorer_url}/tx/{tx_hash}"


NETWORKS: dict[str, NetworkInfo] = {
    "base": NetworkInfo(8453, "https://mainnet.base.org", "https://basescan.org"),
    "base-sepolia": NetworkInfo(
        84532, "https://sepolia.base.org", "https://sepolia.basescan.org"
    ),
    "ethereum": NetworkInfo(1, "https://eth.llamarpc.com", "https://etherscan.io"),
    "sepolia": NetworkInfo(
        11155111, "https://eth-sepolia.public.blastapi.io", "https://sepolia.etherscan.io"
    ),
}


def get_network(network: str) -> NetworkInfo:
    try:
        return NETWORKS[network]
    except KeyError:
        raise ConfigurationError(f"Unsupported network: {network}") from None


class WalletManager:
    """
    Holds the signing account for the configured wallet.

    Usage:
        wallet = WalletManager()
        account = wallet.initialize(registry.get_wallet_config())
    """

    def __init__(self) -> None:
        self._account: Optional[LocalAccount] = None
        self._network: Optional[NetworkInfo] = None

    def initialize(self, config: WalletConfig) -> LocalAccount:
        """
        Derive the account from the configured private key.

        Raises:
            ConfigurationError: unsupported network or unusable key material.
        """
        logger.debug(
            "Initializing wallet: provider=%s network=%s",
            config.provider, config.network,
        )
        network = get_network(config.network)
        try:
            account = Account.from_key(config.private_key)
        except Exception as exc:
            # eth-account raises a mix of ValueError/TypeError/binascii errors
            raise ConfigurationError(f"Failed to initialize wallet: {exc}") from exc

        self._account = account
        self._network = network
        logger.info(
            "Wallet initialized: address=%s network=%s chain_id=%d",
            account.address, config.network, network.chain_id,
        )
        return account

    @property
    def account(self) -> LocalAccount:
        if self._account is None:
            raise ConfigurationError("Wallet not initialized. Call initialize() first.")
        return self._account

    @property
    def address(self) -> str:
        return self.account.address

    @property
    def network(self) -> NetworkInfo:
        if self._network is None:
            raise ConfigurationError("Wallet not initialized. Call initialize() first.")
        return self._network


def create_payment_client(
    account: LocalAccount,
    timeout_seconds: float = 30,
) -> tuple[httpx.AsyncClient, tuple[type[BaseException], ...]]:
    """
    Build an httpx.AsyncClient that settles 402 challenges with `account`.

    Returns the client together with the exception types it raises for a
    failed payment, for PaymentHandler(payment_error_types=...).

    Requires the "payments" extra: pip install x402-agent-tools[payments]
    """
    try:
        from x402.clients.base import PaymentError as X402PaymentError
        from x402.clients.httpx import x402HttpxClient
    except ImportError as err:
        raise ConfigurationError(
            "The x402 package is required to pay for endpoint calls. "
            "Install it with: pip install x402-agent-tools[payments]"
        ) from err

    client = x402HttpxClient(account=account, timeout=timeout_seconds)
    logger.debug("Payment client created: address=%s", account.address)
    return client, (X402PaymentError,)

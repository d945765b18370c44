"""
audit.py — Payment audit trail.

One record per endpoint call, written to the "x402_agent.audit" logger.
This is the only durable record of payment activity, so it is emitted
for failures as well as successes.
"""

from __future__ import annotations

import logging
from typing import Literal, Optional

audit_logger = logging.getLogger("x402_agent.audit")


def log_transaction(
    endpoint: str,
    status: Literal["success", "failed"],
    tx_hash: Optional[str] = None,
    amount: Optional[str] = None,
    error: Optional[str] = None,
) -> None:
    """Write one audit record. Success logs at INFO, failure at ERROR."""
    level = logging.INFO if status == "success" else logging.ERROR
    audit_logger.log(
        level,
        "Transaction %s: endpoint=%s tx_hash=%s amount=%s error=%s",
        status, endpoint, tx_hash or "-", amount or "-", error or "-",
        extra={
            "endpoint": endpoint,
            "tx_hash": tx_hash,
            "amount": amount,
            "status": status,
        },
    )

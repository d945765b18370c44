"""
config.py — Environment-driven process settings for x402-agent-tools.

These are the knobs of the process itself (where endpoints.json lives,
logging, HTTP timeout, retry backoff). The endpoint list and the wallet
live in endpoints.json and are handled by EndpointRegistry.
"""

import os
from pathlib import Path

from pydantic import BaseModel, Field, field_validator, model_validator

DEFAULT_CONFIG_PATH = Path.home() / ".x402-agent" / "endpoints.json"


def _env_flag(*names: str) -> bool:
    return any(os.getenv(name, "").lower() in ("true", "1") for name in names)


class AgentSettings(BaseModel):
    """
    Process settings.

    Reads from environment variables by default:
        X402_CONFIG_PATH    — path to endpoints.json (default: ~/.x402-agent/endpoints.json)
        X402_DEBUG / DEBUG  — "true" or "1" enables debug logging
        X402_TIMEOUT        — HTTP timeout in seconds (default: 30)
        X402_MAX_RETRIES    — extra attempts per call (default: 3)
        X402_INITIAL_DELAY  — first backoff delay in seconds (default: 0.1)
        X402_MAX_DELAY      — backoff ceiling in seconds (default: 5.0)
    """

    config_path: Path = Field(
        default_factory=lambda: Path(os.getenv("X402_CONFIG_PATH", str(DEFAULT_CONFIG_PATH)))
    )
    debug: bool = Field(default_factory=lambda: _env_flag("X402_DEBUG", "DEBUG"))
    timeout_seconds: int = Field(default_factory=lambda: int(os.getenv("X402_TIMEOUT", "30")))
    max_retries: int = Field(default_factory=lambda: int(os.getenv("X402_MAX_RETRIES", "3")))
    initial_delay: float = Field(
        default_factory=lambda: float(os.getenv("X402_INITIAL_DELAY", "0.1"))
    )
    max_delay: float = Field(default_factory=lambda: float(os.getenv("X402_MAX_DELAY", "5.0")))
    backoff_multiplier: float = 2.0

    @field_validator("timeout_seconds")
    @classmethod
    def validate_timeout(cls, v: int) -> int:
        if v < 1 or v > 300:
            raise ValueError("timeout_seconds must be between 1 and 300")
        return v

    @field_validator("max_retries")
    @classmethod
    def validate_max_retries(cls, v: int) -> int:
        if v < 0 or v > 10:
            raise ValueError("max_retries must be between 0 and 10")
        return v

    @field_validator("initial_delay")
    @classmethod
    def validate_initial_delay(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("initial_delay must be positive")
        return v

    @field_validator("backoff_multiplier")
    @classmethod
    def validate_multiplier(cls, v: float) -> float:
        if v < 1:
            raise ValueError("backoff_multiplier must be at least 1")
        return v

    @model_validator(mode="after")
    def validate_delay_bounds(self) -> "AgentSettings":
        if self.max_delay < self.initial_delay:
            raise ValueError("max_delay must not be smaller than initial_delay")
        return self

"""
registry.py — Loads endpoints.json and indexes endpoints by id.

One EndpointRegistry is built at startup and handed to every consumer
(payment handler, tool dispatcher). After load() it is read-only, so
concurrent tool calls may share it without locking.
"""

from __future__ import annotations

import json
import logging
import os
import re
from pathlib import Path
from typing import Any, Mapping, Optional, Union

import pydantic

from .errors import ConfigurationError
from .models import Config, Endpoint, WalletConfig
from .validator import validate_config

logger = logging.getLogger("x402_agent.registry")

_ENV_REFERENCE = re.compile(r"\$\{([^}]+)\}")


class EndpointRegistry:
    """
    Owns the resolved configuration for the lifetime of the process.

    Usage:
        registry = EndpointRegistry()
        registry.load(settings.config_path)
        endpoint = registry.get_endpoint("search_web")
    """

    def __init__(self) -> None:
        self._config: Optional[Config] = None
        self._endpoints: dict[str, Endpoint] = {}

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def load(self, path: Union[str, Path]) -> Config:
        """
        Read, resolve, validate and index the configuration file at `path`.

        Replaces any previously loaded configuration.

        Raises:
            ConfigurationError: file missing, invalid JSON, unset ${VAR}
                reference, or any structural violation.
        """
        config_path = Path(path).expanduser()
        try:
            text = config_path.read_text(encoding="utf-8")
        except FileNotFoundError as exc:
            raise ConfigurationError(
                f"Configuration file not found at: {config_path}\n"
                "Please create a configuration file. "
                "See example at: config/endpoints.example.json"
            ) from exc
        except OSError as exc:
            raise ConfigurationError(
                f"Failed to read configuration file {config_path}: {exc}"
            ) from exc

        try:
            document = json.loads(text)
        except json.JSONDecodeError as exc:
            raise ConfigurationError(
                f"Invalid JSON in configuration file: {config_path}\nError: {exc}"
            ) from exc

        logger.debug("Loading configuration: path=%s", config_path)
        return self.load_document(document)

    def load_document(
        self,
        document: Any,
        environ: Optional[Mapping[str, str]] = None,
    ) -> Config:
        """Same pipeline as load(), starting from an already-parsed document."""
        resolved = interpolate_env_vars(document, environ)
        validate_config(resolved)

        try:
            config = Config.model_validate(resolved)
        except pydantic.ValidationError as exc:
            raise ConfigurationError(f"Invalid configuration: {exc}") from exc

        self._config = config
        self._endpoints = {endpoint.id: endpoint for endpoint in config.endpoints}
        logger.info(
            "Configuration loaded: endpoints=%d network=%s",
            len(config.endpoints), config.wallet.network,
        )
        return config

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def get_endpoint(self, endpoint_id: str) -> Optional[Endpoint]:
        """Return the endpoint, or None. An unknown id is the caller's problem."""
        return self._endpoints.get(endpoint_id)

    def get_all_endpoints(self) -> list[Endpoint]:
        return list(self._require_config().endpoints)

    def get_trusted_endpoints(self) -> list[Endpoint]:
        return [e for e in self.get_all_endpoints() if e.trusted]

    def get_wallet_config(self) -> WalletConfig:
        return self._require_config().wallet

    def get_config(self) -> Config:
        return self._require_config()

    def endpoint_ids(self) -> list[str]:
        return [e.id for e in self.get_all_endpoints()]

    def is_trusted_endpoint(self, endpoint_id: str) -> bool:
        endpoint = self.get_endpoint(endpoint_id)
        return endpoint is not None and endpoint.trusted

    def _require_config(self) -> Config:
        if self._config is None:
            raise ConfigurationError("Configuration not loaded. Call load() first.")
        return self._config


# ---------------------------------------------------------------------------
# Environment interpolation
# ---------------------------------------------------------------------------

def interpolate_env_vars(value: Any, environ: Optional[Mapping[str, str]] = None) -> Any:
    """
    Replace ${NAME} in every string of a JSON-like structure.

    Dict keys are left alone; values inside nested dicts and lists are
    resolved. An unset variable raises ConfigurationError naming it.
    """
    env = os.environ if environ is None else environ

    if isinstance(value, str):
        def _substitute(match: re.Match) -> str:
            name = match.group(1)
            if name not in env:
                raise ConfigurationError(
                    f"Environment variable {name} is not set. "
                    "Please set it before starting the server."
                )
            return env[name]

        return _ENV_REFERENCE.sub(_substitute, value)

    if isinstance(value, list):
        return [interpolate_env_vars(item, env) for item in value]

    if isinstance(value, dict):
        return {key: interpolate_env_vars(item, env) for key, item in value.items()}

    return value

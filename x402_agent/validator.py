"""
validator.py — Structural validation of the endpoints.json document.

validate_config() runs before anything is registered and stops at the
first violation it finds. Endpoint-level messages are prefixed with the
endpoint's index so a user can locate the entry in a long file.
"""

from __future__ import annotations

import re
from typing import Any, Mapping
from urllib.parse import urlparse

from .errors import ConfigurationError
from .models import (
    SUPPORTED_METHODS,
    SUPPORTED_NETWORKS,
    SUPPORTED_PROVIDERS,
    SUPPORTED_SCHEMA_TYPES,
)

ENDPOINT_ID_PATTERN = re.compile(r"^[a-z][a-z0-9_]*$")
HEX_KEY_PATTERN = re.compile(r"^0x[0-9a-fA-F]{64}$")
BASE64_KEY_PATTERN = re.compile(r"^[A-Za-z0-9+/]+=*$")
ENV_PLACEHOLDER_PATTERN = re.compile(r"^\$\{[^}]+\}$")

MIN_BASE64_KEY_LENGTH = 32
MIN_DESCRIPTION_LENGTH = 20


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def validate_config(document: Any) -> None:
    """
    Validate a raw configuration document.

    Raises:
        ConfigurationError: describing the first violation found. Endpoint
            violations read "Endpoint at index N: ...".
    """
    if not isinstance(document, Mapping):
        raise ConfigurationError("Configuration must be a valid object")

    if not document.get("wallet"):
        raise ConfigurationError("Configuration missing required field: wallet")
    endpoints = document.get("endpoints")
    if endpoints is None:
        raise ConfigurationError("Configuration missing required field: endpoints")

    validate_wallet_config(document["wallet"])

    if not isinstance(endpoints, list):
        raise ConfigurationError('Field "endpoints" must be an array')
    if not endpoints:
        raise ConfigurationError("Configuration must include at least one endpoint")

    seen_ids: set[str] = set()
    for idx, endpoint in enumerate(endpoints):
        try:
            validate_endpoint(endpoint)
            if endpoint["id"] in seen_ids:
                raise ConfigurationError(f'Duplicate endpoint ID: "{endpoint["id"]}"')
            seen_ids.add(endpoint["id"])
        except ConfigurationError as exc:
            raise ConfigurationError(f"Endpoint at index {idx}: {exc}") from exc


def validate_wallet_config(wallet: Any) -> None:
    if not isinstance(wallet, Mapping):
        raise ConfigurationError("Wallet configuration must be an object")

    provider = wallet.get("provider")
    if not provider:
        raise ConfigurationError("Wallet configuration missing required field: provider")
    if provider not in SUPPORTED_PROVIDERS:
        raise ConfigurationError(
            f'Invalid wallet provider: "{provider}". '
            'Only "cdp-embedded" is currently supported.'
        )

    network = wallet.get("network")
    if not network:
        raise ConfigurationError("Wallet configuration missing required field: network")
    if network not in SUPPORTED_NETWORKS:
        raise ConfigurationError(
            f'Invalid wallet network: "{network}". '
            f"Must be one of: {', '.join(SUPPORTED_NETWORKS)}"
        )

    private_key = wallet.get("privateKey")
    if private_key is None or private_key == "":
        raise ConfigurationError("Wallet configuration missing required field: privateKey")
    if not isinstance(private_key, str):
        raise ConfigurationError("Wallet privateKey must be a string")
    if not is_valid_private_key(private_key):
        raise ConfigurationError(
            "Wallet privateKey must be either:\n"
            "  - A valid hex string starting with 0x (0x...)\n"
            "  - A base64-encoded key\n"
            "  - An environment variable reference (${VAR_NAME})"
        )


def is_valid_private_key(value: str) -> bool:
    """True if value is a 0x hex key, a base64 blob, or an env placeholder."""
    if HEX_KEY_PATTERN.match(value):
        return True
    if BASE64_KEY_PATTERN.match(value) and len(value) >= MIN_BASE64_KEY_LENGTH:
        return True
    return bool(ENV_PLACEHOLDER_PATTERN.match(value))


def validate_endpoint(endpoint: Any) -> None:
    if not isinstance(endpoint, Mapping):
        raise ConfigurationError("Endpoint must be an object")

    endpoint_id = _require_string(endpoint, "id")
    if not ENDPOINT_ID_PATTERN.match(endpoint_id):
        raise ConfigurationError(
            f'Invalid endpoint ID format: "{endpoint_id}". '
            "Must be snake_case (lowercase letters, numbers, underscores only)"
        )

    _require_string(endpoint, "name")

    url = _require_string(endpoint, "url")
    parsed = urlparse(url)
    if not parsed.scheme or not parsed.netloc:
        raise ConfigurationError(f'Invalid URL format: "{url}"')
    if parsed.scheme != "https":
        raise ConfigurationError(f'Endpoint URL must use HTTPS: "{url}"')

    method = endpoint.get("method")
    if not method:
        raise ConfigurationError("Missing required field: method")
    if method not in SUPPORTED_METHODS:
        raise ConfigurationError(
            f'Invalid HTTP method: "{method}". '
            f"Must be one of: {', '.join(SUPPORTED_METHODS)}"
        )

    description = _require_string(endpoint, "description")
    if len(description) < MIN_DESCRIPTION_LENGTH:
        raise ConfigurationError(
            f"Description too short ({len(description)} characters). "
            f"Minimum {MIN_DESCRIPTION_LENGTH} characters required for clear tool descriptions."
        )

    if not endpoint.get("parameters"):
        raise ConfigurationError("Missing required field: parameters")
    validate_parameter_schema(endpoint["parameters"])

    trusted = endpoint.get("trusted")
    if trusted is None:
        raise ConfigurationError("Missing required field: trusted")
    if not isinstance(trusted, bool):
        raise ConfigurationError('Field "trusted" must be a boolean (true or false)')

    for optional in ("category", "estimatedCost"):
        if optional in endpoint and not isinstance(endpoint[optional], str):
            raise ConfigurationError(f'Field "{optional}" must be a string')


def validate_parameter_schema(schema: Any) -> None:
    """
    Structural check of a parameter schema, recursing into properties and
    items so that the typed model built afterwards cannot fail.
    """
    if not isinstance(schema, Mapping):
        raise ConfigurationError("Parameters must be a valid JSON Schema object")

    schema_type = schema.get("type")
    if not schema_type:
        raise ConfigurationError("JSON Schema missing required field: type")
    if schema_type not in SUPPORTED_SCHEMA_TYPES:
        raise ConfigurationError(
            f'Invalid JSON Schema type: "{schema_type}". '
            f"Must be one of: {', '.join(SUPPORTED_SCHEMA_TYPES)}"
        )

    if schema_type == "object":
        properties = schema.get("properties")
        if properties is not None:
            if not isinstance(properties, Mapping):
                raise ConfigurationError('JSON Schema "properties" must be an object')
            for prop in properties.values():
                validate_parameter_schema(prop)
        required = schema.get("required")
        if required is not None:
            if not isinstance(required, list):
                raise ConfigurationError('JSON Schema "required" must be an array')
            if not all(isinstance(name, str) for name in required):
                raise ConfigurationError('JSON Schema "required" must list property names')

    enum = schema.get("enum")
    if enum is not None:
        if not isinstance(enum, list) or not all(isinstance(v, str) for v in enum):
            raise ConfigurationError('JSON Schema "enum" must be an array of strings')

    description = schema.get("description")
    if description is not None and not isinstance(description, str):
        raise ConfigurationError('JSON Schema "description" must be a string')

    if schema_type == "array":
        items = schema.get("items")
        if items is not None:
            if not isinstance(items, Mapping):
                raise ConfigurationError('JSON Schema "items" must be an object')
            validate_parameter_schema(items)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _require_string(endpoint: Mapping, field: str) -> str:
    value = endpoint.get(field)
    if value is None or value == "":
        raise ConfigurationError(f"Missing required field: {field}")
    if not isinstance(value, str):
        raise ConfigurationError(f'Field "{field}" must be a string')
    return value

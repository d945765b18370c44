"""
test_validator.py — Tests for structural validation of endpoints.json.

Covers:
  - Top-level shape (wallet / endpoints presence, empty endpoint list)
  - Wallet provider, network and private key shapes
  - Endpoint id format, URL scheme, method, description length, trusted
  - Parameter schema structure (recursive)
  - Duplicate ids
  - Fail-fast ordering and index annotation

Run with:
    pytest tests/test_validator.py -v
"""

from __future__ import annotations

import pytest

from x402_agent.errors import ConfigurationError
from x402_agent.validator import (
    is_valid_private_key,
    validate_config,
    validate_parameter_schema,
)

# ---------------------------------------------------------------------------
# 1. Top-level shape
# ---------------------------------------------------------------------------

class TestTopLevel:

    def test_valid_document_passes(self, sample_document):
        validate_config(sample_document)  # should not raise

    def test_non_object_rejected(self):
        with pytest.raises(ConfigurationError, match="valid object"):
            validate_config(["not", "an", "object"])

    def test_missing_wallet(self, sample_document):
        del sample_document["wallet"]
        with pytest.raises(ConfigurationError, match="missing required field: wallet"):
            validate_config(sample_document)

    def test_missing_endpoints(self, sample_document):
        del sample_document["endpoints"]
        with pytest.raises(ConfigurationError, match="missing required field: endpoints"):
            validate_config(sample_document)

    def test_empty_endpoints(self, sample_document):
        sample_document["endpoints"] = []
        with pytest.raises(ConfigurationError, match="at least one endpoint"):
            validate_config(sample_document)

    def test_endpoints_not_a_list(self, sample_document):
        sample_document["endpoints"] = {"search_web": {}}
        with pytest.raises(ConfigurationError, match="must be an array"):
            validate_config(sample_document)


# ---------------------------------------------------------------------------
# 2. Wallet
# ---------------------------------------------------------------------------

class TestWallet:

    def test_unsupported_provider(self, sample_document):
        sample_document["wallet"]["provider"] = "metamask"
        with pytest.raises(ConfigurationError, match='Invalid wallet provider: "metamask"'):
            validate_config(sample_document)

    @pytest.mark.parametrize("network", ["base", "base-sepolia", "ethereum", "sepolia"])
    def test_supported_networks(self, sample_document, network):
        sample_document["wallet"]["network"] = network
        validate_config(sample_document)

    def test_unsupported_network(self, sample_document):
        sample_document["wallet"]["network"] = "polygon"
        with pytest.raises(ConfigurationError, match='Invalid wallet network: "polygon"'):
            validate_config(sample_document)

    def test_missing_private_key(self, sample_document):
        del sample_document["wallet"]["privateKey"]
        with pytest.raises(ConfigurationError, match="privateKey"):
            validate_config(sample_document)

    def test_non_string_private_key(self, sample_document):
        sample_document["wallet"]["privateKey"] = 12345
        with pytest.raises(ConfigurationError, match="must be a string"):
            validate_config(sample_document)

    def test_malformed_private_key_lists_accepted_shapes(self, sample_document):
        sample_document["wallet"]["privateKey"] = "0xnot-a-key"
        with pytest.raises(ConfigurationError) as excinfo:
            validate_config(sample_document)
        message = str(excinfo.value)
        assert "hex string" in message
        assert "base64" in message
        assert "${VAR_NAME}" in message


class TestPrivateKeyShapes:

    def test_hex_key(self):
        assert is_valid_private_key("0x" + "ab" * 32)

    def test_hex_key_wrong_length(self):
        assert not is_valid_private_key("0x" + "ab" * 31)

    def test_base64_key(self):
        assert is_valid_private_key("QUJDREVGR0hJSktMTU5PUFFSU1RVVldYWVo0NTY3ODk=")

    def test_short_base64_rejected(self):
        assert not is_valid_private_key("QUJDRA==")

    def test_env_placeholder(self):
        assert is_valid_private_key("${CDP_PRIVATE_KEY}")

    def test_partial_placeholder_rejected(self):
        assert not is_valid_private_key("key-${CDP_PRIVATE_KEY}")


# ---------------------------------------------------------------------------
# 3. Endpoint fields
# ---------------------------------------------------------------------------

class TestEndpointFields:

    @pytest.mark.parametrize("bad_id", ["Get-Data", "1tool", "getData", "_private", "has space"])
    def test_invalid_id_named_in_error(self, sample_document, bad_id):
        sample_document["endpoints"][0]["id"] = bad_id
        with pytest.raises(ConfigurationError) as excinfo:
            validate_config(sample_document)
        assert f'"{bad_id}"' in str(excinfo.value)
        assert "Endpoint at index 0" in str(excinfo.value)

    def test_missing_id(self, sample_document):
        del sample_document["endpoints"][1]["id"]
        with pytest.raises(ConfigurationError, match="index 1: Missing required field: id"):
            validate_config(sample_document)

    def test_name_must_be_string(self, sample_document):
        sample_document["endpoints"][0]["name"] = 42
        with pytest.raises(ConfigurationError, match='"name" must be a string'):
            validate_config(sample_document)

    def test_url_must_parse(self, sample_document):
        sample_document["endpoints"][0]["url"] = "not a url"
        with pytest.raises(ConfigurationError, match="Invalid URL format"):
            validate_config(sample_document)

    def test_url_must_be_https(self, sample_document):
        sample_document["endpoints"][0]["url"] = "http://api.example.com/search"
        with pytest.raises(ConfigurationError, match="must use HTTPS"):
            validate_config(sample_document)

    def test_invalid_method(self, sample_document):
        sample_document["endpoints"][0]["method"] = "HEAD"
        with pytest.raises(ConfigurationError, match='Invalid HTTP method: "HEAD"'):
            validate_config(sample_document)

    def test_lowercase_method_rejected(self, sample_document):
        sample_document["endpoints"][0]["method"] = "get"
        with pytest.raises(ConfigurationError, match="Invalid HTTP method"):
            validate_config(sample_document)

    def test_short_description(self, sample_document):
        sample_document["endpoints"][0]["description"] = "Too short"
        with pytest.raises(ConfigurationError, match=r"Description too short \(9 characters\)"):
            validate_config(sample_document)

    def test_description_of_exactly_twenty_chars_passes(self, sample_document):
        sample_document["endpoints"][0]["description"] = "x" * 20
        validate_config(sample_document)

    def test_missing_parameters(self, sample_document):
        del sample_document["endpoints"][0]["parameters"]
        with pytest.raises(ConfigurationError, match="Missing required field: parameters"):
            validate_config(sample_document)

    def test_missing_trusted(self, sample_document):
        del sample_document["endpoints"][0]["trusted"]
        with pytest.raises(ConfigurationError, match="Missing required field: trusted"):
            validate_config(sample_document)

    def test_trusted_must_be_boolean(self, sample_document):
        sample_document["endpoints"][0]["trusted"] = "yes"
        with pytest.raises(ConfigurationError, match="must be a boolean"):
            validate_config(sample_document)

    def test_false_trusted_is_valid(self, sample_document):
        sample_document["endpoints"][0]["trusted"] = False
        validate_config(sample_document)

    def test_optional_category_must_be_string(self, sample_document):
        sample_document["endpoints"][0]["category"] = ["search"]
        with pytest.raises(ConfigurationError, match='"category" must be a string'):
            validate_config(sample_document)

    def test_optional_estimated_cost_must_be_string(self, sample_document):
        sample_document["endpoints"][0]["estimatedCost"] = 0.01
        with pytest.raises(ConfigurationError, match='"estimatedCost" must be a string'):
            validate_config(sample_document)


# ---------------------------------------------------------------------------
# 4. Parameter schema structure
# ---------------------------------------------------------------------------

class TestParameterSchema:

    def test_missing_type(self):
        with pytest.raises(ConfigurationError, match="missing required field: type"):
            validate_parameter_schema({"properties": {}})

    def test_unknown_type(self):
        with pytest.raises(ConfigurationError, match='Invalid JSON Schema type: "integer"'):
            validate_parameter_schema({"type": "integer"})

    def test_properties_must_be_mapping(self):
        with pytest.raises(ConfigurationError, match='"properties" must be an object'):
            validate_parameter_schema({"type": "object", "properties": ["q"]})

    def test_required_must_be_list(self):
        with pytest.raises(ConfigurationError, match='"required" must be an array'):
            validate_parameter_schema({"type": "object", "required": "q"})

    def test_items_must_be_mapping(self):
        with pytest.raises(ConfigurationError, match='"items" must be an object'):
            validate_parameter_schema({"type": "array", "items": "string"})

    def test_nested_property_type_checked(self):
        schema = {
            "type": "object",
            "properties": {"filters": {"type": "object", "properties": {"x": {"type": "date"}}}},
        }
        with pytest.raises(ConfigurationError, match='"date"'):
            validate_parameter_schema(schema)

    def test_array_without_items_is_structurally_valid(self):
        # Missing items is a conversion-time problem, not a structural one.
        validate_parameter_schema({"type": "array"})

    def test_endpoint_schema_error_carries_index(self, sample_document):
        sample_document["endpoints"][2]["parameters"] = {"type": "null"}
        with pytest.raises(ConfigurationError, match="Endpoint at index 2"):
            validate_config(sample_document)


# ---------------------------------------------------------------------------
# 5. Duplicates and fail-fast
# ---------------------------------------------------------------------------

class TestDuplicatesAndOrdering:

    def test_duplicate_id_reported_with_index(self, sample_document):
        sample_document["endpoints"][2]["id"] = "search_web"
        with pytest.raises(ConfigurationError) as excinfo:
            validate_config(sample_document)
        message = str(excinfo.value)
        assert 'Duplicate endpoint ID: "search_web"' in message
        assert "Endpoint at index 2" in message

    def test_first_violation_wins(self, sample_document):
        sample_document["endpoints"][1]["method"] = "TRACE"
        sample_document["endpoints"][3]["url"] = "http://insecure.example.com"
        with pytest.raises(ConfigurationError) as excinfo:
            validate_config(sample_document)
        assert "index 1" in str(excinfo.value)
        assert "HTTPS" not in str(excinfo.value)

    def test_presence_checked_before_wallet_contents(self, sample_document):
        sample_document["wallet"]["network"] = "solana"
        del sample_document["endpoints"]
        with pytest.raises(ConfigurationError, match="missing required field: endpoints"):
            validate_config(sample_document)

    def test_wallet_checked_before_endpoints(self, sample_document):
        sample_document["wallet"]["network"] = "solana"
        sample_document["endpoints"] = []
        with pytest.raises(ConfigurationError, match="Invalid wallet network"):
            validate_config(sample_document)

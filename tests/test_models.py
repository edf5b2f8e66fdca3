"""Tests for hybrid connection spec validation."""

from __future__ import annotations

from typing import Any

import pytest
from pydantic import ValidationError

from hybrid_connection.models import DEFAULT_SERVICE_BUS_SUFFIX, HybridConnectionSpec


class TestHybridConnectionSpec:
    """Tests for HybridConnectionSpec model."""

    def test_valid_spec(self, spec_data: dict[str, Any]) -> None:
        spec = HybridConnectionSpec.model_validate(spec_data)

        assert spec.app_service_name == "site1"
        assert spec.port == 443
        assert spec.service_bus_suffix == DEFAULT_SERVICE_BUS_SUFFIX
        assert spec.send_key_value.get_secret_value() == "secret"

    def test_camel_case_aliases(self, relay_id: str) -> None:
        """Test that YAML-style camelCase keys are accepted."""
        spec = HybridConnectionSpec.model_validate(
            {
                "appServiceName": "site1",
                "resourceGroupName": "rg1",
                "relayId": relay_id,
                "hostname": "h.example.net",
                "port": 443,
                "serviceBusNamespace": "ns1",
                "serviceBusSuffix": ".servicebus.usgovcloudapi.net",
                "sendKeyName": "key1",
                "sendKeyValue": "secret",
            }
        )

        assert spec.resource_group_name == "rg1"
        assert spec.service_bus_suffix == ".servicebus.usgovcloudapi.net"

    def test_secret_not_in_repr(self, spec_data: dict[str, Any]) -> None:
        spec = HybridConnectionSpec.model_validate(spec_data)

        assert "secret" not in repr(spec.send_key_value)

    @pytest.mark.parametrize("port", [0, 1, 65535])
    def test_port_bounds_accepted(self, spec_data: dict[str, Any], port: int) -> None:
        spec_data["port"] = port
        assert HybridConnectionSpec.model_validate(spec_data).port == port

    @pytest.mark.parametrize("port", [-1, 65536, 100000])
    def test_port_out_of_range(self, spec_data: dict[str, Any], port: int) -> None:
        spec_data["port"] = port

        with pytest.raises(ValidationError) as exc_info:
            HybridConnectionSpec.model_validate(spec_data)

        assert "port" in str(exc_info.value)

    @pytest.mark.parametrize("namespace", ["ns1", "a1", "my-namespace-01", "A" + "b" * 100 + "c"])
    def test_valid_service_bus_namespace(self, spec_data: dict[str, Any], namespace: str) -> None:
        spec_data["service_bus_namespace"] = namespace
        assert HybridConnectionSpec.model_validate(spec_data).service_bus_namespace == namespace

    @pytest.mark.parametrize(
        "namespace",
        [
            "1ns",  # starts with a digit
            "my_namespace",  # underscore
            "ns-",  # ends with a hyphen
            "n",  # too short
            "a" + "b" * 101 + "c",  # too long
            "ns1\n",  # trailing newline
            "",
        ],
    )
    def test_invalid_service_bus_namespace(self, spec_data: dict[str, Any], namespace: str) -> None:
        spec_data["service_bus_namespace"] = namespace

        with pytest.raises(ValidationError) as exc_info:
            HybridConnectionSpec.model_validate(spec_data)

        assert "letters, numbers, and hyphens" in str(exc_info.value)

    @pytest.mark.parametrize("name", ["", "site_1", "a" * 61, "site.1", "site1\n"])
    def test_invalid_app_service_name(self, spec_data: dict[str, Any], name: str) -> None:
        spec_data["app_service_name"] = name

        with pytest.raises(ValidationError):
            HybridConnectionSpec.model_validate(spec_data)

    @pytest.mark.parametrize("name", ["rg.", "rg with spaces", "r" * 91, "", "rg1\n", "rg\u00e9"])
    def test_invalid_resource_group_name(self, spec_data: dict[str, Any], name: str) -> None:
        spec_data["resource_group_name"] = name

        with pytest.raises(ValidationError):
            HybridConnectionSpec.model_validate(spec_data)

    def test_resource_group_name_with_punctuation(self, spec_data: dict[str, Any]) -> None:
        spec_data["resource_group_name"] = "rg_app.prod(1)-eu"
        assert HybridConnectionSpec.model_validate(spec_data).resource_group_name == (
            "rg_app.prod(1)-eu"
        )

    @pytest.mark.parametrize(
        "relay_id",
        [
            "relay1",
            "/subscriptions/sub/resourceGroups/rg1/providers/Microsoft.Relay/namespaces/ns1",
            "/subscriptions/sub/resourceGroups/rg1/providers/Microsoft.Web/sites/site1",
        ],
    )
    def test_invalid_relay_id(self, spec_data: dict[str, Any], relay_id: str) -> None:
        spec_data["relay_id"] = relay_id

        with pytest.raises(ValidationError) as exc_info:
            HybridConnectionSpec.model_validate(spec_data)

        assert "resource id" in str(exc_info.value).lower()

    @pytest.mark.parametrize(
        "field", ["hostname", "service_bus_suffix", "send_key_name", "send_key_value"]
    )
    @pytest.mark.parametrize("value", ["", "   "])
    def test_blank_strings_rejected(
        self, spec_data: dict[str, Any], field: str, value: str
    ) -> None:
        spec_data[field] = value

        with pytest.raises(ValidationError):
            HybridConnectionSpec.model_validate(spec_data)

    @pytest.mark.parametrize("field", ["app_service_name", "hostname", "port", "send_key_value"])
    def test_required_fields(self, spec_data: dict[str, Any], field: str) -> None:
        del spec_data[field]

        with pytest.raises(ValidationError):
            HybridConnectionSpec.model_validate(spec_data)

    def test_relay_reference(self, spec_data: dict[str, Any]) -> None:
        relay = HybridConnectionSpec.model_validate(spec_data).relay_reference()

        assert relay.namespace_name == "ns1"
        assert relay.name == "relay1"

    def test_to_hybrid_connection(self, spec_data: dict[str, Any], relay_id: str) -> None:
        """Test that the SDK payload carries every declared field."""
        payload = HybridConnectionSpec.model_validate(spec_data).to_hybrid_connection("relay1")

        assert payload.service_bus_namespace == "ns1"
        assert payload.relay_name == "relay1"
        assert payload.relay_arm_uri == relay_id
        assert payload.hostname == "h.example.net"
        assert payload.port == 443
        assert payload.send_key_name == "key1"
        assert payload.send_key_value == "secret"
        assert payload.service_bus_suffix == DEFAULT_SERVICE_BUS_SUFFIX

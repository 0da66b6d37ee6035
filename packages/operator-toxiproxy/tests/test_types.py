"""
Tests for Toxiproxy wire types.

These tests verify that:
- Built toxics are named after their kind and stream
- Listed toxics keep the name and type the service reports
- Toxic builders enforce the attribute keys of each kind
- Wire serialization uses the "type" key
- Service responses parse into ProxyConfig
"""

import pytest
from pydantic import ValidationError

from operator_toxiproxy.types import (
    TOXIC_ATTRIBUTES,
    PopulateResponse,
    ProxyConfig,
    Stream,
    Toxic,
    ToxicKind,
    ToxicRecord,
)


class TestToxicName:
    """Tests for the derived toxic name."""

    def test_name_is_kind_and_stream(self):
        toxic = Toxic.build("latency", "downstream", latency=2000, jitter=0)
        assert toxic.name == "latency_downstream"

    def test_listed_name_is_kept(self):
        """A toxic registered under its own name is listed under that name."""
        toxic = ToxicRecord.model_validate({
            "name": "slow_db",
            "type": "bandwidth",
            "stream": "upstream",
            "toxicity": 0.5,
            "attributes": {"rate": 100},
        })
        assert toxic.name == "slow_db"
        assert toxic.known_kind is ToxicKind.BANDWIDTH

    def test_listed_unknown_kind_is_kept(self):
        toxic = ToxicRecord.model_validate({
            "name": "reset_peer_downstream",
            "type": "reset_peer",
            "stream": "downstream",
            "toxicity": 1.0,
            "attributes": {"timeout": 0},
        })
        assert toxic.kind == "reset_peer"
        assert toxic.known_kind is None

    def test_same_kind_and_stream_collide(self):
        first = Toxic.build(ToxicKind.TIMEOUT, Stream.UPSTREAM, timeout=100)
        second = Toxic.build(ToxicKind.TIMEOUT, Stream.UPSTREAM, 0.2, timeout=5000)
        assert first.name == second.name

    def test_toxic_is_immutable(self):
        toxic = Toxic.build("timeout", "upstream", timeout=100)
        with pytest.raises(ValidationError):
            toxic.stream = Stream.DOWNSTREAM


class TestToxicBuild:
    """Tests for Toxic.build() validation."""

    @pytest.mark.parametrize("kind", list(ToxicKind))
    def test_build_accepts_documented_attributes(self, kind):
        attributes = {key: 10 for key in TOXIC_ATTRIBUTES[kind]}
        toxic = Toxic.build(kind, "downstream", **attributes)
        assert toxic.attributes == attributes

    def test_build_rejects_wrong_attributes(self):
        with pytest.raises(ValueError, match="latency toxic takes attributes"):
            Toxic.build("latency", "downstream", rate=100)

    def test_build_rejects_unknown_kind(self):
        with pytest.raises(ValueError):
            Toxic.build("reset_peer", "downstream")

    def test_build_rejects_unknown_stream(self):
        with pytest.raises(ValidationError):
            Toxic.build("bandwidth", "sideways", rate=1)

    @pytest.mark.parametrize("toxicity", [-0.1, 1.5])
    def test_toxicity_must_be_probability(self, toxicity):
        with pytest.raises(ValidationError):
            Toxic.build("bandwidth", "downstream", toxicity, rate=1)

    def test_attributes_must_be_unsigned(self):
        with pytest.raises(ValidationError):
            Toxic.build("slow_close", "downstream", delay=-5)


class TestWireFormat:
    """Tests for to_wire() serialization."""

    def test_toxic_wire_shape(self):
        toxic = Toxic.build("latency", "downstream", 1.0, latency=2000, jitter=0)
        assert toxic.to_wire() == {
            "name": "latency_downstream",
            "type": "latency",
            "stream": "downstream",
            "toxicity": 1.0,
            "attributes": {"latency": 2000, "jitter": 0},
        }

    def test_proxy_config_wire_shape(self):
        config = ProxyConfig(name="socket", listen="localhost:2001", upstream="localhost:2000")
        assert config.to_wire() == {
            "name": "socket",
            "listen": "localhost:2001",
            "upstream": "localhost:2000",
            "enabled": True,
            "toxics": [],
        }


class TestResponseParsing:
    """Tests for parsing service responses."""

    def test_proxy_config_with_toxics(self):
        config = ProxyConfig.model_validate({
            "name": "redis",
            "listen": "[::]:26379",
            "upstream": "redis:6379",
            "enabled": False,
            "toxics": [{
                "name": "slicer_upstream",
                "type": "slicer",
                "stream": "upstream",
                "toxicity": 1,
                "attributes": {"average_size": 64, "size_variation": 8, "delay": 10},
            }],
        })
        assert config.enabled is False
        assert config.toxics[0].kind == "slicer"
        assert config.toxics[0].known_kind is ToxicKind.SLICER
        assert config.toxics[0].attributes["average_size"] == 64

    def test_proxy_config_is_immutable(self):
        config = ProxyConfig(name="socket", listen="localhost:2001", upstream="localhost:2000")
        with pytest.raises(ValidationError):
            config.name = "other"

    def test_populate_response_without_proxies_is_empty(self):
        assert PopulateResponse.model_validate({}).proxies == []

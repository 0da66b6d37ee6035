"""
Pydantic wire types for the Toxiproxy control API.

This module provides Pydantic models for:
- Toxic: one fault effect built by this client
- ToxicRecord: a toxic as listed by the service
- ProxyConfig: the configuration record of a proxy
- PopulateResponse: the envelope returned by POST /populate

Notes:
- The wire name of a toxic's kind is "type"; it is exposed as `kind`.
- A toxic built here is named "{kind}_{stream}". A listed toxic keeps
  whatever name and type the service reports, so toxics registered by
  other tools can still be addressed and deleted.
- Toxic attributes are unsigned integers whose keys depend on the kind.
"""

from enum import Enum
from typing import Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    NonNegativeInt,
    TypeAdapter,
    computed_field,
)


class ToxicKind(str, Enum):
    """Toxic types understood by the control API."""

    LATENCY = "latency"
    BANDWIDTH = "bandwidth"
    SLOW_CLOSE = "slow_close"
    TIMEOUT = "timeout"
    SLICER = "slicer"
    LIMIT_DATA = "limit_data"


class Stream(str, Enum):
    """Direction of data through a proxy."""

    UPSTREAM = "upstream"  # client -> proxy -> target
    DOWNSTREAM = "downstream"  # target -> proxy -> client


# Fixed attribute keys per kind
TOXIC_ATTRIBUTES: dict[ToxicKind, tuple[str, ...]] = {
    ToxicKind.LATENCY: ("latency", "jitter"),
    ToxicKind.BANDWIDTH: ("rate",),
    ToxicKind.SLOW_CLOSE: ("delay",),
    ToxicKind.TIMEOUT: ("timeout",),
    ToxicKind.SLICER: ("average_size", "size_variation", "delay"),
    ToxicKind.LIMIT_DATA: ("bytes",),
}


class Toxic(BaseModel):
    """
    A single fault effect on one stream of a proxy.

    Immutable once built. Two toxics with the same kind and stream share
    a name, so the service treats the second as a replacement.

    Example wire form:
    {
        "name": "latency_downstream",
        "type": "latency",
        "stream": "downstream",
        "toxicity": 1.0,
        "attributes": {"latency": 2000, "jitter": 0}
    }
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    kind: ToxicKind = Field(alias="type")
    stream: Stream
    toxicity: float = Field(default=1.0, ge=0.0, le=1.0)
    attributes: dict[str, NonNegativeInt] = Field(default_factory=dict)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def name(self) -> str:
        return f"{self.kind.value}_{self.stream.value}"

    @classmethod
    def build(
        cls,
        kind: ToxicKind | str,
        stream: Stream | str,
        toxicity: float = 1.0,
        **attributes: int,
    ) -> "Toxic":
        """
        Build a toxic, checking its attribute keys against its kind.

        Args:
            kind: Toxic type, e.g. "latency".
            stream: "upstream" or "downstream".
            toxicity: Probability in [0, 1] that the toxic applies.
            **attributes: Kind-specific numeric parameters.

        Returns:
            The validated Toxic.

        Raises:
            ValueError: If the attribute keys don't match the kind.
            pydantic.ValidationError: On out-of-range values.
        """
        kind = ToxicKind(kind)
        expected = TOXIC_ATTRIBUTES[kind]
        if set(attributes) != set(expected):
            raise ValueError(
                f"{kind.value} toxic takes attributes {list(expected)}, "
                f"got {sorted(attributes)}"
            )
        return cls(
            kind=kind,
            stream=stream,
            toxicity=toxicity,
            attributes={key: attributes[key] for key in expected},
        )

    def to_wire(self) -> dict[str, Any]:
        """Serialize to the JSON shape the control API expects."""
        return self.model_dump(mode="json", by_alias=True)


class ToxicRecord(BaseModel):
    """
    A toxic as reported by GET /proxies/{proxy}/toxics.

    The service may hold toxics this client never built, under any name
    and of kinds it doesn't know (e.g. "reset_peer"). Those are kept as
    plain strings.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str
    kind: str = Field(alias="type")
    stream: str
    toxicity: float = 1.0
    attributes: dict[str, int] = Field(default_factory=dict)

    @property
    def known_kind(self) -> ToxicKind | None:
        """The kind as a ToxicKind, or None for kinds this client can't build."""
        try:
            return ToxicKind(self.kind)
        except ValueError:
            return None


class ProxyConfig(BaseModel):
    """
    Configuration record of a proxy.

    `name` is the unique key on the service. `toxics` is whatever the
    service reported at fetch time and is never updated client-side.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    listen: str
    upstream: str
    enabled: bool = True
    toxics: list[ToxicRecord] = Field(default_factory=list)

    def to_wire(self) -> dict[str, Any]:
        """Serialize to the JSON shape the control API expects."""
        return self.model_dump(mode="json", by_alias=True)


class PopulateResponse(BaseModel):
    """
    Response from POST /populate.

    A missing "proxies" key means nothing was created.
    """

    proxies: list[ProxyConfig] = Field(default_factory=list)


# Shared response parsers
TOXIC_LIST = TypeAdapter(list[ToxicRecord])
PROXY_CONFIG = TypeAdapter(ProxyConfig)
PROXY_MAP = TypeAdapter(dict[str, ProxyConfig])
POPULATE_RESPONSE = TypeAdapter(PopulateResponse)

"""
Toxiproxy control client for fault-injection tests.

This package lets test code drive a Toxiproxy service around calls to a
system under test. It includes:

- ToxiproxyClient: bulk proxy management (populate, reset, listing, lookup)
- Proxy: per-proxy handle with toxic builders and scoped execution
- ControlChannel: lock-guarded HTTP channel shared by all handles
- Pydantic wire types for proxies and toxics
- ToxiproxySettings: environment-based configuration
"""

from operator_toxiproxy.channel import ControlChannel
from operator_toxiproxy.client import ToxiproxyClient
from operator_toxiproxy.config import ToxiproxySettings
from operator_toxiproxy.exceptions import (
    ChannelBusyError,
    ProxyNotFoundError,
    ResponseFormatError,
    ToxicCleanupError,
    ToxicCreationError,
    ToxicNotFoundError,
    ToxiproxyAPIError,
    ToxiproxyError,
    ToxiproxyTransportError,
)
from operator_toxiproxy.factory import (
    create_toxiproxy_client,
    default_client,
    reset_default_client,
)
from operator_toxiproxy.proxy import Proxy
from operator_toxiproxy.types import (
    TOXIC_ATTRIBUTES,
    PopulateResponse,
    ProxyConfig,
    Stream,
    Toxic,
    ToxicKind,
    ToxicRecord,
)

__all__ = [
    # Clients
    "ToxiproxyClient",
    "Proxy",
    "ControlChannel",
    # Factory
    "create_toxiproxy_client",
    "default_client",
    "reset_default_client",
    # Configuration
    "ToxiproxySettings",
    # Wire types
    "Toxic",
    "ToxicKind",
    "ToxicRecord",
    "Stream",
    "TOXIC_ATTRIBUTES",
    "ProxyConfig",
    "PopulateResponse",
    # Errors
    "ToxiproxyError",
    "ToxiproxyTransportError",
    "ChannelBusyError",
    "ToxiproxyAPIError",
    "ProxyNotFoundError",
    "ToxicNotFoundError",
    "ResponseFormatError",
    "ToxicCreationError",
    "ToxicCleanupError",
]

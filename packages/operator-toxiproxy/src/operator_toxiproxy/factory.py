"""
Factory functions for creating Toxiproxy clients.

create_toxiproxy_client builds a client from ToxiproxySettings (or explicit
arguments), optionally around an injected httpx.Client. default_client
returns one process-wide client bound to the configured address.
"""

import threading

import httpx

from operator_toxiproxy.channel import ControlChannel
from operator_toxiproxy.client import ToxiproxyClient
from operator_toxiproxy.config import ToxiproxySettings


def create_toxiproxy_client(
    host: str | None = None,
    port: int | None = None,
    timeout: float | None = None,
    http: httpx.Client | None = None,
    settings: ToxiproxySettings | None = None,
) -> ToxiproxyClient:
    """
    Create a Toxiproxy client.

    Explicit arguments override settings; settings default to the
    environment (TOXIPROXY_HOST, TOXIPROXY_PORT, ...).

    Args:
        host: Control API host (e.g., "127.0.0.1").
        port: Control API port (e.g., 8474).
        timeout: Request and liveness probe timeout in seconds.
        http: Optional pre-configured httpx client. If None, a new client
            is created with base_url and timeout from the settings.
        settings: Optional settings object to start from.

    Returns:
        ToxiproxyClient ready for use.

    Example:
        toxiproxy = create_toxiproxy_client(host="toxiproxy", timeout=2.0)
        if toxiproxy.is_running():
            toxiproxy.reset()
    """
    settings = settings or ToxiproxySettings()
    overrides = {
        key: value
        for key, value in {"host": host, "port": port, "timeout": timeout}.items()
        if value is not None
    }
    if overrides:
        settings = settings.model_copy(update=overrides)

    if http is None:
        http = httpx.Client(base_url=settings.base_url, timeout=settings.timeout)

    channel = ControlChannel(
        http=http,
        lock_timeout=settings.lock_timeout,
        probe_timeout=settings.timeout,
    )
    return ToxiproxyClient(channel=channel)


_default_client: ToxiproxyClient | None = None
_default_lock = threading.Lock()


def default_client() -> ToxiproxyClient:
    """
    Return the process-wide client, creating it on first use.

    Bound to the address in ToxiproxySettings (127.0.0.1:8474 unless the
    environment says otherwise). Lives for the rest of the process.
    """
    global _default_client
    with _default_lock:
        if _default_client is None:
            _default_client = create_toxiproxy_client()
        return _default_client


def reset_default_client() -> None:
    """Drop the process-wide client so the next call rebuilds it."""
    global _default_client
    with _default_lock:
        if _default_client is not None:
            _default_client.close()
        _default_client = None

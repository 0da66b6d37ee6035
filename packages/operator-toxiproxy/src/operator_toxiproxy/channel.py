"""
Serialized access to the Toxiproxy control API.

ControlChannel wraps one injected httpx.Client (base_url set to the
control API) behind a lock. Every proxy handle and the registry client
share the same channel, so at most one control request is in flight at
a time, whichever thread issues it.

HTTP status is not interpreted here. A response with any status is
returned to the caller; only transport failures raise.
"""

import logging
import socket
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any

import httpx

from operator_toxiproxy.exceptions import ChannelBusyError, ToxiproxyTransportError

logger = logging.getLogger(__name__)

JSON_HEADERS = {"Content-Type": "application/json"}


@dataclass
class ControlChannel:
    """
    Lock-guarded control connection shared by all handles.

    Attributes:
        http: Pre-configured httpx.Client with base_url set to the control API.
        lock_timeout: Max seconds to wait for the channel. None blocks.
        probe_timeout: Connect timeout for the liveness probe.

    Example:
        with httpx.Client(base_url="http://127.0.0.1:8474", timeout=10.0) as http:
            channel = ControlChannel(http=http)
            response = channel.get("/version")
            print(response.text)
    """

    http: httpx.Client
    lock_timeout: float | None = None
    probe_timeout: float = 10.0
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)

    def __post_init__(self) -> None:
        if self.lock_timeout is not None and self.lock_timeout <= 0:
            raise ValueError(f"lock_timeout must be positive or None, got {self.lock_timeout}")

    @contextmanager
    def _exclusive(self) -> Iterator[None]:
        timeout = -1 if self.lock_timeout is None else self.lock_timeout
        if not self._lock.acquire(timeout=timeout):
            raise ChannelBusyError(self.lock_timeout or 0.0)
        try:
            yield
        finally:
            self._lock.release()

    def _send(self, method: str, path: str, body: Any = None) -> httpx.Response:
        with self._exclusive():
            try:
                response = self.http.request(
                    method, path, json=body, headers=JSON_HEADERS
                )
            except httpx.TransportError as exc:
                raise ToxiproxyTransportError(method, path, exc) from exc
        logger.debug(f"{method} {path} -> {response.status_code}")
        return response

    def get(self, path: str) -> httpx.Response:
        """Issue GET against `path`."""
        return self._send("GET", path)

    def post(self, path: str, body: Any = None) -> httpx.Response:
        """
        Issue POST against `path`, with an optional JSON body.

        Args:
            path: Path on the control API, e.g. "/reset".
            body: JSON-serializable payload. None sends no body.

        Returns:
            The response, whatever its status.

        Raises:
            ToxiproxyTransportError: If no response was received.
            ChannelBusyError: If the channel stayed locked past lock_timeout.
        """
        return self._send("POST", path, body)

    def delete(self, path: str) -> httpx.Response:
        """Issue DELETE against `path`."""
        return self._send("DELETE", path)

    def is_alive(self) -> bool:
        """
        Check that the control API accepts TCP connections.

        Bypasses HTTP entirely. Never raises.
        """
        url = self.http.base_url
        address = (url.host, url.port or 80)
        try:
            with self._exclusive():
                with socket.create_connection(address, timeout=self.probe_timeout):
                    return True
        except (OSError, ChannelBusyError) as exc:
            logger.warning(f"Toxiproxy at {address[0]}:{address[1]} not reachable: {exc}")
            return False

    def close(self) -> None:
        self.http.close()

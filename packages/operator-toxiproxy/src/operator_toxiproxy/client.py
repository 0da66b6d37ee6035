"""
Registry client for the Toxiproxy control API.

ToxiproxyClient owns the ControlChannel and hands out Proxy handles bound
to it. It covers the bulk operations (populate, reset, listing) and the
lookups test suites start from. find_proxy always returns a proxy with no
toxics registered, so every test begins from a clean baseline.
"""

import logging
from dataclasses import dataclass

from operator_toxiproxy.channel import ControlChannel
from operator_toxiproxy.exceptions import ProxyNotFoundError
from operator_toxiproxy.proxy import Proxy
from operator_toxiproxy.responses import check_status, parse_json
from operator_toxiproxy.types import (
    POPULATE_RESPONSE,
    PROXY_CONFIG,
    PROXY_MAP,
    ProxyConfig,
)

logger = logging.getLogger(__name__)


@dataclass
class ToxiproxyClient:
    """
    Toxiproxy control client sharing one channel with all its proxies.

    Attributes:
        channel: Lock-guarded control channel.

    Example:
        with create_toxiproxy_client() as toxiproxy:
            toxiproxy.reset()
            toxiproxy.populate([ProxyConfig(
                name="socket", listen="localhost:2001", upstream="localhost:2000",
            )])
            proxy = toxiproxy.find_proxy("socket")
            proxy.with_latency("downstream", 2000).apply_then_clear(call_service)
    """

    channel: ControlChannel

    def __enter__(self) -> "ToxiproxyClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        """Close the underlying HTTP client. Proxies from this client stop working."""
        self.channel.close()

    def _wrap(self, config: ProxyConfig) -> Proxy:
        return Proxy(config, self.channel)

    def populate(self, configs: list[ProxyConfig]) -> list[Proxy]:
        """
        Create or replace proxies by name.

        Calls POST /populate with the full list.

        Args:
            configs: Proxy configurations to register.

        Returns:
            Handles on the resulting proxies, in the order the service lists them.

        Raises:
            ToxiproxyAPIError: If the service rejects the list (e.g. a port clash).
            ResponseFormatError: On a malformed response.
            ToxiproxyError: On transport failure.
        """
        response = self.channel.post(
            "/populate", [config.to_wire() for config in configs]
        )
        check_status(response, "populate")
        result = parse_json(response, "populate", POPULATE_RESPONSE)
        logger.info(f"Populated proxies: {[p.name for p in result.proxies]}")
        return [self._wrap(config) for config in result.proxies]

    def reset(self) -> None:
        """
        Enable every proxy and remove every toxic.

        Calls POST /reset. Test suites call this before a run.
        """
        response = self.channel.post("/reset")
        check_status(response, "reset")
        logger.info("Toxiproxy reset")

    def all(self) -> dict[str, Proxy]:
        """
        List every proxy on the service.

        Calls GET /proxies.

        Returns:
            Mapping of proxy name to handle.
        """
        response = self.channel.get("/proxies")
        check_status(response, "proxies")
        configs = parse_json(response, "proxies", PROXY_MAP)
        return {name: self._wrap(config) for name, config in configs.items()}

    def is_running(self) -> bool:
        """Check that the service accepts connections. Never raises."""
        return self.channel.is_alive()

    def version(self) -> str:
        """Return the service version, as the raw response text."""
        response = self.channel.get("/version")
        check_status(response, "version")
        return response.text

    def get_proxy(self, name: str) -> Proxy:
        """
        Fetch one proxy as-is, toxics included.

        Calls GET /proxies/{name}.

        Raises:
            ProxyNotFoundError: If no proxy has that name.
        """
        response = self.channel.get(f"/proxies/{name}")
        check_status(
            response,
            "proxies",
            lambda body: ProxyNotFoundError("proxies", name, body),
        )
        return self._wrap(parse_json(response, "proxies", PROXY_CONFIG))

    def find_proxy(self, name: str) -> Proxy:
        """
        Fetch a proxy and remove any toxics left on it.

        Returns:
            Handle on the proxy, with no toxics registered on the service.

        Raises:
            ProxyNotFoundError: If no proxy has that name.
            ToxicCleanupError: If the leftover toxics could not be removed.
        """
        proxy = self.get_proxy(name)
        proxy.clear_toxics()
        return self._wrap(proxy.config.model_copy(update={"toxics": []}))

    def find_and_reset_proxy(self, name: str) -> Proxy:
        """
        Fetch a proxy, remove its toxics and make sure it is enabled.

        Covers a proxy left disabled by an aborted test.

        Returns:
            Handle on the proxy. Its snapshot reflects the enabled state.
        """
        proxy = self.find_proxy(name)
        proxy.enable()
        return Proxy(proxy.config.model_copy(update={"enabled": True}), self.channel)

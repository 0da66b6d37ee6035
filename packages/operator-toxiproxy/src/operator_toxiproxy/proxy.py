"""
Client handle for one proxy on the Toxiproxy service.

A Proxy pairs a ProxyConfig snapshot with the shared ControlChannel. Test
code declares toxics with the with_* builders (each one registers the
toxic immediately and returns the handle, so calls chain) and then runs
its body under a scope that guarantees cleanup:

    proxy.with_latency("downstream", 2000).with_bandwidth("upstream", 64)
    proxy.apply_then_clear(call_service)

    with proxy.disabled():
        with pytest.raises(ConnectionError):
            call_service()

Cleanup runs on every exit path. When the body raises, its exception is
the one that propagates; a cleanup failure in that case is logged and
added to it as a note.

The config snapshot is never refreshed in place. Use refresh() to read
the current state from the service.
"""

import logging
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import TypeVar

from operator_toxiproxy.channel import ControlChannel
from operator_toxiproxy.exceptions import (
    ProxyNotFoundError,
    ToxicCleanupError,
    ToxicCreationError,
    ToxicNotFoundError,
    ToxiproxyError,
)
from operator_toxiproxy.responses import check_status, parse_json
from operator_toxiproxy.types import (
    PROXY_CONFIG,
    TOXIC_LIST,
    ProxyConfig,
    Stream,
    Toxic,
    ToxicKind,
    ToxicRecord,
)

logger = logging.getLogger(__name__)

R = TypeVar("R")


class Proxy:
    """
    Handle on a named proxy, bound to the shared control channel.

    Attributes:
        config: Snapshot of the proxy configuration at fetch time.
        channel: Control channel shared with the client that created it.
    """

    def __init__(self, config: ProxyConfig, channel: ControlChannel) -> None:
        self.config = config
        self.channel = channel

    def __repr__(self) -> str:
        return (
            f"Proxy(name={self.name!r}, listen={self.listen!r}, "
            f"upstream={self.upstream!r}, enabled={self.enabled})"
        )

    @property
    def name(self) -> str:
        return self.config.name

    @property
    def listen(self) -> str:
        return self.config.listen

    @property
    def upstream(self) -> str:
        return self.config.upstream

    @property
    def enabled(self) -> bool:
        """Enabled flag as of the snapshot, not the live value."""
        return self.config.enabled

    @property
    def _path(self) -> str:
        return f"/proxies/{self.name}"

    def _proxy_missing(self, operation: str) -> Callable[[str], ProxyNotFoundError]:
        return lambda body: ProxyNotFoundError(operation, self.name, body)

    # -------------------------------------------------------------------------
    # Proxy state
    # -------------------------------------------------------------------------

    def enable(self) -> None:
        """
        Enable the proxy. Repeating has no further effect.

        Raises:
            ProxyNotFoundError: If the proxy no longer exists.
            ToxiproxyError: On transport or API failure.
        """
        self._update("enable", {"enabled": True})

    def disable(self) -> None:
        """
        Disable the proxy, making connections through it fail immediately.

        Raises:
            ProxyNotFoundError: If the proxy no longer exists.
            ToxiproxyError: On transport or API failure.
        """
        self._update("disable", {"enabled": False})

    def _update(self, operation: str, payload: dict[str, bool]) -> None:
        response = self.channel.post(self._path, payload)
        check_status(response, operation, self._proxy_missing(operation))
        logger.info(f"Proxy {self.name}: {operation}d")

    def delete(self) -> None:
        """Remove the proxy and all of its toxics from the service."""
        response = self.channel.delete(self._path)
        check_status(response, "delete", self._proxy_missing("delete"))
        logger.info(f"Proxy {self.name}: deleted")

    def refresh(self) -> "Proxy":
        """
        Fetch the current configuration of this proxy.

        Returns:
            A new handle on the same channel; this one is left unchanged.
        """
        response = self.channel.get(self._path)
        check_status(response, "proxies", self._proxy_missing("proxies"))
        return Proxy(parse_json(response, "proxies", PROXY_CONFIG), self.channel)

    # -------------------------------------------------------------------------
    # Toxics
    # -------------------------------------------------------------------------

    def toxics(self) -> list[ToxicRecord]:
        """
        List the toxics registered on the proxy, in service order.

        Raises:
            ProxyNotFoundError: If the proxy no longer exists.
            ResponseFormatError: If the listing can't be parsed.
            ToxiproxyError: On transport or API failure.
        """
        response = self.channel.get(f"{self._path}/toxics")
        check_status(response, "toxics", self._proxy_missing("toxics"))
        return parse_json(response, "toxics", TOXIC_LIST)

    def create_toxic(self, toxic: Toxic) -> "Proxy":
        """
        Register a toxic on the proxy.

        A toxic with the same name (kind and stream) is replaced.

        Args:
            toxic: The toxic to register.

        Returns:
            This handle, so builder calls chain.

        Raises:
            ToxicCreationError: If the toxic could not be registered.
        """
        try:
            response = self.channel.post(f"{self._path}/toxics", toxic.to_wire())
            if response.status_code == 409:
                # Already registered under this name: update it in place
                response = self.channel.post(
                    f"{self._path}/toxics/{toxic.name}", toxic.to_wire()
                )
            check_status(response, "toxics", self._proxy_missing("toxics"))
        except ToxiproxyError as exc:
            raise ToxicCreationError(self.name, toxic.name, exc) from exc

        logger.info(
            f"Proxy {self.name}: toxic {toxic.name} added "
            f"(toxicity={toxic.toxicity}, {toxic.attributes})"
        )
        return self

    def with_latency(
        self,
        stream: Stream | str,
        latency: int,
        jitter: int = 0,
        toxicity: float = 1.0,
    ) -> "Proxy":
        """Add a delay of `latency` +/- `jitter` ms to data on `stream`."""
        return self.create_toxic(
            Toxic.build(
                ToxicKind.LATENCY, stream, toxicity, latency=latency, jitter=jitter
            )
        )

    def with_bandwidth(
        self, stream: Stream | str, rate: int, toxicity: float = 1.0
    ) -> "Proxy":
        """Limit `stream` to `rate` KB/s."""
        return self.create_toxic(
            Toxic.build(ToxicKind.BANDWIDTH, stream, toxicity, rate=rate)
        )

    def with_slow_close(
        self, stream: Stream | str, delay: int, toxicity: float = 1.0
    ) -> "Proxy":
        """Delay the TCP socket close by `delay` ms."""
        return self.create_toxic(
            Toxic.build(ToxicKind.SLOW_CLOSE, stream, toxicity, delay=delay)
        )

    def with_timeout(
        self, stream: Stream | str, timeout: int, toxicity: float = 1.0
    ) -> "Proxy":
        """
        Stop all data on `stream` and close the connection after `timeout` ms.

        A timeout of 0 holds the connection open until the toxic is removed.
        """
        return self.create_toxic(
            Toxic.build(ToxicKind.TIMEOUT, stream, toxicity, timeout=timeout)
        )

    def with_slicer(
        self,
        stream: Stream | str,
        average_size: int,
        size_variation: int,
        delay: int,
        toxicity: float = 1.0,
    ) -> "Proxy":
        """Slice data into packets of about `average_size` bytes, `delay` us apart."""
        return self.create_toxic(
            Toxic.build(
                ToxicKind.SLICER,
                stream,
                toxicity,
                average_size=average_size,
                size_variation=size_variation,
                delay=delay,
            )
        )

    def with_limit_data(
        self, stream: Stream | str, byte_count: int, toxicity: float = 1.0
    ) -> "Proxy":
        """Close the connection once `byte_count` bytes have passed on `stream`."""
        return self.create_toxic(
            Toxic.build(ToxicKind.LIMIT_DATA, stream, toxicity, bytes=byte_count)
        )

    def delete_toxic(self, name: str) -> None:
        """
        Remove one toxic by name.

        Raises:
            ToxicNotFoundError: If no toxic with that name is registered.
            ToxiproxyError: On transport or API failure.
        """
        response = self.channel.delete(f"{self._path}/toxics/{name}")
        check_status(
            response,
            "delete_toxic",
            lambda body: ToxicNotFoundError("delete_toxic", self.name, name, body),
        )

    def clear_toxics(self) -> None:
        """
        Remove every toxic on the proxy, one DELETE each in listing order.

        Stops at the first failed delete; no rollback.

        Raises:
            ToxicCleanupError: With stage "list" or "delete".
        """
        try:
            toxics = self.toxics()
        except ToxiproxyError as exc:
            raise ToxicCleanupError(self.name, "list", exc) from exc

        names = [toxic.name for toxic in toxics]
        for index, name in enumerate(names):
            try:
                self.delete_toxic(name)
            except ToxiproxyError as exc:
                raise ToxicCleanupError(
                    self.name, "delete", exc, toxic=name, remaining=names[index:]
                ) from exc

        if names:
            logger.info(f"Proxy {self.name}: cleared toxics {names}")

    # -------------------------------------------------------------------------
    # Scoped execution
    # -------------------------------------------------------------------------

    def _cleanup_after_failure(
        self, cleanup: Callable[[], None], failure: BaseException
    ) -> None:
        try:
            cleanup()
        except ToxiproxyError as exc:
            logger.error(f"Proxy {self.name}: cleanup after failed body also failed: {exc}")
            failure.add_note(f"Toxiproxy cleanup on {self.name} failed: {exc}")

    @contextmanager
    def disabled(self) -> Iterator["Proxy"]:
        """
        Keep the proxy disabled for the duration of the block.

        The proxy is re-enabled on exit, including when the block raises.
        If disabling fails, the block does not run and nothing is re-enabled.
        """
        self.disable()
        try:
            yield self
        except BaseException as exc:
            self._cleanup_after_failure(self.enable, exc)
            raise
        self.enable()

    @contextmanager
    def toxic_scope(self) -> Iterator["Proxy"]:
        """
        Clear every toxic on the proxy when the block exits.

        Toxics are cleared including when the block raises.
        """
        try:
            yield self
        except BaseException as exc:
            self._cleanup_after_failure(self.clear_toxics, exc)
            raise
        self.clear_toxics()

    def run_disabled(self, body: Callable[..., R], *args, **kwargs) -> R:
        """
        Run `body` with the proxy disabled, then enable it again.

        Args:
            body: Callable run while the proxy is down.
            *args, **kwargs: Passed to body.

        Returns:
            Whatever body returns.

        Raises:
            ToxiproxyError: If disabling or re-enabling fails.
            Any exception raised by body, after the proxy is re-enabled.
        """
        with self.disabled():
            return body(*args, **kwargs)

    def apply_then_clear(self, body: Callable[..., R], *args, **kwargs) -> R:
        """
        Run `body` under the toxics currently registered, then clear them all.

        Args:
            body: Callable run while the toxics are active.
            *args, **kwargs: Passed to body.

        Returns:
            Whatever body returns.

        Raises:
            ToxicCleanupError: If clearing the toxics fails.
            Any exception raised by body, after the toxics are cleared.
        """
        with self.toxic_scope():
            return body(*args, **kwargs)

"""
Shared fixtures for operator-toxiproxy tests.

FakeToxiproxy is an in-memory stand-in for the Toxiproxy control API,
plugged into httpx as a transport. It keeps proxies and toxics the way the
real service does (404 for unknown names, 409 for duplicate toxics) and
can be told to fail individual requests.
"""

import json

import httpx
import pytest
from httpx import Request, Response

from operator_toxiproxy import ProxyConfig, create_toxiproxy_client, reset_default_client


class FakeToxiproxy(httpx.BaseTransport):
    """Mock transport emulating the Toxiproxy control API."""

    version = "2.9.0"

    def __init__(self):
        self.proxies: dict[str, dict] = {}
        self.requests: list[tuple[str, str]] = []
        self._failures: dict[tuple[str, str], Response | Exception] = {}

    def fail(
        self,
        method: str,
        path: str,
        status_code: int = 500,
        exc: Exception | None = None,
    ) -> None:
        """Make the next requests to method+path fail with a status or exception."""
        if exc is not None:
            self._failures[(method, path)] = exc
        else:
            self._failures[(method, path)] = Response(
                status_code, json={"error": "injected failure", "status": status_code}
            )

    def add_proxy(self, name: str, listen: str, upstream: str, **extra) -> dict:
        proxy = {
            "name": name,
            "listen": listen,
            "upstream": upstream,
            "enabled": True,
            "toxics": [],
        }
        proxy.update(extra)
        self.proxies[name] = proxy
        return proxy

    def handle_request(self, request: Request) -> Response:
        method = request.method
        path = request.url.path
        self.requests.append((method, path))

        failure = self._failures.get((method, path))
        if isinstance(failure, Exception):
            raise failure
        if failure is not None:
            return Response(
                failure.status_code, content=failure.content, request=request
            )

        body = json.loads(request.content) if request.content else None
        parts = [p for p in path.split("/") if p]
        status, payload = self._route(method, parts, body)
        if isinstance(payload, str):
            return Response(status, text=payload, request=request)
        if payload is None:
            return Response(status, request=request)
        return Response(status, json=payload, request=request)

    def _route(self, method: str, parts: list[str], body):
        if parts == ["version"] and method == "GET":
            return 200, self.version
        if parts == ["reset"] and method == "POST":
            for proxy in self.proxies.values():
                proxy["enabled"] = True
                proxy["toxics"] = []
            return 204, None
        if parts == ["populate"] and method == "POST":
            created = []
            for item in body:
                proxy = self.add_proxy(item["name"], item["listen"], item["upstream"])
                proxy["enabled"] = item.get("enabled", True)
                created.append(proxy)
            return 201, {"proxies": created}
        if parts == ["proxies"] and method == "GET":
            return 200, self.proxies

        if len(parts) >= 2 and parts[0] == "proxies":
            proxy = self.proxies.get(parts[1])
            if proxy is None:
                return 404, {"error": "proxy not found", "status": 404}
            return self._route_proxy(method, proxy, parts[2:], body)

        return 404, {"error": "not found", "status": 404}

    def _route_proxy(self, method: str, proxy: dict, rest: list[str], body):
        if not rest:
            if method == "GET":
                return 200, proxy
            if method == "POST":
                proxy.update(body)
                return 200, proxy
            if method == "DELETE":
                del self.proxies[proxy["name"]]
                return 204, None

        toxics = proxy["toxics"]
        if rest == ["toxics"]:
            if method == "GET":
                return 200, toxics
            if method == "POST":
                if any(t["name"] == body["name"] for t in toxics):
                    return 409, {"error": "toxic already exists", "status": 409}
                toxics.append(body)
                return 200, body

        if len(rest) == 2 and rest[0] == "toxics":
            index = next(
                (i for i, t in enumerate(toxics) if t["name"] == rest[1]), None
            )
            if index is None:
                return 404, {"error": "toxic not found", "status": 404}
            if method == "POST":
                toxics[index] = body
                return 200, body
            if method == "DELETE":
                del toxics[index]
                return 204, None

        return 405, {"error": "method not allowed", "status": 405}


@pytest.fixture
def fake_toxiproxy():
    """Fresh in-memory Toxiproxy service."""
    return FakeToxiproxy()


@pytest.fixture
def toxiproxy(fake_toxiproxy):
    """ToxiproxyClient wired to the fake service."""
    http = httpx.Client(transport=fake_toxiproxy, base_url="http://toxiproxy:8474")
    with create_toxiproxy_client(http=http) as client:
        yield client


@pytest.fixture
def socket_config():
    """The proxy used throughout the examples."""
    return ProxyConfig(name="socket", listen="localhost:2001", upstream="localhost:2000")


@pytest.fixture
def socket_proxy(toxiproxy, socket_config):
    """The "socket" proxy, populated and fetched with a clean baseline."""
    toxiproxy.populate([socket_config])
    return toxiproxy.find_proxy("socket")


@pytest.fixture(autouse=True)
def _clean_default_client():
    yield
    reset_default_client()

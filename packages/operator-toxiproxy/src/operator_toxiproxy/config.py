"""Environment-based configuration for the Toxiproxy control client."""

from pydantic import PositiveFloat
from pydantic_settings import BaseSettings


class ToxiproxySettings(BaseSettings):
    """Toxiproxy client configuration.

    All settings can be overridden via environment variables with
    TOXIPROXY_ prefix. For example:
        TOXIPROXY_HOST=toxiproxy
        TOXIPROXY_TIMEOUT=2.5
    """

    # Control API address
    host: str = "127.0.0.1"
    port: int = 8474

    # Request and liveness probe timeout, in seconds
    timeout: float = 10.0

    # Max wait for the shared channel; None blocks until it is free
    lock_timeout: PositiveFloat | None = None

    model_config = {"env_prefix": "TOXIPROXY_"}

    @property
    def base_url(self) -> str:
        return f"http://{self.host}:{self.port}"

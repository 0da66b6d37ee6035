"""
Exception classes for Toxiproxy control operations.

Every failure raised by this package derives from ToxiproxyError:
- ToxiproxyTransportError: the control API could not be reached
- ChannelBusyError: the shared control channel could not be acquired
- ToxiproxyAPIError: the control API answered with an error status
  - ProxyNotFoundError / ToxicNotFoundError: the named resource is missing
- ResponseFormatError: a response body had an unexpected shape
- ToxicCreationError: a toxic builder step failed
- ToxicCleanupError: clearing toxics stopped part way

Per project patterns:
- Inherit from Exception for base exception type
- Store context data in attributes for error handling
- Include descriptive message with relevant details
"""


class ToxiproxyError(Exception):
    """Base class for all Toxiproxy client errors."""


class ToxiproxyTransportError(ToxiproxyError):
    """
    Raised when a request never got an HTTP response.

    Covers refused connections, timeouts, DNS and protocol failures.

    Attributes:
        method: HTTP method of the failed request
        path: Request path on the control API
        cause: The underlying transport exception
    """

    def __init__(self, method: str, path: str, cause: Exception) -> None:
        self.method = method
        self.path = path
        self.cause = cause
        super().__init__(f"{method} {path} failed: {cause}")


class ChannelBusyError(ToxiproxyError):
    """
    Raised when the shared control channel stays locked past lock_timeout.

    Attributes:
        timeout: Seconds waited before giving up
    """

    def __init__(self, timeout: float) -> None:
        self.timeout = timeout
        super().__init__(
            f"Control channel still busy after {timeout:.1f}s. "
            f"Another operation is holding it."
        )


class ToxiproxyAPIError(ToxiproxyError):
    """
    Raised when the control API answers with a non-2xx status.

    Attributes:
        operation: Name of the client operation that failed
        status_code: HTTP status returned by the service
        body: Response body text, as returned by the service
    """

    def __init__(self, operation: str, status_code: int, body: str) -> None:
        self.operation = operation
        self.status_code = status_code
        self.body = body
        super().__init__(
            f"<{operation}> has failed with HTTP {status_code}: {body.strip()}"
        )


class ProxyNotFoundError(ToxiproxyAPIError):
    """
    Raised when the service reports that a proxy does not exist.

    Attributes:
        name: The proxy name that was looked up
    """

    def __init__(self, operation: str, name: str, body: str = "") -> None:
        self.name = name
        super().__init__(operation, 404, body or f"proxy {name} not found")


class ToxicNotFoundError(ToxiproxyAPIError):
    """
    Raised when the service reports that a toxic does not exist.

    Attributes:
        proxy: Proxy the toxic was expected on
        toxic: The toxic name that was looked up
    """

    def __init__(self, operation: str, proxy: str, toxic: str, body: str = "") -> None:
        self.proxy = proxy
        self.toxic = toxic
        super().__init__(
            operation, 404, body or f"toxic {toxic} not found on proxy {proxy}"
        )


class ResponseFormatError(ToxiproxyError):
    """
    Raised when a response body cannot be parsed into the expected shape.

    Attributes:
        operation: Name of the client operation that failed
        detail: Parser or validation message
    """

    def __init__(self, operation: str, detail: str) -> None:
        self.operation = operation
        self.detail = detail
        super().__init__(f"<{operation}> returned an unexpected response: {detail}")


class ToxicCreationError(ToxiproxyError):
    """
    Raised when registering a toxic on a proxy fails.

    Aborts a with_* chain: no scoped body runs after a failed step.

    Attributes:
        proxy: Proxy the toxic was being added to
        toxic: Name of the toxic
        cause: The transport or API error behind the failure
    """

    def __init__(self, proxy: str, toxic: str, cause: ToxiproxyError) -> None:
        self.proxy = proxy
        self.toxic = toxic
        self.cause = cause
        super().__init__(
            f"<proxies>.<toxics> creation of {toxic} on {proxy} has failed: {cause}"
        )


class ToxicCleanupError(ToxiproxyError):
    """
    Raised when clearing the toxics of a proxy stops part way.

    No rollback happens: toxics deleted before the failure stay deleted,
    the rest stay registered.

    Attributes:
        proxy: Proxy being cleaned
        stage: "list" when enumeration failed, "delete" when a delete failed
        toxic: Toxic whose delete failed (None for the list stage)
        remaining: Toxic names still registered, in listing order
        cause: The underlying error
    """

    def __init__(
        self,
        proxy: str,
        stage: str,
        cause: ToxiproxyError,
        toxic: str | None = None,
        remaining: list[str] | None = None,
    ) -> None:
        self.proxy = proxy
        self.stage = stage
        self.toxic = toxic
        self.remaining = remaining or []
        self.cause = cause
        target = f" of {toxic}" if toxic else ""
        super().__init__(
            f"Clearing toxics on {proxy} failed at {stage}{target}: {cause}"
        )

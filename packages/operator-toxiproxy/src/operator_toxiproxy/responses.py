"""Status checks and JSON parsing for control API responses."""

from collections.abc import Callable
from typing import TypeVar

import httpx
from pydantic import TypeAdapter, ValidationError

from operator_toxiproxy.exceptions import ResponseFormatError, ToxiproxyAPIError

T = TypeVar("T")


def check_status(
    response: httpx.Response,
    operation: str,
    not_found: Callable[[str], ToxiproxyAPIError] | None = None,
) -> None:
    """
    Raise if the service answered with a non-2xx status.

    Args:
        response: Response returned by the control channel.
        operation: Operation name used in the error message.
        not_found: Builds the error for a 404, given the response body.
            Without it a 404 raises a plain ToxiproxyAPIError.

    Raises:
        ToxiproxyAPIError: On any non-2xx status (or not_found's error on 404).
    """
    if response.is_success:
        return
    if response.status_code == 404 and not_found is not None:
        raise not_found(response.text)
    raise ToxiproxyAPIError(operation, response.status_code, response.text)


def parse_json(response: httpx.Response, operation: str, adapter: TypeAdapter[T]) -> T:
    """
    Validate a response body against `adapter`.

    Raises:
        ResponseFormatError: On malformed JSON or an unexpected shape.
    """
    try:
        return adapter.validate_json(response.content)
    except ValidationError as exc:
        raise ResponseFormatError(operation, str(exc)) from exc

"""Per-request hooks run before the file handlers.

A hook receives the request and a mutable header set; whatever it puts in the
headers is sent with the response, including error and 304 responses.
"""

from collections.abc import Callable, Sequence

from starlette.datastructures import MutableHeaders
from starlette.requests import Request

RequestHook = Callable[[Request, MutableHeaders], None]


def cors_hook(origins: Sequence[str]) -> RequestHook:
    """Build a hook that sets Access-Control-Allow-Origin for allowed origins.

    "*" in origins allows any origin. A request from an origin that is not
    allowed gets no CORS header, so the browser blocks the response.
    """
    allowed = frozenset(origin.rstrip("/") for origin in origins)
    allow_any = "*" in allowed

    def hook(request: Request, headers: MutableHeaders) -> None:
        origin = request.headers.get("origin")
        if allow_any:
            headers["Access-Control-Allow-Origin"] = "*"
            return
        headers["Vary"] = "Origin"
        if origin and origin.rstrip("/") in allowed:
            headers["Access-Control-Allow-Origin"] = origin

    return hook

"""Response hardening for same-origin file serving.

Uploaded files come back from the API's own origin, so a stored HTML or SVG
file must not be able to run script or be framed. Every HTTP response gets a
sandboxing Content-Security-Policy plus no-sniff, no-framing and no-referrer
headers. A header the endpoint (or request hook) already set is left alone.
"""

from typing import Callable

from starlette.datastructures import MutableHeaders

FILE_SANDBOX_POLICY = "; ".join([
    "default-src 'none'",
    "img-src 'self'",
    "media-src 'self'",
    "style-src 'unsafe-inline'",
    "frame-ancestors 'none'",
    "sandbox",
])

DEFAULT_HEADERS = {
    "Content-Security-Policy": FILE_SANDBOX_POLICY,
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "no-referrer",
}


def SecurityHeadersMiddleware(
    app: Callable, headers: dict[str, str] | None = None
) -> Callable:
    """Raw ASGI. `headers` adds to or overrides DEFAULT_HEADERS."""
    defaults = {**DEFAULT_HEADERS, **(headers or {})}

    async def asgi_app(scope: dict, receive: Callable, send: Callable) -> None:
        if scope["type"] != "http":
            await app(scope, receive, send)
            return

        async def send_wrapper(message: dict) -> None:
            if message["type"] == "http.response.start":
                message.setdefault("headers", [])
                response_headers = MutableHeaders(scope=message)
                for name, value in defaults.items():
                    response_headers.setdefault(name, value)
            await send(message)

        await app(scope, receive, send_wrapper)

    return asgi_app

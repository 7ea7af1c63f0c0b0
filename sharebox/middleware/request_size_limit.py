"""Request body size limit middleware.

A declared Content-Length over the limit is rejected before the app runs.
Otherwise bytes are counted as the app pulls them: the body is never
buffered here, so streaming uploads stay streaming. When the count passes
the limit, the client gets 413 and the app sees a disconnect, which makes
it abandon (and discard) the partial upload. The cut-off is recorded as
request.state.body_limit_exceeded so the abandoned upload is not reported
as a server fault.
"""

import json
from typing import Any, Callable

from sharebox.middleware._asgi import get_header

BODY_LIMIT_STATE_KEY = "body_limit_exceeded"


async def _send_413(send: Callable, max_bytes: int, actual: int | None = None) -> None:
    """Send 413 Payload Too Large response."""
    details: dict[str, Any] = {"max_bytes": max_bytes}
    if actual is not None:
        details["content_length"] = actual
    body = json.dumps(
        {
            "error": "PAYLOAD_TOO_LARGE",
            "message": f"Request body must be at most {max_bytes} bytes",
            "details": details,
        }
    ).encode()
    await send({
        "type": "http.response.start",
        "status": 413,
        "headers": [
            (b"content-type", b"application/json"),
            (b"content-length", str(len(body)).encode()),
        ],
    })
    await send({"type": "http.response.body", "body": body, "more_body": False})


def RequestSizeLimitMiddleware(app: Callable, max_bytes: int) -> Callable:
    """Reject request bodies larger than max_bytes. Raw ASGI."""

    async def asgi_app(scope: dict, receive: Callable, send: Callable) -> None:
        if scope["type"] != "http":
            await app(scope, receive, send)
            return

        content_length = get_header(scope, "content-length")
        if content_length:
            try:
                length = int(content_length)
            except ValueError:
                length = None
            if length is not None and length > max_bytes:
                await _send_413(send, max_bytes, length)
                return

        received = 0
        response_started = False
        replaced = False

        async def limited_receive() -> dict:
            nonlocal received, response_started, replaced
            if replaced:
                return {"type": "http.disconnect"}
            message = await receive()
            if message["type"] == "http.request":
                received += len(message.get("body", b""))
                if received > max_bytes:
                    scope.setdefault("state", {})[BODY_LIMIT_STATE_KEY] = True
                    if not response_started:
                        await _send_413(send, max_bytes)
                        response_started = True
                        replaced = True
                    return {"type": "http.disconnect"}
            return message

        async def send_wrapper(message: dict) -> None:
            nonlocal response_started
            if replaced:
                # 413 already sent; whatever the app answers is dropped.
                return
            if message["type"] == "http.response.start":
                response_started = True
            await send(message)

        await app(scope, limited_receive, send_wrapper)

    return asgi_app

"""Tests for the request id, body size limit and security headers middleware."""

import logging
from collections.abc import AsyncIterator

import pytest
from httpx import AsyncClient

from sharebox.infrastructure.external.storage.memory_storage import MemoryStorage
from sharebox.middleware.security_headers import (
    FILE_SANDBOX_POLICY,
    SecurityHeadersMiddleware,
)


async def test_request_id_generated_when_missing(client: AsyncClient) -> None:
    response = await client.get("/health")
    assert response.headers.get("x-request-id")


async def test_request_id_forwarded_when_safe(client: AsyncClient) -> None:
    response = await client.get("/health", headers={"X-Request-ID": "abc-123_DEF"})
    assert response.headers["x-request-id"] == "abc-123_DEF"


async def test_request_id_replaced_when_unsafe(client: AsyncClient) -> None:
    """Values that could inject into logs are replaced with a fresh id."""
    response = await client.get("/health", headers={"X-Request-ID": "../../etc/passwd"})
    assert response.headers["x-request-id"] != "../../etc/passwd"


async def test_declared_length_over_limit_returns_413(
    client: AsyncClient, storage: MemoryStorage
) -> None:
    """max_upload_size is 64 KiB in the test settings."""
    response = await client.post(
        "/upload", files={"file": ("big.bin", b"x" * (65 * 1024), "application/octet-stream")}
    )
    assert response.status_code == 413
    assert response.json()["error"] == "PAYLOAD_TOO_LARGE"
    assert storage.entry_count == 0


async def test_streamed_body_over_limit_returns_413(
    client: AsyncClient, storage: MemoryStorage
) -> None:
    """Chunked bodies are counted as they stream; the partial upload is dropped."""

    async def body() -> AsyncIterator[bytes]:
        yield (
            b"--xyz\r\n"
            b'Content-Disposition: form-data; name="file"; filename="big.bin"\r\n'
            b"Content-Type: application/octet-stream\r\n\r\n"
        )
        for _ in range(80):
            yield b"x" * 1024
        yield b"\r\n--xyz--\r\n"

    response = await client.post(
        "/upload",
        content=body(),
        headers={"Content-Type": "multipart/form-data; boundary=xyz"},
    )
    assert response.status_code == 413
    assert storage.entry_count == 0


async def test_streamed_body_over_limit_is_not_a_fault(
    client: AsyncClient, caplog: pytest.LogCaptureFixture
) -> None:
    """The upload abandoned at the size limit logs no ERROR record."""

    async def body() -> AsyncIterator[bytes]:
        yield (
            b"--xyz\r\n"
            b'Content-Disposition: form-data; name="file"; filename="big.bin"\r\n'
            b"Content-Type: application/octet-stream\r\n\r\n"
        )
        for _ in range(80):
            yield b"x" * 1024
        yield b"\r\n--xyz--\r\n"

    with caplog.at_level(logging.INFO):
        response = await client.post(
            "/upload",
            content=body(),
            headers={"Content-Type": "multipart/form-data; boundary=xyz"},
        )

    assert response.status_code == 413
    assert not [r for r in caplog.records if r.levelno >= logging.ERROR]
    assert any("body size limit" in r.getMessage() for r in caplog.records)


async def _send_through_security_headers(
    app_headers: list[tuple[bytes, bytes]], headers: dict[str, str] | None = None
) -> dict:
    async def inner(scope: dict, receive, send) -> None:
        await send({"type": "http.response.start", "status": 200, "headers": app_headers})
        await send({"type": "http.response.body", "body": b""})

    sent: list[dict] = []

    async def send(message: dict) -> None:
        sent.append(message)

    async def receive() -> dict:
        return {"type": "http.request", "body": b""}

    await SecurityHeadersMiddleware(inner, headers)({"type": "http"}, receive, send)
    return dict(sent[0]["headers"])


async def test_security_headers_keep_values_set_by_the_app() -> None:
    headers = await _send_through_security_headers(
        [(b"x-frame-options", b"SAMEORIGIN"), (b"content-type", b"text/html")]
    )
    assert headers[b"x-frame-options"] == b"SAMEORIGIN"
    assert headers[b"x-content-type-options"] == b"nosniff"
    assert headers[b"content-security-policy"] == FILE_SANDBOX_POLICY.encode()


async def test_security_headers_accept_overrides() -> None:
    headers = await _send_through_security_headers(
        [], headers={"Referrer-Policy": "same-origin"}
    )
    assert headers[b"referrer-policy"] == b"same-origin"
    assert headers[b"x-frame-options"] == b"DENY"


async def test_downloaded_file_is_sandboxed(client: AsyncClient) -> None:
    """A stored HTML upload is served with the sandboxing policy."""
    uploaded = await client.post(
        "/upload", files={"file": ("page.html", b"<script>1</script>", "text/html")}
    )
    response = await client.get(uploaded.text)
    assert response.status_code == 200
    assert response.headers["content-security-policy"] == FILE_SANDBOX_POLICY
    assert response.headers["content-disposition"].startswith("attachment")

"""Pytest configuration and fixtures for sharebox.

HTTP tests run against an app built by sharebox.main.create_app() with an
in-memory storage backend, so no filesystem or network is touched.
"""

from collections.abc import AsyncIterator, Awaitable, Callable

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from sharebox.core.config import Settings
from sharebox.infrastructure.external.storage.memory_storage import MemoryStorage
from sharebox.main import create_app

TEST_PROTOCOL_HOST = "http://test/get/"


@pytest.fixture
def settings() -> Settings:
    """Settings for HTTP tests: memory backend, small buffer, short body limit."""
    return Settings(
        storage_backend="memory",
        protocol_host=TEST_PROTOCOL_HOST,
        buffer_size=64,
        whitelisted_content_types="image/png,text/plain",
        max_upload_size=64 * 1024,
        allowed_origins="",
    )


@pytest.fixture
def storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture
def app(settings: Settings, storage: MemoryStorage) -> FastAPI:
    return create_app(settings=settings, storage=storage)


@pytest.fixture
async def client(app: FastAPI) -> AsyncIterator[AsyncClient]:
    """Async HTTP client against the FastAPI app (ASGI)."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def upload(client: AsyncClient) -> Callable[..., Awaitable[str]]:
    """POST one file and return the URL from the response body."""

    async def _upload(
        data: bytes,
        filename: str = "photo.png",
        content_type: str = "image/png",
    ) -> str:
        response = await client.post(
            "/upload", files={"file": (filename, data, content_type)}
        )
        assert response.status_code == 200, response.text
        return response.text

    return _upload

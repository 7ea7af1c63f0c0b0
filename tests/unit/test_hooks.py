"""Unit tests for the CORS request hook."""

from starlette.datastructures import MutableHeaders
from starlette.requests import Request

from sharebox.core.hooks import cors_hook


def _request(origin: str | None) -> Request:
    headers = [] if origin is None else [(b"origin", origin.encode())]
    return Request({"type": "http", "method": "GET", "path": "/", "headers": headers})


def _run(origins: list[str], origin: str | None) -> MutableHeaders:
    headers = MutableHeaders()
    cors_hook(origins)(_request(origin), headers)
    return headers


def test_allowed_origin_is_echoed() -> None:
    headers = _run(["https://app.example"], "https://app.example")
    assert headers["access-control-allow-origin"] == "https://app.example"
    assert headers["vary"] == "Origin"


def test_trailing_slash_in_config_is_ignored() -> None:
    headers = _run(["https://app.example/"], "https://app.example")
    assert headers["access-control-allow-origin"] == "https://app.example"


def test_disallowed_origin_gets_no_header() -> None:
    headers = _run(["https://app.example"], "https://other.example")
    assert "access-control-allow-origin" not in headers


def test_missing_origin_gets_no_header() -> None:
    assert "access-control-allow-origin" not in _run(["https://app.example"], None)


def test_wildcard_allows_any() -> None:
    headers = _run(["*"], "https://anything.example")
    assert headers["access-control-allow-origin"] == "*"
    assert "vary" not in headers

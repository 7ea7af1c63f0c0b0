"""Streaming multipart/form-data reader over an async byte stream.

Wraps python-multipart's callback parser in a pull-style API: next_part()
returns the next part once its headers are parsed, and part.iter_chunks()
yields body bytes as they arrive. Only as much of the request body is read as
is needed to produce the next event, so a file part is never held in memory.

Usage:
    reader = MultipartReader(request.stream(), parse_boundary(content_type))
    part = await reader.next_part()
    async for chunk in part.iter_chunks():
        ...
"""

from __future__ import annotations

from collections import deque
from collections.abc import AsyncIterable, AsyncIterator
from typing import cast

from python_multipart.exceptions import MultipartParseError
from python_multipart.multipart import MultipartParser, parse_options_header
from starlette.requests import ClientDisconnect

DEFAULT_PART_CONTENT_TYPE = "application/octet-stream"


class MultipartError(Exception):
    """The multipart body could not be read (malformed, truncated, or disconnected)."""


class InvalidContentTypeError(MultipartError):
    """The request Content-Type is not multipart or carries no boundary."""


def parse_boundary(content_type: str | None) -> bytes:
    """Return the boundary of a multipart Content-Type header value.

    Raises:
        InvalidContentTypeError: Header missing, not multipart/*, or no boundary.
    """
    if not content_type:
        raise InvalidContentTypeError("Content-Type header is missing")
    media_type, params = parse_options_header(content_type)
    if not media_type.lower().startswith(b"multipart/"):
        raise InvalidContentTypeError(
            f"Expected a multipart media type, got {media_type.decode('latin-1')!r}"
        )
    boundary = params.get(b"boundary", b"")
    if not boundary:
        raise InvalidContentTypeError("multipart Content-Type has no boundary")
    return boundary


class MultipartPart:
    """One part of a multipart body. Header names are lower-cased."""

    def __init__(self, headers: dict[str, bytes], reader: MultipartReader) -> None:
        self.headers = headers
        self._reader = reader
        self.exhausted = False

    def _disposition_param(self, key: bytes) -> str | None:
        raw = self.headers.get("content-disposition")
        if raw is None:
            return None
        _, params = parse_options_header(raw)
        value = params.get(key)
        if value is None:
            return None
        return value.decode("utf-8", errors="replace")

    @property
    def name(self) -> str | None:
        """Form field name from Content-Disposition."""
        return self._disposition_param(b"name")

    @property
    def filename(self) -> str | None:
        """Client filename from Content-Disposition, or None for plain fields."""
        return self._disposition_param(b"filename")

    @property
    def content_type(self) -> str:
        raw = self.headers.get("content-type")
        if not raw:
            return DEFAULT_PART_CONTENT_TYPE
        return raw.decode("latin-1").strip() or DEFAULT_PART_CONTENT_TYPE

    async def iter_chunks(self) -> AsyncIterator[bytes]:
        """Yield this part's body bytes until the part's closing boundary."""
        while not self.exhausted:
            event = await self._reader._next_event()
            if event is None:
                self.exhausted = True
                raise MultipartError("multipart body ended inside a part")
            kind, payload = event
            if kind == "data":
                yield payload
            elif kind == "end":
                self.exhausted = True
            else:
                raise MultipartError("part headers arrived before the previous part ended")


class MultipartReader:
    """Pull parser for a multipart body delivered as an async byte stream."""

    def __init__(self, stream: AsyncIterable[bytes], boundary: bytes | str) -> None:
        self._stream = stream.__aiter__()
        self._events: deque[tuple[str, object]] = deque()
        self._header_field = bytearray()
        self._header_value = bytearray()
        self._headers: dict[str, bytes] = {}
        self._current: MultipartPart | None = None
        self._stream_done = False
        self._body_complete = False
        callbacks = {
            "on_part_begin": self._on_part_begin,
            "on_part_data": self._on_part_data,
            "on_part_end": self._on_part_end,
            "on_header_field": self._on_header_field,
            "on_header_value": self._on_header_value,
            "on_header_end": self._on_header_end,
            "on_headers_finished": self._on_headers_finished,
            "on_end": self._on_end,
        }
        self._parser = MultipartParser(boundary, callbacks)

    # python-multipart callbacks

    def _on_part_begin(self) -> None:
        self._headers = {}

    def _on_header_field(self, data: bytes, start: int, end: int) -> None:
        self._header_field += data[start:end]

    def _on_header_value(self, data: bytes, start: int, end: int) -> None:
        self._header_value += data[start:end]

    def _on_header_end(self) -> None:
        name = self._header_field.decode("latin-1").strip().lower()
        self._headers[name] = bytes(self._header_value).strip()
        self._header_field.clear()
        self._header_value.clear()

    def _on_headers_finished(self) -> None:
        self._events.append(("part", self._headers))

    def _on_part_data(self, data: bytes, start: int, end: int) -> None:
        if end > start:
            self._events.append(("data", bytes(data[start:end])))

    def _on_part_end(self) -> None:
        self._events.append(("end", None))

    def _on_end(self) -> None:
        self._body_complete = True

    async def _feed(self) -> None:
        try:
            chunk = await self._stream.__anext__()
        except StopAsyncIteration:
            self._stream_done = True
            if not self._body_complete:
                raise MultipartError("multipart body ended before the closing boundary")
            self._parser.finalize()
            return
        except ClientDisconnect as e:
            self._stream_done = True
            raise MultipartError("client disconnected during upload") from e
        if chunk:
            try:
                self._parser.write(chunk)
            except MultipartParseError as e:
                raise MultipartError(str(e)) from e

    async def _next_event(self) -> tuple[str, object] | None:
        while not self._events:
            if self._stream_done:
                return None
            await self._feed()
        return self._events.popleft()

    async def next_part(self) -> MultipartPart | None:
        """Return the next part, or None at a clean end of the body.

        Unread data of the previous part is skipped.

        Raises:
            MultipartError: Malformed or truncated body, or client disconnect.
        """
        if self._current is not None and not self._current.exhausted:
            async for _ in self._current.iter_chunks():
                pass
        while True:
            event = await self._next_event()
            if event is None:
                self._current = None
                return None
            kind, payload = event
            if kind == "part":
                self._current = MultipartPart(cast(dict[str, bytes], payload), self)
                return self._current

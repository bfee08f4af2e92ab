# agent_router/stream/response.py
"""ASGI response that runs the relay against the client connection.

Works like Starlette's ``StreamingResponse`` but hands the relay an explicit
cancel token: a watcher task reads ``receive`` and fires the token on
``http.disconnect``, so the pending upstream read is cancelled right away.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

import httpx
from starlette.responses import Response
from starlette.types import Receive, Scope, Send

from .relay import CancelToken, RelayResult, relay

logger = logging.getLogger(__name__)

EVENT_STREAM_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
}


class ASGISink:
    """Client side of the relay: writes body messages through ``send``."""

    def __init__(self, send: Send, charset: str = "utf-8"):
        self._send = send
        self._charset = charset
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def mark_closed(self) -> None:
        self._closed = True

    async def write(self, text: str) -> None:
        await self._send(
            {"type": "http.response.body", "body": text.encode(self._charset), "more_body": True}
        )

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        await self._send({"type": "http.response.body", "body": b"", "more_body": False})


class RelayResponse(Response):
    media_type = "text/event-stream"

    def __init__(self, upstream: httpx.Response, status_code: int = 200):
        # no body, so no content-length header
        self.status_code = status_code
        self.background = None
        self.init_headers(EVENT_STREAM_HEADERS)
        self.upstream = upstream
        self.result: Optional[RelayResult] = None

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        cancel = CancelToken()
        sink = ASGISink(send, self.charset)

        async def watch_disconnect() -> None:
            while True:
                message = await receive()
                if message["type"] == "http.disconnect":
                    logger.info("Client disconnected, closing stream")
                    sink.mark_closed()
                    cancel.cancel()
                    return

        watcher = asyncio.ensure_future(watch_disconnect())
        try:
            await send(
                {
                    "type": "http.response.start",
                    "status": self.status_code,
                    "headers": self.raw_headers,
                }
            )
            self.result = await relay(self.upstream.aiter_bytes(), sink, cancel)
            if not sink.closed and not cancel.cancelled:
                await sink.close()
        finally:
            watcher.cancel()
            try:
                await watcher
            except asyncio.CancelledError:
                pass
            await self.upstream.aclose()

        if self.background is not None:
            await self.background()

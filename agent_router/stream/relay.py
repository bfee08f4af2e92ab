# agent_router/stream/relay.py
"""Chunked pass-through from an upstream byte stream to a client sink.

``relay`` reads one chunk at a time, decodes it with an incremental UTF-8
decoder, drops upstream keep-alive chunks and writes the rest to the sink.
It stops when the upstream ends, when the sink is already closed, or when the
cancel token fires. In the last case the pending upstream read is cancelled
and nothing more is requested.

A marker split across two chunks is not detected.
"""

from __future__ import annotations

import asyncio
import codecs
import logging
import time
from dataclasses import dataclass
from typing import AsyncIterable, Optional, Protocol

from agent_router.logging_utils import preview

logger = logging.getLogger(__name__)

PROCESSING_MARKER = "OPENROUTER PROCESSING"

COMPLETED = "completed"
CANCELLED = "cancelled"
CLIENT_CLOSED = "client_closed"
FAILED = "failed"


class StreamSink(Protocol):
    @property
    def closed(self) -> bool: ...

    async def write(self, text: str) -> None: ...

    async def close(self) -> None: ...


class CancelToken:
    """One-shot cancellation signal shared by the relay and a disconnect watcher."""

    def __init__(self):
        self._event = asyncio.Event()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        self._event.set()

    async def wait(self) -> None:
        await self._event.wait()


@dataclass
class RelayResult:
    outcome: str
    chunks: int = 0
    bytes: int = 0
    skipped: int = 0
    duration_ms: int = 0

    @property
    def ok(self) -> bool:
        return self.outcome != FAILED


async def _next_chunk(iterator) -> Optional[bytes]:
    # None marks end of stream
    try:
        return await iterator.__anext__()
    except StopAsyncIteration:
        return None


async def _discard(task: Optional[asyncio.Future]) -> None:
    if task is None or task.done():
        return
    task.cancel()
    try:
        await task
    except asyncio.CancelledError:
        pass


async def relay(
    upstream: AsyncIterable[bytes],
    sink: StreamSink,
    cancel: CancelToken,
    marker: str = PROCESSING_MARKER,
) -> RelayResult:
    decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
    iterator = upstream.__aiter__()
    result = RelayResult(outcome=COMPLETED)
    started = time.monotonic()
    read: Optional[asyncio.Future] = None
    waiter: Optional[asyncio.Future] = None

    try:
        while True:
            if cancel.cancelled:
                result.outcome = CANCELLED
                break
            if sink.closed:
                result.outcome = CLIENT_CLOSED
                break

            read = asyncio.ensure_future(_next_chunk(iterator))
            waiter = asyncio.ensure_future(cancel.wait())
            await asyncio.wait({read, waiter}, return_when=asyncio.FIRST_COMPLETED)
            await _discard(waiter)

            if not read.done():
                await _discard(read)
                logger.info("Client disconnected, upstream read cancelled")
                result.outcome = CANCELLED
                break

            value = read.result()
            if value is None:
                tail = decoder.decode(b"", final=True)
                if tail and not sink.closed:
                    await sink.write(tail)
                if not sink.closed:
                    await sink.close()
                result.outcome = COMPLETED
                break

            result.chunks += 1
            result.bytes += len(value)
            text = decoder.decode(value)

            if result.chunks == 1:
                logger.info("First chunk received: %s", preview(text, 100))

            if marker in text:
                logger.debug("Skipping %s message", marker)
                result.skipped += 1
                continue

            if sink.closed:
                logger.info("Response already ended")
                result.outcome = CLIENT_CLOSED
                break

            if text:
                await sink.write(text)
    except Exception:
        logger.exception("Stream error")
        result.outcome = FAILED
        if not sink.closed:
            try:
                await sink.close()
            except Exception:
                logger.debug("Closing the client sink failed", exc_info=True)
    finally:
        await _discard(waiter)
        await _discard(read)

    result.duration_ms = int((time.monotonic() - started) * 1000)
    logger.info(
        "Stream %s - Chunks: %d, Bytes: %d, Skipped: %d, Duration: %dms",
        result.outcome, result.chunks, result.bytes, result.skipped, result.duration_ms,
    )
    return result


__all__ = [
    "relay",
    "CancelToken",
    "RelayResult",
    "StreamSink",
    "PROCESSING_MARKER",
    "COMPLETED",
    "CANCELLED",
    "CLIENT_CLOSED",
    "FAILED",
]

"""Newline-delimited JSON-RPC transport loop.

The loop reads one line at a time and starts one task per request, so a slow
backend call never blocks intake of further lines. Responses are written as
their tasks complete; clients match them to requests by id.
"""

from __future__ import annotations

import asyncio
import logging
import sys
from typing import Any, Dict, Optional, Set, TextIO, Tuple

from roze_bridge.core.errors import MalformedEnvelopeError
from roze_bridge.gateway.redaction import sanitize_error

from .jsonrpc import INTERNAL_ERROR, JsonRpcRequest, encode, error_response, parse_request
from .protocol import McpProtocolHandler

logger = logging.getLogger(__name__)

# Default asyncio limit (64 KiB) is too small for large payload lines.
STREAM_LIMIT_BYTES = 4 * 1024 * 1024


async def connect_stdin(limit: int = STREAM_LIMIT_BYTES) -> Tuple[asyncio.StreamReader, asyncio.ReadTransport]:
    """Return a non-blocking StreamReader attached to the process stdin, and its pipe transport."""
    loop = asyncio.get_running_loop()
    reader = asyncio.StreamReader(limit=limit)
    protocol = asyncio.StreamReaderProtocol(reader)
    pipe, _ = await loop.connect_read_pipe(lambda: protocol, sys.stdin)
    return reader, pipe


class StdioTransport:
    def __init__(
        self,
        handler: McpProtocolHandler,
        reader: asyncio.StreamReader,
        output: TextIO,
        *,
        log: Optional[logging.Logger] = None,
    ) -> None:
        self._handler = handler
        self._reader = reader
        self._output = output
        self._logger = log or logger
        self._tasks: Set[asyncio.Task] = set()
        self._stopped = asyncio.Event()

    @property
    def in_flight(self) -> int:
        return len(self._tasks)

    async def serve(self) -> None:
        """Process input until EOF or ``stop()``, then wait for in-flight requests."""
        stop_waiter = asyncio.ensure_future(self._stopped.wait())
        try:
            while not self._stopped.is_set():
                read = asyncio.ensure_future(self._reader.readline())
                done, _ = await asyncio.wait({read, stop_waiter}, return_when=asyncio.FIRST_COMPLETED)
                if read not in done:
                    read.cancel()
                    break
                try:
                    line = read.result()
                except ValueError as e:
                    self._logger.error("Dropping oversized input line: %s", e)
                    continue
                if not line:
                    break
                self._accept(line)
        finally:
            stop_waiter.cancel()

        if self._tasks:
            self._logger.debug("StdioTransport.serve: waiting for %d in-flight requests", len(self._tasks))
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
        self._logger.info("Input stream closed")

    def stop(self) -> None:
        """Stop reading input and cancel in-flight requests."""
        if self._stopped.is_set():
            return
        self._stopped.set()
        for task in list(self._tasks):
            task.cancel()

    def _accept(self, line: bytes) -> None:
        text = line.strip()
        if not text:
            return
        try:
            request = parse_request(text)
        except MalformedEnvelopeError as e:
            self._logger.error("Failed to parse request: %s", e)
            return
        task = asyncio.create_task(self._handle(request))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _handle(self, request: JsonRpcRequest) -> None:
        try:
            response = await self._handler.handle(request)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            message = sanitize_error(str(e) or type(e).__name__)
            self._logger.error("Request failed: id=%s method=%s: %s", request.id, request.method, message)
            if request.is_notification:
                return
            response = error_response(
                request.id,
                INTERNAL_ERROR,
                "Internal error",
                data={"error": message, "type": type(e).__name__},
            )
        if response is not None:
            self._write(response)

    def _write(self, message: Dict[str, Any]) -> None:
        self._output.write(encode(message) + "\n")
        self._output.flush()

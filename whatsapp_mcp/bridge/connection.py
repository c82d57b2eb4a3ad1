"""
Async NDJSON connection to the WhatsApp Web bridge process.

The bridge (a whatsapp-web.js sidecar) owns the browser session. We talk to
it over a UNIX domain socket, one JSON object per line:

    request:  {"id": "<uuid>", "v": 1, "method": "getChatById", "params": {...}}
    response: {"id": "<uuid>", "ok": true, "result": ...}
              {"id": "<uuid>", "ok": false, "error": {"code", "message", "details"}}
    event:    {"event": "message_create", "data": {...}}

A single reader task owns the socket's read side and routes each response to
the future waiting on its request id, so concurrent calls can be in flight.
"""

from __future__ import annotations

import asyncio
import inspect
import json
import logging
import uuid
from pathlib import Path
from typing import Any, Awaitable, Callable, Optional

logger = logging.getLogger(__name__)

PROTOCOL_VERSION = 1

# Media payloads travel base64-encoded inside a single line
MAX_LINE_BYTES = 64 * 1024 * 1024

# Emitted locally (not by the bridge) when the socket closes
CONNECTION_LOST_EVENT = "connection_lost"


class BridgeError(Exception):
    """The bridge rejected a request (ok=false)."""

    def __init__(self, code: str, message: str, details: Any = None):
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details

    def __str__(self) -> str:
        return self.message


class BridgeConnectionError(BridgeError):
    """The bridge socket is missing, closed, or not connected yet."""


def _json_line(obj: Any) -> bytes:
    return (json.dumps(obj, separators=(",", ":"), default=str) + "\n").encode("utf-8")


def _build_request(method: str, params: dict[str, Any]) -> dict[str, Any]:
    return {"id": str(uuid.uuid4()), "v": PROTOCOL_VERSION, "method": method, "params": params}


class BridgeConnection:
    """Request/response multiplexer plus event fan-out over one socket."""

    def __init__(self, socket_path: Path | str, *, timeout_s: Optional[float] = None):
        self.socket_path = Path(socket_path)
        self.timeout_s = timeout_s
        self._reader: Optional[asyncio.StreamReader] = None
        self._writer: Optional[asyncio.StreamWriter] = None
        self._reader_task: Optional[asyncio.Task] = None
        self._pending: dict[str, asyncio.Future] = {}
        self._handlers: dict[str, list[Callable[[Any], Any]]] = {}
        self._connect_hooks: list[Callable[[], Awaitable[Any]]] = []
        self._background: set[asyncio.Task] = set()
        self._connect_lock = asyncio.Lock()
        self._closed = False

    @property
    def connected(self) -> bool:
        return self._writer is not None and not self._writer.is_closing()

    def on(self, event: str, handler: Callable[[Any], Any]) -> None:
        """Register a handler (sync or async) for a bridge event."""
        self._handlers.setdefault(event, []).append(handler)

    def on_connect(self, hook: Callable[[], Awaitable[Any]]) -> None:
        """Register a coroutine run after every (re)connect."""
        self._connect_hooks.append(hook)

    async def connect(self) -> None:
        """
        Open the socket and run the connect hooks.

        Safe to call concurrently; only one connection attempt runs at a time.
        """
        async with self._connect_lock:
            if self.connected:
                return

            # Friendly error when the bridge isn't running
            if not self.socket_path.exists():
                raise BridgeConnectionError(
                    "BRIDGE_NOT_RUNNING",
                    f"Socket not found: {self.socket_path}",
                    {"socket": str(self.socket_path)},
                )

            self._reader, self._writer = await asyncio.open_unix_connection(
                str(self.socket_path), limit=MAX_LINE_BYTES
            )
            self._closed = False
            self._reader_task = asyncio.create_task(self._read_loop(self._reader, self._writer))
            logger.info(f"Connected to bridge at {self.socket_path}")

            try:
                for hook in self._connect_hooks:
                    await hook()
            except Exception:
                # Next call retries the whole handshake on a fresh socket
                await self._disconnect()
                raise

    async def close(self) -> None:
        """Close the socket for good; later calls no longer reconnect."""
        self._closed = True
        await self._disconnect()

    async def _disconnect(self) -> None:
        writer, self._writer = self._writer, None
        if writer is not None:
            writer.close()
            try:
                await writer.wait_closed()
            except (ConnectionError, OSError):
                pass
        if self._reader_task is not None:
            await asyncio.gather(self._reader_task, return_exceptions=True)
            self._reader_task = None

    async def call(self, method: str, params: Optional[dict[str, Any]] = None) -> Any:
        """
        Send one request and wait for its response.

        A dropped or never-opened socket is reconnected first.

        Returns:
            The response's "result" value (None for "not found" lookups)

        Raises:
            BridgeConnectionError: closed, bridge not running, or the socket
                closed mid-call
            BridgeError: the bridge answered with ok=false
            asyncio.TimeoutError: a configured timeout elapsed
        """
        if self._closed:
            raise BridgeConnectionError("NOT_CONNECTED", "WhatsApp bridge is not connected")
        if not self.connected:
            await self.connect()

        request = _build_request(method, params or {})
        future = asyncio.get_running_loop().create_future()
        self._pending[request["id"]] = future

        try:
            self._writer.write(_json_line(request))
            await self._writer.drain()
            if self.timeout_s:
                response = await asyncio.wait_for(future, self.timeout_s)
            else:
                response = await future
        finally:
            self._pending.pop(request["id"], None)

        if not response.get("ok"):
            err = response.get("error") or {"code": "ERROR", "message": "unknown error", "details": None}
            raise BridgeError(
                err.get("code", "ERROR"),
                err.get("message", "unknown error"),
                err.get("details"),
            )
        return response.get("result")

    async def _read_loop(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        try:
            while True:
                line = await reader.readline()
                if not line:
                    break
                try:
                    msg = json.loads(line.decode("utf-8"))
                except (UnicodeDecodeError, json.JSONDecodeError):
                    logger.warning(f"Discarding malformed bridge line: {line[:200]!r}")
                    continue

                if "event" in msg and "id" not in msg:
                    self._emit(msg["event"], msg.get("data"))
                    continue

                future = self._pending.get(msg.get("id"))
                if future is not None and not future.done():
                    future.set_result(msg)
        except (ConnectionError, OSError) as e:
            logger.warning(f"Bridge connection error: {e}")
        finally:
            writer.close()
            # A newer connection may already own the socket state
            if self._writer is None or self._writer is writer:
                self._writer = None
                self._fail_pending()

    def _fail_pending(self) -> None:
        lost = BridgeConnectionError("DISCONNECTED", "WhatsApp bridge connection closed")
        for future in list(self._pending.values()):
            if not future.done():
                future.set_exception(lost)
        logger.warning("Bridge connection closed")
        self._emit(CONNECTION_LOST_EVENT, None)

    def _emit(self, event: str, data: Any) -> None:
        for handler in self._handlers.get(event, []):
            try:
                result = handler(data)
            except Exception:
                logger.exception(f"Handler for bridge event {event!r} failed")
                continue
            if inspect.isawaitable(result):
                task = asyncio.ensure_future(result)
                self._background.add(task)
                task.add_done_callback(self._on_handler_done)

    def _on_handler_done(self, task: asyncio.Task) -> None:
        self._background.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error("Async bridge event handler failed", exc_info=task.exception())

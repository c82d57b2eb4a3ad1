"""
Session readiness tracking driven by bridge events.

The bridge announces pairing and connection transitions as events:

    qr            -> a pairing code is waiting to be scanned
    authenticated -> the stored session was accepted
    ready         -> the client can serve requests
    disconnected  -> WhatsApp dropped the session; we re-initialize

It also announces every created or edited message, which is how messages
reach the cache without a tool call.
"""

import asyncio
import logging
import sys
from typing import Any, Optional

import qrcode

from .bridge.client import WhatsAppClient
from .bridge.connection import CONNECTION_LOST_EVENT
from .cache import EntityCache

logger = logging.getLogger(__name__)

READY = "ready"


class SessionState:
    """Current pairing/readiness state of the WhatsApp session."""

    def __init__(self, cache: EntityCache, *, console: bool = False):
        self.cache = cache
        self.console = console
        # "" while loading, the QR payload while pairing, READY when usable
        self.status = ""
        self._client: Optional[WhatsAppClient] = None
        self._reconnect_task: Optional[asyncio.Task] = None

    def attach(self, client: WhatsAppClient) -> None:
        """Subscribe to the client's session and message events."""
        self._client = client
        client.on("qr", self.on_qr)
        client.on("authenticated", self.on_authenticated)
        client.on("ready", self.on_ready)
        client.on("disconnected", self.on_disconnected)
        client.on(CONNECTION_LOST_EVENT, self.on_connection_lost)
        client.on("message_create", self.on_message)
        client.on("message_edit", self.on_message)

    @property
    def ready(self) -> bool:
        return self.status == READY

    def snapshot(self) -> dict[str, Any]:
        """Status document: ready flag, "ready" | "qr" | "loading", pending QR."""
        qr = "" if self.ready else self.status
        return {
            "ready": self.ready,
            "status": READY if self.ready else ("qr" if qr else "loading"),
            "qr": qr or None,
        }

    # ------------------------------------------------------------------
    # Event handlers
    # ------------------------------------------------------------------

    def on_qr(self, data: Any) -> None:
        qr = data.get("qr") if isinstance(data, dict) else data
        self.status = str(qr or "")
        logger.info("Pairing code received, waiting for scan")
        if self.console and qr:
            print_qr(str(qr))

    def on_authenticated(self, data: Any) -> None:
        logger.info("Session stored")

    def on_ready(self, data: Any) -> None:
        self.status = READY
        logger.info("Client is ready")

    def on_disconnected(self, data: Any) -> None:
        self.status = ""
        logger.warning(f"Session disconnected: {data}")
        if self._client is not None:
            self._reconnect_task = asyncio.ensure_future(self._reinitialize())

    def on_connection_lost(self, data: Any) -> None:
        self.status = ""

    def on_message(self, data: Any) -> None:
        if self._client is None or not isinstance(data, dict):
            return
        message = self._client.wrap_message(data)
        if message is not None and message.id:
            self.cache.remember_message(message)

    async def _reinitialize(self) -> None:
        try:
            await self._client.initialize()
        except Exception as e:
            logger.error(f"Re-initializing session failed: {e}", exc_info=True)


def print_qr(payload: str) -> None:
    """Render a pairing QR code on stderr (stdout carries MCP traffic)."""
    qr = qrcode.QRCode(box_size=1, border=2)
    qr.add_data(payload)
    qr.make(fit=True)
    qr.print_ascii(out=sys.stderr, invert=True)

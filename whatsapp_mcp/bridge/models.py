"""
Entity handles returned by the WhatsApp Web bridge.

A handle wraps the JSON snapshot the bridge sent for an entity plus the
client it came from, so entity-level operations (pin a chat, block a
contact, download a message's media) can be issued from the handle itself.
Handles are references to state owned by the WhatsApp session; the snapshot
goes stale as soon as the entity changes remotely.
"""

from __future__ import annotations

import base64
import json
import mimetypes
from dataclasses import asdict, dataclass
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any, Optional
from urllib.parse import unquote, urlparse

import httpx

if TYPE_CHECKING:
    from .client import WhatsAppClient


def serialized_id(value: Any) -> str:
    """Extract the serialized id from a whatsapp-web.js id object or string."""
    if isinstance(value, dict):
        return str(value.get("_serialized") or "")
    return str(value or "")


class Handle:
    """Base class for bridge-backed entity handles."""

    def __init__(self, data: dict[str, Any], client: "WhatsAppClient"):
        self._data = dict(data)
        self._client = client

    @property
    def id(self) -> str:
        return serialized_id(self._data.get("id"))

    @property
    def data(self) -> dict[str, Any]:
        return self._data

    def to_dict(self) -> dict[str, Any]:
        return dict(self._data)

    def to_json(self) -> str:
        return json.dumps(self._data, default=str)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(id={self.id!r})"


class Contact(Handle):

    async def get_chat(self) -> Optional["Chat"]:
        result = await self._client.bridge.call("contact.getChat", {"contactId": self.id})
        return self._client.wrap_chat(result)

    async def get_about(self) -> Optional[str]:
        return await self._client.bridge.call("contact.getAbout", {"contactId": self.id})

    async def block(self) -> bool:
        return bool(await self._client.bridge.call("contact.block", {"contactId": self.id}))

    async def unblock(self) -> bool:
        return bool(await self._client.bridge.call("contact.unblock", {"contactId": self.id}))


class Chat(Handle):

    async def get_contact(self) -> Optional[Contact]:
        result = await self._client.bridge.call("chat.getContact", {"chatId": self.id})
        return self._client.wrap_contact(result)

    async def fetch_messages(
        self,
        limit: Optional[int] = None,
        from_me: Optional[bool] = None
    ) -> list["Message"]:
        """Load messages from this chat. Ordering is not guaranteed by the bridge."""
        params: dict[str, Any] = {"chatId": self.id}
        if limit is not None:
            params["limit"] = limit
        if from_me is not None:
            params["fromMe"] = from_me
        result = await self._client.bridge.call("chat.fetchMessages", params)
        return [self._client.wrap_message(m) for m in result or []]

    async def pin(self) -> bool:
        return bool(await self._client.bridge.call("chat.pin", {"chatId": self.id}))

    async def unpin(self) -> bool:
        return bool(await self._client.bridge.call("chat.unpin", {"chatId": self.id}))

    async def mute(self, unmute_date: Optional[datetime] = None) -> None:
        params: dict[str, Any] = {"chatId": self.id}
        if unmute_date is not None:
            params["unmuteDate"] = unmute_date.isoformat()
        await self._client.bridge.call("chat.mute", params)

    async def unmute(self) -> None:
        await self._client.bridge.call("chat.unmute", {"chatId": self.id})


class Message(Handle):

    @property
    def body(self) -> str:
        return self._data.get("body") or ""

    @property
    def timestamp(self) -> int:
        return int(self._data.get("timestamp") or 0)

    @property
    def from_me(self) -> bool:
        return bool(self._data.get("fromMe"))

    async def download_media(self) -> Optional["MessageMedia"]:
        result = await self._client.bridge.call("message.downloadMedia", {"messageId": self.id})
        if not result:
            return None
        return MessageMedia.from_dict(result)


@dataclass
class MessageMedia:
    """
    Media attachment payload: base64 data plus its metadata.

    Unlike the other handles this is a plain value; it is built locally
    (from a file, a URL, or inline data) or received from the bridge.
    """

    mimetype: str
    data: str
    filename: Optional[str] = None
    filesize: Optional[int] = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @property
    def display_name(self) -> str:
        return self.filename or "media"

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "MessageMedia":
        return cls(
            mimetype=payload.get("mimetype") or "application/octet-stream",
            data=payload.get("data") or "",
            filename=payload.get("filename"),
            filesize=payload.get("filesize"),
        )

    @classmethod
    def from_file_path(cls, file_path: str) -> "MessageMedia":
        """Read a local file into a media payload."""
        path = Path(file_path).expanduser()
        raw = path.read_bytes()
        mimetype, _ = mimetypes.guess_type(path.name)
        return cls(
            mimetype=mimetype or "application/octet-stream",
            data=base64.b64encode(raw).decode("ascii"),
            filename=path.name,
            filesize=len(raw),
        )

    @classmethod
    async def from_url(
        cls,
        url: str,
        *,
        filename: Optional[str] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        timeout: float = 60.0
    ) -> "MessageMedia":
        """
        Download a remote file into a media payload.

        The MIME type comes from the Content-Type header, falling back to a
        guess from the URL path.
        """
        if http_client is None:
            async with httpx.AsyncClient(follow_redirects=True) as client:
                response = await client.get(url, timeout=timeout)
        else:
            response = await http_client.get(url, timeout=timeout)
        response.raise_for_status()

        name = filename or Path(unquote(urlparse(url).path)).name or None
        mimetype = response.headers.get("content-type", "").split(";")[0].strip()
        if not mimetype and name:
            mimetype = mimetypes.guess_type(name)[0] or ""

        raw = response.content
        return cls(
            mimetype=mimetype or "application/octet-stream",
            data=base64.b64encode(raw).decode("ascii"),
            filename=name,
            filesize=len(raw),
        )

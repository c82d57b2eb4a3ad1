"""
WhatsApp Web client facade over the bridge connection.

Mirrors the whatsapp-web.js Client surface the MCP tools need. Lookup
methods return None when the bridge reports the entity doesn't exist;
transport and session failures raise BridgeError.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Optional

from .connection import BridgeConnection
from .models import Chat, Contact, Message, MessageMedia, serialized_id

logger = logging.getLogger(__name__)


class WhatsAppClient:
    """Async facade for one WhatsApp Web session hosted by the bridge."""

    def __init__(
        self,
        bridge: BridgeConnection,
        *,
        client_id: str = "default",
        data_path: Optional[str] = None
    ):
        self.bridge = bridge
        self.client_id = client_id
        self.data_path = data_path
        # Every new socket (first connect or reconnect) starts the session first
        bridge.on_connect(self._start_session)

    # ------------------------------------------------------------------
    # Session lifecycle
    # ------------------------------------------------------------------

    def on(self, event: str, handler: Callable[[Any], Any]) -> None:
        self.bridge.on(event, handler)

    async def initialize(self) -> None:
        """Connect to the bridge and start (or resume) the stored session."""
        if self.bridge.connected:
            await self._start_session()
        else:
            await self.bridge.connect()

    async def _start_session(self) -> None:
        params: dict[str, Any] = {"clientId": self.client_id}
        if self.data_path:
            params["dataPath"] = self.data_path
        await self.bridge.call("initialize", params)
        logger.info(f"WhatsApp session '{self.client_id}' initializing")

    async def close(self) -> None:
        await self.bridge.close()

    async def get_info(self) -> dict[str, Any]:
        return await self.bridge.call("getInfo") or {}

    async def get_own_id(self) -> str:
        info = await self.get_info()
        return serialized_id(info.get("wid"))

    # ------------------------------------------------------------------
    # Handle construction
    # ------------------------------------------------------------------

    def wrap_contact(self, data: Optional[dict]) -> Optional[Contact]:
        return Contact(data, self) if data else None

    def wrap_chat(self, data: Optional[dict]) -> Optional[Chat]:
        return Chat(data, self) if data else None

    def wrap_message(self, data: Optional[dict]) -> Optional[Message]:
        return Message(data, self) if data else None

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    async def get_chat_by_id(self, chat_id: str) -> Optional[Chat]:
        return self.wrap_chat(await self.bridge.call("getChatById", {"chatId": chat_id}))

    async def get_contact_by_id(self, contact_id: str) -> Optional[Contact]:
        return self.wrap_contact(await self.bridge.call("getContactById", {"contactId": contact_id}))

    async def get_chats(self) -> list[Chat]:
        return [Chat(c, self) for c in await self.bridge.call("getChats") or []]

    async def get_contacts(self) -> list[Contact]:
        return [Contact(c, self) for c in await self.bridge.call("getContacts") or []]

    async def get_blocked_contacts(self) -> list[Contact]:
        return [Contact(c, self) for c in await self.bridge.call("getBlockedContacts") or []]

    async def search_messages(
        self,
        query: str,
        chat_id: Optional[str] = None,
        limit: Optional[int] = None,
        page: Optional[int] = None
    ) -> list[Message]:
        options = {
            key: value
            for key, value in {"chatId": chat_id, "limit": limit, "page": page}.items()
            if value is not None
        }
        result = await self.bridge.call("searchMessages", {"query": query, "options": options})
        return [Message(m, self) for m in result or []]

    async def get_common_groups(self, contact_id: str) -> list[str]:
        result = await self.bridge.call("getCommonGroups", {"contactId": contact_id})
        return [serialized_id(group_id) for group_id in result or []]

    async def get_profile_pic_url(self, contact_id: str) -> Optional[str]:
        return await self.bridge.call("getProfilePicUrl", {"contactId": contact_id})

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    async def send_message(
        self,
        chat_id: str,
        content: str,
        options: Optional[dict[str, Any]] = None,
        media: Optional[MessageMedia] = None
    ) -> Message:
        params: dict[str, Any] = {"chatId": chat_id, "content": content, "options": dict(options or {})}
        if media is not None:
            params["options"]["media"] = media.to_dict()
        return Message(await self.bridge.call("sendMessage", params), self)

    async def archive_chat(self, chat_id: str) -> bool:
        return bool(await self.bridge.call("archiveChat", {"chatId": chat_id}))

    async def unarchive_chat(self, chat_id: str) -> bool:
        return bool(await self.bridge.call("unarchiveChat", {"chatId": chat_id}))

    async def create_group(self, title: str, participants: list[str]) -> Any:
        """Returns the bridge's group result: an id string or {"gid": ...}."""
        return await self.bridge.call("createGroup", {"title": title, "participants": participants})

    async def set_profile_picture(self, media: MessageMedia) -> bool:
        return bool(await self.bridge.call("setProfilePicture", {"media": media.to_dict()}))

    async def delete_profile_picture(self) -> bool:
        return bool(await self.bridge.call("deleteProfilePicture"))

    async def set_display_name(self, display_name: str) -> bool:
        return bool(await self.bridge.call("setDisplayName", {"displayName": display_name}))

"""
Shared fixtures: an in-memory stand-in for the WhatsApp bridge.

FakeBridge answers the same methods the real bridge does, from plain dicts,
and records every call so tests can assert which round-trips happened.
The real WhatsAppClient and handle classes run on top of it.
"""

import sys
from pathlib import Path
from typing import Any, Optional

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from whatsapp_mcp.bridge import WhatsAppClient
from whatsapp_mcp.cache import EntityCache
from whatsapp_mcp.context import ServerContext


def contact_data(contact_id: str, name: str = "", **extra) -> dict:
    return {"id": {"_serialized": contact_id, "server": "c.us"}, "name": name or contact_id, **extra}


def chat_data(chat_id: str, name: str = "", **extra) -> dict:
    return {"id": {"_serialized": chat_id}, "name": name or chat_id, "isGroup": False, **extra}


def message_data(message_id: str, timestamp: int, body: str = "", from_me: bool = False, **extra) -> dict:
    return {
        "id": {"_serialized": message_id, "fromMe": from_me},
        "timestamp": timestamp,
        "body": body or f"message {message_id}",
        "fromMe": from_me,
        **extra,
    }


class FakeBridge:
    """In-memory bridge. Unknown entities come back as None, like the real one."""

    def __init__(self):
        self.chats: dict[str, dict] = {}
        self.contacts: dict[str, dict] = {}
        self.chat_messages: dict[str, list[dict]] = {}
        self.media: dict[str, dict] = {}
        self.info: dict[str, Any] = {"wid": {"_serialized": "15550000000@c.us"}, "pushname": "Me"}
        self.failures: dict[str, Exception] = {}
        self.calls: list[tuple[str, dict]] = []
        self.handlers: dict[str, list] = {}
        self.connect_hooks: list = []
        self.connected = False
        self._sent = 0

    # Connection surface used by WhatsAppClient
    def on(self, event, handler):
        self.handlers.setdefault(event, []).append(handler)

    def emit(self, event, data=None):
        return [handler(data) for handler in self.handlers.get(event, [])]

    def on_connect(self, hook):
        self.connect_hooks.append(hook)

    async def connect(self):
        if self.connected:
            return
        self.connected = True
        for hook in self.connect_hooks:
            await hook()

    async def close(self):
        self.connected = False

    def count(self, method: str) -> int:
        return sum(1 for name, _ in self.calls if name == method)

    def methods(self) -> list[str]:
        return [name for name, _ in self.calls]

    async def call(self, method: str, params: Optional[dict] = None) -> Any:
        params = params or {}
        self.calls.append((method, params))
        if method in self.failures:
            raise self.failures[method]
        return getattr(self, "_" + method.replace(".", "_"))(params)

    # Client-level methods
    def _initialize(self, params):
        return True

    def _getInfo(self, params):
        return self.info

    def _getChatById(self, params):
        return self.chats.get(params["chatId"])

    def _getContactById(self, params):
        return self.contacts.get(params["contactId"])

    def _getChats(self, params):
        return list(self.chats.values())

    def _getContacts(self, params):
        return list(self.contacts.values())

    def _getBlockedContacts(self, params):
        return [c for c in self.contacts.values() if c.get("isBlocked")]

    def _sendMessage(self, params):
        self._sent += 1
        return message_data(
            f"true_{params['chatId']}_{self._sent}",
            timestamp=1700000000 + self._sent,
            body=params["content"],
            from_me=True,
        )

    def _searchMessages(self, params):
        chat_id = params["options"].get("chatId")
        found = [
            m
            for cid, messages in self.chat_messages.items()
            if chat_id is None or cid == chat_id
            for m in messages
            if params["query"].lower() in m["body"].lower()
        ]
        limit = params["options"].get("limit")
        return found[:limit] if limit else found

    def _archiveChat(self, params):
        return True

    def _unarchiveChat(self, params):
        return True

    def _createGroup(self, params):
        return {"title": params["title"], "gid": {"_serialized": "120363000000000001@g.us"}, "participants": {}}

    def _getCommonGroups(self, params):
        return [{"_serialized": "120363000000000002@g.us"}]

    def _getProfilePicUrl(self, params):
        if params["contactId"] == self.info["wid"]["_serialized"]:
            return "https://pps.whatsapp.net/me.jpg"
        return None

    def _setProfilePicture(self, params):
        return True

    def _deleteProfilePicture(self, params):
        return True

    def _setDisplayName(self, params):
        return True

    # Entity-level methods
    def _contact_getChat(self, params):
        return self.chats.get(params["contactId"])

    def _contact_getAbout(self, params):
        return self.contacts.get(params["contactId"], {}).get("about")

    def _contact_block(self, params):
        return True

    def _contact_unblock(self, params):
        return True

    def _chat_getContact(self, params):
        return self.contacts.get(params["chatId"])

    def _chat_fetchMessages(self, params):
        messages = list(self.chat_messages.get(params["chatId"], []))
        if "fromMe" in params:
            messages = [m for m in messages if m["fromMe"] == params["fromMe"]]
        if "limit" in params:
            messages = messages[-params["limit"]:]
        return messages

    def _chat_pin(self, params):
        return True

    def _chat_unpin(self, params):
        return True

    def _chat_mute(self, params):
        return None

    def _chat_unmute(self, params):
        return None

    def _message_downloadMedia(self, params):
        return self.media.get(params["messageId"])


@pytest.fixture
def bridge():
    return FakeBridge()


@pytest.fixture
def client(bridge):
    return WhatsAppClient(bridge, client_id="test")


@pytest.fixture
def cache():
    return EntityCache()


@pytest.fixture
def ctx(client, cache):
    context = ServerContext(client=client, cache=cache, settings={"server_name": "whatsapp-web-test"})
    context.session.attach(client)
    return context

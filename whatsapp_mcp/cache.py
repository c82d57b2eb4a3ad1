"""
In-process identity maps for entity handles obtained from the chat client.

Each map holds live handles (contacts, chats, messages, media) keyed by the
opaque identifier they were looked up or registered under. Entries are
never evicted; a stale handle stays until it is overwritten by a re-fetch.

A contact and its 1:1 chat share the same identifier by convention of
WhatsApp, so the same key can legitimately live in both the contacts map
and the chats map. Nothing here checks identifier formats.
"""

import logging
from dataclasses import dataclass, field
from typing import Generic, Iterator, Optional, TypeVar

from .bridge.models import Chat, Contact, Message, MessageMedia

logger = logging.getLogger(__name__)

V = TypeVar("V")


class IdentityMap(Generic[V]):
    """Unbounded key -> handle map. Last write for a key wins."""

    def __init__(self, kind: str):
        self.kind = kind
        self._entries: dict[str, V] = {}

    def get(self, key: Optional[str]) -> Optional[V]:
        if key is None:
            return None
        return self._entries.get(key)

    def set(self, key: str, value: V) -> None:
        # Failed lookups are never cached
        if value is None:
            raise ValueError(f"Refusing to cache empty {self.kind} handle for {key!r}")
        self._entries[key] = value
        logger.debug(f"Cached {self.kind}: {key}")

    def keys(self) -> list[str]:
        return list(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._entries))


@dataclass
class EntityCache:
    """The four per-kind identity maps, created once per server process."""

    contacts: IdentityMap[Contact] = field(default_factory=lambda: IdentityMap("contact"))
    chats: IdentityMap[Chat] = field(default_factory=lambda: IdentityMap("chat"))
    messages: IdentityMap[Message] = field(default_factory=lambda: IdentityMap("message"))
    media: IdentityMap[MessageMedia] = field(default_factory=lambda: IdentityMap("media"))

    def remember_message(self, message: Message) -> None:
        """Cache a message under its own serialized id."""
        self.messages.set(message.id, message)

    def stats(self) -> dict[str, int]:
        return {
            "contacts": len(self.contacts),
            "chats": len(self.chats),
            "messages": len(self.messages),
            "media": len(self.media),
        }

"""
WhatsApp Web bridge client.

- connection: NDJSON request/response + events over a UNIX socket
- client: WhatsAppClient facade (lookups, sends, profile operations)
- models: Contact/Chat/Message handles and the MessageMedia payload
"""

from .connection import (
    BridgeConnection,
    BridgeError,
    BridgeConnectionError,
    CONNECTION_LOST_EVENT,
)
from .client import WhatsAppClient
from .models import Chat, Contact, Message, MessageMedia, serialized_id

__all__ = [
    "BridgeConnection",
    "BridgeError",
    "BridgeConnectionError",
    "CONNECTION_LOST_EVENT",
    "WhatsAppClient",
    "Chat",
    "Contact",
    "Message",
    "MessageMedia",
    "serialized_id",
]

"""
Cache-first resolution of chat and contact identifiers.

A 1:1 chat and its contact share one identifier, so whichever of the two a
previous tool call already materialized can stand in for a round-trip:

    resolve_chat(id):    chat cache -> client.get_chat_by_id
                         -> cached contact.get_chat()
                         -> client.get_contact_by_id + .get_chat()
    resolve_contact(id): the mirror image

Whatever is found is cached under the identifier that was asked for. An
identifier that never resolves yields None; "malformed" and "unknown" are
not told apart. Client exceptions propagate to the caller.
"""

import logging
from typing import Optional

from .bridge.client import WhatsAppClient
from .bridge.models import Chat, Contact
from .cache import EntityCache

logger = logging.getLogger(__name__)


async def resolve_chat(
    identifier: Optional[str],
    cache: EntityCache,
    client: WhatsAppClient
) -> Optional[Chat]:
    if not identifier:
        return None

    chat = cache.chats.get(identifier)
    if chat is not None:
        return chat

    chat = await client.get_chat_by_id(identifier)

    if chat is None:
        contact = cache.contacts.get(identifier)
        if contact is None:
            contact = await client.get_contact_by_id(identifier)
            if contact is not None:
                cache.contacts.set(identifier, contact)
        if contact is not None:
            logger.debug(f"Deriving chat {identifier} from its contact")
            chat = await contact.get_chat()

    if chat is None:
        return None

    cache.chats.set(identifier, chat)
    return chat


async def resolve_contact(
    identifier: Optional[str],
    cache: EntityCache,
    client: WhatsAppClient
) -> Optional[Contact]:
    if not identifier:
        return None

    contact = cache.contacts.get(identifier)
    if contact is not None:
        return contact

    contact = await client.get_contact_by_id(identifier)

    if contact is None:
        chat = cache.chats.get(identifier)
        if chat is None:
            chat = await client.get_chat_by_id(identifier)
            if chat is not None:
                cache.chats.set(identifier, chat)
        if chat is not None:
            logger.debug(f"Deriving contact {identifier} from its chat")
            contact = await chat.get_contact()

    if contact is None:
        return None

    cache.contacts.set(identifier, contact)
    return contact

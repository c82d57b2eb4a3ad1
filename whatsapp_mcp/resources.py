"""
URI-addressed read views over cached entities.

    contacts://{contactId}   resolved (cache first, then the client)
    chats://{chatId}         resolved (cache first, then the client)
    messages://{messageId}   message cache only
    media://{mediaId}        media cache only, returned as a blob

The part after "scheme://" may hold several comma-separated ids. Ids that
don't resolve are dropped from the result instead of failing the batch.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional, Union
from urllib.parse import unquote

from mcp import types

from .bridge.connection import BridgeConnectionError, BridgeError
from .context import ServerContext
from .resolution import resolve_chat, resolve_contact
from .utils.responses import JSON_MIME_TYPE, entity_resource, media_resource

logger = logging.getLogger(__name__)

ResourceContents = Union[types.TextResourceContents, types.BlobResourceContents]

RESOURCE_TEMPLATES = [
    types.ResourceTemplate(
        uriTemplate="contacts://{contactId}",
        name="contact",
        description="WhatsApp contact by ID. Comma-separate IDs to read several at once.",
        mimeType=JSON_MIME_TYPE,
    ),
    types.ResourceTemplate(
        uriTemplate="chats://{chatId}",
        name="chat",
        description="WhatsApp chat by ID. Comma-separate IDs to read several at once.",
        mimeType=JSON_MIME_TYPE,
    ),
    types.ResourceTemplate(
        uriTemplate="messages://{messageId}",
        name="message",
        description=(
            "Message previously seen by a tool call or received while the server was running. "
            "Comma-separate IDs to read several at once."
        ),
        mimeType=JSON_MIME_TYPE,
    ),
    types.ResourceTemplate(
        uriTemplate="media://{mediaId}",
        name="media",
        description=(
            "Media registered with create_message_media or download_message_media, "
            "returned as base64 blob contents."
        ),
    ),
]


def parse_resource_uri(uri: str) -> tuple[str, list[str]]:
    """
    Split a resource URI into its scheme and the batch of ids it names.

    >>> parse_resource_uri("chats://1@c.us,2@c.us")
    ('chats', ['1@c.us', '2@c.us'])
    """
    scheme, sep, rest = str(uri).partition("://")
    if not sep or not scheme:
        raise ValueError(f"Invalid resource URI: {uri}")
    ids = [unquote(part) for part in rest.rstrip("/").split(",") if part]
    return scheme, ids


async def _read_contact(identifier: str, ctx: ServerContext) -> Optional[ResourceContents]:
    contact = await resolve_contact(identifier, ctx.cache, ctx.client)
    return entity_resource("contacts", contact) if contact else None


async def _read_chat(identifier: str, ctx: ServerContext) -> Optional[ResourceContents]:
    chat = await resolve_chat(identifier, ctx.cache, ctx.client)
    return entity_resource("chats", chat) if chat else None


async def _read_message(identifier: str, ctx: ServerContext) -> Optional[ResourceContents]:
    message = ctx.cache.messages.get(identifier)
    return entity_resource("messages", message) if message else None


async def _read_media(identifier: str, ctx: ServerContext) -> Optional[ResourceContents]:
    media = ctx.cache.media.get(identifier)
    return media_resource(identifier, media) if media else None


READERS: dict[str, Callable[[str, ServerContext], Awaitable[Optional[ResourceContents]]]] = {
    "contacts": _read_contact,
    "chats": _read_chat,
    "messages": _read_message,
    "media": _read_media,
}


async def _read_one(reader, identifier: str, ctx: ServerContext) -> Optional[ResourceContents]:
    try:
        return await reader(identifier, ctx)
    except BridgeConnectionError:
        raise
    except BridgeError as e:
        # The bridge rejected this particular id; the rest of the batch still counts
        logger.warning(f"Dropping unresolvable resource id {identifier!r}: {e}")
        return None


async def read_resource(uri: str, ctx: ServerContext) -> list[ResourceContents]:
    """
    Read every id named by a resource URI.

    Raises:
        ValueError: malformed URI or unknown scheme
    """
    scheme, ids = parse_resource_uri(uri)
    reader = READERS.get(scheme)
    if reader is None:
        raise ValueError(f"Unknown resource scheme: {scheme}")

    logger.info(f"Resource read: {scheme} x{len(ids)}")
    results = await asyncio.gather(*(_read_one(reader, i, ctx) for i in ids))
    return [item for item in results if item is not None]

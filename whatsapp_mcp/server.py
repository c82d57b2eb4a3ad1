#!/usr/bin/env python3
"""
WhatsApp Web MCP Server - drive a WhatsApp Web session from an MCP client.

Tools cover messaging, contacts, chats, groups, media and the account
profile. Contacts, chats, messages and media seen by any tool are kept in
an in-process cache and can be read back as resources:

    contacts://{id}  chats://{id}  messages://{id}  media://{id}

The WhatsApp session itself lives in a bridge process reached over a UNIX
socket (see whatsapp_mcp.bridge).

Usage:
    whatsapp-mcp [--session NAME] [--config PATH] [--socket PATH] [--console]
"""

import argparse
import asyncio
import logging
from typing import Any, Optional

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp import types

from .bridge import BridgeConnection, BridgeError, WhatsAppClient
from .cache import EntityCache
from .config import load_config, resolve_path, setup_logging
from .context import ServerContext
from .handlers import messaging, reading, contacts, chats, groups, media, profile
from .resources import RESOURCE_TEMPLATES, read_resource
from .session import SessionState
from .utils.errors import handle_client_error
from .utils.responses import ErrorResult, ToolResult, error_response, to_call_tool_content

logger = logging.getLogger(__name__)


class ToolCallError(Exception):
    """Raised at the MCP boundary so the SDK marks the call result isError."""


# =============================================================================
# TOOL DEFINITIONS
# =============================================================================

def _object(properties: dict, required: Optional[list[str]] = None) -> dict:
    return {"type": "object", "properties": properties, "required": required or []}


CHAT_ID = {"type": "string", "description": "Chat ID (e.g. 14155551234@c.us or a group's @g.us ID)"}
CONTACT_ID = {"type": "string", "description": "Contact ID (e.g. 14155551234@c.us)"}
PAGE_LIMIT = {
    "type": "number",
    "description": (
        "Limit the number of items returned. Everything is fetched (and cached), "
        "this only limits the response"
    ),
}
PAGE = {"type": "number", "description": "Page number, starting at 1 (default: 1)"}


def list_tool_definitions() -> list[types.Tool]:
    """All tools exposed by the server."""
    return [
        types.Tool(
            name="send_message",
            description="Send a message to a specific chatId",
            inputSchema=_object({
                "chatId": CHAT_ID,
                "content": {"type": "string", "description": "Message content"},
                "options": {
                    "type": "object",
                    "properties": {
                        "quotedMessageId": {"type": "string", "description": "Quoted message ID"},
                        "mediaId": {
                            "type": "string",
                            "description": "Message media ID (from create_message_media or download_message_media)"
                        },
                        "caption": {"type": "string", "description": "Image or video caption for media"},
                        "mentions": {
                            "type": "array",
                            "items": {"type": "string"},
                            "description": "User IDs to mention in the message"
                        },
                        "sendMediaAsSticker": {"type": "boolean", "description": "Send media as a sticker"},
                        "sendSeen": {"type": "boolean", "description": "Send seen status. Default is true"},
                    },
                },
            }, ["chatId", "content"]),
        ),
        types.Tool(
            name="get_contact",
            description="Get contact instance by ID. A 1:1 chat ID works as well",
            inputSchema=_object({"contactId": CONTACT_ID, "chatId": CHAT_ID}),
        ),
        types.Tool(
            name="get_contacts",
            description="Get all current contact instances",
            inputSchema=_object({"limit": PAGE_LIMIT, "page": PAGE}),
        ),
        types.Tool(
            name="get_chat",
            description="Get chat instance by ID. A contact ID returns the 1:1 chat with that contact",
            inputSchema=_object({"chatId": CHAT_ID, "contactId": CONTACT_ID}),
        ),
        types.Tool(
            name="get_chats",
            description="Get all current chat instances",
            inputSchema=_object({"limit": PAGE_LIMIT, "page": PAGE}),
        ),
        types.Tool(
            name="search_messages",
            description="Searches for messages",
            inputSchema=_object({
                "query": {"type": "string", "description": "Search query"},
                "options": {
                    "type": "object",
                    "properties": {
                        "chatId": CHAT_ID,
                        "limit": {"type": "number", "description": "Limit the number of messages returned"},
                        "page": PAGE,
                    },
                },
            }, ["query"]),
        ),
        types.Tool(
            name="fetch_messages",
            description="Loads chat messages, sorted from earliest to latest",
            inputSchema=_object({
                "chatId": CHAT_ID,
                "fromMe": {
                    "type": "boolean",
                    "description": (
                        "Return only messages sent from this account (true) or only received ones (false). "
                        "Leave unset to get all messages"
                    ),
                },
                "limit": {
                    "type": "number",
                    "description": (
                        "The amount of most recent messages to return. Fewer are returned if the "
                        "conversation doesn't have enough"
                    ),
                },
            }, ["chatId"]),
        ),
        types.Tool(
            name="get_contact_about",
            description=(
                "Gets the contact's current \"about\" info. Returns \"\" if you don't have "
                "permission to read their status"
            ),
            inputSchema=_object({"contactId": CONTACT_ID}, ["contactId"]),
        ),
        types.Tool(
            name="get_contact_common_groups",
            description=(
                "Gets the group IDs you have in common with a contact, as a JSON array. "
                "Empty array if there are none"
            ),
            inputSchema=_object({"contactId": CONTACT_ID}, ["contactId"]),
        ),
        types.Tool(
            name="get_contact_profile_pic_url",
            description="Returns the contact's profile picture URL, if privacy settings allow it",
            inputSchema=_object({"contactId": CONTACT_ID}, ["contactId"]),
        ),
        types.Tool(
            name="archive_chat",
            description="Archives a chat",
            inputSchema=_object({"chatId": CHAT_ID}, ["chatId"]),
        ),
        types.Tool(
            name="unarchive_chat",
            description="Unarchives a chat",
            inputSchema=_object({"chatId": CHAT_ID}, ["chatId"]),
        ),
        types.Tool(
            name="pin_chat",
            description="Pins a chat",
            inputSchema=_object({"chatId": CHAT_ID}, ["chatId"]),
        ),
        types.Tool(
            name="unpin_chat",
            description="Unpins a chat",
            inputSchema=_object({"chatId": CHAT_ID}, ["chatId"]),
        ),
        types.Tool(
            name="mute_chat",
            description="Mutes a chat until a given date, or indefinitely",
            inputSchema=_object({
                "chatId": CHAT_ID,
                "unmuteDate": {"type": "string", "description": "Unmute date in ISO 8601 format"},
            }, ["chatId"]),
        ),
        types.Tool(
            name="unmute_chat",
            description="Unmutes a chat",
            inputSchema=_object({"chatId": CHAT_ID}, ["chatId"]),
        ),
        types.Tool(
            name="block_contact",
            description="Blocks a contact",
            inputSchema=_object({"contactId": CONTACT_ID}, ["contactId"]),
        ),
        types.Tool(
            name="unblock_contact",
            description="Unblocks a contact",
            inputSchema=_object({"contactId": CONTACT_ID}, ["contactId"]),
        ),
        types.Tool(
            name="get_blocked_contacts",
            description="Retrieves all blocked contacts",
            inputSchema=_object({}),
        ),
        types.Tool(
            name="create_group",
            description="Creates a new group and returns its ID",
            inputSchema=_object({
                "title": {"type": "string", "description": "Group title"},
                "participants": {
                    "type": "array",
                    "items": {"type": "string"},
                    "description": "Contact IDs",
                },
            }, ["title", "participants"]),
        ),
        types.Tool(
            name="create_message_media",
            description=(
                "Creates a new message media reference for other tools (send_message, "
                "set_profile_picture). Provide exactly one of resource, fromFilePath, fromUrl"
            ),
            inputSchema=_object({
                "id": {"type": "string", "description": "Message media ID reference"},
                "resource": {
                    "type": "object",
                    "description": "Create message media from inline data",
                    "properties": {
                        "mimetype": {"type": "string", "description": "MIME type of the attachment"},
                        "data": {"type": "string", "description": "Base64-encoded data of the file"},
                        "filename": {"type": ["string", "null"], "description": "Document file name"},
                        "filesize": {"type": ["number", "null"], "description": "Document file size in bytes"},
                    },
                    "required": ["mimetype", "data"],
                },
                "fromFilePath": {"type": "string", "description": "Create message media from a local file"},
                "fromUrl": {"type": "string", "description": "Create message media from an http(s) URL"},
            }, ["id"]),
        ),
        types.Tool(
            name="download_message_media",
            description=(
                "Downloads the media attached to a message. The media is registered as "
                "media://{messageId}/{filename}"
            ),
            inputSchema=_object({
                "messageId": {"type": "string", "description": "Message ID"},
            }, ["messageId"]),
        ),
        types.Tool(
            name="get_profile_picture",
            description="Gets a profile picture URL, by default the connected account's",
            inputSchema=_object({
                "contactId": {
                    "type": "string",
                    "description": "Contact ID. If not provided, the profile picture of the client is returned",
                },
            }),
        ),
        types.Tool(
            name="set_profile_picture",
            description="Sets the client's profile picture",
            inputSchema=_object({
                "mediaId": {"type": "string", "description": "Message media ID"},
            }, ["mediaId"]),
        ),
        types.Tool(
            name="delete_profile_picture",
            description="Removes the current user's profile picture",
            inputSchema=_object({}),
        ),
        types.Tool(
            name="set_display_name",
            description="Sets the client's display name",
            inputSchema=_object({
                "displayName": {"type": "string", "description": "New display name"},
            }, ["displayName"]),
        ),
        types.Tool(
            name="get_info",
            description="Gets the client's information",
            inputSchema=_object({}),
        ),
        types.Tool(
            name="client_status",
            description=(
                "Get client session status: ready flag, status (ready | qr | loading) "
                "and the pending pairing QR code, if any"
            ),
            inputSchema=_object({}),
        ),
    ]


# =============================================================================
# TOOL DISPATCHER WITH REGISTRY PATTERN
# =============================================================================

TOOL_REGISTRY = {
    # Messaging handlers
    "send_message": messaging.handle_send_message,

    # Reading handlers
    "fetch_messages": reading.handle_fetch_messages,
    "search_messages": reading.handle_search_messages,

    # Contacts handlers
    "get_contact": contacts.handle_get_contact,
    "get_contacts": contacts.handle_get_contacts,
    "get_blocked_contacts": contacts.handle_get_blocked_contacts,
    "get_contact_about": contacts.handle_get_contact_about,
    "get_contact_common_groups": contacts.handle_get_contact_common_groups,
    "get_contact_profile_pic_url": contacts.handle_get_contact_profile_pic_url,
    "block_contact": contacts.handle_block_contact,
    "unblock_contact": contacts.handle_unblock_contact,

    # Chats handlers
    "get_chat": chats.handle_get_chat,
    "get_chats": chats.handle_get_chats,
    "archive_chat": chats.handle_archive_chat,
    "unarchive_chat": chats.handle_unarchive_chat,
    "pin_chat": chats.handle_pin_chat,
    "unpin_chat": chats.handle_unpin_chat,
    "mute_chat": chats.handle_mute_chat,
    "unmute_chat": chats.handle_unmute_chat,

    # Groups handlers
    "create_group": groups.handle_create_group,

    # Media handlers
    "create_message_media": media.handle_create_message_media,
    "download_message_media": media.handle_download_message_media,

    # Profile handlers
    "get_profile_picture": profile.handle_get_profile_picture,
    "set_profile_picture": profile.handle_set_profile_picture,
    "delete_profile_picture": profile.handle_delete_profile_picture,
    "set_display_name": profile.handle_set_display_name,
    "get_info": profile.handle_get_info,
    "client_status": profile.handle_client_status,
}


def _summarize_arguments(value: Any) -> Any:
    """Shorten long strings (inline base64 media) before logging."""
    if isinstance(value, dict):
        return {k: _summarize_arguments(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_summarize_arguments(v) for v in value]
    if isinstance(value, str) and len(value) > 200:
        return f"<{len(value)} chars>"
    return value


async def dispatch_tool(name: str, arguments: Optional[dict], ctx: ServerContext) -> ToolResult:
    """
    Run one tool call through the registry.

    Failures never escape: client exceptions become ErrorResult so the
    session stays usable for the next call.
    """
    arguments = arguments or {}
    logger.info(f"Tool called: {name} with args: {_summarize_arguments(arguments)}")

    handler = TOOL_REGISTRY.get(name)
    if handler is None:
        return error_response(f"Unknown tool: {name}")

    try:
        return await handler(arguments, ctx)
    except Exception as e:
        return handle_client_error(e, name)


# =============================================================================
# MCP WIRING
# =============================================================================

def create_server(ctx: ServerContext) -> Server:
    """Build the MCP server bound to one ServerContext."""
    app = Server(
        ctx.settings.get("server_name", "whatsapp-web"),
        version=ctx.settings.get("version"),
    )

    @app.list_tools()
    async def handle_list_tools() -> list[types.Tool]:
        return list_tool_definitions()

    @app.call_tool()
    async def call_tool(name: str, arguments: dict) -> list[types.TextContent | types.EmbeddedResource]:
        result = await dispatch_tool(name, arguments, ctx)
        if isinstance(result, ErrorResult):
            raise ToolCallError(result.message)
        return to_call_tool_content(result)

    @app.list_resources()
    async def handle_list_resources() -> list[types.Resource]:
        # Everything is addressed through templates
        return []

    @app.list_resource_templates()
    async def handle_list_resource_templates() -> list[types.ResourceTemplate]:
        return RESOURCE_TEMPLATES

    # The read_resource decorator stamps every content item with the request
    # URI; batch reads need each entity's own URI, so register directly.
    async def handle_read_resource(req: types.ReadResourceRequest) -> types.ServerResult:
        contents = await read_resource(str(req.params.uri), ctx)
        return types.ServerResult(types.ReadResourceResult(contents=contents))

    app.request_handlers[types.ReadResourceRequest] = handle_read_resource

    return app


# =============================================================================
# MAIN ENTRY POINT
# =============================================================================

def build_context(config: dict, *, console: bool = False) -> ServerContext:
    bridge = BridgeConnection(
        resolve_path(config["bridge"]["socket_path"]),
        timeout_s=config["bridge"].get("timeout"),
    )
    client = WhatsAppClient(
        bridge,
        client_id=config["session"]["client_id"],
        data_path=resolve_path(config["session"]["data_path"]),
    )
    cache = EntityCache()
    session = SessionState(cache, console=console)
    session.attach(client)
    return ServerContext(client=client, cache=cache, session=session, settings=config)


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="WhatsApp Web MCP server (stdio)")
    parser.add_argument("--session", default=None, help="Session name; selects the stored WhatsApp session")
    parser.add_argument("--config", default=None, help="Path to a JSON config file")
    parser.add_argument("--socket", default=None, help="UNIX socket path of the WhatsApp bridge")
    parser.add_argument("--console", action="store_true", help="Print the pairing QR code and session events to stderr")
    return parser.parse_args(argv)


async def main(argv: Optional[list[str]] = None) -> None:
    """Run the MCP server."""
    args = parse_args(argv)
    config = load_config(args.config)
    if args.session:
        config["session"]["client_id"] = args.session
    if args.socket:
        config["bridge"]["socket_path"] = args.socket

    setup_logging(config["paths"]["log_dir"])
    logger.info("Starting WhatsApp MCP Server...")
    logger.info(f"Server name: {config['server_name']}")
    logger.info(f"Version: {config['version']}")
    logger.info(f"Session: {config['session']['client_id']}")

    ctx = build_context(config, console=args.console)

    try:
        await ctx.client.initialize()
    except (BridgeError, OSError) as e:
        # The next tool call reconnects; client_status shows "loading" meanwhile
        logger.warning(f"WhatsApp bridge unavailable: {e}")

    app = create_server(ctx)
    try:
        async with stdio_server() as (read_stream, write_stream):
            await app.run(
                read_stream,
                write_stream,
                app.create_initialization_options()
            )
    finally:
        logger.info(f"Shutting down, cached entities: {ctx.cache.stats()}")
        await ctx.client.close()


def cli() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    cli()

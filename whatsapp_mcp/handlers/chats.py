"""
Chats Handlers

Handles tools for looking up chats and changing their state:
- get_chat / get_chats
- archive_chat / unarchive_chat
- pin_chat / unpin_chat
- mute_chat / unmute_chat

State changes go straight to WhatsApp; cached chat snapshots keep their old
state until the chat is fetched again.
"""

import logging

from ..context import ServerContext
from ..resolution import resolve_chat
from ..utils.validation import (
    validate_non_empty_string,
    validate_iso_datetime,
    validate_page,
    paginate,
)
from ..utils.responses import (
    ToolResult,
    text_response,
    validation_error,
    not_found,
    entity_list_response,
)

logger = logging.getLogger(__name__)


async def _required_chat(arguments: dict, ctx: ServerContext):
    """Resolve arguments["chatId"]; returns (chat, error_result)."""
    chat_id, error = validate_non_empty_string(arguments.get("chatId"), "chatId")
    if error:
        return None, validation_error(error)

    chat = await resolve_chat(chat_id, ctx.cache, ctx.client)
    if chat is None:
        return None, not_found("Chat", chat_id, "get_chats")
    return chat, None


async def handle_get_chat(arguments: dict, ctx: ServerContext) -> ToolResult:
    """
    Handle get_chat tool call.

    Args:
        arguments: {"chatId": Optional[str], "contactId": Optional[str]}
        ctx: Server context
    """
    identifier = arguments.get("chatId") or arguments.get("contactId")
    if not identifier:
        return validation_error("Either chatId or contactId must be provided")

    chat = await resolve_chat(identifier, ctx.cache, ctx.client)
    if chat is None:
        return not_found("Chat", identifier, "get_chats")

    return entity_list_response("chats", [chat])


async def handle_get_chats(arguments: dict, ctx: ServerContext) -> ToolResult:
    """
    Handle get_chats tool call.

    All chats are fetched and cached; limit/page only shape the response.
    """
    (limit, page), error = validate_page(arguments)
    if error:
        return validation_error(error)

    chats = await ctx.client.get_chats()
    for chat in chats:
        ctx.cache.chats.set(chat.id, chat)

    logger.info(f"Loaded {len(chats)} chats")
    return entity_list_response("chats", paginate(chats, limit, page))


async def handle_archive_chat(arguments: dict, ctx: ServerContext) -> ToolResult:
    chat_id, error = validate_non_empty_string(arguments.get("chatId"), "chatId")
    if error:
        return validation_error(error)

    await ctx.client.archive_chat(chat_id)
    logger.info(f"Chat archived: {chat_id}")
    return text_response("Chat archived")


async def handle_unarchive_chat(arguments: dict, ctx: ServerContext) -> ToolResult:
    chat_id, error = validate_non_empty_string(arguments.get("chatId"), "chatId")
    if error:
        return validation_error(error)

    await ctx.client.unarchive_chat(chat_id)
    logger.info(f"Chat unarchived: {chat_id}")
    return text_response("Chat unarchived")


async def handle_pin_chat(arguments: dict, ctx: ServerContext) -> ToolResult:
    chat, error = await _required_chat(arguments, ctx)
    if error:
        return error

    await chat.pin()
    return text_response("Chat pinned")


async def handle_unpin_chat(arguments: dict, ctx: ServerContext) -> ToolResult:
    chat, error = await _required_chat(arguments, ctx)
    if error:
        return error

    await chat.unpin()
    return text_response("Chat unpinned")


async def handle_mute_chat(arguments: dict, ctx: ServerContext) -> ToolResult:
    """
    Handle mute_chat tool call.

    Args:
        arguments: {"chatId": str, "unmuteDate": Optional[str] (ISO 8601)}
        ctx: Server context

    Without unmuteDate the chat stays muted until unmuted.
    """
    unmute_date, error = validate_iso_datetime(arguments.get("unmuteDate"), "unmuteDate")
    if error:
        return validation_error(error)

    chat, error = await _required_chat(arguments, ctx)
    if error:
        return error

    await chat.mute(unmute_date)
    if unmute_date:
        return text_response(f"Chat muted until {unmute_date.isoformat()}")
    return text_response("Chat muted")


async def handle_unmute_chat(arguments: dict, ctx: ServerContext) -> ToolResult:
    chat, error = await _required_chat(arguments, ctx)
    if error:
        return error

    await chat.unmute()
    return text_response("Chat unmuted")

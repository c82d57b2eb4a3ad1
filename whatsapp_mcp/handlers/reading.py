"""
Reading Handlers

Handles tools that load messages into the cache:
- fetch_messages: Messages of one chat, earliest to latest
- search_messages: Full-text search through the WhatsApp client
"""

import logging

from ..context import ServerContext
from ..resolution import resolve_chat
from ..utils.validation import (
    validate_non_empty_string,
    validate_optional_string,
    validate_optional_bool,
    validate_positive_int,
    MAX_MESSAGE_LIMIT,
)
from ..utils.responses import (
    ToolResult,
    validation_error,
    not_found,
    entity_list_response,
)

logger = logging.getLogger(__name__)


async def handle_fetch_messages(arguments: dict, ctx: ServerContext) -> ToolResult:
    """
    Handle fetch_messages tool call.

    Args:
        arguments: {"chatId": str, "fromMe": Optional[bool], "limit": Optional[int]}
        ctx: Server context

    Returns:
        At most `limit` messages sorted by timestamp, earliest first
    """
    chat_id, error = validate_non_empty_string(arguments.get("chatId"), "chatId")
    if error:
        return validation_error(error)

    from_me, error = validate_optional_bool(arguments.get("fromMe"), "fromMe")
    if error:
        return validation_error(error)

    limit, error = validate_positive_int(arguments.get("limit"), "limit", max_val=MAX_MESSAGE_LIMIT)
    if error:
        return validation_error(error)

    chat = await resolve_chat(chat_id, ctx.cache, ctx.client)
    if chat is None:
        return not_found("Chat", chat_id, "get_chats")

    messages = await chat.fetch_messages(limit=limit, from_me=from_me)

    if from_me is not None:
        messages = [m for m in messages if m.from_me == from_me]
    # Stable sort keeps the bridge's order for equal timestamps
    messages = sorted(messages, key=lambda m: m.timestamp)
    if limit is not None:
        # Keep the most recent `limit`, still earliest first
        messages = messages[-limit:]

    for message in messages:
        ctx.cache.remember_message(message)

    logger.info(f"Fetched {len(messages)} messages from {chat_id}")
    return entity_list_response("messages", messages)


async def handle_search_messages(arguments: dict, ctx: ServerContext) -> ToolResult:
    """
    Handle search_messages tool call.

    Args:
        arguments: {"query": str, "options": Optional[{"chatId", "limit", "page"}]}
        ctx: Server context

    Returns:
        Matching messages as resources (possibly empty)
    """
    query, error = validate_non_empty_string(arguments.get("query"), "query")
    if error:
        return validation_error(error)

    options = arguments.get("options") or {}
    if not isinstance(options, dict):
        return validation_error(f"Invalid options: must be an object, got {type(options).__name__}")

    chat_id, error = validate_optional_string(options.get("chatId"), "chatId")
    if error:
        return validation_error(error)

    limit, error = validate_positive_int(options.get("limit"), "limit", max_val=MAX_MESSAGE_LIMIT)
    if error:
        return validation_error(error)

    page, error = validate_positive_int(options.get("page"), "page", max_val=10**9)
    if error:
        return validation_error(error)

    messages = await ctx.client.search_messages(query, chat_id=chat_id, limit=limit, page=page)
    for message in messages:
        ctx.cache.remember_message(message)

    logger.info(f"Search '{query}' matched {len(messages)} messages")
    return entity_list_response("messages", messages)

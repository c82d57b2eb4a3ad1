"""
Messaging Handlers

Handles tools for sending WhatsApp messages:
- send_message: Send text (optionally with cached media) to a chat
"""

import logging

from ..context import ServerContext
from ..utils.validation import validate_non_empty_string
from ..utils.responses import (
    ToolResult,
    validation_error,
    not_found,
    entity_list_response,
)

logger = logging.getLogger(__name__)

# Options forwarded to the client untouched; mediaId is swapped for the payload
PASSTHROUGH_OPTIONS = (
    "quotedMessageId",
    "caption",
    "mentions",
    "sendMediaAsSticker",
    "sendSeen",
)


async def handle_send_message(arguments: dict, ctx: ServerContext) -> ToolResult:
    """
    Handle send_message tool call.

    Args:
        arguments: {"chatId": str, "content": str, "options": Optional[dict]}
        ctx: Server context

    Returns:
        The sent message as a messages:// resource, or an error
    """
    chat_id, error = validate_non_empty_string(arguments.get("chatId"), "chatId")
    if error:
        return validation_error(error)

    content = arguments.get("content")
    if not isinstance(content, str):
        return validation_error("Missing required parameter: content")

    options = arguments.get("options") or {}
    if not isinstance(options, dict):
        return validation_error(f"Invalid options: must be an object, got {type(options).__name__}")

    media = None
    media_id = options.get("mediaId")
    if media_id is not None:
        media = ctx.cache.media.get(media_id)
        if media is None:
            return not_found("Media", media_id, "create_message_media")

    send_options = {
        key: options[key]
        for key in PASSTHROUGH_OPTIONS
        if options.get(key) is not None
    }

    message = await ctx.client.send_message(chat_id, content, send_options, media=media)
    ctx.cache.remember_message(message)
    logger.info(f"Message sent to {chat_id}: {message.id}")

    return entity_list_response("messages", [message])

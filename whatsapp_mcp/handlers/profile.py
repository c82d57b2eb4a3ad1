"""
Profile Handlers

Handles tools for the connected account itself:
- get_profile_picture / set_profile_picture / delete_profile_picture
- set_display_name
- get_info / client_status
"""

import json
import logging

from ..context import ServerContext
from ..utils.validation import validate_non_empty_string, validate_optional_string
from ..utils.responses import ToolResult, text_response, validation_error, not_found

logger = logging.getLogger(__name__)


async def handle_get_profile_picture(arguments: dict, ctx: ServerContext) -> ToolResult:
    """Profile picture URL of a contact, or of the connected account by default."""
    contact_id, error = validate_optional_string(arguments.get("contactId"), "contactId")
    if error:
        return validation_error(error)

    if contact_id is None:
        contact_id = await ctx.client.get_own_id()

    url = await ctx.client.get_profile_pic_url(contact_id)
    return text_response(url or "No profile picture")


async def handle_set_profile_picture(arguments: dict, ctx: ServerContext) -> ToolResult:
    media_id, error = validate_non_empty_string(arguments.get("mediaId"), "mediaId")
    if error:
        return validation_error(error)

    media = ctx.cache.media.get(media_id)
    if media is None:
        return not_found("Media", media_id, "create_message_media")

    await ctx.client.set_profile_picture(media)
    logger.info(f"Profile picture set from media {media_id}")
    return text_response("Profile picture updated")


async def handle_delete_profile_picture(arguments: dict, ctx: ServerContext) -> ToolResult:
    await ctx.client.delete_profile_picture()
    logger.info("Profile picture deleted")
    return text_response("Profile picture deleted")


async def handle_set_display_name(arguments: dict, ctx: ServerContext) -> ToolResult:
    display_name, error = validate_non_empty_string(arguments.get("displayName"), "displayName")
    if error:
        return validation_error(error)

    await ctx.client.set_display_name(display_name)
    logger.info(f"Display name updated to {display_name}")
    return text_response(f"Display name updated to {display_name}")


async def handle_get_info(arguments: dict, ctx: ServerContext) -> ToolResult:
    info = await ctx.client.get_info()
    return text_response(json.dumps(info, default=str))


async def handle_client_status(arguments: dict, ctx: ServerContext) -> ToolResult:
    """Pairing/readiness state; answered locally, works while the bridge is down."""
    return text_response(json.dumps(ctx.session.snapshot()))

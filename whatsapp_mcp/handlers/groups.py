"""
Groups Handlers

Handles tools for group chat operations:
- create_group: Create a group with the given participants
"""

import logging

from ..bridge.models import serialized_id
from ..context import ServerContext
from ..utils.validation import validate_non_empty_string, validate_string_list
from ..utils.responses import ToolResult, text_response, validation_error

logger = logging.getLogger(__name__)


async def handle_create_group(arguments: dict, ctx: ServerContext) -> ToolResult:
    """
    Handle create_group tool call.

    Args:
        arguments: {"title": str, "participants": list[str]}
        ctx: Server context

    Returns:
        The new group's id
    """
    title, error = validate_non_empty_string(arguments.get("title"), "title")
    if error:
        return validation_error(error)

    participants, error = validate_string_list(arguments.get("participants"), "participants")
    if error:
        return validation_error(error)

    group = await ctx.client.create_group(title, participants)
    group_id = group if isinstance(group, str) else serialized_id(group.get("gid"))

    logger.info(f"Group '{title}' created: {group_id} ({len(participants)} participants)")
    return text_response(group_id)

"""
Contacts Handlers

Handles tools for looking up and managing contacts:
- get_contact / get_contacts / get_blocked_contacts
- get_contact_about, get_contact_common_groups, get_contact_profile_pic_url
- block_contact / unblock_contact
"""

import json
import logging

from ..context import ServerContext
from ..resolution import resolve_contact
from ..utils.validation import validate_non_empty_string, validate_page, paginate
from ..utils.responses import (
    ToolResult,
    text_response,
    validation_error,
    not_found,
    entity_list_response,
)

logger = logging.getLogger(__name__)


async def _required_contact(arguments: dict, ctx: ServerContext):
    """Resolve arguments["contactId"]; returns (contact, error_result)."""
    contact_id, error = validate_non_empty_string(arguments.get("contactId"), "contactId")
    if error:
        return None, validation_error(error)

    contact = await resolve_contact(contact_id, ctx.cache, ctx.client)
    if contact is None:
        return None, not_found("Contact", contact_id, "get_contacts")
    return contact, None


async def handle_get_contact(arguments: dict, ctx: ServerContext) -> ToolResult:
    """
    Handle get_contact tool call.

    Args:
        arguments: {"contactId": Optional[str], "chatId": Optional[str]}
        ctx: Server context
    """
    identifier = arguments.get("contactId") or arguments.get("chatId")
    if not identifier:
        return validation_error("Either contactId or chatId must be provided")

    contact = await resolve_contact(identifier, ctx.cache, ctx.client)
    if contact is None:
        return not_found("Contact", identifier, "get_contacts")

    return entity_list_response("contacts", [contact])


async def handle_get_contacts(arguments: dict, ctx: ServerContext) -> ToolResult:
    """
    Handle get_contacts tool call.

    All contacts are fetched and cached; limit/page only shape the response.
    """
    (limit, page), error = validate_page(arguments)
    if error:
        return validation_error(error)

    contacts = await ctx.client.get_contacts()
    for contact in contacts:
        ctx.cache.contacts.set(contact.id, contact)

    logger.info(f"Loaded {len(contacts)} contacts")
    return entity_list_response("contacts", paginate(contacts, limit, page))


async def handle_get_blocked_contacts(arguments: dict, ctx: ServerContext) -> ToolResult:
    contacts = await ctx.client.get_blocked_contacts()
    for contact in contacts:
        ctx.cache.contacts.set(contact.id, contact)
    return entity_list_response("contacts", contacts)


async def handle_get_contact_about(arguments: dict, ctx: ServerContext) -> ToolResult:
    """Contact's "about" text; empty when their privacy settings hide it."""
    contact, error = await _required_contact(arguments, ctx)
    if error:
        return error

    about = await contact.get_about()
    return text_response(about or "")


async def handle_get_contact_common_groups(arguments: dict, ctx: ServerContext) -> ToolResult:
    contact_id, error = validate_non_empty_string(arguments.get("contactId"), "contactId")
    if error:
        return validation_error(error)

    group_ids = await ctx.client.get_common_groups(contact_id)
    return text_response(json.dumps(group_ids))


async def handle_get_contact_profile_pic_url(arguments: dict, ctx: ServerContext) -> ToolResult:
    contact_id, error = validate_non_empty_string(arguments.get("contactId"), "contactId")
    if error:
        return validation_error(error)

    url = await ctx.client.get_profile_pic_url(contact_id)
    return text_response(url or "No profile picture set")


async def handle_block_contact(arguments: dict, ctx: ServerContext) -> ToolResult:
    contact, error = await _required_contact(arguments, ctx)
    if error:
        return error

    await contact.block()
    logger.info(f"Contact blocked: {contact.id}")
    return text_response("Contact blocked")


async def handle_unblock_contact(arguments: dict, ctx: ServerContext) -> ToolResult:
    contact, error = await _required_contact(arguments, ctx)
    if error:
        return error

    await contact.unblock()
    logger.info(f"Contact unblocked: {contact.id}")
    return text_response("Contact unblocked")

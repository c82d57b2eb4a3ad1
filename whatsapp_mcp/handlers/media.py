"""
Media Handlers

Handles tools that register media payloads in the cache:
- create_message_media: From inline base64, a local file, or a URL
- download_message_media: Attachment of a cached message
"""

import base64
import binascii
import logging
from urllib.parse import urlparse

from ..bridge.models import MessageMedia
from ..context import ServerContext
from ..utils.validation import validate_non_empty_string, validate_positive_int
from ..utils.responses import (
    ToolResult,
    error_response,
    validation_error,
    not_found,
    media_resource,
    resource_response,
)

logger = logging.getLogger(__name__)

MEDIA_SOURCES = ("resource", "fromFilePath", "fromUrl")


def _media_from_resource(resource) -> tuple[MessageMedia | None, str | None]:
    """Build media from an inline {mimetype, data, filename?, filesize?} object."""
    if not isinstance(resource, dict):
        return None, f"Invalid resource: must be an object, got {type(resource).__name__}"

    mimetype, error = validate_non_empty_string(resource.get("mimetype"), "resource.mimetype")
    if error:
        return None, error

    data = resource.get("data")
    if not isinstance(data, str) or not data:
        return None, "Missing required parameter: resource.data"
    try:
        base64.b64decode(data, validate=True)
    except (binascii.Error, ValueError):
        return None, "Invalid resource.data: must be base64-encoded"

    filesize, error = validate_positive_int(resource.get("filesize"), "resource.filesize", min_val=0, max_val=2**63)
    if error:
        return None, error

    return MessageMedia(
        mimetype=mimetype,
        data=data,
        filename=resource.get("filename"),
        filesize=filesize,
    ), None


async def handle_create_message_media(arguments: dict, ctx: ServerContext) -> ToolResult:
    """
    Handle create_message_media tool call.

    Args:
        arguments: {"id": str} plus exactly one of
            {"resource": {...}}, {"fromFilePath": str}, {"fromUrl": str}
        ctx: Server context

    Returns:
        The registered media as a media:// resource
    """
    media_id, error = validate_non_empty_string(arguments.get("id"), "id")
    if error:
        return validation_error(error)

    sources = [key for key in MEDIA_SOURCES if arguments.get(key) is not None]
    if not sources:
        return validation_error("no media provided; pass one of resource, fromFilePath, fromUrl")
    if len(sources) > 1:
        return validation_error(
            f"only one media source may be provided, got {', '.join(sources)}"
        )

    source = sources[0]
    if source == "resource":
        media, error = _media_from_resource(arguments["resource"])
        if error:
            return validation_error(error)

    elif source == "fromFilePath":
        file_path, error = validate_non_empty_string(arguments["fromFilePath"], "fromFilePath")
        if error:
            return validation_error(error)
        try:
            media = MessageMedia.from_file_path(file_path)
        except OSError as e:
            logger.error(f"Failed to read media file {file_path}: {e}")
            return error_response(f"cannot read {file_path}: {e.strerror or e}")

    else:
        url, error = validate_non_empty_string(arguments["fromUrl"], "fromUrl")
        if error:
            return validation_error(error)
        parsed = urlparse(url)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            return validation_error(f"Invalid fromUrl: must be an http(s) URL, got '{url}'")
        media = await MessageMedia.from_url(url)

    ctx.cache.media.set(media_id, media)
    logger.info(f"Media registered: {media_id} ({media.mimetype}, from {source})")

    return resource_response([media_resource(media_id, media)])


async def handle_download_message_media(arguments: dict, ctx: ServerContext) -> ToolResult:
    """
    Handle download_message_media tool call.

    The message must already be cached (fetched, searched, sent or received).
    The media is registered as "{messageId}/{filename}".
    """
    message_id, error = validate_non_empty_string(arguments.get("messageId"), "messageId")
    if error:
        return validation_error(error)

    message = ctx.cache.messages.get(message_id)
    if message is None:
        return not_found("Message", message_id, "fetch_messages or search_messages")

    media = await message.download_media()
    if media is None:
        return error_response(f"message {message_id} has no downloadable media")

    media_id = f"{message.id}/{media.display_name}"
    ctx.cache.media.set(media_id, media)
    logger.info(f"Media downloaded: {media_id} ({media.mimetype})")

    return resource_response([media_resource(media_id, media)])

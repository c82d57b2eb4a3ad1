"""
Tool result variants and response builders.

Every handler returns exactly one of:
- TextResult: a plain text acknowledgment or value
- ResourceListResult: serialized entities as embedded MCP resources
- ErrorResult: a human-readable failure (sent with isError=True)

The MCP boundary in server.py is the only place that turns these into
wire content.
"""

from dataclasses import dataclass, field
from typing import Optional, Union
from urllib.parse import quote

from mcp import types

from ..bridge.models import Handle, MessageMedia

JSON_MIME_TYPE = "application/json"

# Commas separate ids in batched resource URIs, so they are always escaped
URI_SAFE_CHARS = "@/._-~"


@dataclass
class TextResult:
    text: str


@dataclass
class ResourceListResult:
    resources: list[types.EmbeddedResource] = field(default_factory=list)


@dataclass
class ErrorResult:
    message: str


ToolResult = Union[TextResult, ResourceListResult, ErrorResult]


def text_response(text: str) -> TextResult:
    """Create a simple text response."""
    return TextResult(text)


def error_response(error: str, prefix: str = "Error") -> ErrorResult:
    """
    Create a standardized error response.

    Args:
        error: Error message
        prefix: Prefix for the error (default: "Error")
    """
    return ErrorResult(f"{prefix}: {error}")


def validation_error(error: str) -> ErrorResult:
    """Create a validation error response."""
    return error_response(error, "Validation error")


def not_found(entity: str, identifier: Optional[str], hint_tool: Optional[str] = None) -> ErrorResult:
    """
    Create a 'not found' error response.

    Args:
        entity: Kind of entity, e.g. "Chat"
        identifier: The id that failed to resolve
        hint_tool: Tool that would load the entity into the local cache
    """
    message = f"{entity} not found"
    if identifier:
        message += f": {identifier}"
    if hint_tool:
        message += f". Try running {hint_tool} first"
    return ErrorResult(message)


def resource_uri(scheme: str, identifier: str) -> str:
    return f"{scheme}://{quote(identifier, safe=URI_SAFE_CHARS)}"


def entity_resource(scheme: str, handle: Handle) -> types.TextResourceContents:
    """JSON resource contents for a contact, chat, or message handle."""
    return types.TextResourceContents(
        uri=resource_uri(scheme, handle.id),
        text=handle.to_json(),
        mimeType=JSON_MIME_TYPE,
    )


def media_resource(media_id: str, media: MessageMedia) -> types.BlobResourceContents:
    """Blob resource contents for a media payload registered under media_id."""
    return types.BlobResourceContents(
        uri=resource_uri("media", media_id),
        mimeType=media.mimetype,
        blob=media.data,
        name=media.display_name,
    )


def resource_response(
    contents: list[Union[types.TextResourceContents, types.BlobResourceContents]]
) -> ResourceListResult:
    """Wrap resource contents as embedded resources for a tool result."""
    return ResourceListResult([
        types.EmbeddedResource(type="resource", resource=item)
        for item in contents
    ])


def entity_list_response(scheme: str, handles: list[Handle]) -> ResourceListResult:
    return resource_response([entity_resource(scheme, h) for h in handles])


def to_call_tool_content(result: ToolResult) -> list[types.TextContent | types.EmbeddedResource]:
    """
    Convert a successful ToolResult into MCP content blocks.

    ErrorResult is handled by the caller, which must mark the call as failed.
    """
    if isinstance(result, TextResult):
        return [types.TextContent(type="text", text=result.text)]
    if isinstance(result, ResourceListResult):
        return list(result.resources)
    raise TypeError(f"Unsupported tool result: {type(result).__name__}")

"""
MCP Server Utilities

Shared validation, response formatting, and error handling utilities
for the WhatsApp MCP server.
"""

from .validation import (
    validate_positive_int,
    validate_non_empty_string,
    validate_optional_string,
    validate_optional_bool,
    validate_string_list,
    validate_page,
    validate_iso_datetime,
    paginate,
    MAX_MESSAGE_LIMIT,
    MIN_LIMIT,
)

from .responses import (
    TextResult,
    ResourceListResult,
    ErrorResult,
    ToolResult,
    text_response,
    error_response,
    validation_error,
    not_found,
    resource_uri,
    entity_resource,
    media_resource,
    resource_response,
    entity_list_response,
    to_call_tool_content,
)

from .errors import handle_client_error

__all__ = [
    # Validation
    "validate_positive_int",
    "validate_non_empty_string",
    "validate_optional_string",
    "validate_optional_bool",
    "validate_string_list",
    "validate_page",
    "validate_iso_datetime",
    "paginate",
    "MAX_MESSAGE_LIMIT",
    "MIN_LIMIT",
    # Responses
    "TextResult",
    "ResourceListResult",
    "ErrorResult",
    "ToolResult",
    "text_response",
    "error_response",
    "validation_error",
    "not_found",
    "resource_uri",
    "entity_resource",
    "media_resource",
    "resource_response",
    "entity_list_response",
    "to_call_tool_content",
    # Errors
    "handle_client_error",
]

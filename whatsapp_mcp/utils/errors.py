"""
Error handling utilities for MCP tool handlers.

Turns exceptions raised by the WhatsApp client into error results. The
underlying message is always passed through verbatim; connection problems
get a short troubleshooting note appended.
"""

import logging

import httpx

from ..bridge.connection import BridgeConnectionError, BridgeError
from .responses import ErrorResult

logger = logging.getLogger(__name__)

BRIDGE_HELP = """
Troubleshooting:
- Ensure the WhatsApp bridge is running and its socket path matches the config
- Check client_status; a pending QR code must be scanned before tools work
"""


def handle_client_error(e: Exception, operation: str = "") -> ErrorResult:
    """
    Convert a failed client operation into an error result.

    Args:
        e: The exception that was raised
        operation: Description of what operation was being performed

    Returns:
        ErrorResult carrying the original failure message
    """
    where = f" during {operation}" if operation else ""
    logger.error(f"Client error{where}: {e}", exc_info=True)

    if isinstance(e, BridgeConnectionError):
        return ErrorResult(f"Error: {e}\n{BRIDGE_HELP}")

    if isinstance(e, BridgeError):
        return ErrorResult(f"Error: {e.message}")

    if isinstance(e, httpx.HTTPError):
        return ErrorResult(f"Error: could not download media: {e}")

    return ErrorResult(f"Error: {e}")

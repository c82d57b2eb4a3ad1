"""
WhatsApp Web MCP Server

Exposes a WhatsApp Web session (messaging, contacts, chats, groups, media,
profile) as MCP tools and contacts:// chats:// messages:// media://
resources.
"""

__version__ = "1.0.0"

"""
MCP Tool Handlers Package

Organized by domain:
- messaging: send_message
- reading: fetch_messages, search_messages
- contacts: get_contact(s), about, common groups, block/unblock, ...
- chats: get_chat(s), archive, pin, mute, ...
- groups: create_group
- media: create_message_media, download_message_media
- profile: profile picture, display name, get_info, client_status

Every handler has the signature
    async def handle_x(arguments: dict, ctx: ServerContext) -> ToolResult
"""

from . import messaging
from . import reading
from . import contacts
from . import chats
from . import groups
from . import media
from . import profile

__all__ = [
    "messaging",
    "reading",
    "contacts",
    "chats",
    "groups",
    "media",
    "profile",
]

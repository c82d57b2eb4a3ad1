"""Per-process state shared by every tool handler and resource read."""

from dataclasses import dataclass, field
from typing import Any

from .bridge.client import WhatsAppClient
from .cache import EntityCache
from .session import SessionState


@dataclass
class ServerContext:
    """Built once in main() and handed to every handler."""

    client: WhatsAppClient
    cache: EntityCache = field(default_factory=EntityCache)
    session: SessionState = None
    settings: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        if self.session is None:
            self.session = SessionState(self.cache)

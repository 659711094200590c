"""
Event Sink Interfaces.

This package defines the abstract interfaces for the collaborators the
event handlers call into. These interfaces enable:
- One backend per supported database, selected once at start-up
- Swapping the live-view transport without touching the handlers
- Independent testing of each sink with fakes

ARCHITECTURE:
- Handlers only talk to these interfaces
- Concrete implementations live in utils/db/ and camera/
- Interfaces never import from events/services/
"""

from events.interfaces.database import (
    BackendKind,
    DatabaseBackend,
    DatabaseConnection,
)
from events.interfaces.stream import StreamInterface

__all__ = [
    # Interfaces
    "DatabaseBackend",
    "StreamInterface",
    # Data Classes
    "BackendKind",
    "DatabaseConnection",
]

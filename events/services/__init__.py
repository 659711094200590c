"""
Event Sink Services.

This package contains the sinks the event handlers delegate to.
Each service owns one side effect and can be tested independently.

ARCHITECTURE:
- Services talk to collaborators through events/interfaces/
- Services may use utils/ for low-level operations
- events/handlers.py binds them to event kinds
"""

from events.services import stream_service
from events.services.database_service import DatabaseSink, sql_mask
from events.services.extpipe_service import ExternalPipeSession, PipeState
from events.services.picture_service import (
    save_detected_image,
    save_motion_image,
    save_snapshot,
)

__all__ = [
    "DatabaseSink",
    "ExternalPipeSession",
    "PipeState",
    "save_detected_image",
    "save_motion_image",
    "save_snapshot",
    "sql_mask",
    "stream_service",
]

"""
Daemon Context - Per-source State.

One DaemonContext exists per monitored source. It is threaded explicitly
through every dispatch and owns the database connection, the external pipe
session and the live-view collaborator of that source.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from events.bus import EventBus, create_event_bus
from events.interfaces.database import DatabaseConnection
from events.interfaces.stream import StreamInterface
from events.services.extpipe_service import ExternalPipeSession
from events.types import EventKind
from logging_config import get_logger
from utils.db.connection import close_database, open_database
from utils.template import TemplateFields, format_template

logger = get_logger(__name__)


@dataclass
class DaemonContext:
    """
    Mutable state shared by the handlers of one source.

    Attributes:
        config: Upper-case keyed configuration dict.
        events: Bus the handlers dispatch secondary events on.
        database: Active SQL connection, or None when logging is off.
        extpipe: External encoder session.
        stream: Live-view collaborator, or None.
        lastrate: Measured capture rate (frames per second).
        movie_fps: Frame rate fixed for the current movie.
        movie_last_shot: Last shot written to the current movie.
        snapshot_pending: A snapshot was requested and not yet written.
        snapshot_count: Snapshots written so far.
        event_nr: Number of the current motion event (%v).
        shots: Shot number within the current second (%q).
        text_event: Expanded TEXT_EVENT of the current event (%C).
        current_time: Time of the most recent timestamped dispatch.
        camera_id: Camera identifier (%t).
    """

    config: dict
    events: EventBus
    database: DatabaseConnection | None = None
    extpipe: ExternalPipeSession = field(default_factory=ExternalPipeSession)
    stream: StreamInterface | None = None
    lastrate: int = 0
    movie_fps: int = 0
    movie_last_shot: int = -1
    snapshot_pending: bool = False
    snapshot_count: int = 0
    event_nr: int = 0
    shots: int = 0
    text_event: str = ""
    current_time: datetime | None = None
    camera_id: Any = None

    def __post_init__(self):
        if self.camera_id is None:
            self.camera_id = self.config.get("CAMERA_ID", 0)


def create_context(config: dict, stream: StreamInterface | None = None, bus: EventBus | None = None) -> DaemonContext:
    """
    Builds a context with the default handler table and opens the database.

    Raises:
        ValueError: If DATABASE_TYPE names an unsupported or incomplete backend.
    """
    ctx = DaemonContext(
        config=config,
        events=bus or create_event_bus(),
        stream=stream,
    )
    ctx.database = open_database(config)
    if ctx.database is None and ctx.config.get("DATABASE_TYPE"):
        logger.warning("SQL logging disabled: database could not be opened")
    return ctx


def begin_event(ctx: DaemonContext, timestamp: datetime | None = None) -> None:
    """
    Starts a new motion event and dispatches FIRSTMOTION.

    Advances event_nr and expands TEXT_EVENT before any FIRSTMOTION handler
    runs, so %v and %C are current in the start commands.
    """
    timestamp = timestamp or datetime.now()
    ctx.event_nr += 1
    ctx.shots = 0
    ctx.text_event = format_template(
        ctx.config.get("TEXT_EVENT") or "",
        timestamp,
        fields=TemplateFields.from_context(ctx),
    )
    ctx.events.dispatch(ctx, EventKind.FIRSTMOTION, None, None, None, timestamp)


def shutdown_context(ctx: DaemonContext) -> None:
    """Closes the pipe session, stops the live view and closes the database."""
    try:
        ctx.extpipe.close(ctx, ctx.current_time)
    except Exception as e:
        logger.error(f"Error closing external pipe during shutdown: {e}", exc_info=True)
    if ctx.stream is not None and ctx.stream.is_active:
        ctx.stream.stop()
    close_database(ctx.database)
    ctx.database = None
    logger.info("Event context shut down.")

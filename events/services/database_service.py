"""
Database Service - SQL Event Log.

Writes one record per created file into the configured database.
A lost connection is re-established once and the statement retried once;
any other failure drops the record. Nothing is ever queued.
"""

from datetime import datetime

from events.interfaces.database import BackendKind, DatabaseConnection
from events.types import FileType
from logging_config import get_logger
from utils.db.connection import connect_backend
from utils.template import TemplateFields, format_template

logger = get_logger(__name__)


def sql_mask(config: dict) -> FileType:
    """
    Builds the subtype mask of files that should be logged.

    Args:
        config: Configuration dict with the SQL_LOG_* switches.

    Returns:
        FileType bitmask.
    """
    mask = FileType.NONE
    if config.get("SQL_LOG_PICTURE"):
        mask |= FileType.IMAGE
    if config.get("SQL_LOG_SNAPSHOT"):
        mask |= FileType.IMAGE_SNAPSHOT
    if config.get("SQL_LOG_MOTION"):
        mask |= FileType.IMAGE_MOTION | FileType.MPEG_MOTION
    if config.get("SQL_LOG_MOVIE"):
        mask |= FileType.MPEG
    if config.get("SQL_LOG_TIMELAPSE"):
        mask |= FileType.MPEG_TIMELAPSE
    return mask


class DatabaseSink:
    """
    Handles SQL logging of created files.

    Features:
    - Filters files by the configured subtype mask
    - Expands SQL_QUERY with the file name and time fields
    - Single reconnect-and-retry on connection loss, backend-agnostic
    """

    def log_file(
        self,
        ctx,
        filename: str | None,
        filetype,
        timestamp: datetime | None = None,
    ) -> bool:
        """
        Logs a created file.

        Args:
            ctx: DaemonContext owning the connection.
            filename: Path of the created file.
            filetype: Subtype bitmask of the file.
            timestamp: Time used for the date/time fields.

        Returns:
            True if the statement was executed (possibly after a retry).
        """
        conn: DatabaseConnection | None = ctx.database
        if conn is None or conn.kind is BackendKind.NONE:
            return False
        filetype = int(filetype or 0)
        if not (filetype & sql_mask(ctx.config)):
            return False

        statement = format_template(
            ctx.config.get("SQL_QUERY") or "",
            timestamp or ctx.current_time or datetime.now(),
            filename=filename,
            filetype=filetype,
            fields=TemplateFields.from_context(ctx),
        )
        if not statement:
            return False
        return self.execute(ctx, statement)

    def execute(self, ctx, statement: str) -> bool:
        """
        Executes a statement on the context's connection.

        Returns:
            True on success, False if the record was dropped.
        """
        conn: DatabaseConnection = ctx.database
        backend = conn.backend
        if conn.handle is not None:
            try:
                backend.execute(conn.handle, statement)
                return True
            except Exception as e:
                if not backend.is_connection_lost(e, conn.handle):
                    logger.error(f"SQL query [{statement}] failed: {e}")
                    return False
                logger.error(f"Connection to {backend.describe()} lost: {e}")
            backend.close(conn.handle)

        # Connection lost: reconnect once, retry once. A failed reconnect
        # leaves a handle-less connection so the next record tries again.
        ctx.database = DatabaseConnection(kind=conn.kind, handle=None, backend=backend)
        new_conn = connect_backend(backend)
        if new_conn is None:
            logger.error(f"Re-connection to {backend.describe()} failed, record dropped")
            return False
        ctx.database = new_conn
        logger.info(f"Re-connection to {backend.describe()} succeeded")

        try:
            backend.execute(new_conn.handle, statement)
            return True
        except Exception as e:
            logger.error(f"After re-connection SQL query [{statement}] failed: {e}")
            return False

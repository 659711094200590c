"""
Database Connection Management.

This module selects the database backend from the configuration and
opens, reopens and closes the connection owned by a DaemonContext.
"""

from events.interfaces.database import (
    BackendKind,
    DatabaseBackend,
    DatabaseConnection,
)
from logging_config import get_logger
from utils.db.mysql_backend import MySQLBackend
from utils.db.postgres_backend import PostgreSQLBackend
from utils.db.sqlite_backend import SQLiteBackend

logger = get_logger(__name__)


def create_backend(config: dict) -> DatabaseBackend | None:
    """
    Builds the backend selected by DATABASE_TYPE.

    Returns:
        The backend, or None when no database is configured.

    Raises:
        ValueError: For unknown backends or incomplete parameters.
    """
    kind = BackendKind.from_config(config.get("DATABASE_TYPE"))
    if kind is BackendKind.NONE:
        return None

    if kind is BackendKind.SQLITE3:
        db_path = config.get("SQLITE3_DB") or config.get("DATABASE_DBNAME")
        if not db_path:
            raise ValueError("SQLITE3_DB is required when DATABASE_TYPE=sqlite3")
        return SQLiteBackend(str(db_path))

    dbname = config.get("DATABASE_DBNAME")
    if not dbname:
        raise ValueError(f"DATABASE_DBNAME is required when DATABASE_TYPE={kind.value}")
    params = {
        "host": config.get("DATABASE_HOST") or "localhost",
        "user": config.get("DATABASE_USER") or "",
        "password": config.get("DATABASE_PASSWORD") or "",
        "dbname": dbname,
        "port": config.get("DATABASE_PORT") or 0,
    }
    if kind is BackendKind.MYSQL:
        return MySQLBackend(**params)
    return PostgreSQLBackend(**params)


def connect_backend(backend: DatabaseBackend) -> DatabaseConnection | None:
    """
    Opens a connection with the backend's stored parameters.

    Returns:
        A new DatabaseConnection, or None if the server refused.
    """
    try:
        handle = backend.connect()
    except Exception as e:
        logger.error(f"Cannot connect to {backend.describe()}: {e}")
        return None
    return DatabaseConnection(kind=backend.kind, handle=handle, backend=backend)


def open_database(config: dict) -> DatabaseConnection | None:
    """
    Opens the configured database at start-up.

    Returns:
        The connection, or None when no database is configured or the
        first connect failed (SQL logging is then disabled).
    """
    backend = create_backend(config)
    if backend is None:
        return None
    conn = connect_backend(backend)
    if conn is not None:
        logger.info(f"Connected to {backend.describe()}")
    return conn


def close_database(conn: DatabaseConnection | None) -> None:
    """Closes a connection; safe to call with None."""
    if conn is None:
        return
    conn.backend.close(conn.handle)

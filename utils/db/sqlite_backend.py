"""
SQLite backend for the SQL event log.
"""

import sqlite3
from pathlib import Path

from events.interfaces.database import BackendKind, DatabaseBackend


def _init_schema(conn: sqlite3.Connection) -> None:
    # Default table targeted by the stock SQL_QUERY.
    conn.execute("""
        CREATE TABLE IF NOT EXISTS security (
            camera INTEGER,
            filename TEXT NOT NULL,
            frame INTEGER,
            file_type INTEGER,
            time_stamp TEXT,
            event_time_stamp TEXT
        );
        """)
    conn.commit()


class SQLiteBackend(DatabaseBackend):
    kind = BackendKind.SQLITE3

    def __init__(self, db_path: str):
        self.db_path = db_path

    def connect(self) -> sqlite3.Connection:
        if self.db_path != ":memory:":
            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(self.db_path, check_same_thread=False)
        conn.execute("PRAGMA journal_mode=WAL;")
        conn.execute("PRAGMA synchronous=NORMAL;")
        _init_schema(conn)
        return conn

    def execute(self, handle: sqlite3.Connection, statement: str) -> None:
        # executescript accepts several ';'-separated statements and commits.
        handle.executescript(statement)

    def close(self, handle) -> None:
        if handle is None:
            return
        try:
            handle.close()
        except sqlite3.Error:
            pass

    def is_connection_lost(self, error: BaseException, handle=None) -> bool:
        return isinstance(error, sqlite3.ProgrammingError) and "closed" in str(error)

    def describe(self) -> str:
        return f"sqlite3 database '{self.db_path}'"

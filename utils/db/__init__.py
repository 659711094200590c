"""
Event Log Database Module.

This package provides the database backends the SQL sink writes to.
One backend per supported database; the active one is selected from
DATABASE_TYPE at start-up.

Usage:
    from utils.db import open_database, close_database
    # or
    from utils.db.sqlite_backend import SQLiteBackend
"""

# Connection Management
from utils.db.connection import (
    close_database,
    connect_backend,
    create_backend,
    open_database,
)

# Backends
from utils.db.mysql_backend import MySQLBackend
from utils.db.postgres_backend import PostgreSQLBackend
from utils.db.sqlite_backend import SQLiteBackend

__all__ = [
    # Connection
    "create_backend",
    "connect_backend",
    "open_database",
    "close_database",
    # Backends
    "MySQLBackend",
    "PostgreSQLBackend",
    "SQLiteBackend",
]

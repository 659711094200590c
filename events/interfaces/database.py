"""
Database Interface - SQL Logging Backends.

Defines the contract for the database backends the SQL sink writes to.
Exactly one backend is active per context, selected once at start-up.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any


class BackendKind(Enum):
    """Supported database backends."""

    NONE = ""
    MYSQL = "mysql"
    POSTGRESQL = "postgresql"
    SQLITE3 = "sqlite3"

    @classmethod
    def from_config(cls, value) -> "BackendKind":
        """
        Maps a DATABASE_TYPE value to a backend kind.

        Raises:
            ValueError: For names that are not supported.
        """
        name = str(value or "").strip().lower()
        if name in ("", "none", "off"):
            return cls.NONE
        if name in ("postgres", "pgsql"):
            return cls.POSTGRESQL
        if name == "sqlite":
            return cls.SQLITE3
        return cls(name)


class DatabaseBackend(ABC):
    """
    Interface for one database driver.

    Implementations hold the connection parameters only; the live handle is
    owned by the DaemonContext (see DatabaseConnection) so a reconnect can
    replace it wholesale.
    """

    kind: BackendKind = BackendKind.NONE

    @abstractmethod
    def connect(self) -> Any:
        """
        Opens a new connection using the stored parameters.

        Returns:
            Native driver connection handle.

        Raises:
            Exception: Driver-specific error when the server is unreachable.
        """
        pass

    @abstractmethod
    def execute(self, handle: Any, statement: str) -> None:
        """
        Executes a literal, already-escaped statement and commits it.

        Raises:
            Exception: Driver-specific error on failure.
        """
        pass

    @abstractmethod
    def close(self, handle: Any) -> None:
        """
        Closes a connection handle.

        Should be idempotent and never raise.
        """
        pass

    @abstractmethod
    def is_connection_lost(self, error: BaseException, handle: Any = None) -> bool:
        """
        Classifies an execution error.

        Returns:
            True if the connection itself is unusable (transient),
            False if the statement failed on its own (e.g. syntax error).
        """
        pass

    @abstractmethod
    def describe(self) -> str:
        """Returns a log-friendly description (never includes the password)."""
        pass


@dataclass
class DatabaseConnection:
    """
    Active database connection owned by a DaemonContext.

    Attributes:
        kind: Backend kind of this connection.
        handle: Native driver handle.
        backend: Backend strategy that created the handle.
    """

    kind: BackendKind
    handle: Any
    backend: DatabaseBackend

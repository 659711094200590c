"""
PostgreSQL backend for the SQL event log (psycopg2 driver).
"""

from events.interfaces.database import BackendKind, DatabaseBackend
from logging_config import get_logger

logger = get_logger(__name__)

DEFAULT_PORT = 5432


class PostgreSQLBackend(DatabaseBackend):
    kind = BackendKind.POSTGRESQL

    def __init__(
        self,
        host: str,
        user: str,
        password: str,
        dbname: str,
        port: int = 0,
    ):
        self.host = host
        self.user = user
        self.password = password
        self.dbname = dbname
        self.port = int(port or DEFAULT_PORT)

    def connect(self):
        import psycopg2

        conn = psycopg2.connect(
            host=self.host,
            port=self.port,
            user=self.user,
            password=self.password,
            dbname=self.dbname,
        )
        conn.autocommit = True
        return conn

    def execute(self, handle, statement: str) -> None:
        with handle.cursor() as cursor:
            cursor.execute(statement)

    def close(self, handle) -> None:
        if handle is None:
            return
        try:
            handle.close()
        except Exception as e:
            logger.debug(f"Error closing PostgreSQL connection: {e}")

    def is_connection_lost(self, error: BaseException, handle=None) -> bool:
        import psycopg2

        if isinstance(error, psycopg2.InterfaceError):
            return True
        # OperationalError also covers statement failures on a healthy
        # connection (QueryCanceled, DeadlockDetected, DiskFull); only a
        # handle libpq reports as CONNECTION_BAD (closed != 0) is lost.
        return bool(getattr(handle, "closed", 0))

    def describe(self) -> str:
        return (
            f"PostgreSQL database '{self.dbname}' on host {self.host}:{self.port} "
            f"with user {self.user}"
        )

"""
MySQL backend for the SQL event log (PyMySQL driver).
"""

from events.interfaces.database import BackendKind, DatabaseBackend
from logging_config import get_logger

logger = get_logger(__name__)

# MySQL client-side error codes start at 2000 (CR_UNKNOWN_ERROR); they
# describe the connection, not the statement (2006 gone away, 2013 lost).
CLIENT_ERROR_MIN = 2000
DEFAULT_PORT = 3306


class MySQLBackend(DatabaseBackend):
    kind = BackendKind.MYSQL

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
        import pymysql

        return pymysql.connect(
            host=self.host,
            user=self.user,
            password=self.password,
            database=self.dbname,
            port=self.port,
            autocommit=True,
        )

    def execute(self, handle, statement: str) -> None:
        with handle.cursor() as cursor:
            cursor.execute(statement)
        handle.commit()

    def close(self, handle) -> None:
        if handle is None:
            return
        try:
            handle.close()
        except Exception as e:
            # Closing an already-broken connection raises in PyMySQL.
            logger.debug(f"Error closing MySQL connection: {e}")

    def is_connection_lost(self, error: BaseException, handle=None) -> bool:
        import pymysql

        if isinstance(error, pymysql.err.InterfaceError):
            return True
        code = error.args[0] if getattr(error, "args", None) else None
        return isinstance(code, int) and code >= CLIENT_ERROR_MIN

    def describe(self) -> str:
        return (
            f"MySQL database '{self.dbname}' on host {self.host}:{self.port} "
            f"with user {self.user}"
        )

"""SQLite connection and initialization utilities."""

import sqlite3
from pathlib import Path
import threading

from .schema import get_init_schema
from ..core.exceptions import StorageError


class DatabaseConnection:
    """
    Own one SQLite connection shared by all threads.

    Every statement runs under a single mutex, so at most one writer proceeds
    at a time. Only database I/O goes through this lock, never crypto work.
    """

    __slots__ = ("db_path", "_conn", "_lock", "_initialized")

    def __init__(self, db_path="./sentinel.db"):
        """Initialize connection state."""
        self.db_path = Path(db_path) if str(db_path) != ":memory:" else db_path
        self._conn = None
        self._lock = threading.Lock()
        self._initialized = False

    def initialize(self):
        """Initialize schema if not already initialized."""
        with self._lock:
            if self._initialized:
                return

            try:
                if isinstance(self.db_path, Path):
                    self.db_path.parent.mkdir(parents=True, exist_ok=True)

                conn = self._get_connection()

                for statement in get_init_schema():
                    conn.execute(statement)

                self._initialized = True

            except (sqlite3.Error, OSError) as e:
                raise StorageError(f"Failed to initialize database: {e}")

    def _get_connection(self):
        """Get or create the shared SQLite connection. Caller holds the lock."""
        if self._conn is None:
            self._conn = sqlite3.connect(
                str(self.db_path), check_same_thread=False, isolation_level=None
            )
            self._conn.row_factory = sqlite3.Row
        return self._conn

    def get_transaction_context(self):
        """Return a locked transaction context manager (BEGIN/COMMIT/ROLLBACK)."""
        return TransactionContext(self)

    def execute(self, query, params=None):
        """Execute a single SQL statement and return the affected row count."""
        with self._lock:
            cursor = self._get_connection().cursor()
            try:
                cursor.execute(query, params or ())
                return cursor.rowcount
            finally:
                cursor.close()

    def fetch_one(self, query, params=None):
        """Fetch a single row as a dict or None."""
        with self._lock:
            cursor = self._get_connection().cursor()
            try:
                cursor.execute(query, params or ())
                row = cursor.fetchone()
                return dict(row) if row else None
            finally:
                cursor.close()

    def fetch_all(self, query, params=None):
        """Fetch all rows as a list of dicts."""
        with self._lock:
            cursor = self._get_connection().cursor()
            try:
                cursor.execute(query, params or ())
                return [dict(row) for row in cursor.fetchall()]
            finally:
                cursor.close()

    def get_version(self):
        """Return current schema version number."""
        try:
            result = self.fetch_one("SELECT MAX(version) as version FROM schema_version")
            return result["version"] if result and result["version"] else 0
        except sqlite3.Error:
            return 0

    def close(self):
        """Close the shared connection if open."""
        with self._lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None
            self._initialized = False


class TransactionContext:
    """Context manager holding the connection lock for one transaction."""

    __slots__ = ("db", "cursor")

    def __init__(self, db):
        """Initialize with a DatabaseConnection."""
        self.db = db
        self.cursor = None

    def __enter__(self):
        """Take the lock, begin a transaction and return a cursor."""
        self.db._lock.acquire()
        try:
            self.cursor = self.db._get_connection().cursor()
            self.cursor.execute("BEGIN IMMEDIATE")
        except BaseException:
            if self.cursor:
                self.cursor.close()
            self.db._lock.release()
            raise
        return self.cursor

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Commit on success, rollback on error, then close cursor and release the lock."""
        try:
            if exc_type is None:
                self.cursor.execute("COMMIT")
            else:
                self.cursor.execute("ROLLBACK")
        finally:
            try:
                if self.cursor:
                    self.cursor.close()
            finally:
                self.db._lock.release()

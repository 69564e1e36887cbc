"""
Database connection management.
"""
import sqlite3
import logging
import threading
from pathlib import Path
from typing import Optional

from ..exceptions import IndexUnavailableError
from .schema import init_schema

class DBManager:
    def __init__(self, db_path: Path):
        self.db_path = db_path
        self._conn: Optional[sqlite3.Connection] = None
        # One connection is shared by all import workers; every statement
        # goes through this lock.
        self._write_lock = threading.Lock()

    def connect(self) -> sqlite3.Connection:
        """
        Opens the index, creating its directory and schema on first use.
        Raises IndexUnavailableError if that is not possible.
        """
        if self._conn:
            return self._conn

        logging.info(f"Connecting to database: {self.db_path}")
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            conn = sqlite3.connect(self.db_path, check_same_thread=False)
        except (OSError, sqlite3.Error) as e:
            raise IndexUnavailableError(f"Cannot open index {self.db_path}: {e}") from e

        try:
            conn.execute("PRAGMA journal_mode=WAL;")
            conn.execute("PRAGMA synchronous=FULL;")
            init_schema(conn)
        except sqlite3.Error as e:
            conn.close()
            raise IndexUnavailableError(f"Cannot initialize index {self.db_path}: {e}") from e

        self._conn = conn
        return self._conn

    def close(self):
        if self._conn:
            self._conn.close()
            self._conn = None

    def __enter__(self):
        return self.connect()

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    @property
    def write_lock(self) -> threading.Lock:
        """Returns the write lock for thread-safe database operations."""
        return self._write_lock

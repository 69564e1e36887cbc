import sqlite3
import logging
import threading
from typing import Optional, Set, Tuple


class DedupIndex:
    """
    Persisted set of (datetime_key, content_hash) pairs already imported.

    Statement failures during a run do not propagate. A failed lookup answers
    False, so the file is attempted again rather than dropped. A failed insert
    is remembered for the rest of this run so the same unit is not imported
    twice, even though the durable record is missing.
    """

    def __init__(self, conn: sqlite3.Connection, lock: Optional[threading.Lock] = None):
        self.conn = conn
        self._lock = lock or threading.Lock()
        self._session: Set[Tuple[str, str]] = set()

    def contains(self, datetime_key: str, content_hash: str) -> bool:
        if (datetime_key, content_hash) in self._session:
            return True
        try:
            with self._lock:
                cur = self.conn.execute(
                    "SELECT 1 FROM processed WHERE time = ? AND hash = ? LIMIT 1",
                    (datetime_key, content_hash),
                )
                return cur.fetchone() is not None
        except sqlite3.Error as e:
            logging.error(f"Index lookup failed for {datetime_key}_{content_hash}: {e}")
            return False

    def insert(self, datetime_key: str, content_hash: str) -> bool:
        """
        Records a pair. Returns True if a new row was written; an existing
        pair is left alone and returns False.
        """
        try:
            with self._lock, self.conn:
                cur = self.conn.execute(
                    "INSERT OR IGNORE INTO processed (time, hash) VALUES (?, ?)",
                    (datetime_key, content_hash),
                )
                return cur.rowcount == 1
        except sqlite3.Error as e:
            logging.warning(f"Index insert failed for {datetime_key}_{content_hash}: {e}. "
                            "File counts as imported for this run only.")
            self._session.add((datetime_key, content_hash))
            return False

    def count(self) -> int:
        with self._lock:
            cur = self.conn.execute("SELECT count(*) FROM processed")
            return cur.fetchone()[0]

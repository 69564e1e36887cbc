"""
Database schema definitions.
"""
import sqlite3
import logging

CURRENT_SCHEMA_VERSION = 1

def init_schema(conn: sqlite3.Connection):
    """
    Applies the index schema to the database.
    Idempotent: safe to run on every startup.
    """
    with conn:
        # 1. Version Tracking (For future migrations)
        conn.execute("""
            CREATE TABLE IF NOT EXISTS schema_version (
                version INTEGER PRIMARY KEY
            );
        """)

        cur = conn.cursor()
        cur.execute("SELECT version FROM schema_version")
        if not cur.fetchone():
            conn.execute("INSERT INTO schema_version (version) VALUES (?)", (CURRENT_SCHEMA_VERSION,))

        # 2. Processed Imports
        # One row per logical import unit: capture time key + content hash
        conn.execute("""
        CREATE TABLE IF NOT EXISTS processed (
            time    TEXT NOT NULL,      -- YYYYMMDDHHMMSS
            hash    TEXT NOT NULL       -- hex MD5 of the content
        );
        """)

        # Uniqueness is enforced here, not by callers
        conn.execute("CREATE UNIQUE INDEX IF NOT EXISTS time_hash ON processed (time, hash);")

    logging.debug("Database schema initialized.")

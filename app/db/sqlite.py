from __future__ import annotations
"""SQLite adapter for app.db (local contact_form store)."""
import sqlite3
from pathlib import Path
from typing import Optional

from luxcars.contact import ContactSubmission, INSERT_CONTACT_SQL
from luxcars.d1 import SCHEMA_PATH
from luxcars.logger import Logger


log = Logger.bind(__name__)

DB_FILENAME = "database.db"


def get_connection(db_path: Optional[Path] = None) -> sqlite3.Connection:
    path = Path(db_path) if db_path else Path(DB_FILENAME)
    conn = sqlite3.connect(
        path,
        timeout=30.0,
        check_same_thread=False,
        isolation_level=None,
    )
    try:
        conn.execute("PRAGMA journal_mode=WAL;")
        conn.execute("PRAGMA synchronous=NORMAL;")
        conn.execute("PRAGMA busy_timeout=30000;")
    except sqlite3.Error as e:
        log.debug(f"pragma setup fail error={e}")
    return conn


def init_db(db_path: Optional[Path] = None) -> None:
    conn = get_connection(db_path)
    try:
        conn.executescript(SCHEMA_PATH.read_text(encoding='utf-8'))
    finally:
        conn.close()
    log.debug(f"sqlite schema ready path={db_path or DB_FILENAME}")


class SqliteContactStore:

    def __init__(self, db_path: Optional[Path] = None):
        self.db_path = Path(db_path) if db_path else Path(DB_FILENAME)
        init_db(self.db_path)

    def insert_contact(self, submission: ContactSubmission) -> int:
        conn = get_connection(self.db_path)
        try:
            cur = conn.execute(INSERT_CONTACT_SQL, submission.row_params())
            return int(cur.lastrowid or 0)
        finally:
            conn.close()


def open_store(settings) -> SqliteContactStore:
    return SqliteContactStore(settings.sqlite_db)


__all__ = ["get_connection", "init_db", "SqliteContactStore", "open_store"]

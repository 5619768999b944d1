import sqlite3
import os
from contextlib import contextmanager

from config.settings import Settings
from src.shared.system.logging import Logger


class DatabaseCore:
    """
    SQLite connection manager for the payout ledger.
    Handles WAL mode and hands out short-lived cursors; repositories own
    their schema. One instance per database file, injected where needed.
    """

    def __init__(self, db_path: str = None):
        self.db_path = db_path or Settings.DB_PATH
        self._ensure_data_dir()
        self._init_wal_mode()

    def _ensure_data_dir(self):
        directory = os.path.dirname(os.path.abspath(self.db_path))
        os.makedirs(directory, exist_ok=True)

    def _init_wal_mode(self):
        """Enable Write-Ahead Logging for concurrent readers."""
        try:
            with self.cursor(commit=True) as c:
                c.execute("PRAGMA journal_mode=WAL;")
                c.execute("PRAGMA synchronous=NORMAL;")
        except sqlite3.Error as e:
            Logger.warning(f"[LEDGER] Failed to enable WAL mode: {e}")

    def get_connection(self):
        conn = sqlite3.connect(self.db_path, timeout=10.0)
        conn.row_factory = sqlite3.Row
        return conn

    @contextmanager
    def cursor(self, commit=False):
        """Context manager for database interaction."""
        conn = self.get_connection()
        cursor = conn.cursor()
        try:
            yield cursor
            if commit:
                conn.commit()
        except Exception as e:
            if commit:
                conn.rollback()
            Logger.error(f"[LEDGER] DB Error: {e}")
            raise
        finally:
            conn.close()

    def is_connected(self) -> bool:
        try:
            with self.cursor() as c:
                c.execute("SELECT 1")
                return c.fetchone() is not None
        except sqlite3.Error:
            return False

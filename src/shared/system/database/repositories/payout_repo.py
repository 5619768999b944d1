"""
Payout Repository
=================
Ledger of accepted payout transactions, feeding the public feed and
global statistics.

- tx_id is unique; re-adding a known transaction is a no-op
- Amounts are SOL (REAL)
"""

import time
from typing import Any, Dict, List

from src.shared.system.database.repositories.base import BaseRepository
from src.shared.system.logging import Logger


class PayoutRepository(BaseRepository):

    def init_table(self):
        with self.db.cursor(commit=True) as c:
            c.execute("""
            CREATE TABLE IF NOT EXISTS payout_transactions (
                tx_id TEXT PRIMARY KEY,
                user_received REAL NOT NULL,
                user_wallet TEXT NOT NULL,
                boss_received REAL NOT NULL,
                timestamp REAL NOT NULL
            )
            """)
            c.execute("""
            CREATE INDEX IF NOT EXISTS idx_payout_timestamp
            ON payout_transactions(timestamp DESC)
            """)
        Logger.debug("[LEDGER] payout_transactions table initialized")

    def add_transaction(
        self,
        tx_id: str,
        user_received: float,
        user_wallet: str,
        boss_received: float,
        timestamp: float = None,
    ) -> bool:
        """
        Record a payout. Returns False when ``tx_id`` was already recorded.
        """
        inserted = self._execute(
            """
            INSERT OR IGNORE INTO payout_transactions (
                tx_id, user_received, user_wallet, boss_received, timestamp
            ) VALUES (?, ?, ?, ?, ?)
            """,
            (tx_id, float(user_received), user_wallet, float(boss_received), timestamp or time.time()),
            commit=True,
        )
        if inserted:
            Logger.info(f"[LEDGER] Recorded {tx_id[:12]}... ({user_received} SOL to {user_wallet[:8]}...)")
        return inserted > 0

    def get_transaction(self, tx_id: str) -> Dict[str, Any]:
        return self._fetchone("SELECT * FROM payout_transactions WHERE tx_id = ?", (tx_id,))

    def get_recent(self, limit: int = 10) -> List[Dict[str, Any]]:
        return self._fetchall(
            "SELECT * FROM payout_transactions ORDER BY timestamp DESC LIMIT ?",
            (limit,),
        )

    def get_global_stats(self) -> Dict[str, Any]:
        row = self._fetchone("""
        SELECT
            COUNT(DISTINCT user_wallet) AS total_users,
            COALESCE(SUM(user_received), 0) AS total_sol,
            COUNT(*) AS total_tokens
        FROM payout_transactions
        """)
        return {
            "total_users": row["total_users"],
            "total_sol": row["total_sol"],
            "total_tokens": row["total_tokens"],
        }

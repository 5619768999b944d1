"""
Rent Recovery Configuration
===========================
Network constants, scan thresholds and concurrency limits.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Tuple

from config.settings import Settings

SPL_TOKEN_PROGRAM_ID = "TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA"
TOKEN_2022_PROGRAM_ID = "TokenzQdBNbLqP5VEhdkAS6EPFLC1PHnBqCXEpPxuEb"
SYSTEM_PROGRAM_ID = "11111111111111111111111111111111"


@dataclass
class RecoveryConfig:
    """Thresholds for rent reclamation scans and payout verification."""

    # Network constants
    RENT_EXEMPT_LAMPORTS: int = 2_039_280  # 165-byte SPL token account
    LAMPORTS_PER_SOL: int = 1_000_000_000
    TOKEN_PROGRAM_IDS: Tuple[str, ...] = field(
        default_factory=lambda: (SPL_TOKEN_PROGRAM_ID, TOKEN_2022_PROGRAM_ID)
    )

    # Noise filter: deposits must exceed the threshold by more than this
    DUST_FLOOR_LAMPORTS: int = 1_000  # 0.000001 SOL

    # Rate limiting
    MAX_CONCURRENCY: int = 10
    RPC_TIMEOUT_S: float = 10.0

    # Result cache
    CACHE_TTL_S: float = 300.0
    CACHE_SWEEP_INTERVAL_S: float = 60.0

    # Verifier
    RECIPIENT_WALLET: str = ""

    UNKNOWN_TOKEN_LABEL: str = "unknown"

    @classmethod
    def from_settings(cls) -> "RecoveryConfig":
        return cls(
            RENT_EXEMPT_LAMPORTS=Settings.RENT_EXEMPT_LAMPORTS,
            DUST_FLOOR_LAMPORTS=Settings.DUST_FLOOR_LAMPORTS,
            MAX_CONCURRENCY=Settings.SCAN_MAX_CONCURRENCY,
            RPC_TIMEOUT_S=Settings.RPC_TIMEOUT_S,
            CACHE_TTL_S=Settings.SCAN_CACHE_TTL_S,
            CACHE_SWEEP_INTERVAL_S=Settings.CACHE_SWEEP_INTERVAL_S,
            RECIPIENT_WALLET=Settings.RECIPIENT_WALLET,
        )

    def reclaimable_lamports(self, deposit_lamports: int, token_amount: int):
        """
        Lamports above the rent-exempt threshold, or None when the account
        is not reclaimable (holds tokens, or excess is within the dust floor).
        """
        if token_amount != 0:
            return None
        excess = deposit_lamports - self.RENT_EXEMPT_LAMPORTS
        if excess <= self.DUST_FLOOR_LAMPORTS:
            return None
        return excess

    def to_sol(self, lamports: int) -> Decimal:
        return Decimal(lamports) / Decimal(self.LAMPORTS_PER_SOL)

"""
Rent Recovery Models
====================
Immutable result types produced by the scanner, cache and verifier.
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Iterator, Optional, Tuple


class ReasonCode(str, Enum):
    """Why an account was flagged as reclaimable."""
    ZERO_BALANCE_RENT = "ZERO_BALANCE_RENT"


class VerificationStatus(str, Enum):
    CONFIRMED_MATCH = "CONFIRMED_MATCH"
    CONFIRMED_NO_MATCH = "CONFIRMED_NO_MATCH"
    NOT_FOUND = "NOT_FOUND"
    CHAIN_ERROR = "CHAIN_ERROR"


@dataclass(frozen=True)
class TokenAccountRef:
    """A token account returned by owner enumeration."""
    address: str
    mint: Optional[str] = None
    program_id: Optional[str] = None


@dataclass(frozen=True)
class TokenBalance:
    """Token balance of a single account (raw base units)."""
    amount: int
    decimals: int = 0

    @property
    def is_zero(self) -> bool:
        return self.amount == 0


@dataclass(frozen=True)
class AccountProbe:
    """
    Outcome of fetching one account's balances: either both numbers
    or the reason the account was skipped.
    """
    account: TokenAccountRef
    deposit_lamports: Optional[int] = None
    token_amount: Optional[int] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def skipped(cls, account: TokenAccountRef, error: str) -> "AccountProbe":
        return cls(account=account, error=error)


@dataclass(frozen=True)
class AccountSummary:
    account_address: str
    reclaimable_amount: Decimal
    token_identifier: str
    reason_code: ReasonCode
    observed_at: datetime
    reclaimable_lamports: int = 0
    mint: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "account": self.account_address,
            "recoverable": float(self.reclaimable_amount),
            "recoverable_lamports": self.reclaimable_lamports,
            "mint": self.mint,
            "token": self.token_identifier,
            "type": self.reason_code.value,
            "observed_at": self.observed_at.isoformat(),
        }


@dataclass(frozen=True)
class ScanResult:
    """
    Ranked summaries for one owner plus the partial-failure flag.

    ``partial`` distinguishes "nothing reclaimable" from "some accounts
    could not be evaluated".
    """
    owner_address: str
    summaries: Tuple[AccountSummary, ...]
    scanned_at: datetime
    accounts_enumerated: int = 0
    failed_accounts: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def partial(self) -> bool:
        return len(self.failed_accounts) > 0

    @property
    def total_reclaimable(self) -> Decimal:
        return sum((s.reclaimable_amount for s in self.summaries), Decimal(0))

    def __iter__(self) -> Iterator[AccountSummary]:
        return iter(self.summaries)

    def __len__(self) -> int:
        return len(self.summaries)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "owner": self.owner_address,
            "data": [s.to_dict() for s in self.summaries],
            "partial": self.partial,
            "failed_accounts": list(self.failed_accounts),
            "accounts_enumerated": self.accounts_enumerated,
            "total_recoverable": float(self.total_reclaimable),
            "scanned_at": self.scanned_at.isoformat(),
        }


@dataclass(frozen=True)
class CachedScanResult:
    owner_address: str
    result: ScanResult
    expires_at: float  # monotonic seconds

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at


@dataclass(frozen=True)
class VerificationOutcome:
    signature_id: str
    status: VerificationStatus
    observed_amount: Optional[Decimal] = None
    block_time: Optional[datetime] = None
    expected_amount: Optional[Decimal] = None
    recipient: Optional[str] = None
    slot: Optional[int] = None

    @property
    def confirmed(self) -> bool:
        return self.status == VerificationStatus.CONFIRMED_MATCH

    def amount_matches(self, tolerance: Decimal = Decimal("0")) -> bool:
        """
        Caller-side policy check: measured amount within ``tolerance`` of
        the expected amount. False when either side is missing.
        """
        if self.observed_amount is None or self.expected_amount is None:
            return False
        return abs(self.observed_amount - self.expected_amount) <= Decimal(str(tolerance))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "signature": self.signature_id,
            "status": self.status.value,
            "verified": self.confirmed,
            "observed_amount": float(self.observed_amount) if self.observed_amount is not None else None,
            "expected_amount": float(self.expected_amount) if self.expected_amount is not None else None,
            "block_time": self.block_time.isoformat() if self.block_time else None,
            "recipient": self.recipient,
            "slot": self.slot,
        }

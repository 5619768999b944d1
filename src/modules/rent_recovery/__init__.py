"""
Rent Recovery Module
====================
Finds zero-balance token accounts with refundable rent and verifies that
payout transactions reached the configured recipient.

Components:
- scanner.py: AccountScanner (owner -> ranked reclaimable accounts)
- cache.py: ResultCache (singleflight memo in front of the scanner)
- verifier.py: TransactionVerifier (signature -> measured payout)
- models.py: result types
- errors.py: InvalidAddress / InvalidSignature / ChainUnavailable
- config.py: thresholds and limits
- cli.py: command-line interface

Read-only: nothing here signs or submits transactions.
"""

from src.modules.rent_recovery.config import RecoveryConfig
from src.modules.rent_recovery.errors import (
    ChainUnavailable,
    InvalidAddress,
    InvalidInput,
    InvalidSignature,
    RecoveryError,
)
from src.modules.rent_recovery.models import (
    AccountSummary,
    ReasonCode,
    ScanResult,
    VerificationOutcome,
    VerificationStatus,
)

__all__ = [
    'RecoveryConfig',
    'RecoveryError',
    'InvalidInput',
    'InvalidAddress',
    'InvalidSignature',
    'ChainUnavailable',
    'AccountSummary',
    'ReasonCode',
    'ScanResult',
    'VerificationOutcome',
    'VerificationStatus',
]

"""
Transaction Verifier - Payout Oracle
====================================
Independently measures how many lamports a finalized transaction delivered
to the configured recipient. The caller's expected amount is advisory only:
it is echoed back and logged on mismatch, never trusted.

State machine (single pass, no retries):
    malformed signature        -> InvalidSignature
    RPC failure / bad record   -> ChainUnavailable
    no record                  -> NOT_FOUND
    meta.err set               -> CONFIRMED_NO_MATCH (observed_amount=None)
    recipient received > 0     -> CONFIRMED_MATCH (measured amount)
    otherwise                  -> CONFIRMED_NO_MATCH (observed_amount=0)
"""

import asyncio
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional, Union

from src.modules.rent_recovery.config import SYSTEM_PROGRAM_ID, RecoveryConfig
from src.modules.rent_recovery.errors import ChainUnavailable, InvalidAddress, InvalidSignature
from src.modules.rent_recovery.models import VerificationOutcome, VerificationStatus
from src.modules.rent_recovery.validation import is_valid_address, is_valid_signature
from src.shared.infrastructure.rpc_manager import ChainDataClient, RpcError
from src.shared.system.logging import Logger

TRANSFER_TYPES = ("transfer", "transferWithSeed")

Amount = Union[Decimal, float, int, str]


class MalformedTransaction(ValueError):
    pass


class TransactionVerifier:
    """
    Usage:
        verifier = TransactionVerifier(client, recipient_address=wallet)
        outcome = await verifier.verify(signature, expected_amount=0.05)
    """

    def __init__(
        self,
        client: ChainDataClient,
        recipient_address: str = None,
        config: RecoveryConfig = None,
    ):
        self.client = client
        self.config = config or RecoveryConfig()
        self.recipient = recipient_address or self.config.RECIPIENT_WALLET
        if not is_valid_address(self.recipient):
            raise InvalidAddress(self.recipient)

    async def verify(self, signature_id: str, expected_amount: Optional[Amount] = None) -> VerificationOutcome:
        if not is_valid_signature(signature_id):
            raise InvalidSignature(signature_id)
        expected = self._to_decimal(expected_amount)

        try:
            tx = await asyncio.wait_for(
                self.client.get_transaction(signature_id),
                timeout=self.config.RPC_TIMEOUT_S,
            )
        except RpcError as e:
            Logger.error(f"[VERIFIER] RPC failure for {signature_id[:12]}...: {e}")
            raise ChainUnavailable("getTransaction", str(e)) from e
        except asyncio.TimeoutError as e:
            Logger.error(f"[VERIFIER] Timed out fetching {signature_id[:12]}...")
            raise ChainUnavailable("getTransaction", "timeout") from e

        if tx is None:
            Logger.info(f"[VERIFIER] {signature_id[:12]}... not found")
            return self._outcome(signature_id, VerificationStatus.NOT_FOUND, expected=expected)

        try:
            meta = tx.get("meta")
            if not isinstance(meta, dict):
                raise MalformedTransaction("transaction has no meta")
            block_time = self._block_time(tx.get("blockTime"))
            slot = tx.get("slot")

            if meta.get("err") is not None:
                Logger.warning(f"[VERIFIER] {signature_id[:12]}... failed on-chain: {meta['err']}")
                return self._outcome(
                    signature_id, VerificationStatus.CONFIRMED_NO_MATCH,
                    block_time=block_time, expected=expected, slot=slot,
                )

            received = measure_received_lamports(tx, self.recipient)
        except (MalformedTransaction, TypeError, ValueError, KeyError, AttributeError) as e:
            Logger.error(f"[VERIFIER] Malformed record for {signature_id[:12]}...: {e}")
            raise ChainUnavailable("getTransaction", f"malformed transaction record: {e}") from e

        observed = self.config.to_sol(max(received, 0))
        if received > 0:
            status = VerificationStatus.CONFIRMED_MATCH
            Logger.success(f"[VERIFIER] {signature_id[:12]}... delivered {observed} SOL to recipient")
        else:
            status = VerificationStatus.CONFIRMED_NO_MATCH
            Logger.info(f"[VERIFIER] {signature_id[:12]}... has no transfer to recipient")

        if expected is not None and observed != expected:
            Logger.warning(f"[VERIFIER] Amount mismatch for {signature_id[:12]}...: expected {expected}, observed {observed}")

        return self._outcome(signature_id, status, observed, block_time, expected, slot)

    def _outcome(self, signature_id, status, observed=None, block_time=None, expected=None, slot=None):
        return VerificationOutcome(
            signature_id=signature_id,
            status=status,
            observed_amount=observed,
            block_time=block_time,
            expected_amount=expected,
            recipient=self.recipient,
            slot=slot,
        )

    @staticmethod
    def _block_time(value) -> Optional[datetime]:
        if value is None:
            return None
        return datetime.fromtimestamp(int(value), tz=timezone.utc)

    @staticmethod
    def _to_decimal(amount: Optional[Amount]) -> Optional[Decimal]:
        if amount is None:
            return None
        try:
            return Decimal(str(amount))
        except InvalidOperation as e:
            raise ValueError(f"Invalid expected amount: {amount!r}") from e


# =============================================================================
# MEASUREMENT
# =============================================================================

def account_keys(tx: Dict[str, Any]) -> List[str]:
    """
    Ordered account keys of a jsonParsed transaction, including v0
    loaded addresses (writable then readonly), matching balance indices.
    """
    message = tx["transaction"]["message"]
    keys = []
    for key in message["accountKeys"]:
        keys.append(key["pubkey"] if isinstance(key, dict) else key)

    loaded = tx.get("meta", {}).get("loadedAddresses") or {}
    keys.extend(loaded.get("writable") or [])
    keys.extend(loaded.get("readonly") or [])
    return keys


def balance_delta(tx: Dict[str, Any], address: str) -> Optional[int]:
    """
    Post-minus-pre lamports for ``address``, 0 when the address is not in
    the transaction, None when the record carries no usable balances.
    """
    meta = tx["meta"]
    pre, post = meta.get("preBalances"), meta.get("postBalances")
    keys = account_keys(tx)
    if not isinstance(pre, list) or not isinstance(post, list) or len(pre) != len(keys) or len(post) != len(keys):
        return None
    if address not in keys:
        return 0
    index = keys.index(address)
    return int(post[index]) - int(pre[index])


def transferred_lamports(tx: Dict[str, Any], destination: str) -> int:
    """Sum of parsed System Program transfers (outer and inner) to ``destination``."""
    instructions = list(tx["transaction"]["message"].get("instructions") or [])
    for inner in tx["meta"].get("innerInstructions") or []:
        instructions.extend(inner.get("instructions") or [])

    total = 0
    for ix in instructions:
        if ix.get("programId") != SYSTEM_PROGRAM_ID and ix.get("program") != "system":
            continue
        parsed = ix.get("parsed")
        if not isinstance(parsed, dict) or parsed.get("type") not in TRANSFER_TYPES:
            continue
        info = parsed.get("info") or {}
        if info.get("destination") == destination:
            total += int(info.get("lamports", 0))
    return total


def measure_received_lamports(tx: Dict[str, Any], recipient: str) -> int:
    """Balance delta when available, parsed transfers otherwise."""
    delta = balance_delta(tx, recipient)
    if delta is not None:
        return delta
    return transferred_lamports(tx, recipient)

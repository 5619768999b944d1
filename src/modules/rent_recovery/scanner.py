"""
Account Scanner - Rent Discovery
================================
Finds an owner's token accounts that hold no tokens but still lock a
refundable rent deposit.

Workflow:
1. Validate the owner address (no RPC on failure)
2. Enumerate token accounts (a failure here aborts the scan)
3. Fetch deposit + token balance per account on a bounded worker pool
4. Keep zero-balance accounts whose deposit clears threshold + dust floor
5. Resolve token labels (best effort)
6. Rank by reclaimable amount, most valuable first
"""

import asyncio
from datetime import datetime, timezone
from typing import Callable, List, Optional

from src.modules.rent_recovery.config import RecoveryConfig
from src.modules.rent_recovery.errors import ChainUnavailable, InvalidAddress
from src.modules.rent_recovery.models import (
    AccountProbe,
    AccountSummary,
    ReasonCode,
    ScanResult,
    TokenAccountRef,
)
from src.modules.rent_recovery.validation import is_valid_address
from src.shared.infrastructure.rpc_manager import ChainDataClient, RpcError
from src.shared.infrastructure.token_registry import TokenLookupError, TokenRegistry
from src.shared.system.logging import Logger


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AccountScanner:
    """
    Usage:
        scanner = AccountScanner(client, token_registry=registry)
        result = await scanner.scan(owner)
        for summary in result:
            ...
        if result.partial:
            ...
    """

    def __init__(
        self,
        client: ChainDataClient,
        config: RecoveryConfig = None,
        token_registry: Optional[TokenRegistry] = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.client = client
        self.config = config or RecoveryConfig()
        self.token_registry = token_registry
        self._clock = clock

    async def scan(self, owner_address: str) -> ScanResult:
        if not is_valid_address(owner_address):
            raise InvalidAddress(owner_address)

        scanned_at = self._clock()
        Logger.info(f"[SCANNER] Scanning {owner_address[:8]}... for reclaimable rent")

        try:
            refs = await self._timed(
                self.client.list_token_accounts(owner_address, list(self.config.TOKEN_PROGRAM_IDS))
            )
        except RpcError as e:
            Logger.error(f"[SCANNER] Enumeration failed for {owner_address[:8]}...: {e}")
            raise ChainUnavailable("listTokenAccounts", str(e)) from e
        except asyncio.TimeoutError as e:
            Logger.error(f"[SCANNER] Enumeration timed out for {owner_address[:8]}...")
            raise ChainUnavailable("listTokenAccounts", "timeout") from e

        refs = self._dedupe(refs)
        semaphore = asyncio.Semaphore(self.config.MAX_CONCURRENCY)

        probes = await asyncio.gather(*(self._probe(ref, semaphore) for ref in refs))

        failed = [p.account.address for p in probes if not p.ok]
        candidates = []
        for probe in probes:
            if not probe.ok:
                continue
            lamports = self.config.reclaimable_lamports(probe.deposit_lamports, probe.token_amount)
            if lamports is not None:
                candidates.append((probe.account, lamports))

        labels = await asyncio.gather(*(self._resolve_label(ref, semaphore) for ref, _ in candidates))

        summaries = [
            AccountSummary(
                account_address=ref.address,
                reclaimable_amount=self.config.to_sol(lamports),
                token_identifier=label,
                reason_code=ReasonCode.ZERO_BALANCE_RENT,
                observed_at=scanned_at,
                reclaimable_lamports=lamports,
                mint=ref.mint,
            )
            for (ref, lamports), label in zip(candidates, labels)
        ]
        summaries.sort(key=lambda s: (-s.reclaimable_lamports, s.account_address))

        result = ScanResult(
            owner_address=owner_address,
            summaries=tuple(summaries),
            scanned_at=scanned_at,
            accounts_enumerated=len(refs),
            failed_accounts=tuple(sorted(failed)),
        )

        if result.partial:
            Logger.warning(
                f"[SCANNER] Partial scan for {owner_address[:8]}...: "
                f"{len(failed)}/{len(refs)} accounts could not be evaluated"
            )
        Logger.success(
            f"[SCANNER] Scan complete: {len(summaries)} reclaimable of {len(refs)} accounts "
            f"({result.total_reclaimable:.6f} SOL)"
        )
        return result

    async def _probe(self, ref: TokenAccountRef, semaphore: asyncio.Semaphore) -> AccountProbe:
        """Fetch both balances for one account; failures become a skipped probe."""
        async with semaphore:
            outcomes = await asyncio.gather(
                self._timed(self.client.get_account_balance(ref.address)),
                self._timed(self.client.get_token_balance(ref.address)),
                return_exceptions=True,
            )

        for outcome in outcomes:
            if isinstance(outcome, asyncio.TimeoutError):
                Logger.debug(f"[SCANNER] Skipping {ref.address[:8]}...: timeout")
                return AccountProbe.skipped(ref, "timeout")
            if isinstance(outcome, RpcError):
                Logger.debug(f"[SCANNER] Skipping {ref.address[:8]}...: {outcome}")
                return AccountProbe.skipped(ref, str(outcome))
            if isinstance(outcome, BaseException):
                raise outcome

        deposit, token = outcomes
        return AccountProbe(account=ref, deposit_lamports=deposit, token_amount=token.amount)

    async def _resolve_label(self, ref: TokenAccountRef, semaphore: asyncio.Semaphore) -> str:
        unknown = self.config.UNKNOWN_TOKEN_LABEL
        if self.token_registry is None or not ref.mint:
            return unknown

        async with semaphore:
            try:
                label = await self._timed(self.token_registry.resolve(ref.mint))
            except (TokenLookupError, asyncio.TimeoutError) as e:
                Logger.debug(f"[SCANNER] Label lookup failed for {ref.mint[:8]}...: {e!r}")
                return unknown
        return label or unknown

    async def _timed(self, coro):
        return await asyncio.wait_for(coro, timeout=self.config.RPC_TIMEOUT_S)

    @staticmethod
    def _dedupe(refs: List[TokenAccountRef]) -> List[TokenAccountRef]:
        seen = {}
        for ref in refs:
            seen.setdefault(ref.address, ref)
        return list(seen.values())

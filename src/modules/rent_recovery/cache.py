"""
Result Cache - Singleflight Scan Memo
=====================================
Process-wide memo of successful scans keyed by owner address.

- At most one scan in flight per owner; concurrent callers share it
- The scan runs in its own task: a cancelled caller only detaches itself
- Failures and partial scans are never stored
- Entries expire lazily on access, plus a sweep at most once per interval

Every check-then-insert below runs without an intervening await, so the
event loop never interleaves two of them.
"""

import asyncio
import time
from typing import Callable, Dict, Optional

from src.modules.rent_recovery.config import RecoveryConfig
from src.modules.rent_recovery.models import CachedScanResult, ScanResult
from src.modules.rent_recovery.scanner import AccountScanner
from src.shared.system.logging import Logger


class ResultCache:
    """
    Usage:
        cache = ResultCache(scanner)
        result = await cache.get_or_scan(owner)
    """

    def __init__(
        self,
        scanner: AccountScanner,
        ttl: float = None,
        sweep_interval: float = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        config = getattr(scanner, "config", None) or RecoveryConfig()
        self.scanner = scanner
        self.ttl = ttl if ttl is not None else config.CACHE_TTL_S
        self.sweep_interval = sweep_interval if sweep_interval is not None else config.CACHE_SWEEP_INTERVAL_S
        self._clock = clock

        self._entries: Dict[str, CachedScanResult] = {}
        self._inflight: Dict[str, asyncio.Task] = {}
        self._last_sweep = clock()

        self.hits = 0
        self.misses = 0
        self.coalesced = 0
        self.scans = 0

    async def get_or_scan(self, owner_address: str, ttl: Optional[float] = None) -> ScanResult:
        now = self._clock()
        self._maybe_sweep(now)

        entry = self._entries.get(owner_address)
        if entry is not None:
            if not entry.is_expired(now):
                self.hits += 1
                Logger.debug(f"[CACHE] Hit for {owner_address[:8]}...")
                return entry.result
            del self._entries[owner_address]

        flight = self._inflight.get(owner_address)
        if flight is None:
            self.misses += 1
            flight = asyncio.get_running_loop().create_task(
                self._run(owner_address, self.ttl if ttl is None else ttl)
            )
            flight.add_done_callback(self._drain)
            self._inflight[owner_address] = flight
        else:
            self.coalesced += 1
            Logger.debug(f"[CACHE] Joining in-flight scan for {owner_address[:8]}...")

        # Cancelling this caller must not cancel the shared scan
        return await asyncio.shield(flight)

    async def _run(self, owner_address: str, ttl: float) -> ScanResult:
        self.scans += 1
        try:
            result = await self.scanner.scan(owner_address)
        finally:
            self._inflight.pop(owner_address, None)

        if result.partial:
            Logger.debug(f"[CACHE] Not caching partial scan for {owner_address[:8]}...")
        else:
            self._entries[owner_address] = CachedScanResult(
                owner_address=owner_address,
                result=result,
                expires_at=self._clock() + ttl,
            )
        return result

    @staticmethod
    def _drain(flight: asyncio.Task) -> None:
        # Every caller may have detached; retrieve the error so it is not reported as lost
        if not flight.cancelled():
            flight.exception()

    def _maybe_sweep(self, now: float) -> None:
        if now - self._last_sweep < self.sweep_interval:
            return
        self._last_sweep = now
        expired = [owner for owner, entry in self._entries.items() if entry.is_expired(now)]
        for owner in expired:
            del self._entries[owner]
        if expired:
            Logger.debug(f"[CACHE] Swept {len(expired)} expired entries")

    def __len__(self) -> int:
        return len(self._entries)

    def get_stats(self) -> Dict[str, int]:
        return {
            "entries": len(self._entries),
            "in_flight": len(self._inflight),
            "hits": self.hits,
            "misses": self.misses,
            "coalesced": self.coalesced,
            "scans": self.scans,
        }

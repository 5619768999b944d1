"""
Token Registry
==============
Best-effort mint -> label lookup for scan summaries.

Provides:
- Static labels for well-known mints
- DexScreener lookup for everything else
- In-memory memo of every answer, including "no label"
"""

from typing import Dict, Optional

import httpx

from config.settings import Settings
from src.shared.system.logging import Logger

KNOWN_MINTS = {
    "So11111111111111111111111111111111111111112": "SOL",
    "EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v": "USDC",
    "Es9vMFrzaCERmJfrF4H2FYD4KCoNkY11McCe8BenwNYB": "USDT",
    "DezXAZ8z7PnrnRJjz3wXBoRgixCa6xjnB7YaB1pPB263": "BONK",
    "JUPyiwrYJFskUPiHa7hkeR8VUtAeFoSYbKedZNsDvCN": "JUP",
    "mSoLzYCxHdYgdzU16g5QSh3i5K3z3KZK7ytfqcJm7So": "mSOL",
}


class TokenLookupError(Exception):
    """The label source could not be reached or answered garbage."""


class TokenRegistry:
    """
    Usage:
        registry = TokenRegistry()
        label = await registry.resolve(mint)  # None when unknown
    """

    def __init__(
        self,
        api_url: str = None,
        lookup_enabled: bool = None,
        timeout: float = 3.0,
        transport: httpx.AsyncBaseTransport = None,
    ):
        self.api_url = (api_url or Settings.DEXSCREENER_API_URL).rstrip("/")
        self.lookup_enabled = Settings.TOKEN_LOOKUP_ENABLED if lookup_enabled is None else lookup_enabled
        self._client = httpx.AsyncClient(timeout=timeout, transport=transport)
        self._static: Dict[str, str] = dict(KNOWN_MINTS)
        self._dynamic: Dict[str, Optional[str]] = {}
        self.lookups = 0

    async def aclose(self) -> None:
        await self._client.aclose()

    def register(self, mint: str, label: str) -> None:
        self._static[mint] = label

    async def resolve(self, mint: str) -> Optional[str]:
        if mint in self._static:
            return self._static[mint]
        if mint in self._dynamic:
            return self._dynamic[mint]
        if not self.lookup_enabled:
            return None

        label = await self._fetch_from_dexscreener(mint)
        self._dynamic[mint] = label
        return label

    async def _fetch_from_dexscreener(self, mint: str) -> Optional[str]:
        self.lookups += 1
        try:
            resp = await self._client.get(f"{self.api_url}/{mint}")
        except httpx.HTTPError as e:
            raise TokenLookupError(f"DexScreener unreachable: {type(e).__name__}") from e

        if resp.status_code == 404:
            return None
        if resp.status_code != 200:
            raise TokenLookupError(f"DexScreener HTTP {resp.status_code}")

        try:
            pairs = resp.json().get("pairs") or []
        except (ValueError, AttributeError) as e:
            raise TokenLookupError("DexScreener returned malformed JSON") from e
        if not isinstance(pairs, list):
            raise TokenLookupError("DexScreener pairs is not a list")

        for pair in pairs:
            base_token = pair.get("baseToken") if isinstance(pair, dict) else None
            if not isinstance(base_token, dict):
                raise TokenLookupError(f"DexScreener returned a malformed pair: {pair!r}")
            if base_token.get("address") not in (None, mint):
                continue
            symbol = base_token.get("symbol") or base_token.get("name")
            if isinstance(symbol, str) and symbol:
                Logger.debug(f"[REGISTRY] Discovered: {mint[:8]}... = {symbol}")
                return symbol
        return None

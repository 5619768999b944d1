"""
RPC Failover Manager
====================
Async Solana JSON-RPC client over a pool of providers with health tracking.

Transport failures rotate to the next provider for the NEXT call; no call
is retried here. Callers decide whether a failure is fatal.
"""

import time
import itertools
from typing import Any, Dict, List, Optional

import httpx

from config.settings import Settings
from src.modules.rent_recovery.config import SPL_TOKEN_PROGRAM_ID, TOKEN_2022_PROGRAM_ID
from src.modules.rent_recovery.models import TokenAccountRef, TokenBalance
from src.shared.system.logging import Logger


DEFAULT_TOKEN_PROGRAMS = [SPL_TOKEN_PROGRAM_ID, TOKEN_2022_PROGRAM_ID]


class RpcError(Exception):
    """Transport-level failure: network, timeout, HTTP 429/5xx or JSON-RPC error."""


class RpcResponseError(RpcError):
    """The provider answered but the payload was not the expected shape."""


class ChainDataClient:
    """
    Read-only chain-data client used by the scanner and verifier.

    Usage:
        async with ChainDataClient() as client:
            refs = await client.list_token_accounts(owner)
    """

    def __init__(
        self,
        rpc_urls: List[str] = None,
        timeout: float = None,
        transport: httpx.AsyncBaseTransport = None,
    ):
        self.rpc_urls = rpc_urls or [Settings.RPC_URL, *Settings.RPC_FALLBACK_URLS]

        # Deduplicate and filter empty
        self.rpc_urls = list(dict.fromkeys([u for u in self.rpc_urls if u]))
        if not self.rpc_urls:
            raise ValueError("At least one RPC URL is required")

        self.timeout = timeout if timeout is not None else Settings.RPC_TIMEOUT_S
        self.current_index = 0
        self._ids = itertools.count(1)
        self._client = httpx.AsyncClient(timeout=self.timeout, transport=transport)
        self.stats: Dict[str, Dict] = {
            url: {
                "success": 0,
                "errors": 0,
                "avg_latency": 0.0,
                "last_error_time": 0,
                "last_error": None,
            }
            for url in self.rpc_urls
        }

        Logger.info(f"[RPC] Client initialized with {len(self.rpc_urls)} providers")

    async def __aenter__(self) -> "ChainDataClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    def get_active_url(self) -> str:
        return self.rpc_urls[self.current_index]

    # =========================================================================
    # TRANSPORT
    # =========================================================================

    async def call(self, method: str, params: list = None) -> Any:
        """
        Execute one JSON-RPC request against the active provider and return
        its ``result`` member.
        """
        url = self.get_active_url()
        payload = {"jsonrpc": "2.0", "id": next(self._ids), "method": method, "params": params or []}
        start = time.time()

        try:
            response = await self._client.post(url, json=payload)
        except httpx.HTTPError as e:
            self._record_error(url, f"{type(e).__name__}: {e}")
            self.switch_provider(reason=f"Network Error: {type(e).__name__}")
            raise RpcError(f"{method} failed: {type(e).__name__}: {e}") from e

        latency = (time.time() - start) * 1000

        # Soft failures (rate limit, provider outage)
        if response.status_code == 429 or response.status_code >= 500:
            self._record_error(url, f"HTTP {response.status_code}")
            self.switch_provider(reason=f"HTTP {response.status_code}")
            raise RpcError(f"{method} failed: HTTP {response.status_code}")

        if response.status_code != 200:
            self._record_error(url, f"HTTP {response.status_code}")
            raise RpcError(f"{method} failed: HTTP {response.status_code}")

        try:
            data = response.json()
        except ValueError as e:
            self._record_error(url, "Malformed JSON")
            raise RpcResponseError(f"{method} returned malformed JSON") from e

        if not isinstance(data, dict):
            self._record_error(url, "Malformed envelope")
            raise RpcResponseError(f"{method} returned a non-object envelope")

        if data.get("error") is not None:
            self._record_error(url, str(data["error"]))
            raise RpcError(f"{method} failed: {data['error']}")

        self._record_success(url, latency)
        return data.get("result")

    # =========================================================================
    # CHAIN DATA
    # =========================================================================

    async def list_token_accounts(self, owner: str, program_ids: List[str] = None) -> List[TokenAccountRef]:
        """Enumerate all token accounts owned by ``owner`` across token programs."""
        refs: List[TokenAccountRef] = []
        for program_id in program_ids or DEFAULT_TOKEN_PROGRAMS:
            result = await self.call(
                "getTokenAccountsByOwner",
                [owner, {"programId": program_id}, {"encoding": "jsonParsed", "commitment": "confirmed"}],
            )
            entries = self._value(result, "getTokenAccountsByOwner")
            if not isinstance(entries, list):
                raise RpcResponseError("getTokenAccountsByOwner value is not a list")

            for entry in entries:
                pubkey = entry.get("pubkey") if isinstance(entry, dict) else None
                if not isinstance(pubkey, str):
                    Logger.debug(f"[RPC] Skipping malformed token account entry: {entry!r}")
                    continue
                refs.append(TokenAccountRef(address=pubkey, mint=self._parsed_mint(entry), program_id=program_id))

        return refs

    async def get_account_balance(self, account: str) -> int:
        """Lamports held by ``account``."""
        result = await self.call("getBalance", [account, {"commitment": "confirmed"}])
        value = self._value(result, "getBalance")
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            raise RpcResponseError(f"getBalance returned invalid lamports: {value!r}")
        return value

    async def get_token_balance(self, account: str) -> TokenBalance:
        """Token balance of a token account."""
        result = await self.call("getTokenAccountBalance", [account, {"commitment": "confirmed"}])
        value = self._value(result, "getTokenAccountBalance")
        try:
            return TokenBalance(
                amount=int(value["amount"]),
                decimals=int(value.get("decimals", 0)),
            )
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise RpcResponseError(f"getTokenAccountBalance returned invalid value: {value!r}") from e

    async def get_transaction(self, signature: str) -> Optional[Dict[str, Any]]:
        """Finalized transaction record, or None when the cluster has no record."""
        result = await self.call(
            "getTransaction",
            [signature, {"encoding": "jsonParsed", "commitment": "finalized", "maxSupportedTransactionVersion": 0}],
        )
        if result is None:
            return None
        if not isinstance(result, dict):
            raise RpcResponseError("getTransaction returned a non-object record")
        return result

    async def ping(self) -> bool:
        """getHealth against the active provider."""
        try:
            return await self.call("getHealth") == "ok"
        except RpcError:
            return False

    # =========================================================================
    # HELPERS
    # =========================================================================

    @staticmethod
    def _value(result: Any, method: str) -> Any:
        if not isinstance(result, dict) or "value" not in result:
            raise RpcResponseError(f"{method} returned no value")
        return result["value"]

    @staticmethod
    def _parsed_mint(entry: dict) -> Optional[str]:
        # jsonParsed shape: account.data.parsed.info.mint; any other shape has no mint
        node = entry
        for key in ("account", "data", "parsed", "info"):
            node = node.get(key) if isinstance(node, dict) else None
        mint = node.get("mint") if isinstance(node, dict) else None
        return mint if isinstance(mint, str) else None

    def _record_success(self, url: str, latency: float):
        s = self.stats[url]
        s["success"] += 1
        # Exponential moving average for latency
        if s["avg_latency"] == 0:
            s["avg_latency"] = latency
        else:
            s["avg_latency"] = 0.9 * s["avg_latency"] + 0.1 * latency

    def _record_error(self, url: str, error_msg: str):
        s = self.stats[url]
        s["errors"] += 1
        s["last_error_time"] = time.time()
        s["last_error"] = error_msg
        Logger.debug(f"[RPC] {url}: {error_msg}")

    def switch_provider(self, reason: str = "Unknown"):
        """Rotate to the next provider."""
        if len(self.rpc_urls) == 1:
            return
        old_url = self.get_active_url()
        self.current_index = (self.current_index + 1) % len(self.rpc_urls)
        Logger.warning(f"[RPC] Switching Provider: {old_url} -> {self.get_active_url()} (Reason: {reason})")

    def get_stats(self):
        return {"active_provider": self.get_active_url(), "providers": self.stats}

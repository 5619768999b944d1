"""
Mock Chain Client
=================
Fake chain-data client for testing without network calls.
"""

import asyncio
from collections import Counter
from typing import Any, Dict, List, Optional

from src.modules.rent_recovery.models import TokenAccountRef, TokenBalance
from src.shared.infrastructure.rpc_manager import RpcError, RpcResponseError


class MockChainClient:
    """
    Mock chain-data client.

    Usage:
        client = MockChainClient()
        client.add_token_account(owner, address, lamports=2_049_280, token_amount=0)
        refs = await client.list_token_accounts(owner)
    """

    def __init__(self):
        self._accounts: Dict[str, List[TokenAccountRef]] = {}
        self._lamports: Dict[str, int] = {}
        self._token_amounts: Dict[str, int] = {}
        self._transactions: Dict[str, Dict[str, Any]] = {}

        # Failure injection
        self.list_error: Optional[Exception] = None
        self.transaction_error: Optional[Exception] = None
        self.failing_accounts: Dict[str, Exception] = {}
        self.hanging_accounts: set = set()
        self.healthy = True

        self.delay = 0.0
        self.calls = Counter()
        self.in_flight = 0
        self.max_in_flight = 0

    # --- Setup -----------------------------------------------------------

    def add_token_account(
        self,
        owner: str,
        address: str,
        lamports: int,
        token_amount: int = 0,
        mint: Optional[str] = None,
    ) -> None:
        self._accounts.setdefault(owner, []).append(TokenAccountRef(address=address, mint=mint))
        self._lamports[address] = lamports
        self._token_amounts[address] = token_amount

    def fail_account(self, address: str, error: Exception = None) -> None:
        self.failing_accounts[address] = error or RpcError("getBalance failed: HTTP 503")

    def set_transaction(self, signature: str, record: Dict[str, Any]) -> None:
        self._transactions[signature] = record

    # --- ChainDataClient surface -----------------------------------------

    async def list_token_accounts(self, owner: str, program_ids: List[str] = None) -> List[TokenAccountRef]:
        self.calls["list_token_accounts"] += 1
        await asyncio.sleep(self.delay)
        if self.list_error is not None:
            raise self.list_error
        return list(self._accounts.get(owner, []))

    async def get_account_balance(self, account: str) -> int:
        self.calls["get_account_balance"] += 1
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delay)
            if account in self.hanging_accounts:
                await asyncio.sleep(3600)
            if account in self.failing_accounts:
                raise self.failing_accounts[account]
            return self._lamports[account]
        finally:
            self.in_flight -= 1

    async def get_token_balance(self, account: str) -> TokenBalance:
        self.calls["get_token_balance"] += 1
        await asyncio.sleep(self.delay)
        if account not in self._token_amounts:
            raise RpcResponseError("getTokenAccountBalance returned no value")
        return TokenBalance(amount=self._token_amounts[account], decimals=6)

    async def get_transaction(self, signature: str) -> Optional[Dict[str, Any]]:
        self.calls["get_transaction"] += 1
        await asyncio.sleep(self.delay)
        if self.transaction_error is not None:
            raise self.transaction_error
        return self._transactions.get(signature)

    async def ping(self) -> bool:
        self.calls["ping"] += 1
        return self.healthy

    def get_active_url(self) -> str:
        return "mock://rpc"

    async def aclose(self) -> None:
        pass


def build_transaction(
    keys: List[str],
    pre: List[int],
    post: List[int],
    err: Any = None,
    block_time: int = 1_700_000_000,
    instructions: List[Dict[str, Any]] = None,
    inner_instructions: List[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """jsonParsed getTransaction record with the given balances."""
    return {
        "slot": 250_000_000,
        "blockTime": block_time,
        "meta": {
            "err": err,
            "fee": 5000,
            "preBalances": pre,
            "postBalances": post,
            "innerInstructions": inner_instructions or [],
        },
        "transaction": {
            "message": {
                "accountKeys": [
                    {"pubkey": key, "signer": i == 0, "writable": True, "source": "transaction"}
                    for i, key in enumerate(keys)
                ],
                "instructions": instructions or [],
            },
            "signatures": ["sig"],
        },
    }

"""
ChainDataClient Unit Tests
==========================
JSON-RPC envelope handling and provider rotation over httpx.MockTransport.
"""

import json

import httpx
import pytest

PRIMARY = "https://primary.rpc"
BACKUP = "https://backup.rpc"


def rpc_result(result):
    return httpx.Response(200, json={"jsonrpc": "2.0", "id": 1, "result": result})


def make_client(handler, urls=None):
    from src.shared.infrastructure.rpc_manager import ChainDataClient
    return ChainDataClient(
        rpc_urls=urls or [PRIMARY, BACKUP],
        timeout=1.0,
        transport=httpx.MockTransport(handler),
    )


class TestTransport:

    @pytest.mark.asyncio
    async def test_rotates_on_server_error(self):
        from src.shared.infrastructure.rpc_manager import RpcError

        hosts = []

        def handler(request):
            hosts.append(request.url.host)
            if request.url.host == "primary.rpc":
                return httpx.Response(503)
            return rpc_result({"context": {"slot": 1}, "value": 5_000})

        async with make_client(handler) as client:
            with pytest.raises(RpcError):
                await client.get_account_balance("acct")
            assert client.get_active_url() == BACKUP

            assert await client.get_account_balance("acct") == 5_000

        assert hosts == ["primary.rpc", "backup.rpc"]

    @pytest.mark.asyncio
    async def test_rotates_on_network_error(self):
        from src.shared.infrastructure.rpc_manager import RpcError

        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        async with make_client(handler) as client:
            with pytest.raises(RpcError):
                await client.call("getHealth")

            stats = client.get_stats()
            assert stats["active_provider"] == BACKUP
            assert stats["providers"][PRIMARY]["errors"] == 1

    @pytest.mark.asyncio
    async def test_client_error_does_not_rotate(self):
        from src.shared.infrastructure.rpc_manager import RpcError

        async with make_client(lambda request: httpx.Response(400)) as client:
            with pytest.raises(RpcError):
                await client.call("getHealth")
            assert client.get_active_url() == PRIMARY

    @pytest.mark.asyncio
    async def test_jsonrpc_error_member(self):
        from src.shared.infrastructure.rpc_manager import RpcError

        def handler(request):
            return httpx.Response(200, json={"jsonrpc": "2.0", "id": 1, "error": {"code": -32602, "message": "Invalid param"}})

        async with make_client(handler) as client:
            with pytest.raises(RpcError, match="Invalid param"):
                await client.call("getBalance", ["acct"])

    @pytest.mark.asyncio
    async def test_malformed_json(self):
        from src.shared.infrastructure.rpc_manager import RpcResponseError

        async with make_client(lambda request: httpx.Response(200, content=b"<html>")) as client:
            with pytest.raises(RpcResponseError):
                await client.call("getHealth")

    @pytest.mark.asyncio
    async def test_request_envelope(self):
        seen = {}

        def handler(request):
            seen.update(json.loads(request.content))
            return rpc_result("ok")

        async with make_client(handler) as client:
            assert await client.ping()

        assert seen["jsonrpc"] == "2.0"
        assert seen["method"] == "getHealth"

    def test_requires_a_url(self):
        from src.shared.infrastructure.rpc_manager import ChainDataClient

        with pytest.raises(ValueError):
            ChainDataClient(rpc_urls=["", ""])


class TestChainData:

    @pytest.mark.asyncio
    async def test_lists_accounts_across_token_programs(self):
        from src.modules.rent_recovery.config import SPL_TOKEN_PROGRAM_ID, TOKEN_2022_PROGRAM_ID

        def handler(request):
            body = json.loads(request.content)
            program_id = body["params"][1]["programId"]
            if program_id == SPL_TOKEN_PROGRAM_ID:
                value = [
                    {"pubkey": "acct-a", "account": {"data": {"parsed": {"info": {"mint": "mint-a"}}}}},
                    {"account": {}},  # no pubkey: skipped
                ]
            else:
                value = [{"pubkey": "acct-b", "account": {"data": ["", "base64"]}}]
            return rpc_result({"context": {"slot": 1}, "value": value})

        async with make_client(handler) as client:
            refs = await client.list_token_accounts("owner")

        assert [(r.address, r.mint, r.program_id) for r in refs] == [
            ("acct-a", "mint-a", SPL_TOKEN_PROGRAM_ID),
            ("acct-b", None, TOKEN_2022_PROGRAM_ID),
        ]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("account", [
        "oops",
        {"data": "oops"},
        {"data": {"parsed": "oops"}},
        {"data": {"parsed": {"info": ["oops"]}}},
        {"data": {"parsed": {"info": {"mint": 7}}}},
    ])
    async def test_unexpected_account_shape_has_no_mint(self, account):
        pubkey = "x" * 44

        def handler(request):
            return rpc_result({"context": {"slot": 1}, "value": [{"pubkey": pubkey, "account": account}]})

        async with make_client(handler, urls=[PRIMARY]) as client:
            refs = await client.list_token_accounts("owner", program_ids=["prog"])

        assert [(r.address, r.mint) for r in refs] == [(pubkey, None)]

    @pytest.mark.asyncio
    async def test_list_rejects_missing_value(self):
        from src.shared.infrastructure.rpc_manager import RpcResponseError

        async with make_client(lambda request: rpc_result({"context": {"slot": 1}})) as client:
            with pytest.raises(RpcResponseError):
                await client.list_token_accounts("owner")

    @pytest.mark.asyncio
    async def test_balance_must_be_non_negative_int(self):
        from src.shared.infrastructure.rpc_manager import RpcResponseError

        async with make_client(lambda request: rpc_result({"value": "lots"})) as client:
            with pytest.raises(RpcResponseError):
                await client.get_account_balance("acct")

    @pytest.mark.asyncio
    async def test_token_balance(self):
        def handler(request):
            return rpc_result({"value": {"amount": "0", "decimals": 6, "uiAmount": 0.0}})

        async with make_client(handler) as client:
            balance = await client.get_token_balance("acct")

        assert balance.amount == 0
        assert balance.decimals == 6
        assert balance.is_zero

    @pytest.mark.asyncio
    async def test_missing_transaction_is_none(self):
        seen = {}

        def handler(request):
            seen.update(json.loads(request.content))
            return rpc_result(None)

        async with make_client(handler) as client:
            assert await client.get_transaction("sig") is None

        options = seen["params"][1]
        assert options["commitment"] == "finalized"
        assert options["maxSupportedTransactionVersion"] == 0

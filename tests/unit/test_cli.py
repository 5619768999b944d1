"""
Rent Recovery CLI Unit Tests
============================
Exit codes and JSON output with the chain client swapped for a mock.
"""

import json

import pytest

from tests.mocks.mock_rpc import build_transaction


@pytest.fixture
def wired(monkeypatch, mock_chain, recipient, recovery_config):
    """Patch service wiring so the CLI talks to the mock chain."""
    from src.interface.services import RecoveryServices
    from src.modules.rent_recovery import cli
    from src.modules.rent_recovery.cache import ResultCache
    from src.modules.rent_recovery.scanner import AccountScanner
    from src.modules.rent_recovery.verifier import TransactionVerifier

    def fake_build_services(config=None, with_ledger=True):
        return RecoveryServices(
            client=mock_chain,
            cache=ResultCache(AccountScanner(mock_chain, config=recovery_config)),
            verifier=TransactionVerifier(mock_chain, recipient_address=recipient, config=recovery_config),
            repo=None,
        )

    monkeypatch.setattr(cli, "build_services", fake_build_services)
    return cli


def _json_output(capsys):
    out = capsys.readouterr().out
    return json.loads(out[out.index("{"):])


def test_scan_json(wired, mock_chain, owner, new_address, capsys):
    mock_chain.add_token_account(owner, new_address(), lamports=12_039_280)

    assert wired.main(["--scan", owner, "--json"]) == 0

    body = _json_output(capsys)
    assert body["owner"] == owner
    assert body["data"][0]["recoverable"] == pytest.approx(0.01)


def test_partial_scan_exit_code(wired, mock_chain, owner, new_address):
    bad = new_address()
    mock_chain.add_token_account(owner, bad, lamports=12_039_280)
    mock_chain.fail_account(bad)

    assert wired.main(["--scan", owner]) == 2


def test_invalid_owner_exit_code(wired):
    assert wired.main(["--scan", "not-a-wallet"]) == 1


def test_chain_unavailable_exit_code(wired, mock_chain, owner):
    from src.shared.infrastructure.rpc_manager import RpcError

    mock_chain.list_error = RpcError("getTokenAccountsByOwner failed: HTTP 503")

    assert wired.main(["--scan", owner]) == 3


def test_verify_json(wired, mock_chain, recipient, new_address, new_signature, capsys):
    sig = new_signature()
    mock_chain.set_transaction(sig, build_transaction(
        keys=[new_address(), recipient], pre=[10**9, 0], post=[10**9 - 10**7 - 5000, 10**7],
    ))

    assert wired.main(["--verify", sig, "--expected", "0.01", "--json"]) == 0

    body = _json_output(capsys)
    assert body["status"] == "CONFIRMED_MATCH"
    assert body["observed_amount"] == pytest.approx(0.01)


def test_main_entrypoint_routes_scan(monkeypatch):
    import main
    from src.modules.rent_recovery import cli

    seen = {}
    monkeypatch.setattr(cli, "run", lambda args: seen.setdefault("args", args) and 0)

    assert main.main(["scan", "Owner1111111111111111111111111111111111111", "--json"]) == 0
    assert seen["args"].scan.startswith("Owner")
    assert seen["args"].verify is None
    assert seen["args"].json is True

"""
Integration Test Configuration
==============================
Real cache, verifier and ledger wired over an in-memory chain client.
"""

import pytest


@pytest.fixture
def ledger(tmp_path):
    """
    Payout ledger on an ephemeral SQLite file.
    Pre-initialized with schema.
    """
    from src.shared.system.database.core import DatabaseCore
    from src.shared.system.database.repositories.payout_repo import PayoutRepository

    repo = PayoutRepository(DatabaseCore(str(tmp_path / "test_freesol.db")))
    repo.init_table()
    return repo


@pytest.fixture
def services(mock_chain, recipient, recovery_config, ledger):
    from src.interface.services import RecoveryServices
    from src.modules.rent_recovery.cache import ResultCache
    from src.modules.rent_recovery.scanner import AccountScanner
    from src.modules.rent_recovery.verifier import TransactionVerifier

    scanner = AccountScanner(mock_chain, config=recovery_config)
    return RecoveryServices(
        client=mock_chain,
        cache=ResultCache(scanner),
        verifier=TransactionVerifier(mock_chain, recipient_address=recipient, config=recovery_config),
        repo=ledger,
    )


@pytest.fixture
def api(services):
    """TestClient over the app with injected services (no lifespan build)."""
    from fastapi.testclient import TestClient
    from src.interface.api_service import create_app

    return TestClient(create_app(services))

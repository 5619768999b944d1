"""
FreeSol Test Configuration
==========================
Shared fixtures and pytest markers for the test suite.
"""

import os
import sys
import tempfile

import pytest

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

# Keep test runs quiet and out of the project tree (read by config.settings on import)
os.environ.setdefault("SILENT_MODE", "true")
os.environ.setdefault("LOG_DIR", os.path.join(tempfile.gettempdir(), "freesol-test-logs"))
os.environ.setdefault("TOKEN_LOOKUP_ENABLED", "false")


# ============================================================================
# PYTEST MARKERS
# ============================================================================

def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "network: marks tests that require network access"
    )
    config.addinivalue_line(
        "markers", "integration: marks integration tests"
    )


# ============================================================================
# SHARED FIXTURES
# ============================================================================

@pytest.fixture
def new_address():
    """Factory for fresh, valid base58 public keys."""
    from solders.keypair import Keypair

    def _new() -> str:
        return str(Keypair().pubkey())
    return _new


@pytest.fixture
def new_signature():
    """Factory for fresh, valid base58 transaction signatures."""
    from solders.keypair import Keypair

    def _new() -> str:
        return str(Keypair().sign_message(os.urandom(16)))
    return _new


@pytest.fixture
def owner(new_address):
    return new_address()


@pytest.fixture
def recipient(new_address):
    return new_address()


@pytest.fixture
def mock_chain():
    """In-memory chain-data client."""
    from tests.mocks.mock_rpc import MockChainClient
    return MockChainClient()


@pytest.fixture
def recovery_config():
    from src.modules.rent_recovery.config import RecoveryConfig
    return RecoveryConfig(RPC_TIMEOUT_S=1.0)

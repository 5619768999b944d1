"""
FreeSol Test Mocks
==================
Reusable mock classes for isolated testing.
"""

from tests.mocks.mock_rpc import MockChainClient, build_transaction

__all__ = [
    "MockChainClient",
    "build_transaction",
]

"""
Service wiring for the API and CLI: one chain client, one cache, one ledger.
"""

from dataclasses import dataclass
from typing import Optional

from config.settings import Settings
from src.modules.rent_recovery.cache import ResultCache
from src.modules.rent_recovery.config import RecoveryConfig
from src.modules.rent_recovery.scanner import AccountScanner
from src.modules.rent_recovery.validation import is_valid_address
from src.modules.rent_recovery.verifier import TransactionVerifier
from src.shared.infrastructure.rpc_manager import ChainDataClient
from src.shared.infrastructure.token_registry import TokenRegistry
from src.shared.system.database.core import DatabaseCore
from src.shared.system.database.repositories.payout_repo import PayoutRepository
from src.shared.system.logging import Logger


@dataclass
class RecoveryServices:
    client: ChainDataClient
    cache: ResultCache
    verifier: Optional[TransactionVerifier]
    repo: Optional[PayoutRepository]
    registry: Optional[TokenRegistry] = None

    async def aclose(self) -> None:
        await self.client.aclose()
        if self.registry is not None:
            await self.registry.aclose()


def build_services(config: RecoveryConfig = None, with_ledger: bool = True) -> RecoveryServices:
    config = config or RecoveryConfig.from_settings()
    client = ChainDataClient(timeout=config.RPC_TIMEOUT_S)
    registry = TokenRegistry()
    scanner = AccountScanner(client, config=config, token_registry=registry)

    verifier = None
    if is_valid_address(config.RECIPIENT_WALLET):
        verifier = TransactionVerifier(client, config=config)
    else:
        Logger.warning("[SYSTEM] RECIPIENT_WALLET not set or invalid; verification disabled")

    repo = None
    if with_ledger:
        repo = PayoutRepository(DatabaseCore(Settings.DB_PATH))
        repo.init_table()

    return RecoveryServices(
        client=client,
        cache=ResultCache(scanner),
        verifier=verifier,
        repo=repo,
        registry=registry,
    )

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

from fastapi import FastAPI, Header, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from config.settings import Settings
from src.interface.services import RecoveryServices, build_services
from src.modules.rent_recovery.errors import ChainUnavailable, InvalidAddress, InvalidSignature
from src.modules.rent_recovery.models import VerificationOutcome, VerificationStatus
from src.shared.system.logging import Logger


# --- Pydantic Models ---
class ApiModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class ScanRequest(ApiModel):
    wallet_address: Optional[str] = Field(None, alias="walletAddress")


class VerifyRequest(ApiModel):
    signature: str = Field(..., min_length=1)
    expected_amount: Optional[float] = Field(None, alias="expectedAmount", ge=0)


class TransactionRecord(ApiModel):
    tx_id: str = Field(..., alias="txId", min_length=1)
    user_received: float = Field(..., alias="userReceived", ge=0)
    user_wallet: str = Field(..., alias="userWallet", min_length=1)
    boss_received: float = Field(..., alias="bossReceived", ge=0)


def _services(request: Request) -> RecoveryServices:
    return request.app.state.services


def create_app(services: RecoveryServices = None) -> FastAPI:
    """
    Build the API. Injected ``services`` are used as-is and not closed;
    otherwise they are built on startup and closed on shutdown.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owned = getattr(app.state, "services", None) is None
        if owned:
            app.state.services = build_services()
        Logger.info("[API] FreeSol backend online")
        yield
        if owned:
            await app.state.services.aclose()
        Logger.info("[API] FreeSol backend shutting down")

    app = FastAPI(title=Settings.APP_NAME, version="1.0.0", lifespan=lifespan)
    app.state.services = services

    app.add_middleware(
        CORSMiddleware,
        allow_origins=Settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/health")
    async def health(request: Request):
        svc = _services(request)
        return {
            "status": "OK",
            "message": "FreeSol Backend - rent scan active",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "network": Settings.NETWORK,
            "database": "Connected" if svc.repo is not None and svc.repo.db.is_connected() else "Disconnected",
            "rpc": svc.client.get_active_url(),
            "rpc_healthy": await svc.client.ping(),
            "cache": svc.cache.get_stats(),
            "verification": svc.verifier is not None,
        }

    @app.post("/api/tokens/scan")
    async def scan_tokens(
        request: Request,
        payload: Optional[ScanRequest] = None,
        wallet_address: Optional[str] = Header(None, alias="wallet-address"),
    ):
        owner = wallet_address or (payload.wallet_address if payload else None)
        if not owner:
            raise HTTPException(status_code=400, detail="Missing wallet address")

        try:
            result = await _services(request).cache.get_or_scan(owner)
        except InvalidAddress as e:
            raise HTTPException(status_code=400, detail=str(e))
        except ChainUnavailable as e:
            Logger.error(f"[API] Scan failed for {owner[:8]}...: {e}")
            raise HTTPException(status_code=503, detail=str(e))

        body = result.to_dict()
        body["success"] = True
        body["message"] = f"Scan complete - {len(result)} accounts found"
        if result.partial:
            body["message"] += f" ({len(result.failed_accounts)} could not be checked)"
        return body

    @app.post("/api/transactions/verify")
    async def verify_transaction(payload: VerifyRequest, request: Request):
        verifier = _services(request).verifier
        if verifier is None:
            raise HTTPException(status_code=503, detail="Verification is not configured")

        try:
            outcome = await verifier.verify(payload.signature, payload.expected_amount)
        except InvalidSignature as e:
            raise HTTPException(status_code=400, detail=str(e))
        except ChainUnavailable as e:
            Logger.error(f"[API] Verification unavailable for {payload.signature[:12]}...: {e}")
            outcome = VerificationOutcome(
                signature_id=payload.signature,
                status=VerificationStatus.CHAIN_ERROR,
                recipient=verifier.recipient,
            )
            return JSONResponse(status_code=503, content={"success": False, **outcome.to_dict()})

        return {"success": True, **outcome.to_dict()}

    @app.post("/api/transactions/add")
    async def add_transaction(record: TransactionRecord, request: Request):
        repo = _services(request).repo
        if repo is None:
            raise HTTPException(status_code=503, detail="Ledger is not configured")
        created = repo.add_transaction(
            tx_id=record.tx_id,
            user_received=record.user_received,
            user_wallet=record.user_wallet,
            boss_received=record.boss_received,
        )
        return {"success": True, "created": created}

    @app.get("/api/transactions/global")
    async def global_transactions(request: Request, limit: int = 10):
        repo = _services(request).repo
        if repo is None:
            return {"success": False, "transactions": []}
        rows = repo.get_recent(limit=max(1, min(limit, 100)))
        return {
            "success": True,
            "transactions": [
                {
                    "txId": row["tx_id"],
                    "userReceived": row["user_received"],
                    "userWallet": row["user_wallet"],
                    "bossReceived": row["boss_received"],
                    "timestamp": datetime.fromtimestamp(row["timestamp"], tz=timezone.utc).isoformat(),
                }
                for row in rows
            ],
        }

    @app.get("/api/global-stats")
    async def global_stats(request: Request):
        repo = _services(request).repo
        if repo is None:
            return {"success": False, "stats": {"totalUsers": 0, "totalSOL": 0, "totalTokens": 0}}
        stats = repo.get_global_stats()
        return {
            "success": True,
            "stats": {
                "totalUsers": stats["total_users"],
                "totalSOL": stats["total_sol"],
                "totalTokens": stats["total_tokens"],
            },
        }

    return app


app = create_app()

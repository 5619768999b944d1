import os
from dotenv import load_dotenv

# Load Environment Variables from project root .env
env_path = os.path.join(os.path.dirname(__file__), "../.env")
load_dotenv(env_path)


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def _env_list(name: str) -> list:
    raw = os.getenv(name, "")
    return [item.strip() for item in raw.split(",") if item.strip()]


class Settings:
    # ═══════════════════════════════════════════════════════════════════
    # FREESOL RENT RECOVERY CONFIGURATION (Environment-Based)
    # ═══════════════════════════════════════════════════════════════════

    APP_NAME = "FreeSol Backend"
    NETWORK = os.getenv("SOLANA_NETWORK", "mainnet-beta")

    # Console output (file log is always written)
    SILENT_MODE = _env_bool("SILENT_MODE", False)
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

    # Paths
    BASE_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
    DATA_DIR = os.getenv("DATA_DIR", os.path.join(BASE_DIR, "data"))
    LOG_DIR = os.getenv("LOG_DIR", os.path.join(BASE_DIR, "logs"))
    DB_PATH = os.getenv("DB_PATH", os.path.join(DATA_DIR, "freesol.db"))

    # RPC
    RPC_URL = os.getenv("RPC_URL", "https://solana-rpc.publicnode.com")
    RPC_FALLBACK_URLS = _env_list("RPC_FALLBACK_URLS") or [
        "https://api.mainnet-beta.solana.com",
    ]
    RPC_TIMEOUT_S = float(os.getenv("RPC_TIMEOUT_S", "10"))

    # Scanner
    SCAN_MAX_CONCURRENCY = int(os.getenv("SCAN_MAX_CONCURRENCY", "10"))
    RENT_EXEMPT_LAMPORTS = int(os.getenv("RENT_EXEMPT_LAMPORTS", "2039280"))
    DUST_FLOOR_LAMPORTS = int(os.getenv("DUST_FLOOR_LAMPORTS", "1000"))

    # Result cache
    SCAN_CACHE_TTL_S = float(os.getenv("SCAN_CACHE_TTL_S", "300"))
    CACHE_SWEEP_INTERVAL_S = float(os.getenv("CACHE_SWEEP_INTERVAL_S", "60"))

    # Verifier: wallet that must receive the payout
    RECIPIENT_WALLET = os.getenv("RECIPIENT_WALLET", "")

    # Token labels
    DEXSCREENER_API_URL = os.getenv(
        "DEXSCREENER_API_URL", "https://api.dexscreener.com/latest/dex/tokens"
    )
    TOKEN_LOOKUP_ENABLED = _env_bool("TOKEN_LOOKUP_ENABLED", True)

    # API
    API_HOST = os.getenv("HOST", "0.0.0.0")
    API_PORT = int(os.getenv("PORT", "3000"))
    CORS_ORIGINS = _env_list("CORS_ORIGINS") or ["*"]

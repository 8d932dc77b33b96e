"""Central configuration for docsnap.

Reads configuration from environment variables, with .env file support.

Environment variables:
- PORT: HTTP server port (optional, default: 3001)
- CORS_ORIGIN: Allowed CORS origin (optional, default: *)
- EMBEDDINGS_SERVICE_URL: Downstream delivery service (optional, unset disables delivery)
- SETTLE_TIME_MS: Grace delay after page load (optional, default: 2000)
- BATCH_CONCURRENCY / BATCH_DELAY_MS: Batch defaults (optional, default: 3 / 1000)
- HEADLESS: Run Chromium headless (optional, default: true)
"""

import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env file from project root if it exists
_env_path = Path(__file__).parent.parent / ".env"
try:
    if _env_path.exists():
        load_dotenv(_env_path)
except (PermissionError, OSError):
    pass  # .env not accessible, rely on environment variables

DEFAULT_PORT = 3001
DEFAULT_SETTLE_TIME_MS = 2000
DEFAULT_BATCH_CONCURRENCY = 3
DEFAULT_BATCH_DELAY_MS = 1000


def _int_env(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        raise RuntimeError(f"{name} must be an integer, got {raw!r}")


def _bool_env(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.lower() in ("true", "1", "yes")


def get_port() -> int:
    """Get the HTTP server port."""
    return _int_env("PORT", DEFAULT_PORT)


def get_cors_origins() -> list[str]:
    """Get allowed CORS origins.

    Returns:
        list[str]: Origins parsed from a comma-separated CORS_ORIGIN, ["*"] when unset
    """
    raw = os.environ.get("CORS_ORIGIN", "*")
    return [o.strip() for o in raw.split(",") if o.strip()] or ["*"]


def get_delivery_url() -> str | None:
    """Get the embeddings service base URL, or None if delivery is disabled."""
    url = os.environ.get("EMBEDDINGS_SERVICE_URL", "").strip()
    return url.rstrip("/") or None


def get_settle_time_ms() -> int:
    return _int_env("SETTLE_TIME_MS", DEFAULT_SETTLE_TIME_MS)


def get_batch_concurrency() -> int:
    return _int_env("BATCH_CONCURRENCY", DEFAULT_BATCH_CONCURRENCY)


def get_batch_delay_ms() -> int:
    return _int_env("BATCH_DELAY_MS", DEFAULT_BATCH_DELAY_MS)


def is_headless() -> bool:
    return _bool_env("HEADLESS", True)

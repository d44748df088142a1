"""
Runtime configuration for the roast API.
Values come from the process environment (and a local .env file in dev).
"""
import os
from dataclasses import dataclass, field
from typing import List, Optional

from dotenv import load_dotenv

DEFAULT_CORS_ORIGINS = ["http://localhost:5173", "http://localhost:3000"]


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}")


@dataclass(frozen=True)
class Settings:
    gemini_api_url: Optional[str] = None
    gemini_api_key: Optional[str] = None
    gemini_api_format: str = "raw"  # raw|gemini|openai
    gemini_model: str = "gemini-2.0-flash"
    gemini_timeout_ms: int = 20_000
    dev_mock_gemini: bool = False

    rate_limit_backend: str = "memory"  # memory|database
    rate_limit_max_keys: int = 10_000

    database_url: str = "sqlite:///./resume_roast.db"
    cors_origins: List[str] = field(default_factory=lambda: list(DEFAULT_CORS_ORIGINS))
    host: str = "0.0.0.0"
    port: int = 8787
    log_level: str = "INFO"

    @property
    def mock_mode(self) -> bool:
        """True when no provider call should leave the process."""
        return self.dev_mock_gemini or not (self.gemini_api_url and self.gemini_api_key)

    @classmethod
    def from_env(cls) -> "Settings":
        load_dotenv()
        origins_env = os.getenv("CORS_ORIGINS")
        origins = [o.strip() for o in (origins_env or "").split(",") if o.strip()]
        return cls(
            gemini_api_url=os.getenv("GEMINI_API_URL") or None,
            gemini_api_key=os.getenv("GEMINI_API_KEY") or None,
            gemini_api_format=(os.getenv("GEMINI_API_FORMAT") or "raw").strip().lower(),
            gemini_model=os.getenv("GEMINI_MODEL") or "gemini-2.0-flash",
            gemini_timeout_ms=_env_int("GEMINI_TIMEOUT_MS", 20_000),
            dev_mock_gemini=_env_bool("DEV_MOCK_GEMINI"),
            rate_limit_backend=(os.getenv("RATE_LIMIT_BACKEND") or "memory").strip().lower(),
            rate_limit_max_keys=_env_int("RATE_LIMIT_MAX_KEYS", 10_000),
            database_url=os.getenv("DATABASE_URL") or "sqlite:///./resume_roast.db",
            cors_origins=origins or list(DEFAULT_CORS_ORIGINS),
            host=os.getenv("HOST") or "0.0.0.0",
            port=_env_int("PORT", 8787),
            log_level=(os.getenv("LOG_LEVEL") or "INFO").upper(),
        )

import os
from typing import List


def _env_int(name: str, default: int) -> int:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


class Settings:
    def _split_csv(self, raw: str, *, default: List[str]) -> List[str]:
        parts = [p.strip() for p in (raw or "").split(",")]
        return [p for p in parts if p] or default

    def __init__(self) -> None:
        self.env = os.getenv("APP_ENV", "local")
        self.db_url = os.getenv("DATABASE_URL", "postgresql://localhost/erp")
        # Pool sizing: the pool is the only shared resource, so max size bounds
        # how many document flows can hold a transaction at once.
        self.db_pool_min_size = _env_int("DB_POOL_MIN_SIZE", 1)
        self.db_pool_max_size = _env_int("DB_POOL_MAX_SIZE", 20)
        self.db_pool_timeout = _env_int("DB_POOL_TIMEOUT_SECONDS", 30)
        # Comma-separated list of allowed CORS origins for the dashboard.
        self.cors_origins = self._split_csv(
            os.getenv("CORS_ORIGINS", "").strip(),
            default=["http://localhost:5173", "http://127.0.0.1:5173"],
        )
        self.session_ttl_hours = _env_int("SESSION_TTL_HOURS", 8)
        self.log_level = (os.getenv("LOG_LEVEL", "info").strip().lower() or "info")
        self.api_version = os.getenv("APP_VERSION", "0.1.0").strip() or "0.1.0"

    @property
    def expose_errors(self) -> bool:
        return self.env in {"local", "dev"}


settings = Settings()

import os
from dataclasses import dataclass
from typing import Optional


def _env_int(name: str, default: int) -> int:
    return int(os.getenv(name) or default)


def _env_float(name: str, default: float) -> float:
    return float(os.getenv(name) or default)


@dataclass(frozen=True)
class Settings:
    database_url: Optional[str] = None  # in-memory store when unset
    log_level: str = "INFO"
    store_retry_attempts: int = 3
    store_retry_base_delay: float = 0.05
    quote_cache_size: int = 1000
    jwt_secret_key: str = "your-secret-key-keep-it-secret"
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 30

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            database_url=os.getenv("RESERVATION_DATABASE_URL") or None,
            log_level=os.getenv("LOG_LEVEL") or "INFO",
            store_retry_attempts=_env_int("STORE_RETRY_ATTEMPTS", 3),
            store_retry_base_delay=_env_float("STORE_RETRY_BASE_DELAY", 0.05),
            quote_cache_size=_env_int("QUOTE_CACHE_SIZE", 1000),
            jwt_secret_key=os.getenv("JWT_SECRET_KEY") or "your-secret-key-keep-it-secret",
            jwt_algorithm=os.getenv("JWT_ALGORITHM") or "HS256",
            access_token_expire_minutes=_env_int("ACCESS_TOKEN_EXPIRE_MINUTES", 30),
        )


settings = Settings.from_env()

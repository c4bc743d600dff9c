import os
import warnings
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()


def _get_bool(name: str, fallback: str = "false") -> bool:
    return os.getenv(name, fallback).strip().lower() in {"1", "true", "yes", "on"}


def _get_secret(name: str, fallback: str) -> str:
    """Read a secret, warning loudly instead of crashing when it is missing."""
    value = os.getenv(name, "")
    if not value:
        warnings.warn(
            f"{name} is not set. Using an insecure default. Set this env var in production!",
            stacklevel=2,
        )
        value = fallback
    return value


def _database_url() -> str:
    url = os.getenv("DATABASE_URL")
    if url:
        return url
    user = os.getenv("POSTGRES_USER", "postgres")
    password = os.getenv("POSTGRES_PASSWORD", "postgres")
    host = os.getenv("POSTGRES_HOST", "localhost")  # In Docker, this will be 'postgres'
    port = os.getenv("POSTGRES_PORT", "5433")
    name = os.getenv("POSTGRES_DB", "marketplace")
    return f"postgresql+asyncpg://{user}:{password}@{host}:{port}/{name}"


@dataclass(frozen=True)
class Settings:
    service_name: str = os.getenv("SERVICE_NAME", "checkout_service")
    log_level: str = os.getenv("LOG_LEVEL", "INFO").upper()

    database_url: str = _database_url()
    db_echo: bool = _get_bool("DB_ECHO")
    # Row locks + conditional updates make READ COMMITTED sufficient on Postgres
    db_isolation_level: str | None = os.getenv("DB_ISOLATION_LEVEL") or None

    jwt_secret_key: str = _get_secret("JWT_SECRET_KEY", "insecure-jwt-secret-change-me")
    jwt_algorithm: str = os.getenv("JWT_ALGORITHM", "HS256")
    access_token_expire_minutes: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "60"))

    internal_api_key: str = _get_secret("INTERNAL_API_KEY", "insecure-default-change-me")
    checkout_rate_limit: str = os.getenv("CHECKOUT_RATE_LIMIT", "10/minute")
    # memory:// counts per process; point at redis:// when running several workers
    rate_limit_storage_uri: str = os.getenv("RATE_LIMIT_STORAGE_URI", "memory://")

    # Empty disables span export; instrumentation still runs
    otlp_endpoint: str = os.getenv("OTLP_ENDPOINT", "")


settings = Settings()

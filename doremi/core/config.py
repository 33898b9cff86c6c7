import logging

from pydantic_settings import BaseSettings
from pydantic import ConfigDict
from typing import Optional

class Settings(BaseSettings):
    # Environment
    ENV: str = "development"
    CONFIG_STRICT: bool = False
    LOG_LEVEL: str = "INFO"

    # Persistence
    STORE_BACKEND: str = "file"  # memory | file | sql
    STORE_DIR: str = ".doremi_store"
    DATABASE_URL: Optional[str] = None

    # Monetization (currency units per 1000 views)
    MONETIZATION_RATE: float = 2.5
    CURRENCY: str = "EUR"

    # Write-time caps
    AUDIENCE_NOTIFICATIONS_LIMIT: int = 50
    ADMIN_NOTIFICATIONS_LIMIT: int = 20
    LIBRARY_LIMIT: int = 100

    # Retention
    LIBRARY_RETENTION_KEEP: int = 50
    NOTIFICATION_RETENTION_DAYS: int = 30
    REVENUE_RETENTION_DAYS: int = 365

    # HTTP
    CORS_ORIGINS: str = "http://localhost:3000"  # comma-separated

    model_config = ConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )
settings = Settings()


def validate_config(strict: Optional[bool] = None, settings_obj: Optional[Settings] = None, logger: Optional[logging.Logger] = None) -> bool:
    """Validate recommended configuration.

    In strict mode raise RuntimeError; otherwise emit warnings only.
    Secrets are not logged, only missing keys.
    """
    cfg = settings_obj or settings
    log = logger or logging.getLogger("doremi")
    strict_mode = strict if strict is not None else getattr(cfg, "CONFIG_STRICT", False)

    missing = []
    if getattr(cfg, "STORE_BACKEND", "file") == "file" and not getattr(cfg, "STORE_DIR", None):
        missing.append("STORE_DIR")
    if getattr(cfg, "STORE_BACKEND", "file") == "sql" and not getattr(cfg, "DATABASE_URL", None):
        missing.append("DATABASE_URL")

    if missing:
        message = f"Missing required configuration: {', '.join(missing)}"
        if strict_mode:
            raise RuntimeError(message)
        log.warning(message)

    return True

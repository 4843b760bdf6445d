import logging

from pydantic_settings import BaseSettings
from pydantic import ConfigDict
from typing import List, Optional

class Settings(BaseSettings):
    # Environment
    ENV: str = "development"
    CONFIG_STRICT: bool = False

    # Database
    DATABASE_URL: Optional[str] = None
    TEST_DATABASE_URL: Optional[str] = None
    DB_POOL_SIZE: int = 10
    DB_MAX_OVERFLOW: int = 20
    DB_POOL_TIMEOUT_SECONDS: int = 30
    DB_POOL_RECYCLE_SECONDS: int = 3600

    # Upload storage (tenant-scoped areas live under UPLOAD_DIR/<area>/<tenant_id>)
    UPLOAD_DIR: str = "uploads"
    STORAGE_TENANT_AREAS: str = "jobs,employees,settings"  # comma-separated
    STORAGE_SCAN_TIMEOUT_SECONDS: float = 10.0  # 0 = no deadline

    # Plan resolution
    PLAN_CACHE_TTL_SECONDS: float = 60.0  # 0 = disabled

    # Quota classification
    SEAT_NEAR_LIMIT_REMAINING: int = 2
    STORAGE_NEAR_LIMIT_PERCENT: int = 80
    STORAGE_AT_LIMIT_PERCENT: int = 95

    # Request context
    TENANT_HEADER: str = "x-tenant-id"
    PLATFORM_ADMIN_HEADER: str = "x-platform-admin"

    model_config = ConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @property
    def storage_areas(self) -> List[str]:
        return [area.strip() for area in self.STORAGE_TENANT_AREAS.split(",") if area.strip()]


settings = Settings()


def _config_problems(cfg: Settings) -> List[str]:
    problems = []
    missing = [key for key in ("DATABASE_URL", "UPLOAD_DIR") if not getattr(cfg, key, None)]
    if missing:
        problems.append(f"Missing required configuration: {', '.join(missing)}")
    if not cfg.storage_areas:
        problems.append("STORAGE_TENANT_AREAS lists no upload areas; storage usage would always be 0")
    if cfg.STORAGE_NEAR_LIMIT_PERCENT > cfg.STORAGE_AT_LIMIT_PERCENT:
        problems.append("STORAGE_NEAR_LIMIT_PERCENT must not exceed STORAGE_AT_LIMIT_PERCENT")
    if cfg.STORAGE_SCAN_TIMEOUT_SECONDS < 0 or cfg.PLAN_CACHE_TTL_SECONDS < 0:
        problems.append("STORAGE_SCAN_TIMEOUT_SECONDS and PLAN_CACHE_TTL_SECONDS must be >= 0")
    return problems


def validate_config(strict: Optional[bool] = None, settings_obj: Optional[Settings] = None, logger: Optional[logging.Logger] = None) -> bool:
    """Check settings the entitlement engine cannot run safely without.

    Strict mode raises RuntimeError on the first problem; otherwise every
    problem is logged as a warning. Only key names are logged, never values.
    """
    cfg = settings_obj or settings
    log = logger or logging.getLogger("backoffice")
    strict_mode = cfg.CONFIG_STRICT if strict is None else strict

    for problem in _config_problems(cfg):
        if strict_mode:
            raise RuntimeError(problem)
        log.warning(problem)
    return True

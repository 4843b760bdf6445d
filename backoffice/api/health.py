"""
Health and readiness endpoints.

Readiness requires the tables the entitlement engine reads and a readable
upload directory; neither endpoint exposes connection details.
"""

import logging
import os

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from sqlalchemy import inspect
from sqlalchemy.exc import SQLAlchemyError

from backoffice.core.config import settings
from backoffice.core.database import check_connection, get_engine

logger = logging.getLogger("backoffice")

router = APIRouter(tags=["health"])

REQUIRED_TABLES = ("tenants", "subscription_plans", "user_tenants")


@router.get("/healthz")
def healthz():
    """Lightweight liveness check (no deps)."""
    return {"status": "ok"}


@router.get("/readyz")
def readyz():
    """Readiness check: DB connectivity, required tables, upload dir."""
    if not check_connection():
        return JSONResponse(status_code=503, content={"status": "error", "detail": "database unreachable"})

    try:
        inspector = inspect(get_engine())
        missing = [t for t in REQUIRED_TABLES if not inspector.has_table(t)]
    except SQLAlchemyError as e:
        logger.error(f"[readyz] readiness check failed: {e}")
        return JSONResponse(status_code=503, content={"status": "error", "detail": "database unreachable"})

    if missing:
        detail = f"missing tables: {', '.join(missing)}"
        logger.warning(f"[readyz] {detail}")
        return JSONResponse(status_code=503, content={"status": "error", "detail": detail})

    if os.path.exists(settings.UPLOAD_DIR) and not os.access(settings.UPLOAD_DIR, os.R_OK):
        logger.warning("[readyz] upload dir not readable", extra={"upload_dir": settings.UPLOAD_DIR})
        return JSONResponse(status_code=503, content={"status": "error", "detail": "upload dir not readable"})

    return {"status": "ok"}

import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException
from dotenv import load_dotenv

# Load env from backoffice/.env
backoffice_dir = os.path.dirname(os.path.abspath(__file__))
if "PYTEST_CURRENT_TEST" not in os.environ:
    load_dotenv(dotenv_path=os.path.join(backoffice_dir, ".env"))

from backoffice.core.config import settings, validate_config
from backoffice.core.logging import configure_logging
from backoffice.core.middleware.request_id import RequestIdMiddleware
from backoffice.core.errors import (
    AppError,
    app_error_handler,
    http_error_handler,
    unhandled_exception_handler,
)
from backoffice.api import catalog, entitlements, health, usage

configure_logging(settings.ENV)
validate_config(strict=getattr(settings, "CONFIG_STRICT", False))


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger = logging.getLogger("backoffice")
    logger.info("Starting entitlement service...")
    try:
        yield
    finally:
        logging.getLogger("backoffice").info("Stopping entitlement service...")


app = FastAPI(title="Back Office - Entitlements", lifespan=lifespan)

app.add_middleware(RequestIdMiddleware)

app.add_exception_handler(AppError, app_error_handler)
app.add_exception_handler(HTTPException, http_error_handler)
app.add_exception_handler(Exception, unhandled_exception_handler)

app.include_router(health.router, tags=["health"])
app.include_router(catalog.router, tags=["catalog"])
app.include_router(entitlements.router, tags=["entitlements"])
app.include_router(usage.router, tags=["usage"])


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("backoffice.main:app", host="0.0.0.0", port=int(os.getenv("PORT", "8000")))

import logging
import time
from uuid import uuid4

from starlette.middleware.base import BaseHTTPMiddleware

from backoffice.core.config import settings
from backoffice.core.logging import LOGGER_NAME, request_id_ctx_var, tenant_id_ctx_var


class RequestIdMiddleware(BaseHTTPMiddleware):
    """
    Bind request_id and the caller's tenant header to the logging context.

    The request id is echoed back on every response; one request.complete
    line is logged per request.
    """

    def __init__(self, app, header_name: str = "x-request-id"):
        super().__init__(app)
        self.header_name = header_name

    async def dispatch(self, request, call_next):
        rid = request.headers.get(self.header_name) or str(uuid4())
        tenant_id = (request.headers.get(settings.TENANT_HEADER) or "").strip() or None
        request.state.request_id = rid

        rid_token = request_id_ctx_var.set(rid)
        tenant_token = tenant_id_ctx_var.set(tenant_id)
        started = time.perf_counter()
        try:
            response = await call_next(request)
            response.headers[self.header_name] = rid
            logging.getLogger(LOGGER_NAME).info(
                "request.complete",
                extra={
                    "request_id": rid,
                    "method": request.method,
                    "path": request.url.path,
                    "status": response.status_code,
                    "duration_ms": round((time.perf_counter() - started) * 1000, 1),
                },
            )
        finally:
            tenant_id_ctx_var.reset(tenant_token)
            request_id_ctx_var.reset(rid_token)
        return response

"""
Tenant lookup for the entitlement engine.
- get_tenant(tenant_id)
- require_tenant_id(raw)
"""

from typing import Optional
import logging
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from backoffice.core.database import get_db_session, tenants
from backoffice.core.errors import NotFoundError, TenantContextRequiredError, UsageUnavailableError
from backoffice.models.tenant import Tenant


logger = logging.getLogger(__name__)


def require_tenant_id(raw: Optional[str]) -> str:
    tenant_id = (raw or "").strip()
    if not tenant_id:
        raise TenantContextRequiredError("Tenant context is required")
    return tenant_id


def find_tenant(tenant_id: str) -> Optional[Tenant]:
    """
    Raises:
        UsageUnavailableError: If the tenant store cannot be read
    """
    try:
        with get_db_session() as session:
            row = session.execute(select(tenants).where(tenants.c.id == tenant_id)).first()
    except SQLAlchemyError as exc:
        logger.error("[tenants] LOOKUP_FAILED", extra={"tenant_id": tenant_id, "error": str(exc)})
        raise UsageUnavailableError(
            "Tenant data is temporarily unavailable",
            details={"tenantId": tenant_id},
        ) from exc

    if not row:
        return None
    return Tenant(
        id=row.id,
        name=row.name,
        plan=row.plan,
        business_type=row.business_type,
        status=row.status,
    )


def get_tenant(tenant_id: Optional[str]) -> Tenant:
    """Load a tenant or raise; a missing id is a client error, not a 404."""
    tenant_id = require_tenant_id(tenant_id)
    tenant = find_tenant(tenant_id)
    if tenant is None:
        raise NotFoundError(f"Tenant {tenant_id} not found", details={"tenantId": tenant_id})
    return tenant

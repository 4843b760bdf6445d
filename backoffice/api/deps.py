"""FastAPI dependencies for tenant context, feature gates and seat checks."""
from typing import Callable, Optional

from fastapi import Request

from backoffice.core.config import settings
from backoffice.features.entitlements.service import AccessDecision, require_feature as _require_feature
from backoffice.features.seats.service import enforce_seat_limit
from backoffice.features.tenants.service import get_tenant, require_tenant_id
from backoffice.models.quota import SeatUsage
from backoffice.models.tenant import Tenant

_TRUTHY = {"1", "true", "yes"}


def get_tenant_id(request: Request) -> str:
    """Tenant id from the tenant header; missing context is a 400, not a denial."""
    return require_tenant_id(request.headers.get(settings.TENANT_HEADER))


def current_tenant(request: Request) -> Tenant:
    return get_tenant(get_tenant_id(request))


def is_platform_admin(request: Request) -> bool:
    raw: Optional[str] = request.headers.get(settings.PLATFORM_ADMIN_HEADER)
    return (raw or "").strip().lower() in _TRUTHY


def require_feature(feature_key: str) -> Callable[[Request], AccessDecision]:
    """
    Dependency factory gating a route on a feature.

    Usage:
        @router.get("/inventory", dependencies=[Depends(require_feature("inventory"))])
    """

    def _dependency(request: Request) -> AccessDecision:
        return _require_feature(current_tenant(request), feature_key)

    return _dependency


def check_seat_limit(request: Request) -> SeatUsage:
    """Dependency for invite/create-user routes; raises 403 SEAT_LIMIT_EXCEEDED."""
    return enforce_seat_limit(get_tenant_id(request))

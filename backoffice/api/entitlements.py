"""Tenant entitlement endpoints: effective features and route decisions."""
from fastapi import APIRouter, Query, Request

from backoffice.api.deps import is_platform_admin
from backoffice.features.entitlements.service import evaluate_route_access, get_tenant_entitlements
from backoffice.features.tenants.service import get_tenant

router = APIRouter(prefix="/v1/tenants", tags=["entitlements"])


@router.get("/{tenant_id}/features")
def tenant_features(tenant_id: str):
    return get_tenant_entitlements(get_tenant(tenant_id))


@router.get("/{tenant_id}/route-access")
def tenant_route_access(tenant_id: str, request: Request, path: str = Query(..., min_length=1)):
    tenant = get_tenant(tenant_id)
    decision = evaluate_route_access(tenant, path, is_platform_admin=is_platform_admin(request))
    return decision.to_payload()

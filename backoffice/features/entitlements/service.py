"""
backoffice/features/entitlements/service.py

Feature and route entitlement evaluation.

Handles:
- Business-type filtering of plan features
- Effective feature sets per tenant (plan features narrowed by vertical)
- Feature and route access checks with structured decisions
- Raising helpers for callers that want exceptions instead of decisions

Effective features are always derived, never stored.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, FrozenSet, Iterable, List, Optional
import logging
from starlette.concurrency import run_in_threadpool

from backoffice.core.errors import FeatureNotAvailableError
from backoffice.features.catalog.business_types import get_features_for_business_type
from backoffice.features.catalog.features import ROUTE_TABLE
from backoffice.features.catalog.modules import get_enabled_modules
from backoffice.features.plans.service import get_features_for_plan
from backoffice.models.tenant import Tenant


logger = logging.getLogger(__name__)


class AccessReason(str, Enum):
    """Why an access decision came out the way it did."""
    GRANTED = "granted"
    UNGATED_ROUTE = "ungated_route"
    PLATFORM_ADMIN = "platform_admin"
    NOT_IN_PLAN = "not_in_plan"
    NOT_FOR_BUSINESS_TYPE = "not_for_business_type"


@dataclass(frozen=True)
class AccessDecision:
    allowed: bool
    reason: AccessReason
    feature_key: Optional[str]
    plan: Optional[str]
    business_type: Optional[str]
    upgrade_required: bool
    path: Optional[str] = None

    def to_payload(self) -> Dict[str, Any]:
        return {
            "allowed": self.allowed,
            "reason": self.reason.value,
            "featureKey": self.feature_key,
            "plan": self.plan,
            "businessType": self.business_type,
            "upgradeRequired": self.upgrade_required,
            "path": self.path,
        }


def filter_by_business_type(features: Iterable[str], business_type: Optional[str]) -> FrozenSet[str]:
    """
    Narrow a feature set to what a business vertical may use.

    No business type returns the input unchanged (tenants created before
    vertical segmentation keep full plan access).
    """
    plan_features = frozenset(features)
    if not business_type:
        return plan_features
    return plan_features & get_features_for_business_type(business_type)


def get_effective_features(tenant: Tenant) -> FrozenSet[str]:
    return filter_by_business_type(get_features_for_plan(tenant), tenant.business_type)


def can_access_feature(features: Iterable[str], feature_key: str) -> bool:
    return feature_key in features


def get_route_features(path: str) -> List[str]:
    """Every feature with a route prefix that path starts with, in route-table order."""
    matched: List[str] = []
    for prefix, feature_key in ROUTE_TABLE:
        if path.startswith(prefix) and feature_key not in matched:
            matched.append(feature_key)
    return matched


def can_access_route(features: Iterable[str], path: str) -> bool:
    """
    Route access over a feature set.

    Routes no feature claims are ungated. Otherwise any one matching feature
    grants access, so shared prefixes like /reports open for either feature.
    """
    required = get_route_features(path)
    if not required:
        return True
    enabled = frozenset(features)
    return any(key in enabled for key in required)


def _denial_reason(tenant: Tenant, feature_keys: Iterable[str]) -> AccessReason:
    plan_features = get_features_for_plan(tenant)
    if any(key in plan_features for key in feature_keys):
        return AccessReason.NOT_FOR_BUSINESS_TYPE
    return AccessReason.NOT_IN_PLAN


def evaluate_feature_access(tenant: Tenant, feature_key: str) -> AccessDecision:
    features = get_effective_features(tenant)
    if can_access_feature(features, feature_key):
        return AccessDecision(
            allowed=True,
            reason=AccessReason.GRANTED,
            feature_key=feature_key,
            plan=tenant.plan,
            business_type=tenant.business_type,
            upgrade_required=False,
        )

    reason = _denial_reason(tenant, [feature_key])
    logger.warning(
        "[entitlements] FEATURE_DENIED",
        extra={
            "tenant_id": tenant.id,
            "plan_id": tenant.plan,
            "business_type": tenant.business_type,
            "feature_key": feature_key,
            "reason": reason.value,
        },
    )
    return AccessDecision(
        allowed=False,
        reason=reason,
        feature_key=feature_key,
        plan=tenant.plan,
        business_type=tenant.business_type,
        upgrade_required=reason is AccessReason.NOT_IN_PLAN,
    )


def evaluate_route_access(tenant: Tenant, path: str, *, is_platform_admin: bool = False) -> AccessDecision:
    """
    Route decision for a tenant.

    Platform admins bypass route gating only; their feature checks still go
    through evaluate_feature_access.
    """
    required = get_route_features(path)

    def _decision(allowed: bool, reason: AccessReason, feature_key: Optional[str] = None) -> AccessDecision:
        return AccessDecision(
            allowed=allowed,
            reason=reason,
            feature_key=feature_key,
            plan=tenant.plan,
            business_type=tenant.business_type,
            upgrade_required=reason is AccessReason.NOT_IN_PLAN,
            path=path,
        )

    if is_platform_admin:
        return _decision(True, AccessReason.PLATFORM_ADMIN, required[0] if required else None)
    if not required:
        return _decision(True, AccessReason.UNGATED_ROUTE)

    features = get_effective_features(tenant)
    for key in required:
        if key in features:
            return _decision(True, AccessReason.GRANTED, key)

    reason = _denial_reason(tenant, required)
    logger.warning(
        "[entitlements] ROUTE_DENIED",
        extra={
            "tenant_id": tenant.id,
            "plan_id": tenant.plan,
            "path": path,
            "required_features": required,
            "reason": reason.value,
        },
    )
    return _decision(False, reason, required[0])


def require_feature(tenant: Tenant, feature_key: str) -> AccessDecision:
    """
    Raise FeatureNotAvailableError unless the tenant may use feature_key.

    Raises:
        FeatureNotAvailableError: 403 with the decision as details
    """
    decision = evaluate_feature_access(tenant, feature_key)
    if not decision.allowed:
        raise FeatureNotAvailableError(
            f"Feature '{feature_key}' is not available on your current plan",
            details=decision.to_payload(),
        )
    return decision


def get_tenant_entitlements(tenant: Tenant) -> Dict[str, Any]:
    """Effective features and fully enabled modules, for UI bootstrapping."""
    features = get_effective_features(tenant)
    return {
        "tenantId": tenant.id,
        "plan": tenant.plan,
        "businessType": tenant.business_type,
        "features": sorted(features),
        "modules": [module.key for module in get_enabled_modules(features)],
    }


async def get_effective_features_async(tenant: Tenant) -> FrozenSet[str]:
    return await run_in_threadpool(get_effective_features, tenant)


async def evaluate_feature_access_async(tenant: Tenant, feature_key: str) -> AccessDecision:
    return await run_in_threadpool(evaluate_feature_access, tenant, feature_key)


async def evaluate_route_access_async(tenant: Tenant, path: str, *, is_platform_admin: bool = False) -> AccessDecision:
    return await run_in_threadpool(evaluate_route_access, tenant, path, is_platform_admin=is_platform_admin)


async def require_feature_async(tenant: Tenant, feature_key: str) -> AccessDecision:
    return await run_in_threadpool(require_feature, tenant, feature_key)

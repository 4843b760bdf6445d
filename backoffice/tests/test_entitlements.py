"""
Tests for business-type filtering and feature/route entitlement evaluation.
"""
import pytest

from backoffice.core.errors import FeatureNotAvailableError
from backoffice.features.catalog.business_types import BUSINESS_TYPE_FEATURES
from backoffice.features.entitlements.service import (
    AccessReason,
    can_access_feature,
    can_access_route,
    evaluate_feature_access,
    evaluate_route_access,
    filter_by_business_type,
    get_effective_features,
    get_route_features,
    get_tenant_entitlements,
    require_feature,
)
from backoffice.features.plans.service import get_features_for_plan
from backoffice.models.tenant import Tenant


def _tenant(plan="scale", business_type=None):
    return Tenant(id="tenant-1", name="Acme", plan=plan, business_type=business_type)


def test_filter_without_business_type_is_identity():
    features = {"crm", "accounting", "madeUp"}
    assert filter_by_business_type(features, None) == frozenset(features)
    assert filter_by_business_type(features, "") == frozenset(features)


def test_filter_with_business_type_intersects():
    assert filter_by_business_type({"crm", "accounting", "pos"}, "shop") == frozenset({"crm", "pos"})


def test_filter_with_unknown_business_type_yields_nothing():
    assert filter_by_business_type({"crm"}, "bakery") == frozenset()


@pytest.mark.parametrize("plan", ["trial", "launch", "scale", "enterprise", "partner"])
def test_effective_features_equal_plan_features_without_business_type(plan):
    tenant = _tenant(plan=plan)
    assert get_effective_features(tenant) == get_features_for_plan(tenant)


@pytest.mark.parametrize("business_type", ["printing_press", "shop", "pharmacy"])
@pytest.mark.parametrize("plan", ["trial", "launch", "scale", "enterprise"])
def test_effective_features_stay_within_business_type(plan, business_type):
    tenant = _tenant(plan=plan, business_type=business_type)
    assert get_effective_features(tenant) <= BUSINESS_TYPE_FEATURES[business_type]


def test_shop_on_scale_loses_printing_features():
    features = get_effective_features(_tenant(plan="scale", business_type="shop"))
    assert features == frozenset({"crm", "inventory", "paymentsExpenses", "reports"})


def test_can_access_feature_is_membership():
    features = frozenset({"crm", "reports"})
    assert can_access_feature(features, "crm")
    assert not can_access_feature(features, "inventory")
    assert not can_access_feature(frozenset(), "crm")


def test_route_matching_is_plain_prefix():
    assert get_route_features("/customers") == ["crm"]
    assert get_route_features("/customers/42/edit") == ["crm"]
    assert get_route_features("/customers-export") == ["crm"]
    assert get_route_features("/customers123") == ["crm"]
    assert get_route_features("/jobs-archive") == ["jobAutomation"]
    assert get_route_features("/reports/sales") == ["reports", "advancedReporting"]


def test_routes_extending_a_prefix_stay_gated():
    assert not can_access_route(frozenset(), "/jobs-archive")
    assert not can_access_route({"crm"}, "/reportsExport")
    assert can_access_route({"reports"}, "/reportsExport")


def test_unmapped_route_is_allowed():
    assert can_access_route(frozenset(), "/settings")
    assert can_access_route(frozenset(), "/")


def test_route_requires_a_matching_feature():
    assert can_access_route({"quoteAutomation"}, "/quotes/1")
    assert not can_access_route({"crm"}, "/quotes/1")


def test_shared_prefix_uses_union_of_features():
    # Either feature mapped to /reports opens it
    assert can_access_route({"advancedReporting"}, "/reports")
    assert can_access_route({"reports"}, "/reports/profit-loss")
    assert not can_access_route({"crm"}, "/reports")


def test_evaluate_feature_access_allowed():
    decision = evaluate_feature_access(_tenant(plan="scale"), "inventory")
    assert decision.allowed
    assert decision.reason is AccessReason.GRANTED
    assert not decision.upgrade_required


def test_evaluate_feature_access_not_in_plan():
    decision = evaluate_feature_access(_tenant(plan="trial"), "inventory")
    assert not decision.allowed
    assert decision.reason is AccessReason.NOT_IN_PLAN
    assert decision.upgrade_required


def test_evaluate_feature_access_blocked_by_business_type():
    decision = evaluate_feature_access(_tenant(plan="scale", business_type="pharmacy"), "quoteAutomation")
    assert not decision.allowed
    assert decision.reason is AccessReason.NOT_FOR_BUSINESS_TYPE
    assert not decision.upgrade_required


def test_unknown_plan_denies_every_feature():
    decision = evaluate_feature_access(_tenant(plan="partner"), "crm")
    assert not decision.allowed


def test_evaluate_route_access_paths():
    tenant = _tenant(plan="trial")
    assert evaluate_route_access(tenant, "/settings").reason is AccessReason.UNGATED_ROUTE
    granted = evaluate_route_access(tenant, "/jobs/7")
    assert granted.allowed and granted.feature_key == "jobAutomation"
    denied = evaluate_route_access(tenant, "/inventory")
    assert not denied.allowed
    assert denied.path == "/inventory"


def test_platform_admin_bypasses_route_gating_only():
    tenant = _tenant(plan="trial")
    decision = evaluate_route_access(tenant, "/inventory", is_platform_admin=True)
    assert decision.allowed
    assert decision.reason is AccessReason.PLATFORM_ADMIN
    assert not evaluate_feature_access(tenant, "inventory").allowed


def test_require_feature_raises_with_decision_details():
    with pytest.raises(FeatureNotAvailableError) as excinfo:
        require_feature(_tenant(plan="launch"), "inventory")
    err = excinfo.value
    assert err.status_code == 403
    assert err.details["featureKey"] == "inventory"
    assert err.details["upgradeRequired"] is True


def test_require_feature_returns_decision_when_allowed():
    assert require_feature(_tenant(plan="launch"), "accounting").allowed


def test_durable_plan_flags_drive_entitlements(store_plan):
    store_plan("launch", marketing={"featureFlags": {"inventory": True, "crm": False}})
    tenant = _tenant(plan="launch")
    assert evaluate_feature_access(tenant, "inventory").allowed
    assert not evaluate_feature_access(tenant, "crm").allowed


def test_tenant_entitlements_lists_enabled_modules():
    payload = get_tenant_entitlements(_tenant(plan="trial"))
    assert payload["plan"] == "trial"
    assert "crm" in payload["features"]
    assert payload["modules"] == ["crm"]

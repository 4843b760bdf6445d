"""Tests for quota snapshot models and their wire shape."""

import pytest
from pydantic import ValidationError as PydanticValidationError

from backoffice.models.plan import Plan
from backoffice.models.quota import (
    LimitInfo,
    QuotaDenial,
    QuotaValidation,
    SeatUsage,
    UploadCheck,
    format_price,
    percent_used,
)


def test_seat_usage_serializes_with_camel_case():
    usage = SeatUsage(
        current=3, limit=5, remaining=2, percentage_used=60, is_unlimited=False,
        is_near_limit=True, is_at_limit=False, can_add_more=True, plan_name="Launch",
        price_per_additional=25.0,
    )
    payload = usage.to_payload()
    assert payload == {
        "current": 3,
        "limit": 5,
        "remaining": 2,
        "percentageUsed": 60,
        "isUnlimited": False,
        "isNearLimit": True,
        "isAtLimit": False,
        "canAddMore": True,
        "planName": "Launch",
        "pricePerAdditional": 25.0,
    }
    assert SeatUsage.model_validate(payload) == usage


def test_upload_check_uses_mb_aliases():
    check = UploadCheck(
        allowed=False, unlimited=False, current_mb=1000, limit_mb=1024, remaining_mb=24,
        after_upload_mb=1050, file_size_mb=50, plan_name="Free Trial",
    )
    payload = check.to_payload()
    assert payload["afterUploadMB"] == 1050
    assert payload["fileSizeMB"] == 50
    assert payload["price100GB"] is None


def test_snapshots_are_frozen():
    info = LimitInfo(limit=5, plan_name="Launch", source="config")
    with pytest.raises(PydanticValidationError):
        info.limit = 6


def test_denial_codes_are_closed():
    with pytest.raises(PydanticValidationError):
        QuotaDenial(code="OTHER", message="x", details={})


def test_validation_payload_shape():
    result = QuotaValidation(
        valid=False,
        error=QuotaDenial(code="SEAT_LIMIT_EXCEEDED", message="full", details={"limit": 5}),
    )
    assert result.to_payload() == {
        "valid": False,
        "usage": None,
        "error": {"code": "SEAT_LIMIT_EXCEEDED", "message": "full", "details": {"limit": 5}},
    }


@pytest.mark.parametrize(
    "current,limit,expected",
    [(0, 5, 0), (5, 5, 100), (1, 3, 33), (5, 8, 63), (7, 5, 140), (0, 0, 100)],
)
def test_percent_used(current, limit, expected):
    assert percent_used(current, limit) == expected


def test_plan_feature_flags():
    plan = Plan(
        plan_id="launch",
        name="Launch",
        marketing={"enabled": True, "featureFlags": {"crm": True, "inventory": False, "reports": "yes"}},
        onboarding={"enabled": False},
    )
    assert plan.enabled_feature_keys == ["crm"]
    assert plan.shown_in_marketing
    assert not plan.shown_in_onboarding
    assert Plan(plan_id="x", name="X").feature_flags == {}


@pytest.mark.parametrize("price,expected", [(25.0, "25"), (12.5, "12.5"), (32, "32"), (0.75, "0.75")])
def test_format_price_drops_trailing_zeros(price, expected):
    assert format_price(price) == expected

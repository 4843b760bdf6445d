"""
backoffice/features/seats/service.py

Seat quota service.

Handles:
- Counting active memberships per tenant
- Resolving the tenant's seat limit (durable plan first, static table second)
- Usage summaries with near-limit / at-limit classification
- Validation with a structured SEAT_LIMIT_EXCEEDED denial

Checks are check-then-act with no reservation: concurrent invites validated
against the same count can overshoot the limit by the number of racing
writers. Callers needing a hard cap must serialize membership inserts.
"""

import logging
from sqlalchemy import select, func
from sqlalchemy.exc import SQLAlchemyError
from starlette.concurrency import run_in_threadpool

from backoffice.core.config import settings
from backoffice.core.database import get_db_session, user_tenants
from backoffice.core.errors import SeatLimitExceededError, UsageUnavailableError
from backoffice.core.logging import log_event
from backoffice.features.plans.service import get_plan_limits
from backoffice.features.tenants.service import get_tenant
from backoffice.models.quota import (
    SEAT_LIMIT_EXCEEDED,
    LimitInfo,
    QuotaDenial,
    QuotaValidation,
    SeatUsage,
    format_price,
    percent_used,
)
from backoffice.models.tenant import MembershipStatus


logger = logging.getLogger(__name__)


def count_active_memberships(tenant_id: str) -> int:
    """
    Active memberships for a tenant. Invited and disabled rows do not count.

    Raises:
        UsageUnavailableError: If the membership store cannot be read
    """
    try:
        with get_db_session() as session:
            count = session.execute(
                select(func.count())
                .select_from(user_tenants)
                .where(user_tenants.c.tenant_id == tenant_id)
                .where(user_tenants.c.status == MembershipStatus.ACTIVE.value)
            ).scalar()
    except SQLAlchemyError as exc:
        logger.error("[seats] COUNT_FAILED", extra={"tenant_id": tenant_id, "error": str(exc)})
        raise UsageUnavailableError(
            "Seat usage is temporarily unavailable",
            details={"tenantId": tenant_id},
        ) from exc
    return int(count or 0)


def get_tenant_seat_limit(tenant_id: str) -> LimitInfo:
    tenant = get_tenant(tenant_id)
    limits = get_plan_limits(tenant.plan)
    return LimitInfo(
        limit=limits.seat_limit,
        price=limits.seat_price_per_additional,
        plan_name=limits.plan_name,
        source=limits.source,
    )


def build_seat_usage(current: int, limit_info: LimitInfo) -> SeatUsage:
    """Classify a seat count against a limit. None means unlimited."""
    limit = limit_info.limit
    if limit is None:
        return SeatUsage(
            current=current,
            limit=None,
            remaining=None,
            percentage_used=0,
            is_unlimited=True,
            is_near_limit=False,
            is_at_limit=False,
            can_add_more=True,
            plan_name=limit_info.plan_name,
            price_per_additional=limit_info.price,
        )

    remaining = limit - current
    percentage_used = percent_used(current, limit)
    return SeatUsage(
        current=current,
        limit=limit,
        remaining=remaining,
        percentage_used=percentage_used,
        is_unlimited=False,
        is_near_limit=remaining <= settings.SEAT_NEAR_LIMIT_REMAINING,
        is_at_limit=remaining <= 0,
        can_add_more=remaining > 0,
        plan_name=limit_info.plan_name,
        price_per_additional=limit_info.price,
    )


def get_seat_usage_summary(tenant_id: str) -> SeatUsage:
    limit_info = get_tenant_seat_limit(tenant_id)
    current = count_active_memberships(tenant_id)
    return build_seat_usage(current, limit_info)


def can_add_user(tenant_id: str) -> bool:
    return get_seat_usage_summary(tenant_id).can_add_more


def seat_denial_message(usage: SeatUsage) -> str:
    message = (
        f"Seat limit reached. Your {usage.plan_name} plan allows {usage.limit} users. "
        f"You currently have {usage.current} active users. "
    )
    if usage.price_per_additional:
        return message + f"Upgrade your plan or add seats for GHS {format_price(usage.price_per_additional)} per user."
    return message + "Please upgrade your plan to add more users."


def validate_seat_limit(tenant_id: str) -> QuotaValidation:
    """
    Check whether one more active member fits the tenant's plan.

    A denial is returned, not raised. Upstream failures still raise
    (NotFoundError, UsageUnavailableError).
    """
    usage = get_seat_usage_summary(tenant_id)
    if usage.can_add_more:
        return QuotaValidation(valid=True, usage=usage.to_payload())

    log_event(
        "warning",
        "[seats] DENY",
        tenant_id=tenant_id,
        event_type="seat_limit",
        error_code=SEAT_LIMIT_EXCEEDED,
        extra={"current": usage.current, "limit": usage.limit, "plan_name": usage.plan_name},
    )
    return QuotaValidation(
        valid=False,
        error=QuotaDenial(
            code=SEAT_LIMIT_EXCEEDED,
            message=seat_denial_message(usage),
            details=usage.to_payload(),
        ),
    )


def enforce_seat_limit(tenant_id: str) -> SeatUsage:
    """
    Raise SeatLimitExceededError when the tenant has no free seat.

    Returns the usage snapshot when a seat is available.
    """
    result = validate_seat_limit(tenant_id)
    if not result.valid:
        raise SeatLimitExceededError(result.error.message, details=result.error.details)
    return SeatUsage.model_validate(result.usage)


async def count_active_memberships_async(tenant_id: str) -> int:
    return await run_in_threadpool(count_active_memberships, tenant_id)


async def get_seat_usage_summary_async(tenant_id: str) -> SeatUsage:
    return await run_in_threadpool(get_seat_usage_summary, tenant_id)


async def validate_seat_limit_async(tenant_id: str) -> QuotaValidation:
    return await run_in_threadpool(validate_seat_limit, tenant_id)


async def enforce_seat_limit_async(tenant_id: str) -> SeatUsage:
    return await run_in_threadpool(enforce_seat_limit, tenant_id)

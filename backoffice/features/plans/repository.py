"""
backoffice/features/plans/repository.py

Plan repositories.

Plans live in two tiers: administrator-edited rows in subscription_plans
(authoritative) and the static catalog (fallback). Each tier is a repository
with the same get() contract; LayeredPlanRepository composes them so that a
durable record always wins over static config.
"""

from typing import Optional, Protocol
import logging
from sqlalchemy import select

from backoffice.core.database import get_db_session, subscription_plans
from backoffice.features.catalog.plans import STATIC_PLANS_BY_ID
from backoffice.models.plan import Plan


logger = logging.getLogger(__name__)


class PlanRepository(Protocol):
    def get(self, plan_id: str) -> Optional[Plan]:
        ...


def _to_float(value) -> Optional[float]:
    # Numeric columns come back as Decimal
    return None if value is None else float(value)


def row_to_plan(row) -> Plan:
    return Plan(
        plan_id=row.plan_id,
        name=row.name,
        order=row.display_order or 0,
        description=row.description,
        price=row.price or {},
        highlights=row.highlights or [],
        marketing=row.marketing or {},
        onboarding=row.onboarding or {},
        seat_limit=row.seat_limit,
        seat_price_per_additional=_to_float(row.seat_price_per_additional),
        storage_limit_mb=row.storage_limit_mb,
        storage_price_100gb=_to_float(row.storage_price_100gb),
        is_active=bool(row.is_active),
        source="database",
    )


class DatabasePlanRepository:
    """
    Reads active rows from subscription_plans.

    An inactive row reads as not found so resolution falls through to the
    static tier. Database errors propagate to the caller.
    """

    def get(self, plan_id: str) -> Optional[Plan]:
        with get_db_session() as session:
            row = session.execute(
                select(subscription_plans)
                .where(subscription_plans.c.plan_id == plan_id)
                .where(subscription_plans.c.is_active == True)  # noqa: E712
            ).first()

            if not row:
                return None

            return row_to_plan(row)


class StaticPlanRepository:
    """Plans from the static catalog (source="config")."""

    def get(self, plan_id: str) -> Optional[Plan]:
        return STATIC_PLANS_BY_ID.get(plan_id)


class LayeredPlanRepository:
    def __init__(self, primary: PlanRepository, fallback: PlanRepository):
        self.primary = primary
        self.fallback = fallback

    def get(self, plan_id: str) -> Optional[Plan]:
        plan = self.primary.get(plan_id)
        if plan is not None:
            return plan
        return self.fallback.get(plan_id)

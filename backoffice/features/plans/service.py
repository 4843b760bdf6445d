"""
backoffice/features/plans/service.py

Plan resolution service.

Handles:
- Two-tier plan lookup (subscription_plans first, static catalog second)
- Plan feature sets and seat/storage limits
- Process-wide plan cache with explicit invalidation
- Plan seeding and administrative edits
"""

from datetime import datetime, timezone
from threading import Lock
from typing import Dict, FrozenSet, List, Optional, Tuple
import logging
import time
from sqlalchemy import select, insert, update
from sqlalchemy.exc import SQLAlchemyError

from backoffice.core.config import settings
from backoffice.core.database import get_db_session, subscription_plans, create_all_tables
from backoffice.core.errors import NotFoundError, UsageUnavailableError, ValidationError
from backoffice.features.catalog.plans import STATIC_PLANS, STATIC_PLAN_FEATURES
from backoffice.features.plans.repository import (
    DatabasePlanRepository,
    LayeredPlanRepository,
    PlanRepository,
    StaticPlanRepository,
    row_to_plan,
)
from backoffice.models.plan import Plan, PlanLimits, ResolvedPlan
from backoffice.models.tenant import Tenant


logger = logging.getLogger(__name__)

_repository: PlanRepository = LayeredPlanRepository(DatabasePlanRepository(), StaticPlanRepository())

_cache_lock = Lock()
_plan_cache: Dict[str, Tuple[float, ResolvedPlan]] = {}

# Columns administrators may change through update_plan()
EDITABLE_PLAN_FIELDS = {
    "name",
    "display_order",
    "description",
    "price",
    "highlights",
    "marketing",
    "onboarding",
    "seat_limit",
    "seat_price_per_additional",
    "storage_limit_mb",
    "storage_price_100gb",
    "is_active",
    "metadata",
}


def set_plan_repository(repository: PlanRepository) -> None:
    """Swap the plan repository (tests, alternate stores). Clears the cache."""
    global _repository
    _repository = repository
    invalidate_plan_cache()


def get_plan_repository() -> PlanRepository:
    return _repository


def invalidate_plan_cache(plan_id: Optional[str] = None) -> None:
    """Drop one cached plan, or all of them when plan_id is None."""
    with _cache_lock:
        if plan_id is None:
            _plan_cache.clear()
        else:
            _plan_cache.pop(plan_id, None)


def _cache_get(plan_id: str) -> Optional[ResolvedPlan]:
    ttl = settings.PLAN_CACHE_TTL_SECONDS
    if ttl <= 0:
        return None
    with _cache_lock:
        entry = _plan_cache.get(plan_id)
        if entry is None:
            return None
        expires_at, resolved = entry
        if time.monotonic() >= expires_at:
            _plan_cache.pop(plan_id, None)
            return None
        return resolved


def _cache_put(resolved: ResolvedPlan) -> None:
    ttl = settings.PLAN_CACHE_TTL_SECONDS
    if ttl <= 0:
        return
    with _cache_lock:
        _plan_cache[resolved.plan_id] = (time.monotonic() + ttl, resolved)


def resolve_plan(plan_id: Optional[str]) -> ResolvedPlan:
    """
    Resolve a plan id against durable storage, then static config.

    Never raises for an unknown id: the result is source="unresolved" with
    no plan. A database failure raises UsageUnavailableError instead of
    silently falling back to static config.
    """
    if not plan_id:
        return ResolvedPlan(plan_id="", plan=None, source="unresolved")

    cached = _cache_get(plan_id)
    if cached is not None:
        return cached

    try:
        plan = _repository.get(plan_id)
    except SQLAlchemyError as exc:
        logger.error(
            "[plans] RESOLVE_FAILED",
            extra={"plan_id": plan_id, "error": str(exc)},
        )
        raise UsageUnavailableError(
            "Plan configuration is temporarily unavailable",
            details={"planId": plan_id},
        ) from exc

    if plan is None:
        logger.warning("[plans] UNRESOLVED", extra={"plan_id": plan_id})
        resolved = ResolvedPlan(plan_id=plan_id, plan=None, source="unresolved")
    else:
        resolved = ResolvedPlan(plan_id=plan_id, plan=plan, source=plan.source)

    _cache_put(resolved)
    return resolved


def get_plan_features(plan_id: Optional[str]) -> FrozenSet[str]:
    """
    Feature keys a plan enables.

    A durable record contributes the keys whose feature flag is exactly True.
    A static plan contributes its static feature list. Unknown plans enable
    nothing.
    """
    resolved = resolve_plan(plan_id)
    if resolved.plan is None:
        return frozenset()
    if resolved.source == "database":
        return frozenset(resolved.plan.enabled_feature_keys)
    return frozenset(STATIC_PLAN_FEATURES.get(resolved.plan_id, ()))


def get_features_for_plan(tenant: Tenant) -> FrozenSet[str]:
    return get_plan_features(tenant.plan)


def get_plan_limits(plan_id: Optional[str]) -> PlanLimits:
    """
    Seat and storage limits for a plan.

    An unresolved plan gets zero limits (no room) rather than unlimited or a
    default tier.
    """
    resolved = resolve_plan(plan_id)
    plan = resolved.plan
    if plan is None:
        return PlanLimits(
            plan_id=resolved.plan_id,
            plan_name=resolved.display_name or "unknown",
            seat_limit=0,
            storage_limit_mb=0,
            source="unresolved",
        )
    return PlanLimits(
        plan_id=plan.plan_id,
        plan_name=plan.name,
        seat_limit=plan.seat_limit,
        seat_price_per_additional=plan.seat_price_per_additional,
        storage_limit_mb=plan.storage_limit_mb,
        storage_price_100gb=plan.storage_price_100gb,
        source=resolved.source,
    )


def list_plans(active_only: bool = True) -> List[Plan]:
    """Durable plans merged over static ones, ordered for display."""
    with get_db_session() as session:
        query = select(subscription_plans)
        if active_only:
            query = query.where(subscription_plans.c.is_active == True)  # noqa: E712
        rows = session.execute(query).all()

    by_id: Dict[str, Plan] = {plan.plan_id: plan for plan in STATIC_PLANS}
    for row in rows:
        by_id[row.plan_id] = row_to_plan(row)
    return sorted(by_id.values(), key=lambda p: (p.order, p.plan_id))


def seed_plans() -> int:
    """
    Seed subscription_plans from the static catalog.

    Skips entirely when any plan row already exists so administrator edits
    are never overwritten. Returns the number of plans inserted.
    """
    create_all_tables()
    now = datetime.now(timezone.utc)

    with get_db_session() as session:
        existing = session.execute(select(subscription_plans.c.plan_id).limit(1)).first()
        if existing:
            logger.info("[plans] SEED_SKIPPED", extra={"reason": "plans_exist"})
            return 0

        for plan in STATIC_PLANS:
            session.execute(
                insert(subscription_plans).values(
                    plan_id=plan.plan_id,
                    display_order=plan.order,
                    name=plan.name,
                    description=plan.description,
                    price=plan.price,
                    highlights=plan.highlights,
                    marketing=plan.marketing,
                    onboarding=plan.onboarding,
                    seat_limit=plan.seat_limit,
                    seat_price_per_additional=plan.seat_price_per_additional,
                    storage_limit_mb=plan.storage_limit_mb,
                    storage_price_100gb=plan.storage_price_100gb,
                    is_active=True,
                    metadata={"seededFrom": "static_catalog"},
                    created_at=now,
                    updated_at=now,
                )
            )

    invalidate_plan_cache()
    logger.info("[plans] SEEDED", extra={"count": len(STATIC_PLANS)})
    return len(STATIC_PLANS)


def update_plan(plan_id: str, /, **changes) -> Plan:
    """
    Apply administrative edits to a durable plan.

    Raises:
        ValidationError: If a change names a column that is not editable
        NotFoundError: If no durable plan exists for plan_id
    """
    unknown = sorted(set(changes) - EDITABLE_PLAN_FIELDS)
    if unknown:
        raise ValidationError(f"Unknown plan fields: {', '.join(unknown)}")

    with get_db_session() as session:
        if changes:
            result = session.execute(
                update(subscription_plans)
                .where(subscription_plans.c.plan_id == plan_id)
                .values(**changes, updated_at=datetime.now(timezone.utc))
            )
            if result.rowcount == 0:
                raise NotFoundError(f"Plan {plan_id} not found")
        row = session.execute(
            select(subscription_plans).where(subscription_plans.c.plan_id == plan_id)
        ).first()
        if not row:
            raise NotFoundError(f"Plan {plan_id} not found")
        plan = row_to_plan(row)

    invalidate_plan_cache(plan_id)
    logger.info("[plans] UPDATED", extra={"plan_id": plan_id, "fields": sorted(changes)})
    return plan

"""
backoffice/models/plan.py

Subscription plan model.

A plan comes either from the subscription_plans table (source="database")
or from the static catalog (source="config"). The marketing payload keeps
the camelCase keys it is stored with, including the featureFlags map.
"""

from typing import Any, Dict, List, Literal, Optional
from pydantic import BaseModel, ConfigDict, Field


PlanSource = Literal["database", "config"]


class Plan(BaseModel):
    """
    Plan represents a subscription tier.

    Examples:
    - trial (default onboarding plan)
    - launch
    - scale
    - enterprise (unlimited seats and storage)

    seat_limit / storage_limit_mb of None mean unlimited; 0 means no room.
    """
    model_config = ConfigDict(frozen=True)

    plan_id: str
    name: str
    order: int = 0
    description: Optional[str] = None
    price: Dict[str, Any] = Field(default_factory=dict)
    highlights: List[str] = Field(default_factory=list)
    marketing: Dict[str, Any] = Field(default_factory=dict)
    onboarding: Dict[str, Any] = Field(default_factory=dict)
    seat_limit: Optional[int] = None
    seat_price_per_additional: Optional[float] = None
    storage_limit_mb: Optional[int] = None
    storage_price_100gb: Optional[float] = None
    is_active: bool = True
    source: PlanSource = "config"

    @property
    def feature_flags(self) -> Dict[str, bool]:
        flags = self.marketing.get("featureFlags") or {}
        return dict(flags)

    @property
    def enabled_feature_keys(self) -> List[str]:
        """Keys whose flag is exactly True, in flag-map order."""
        return [key for key, enabled in self.feature_flags.items() if enabled is True]

    @property
    def shown_in_marketing(self) -> bool:
        return bool(self.marketing.get("enabled", False))

    @property
    def shown_in_onboarding(self) -> bool:
        return bool(self.onboarding.get("enabled", False))


ResolutionSource = Literal["database", "config", "unresolved"]


class ResolvedPlan(BaseModel):
    """Result of two-tier plan lookup. plan is None only when unresolved."""
    model_config = ConfigDict(frozen=True)

    plan_id: str
    plan: Optional[Plan] = None
    source: ResolutionSource = "unresolved"

    @property
    def found(self) -> bool:
        return self.plan is not None

    @property
    def display_name(self) -> str:
        return self.plan.name if self.plan else self.plan_id


class PlanLimits(BaseModel):
    """Seat and storage limits of a plan, with the tier they came from."""
    model_config = ConfigDict(frozen=True)

    plan_id: str
    plan_name: str
    seat_limit: Optional[int]
    seat_price_per_additional: Optional[float] = None
    storage_limit_mb: Optional[int]
    storage_price_100gb: Optional[float] = None
    source: ResolutionSource

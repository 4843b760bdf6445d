"""
backoffice/features/catalog/plans.py

Static plan configuration.

These tables are the fallback tier of plan resolution: they answer only for
plan ids that have no active row in subscription_plans. They also seed that
table on first deploy.
"""

from types import MappingProxyType
from typing import Mapping, Optional, Tuple

from backoffice.features.catalog.features import catalog_feature_keys
from backoffice.models.plan import Plan


# Seat limits by plan (None = unlimited)
DEFAULT_PLAN_SEAT_LIMITS: Mapping[str, Optional[int]] = MappingProxyType({
    "trial": 5,
    "launch": 5,
    "scale": 15,
    "enterprise": None,
})

# Price per additional seat beyond the base limit (None = cannot add seats)
PLAN_SEAT_PRICING: Mapping[str, Optional[float]] = MappingProxyType({
    "trial": None,
    "launch": 25.0,   # GHS per additional seat
    "scale": 32.0,
    "enterprise": None,  # custom pricing
})

# Storage limits by plan in MB (None = unlimited)
DEFAULT_STORAGE_LIMITS: Mapping[str, Optional[int]] = MappingProxyType({
    "trial": 1024,       # 1 GB
    "launch": 10240,     # 10 GB
    "scale": 51200,      # 50 GB
    "enterprise": None,
})

# Price per additional 100GB of storage (None = cannot add storage)
STORAGE_PRICING: Mapping[str, Optional[float]] = MappingProxyType({
    "trial": None,
    "launch": 15.0,
    "scale": 12.0,       # volume discount
    "enterprise": None,
})

STATIC_PLAN_FEATURES: Mapping[str, Tuple[str, ...]] = MappingProxyType({
    "trial": (
        "crm", "quoteAutomation", "jobAutomation", "paymentsExpenses", "reports",
        "leadPipeline", "roleManagement",
    ),
    "launch": (
        "crm", "quoteAutomation", "jobAutomation", "paymentsExpenses", "reports",
        "leadPipeline", "roleManagement", "accounting", "payroll",
    ),
    "scale": (
        "crm", "quoteAutomation", "jobAutomation", "paymentsExpenses", "inventory",
        "reports", "notifications", "leadPipeline", "roleManagement", "accounting",
        "payroll", "advancedReporting",
    ),
    "enterprise": catalog_feature_keys(),
})

_MARKETING_FLAGS_STANDARD = {
    "crm": True,
    "quoteAutomation": True,
    "jobAutomation": True,
    "paymentsExpenses": True,
    "inventory": False,
    "reports": True,
    "notifications": False,
    "leadPipeline": True,
    "roleManagement": True,
}

_MARKETING_FLAGS_FULL = {**_MARKETING_FLAGS_STANDARD, "inventory": True, "notifications": True}


_PLAN_DEFINITIONS = (
    {
        "plan_id": "trial",
        "order": 10,
        "name": "Free Trial",
        "description": "Try every feature with no commitment.",
        "price": {
            "amount": 0,
            "currency": "GHS",
            "display": "GHS 0",
            "billingPeriodLabel": "14 days",
            "billingDescription": "14-day full access",
        },
        "highlights": ["All modules unlocked", "Up to 5 team members", "In-app support"],
        "marketing": {
            "enabled": False,
            "perks": [],
            "featureFlags": {},
            "popular": False,
            "priceDisplay": "GHS 0",
            "billing": "14-day full access",
            "cta": {"type": "link", "target": "signup", "label": "Start trial"},
        },
        "onboarding": {
            "enabled": True,
            "subtitle": "14 days",
            "ctaLabel": "Start Trial",
            "badge": None,
            "isDefault": True,
        },
    },
    {
        "plan_id": "launch",
        "order": 20,
        "name": "Launch",
        "description": "For growing shops modernizing their quoting and job tracking.",
        "price": {
            "amount": 799,
            "currency": "GHS",
            "display": "GHS 799/mo",
            "billingPeriodLabel": "per month",
            "billingDescription": "GHS 799 per month, billed annually",
        },
        "highlights": [
            "Unlimited invoices & jobs",
            "Accounting & payroll modules",
            "Customer & vendor portals",
            "Email + chat support",
        ],
        "marketing": {
            "enabled": True,
            "perks": [
                "Up to 5 seats",
                "Quotes turn into jobs automatically",
                "Auto-generated invoices",
                "Email support",
            ],
            "featureFlags": _MARKETING_FLAGS_STANDARD,
            "popular": False,
            "priceDisplay": "GHS 799",
            "billing": "per month, billed annually",
            "badgeLabel": None,
            "cta": {"type": "link", "target": "signup", "label": "Start trial"},
        },
        "onboarding": {
            "enabled": True,
            "subtitle": "Recommended",
            "ctaLabel": "Choose Launch",
            "badge": None,
            "isDefault": False,
        },
    },
    {
        "plan_id": "scale",
        "order": 30,
        "name": "Scale",
        "description": "End-to-end visibility for multi-press teams that need deeper controls.",
        "price": {
            "amount": 1299,
            "currency": "GHS",
            "display": "GHS 1,299/mo",
            "billingPeriodLabel": "per month",
            "billingDescription": "GHS 1,299 per month, billed annually",
        },
        "highlights": [
            "Everything in Launch",
            "Advanced reporting & automation",
            "Inventory controls & vendor price lists",
            "Priority support with SLA",
        ],
        "marketing": {
            "enabled": True,
            "perks": [
                "Up to 15 seats",
                "Inventory controls & vendor price lists",
                "Automated reminders & notifications",
                "Priority support",
            ],
            "featureFlags": _MARKETING_FLAGS_FULL,
            "popular": True,
            "priceDisplay": "GHS 1,299",
            "billing": "per month, billed annually",
            "badgeLabel": "Recommended",
            "cta": {"type": "link", "target": "signup", "label": "Start trial"},
        },
        "onboarding": {
            "enabled": True,
            "subtitle": "Scale-ready",
            "ctaLabel": "Choose Scale",
            "badge": "Popular",
            "isDefault": False,
        },
    },
    {
        "plan_id": "enterprise",
        "order": 40,
        "name": "Enterprise",
        "description": "Tailored workflows, security, and integrations for large-scale operations.",
        "price": {
            "amount": None,
            "currency": "GHS",
            "display": "Let's talk",
            "billingPeriodLabel": "Custom",
            "billingDescription": "Custom contract, onboarding & integrations",
        },
        "highlights": [
            "Dedicated success manager",
            "Custom workflow configuration",
            "24/7 priority support",
            "Unlimited seats",
        ],
        "marketing": {
            "enabled": True,
            "perks": [
                "Unlimited seats",
                "Dedicated success manager",
                "Custom workflow configuration",
                "24/7 priority support",
            ],
            "featureFlags": _MARKETING_FLAGS_FULL,
            "popular": False,
            "priceDisplay": "Let's talk",
            "billing": "Custom contract, onboarding & integrations",
            "badgeLabel": None,
            "cta": {"type": "modal", "target": "contact-sales", "label": "Contact sales"},
        },
        "onboarding": {
            "enabled": False,
            "subtitle": None,
            "ctaLabel": None,
            "badge": None,
            "isDefault": False,
        },
    },
)


def _build_static_plan(definition: dict) -> Plan:
    plan_id = definition["plan_id"]
    return Plan(
        **definition,
        seat_limit=DEFAULT_PLAN_SEAT_LIMITS.get(plan_id),
        seat_price_per_additional=PLAN_SEAT_PRICING.get(plan_id),
        storage_limit_mb=DEFAULT_STORAGE_LIMITS.get(plan_id),
        storage_price_100gb=STORAGE_PRICING.get(plan_id),
        is_active=True,
        source="config",
    )


STATIC_PLANS: Tuple[Plan, ...] = tuple(_build_static_plan(d) for d in _PLAN_DEFINITIONS)
STATIC_PLANS_BY_ID: Mapping[str, Plan] = MappingProxyType({p.plan_id: p for p in STATIC_PLANS})

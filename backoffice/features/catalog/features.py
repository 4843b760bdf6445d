"""
backoffice/features/catalog/features.py

Central feature registry.

Single source of truth for gated capabilities. Plan editors, access control
and marketing pages all read from FEATURE_CATALOG; the route table used for
route gating is derived from it once at import.
"""

from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from backoffice.models.feature import Feature, MarketingCopy


def _feature(key, name, description, category, routes=(), required_for_modules=(), highlight=None, perk=None) -> Feature:
    return Feature(
        key=key,
        name=name,
        description=description,
        category=category,
        routes=tuple(routes),
        required_for_modules=tuple(required_for_modules),
        marketing_copy=MarketingCopy(highlight=highlight, perk=perk),
    )


FEATURE_CATALOG: Tuple[Feature, ...] = (
    _feature(
        "crm", "Customer & Vendor CRM", "Manage customers, vendors, and relationships", "core",
        routes=["/customers", "/vendors"],
        required_for_modules=["quotes", "jobs", "invoices"],
        highlight="Complete CRM for customers & vendors",
        perk="Customer & vendor relationship management",
    ),
    _feature(
        "quoteAutomation", "Quote Builder & Pricing Templates", "Create quotes with automated pricing", "sales",
        routes=["/quotes", "/pricing"],
        highlight="Automated quote generation with pricing templates",
        perk="Quote builder with smart pricing",
    ),
    _feature(
        "jobAutomation", "Job Workflow & Auto Invoice Generation", "Track jobs and automatically generate invoices", "operations",
        routes=["/jobs"],
        highlight="Job workflow with automatic invoice creation",
        perk="Auto-generated invoices from jobs",
    ),
    _feature(
        "paymentsExpenses", "Payments & Expense Tracking", "Record payments and track expenses", "finance",
        routes=["/payments", "/expenses"],
        highlight="Comprehensive payment and expense tracking",
        perk="Payment recording & expense management",
    ),
    _feature(
        "inventory", "Inventory Tracking & Vendor Price Lists", "Manage inventory, stock levels, and vendor pricing", "operations",
        routes=["/inventory"],
        highlight="Full inventory management with vendor price lists",
        perk="Inventory controls & vendor pricing",
    ),
    _feature(
        "reports", "Dashboards & Reporting Suite", "Advanced analytics and custom reports", "analytics",
        routes=["/reports", "/dashboard"],
        highlight="Interactive dashboards and reporting",
        perk="Business intelligence dashboards",
    ),
    _feature(
        "notifications", "In-app Notifications & Alerts", "Real-time notifications and automated reminders", "communication",
        highlight="Real-time notifications and smart reminders",
        perk="Automated notifications & alerts",
    ),
    _feature(
        "leadPipeline", "Lead Pipeline & Activity Timeline", "Track leads and conversion opportunities", "sales",
        routes=["/leads"],
        highlight="Visual lead pipeline with activity tracking",
        perk="Lead management & conversion tracking",
    ),
    _feature(
        "roleManagement", "Team Invites & Role-Based Access Control", "Manage team members with granular permissions", "admin",
        routes=["/users"],
        highlight="Granular role-based access control",
        perk="Team invites & permission management",
    ),
    _feature(
        "accounting", "Full Accounting Module", "Chart of accounts, journal entries, financial statements", "finance",
        routes=["/accounting"],
        highlight="Complete accounting with chart of accounts",
        perk="Full double-entry accounting",
    ),
    _feature(
        "payroll", "Payroll Management", "Employee payroll processing and tracking", "hr",
        routes=["/payroll", "/employees"],
        highlight="Built-in payroll processing",
        perk="Employee payroll management",
    ),
    _feature(
        "advancedReporting", "Advanced Analytics & Custom Reports", "Deep analytics, custom report builder, data exports", "analytics",
        routes=["/reports"],
        required_for_modules=["reports"],
        highlight="Advanced analytics with custom report builder",
        perk="Custom reports & data exports",
    ),
    _feature(
        "apiAccess", "API Access", "Programmatic access to platform data", "integration",
        highlight="Full API access for integrations",
        perk="RESTful API access",
    ),
    _feature(
        "whiteLabel", "White-Label Branding", "Custom branding and domain", "enterprise",
        highlight="Custom branding with your domain",
        perk="White-label branding & custom domain",
    ),
    _feature(
        "sso", "Single Sign-On (SSO)", "Enterprise SSO integration", "enterprise",
        highlight="Enterprise SSO with SAML/OAuth",
        perk="Single Sign-On (SSO) integration",
    ),
    _feature(
        "customWorkflows", "Custom Workflow Configuration", "Customize business processes and workflows", "enterprise",
        highlight="Fully customizable workflows",
        perk="Custom workflow configuration",
    ),
    _feature(
        "dedicatedSupport", "Dedicated Support Manager", "Priority support with dedicated account manager", "support",
        highlight="Dedicated customer success manager",
        perk="Dedicated account manager",
    ),
    _feature(
        "sla", "Support SLA", "Guaranteed response times", "support",
        highlight="Priority support with guaranteed SLA",
        perk="Support SLA with guaranteed response times",
    ),
)

FEATURE_CATEGORIES: Mapping[str, str] = MappingProxyType({
    "core": "Core Features",
    "sales": "Sales & CRM",
    "operations": "Operations",
    "finance": "Finance",
    "hr": "Human Resources",
    "analytics": "Analytics & Reporting",
    "communication": "Communication",
    "admin": "Administration",
    "integration": "Integrations",
    "enterprise": "Enterprise",
    "support": "Support",
})

_FEATURES_BY_KEY: Mapping[str, Feature] = MappingProxyType({f.key: f for f in FEATURE_CATALOG})

# (prefix, feature_key) in registration order. Several features may share a
# prefix (/reports); route checks take the union of all matches.
ROUTE_TABLE: Tuple[Tuple[str, str], ...] = tuple(
    (route, feature.key) for feature in FEATURE_CATALOG for route in feature.routes
)


def get_catalog_feature(key: str) -> Optional[Feature]:
    return _FEATURES_BY_KEY.get(key)


def catalog_feature_keys() -> Tuple[str, ...]:
    return tuple(_FEATURES_BY_KEY)


def get_features_by_category() -> Dict[str, List[Feature]]:
    """Group catalog features by category, preserving catalog order."""
    grouped: Dict[str, List[Feature]] = {}
    for feature in FEATURE_CATALOG:
        grouped.setdefault(feature.category, []).append(feature)
    return grouped


def generate_highlights_from_features(enabled_feature_keys: Iterable[str]) -> List[str]:
    highlights = []
    for key in enabled_feature_keys:
        feature = _FEATURES_BY_KEY.get(key)
        if feature and feature.marketing_copy.highlight:
            highlights.append(feature.marketing_copy.highlight)
    return highlights


def generate_perks_from_features(enabled_feature_keys: Iterable[str]) -> List[str]:
    perks = []
    for key in enabled_feature_keys:
        feature = _FEATURES_BY_KEY.get(key)
        if feature and feature.marketing_copy.perk:
            perks.append(feature.marketing_copy.perk)
    return perks

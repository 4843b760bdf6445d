"""
backoffice/features/catalog/modules.py

Module-based feature organization for subscription packaging.

Modules are high-level groupings admins toggle as a unit when building
pricing tiers. A feature may appear in more than one module (automation
reuses finance and sales features); lookups by key return the first
occurrence in module order.
"""

from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from backoffice.models.feature import Feature, MarketingCopy, Module


_UNLIMITED = None


def _mf(key, name, description, routes=(), limits=None, highlight=None, perk=None) -> dict:
    return {
        "key": key,
        "name": name,
        "description": description,
        "routes": tuple(routes),
        "limits": limits,
        "marketing_copy": MarketingCopy(highlight=highlight, perk=perk),
    }


def _module(key, name, description, icon, category, features) -> Module:
    return Module(
        key=key,
        name=name,
        description=description,
        icon=icon,
        category=category,
        features=tuple(Feature(category=category, **spec) for spec in features),
    )


MODULES: Tuple[Module, ...] = (
    _module("crm", "CRM & Contacts", "Customer and vendor relationship management", "contacts", "core", [
        _mf("crm", "Customer & Vendor CRM", "Manage customers and vendors",
            routes=["/customers", "/vendors"],
            highlight="Complete CRM for customers & vendors", perk="Unlimited customers & vendors"),
        _mf("leadPipeline", "Lead Pipeline & Activity Timeline", "Track leads and conversion opportunities",
            routes=["/leads"],
            highlight="Visual lead pipeline with activity tracking", perk="Lead management & conversion tracking"),
    ]),
    _module("sales", "Sales & Quoting", "Quote generation, pricing, and sales tracking", "dollar", "core", [
        _mf("quoteBuilder", "Quote Builder", "Create and manage quotes",
            routes=["/quotes"],
            highlight="Professional quote generation", perk="Unlimited quotes"),
        _mf("pricingTemplates", "Pricing Templates", "Automated pricing with templates and calculators",
            routes=["/pricing"],
            limits={"trial": 5, "launch": 25, "scale": 100, "enterprise": _UNLIMITED},
            highlight="Smart pricing calculator with templates", perk="Pricing templates & calculators"),
        _mf("discountTiers", "Quantity Discount Tiers", "Automatic volume-based discounts",
            highlight="Automated quantity discounts", perk="Volume pricing automation"),
        _mf("quoteToJobConversion", "Quote-to-Job Conversion", "Convert accepted quotes to jobs instantly",
            highlight="One-click quote-to-job conversion", perk="Automated quote conversion"),
    ]),
    _module("operations", "Job Management", "Job workflow, tracking, and execution", "setting", "core", [
        _mf("jobWorkflow", "Job Workflow & Tracking", "Complete job management system",
            routes=["/jobs"],
            highlight="End-to-end job workflow management", perk="Unlimited jobs & tracking"),
        _mf("jobStatusHistory", "Job Status History", "Complete audit trail of job status changes",
            highlight="Complete job status audit trail", perk="Job history tracking"),
        _mf("documentExport", "PDF Export", "Export invoices, quotes, and reports as PDF",
            highlight="Professional PDF export", perk="Branded PDF invoices & quotes"),
    ]),
    _module("inventory", "Inventory & Vendors", "Inventory tracking and vendor management", "appstore", "operations", [
        _mf("inventoryTracking", "Inventory Tracking", "Track stock levels and movements",
            routes=["/inventory"],
            highlight="Real-time inventory tracking", perk="Inventory management system"),
        _mf("vendorPriceLists", "Vendor Price Lists", "Manage vendor pricing and compare costs",
            routes=["/vendor-price-lists"],
            highlight="Vendor price list management", perk="Track & compare vendor pricing"),
    ]),
    _module("finance", "Finance & Billing", "Payments, expenses, and invoicing", "dollar-circle", "finance", [
        _mf("payments", "Payment Tracking", "Record and track payments",
            routes=["/payments"],
            highlight="Comprehensive payment tracking", perk="Payment recording & reconciliation"),
        _mf("expenses", "Expense Management", "Track and categorize expenses",
            routes=["/expenses"],
            highlight="Expense tracking & categorization", perk="Business expense management"),
        _mf("invoicing", "Invoicing", "Create and manage invoices",
            routes=["/invoices"],
            highlight="Professional invoicing system", perk="Unlimited invoices"),
        _mf("autoInvoicing", "Auto Invoice Generation", "Automatically generate invoices from completed jobs",
            highlight="Invoices auto-generated from jobs", perk="Automated billing"),
        _mf("invoiceCustomization", "Invoice Customization", "Custom invoice templates and numbering",
            highlight="Fully customizable invoice templates", perk="Custom invoice branding"),
        _mf("invoiceReminders", "Invoice Reminders", "Automated payment reminders",
            highlight="Automated payment reminders", perk="Auto payment follow-ups"),
    ]),
    _module("accounting", "Accounting", "Full accounting system with chart of accounts", "bar-chart", "finance", [
        _mf("chartOfAccounts", "Chart of Accounts", "Complete accounting with COA",
            routes=["/accounting"],
            highlight="Complete chart of accounts", perk="Full double-entry accounting"),
        _mf("accountingAutomation", "Accounting Automation", "Auto journal entries from invoices and payments",
            highlight="Automated journal entries", perk="Accounting automation"),
    ]),
    _module("payroll", "Payroll & HR", "Employee payroll and HR management", "team", "hr", [
        _mf("employeeManagement", "Employee Records", "Manage employee profiles and documents",
            routes=["/employees"],
            limits={"trial": 5, "launch": 20, "scale": 50, "enterprise": _UNLIMITED},
            highlight="Employee record management", perk="Employee profiles & documents"),
        _mf("payrollProcessing", "Payroll Processing", "Calculate and process payroll",
            routes=["/payroll"],
            highlight="Built-in payroll processing", perk="Automated payroll calculations"),
    ]),
    _module("analytics", "Analytics & Reports", "Business intelligence and reporting", "line-chart", "analytics", [
        _mf("basicReports", "Basic Reports & Dashboard", "Standard dashboard and basic reports",
            routes=["/dashboard", "/reports"],
            highlight="Real-time dashboard with KPIs", perk="Business dashboard"),
        _mf("advancedDashboard", "Advanced Dashboard Filters", "Custom date ranges and multi-period analysis",
            highlight="Custom date range analytics", perk="Advanced dashboard filters"),
        _mf("salesReports", "Sales Analytics", "Detailed sales reports and customer analysis",
            routes=["/reports/sales"],
            highlight="Comprehensive sales analytics", perk="Sales performance reports"),
        _mf("arReports", "AR & Outstanding Payments", "Accounts receivable aging and collection tracking",
            routes=["/reports/outstanding-payments"],
            highlight="AR aging and collection reports", perk="Outstanding payment tracking"),
        _mf("profitLossReports", "Profit & Loss Statements", "Financial P&L statements",
            routes=["/reports/profit-loss"],
            highlight="Professional P&L statements", perk="Financial performance reports"),
        _mf("dataExport", "Data Export", "Export data to CSV and Excel",
            highlight="Export all data to CSV/Excel", perk="Full data export capabilities"),
    ]),
    _module("automation", "Automation", "Workflow automation and batch processing", "robot", "premium", [
        _mf("quoteToJobConversion", "Quote-to-Job Automation", "Auto-convert accepted quotes to jobs",
            highlight="Automated quote-to-job conversion", perk="One-click quote conversion"),
        _mf("autoInvoicing", "Auto Invoice Generation", "Auto-generate invoices from completed jobs",
            highlight="Auto-generated invoices", perk="Automated billing from jobs"),
        _mf("accountingAutomation", "Accounting Automation", "Auto journal entries and reconciliation",
            highlight="Automated accounting entries", perk="Auto journal entries"),
        _mf("invoiceReminders", "Invoice Reminders", "Automated payment reminder emails",
            highlight="Automated payment reminders", perk="Auto payment follow-ups"),
        _mf("bulkOperations", "Bulk Operations", "Batch update multiple records",
            highlight="Bulk update jobs and invoices", perk="Batch processing tools"),
    ]),
    _module("communication", "Communication", "Notifications and alerts", "mail", "premium", [
        _mf("inAppNotifications", "In-App Notifications", "Real-time in-app alerts",
            highlight="Real-time in-app notifications", perk="In-app alerts"),
        _mf("emailNotifications", "Email Notifications", "Email alerts for key events",
            limits={"trial": 0, "launch": 50, "scale": 500, "enterprise": _UNLIMITED},
            highlight="Automated email notifications", perk="Email alerts & updates"),
        _mf("smsNotifications", "SMS Notifications", "SMS alerts for critical events",
            limits={"trial": 0, "launch": 0, "scale": 100, "enterprise": _UNLIMITED},
            highlight="SMS alerts for urgent updates", perk="SMS notification service"),
    ]),
    _module("customerExperience", "Customer Experience", "Client-facing features and portals", "star", "premium", [
        _mf("customerPortal", "Customer Portal", "Self-service portal for customers",
            routes=["/portal/customer"],
            highlight="Customer self-service portal", perk="Client portal access"),
        _mf("vendorPortal", "Vendor Portal", "Self-service portal for vendors",
            routes=["/portal/vendor"],
            highlight="Vendor collaboration portal", perk="Vendor portal access"),
        _mf("customBranding", "Custom Branding", "Upload logo and customize documents",
            highlight="Custom logo on all documents", perk="Professional branding"),
    ]),
    _module("teamCollaboration", "Team & Permissions", "User management and access control", "lock", "admin", [
        _mf("roleManagement", "Role-Based Access Control", "Granular permissions and roles",
            routes=["/users"],
            highlight="Granular role-based permissions", perk="Team access control"),
        _mf("teamInvites", "Team Invites", "Invite team members via email",
            highlight="Easy team member onboarding", perk="Team invite system"),
        _mf("multiTenancy", "Multi-Workspace Access", "Users can belong to multiple workspaces",
            highlight="Access multiple workspaces", perk="Multi-workspace support"),
    ]),
    _module("integration", "Integration & API", "API access and integrations", "api", "enterprise", [
        _mf("apiAccess", "REST API Access", "Programmatic access to all data",
            highlight="Full REST API access", perk="Developer API access"),
        _mf("webhooks", "Webhooks", "Real-time event notifications",
            highlight="Real-time webhook integrations", perk="Webhook support"),
    ]),
    _module("enterprise", "Enterprise", "Enterprise-grade features", "bank", "enterprise", [
        _mf("whiteLabel", "White-Label Branding", "Custom domain and full branding",
            highlight="White-label with custom domain", perk="Complete white-labeling"),
        _mf("sso", "Single Sign-On (SSO)", "Enterprise SSO integration",
            highlight="Enterprise SSO (SAML/OAuth)", perk="SSO authentication"),
        _mf("customWorkflows", "Custom Workflows", "Configure custom business processes",
            highlight="Fully customizable workflows", perk="Custom workflow engine"),
        _mf("customFields", "Custom Fields", "Add custom fields to any record",
            highlight="Custom fields on all modules", perk="Unlimited custom fields"),
    ]),
    _module("support", "Support & Success", "Support levels and SLA", "customer-service", "support", [
        _mf("standardSupport", "Standard Support", "Email support with 48hr response",
            highlight="Email support", perk="48-hour email support"),
        _mf("prioritySupport", "Priority Support", "Priority support with 24hr response",
            highlight="Priority support", perk="24-hour priority support"),
        _mf("dedicatedSupport", "Dedicated Success Manager", "Dedicated account manager",
            highlight="Dedicated customer success manager", perk="Dedicated account manager"),
        _mf("sla", "Support SLA", "Guaranteed response times",
            highlight="2-hour response SLA", perk="Guaranteed SLA"),
    ]),
)

_MODULES_BY_KEY: Mapping[str, Module] = MappingProxyType({m.key: m for m in MODULES})

_MODULE_FEATURES_BY_KEY: Dict[str, Feature] = {}
for _m in MODULES:
    for _f in _m.features:
        _MODULE_FEATURES_BY_KEY.setdefault(_f.key, _f)
MODULE_FEATURES_BY_KEY: Mapping[str, Feature] = MappingProxyType(_MODULE_FEATURES_BY_KEY)
del _m, _f


def get_module_by_key(key: str) -> Optional[Module]:
    return _MODULES_BY_KEY.get(key)


def get_features_for_module(module_key: str) -> Tuple[Feature, ...]:
    module = _MODULES_BY_KEY.get(module_key)
    return module.features if module else ()


def is_module_fully_enabled(module_key: str, enabled_feature_keys: Iterable[str]) -> bool:
    """True iff every feature of the module is enabled. Unknown modules are never enabled."""
    module = _MODULES_BY_KEY.get(module_key)
    if module is None:
        return False
    enabled = set(enabled_feature_keys)
    return all(key in enabled for key in module.feature_keys)


def get_enabled_modules(enabled_feature_keys: Iterable[str]) -> List[Module]:
    enabled = set(enabled_feature_keys)
    return [m for m in MODULES if all(key in enabled for key in m.feature_keys)]


def get_modules_by_category() -> Dict[str, List[Module]]:
    grouped: Dict[str, List[Module]] = {}
    for module in MODULES:
        grouped.setdefault(module.category, []).append(module)
    return grouped


def get_module_feature_limit(feature_key: str, plan_id: str) -> Tuple[bool, Optional[int]]:
    """
    Per-plan usage limit declared on a module feature.

    Returns (has_limit_entry, value). value None with has_limit_entry True
    means unlimited for that plan; has_limit_entry False means the feature
    declares no limit for the plan at all.
    """
    feature = _MODULE_FEATURES_BY_KEY.get(feature_key)
    if feature is None or not feature.limits or plan_id not in feature.limits:
        return False, None
    return True, feature.limits[plan_id]


def generate_highlights_from_modules(enabled_module_keys: Iterable[str]) -> List[str]:
    highlights = []
    for module_key in enabled_module_keys:
        module = _MODULES_BY_KEY.get(module_key)
        if module is None:
            continue
        for feature in module.features:
            if feature.marketing_copy.highlight:
                highlights.append(feature.marketing_copy.highlight)
    return highlights


def generate_perks_from_modules(enabled_module_keys: Iterable[str]) -> List[str]:
    return [_MODULES_BY_KEY[key].name for key in enabled_module_keys if key in _MODULES_BY_KEY]

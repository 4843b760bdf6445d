"""
backoffice/features/catalog/business_types.py

Business-vertical feature allow-lists.

Features are filtered by both subscription plan AND business type. Tenants
created before vertical segmentation have no business type and keep full
plan access.
"""

from types import MappingProxyType
from typing import FrozenSet, Mapping, Optional

from backoffice.features.catalog.features import catalog_feature_keys
from backoffice.features.catalog.modules import MODULE_FEATURES_BY_KEY
from backoffice.models.tenant import BusinessType


BUSINESS_TYPE_FEATURES: Mapping[str, FrozenSet[str]] = MappingProxyType({
    BusinessType.PRINTING_PRESS.value: frozenset({
        "crm",
        "quoteAutomation",
        "jobAutomation",
        "paymentsExpenses",
        "inventory",
        "reports",
        "leadPipeline",
        "quoteBuilder",
        "pricingTemplates",
        "jobWorkflow",
        "inventoryTracking",
        "vendorPriceLists",
        "payments",
        "expenses",
        "invoicing",
        "autoInvoicing",
        "basicReports",
        "salesReports",
        "arReports",
        "profitLossReports",
    }),
    BusinessType.SHOP.value: frozenset({
        "crm",
        "inventory",
        "paymentsExpenses",
        "reports",
        "shopManagement",
        "pos",
        "inventoryTracking",
        "payments",
        "expenses",
        "invoicing",
        "basicReports",
        "salesReports",
        "arReports",
        "profitLossReports",
    }),
    BusinessType.PHARMACY.value: frozenset({
        "crm",
        "inventory",
        "paymentsExpenses",
        "reports",
        "pharmacyManagement",
        "prescriptions",
        "inventoryTracking",
        "payments",
        "expenses",
        "invoicing",
        "basicReports",
        "salesReports",
        "arReports",
        "profitLossReports",
    }),
})

BUSINESS_TYPE_DISPLAY_NAMES: Mapping[str, str] = MappingProxyType({
    BusinessType.PRINTING_PRESS.value: "Printing Press",
    BusinessType.SHOP.value: "Shop",
    BusinessType.PHARMACY.value: "Pharmacy",
})

# Every feature key the system knows about, from any catalog.
ALL_KNOWN_FEATURE_KEYS: FrozenSet[str] = frozenset(catalog_feature_keys()).union(
    MODULE_FEATURES_BY_KEY.keys(),
    *BUSINESS_TYPE_FEATURES.values(),
)


def _normalize(business_type) -> Optional[str]:
    if business_type is None:
        return None
    if isinstance(business_type, BusinessType):
        return business_type.value
    return business_type or None


def get_features_for_business_type(business_type) -> FrozenSet[str]:
    """
    Feature keys available to a business vertical.

    No business type returns every known key (backward compatibility);
    an unrecognized vertical returns the empty set.
    """
    normalized = _normalize(business_type)
    if normalized is None:
        return ALL_KNOWN_FEATURE_KEYS
    return BUSINESS_TYPE_FEATURES.get(normalized, frozenset())


def is_feature_available_for_business_type(business_type, feature_key: str) -> bool:
    if _normalize(business_type) is None:
        return True
    return feature_key in get_features_for_business_type(business_type)


def get_business_type_display_name(business_type) -> Optional[str]:
    normalized = _normalize(business_type)
    if normalized is None:
        return None
    return BUSINESS_TYPE_DISPLAY_NAMES.get(normalized, normalized)

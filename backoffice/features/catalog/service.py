"""
backoffice/features/catalog/service.py

Catalog lookups that span the feature registry and the module catalog.
"""

from typing import Any, Dict, List, Optional

from backoffice.features.catalog.features import FEATURE_CATEGORIES, get_catalog_feature, get_features_by_category
from backoffice.features.catalog.modules import MODULE_FEATURES_BY_KEY, get_modules_by_category
from backoffice.models.feature import Feature


def get_feature_by_key(key: str) -> Optional[Feature]:
    """Feature registry first, then module features. Unknown keys return None."""
    if not key:
        return None
    return get_catalog_feature(key) or MODULE_FEATURES_BY_KEY.get(key)


def feature_catalog_projection() -> List[Dict[str, Any]]:
    """Features grouped by category for admin plan editors."""
    return [
        {
            "category": category,
            "label": FEATURE_CATEGORIES.get(category, category),
            "features": [feature.model_dump(exclude={"limits"}) for feature in features],
        }
        for category, features in get_features_by_category().items()
    ]


def module_catalog_projection() -> List[Dict[str, Any]]:
    """Modules grouped by category, each listing its feature keys and limits."""
    return [
        {
            "category": category,
            "modules": [
                {
                    "key": module.key,
                    "name": module.name,
                    "description": module.description,
                    "icon": module.icon,
                    "features": [
                        {"key": f.key, "name": f.name, "description": f.description, "limits": f.limits}
                        for f in module.features
                    ],
                }
                for module in modules
            ],
        }
        for category, modules in get_modules_by_category().items()
    ]

"""Read-only catalog projections for admin plan editors."""
from fastapi import APIRouter

from backoffice.features.catalog.business_types import BUSINESS_TYPE_DISPLAY_NAMES, BUSINESS_TYPE_FEATURES
from backoffice.features.catalog.service import feature_catalog_projection, module_catalog_projection
from backoffice.features.plans.service import list_plans

router = APIRouter(prefix="/v1/catalog", tags=["catalog"])


@router.get("/features")
def catalog_features():
    return {"categories": feature_catalog_projection()}


@router.get("/modules")
def catalog_modules():
    return {"categories": module_catalog_projection()}


@router.get("/business-types")
def catalog_business_types():
    return {
        "businessTypes": [
            {"key": key, "name": BUSINESS_TYPE_DISPLAY_NAMES.get(key, key), "features": sorted(features)}
            for key, features in BUSINESS_TYPE_FEATURES.items()
        ]
    }


@router.get("/plans")
def catalog_plans():
    return {"plans": [plan.model_dump(mode="json") for plan in list_plans()]}

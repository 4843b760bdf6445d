"""
backoffice/models/tenant.py

Tenant and membership shapes consumed by the entitlement engine.
"""

from enum import Enum
from typing import Optional
from pydantic import BaseModel, ConfigDict


class BusinessType(str, Enum):
    PRINTING_PRESS = "printing_press"
    SHOP = "shop"
    PHARMACY = "pharmacy"


class TenantStatus(str, Enum):
    ACTIVE = "active"
    PAUSED = "paused"
    SUSPENDED = "suspended"


class MembershipStatus(str, Enum):
    ACTIVE = "active"
    INVITED = "invited"
    DISABLED = "disabled"


class Tenant(BaseModel):
    """
    Tenant (workspace) as seen by the engine.

    business_type is a plain string so rows holding a vertical the catalog
    does not know about still load; they resolve to no business-type features.
    status is carried for collaborators and never consulted here.
    """
    model_config = ConfigDict(frozen=True)

    id: str
    name: str = ""
    plan: str
    business_type: Optional[str] = None
    status: str = TenantStatus.ACTIVE.value

"""
backoffice/models/feature.py

Feature and Module catalog entries.

Features are immutable configuration loaded once at import; Modules group
features for packaging and carry optional per-plan usage limits.
"""

from typing import Dict, Optional, Tuple
from pydantic import BaseModel, ConfigDict, Field


class MarketingCopy(BaseModel):
    model_config = ConfigDict(frozen=True)

    highlight: Optional[str] = None
    perk: Optional[str] = None


class Feature(BaseModel):
    """
    A single toggleable capability.

    routes holds URL prefixes this feature unlocks. A feature with no routes
    never grants route access; it may still gate a non-route capability.
    """
    model_config = ConfigDict(frozen=True)

    key: str
    name: str
    description: str = ""
    category: str
    routes: Tuple[str, ...] = ()
    required_for_modules: Tuple[str, ...] = ()
    marketing_copy: MarketingCopy = Field(default_factory=MarketingCopy)
    # plan_id -> limit; None = unlimited. Only module features carry limits.
    limits: Optional[Dict[str, Optional[int]]] = None


class Module(BaseModel):
    """A named, ordered bundle of features toggled together for pricing."""
    model_config = ConfigDict(frozen=True)

    key: str
    name: str
    description: str = ""
    icon: str
    category: str
    features: Tuple[Feature, ...]

    @property
    def feature_keys(self) -> Tuple[str, ...]:
        return tuple(f.key for f in self.features)

"""
backoffice/models/quota.py

Usage snapshots and validation results for seat and storage quotas.

Snapshots serialise with camelCase aliases (model_dump(by_alias=True)) so
UI callers can render upgrade prompts straight from denial details.
"""

import math
from typing import Any, Dict, Literal, Optional
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


LimitSource = Literal["database", "config", "unresolved"]

SEAT_LIMIT_EXCEEDED = "SEAT_LIMIT_EXCEEDED"
STORAGE_LIMIT_EXCEEDED = "STORAGE_LIMIT_EXCEEDED"


class _Snapshot(BaseModel):
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")


class LimitInfo(_Snapshot):
    """A plan limit as resolved from durable storage or static config."""
    limit: Optional[int]
    price: Optional[float] = None
    plan_name: str
    source: LimitSource


class SeatUsage(_Snapshot):
    current: int
    limit: Optional[int]
    remaining: Optional[int]
    percentage_used: int
    is_unlimited: bool
    is_near_limit: bool
    is_at_limit: bool
    can_add_more: bool
    plan_name: str
    price_per_additional: Optional[float] = None


class StorageMeasurement(_Snapshot):
    """
    Bytes stored across a tenant's upload areas.

    complete is False when the scan hit its deadline; bytes is then a lower
    bound, never a stand-in for zero.
    """
    bytes: int
    megabytes: int
    gigabytes: float
    complete: bool = True


class StorageUsage(_Snapshot):
    current_mb: int = Field(alias="currentMB")
    current_gb: float = Field(alias="currentGB")
    limit_mb: Optional[int] = Field(alias="limitMB")
    limit_gb: Optional[float] = Field(alias="limitGB")
    remaining_mb: Optional[int] = Field(alias="remainingMB")
    remaining_gb: Optional[float] = Field(alias="remainingGB")
    percentage_used: int
    is_unlimited: bool
    is_near_limit: bool
    is_at_limit: bool
    can_upload_more: bool
    plan_name: str
    price_100gb: Optional[float] = Field(default=None, alias="price100GB")
    is_partial: bool = False


class UploadCheck(_Snapshot):
    allowed: bool
    unlimited: bool
    current_mb: int = Field(alias="currentMB")
    limit_mb: Optional[int] = Field(alias="limitMB")
    remaining_mb: Optional[int] = Field(alias="remainingMB")
    after_upload_mb: int = Field(alias="afterUploadMB")
    file_size_mb: int = Field(alias="fileSizeMB")
    plan_name: str
    price_100gb: Optional[float] = Field(default=None, alias="price100GB")


class QuotaDenial(_Snapshot):
    code: Literal["SEAT_LIMIT_EXCEEDED", "STORAGE_LIMIT_EXCEEDED"]
    message: str
    details: Dict[str, Any]


class QuotaValidation(_Snapshot):
    """Outcome of a quota check: valid with the usage seen, or a denial."""
    valid: bool
    usage: Optional[Dict[str, Any]] = None
    error: Optional[QuotaDenial] = None


def percent_used(current: int, limit: int) -> int:
    """Whole percentage of limit consumed, rounding halves up. A zero limit is full."""
    if limit <= 0:
        return 100
    return int(math.floor(current * 100 / limit + 0.5))


def format_price(price: float) -> str:
    """Price for denial messages: 25.0 -> '25', 12.5 -> '12.5'."""
    return f"{price:g}"

"""
backoffice/features/storage/service.py

Storage quota service.

Handles:
- Measuring bytes stored across a tenant's upload areas
- Resolving the tenant's storage limit (durable plan first, static table second)
- Usage summaries with percentage-based near-limit / at-limit classification
- Upload validation with a structured STORAGE_LIMIT_EXCEEDED denial

Usage is measured on demand and never cached. Unreadable areas raise
UsageUnavailableError; a scan that runs past its deadline is reported as
partial and never allows an upload.
"""

from typing import List, Optional, Tuple
import logging
import math
import os
import time
from starlette.concurrency import run_in_threadpool

from backoffice.core.config import settings
from backoffice.core.errors import StorageLimitExceededError, UsageUnavailableError, ValidationError
from backoffice.features.plans.service import get_plan_limits
from backoffice.features.tenants.service import get_tenant
from backoffice.models.quota import (
    STORAGE_LIMIT_EXCEEDED,
    LimitInfo,
    QuotaDenial,
    QuotaValidation,
    StorageMeasurement,
    StorageUsage,
    UploadCheck,
    format_price,
    percent_used,
)


logger = logging.getLogger(__name__)

BYTES_PER_MB = 1024 * 1024
BYTES_PER_GB = 1024 * 1024 * 1024

_SIZE_UNITS = ("Bytes", "KB", "MB", "GB", "TB")


def bytes_to_mb(n: int) -> int:
    """Whole megabytes, rounded up so any non-empty file costs at least 1 MB."""
    return math.ceil(n / BYTES_PER_MB)


def _scan(path: str, deadline: Optional[float]) -> Tuple[int, bool]:
    """
    Walk path without following symlinks.

    Returns (bytes, complete). Entries that vanish mid-walk are skipped; any
    other OSError is raised.
    """
    total = 0
    stack = [path]
    while stack:
        if deadline is not None and time.monotonic() >= deadline:
            return total, False
        current = stack.pop()
        try:
            with os.scandir(current) as entries:
                for entry in entries:
                    try:
                        if entry.is_dir(follow_symlinks=False):
                            stack.append(entry.path)
                        elif entry.is_file(follow_symlinks=False):
                            total += entry.stat(follow_symlinks=False).st_size
                    except FileNotFoundError:
                        continue
        except FileNotFoundError:
            continue
    return total, True


def get_directory_size(path: str) -> int:
    """
    Total bytes of regular files under path. A missing directory is 0.

    Raises:
        UsageUnavailableError: If the directory exists but cannot be read
    """
    try:
        size, _ = _scan(path, None)
    except OSError as exc:
        logger.error("[storage] SCAN_FAILED", extra={"path": path, "error": str(exc)})
        raise UsageUnavailableError("Storage usage is temporarily unavailable") from exc
    return size


def tenant_storage_paths(tenant_id: str) -> List[str]:
    if not tenant_id or tenant_id in (".", "..") or os.sep in tenant_id or "/" in tenant_id:
        raise ValidationError(f"Invalid tenant id for storage lookup: {tenant_id!r}")
    return [os.path.join(settings.UPLOAD_DIR, area, tenant_id) for area in settings.storage_areas]


def get_tenant_storage_usage(tenant_id: str) -> StorageMeasurement:
    """
    Bytes stored for a tenant across every upload area.

    The scan shares one deadline (STORAGE_SCAN_TIMEOUT_SECONDS) across all
    areas; past it the measurement is returned with complete=False.

    Raises:
        UsageUnavailableError: If any upload area cannot be read
    """
    timeout = settings.STORAGE_SCAN_TIMEOUT_SECONDS
    deadline = time.monotonic() + timeout if timeout > 0 else None

    total = 0
    complete = True
    for path in tenant_storage_paths(tenant_id):
        try:
            size, finished = _scan(path, deadline)
        except OSError as exc:
            logger.error(
                "[storage] SCAN_FAILED",
                extra={"tenant_id": tenant_id, "path": path, "error": str(exc)},
            )
            raise UsageUnavailableError(
                "Storage usage is temporarily unavailable",
                details={"tenantId": tenant_id},
            ) from exc
        total += size
        if not finished:
            complete = False
            logger.warning(
                "[storage] SCAN_TIMEOUT",
                extra={"tenant_id": tenant_id, "path": path, "bytes_so_far": total},
            )
            break

    return StorageMeasurement(
        bytes=total,
        megabytes=bytes_to_mb(total),
        gigabytes=round(total / BYTES_PER_GB, 2),
        complete=complete,
    )


def get_tenant_storage_limit(tenant_id: str) -> LimitInfo:
    tenant = get_tenant(tenant_id)
    limits = get_plan_limits(tenant.plan)
    return LimitInfo(
        limit=limits.storage_limit_mb,
        price=limits.storage_price_100gb,
        plan_name=limits.plan_name,
        source=limits.source,
    )


def build_storage_usage(measurement: StorageMeasurement, limit_info: LimitInfo) -> StorageUsage:
    limit_mb = limit_info.limit
    current_mb = measurement.megabytes
    if limit_mb is None:
        return StorageUsage(
            current_mb=current_mb,
            current_gb=measurement.gigabytes,
            limit_mb=None,
            limit_gb=None,
            remaining_mb=None,
            remaining_gb=None,
            percentage_used=0,
            is_unlimited=True,
            is_near_limit=False,
            is_at_limit=False,
            can_upload_more=True,
            plan_name=limit_info.plan_name,
            price_100gb=limit_info.price,
            is_partial=not measurement.complete,
        )

    remaining_mb = limit_mb - current_mb
    percentage_used = percent_used(current_mb, limit_mb)
    return StorageUsage(
        current_mb=current_mb,
        current_gb=measurement.gigabytes,
        limit_mb=limit_mb,
        limit_gb=round(limit_mb / 1024, 1),
        remaining_mb=remaining_mb,
        remaining_gb=round(remaining_mb / 1024, 2),
        percentage_used=percentage_used,
        is_unlimited=False,
        is_near_limit=percentage_used >= settings.STORAGE_NEAR_LIMIT_PERCENT,
        is_at_limit=percentage_used >= settings.STORAGE_AT_LIMIT_PERCENT,
        can_upload_more=remaining_mb > 0,
        plan_name=limit_info.plan_name,
        price_100gb=limit_info.price,
        is_partial=not measurement.complete,
    )


def get_storage_usage_summary(tenant_id: str) -> StorageUsage:
    limit_info = get_tenant_storage_limit(tenant_id)
    measurement = get_tenant_storage_usage(tenant_id)
    return build_storage_usage(measurement, limit_info)


def build_upload_check(current_mb: int, limit_info: LimitInfo, file_size_bytes: int) -> UploadCheck:
    file_size_mb = bytes_to_mb(file_size_bytes)
    after_upload_mb = current_mb + file_size_mb
    limit_mb = limit_info.limit
    if limit_mb is None:
        return UploadCheck(
            allowed=True,
            unlimited=True,
            current_mb=current_mb,
            limit_mb=None,
            remaining_mb=None,
            after_upload_mb=after_upload_mb,
            file_size_mb=file_size_mb,
            plan_name=limit_info.plan_name,
            price_100gb=limit_info.price,
        )
    return UploadCheck(
        allowed=after_upload_mb <= limit_mb,
        unlimited=False,
        current_mb=current_mb,
        limit_mb=limit_mb,
        remaining_mb=limit_mb - current_mb,
        after_upload_mb=after_upload_mb,
        file_size_mb=file_size_mb,
        plan_name=limit_info.plan_name,
        price_100gb=limit_info.price,
    )


def would_exceed(tenant_id: str, file_size_bytes: int) -> UploadCheck:
    """
    Project an upload against the tenant's storage limit.

    Raises:
        ValidationError: If file_size_bytes is negative
        UsageUnavailableError: If usage cannot be fully measured on a limited plan
    """
    if file_size_bytes < 0:
        raise ValidationError("file_size_bytes must not be negative")

    limit_info = get_tenant_storage_limit(tenant_id)
    measurement = get_tenant_storage_usage(tenant_id)
    if not measurement.complete and limit_info.limit is not None:
        raise UsageUnavailableError(
            "Storage usage could not be fully measured; try again shortly",
            details={"tenantId": tenant_id, "partialMB": measurement.megabytes},
        )
    return build_upload_check(measurement.megabytes, limit_info, file_size_bytes)


def can_upload_file(tenant_id: str, file_size_bytes: int) -> bool:
    return would_exceed(tenant_id, file_size_bytes).allowed


def storage_denial_message(check: UploadCheck) -> str:
    message = (
        f"Storage limit exceeded. Your {check.plan_name} plan allows "
        f"{check.limit_mb}MB ({check.limit_mb / 1024:.1f}GB). "
        f"You're currently using {check.current_mb}MB ({check.current_mb / 1024:.2f}GB). "
        f"This {check.file_size_mb}MB upload would exceed your limit. "
    )
    if check.price_100gb:
        return message + f"Add more storage for GHS {format_price(check.price_100gb)} per 100GB or upgrade your plan."
    return message + "Please upgrade your plan for more storage."


def validate_storage_limit(tenant_id: str, file_size_bytes: int) -> QuotaValidation:
    """
    Check whether an upload of file_size_bytes fits the tenant's plan.

    A denial is returned, not raised. Upstream failures and partial scans
    raise UsageUnavailableError.
    """
    check = would_exceed(tenant_id, file_size_bytes)
    if check.allowed:
        return QuotaValidation(valid=True, usage=check.to_payload())

    logger.warning(
        "[storage] DENY",
        extra={
            "tenant_id": tenant_id,
            "current_mb": check.current_mb,
            "limit_mb": check.limit_mb,
            "file_size_mb": check.file_size_mb,
            "error_code": STORAGE_LIMIT_EXCEEDED,
        },
    )
    return QuotaValidation(
        valid=False,
        error=QuotaDenial(
            code=STORAGE_LIMIT_EXCEEDED,
            message=storage_denial_message(check),
            details=check.to_payload(),
        ),
    )


def enforce_storage_limit(tenant_id: str, file_size_bytes: int) -> UploadCheck:
    result = validate_storage_limit(tenant_id, file_size_bytes)
    if not result.valid:
        raise StorageLimitExceededError(result.error.message, details=result.error.details)
    return UploadCheck.model_validate(result.usage)


def format_bytes(n: int, decimals: int = 2) -> str:
    """Human-readable size in binary units, e.g. 1536 -> '1.5 KB'."""
    if n == 0:
        return "0 Bytes"
    if n < 0:
        raise ValueError("byte count must not be negative")

    dm = max(decimals, 0)
    i = 0
    while i < len(_SIZE_UNITS) - 1 and n >= 1024 ** (i + 1):
        i += 1
    value = f"{n / 1024 ** i:.{dm}f}"
    if "." in value:
        value = value.rstrip("0").rstrip(".")
    return f"{value} {_SIZE_UNITS[i]}"


async def get_tenant_storage_usage_async(tenant_id: str) -> StorageMeasurement:
    return await run_in_threadpool(get_tenant_storage_usage, tenant_id)


async def get_storage_usage_summary_async(tenant_id: str) -> StorageUsage:
    return await run_in_threadpool(get_storage_usage_summary, tenant_id)


async def validate_storage_limit_async(tenant_id: str, file_size_bytes: int) -> QuotaValidation:
    return await run_in_threadpool(validate_storage_limit, tenant_id, file_size_bytes)


async def enforce_storage_limit_async(tenant_id: str, file_size_bytes: int) -> UploadCheck:
    return await run_in_threadpool(enforce_storage_limit, tenant_id, file_size_bytes)

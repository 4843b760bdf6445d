"""
Tests for storage quota measurement and upload validation.
"""
import time
import pytest
from unittest.mock import patch
from sqlalchemy.exc import OperationalError

from backoffice.core.config import settings
from backoffice.core.errors import StorageLimitExceededError, UsageUnavailableError, ValidationError
from backoffice.features.storage.service import (
    BYTES_PER_MB,
    _scan,
    build_storage_usage,
    bytes_to_mb,
    can_upload_file,
    enforce_storage_limit,
    format_bytes,
    get_directory_size,
    get_storage_usage_summary,
    get_tenant_storage_limit,
    get_tenant_storage_usage,
    tenant_storage_paths,
    validate_storage_limit,
    would_exceed,
)
from backoffice.models.quota import STORAGE_LIMIT_EXCEEDED, LimitInfo, StorageMeasurement


def _measurement(mb: int, complete: bool = True) -> StorageMeasurement:
    return StorageMeasurement(bytes=mb * BYTES_PER_MB, megabytes=mb, gigabytes=round(mb / 1024, 2), complete=complete)


def test_missing_directory_is_zero(tmp_path):
    assert get_directory_size(str(tmp_path / "nope")) == 0


def test_directory_size_is_recursive(tmp_path):
    (tmp_path / "a" / "b").mkdir(parents=True)
    (tmp_path / "a" / "one.bin").write_bytes(b"x" * 10)
    (tmp_path / "a" / "b" / "two.bin").write_bytes(b"x" * 32)
    assert get_directory_size(str(tmp_path)) == 42


def test_unreadable_directory_raises_usage_unavailable(tmp_path):
    with patch("backoffice.features.storage.service._scan", side_effect=PermissionError("denied")):
        with pytest.raises(UsageUnavailableError):
            get_directory_size(str(tmp_path))


def test_scan_past_deadline_is_incomplete(tmp_path):
    (tmp_path / "f.bin").write_bytes(b"x")
    size, complete = _scan(str(tmp_path), time.monotonic() - 1)
    assert (size, complete) == (0, False)


def test_tenant_usage_spans_all_areas(make_tenant, write_upload):
    tid = make_tenant()
    other = make_tenant()
    write_upload(tid, 3 * BYTES_PER_MB, area="jobs")
    write_upload(tid, BYTES_PER_MB // 2, area="employees")
    write_upload(tid, 10, area="settings")
    write_upload(tid, 50 * BYTES_PER_MB, area="unscanned")
    write_upload(other, 50 * BYTES_PER_MB, area="jobs")

    usage = get_tenant_storage_usage(tid)
    assert usage.bytes == 3 * BYTES_PER_MB + BYTES_PER_MB // 2 + 10
    assert usage.megabytes == 4  # rounded up
    assert usage.gigabytes == 0.0
    assert usage.complete


def test_tenant_with_no_uploads_uses_nothing(make_tenant):
    usage = get_tenant_storage_usage(make_tenant())
    assert usage.bytes == 0
    assert usage.megabytes == 0


def test_tenant_id_cannot_escape_upload_dir():
    with pytest.raises(ValidationError):
        tenant_storage_paths("../other")
    with pytest.raises(ValidationError):
        tenant_storage_paths("..")


def test_scan_failure_propagates(make_tenant):
    tid = make_tenant(plan="launch")
    with patch("backoffice.features.storage.service._scan", side_effect=OSError("io error")):
        with pytest.raises(UsageUnavailableError) as excinfo:
            validate_storage_limit(tid, 1)
    assert excinfo.value.status_code == 503


def test_partial_scan_never_allows_upload(make_tenant):
    tid = make_tenant(plan="launch")
    with patch("backoffice.features.storage.service._scan", return_value=(5 * BYTES_PER_MB, False)):
        assert get_tenant_storage_usage(tid).complete is False
        assert get_storage_usage_summary(tid).is_partial
        with pytest.raises(UsageUnavailableError):
            validate_storage_limit(tid, 1)


def test_partial_scan_on_unlimited_plan_still_allows(make_tenant):
    tid = make_tenant(plan="enterprise")
    with patch("backoffice.features.storage.service._scan", return_value=(5 * BYTES_PER_MB, False)):
        assert validate_storage_limit(tid, BYTES_PER_MB).valid


def test_scan_timeout_setting_sets_deadline(make_tenant, monkeypatch):
    tid = make_tenant()
    with patch("backoffice.features.storage.service._scan", return_value=(0, True)) as scan:
        get_tenant_storage_usage(tid)
    assert all(call.args[1] is not None for call in scan.call_args_list)

    monkeypatch.setattr(settings, "STORAGE_SCAN_TIMEOUT_SECONDS", 0)
    with patch("backoffice.features.storage.service._scan", return_value=(0, True)) as scan:
        get_tenant_storage_usage(tid)
    assert len(scan.call_args_list) == 3
    assert all(call.args[1] is None for call in scan.call_args_list)


def test_storage_limit_from_static_config(make_tenant):
    info = get_tenant_storage_limit(make_tenant(plan="launch"))
    assert info.limit == 10240
    assert info.price == 15.0
    assert info.source == "config"


def test_durable_storage_limit_wins(make_tenant, store_plan):
    store_plan("launch", storage_limit_mb=2048, storage_price_100gb=9)
    info = get_tenant_storage_limit(make_tenant(plan="launch"))
    assert info.limit == 2048
    assert info.price == 9.0
    assert info.source == "database"


@pytest.mark.parametrize(
    "current_mb,near,at",
    [(79, False, False), (80, True, False), (94, True, False), (95, True, True), (100, True, True)],
)
def test_near_and_at_limit_boundaries(current_mb, near, at):
    usage = build_storage_usage(_measurement(current_mb), LimitInfo(limit=100, plan_name="Custom", source="database"))
    assert usage.percentage_used == current_mb
    assert usage.is_near_limit is near
    assert usage.is_at_limit is at


def test_summary_fields(make_tenant, write_upload):
    tid = make_tenant(plan="trial")
    write_upload(tid, 512 * BYTES_PER_MB)
    usage = get_storage_usage_summary(tid)
    assert usage.current_mb == 512
    assert usage.current_gb == 0.5
    assert usage.limit_mb == 1024
    assert usage.limit_gb == 1.0
    assert usage.remaining_mb == 512
    assert usage.remaining_gb == 0.5
    assert usage.percentage_used == 50
    assert usage.can_upload_more
    assert usage.plan_name == "Free Trial"
    payload = usage.to_payload()
    assert payload["currentMB"] == 512
    assert payload["limitGB"] == 1.0
    assert payload["price100GB"] is None


def test_unlimited_summary(make_tenant, write_upload):
    tid = make_tenant(plan="enterprise")
    write_upload(tid, 5 * BYTES_PER_MB)
    usage = get_storage_usage_summary(tid)
    assert usage.is_unlimited
    assert usage.limit_mb is None
    assert usage.percentage_used == 0
    assert not usage.is_near_limit


def test_trial_upload_over_limit_is_denied(make_tenant, write_upload):
    tid = make_tenant(plan="trial")
    write_upload(tid, 1000 * BYTES_PER_MB)

    check = would_exceed(tid, 50 * BYTES_PER_MB)
    assert check.current_mb == 1000
    assert check.file_size_mb == 50
    assert check.after_upload_mb == 1050
    assert not check.allowed

    result = validate_storage_limit(tid, 50 * BYTES_PER_MB)
    assert not result.valid
    assert result.error.code == STORAGE_LIMIT_EXCEEDED
    assert result.error.details["afterUploadMB"] == 1050
    assert result.error.message.endswith("Please upgrade your plan for more storage.")


def test_upload_exactly_filling_limit_is_allowed(make_tenant, write_upload):
    tid = make_tenant(plan="trial")
    write_upload(tid, 1000 * BYTES_PER_MB)
    assert can_upload_file(tid, 24 * BYTES_PER_MB)
    assert not can_upload_file(tid, 24 * BYTES_PER_MB + 1)


def test_denial_message_includes_storage_price(make_tenant, write_upload):
    tid = make_tenant(plan="launch")
    write_upload(tid, 10240 * BYTES_PER_MB)
    result = validate_storage_limit(tid, 1)
    assert result.error.message == (
        "Storage limit exceeded. Your Launch plan allows 10240MB (10.0GB). "
        "You're currently using 10240MB (10.00GB). "
        "This 1MB upload would exceed your limit. "
        "Add more storage for GHS 15 per 100GB or upgrade your plan."
    )


def test_enforce_storage_limit(make_tenant, write_upload):
    tid = make_tenant(plan="trial")
    write_upload(tid, 1000 * BYTES_PER_MB)
    assert enforce_storage_limit(tid, BYTES_PER_MB).after_upload_mb == 1001
    with pytest.raises(StorageLimitExceededError) as excinfo:
        enforce_storage_limit(tid, 50 * BYTES_PER_MB)
    assert excinfo.value.status_code == 413


def test_negative_upload_size_rejected(make_tenant):
    with pytest.raises(ValidationError):
        would_exceed(make_tenant(), -1)


def test_unknown_plan_has_no_storage(make_tenant):
    tid = make_tenant(plan="partner")
    assert not can_upload_file(tid, 1)
    assert get_storage_usage_summary(tid).percentage_used == 100


def test_bytes_to_mb_rounds_up():
    assert bytes_to_mb(0) == 0
    assert bytes_to_mb(1) == 1
    assert bytes_to_mb(BYTES_PER_MB) == 1
    assert bytes_to_mb(BYTES_PER_MB + 1) == 2


@pytest.mark.parametrize(
    "n,decimals,expected",
    [
        (0, 2, "0 Bytes"),
        (500, 2, "500 Bytes"),
        (1024, 2, "1 KB"),
        (1536, 2, "1.5 KB"),
        (BYTES_PER_MB, 2, "1 MB"),
        (1234567, 2, "1.18 MB"),
        (1234567, 0, "1 MB"),
        (5 * 1024 ** 4, 2, "5 TB"),
    ],
)
def test_format_bytes(n, decimals, expected):
    assert format_bytes(n, decimals) == expected


def test_tenant_lookup_failure_blocks_upload_check(make_tenant):
    tid = make_tenant(plan="trial")
    with patch(
        "backoffice.features.tenants.service.get_db_session",
        side_effect=OperationalError("SELECT", {}, Exception("down")),
    ):
        with pytest.raises(UsageUnavailableError) as excinfo:
            validate_storage_limit(tid, 1)
    assert excinfo.value.retryable

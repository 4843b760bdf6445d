# backoffice/conftest.py
import os
import pytest
from pathlib import Path
from uuid import uuid4

from sqlalchemy import insert

from backoffice.core.config import settings
from backoffice.core.database import (
    init_engine,
    dispose_engine,
    create_all_tables,
    drop_all_tables,
    get_db_session,
    tenants,
    user_tenants,
    subscription_plans,
)
from backoffice.features.plans.service import invalidate_plan_cache


@pytest.fixture(scope="function", autouse=True)
def database():
    """
    Fresh in-memory SQLite database per test.

    StaticPool keeps one shared connection so every session, thread and
    threadpool call sees the same tables.
    """
    init_engine(os.getenv("TEST_DATABASE_URL") or "sqlite://")
    create_all_tables()
    yield
    drop_all_tables()
    dispose_engine()


@pytest.fixture(scope="function", autouse=True)
def reset_plan_cache():
    invalidate_plan_cache()
    yield
    invalidate_plan_cache()


@pytest.fixture(scope="function", autouse=True)
def upload_dir(tmp_path, monkeypatch) -> Path:
    """Point UPLOAD_DIR at a per-test temp directory."""
    root = tmp_path / "uploads"
    root.mkdir()
    monkeypatch.setattr(settings, "UPLOAD_DIR", str(root))
    return root


@pytest.fixture
def make_tenant():
    """Insert a tenant row and return its id."""

    def _make(plan: str = "trial", business_type=None, tenant_id=None, name="Acme Prints") -> str:
        tid = tenant_id or f"tenant-{uuid4().hex[:8]}"
        with get_db_session() as session:
            session.execute(
                insert(tenants).values(id=tid, name=name, plan=plan, business_type=business_type)
            )
        return tid

    return _make


@pytest.fixture
def add_members():
    """Insert n memberships for a tenant with the given status."""

    def _add(tenant_id: str, count: int, status: str = "active") -> None:
        with get_db_session() as session:
            for _ in range(count):
                session.execute(
                    insert(user_tenants).values(
                        user_id=f"user-{uuid4().hex[:8]}",
                        tenant_id=tenant_id,
                        status=status,
                    )
                )

    return _add


@pytest.fixture
def store_plan():
    """Insert a durable subscription_plans row (administrator edit)."""

    def _store(plan_id: str, **overrides) -> None:
        values = {
            "plan_id": plan_id,
            "display_order": 0,
            "name": plan_id.title(),
            "price": {},
            "highlights": [],
            "marketing": {"featureFlags": {}},
            "onboarding": {},
            "seat_limit": None,
            "storage_limit_mb": None,
            "is_active": True,
        }
        values.update(overrides)
        with get_db_session() as session:
            session.execute(insert(subscription_plans).values(**values))
        invalidate_plan_cache()

    return _store


@pytest.fixture
def write_upload(upload_dir):
    """Write a file of size_bytes into an upload area for a tenant."""

    def _write(tenant_id: str, size_bytes: int, area: str = "jobs", name=None) -> Path:
        folder = upload_dir / area / tenant_id
        folder.mkdir(parents=True, exist_ok=True)
        path = folder / (name or f"file-{uuid4().hex[:8]}.bin")
        with open(path, "wb") as fh:
            if size_bytes:
                fh.seek(size_bytes - 1)
                fh.write(b"\0")
        return path

    return _write

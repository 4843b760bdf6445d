"""
Database access for the entitlement engine.

SQLAlchemy Core tables for tenants, memberships and administrator-edited
plans, plus engine and session lifecycle. The engine only reads these tables
except for plan seeding and plan edits.

SQLite URLs (tests) share a single connection through StaticPool so an
in-memory database is visible to every session and threadpool worker.
"""
from contextlib import contextmanager
from typing import Optional
from sqlalchemy import create_engine, MetaData, Table, Column, Integer, String, DateTime, Boolean, JSON, Numeric, Text, Index, ForeignKey, UniqueConstraint, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import QueuePool, StaticPool
from sqlalchemy.sql import func, true
import logging
import os

from backoffice.core.config import settings


logger = logging.getLogger(__name__)

metadata = MetaData()

_engine: Optional[Engine] = None
_session_factory: Optional[sessionmaker] = None


def resolve_database_url(override: Optional[str] = None) -> str:
    """
    override, then TEST_DATABASE_URL from the environment, then DATABASE_URL.

    Raises:
        ValueError: If none is set
    """
    url = override or os.getenv("TEST_DATABASE_URL") or settings.DATABASE_URL
    if not url:
        raise ValueError("DATABASE_URL is not configured (set it in the environment or .env)")
    return url


def _build_engine(url: str) -> Engine:
    if url.startswith("sqlite"):
        return create_engine(url, poolclass=StaticPool, connect_args={"check_same_thread": False})
    return create_engine(
        url,
        poolclass=QueuePool,
        pool_size=settings.DB_POOL_SIZE,
        max_overflow=settings.DB_MAX_OVERFLOW,
        pool_timeout=settings.DB_POOL_TIMEOUT_SECONDS,
        pool_recycle=settings.DB_POOL_RECYCLE_SECONDS,
        pool_pre_ping=True,
    )


def init_engine(database_url: Optional[str] = None) -> Engine:
    """(Re)bind the module engine and session factory."""
    global _engine, _session_factory
    _engine = _build_engine(resolve_database_url(database_url))
    _session_factory = sessionmaker(bind=_engine, autoflush=False)
    logger.info("[database] ENGINE_READY", extra={"dialect": _engine.dialect.name})
    return _engine


def dispose_engine() -> None:
    global _engine, _session_factory
    if _engine is not None:
        _engine.dispose()
    _engine = None
    _session_factory = None


def get_engine() -> Engine:
    if _engine is None:
        init_engine()
    return _engine


@contextmanager
def get_db_session():
    """
    Transactional session scope: commit on success, roll back on error.

    Usage:
        with get_db_session() as session:
            session.execute(select(tenants))
    """
    if _session_factory is None:
        init_engine()
    session = _session_factory()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def check_connection() -> bool:
    """True when the configured database answers SELECT 1."""
    try:
        with get_engine().connect() as conn:
            conn.execute(text("SELECT 1"))
    except (SQLAlchemyError, ValueError) as exc:
        logger.warning("[database] CONNECTION_FAILED", extra={"error": str(exc)})
        return False
    return True


def create_all_tables() -> None:
    """Create missing tables; existing ones are left alone."""
    metadata.create_all(bind=get_engine())


def drop_all_tables() -> None:
    """Drop every table this module defines. Tests only."""
    metadata.drop_all(bind=get_engine())


# Tenants (workspaces). business_type NULL = created before vertical segmentation.
tenants = Table(
    'tenants',
    metadata,
    Column('id', String(100), primary_key=True),
    Column('name', String(200), nullable=False),
    Column('plan', String(50), nullable=False, server_default='trial', index=True),
    Column('business_type', String(50), nullable=True),
    Column('status', String(50), nullable=False, server_default='active'),
    Column('created_at', DateTime(timezone=True), server_default=func.now(), nullable=False),
)

# Administrator-editable plans; authoritative over the static catalog when present.
subscription_plans = Table(
    'subscription_plans',
    metadata,
    Column('plan_id', String(50), primary_key=True),
    Column('display_order', Integer, nullable=False, server_default='0'),
    Column('name', String(100), nullable=False),
    Column('description', Text, nullable=True),
    Column('price', JSON, nullable=False),
    Column('highlights', JSON, nullable=False),
    Column('marketing', JSON, nullable=False),
    Column('onboarding', JSON, nullable=False),
    Column('seat_limit', Integer, nullable=True),  # NULL = unlimited
    Column('seat_price_per_additional', Numeric(10, 2), nullable=True),
    Column('storage_limit_mb', Integer, nullable=True),  # NULL = unlimited
    Column('storage_price_100gb', Numeric(10, 2), nullable=True),
    Column('is_active', Boolean, nullable=False, server_default=true(), index=True),
    Column('metadata', JSON, nullable=True),
    Column('created_at', DateTime(timezone=True), server_default=func.now(), nullable=False),
    Column('updated_at', DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False),
    Index('idx_subscription_plans_order', 'display_order'),
)

# Memberships (seats). Only status='active' counts against the plan's seat limit.
user_tenants = Table(
    'user_tenants',
    metadata,
    Column('id', Integer, primary_key=True, autoincrement=True),
    Column('user_id', String(100), nullable=False, index=True),
    Column('tenant_id', String(100), ForeignKey('tenants.id'), nullable=False),
    Column('role', String(50), nullable=False, server_default='member'),
    Column('status', String(50), nullable=False, server_default='active'),
    Column('invited_at', DateTime(timezone=True), nullable=True),
    Column('joined_at', DateTime(timezone=True), nullable=True),
    Column('created_at', DateTime(timezone=True), server_default=func.now(), nullable=False),
    UniqueConstraint('user_id', 'tenant_id', name='uq_user_tenants_user_tenant'),
    Index('idx_user_tenants_tenant_status', 'tenant_id', 'status'),
)

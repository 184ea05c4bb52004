"""Shared test fixtures for the ESG API test suite."""

import uuid
from collections.abc import AsyncGenerator, Callable
from datetime import datetime

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from esg_api.auth.dependencies import get_current_user
from esg_api.core.database import Base, get_db
from esg_api.core.security import hash_password
from esg_api.main import app
from esg_api.models.core import User
from esg_api.models.enums import ComplianceStatus, RecordStatus, UserRole
from esg_api.models.esg import ESGRecord
from esg_api.modules.audit.trail import AuditTrail, get_audit_trail
from esg_api.schemas.auth import CurrentUser

ORG = "Acme"
OTHER_ORG = "Globex"
PASSWORD = "correct-horse-battery"

ADMIN_ID = uuid.UUID("00000000-0000-0000-0000-000000000001")
ANALYST_ID = uuid.UUID("00000000-0000-0000-0000-000000000002")
AUDITOR_ID = uuid.UUID("00000000-0000-0000-0000-000000000003")
OTHER_ANALYST_ID = uuid.UUID("00000000-0000-0000-0000-000000000004")


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


# ── Database ─────────────────────────────────────────────────────────────────


@pytest.fixture
async def engine(tmp_path) -> AsyncGenerator[AsyncEngine]:
    """A throwaway SQLite database per test, schema built from the models."""
    test_engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'esg_test.db'}",
        poolclass=NullPool,
    )
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield test_engine
    await test_engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db(session_factory: async_sessionmaker[AsyncSession]) -> AsyncGenerator[AsyncSession]:
    async with session_factory() as session:
        yield session


@pytest.fixture
def audit_trail(session_factory: async_sessionmaker[AsyncSession]) -> AuditTrail:
    return AuditTrail(session_factory)


# ── Users ────────────────────────────────────────────────────────────────────


def _user(user_id: uuid.UUID, name: str, email: str, role: UserRole, organization: str) -> User:
    return User(
        id=user_id,
        name=name,
        email=email,
        password_hash=hash_password(PASSWORD),
        role=role,
        organization=organization,
        is_active=True,
    )


def as_current_user(user: User) -> CurrentUser:
    return CurrentUser(
        user_id=user.id,
        email=user.email,
        name=user.name,
        role=user.role,
        organization=user.organization,
    )


@pytest.fixture
async def users(db: AsyncSession) -> dict[str, User]:
    """One user per role in ORG plus an analyst from another organization."""
    seeded = {
        "admin": _user(ADMIN_ID, "Ada Admin", "admin@acme.com", UserRole.ADMINISTRATOR, ORG),
        "analyst": _user(ANALYST_ID, "Ana Analyst", "analyst@acme.com", UserRole.ESG_ANALYST, ORG),
        "auditor": _user(AUDITOR_ID, "Otto Auditor", "auditor@acme.com", UserRole.AUDITOR, ORG),
        "other_analyst": _user(
            OTHER_ANALYST_ID, "Gus Globex", "analyst@globex.com", UserRole.ESG_ANALYST, OTHER_ORG
        ),
    }
    db.add_all(seeded.values())
    await db.commit()
    return seeded


# ── HTTP client ──────────────────────────────────────────────────────────────


@pytest.fixture
async def client(
    session_factory: async_sessionmaker[AsyncSession],
    audit_trail: AuditTrail,
) -> AsyncGenerator[AsyncClient]:
    """AsyncClient bound to the test database and audit trail."""

    async def _test_db() -> AsyncGenerator[AsyncSession]:
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = _test_db
    app.dependency_overrides[get_audit_trail] = lambda: audit_trail
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    await audit_trail.drain()
    app.dependency_overrides.pop(get_current_user, None)
    app.dependency_overrides.pop(get_audit_trail, None)
    app.dependency_overrides.pop(get_db, None)


@pytest.fixture
def login_as(users: dict[str, User]) -> Callable[[str], CurrentUser]:
    """Switch the authenticated caller, e.g. ``login_as("auditor")``."""

    def _login(key: str) -> CurrentUser:
        current = as_current_user(users[key])
        app.dependency_overrides[get_current_user] = lambda: current
        return current

    return _login


# ── Records ──────────────────────────────────────────────────────────────────


@pytest.fixture
def make_record(db: AsyncSession) -> Callable:
    """Insert an ESG record directly, bypassing the workflow."""

    async def _make(
        *,
        organization: str = ORG,
        status: RecordStatus = RecordStatus.APPROVED,
        created_at: datetime | None = None,
        **metrics,
    ) -> ESGRecord:
        record = ESGRecord(
            organization=organization,
            reporting_year=2024,
            reporting_quarter=1,
            status=status,
            submitted_by=ANALYST_ID,
            compliance_status=metrics.pop("compliance_status", ComplianceStatus.COMPLIANT),
            **metrics,
        )
        if created_at is not None:
            record.created_at = created_at
        db.add(record)
        await db.commit()
        return record

    return _make

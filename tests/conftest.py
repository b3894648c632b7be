from types import SimpleNamespace
from typing import AsyncGenerator, Dict

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from timegrid.api.v1.timetables.availability import snapshot_cache
from timegrid.auth.security import create_access_token
from timegrid.core.models import InstitutionSettings, SchoolClass, SchoolSubject, Teacher, Tenant
from timegrid.db.session import Base, get_db
from timegrid.main import app


TEST_DATABASE_URL = "sqlite+aiosqlite://"
# SQLite has no "core"/"school" schemas; map them onto the default one
SCHEMA_TRANSLATE_MAP = {"core": None, "school": None}


@pytest.fixture()
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    """Fresh in-memory DB per test; StaticPool keeps every session on the same connection."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        poolclass=StaticPool,
        execution_options={"schema_translate_map": SCHEMA_TRANSLATE_MAP},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture()
async def db_session(engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    """Provide a database session for a test and override FastAPI dependency."""
    async_session = async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session() as session:

        async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
            yield session

        app.dependency_overrides[get_db] = override_get_db
        yield session

    app.dependency_overrides.clear()


@pytest.fixture(autouse=True)
def clear_snapshot_cache():
    # The oracle cache is process-wide; previous tests must not leak snapshots
    snapshot_cache.clear()
    yield
    snapshot_cache.clear()


@pytest.fixture()
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client bound to the FastAPI app."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


async def _make_institution(db: AsyncSession, name: str) -> SimpleNamespace:
    tenant = Tenant(organization_name=name)
    db.add(tenant)
    await db.flush()

    classes = {
        label: SchoolClass(tenant_id=tenant.id, name=f"Grade 10-{label}", section=label)
        for label in ("A", "B", "C")
    }
    teachers = {
        "T1": Teacher(tenant_id=tenant.id, name="Asha Rao"),
        "T2": Teacher(tenant_id=tenant.id, name="Dev Mehta", max_periods_per_day=4),
        "T3": Teacher(tenant_id=tenant.id, name="Lena Ortiz"),
    }
    subjects = {
        "MATH": SchoolSubject(tenant_id=tenant.id, name="Mathematics", code="MATH"),
        "PHY": SchoolSubject(tenant_id=tenant.id, name="Physics", code="PHY"),
    }
    db.add_all([*classes.values(), *teachers.values(), *subjects.values()])
    await db.commit()
    return SimpleNamespace(tenant=tenant, classes=classes, teachers=teachers, subjects=subjects)


@pytest.fixture()
async def school(db_session: AsyncSession) -> SimpleNamespace:
    """One institution with classes A/B/C, teachers T1/T2(max 4)/T3 and two subjects; Mon-Fri week."""
    return await _make_institution(db_session, "Acme School")


@pytest.fixture()
async def other_school(db_session: AsyncSession) -> SimpleNamespace:
    return await _make_institution(db_session, "Other School")


@pytest.fixture()
async def six_day_school(db_session: AsyncSession, school: SimpleNamespace) -> SimpleNamespace:
    """Same institution configured for Monday-Saturday with 8 periods a day."""
    db_session.add(
        InstitutionSettings(
            tenant_id=school.tenant.id,
            institution_type="school",
            working_days=["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"],
            periods_per_day=8,
        )
    )
    await db_session.commit()
    return school


def auth_headers(tenant_id, role: str = "SCHEDULER") -> Dict[str, str]:
    token = create_access_token(
        subject={
            "sub": "5f0c6a34-8f3e-4d0e-9a55-2b1f0d7a9e11",
            "tenant_id": tenant_id,
            "role": role,
        }
    )
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def scheduler_headers(school: SimpleNamespace) -> Dict[str, str]:
    return auth_headers(school.tenant.id)


def slot(teacher: Teacher, subject: SchoolSubject, period: int) -> Dict:
    return {"period": period, "teacher_id": str(teacher.id), "subject_id": str(subject.id)}

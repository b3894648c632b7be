from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import StaticPool

from conftest import SCHEMA_TRANSLATE_MAP, TEST_DATABASE_URL
from timegrid.db.schema_check import REQUIRED_TABLES, ensure_tables


async def test_ensure_tables_creates_missing_then_is_idempotent() -> None:
    engine = create_async_engine(
        TEST_DATABASE_URL,
        poolclass=StaticPool,
        execution_options={"schema_translate_map": SCHEMA_TRANSLATE_MAP},
    )
    try:
        created = await ensure_tables(engine)
        assert created == [f"{schema}.{table}" for schema, table in REQUIRED_TABLES]
        assert await ensure_tables(engine) == []
    finally:
        await engine.dispose()

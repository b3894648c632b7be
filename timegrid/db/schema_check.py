import asyncio
from typing import Dict, List, Tuple

from sqlalchemy import inspect, text
from sqlalchemy.ext.asyncio import AsyncEngine

import timegrid.core.models  # noqa: F401  registers every table on Base.metadata
from timegrid.db.session import Base, engine


REQUIRED_TABLES: List[Tuple[str, str]] = [
    ("core", "tenants"),
    ("core", "institution_settings"),
    ("core", "classes"),
    ("school", "teachers"),
    ("school", "subjects"),
    ("school", "timetables"),
    ("school", "timetable_periods"),
]


CREATE_SCHEMA_SQL: Dict[str, str] = {
    "core": "CREATE SCHEMA IF NOT EXISTS core;",
    "school": "CREATE SCHEMA IF NOT EXISTS school;",
}


def _missing_tables(sync_conn) -> List[str]:
    inspector = inspect(sync_conn)
    translate = sync_conn.get_execution_options().get("schema_translate_map") or {}
    missing: List[str] = []
    for schema, table in REQUIRED_TABLES:
        if not inspector.has_table(table, schema=translate.get(schema, schema)):
            missing.append(f"{schema}.{table}")
    return missing


async def ensure_tables(db_engine: AsyncEngine) -> List[str]:
    """
    Ensure that the core/school schemas and every timetable table exist.
    Missing tables are created (indexes included); existing ones are left alone.
    Returns the names of the tables that were missing.
    """
    async with db_engine.begin() as conn:
        if conn.dialect.name == "postgresql":
            for ddl in CREATE_SCHEMA_SQL.values():
                await conn.execute(text(ddl))

        missing = await conn.run_sync(_missing_tables)
        if missing:
            await conn.run_sync(Base.metadata.create_all)
    return missing


async def main() -> None:
    missing = await ensure_tables(engine)
    if missing:
        print("Created missing tables: " + ", ".join(missing))
    else:
        print("All required timetable tables already exist in the database.")


if __name__ == "__main__":
    asyncio.run(main())

"""Create the integration-test database named by DATABASE_URL when it is missing."""

from __future__ import annotations

import asyncio
import re

import asyncpg
import structlog
from sqlalchemy.engine import make_url

from app.core.config import get_settings
from app.core.integration_db_safety import check_integration_database
from app.core.logging import configure_logging

logger = structlog.get_logger("ensure_test_db")

SAFE_IDENTIFIER_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


async def ensure_test_database(database_url: str) -> bool:
    """Returns True when the database had to be created."""
    check = check_integration_database(database_url)
    if not check.is_safe:
        raise RuntimeError(f"Refusing to create '{check.database_name}': " + "; ".join(check.problems))
    if SAFE_IDENTIFIER_RE.fullmatch(check.database_name) is None:
        raise RuntimeError(f"Unsupported database name '{check.database_name}'")

    url = make_url(database_url)
    conn = await asyncpg.connect(
        host=url.host or "localhost",
        port=int(url.port or 5432),
        user=url.username,
        password=url.password,
        database="postgres",
    )
    try:
        if await conn.fetchval("SELECT 1 FROM pg_database WHERE datname = $1", check.database_name):
            logger.info("test_db_exists", database=check.database_name, host=check.host)
            return False
        await conn.execute(f'CREATE DATABASE "{check.database_name}"')
        logger.info("test_db_created", database=check.database_name, host=check.host)
        return True
    finally:
        await conn.close()


def main() -> int:
    settings = get_settings()
    configure_logging(settings.log_level)
    asyncio.run(ensure_test_database(settings.database_url))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

from __future__ import annotations

from dataclasses import dataclass, field

from sqlalchemy.engine import make_url

TEST_DB_MARKER = "test"
LOCAL_DB_HOSTS = frozenset({"localhost", "127.0.0.1", "::1", "postgres", "riseup_postgres"})


@dataclass(frozen=True, slots=True)
class IntegrationDbCheck:
    database_name: str
    host: str
    problems: tuple[str, ...] = field(default_factory=tuple)

    @property
    def is_safe(self) -> bool:
        return not self.problems


def check_integration_database(database_url: str) -> IntegrationDbCheck:
    """Integration tests truncate every table, so only a local *test* Postgres qualifies."""
    url = make_url(database_url)
    database_name = (url.database or "").strip()
    host = (url.host or "").strip().lower()

    problems: list[str] = []
    if url.get_backend_name() != "postgresql":
        problems.append("only PostgreSQL is supported")
    if TEST_DB_MARKER not in database_name.lower():
        problems.append(f"database name must contain '{TEST_DB_MARKER}'")
    if host not in LOCAL_DB_HOSTS:
        problems.append(f"host '{host}' is not a local database host")
    return IntegrationDbCheck(database_name=database_name, host=host, problems=tuple(problems))


def assert_safe_integration_db(database_url: str) -> None:
    check = check_integration_database(database_url)
    if check.is_safe:
        return
    raise RuntimeError(
        f"Refusing to truncate database '{check.database_name}' on '{check.host}': "
        + "; ".join(check.problems)
    )

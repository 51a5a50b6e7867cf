import pytest
from sqlalchemy.engine import URL

from mcp_bridge.domain.exceptions import DatabaseError
from mcp_bridge.infrastructure.database.query_executor import QueryExecutor, build_database_url


class SettingsStub:
    database_url = None
    db_host = "db.internal"
    db_port = 6543
    db_name = "shop"
    db_user = "reader"
    db_password = "s3cret"
    db_pool_size = 2
    db_max_overflow = 0


def test_build_database_url_from_parts():
    url = build_database_url(SettingsStub())
    assert isinstance(url, URL)
    assert url.drivername == "postgresql+psycopg"
    assert (url.host, url.port, url.database, url.username, url.password) == (
        "db.internal",
        6543,
        "shop",
        "reader",
        "s3cret",
    )


def test_database_url_overrides_parts():
    class WithUrl(SettingsStub):
        database_url = "sqlite://"

    assert build_database_url(WithUrl()) == "sqlite://"


def test_from_settings_sqlite_has_no_pool_args():
    class WithUrl(SettingsStub):
        database_url = "sqlite://"

    executor = QueryExecutor.from_settings(WithUrl())
    assert executor.execute("SELECT 1 AS one") == [{"one": 1}]
    executor.dispose()


def test_round_trip_in_autocommit():
    executor = QueryExecutor("sqlite://")
    assert executor.execute("CREATE TABLE t (a INTEGER, b INTEGER)") == []
    assert executor.execute("INSERT INTO t (a, b) VALUES (1, 2), (3, 4)") == []
    assert executor.execute("SELECT a, b FROM t ORDER BY a") == [{"a": 1, "b": 2}, {"a": 3, "b": 4}]


def test_bound_parameters():
    executor = QueryExecutor("sqlite://")
    assert executor.execute("SELECT :value AS value", {"value": "O'Brien"}) == [{"value": "O'Brien"}]


def test_invalid_sql_raises_database_error_with_driver_message():
    executor = QueryExecutor("sqlite://")
    with pytest.raises(DatabaseError) as info:
        executor.execute("SELEC 1")
    assert info.value.code == "DATABASE_ERROR"
    assert "syntax error" in info.value.message

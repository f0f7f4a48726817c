from __future__ import annotations

from typing import Callable

import pytest
from sqlalchemy import event, text

from sqlevolutions.codec import encode_statements
from sqlevolutions.config import Config
from sqlevolutions.db import Database
from sqlevolutions.models import LoadedEvolution
from sqlevolutions.schema import bootstrap_statements

SCHEMA = "main"


def create_evolutions(amount: int, with_downs: bool = False, start_version: int = 1) -> list[LoadedEvolution]:
    evolutions = []
    for offset in range(amount):
        version = offset + start_version
        evolutions.append(
            LoadedEvolution(
                version=version,
                checksum=f"CHECKSUM_{version}",
                ups=(
                    f"INSERT INTO test (id, seq, value) VALUES ({version}, 1, 'UP_{version}')",
                    f"INSERT INTO test (id, seq, value) VALUES ({version}, 2, 'UP_{version + 1}')",
                ),
                downs=(
                    f"DELETE FROM test WHERE id = {version} AND seq = 1",
                    f"DELETE FROM test WHERE id = {version} AND seq = 2",
                )
                if with_downs
                else None,
            )
        )
    return evolutions


@pytest.fixture()
def config() -> Config:
    return Config(schema=SCHEMA)


@pytest.fixture()
def database(tmp_path):
    database = Database(f"sqlite:///{tmp_path / 'evolutions.sqlite'}")
    yield database
    database.close()


@pytest.fixture()
def queries(database) -> list[tuple[str, object]]:
    executed: list[tuple[str, object]] = []

    def record(conn, cursor, statement, parameters, context, executemany):
        executed.append((statement, parameters))

    event.listen(database.engine, "before_cursor_execute", record)
    yield executed
    event.remove(database.engine, "before_cursor_execute", record)


@pytest.fixture()
def connection(database, queries):
    with database.connect() as conn:
        with conn.begin():
            for statement in bootstrap_statements(SCHEMA, "sqlite"):
                conn.exec_driver_sql(statement)
            conn.exec_driver_sql("CREATE TABLE test (id INT, seq INT, value TEXT)")
        queries.clear()
        yield conn


@pytest.fixture()
def empty_connection(database, queries):
    with database.connect() as conn:
        with conn.begin():
            conn.exec_driver_sql("CREATE TABLE test (id INT, seq INT, value TEXT)")
        queries.clear()
        yield conn


@pytest.fixture()
def seed(connection, queries) -> Callable[..., list[LoadedEvolution]]:
    """Record evolutions as already applied, without running their ups."""

    def _seed(amount: int, with_downs: bool = False) -> list[LoadedEvolution]:
        evolutions = create_evolutions(amount, with_downs)
        with connection.begin():
            for evolution in evolutions:
                connection.execute(
                    text(
                        f"INSERT INTO {SCHEMA}.evolutions (version, checksum, ups, downs) "
                        "VALUES (:version, :checksum, :ups, :downs)"
                    ),
                    {
                        "version": evolution.version,
                        "checksum": evolution.checksum,
                        "ups": encode_statements(evolution.ups),
                        "downs": encode_statements(evolution.downs),
                    },
                )
        queries.clear()
        return evolutions

    return _seed


@pytest.fixture()
def make_evolutions() -> Callable[..., list[LoadedEvolution]]:
    return create_evolutions


@pytest.fixture()
def fetch_rows(database) -> Callable[[], list[tuple[int, int, str]]]:
    def _rows() -> list[tuple[int, int, str]]:
        with database.engine.connect() as conn:
            result = conn.exec_driver_sql("SELECT id, seq, value FROM test ORDER BY id, seq")
            return [tuple(row) for row in result]

    return _rows

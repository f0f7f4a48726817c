"""Database utilities for sqlevolutions."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Connection, Engine


class Database:
    """Lightweight wrapper around a SQLAlchemy engine."""

    def __init__(self, dsn: str) -> None:
        self.dsn = dsn
        self.engine: Engine = create_engine(dsn, future=True)
        self.dialect = self.engine.dialect.name
        self.is_postgres = self.dialect.startswith("postgres")
        if self.dialect == "sqlite":
            _enable_sqlite_transactions(self.engine)

    @contextmanager
    def connect(self) -> Iterator[Connection]:
        """Yield a connection without an open transaction.

        The evolution engine drives its own transactions on it.
        """

        with self.engine.connect() as conn:
            yield conn

    def close(self) -> None:
        self.engine.dispose()


def _enable_sqlite_transactions(engine: Engine) -> None:
    """Let SQLAlchemy emit BEGIN itself so DDL is covered by transactions.

    pysqlite only opens a transaction before DML, leaving CREATE/DROP
    statements autocommitted.
    """

    @event.listens_for(engine, "connect")
    def _disable_driver_transactions(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _emit_begin(conn):
        conn.exec_driver_sql("BEGIN")


__all__ = ["Database"]

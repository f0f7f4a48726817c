"""Bootstrap DDL for the ``evolutions`` metadata table."""

from __future__ import annotations

from .config import DEFAULT_SCHEMA

TABLE_NAME = "evolutions"
SQLITE_SCHEMA = "main"


def table_name(schema: str) -> str:
    return f"{schema}.{TABLE_NAME}"


def resolve_schema(schema: str, dialect: str) -> str:
    """Map the default schema onto the main database on SQLite."""
    if dialect == "sqlite" and schema == DEFAULT_SCHEMA:
        return SQLITE_SCHEMA
    return schema


def bootstrap_statements(schema: str, dialect: str = "postgresql") -> list[str]:
    """Return the idempotent statements creating the metadata schema and table."""

    if dialect.startswith("postgres"):
        return [
            f"CREATE SCHEMA IF NOT EXISTS {schema}",
            f"""CREATE TABLE IF NOT EXISTS {table_name(schema)} (
                version INTEGER NOT NULL,
                checksum VARCHAR(64),
                applied TIMESTAMP NOT NULL DEFAULT NOW(),
                ups JSONB,
                downs JSONB,
                PRIMARY KEY (version)
            )""",
        ]
    # SQLite has no CREATE SCHEMA; the schema is an attached database name
    return [
        f"""CREATE TABLE IF NOT EXISTS {table_name(schema)} (
            version INTEGER NOT NULL,
            checksum VARCHAR(64),
            applied TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
            ups TEXT,
            downs TEXT,
            PRIMARY KEY (version)
        )""",
    ]


__all__ = ["SQLITE_SCHEMA", "TABLE_NAME", "bootstrap_statements", "resolve_schema", "table_name"]

"""Apply and roll back evolutions against a live database.

The engine reconciles the ``evolutions`` metadata table with the desired,
ordered list of :class:`~sqlevolutions.models.LoadedEvolution`. Every script
(its ups or its downs, plus the matching bookkeeping row) runs in exactly one
transaction on the injected SQLAlchemy connection. A multi-script run is not
wrapped in an outer transaction, so a failure leaves the database at the last
fully recorded version.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Callable, Sequence

from sqlalchemy import DateTime, Integer, String, inspect, text
from sqlalchemy.engine import Connection, RowMapping
from sqlalchemy.exc import SQLAlchemyError

from .codec import decode_statements, encode_statements
from .config import Config
from .errors import DownNotAllowedError, DownRequiredError, StatementError
from .models import EvolutionRecord, EvolutionStatus, LoadedEvolution
from .schema import TABLE_NAME, bootstrap_statements, resolve_schema, table_name

BOOTSTRAP_VERSION = 0
_COLUMNS = "version, checksum, applied, ups, downs"


class EvolutionEngine:
    """Owns the metadata table and drives up/down application."""

    def __init__(
        self,
        connection: Connection,
        evolutions: Sequence[LoadedEvolution],
        config: Config | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        """Initialize the engine.

        Args:
            connection: SQLAlchemy connection with no transaction in progress
            evolutions: Desired evolutions, ordered by version
            config: Engine options (defaults to ``Config()``; the default schema
                is ``main`` on SQLite)
            logger: Logger receiving progress messages (defaults to the module logger)
        """
        self._connection = connection
        self._evolutions = tuple(evolutions)
        config = config or Config()
        self._config = replace(config, schema=resolve_schema(config.schema, connection.dialect.name))
        self.logger = logger or logging.getLogger(__name__)
        self._is_postgres = connection.dialect.name.startswith("postgres")
        self._table = table_name(self._config.schema)

    @property
    def evolutions(self) -> tuple[LoadedEvolution, ...]:
        return self._evolutions

    @property
    def config(self) -> Config:
        return self._config

    def with_logger(self, logger: logging.Logger) -> EvolutionEngine:
        """Return an engine sharing connection, evolutions and config."""
        return EvolutionEngine(self._connection, self._evolutions, self._config, logger)

    # State ----------------------------------------------------------------
    def has_schema(self) -> bool:
        """Check whether the metadata table exists in the configured schema."""
        with self._connection.begin():
            return inspect(self._connection).has_table(TABLE_NAME, schema=self._config.schema)

    def get_current(self) -> LoadedEvolution | None:
        """Return the applied evolution with the highest version, if any."""
        if not self.has_schema():
            return None
        rows = self._select(f"SELECT {_COLUMNS} FROM {self._table} ORDER BY version DESC LIMIT 1")
        if not rows:
            return None
        return self._to_record(rows[0]).to_evolution()

    def get_records(self) -> list[EvolutionRecord]:
        """Return every applied evolution ordered by version."""
        if not self.has_schema():
            return []
        rows = self._select(f"SELECT {_COLUMNS} FROM {self._table} ORDER BY version")
        return [self._to_record(row) for row in rows]

    def has_down(self) -> bool:
        """Check whether the applied head no longer matches the desired script.

        A database ahead of the desired evolutions is not considered drift:
        rolling back versions this run does not know about is left to a run
        that does.
        """
        current = self.get_current()
        if current is None:
            return False
        if current.version > len(self._evolutions):
            return False
        expected = self._evolutions[current.version - 1]
        return current.checksum != expected.checksum

    def status(self) -> EvolutionStatus:
        current = self.get_current()
        requested = self._evolutions[-1] if self._evolutions else None
        current_version = current.version if current else 0
        return EvolutionStatus(
            current_version=current_version,
            current_checksum=current.checksum if current else None,
            requested_version=len(self._evolutions),
            requested_checksum=requested.checksum if requested else None,
            has_down=self.has_down(),
            pending=max(len(self._evolutions) - current_version, 0),
        )

    # Operations -------------------------------------------------------------
    def create_schema(self) -> None:
        """Create the metadata schema and table if they do not exist."""
        statements = bootstrap_statements(self._config.schema, self._connection.dialect.name)
        self._run_script(BOOTSTRAP_VERSION, statements)

    def apply(self) -> None:
        """Bring the database to the desired evolutions.

        Raises:
            DownRequiredError: If the database drifted and neither
                ``allow_down`` nor ``ignore_down`` is set
            StatementError: If a statement fails
        """
        self.logger.info(f"Applying evolutions into {self._config.schema} schema")
        had_schema = self.has_schema()
        if not had_schema:
            self.logger.info("Creating evolutions schema")
            self.create_schema()
            self.logger.info("Schema created")

        current = self.get_current()
        requested = self._evolutions[-1] if self._evolutions else None
        self.logger.info(
            f"Current version: {current.version if current else 0} "
            f"({current.checksum if current else None})"
        )
        self.logger.info(
            f"Requested version: {len(self._evolutions)} "
            f"({requested.checksum if requested else None})"
        )

        if had_schema and self.has_down():
            if self._config.allow_down:
                self.logger.warning(
                    "!!! WARNING !!! Database has down migrations. This will DESTROY YOUR DATA!"
                )
                self.apply_down()
            elif self._config.ignore_down:
                self.logger.warning("!!! WARNING !!! Database has down migrations. Ignoring them.")
            else:
                raise DownRequiredError(
                    "Database has down migrations. For development use `allow_down` option "
                    "to apply them. NEVER USE FOR PRODUCTION!"
                )

        self.apply_up()
        after = self.get_current()
        self.logger.info(
            "Evolutions applied, database is up to date. "
            f"Version: {after.version if after else 0}, Checksum: {after.checksum if after else None}"
        )

    def apply_up(self) -> None:
        """Apply every desired evolution above the current version."""
        current = self.get_current()
        if current is None:
            self.logger.warning(f"No version in schema {self._config.schema}. Assuming no data.")
        current_version = current.version if current else 0

        for evolution in self._evolutions[current_version:]:
            self.logger.info(f"Applying up migration {evolution.version}")
            self._run_script(
                evolution.version,
                evolution.ups,
                lambda evolution=evolution: self._record_applied(evolution),
            )

    def apply_down(self) -> None:
        """Downgrade until the head matches a desired evolution."""
        current = self.get_current()
        while current is not None:
            expected = self._expected(current.version)
            if expected is not None and expected.checksum == current.checksum:
                self.logger.info("All down migrations applied")
                return
            self.downgrade(current)
            current = self.get_current()

    def downgrade(self, record: LoadedEvolution) -> None:
        """Run the recorded downs of ``record`` and delete its row."""
        self.logger.warning(f"Downgrading database to version {record.version - 1}")
        if not record.downs:
            self.logger.warning(
                f"Evolution {record.version} has no down statements, only its record is removed"
            )
        self._run_script(
            record.version,
            record.downs or (),
            lambda: self._record_dropped(record),
        )

    def down_to(self, target_version: int) -> None:
        """Downgrade unconditionally until the head is at ``target_version``.

        Raises:
            DownNotAllowedError: If ``allow_down`` is not set; nothing is executed
        """
        if not self._config.allow_down:
            raise DownNotAllowedError(
                "You must enable allow_down option to apply down migrations. "
                "NEVER USE FOR PRODUCTION!"
            )
        current = self.get_current()
        while current is not None and current.version > target_version:
            self.downgrade(current)
            current = self.get_current()

        self.logger.info(f"Downgraded database to version {current.version if current else 0}")

    # Internals --------------------------------------------------------------
    def _expected(self, version: int) -> LoadedEvolution | None:
        if 1 <= version <= len(self._evolutions):
            return self._evolutions[version - 1]
        return None

    def _run_script(
        self,
        version: int,
        statements: Sequence[str],
        bookkeeping: Callable[[], None] | None = None,
    ) -> None:
        statement: str | None = None
        try:
            with self._connection.begin():
                for statement in statements:
                    self.logger.debug(statement)
                    self._connection.exec_driver_sql(
                        statement, execution_options={"no_parameters": True}
                    )
                statement = None
                if bookkeeping is not None:
                    bookkeeping()
        except SQLAlchemyError as exc:
            self.logger.error(f"Evolution {version} failed, transaction rolled back: {exc}")
            raise StatementError(
                f"Evolution {version} failed: {exc}",
                version=version,
                statement=statement,
            ) from exc

    def _record_applied(self, evolution: LoadedEvolution) -> None:
        if self._is_postgres:
            values = ":version, :checksum, CAST(:ups AS jsonb), CAST(:downs AS jsonb)"
        else:
            values = ":version, :checksum, :ups, :downs"
        self._connection.execute(
            text(f"INSERT INTO {self._table} (version, checksum, ups, downs) VALUES ({values})"),
            {
                "version": evolution.version,
                "checksum": evolution.checksum,
                "ups": encode_statements(evolution.ups),
                "downs": encode_statements(evolution.downs),
            },
        )

    def _record_dropped(self, evolution: LoadedEvolution) -> None:
        self._connection.execute(
            text(f"DELETE FROM {self._table} WHERE version = :version"),
            {"version": evolution.version},
        )

    def _select(self, sql: str) -> list[RowMapping]:
        statement = text(sql).columns(
            version=Integer, checksum=String, applied=DateTime
        )
        with self._connection.begin():
            return list(self._connection.execute(statement).mappings())

    @staticmethod
    def _to_record(row: RowMapping) -> EvolutionRecord:
        return EvolutionRecord(
            version=row["version"],
            checksum=row["checksum"],
            applied=row["applied"],
            ups=decode_statements(row["ups"]) or (),
            downs=decode_statements(row["downs"]),
        )


__all__ = ["EvolutionEngine"]

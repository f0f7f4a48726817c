"""Domain models shared by the parser, loader and engine."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Sequence

EvolutionExpression = str


def _as_tuple(statements: Sequence[str] | None) -> tuple[str, ...] | None:
    if statements is None:
        return None
    return tuple(statements)


@dataclass(frozen=True, slots=True)
class Evolution:
    """One script's intent: ordered ups and optional ordered downs."""

    ups: tuple[EvolutionExpression, ...]
    downs: tuple[EvolutionExpression, ...] | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "ups", tuple(self.ups))
        object.__setattr__(self, "downs", _as_tuple(self.downs))


@dataclass(frozen=True, slots=True)
class LoadedEvolution:
    """An evolution placed in the total ordering."""

    version: int
    checksum: str
    ups: tuple[EvolutionExpression, ...]
    downs: tuple[EvolutionExpression, ...] | None = None

    def __post_init__(self) -> None:
        if self.version < 1:
            msg = "version must be >= 1"
            raise ValueError(msg)
        object.__setattr__(self, "ups", tuple(self.ups))
        object.__setattr__(self, "downs", _as_tuple(self.downs))


@dataclass(frozen=True, slots=True)
class EvolutionRecord:
    """A row of the ``evolutions`` metadata table."""

    version: int
    checksum: str
    applied: datetime | None
    ups: tuple[EvolutionExpression, ...]
    downs: tuple[EvolutionExpression, ...] | None = None

    def to_evolution(self) -> LoadedEvolution:
        return LoadedEvolution(
            version=self.version,
            checksum=self.checksum,
            ups=self.ups,
            downs=self.downs,
        )


@dataclass(frozen=True, slots=True)
class EvolutionStatus:
    """Snapshot comparing the database state with the desired evolutions."""

    current_version: int
    current_checksum: str | None
    requested_version: int
    requested_checksum: str | None
    has_down: bool
    pending: int

    @property
    def up_to_date(self) -> bool:
        return not self.has_down and self.pending == 0


__all__ = [
    "Evolution",
    "EvolutionExpression",
    "EvolutionRecord",
    "EvolutionStatus",
    "LoadedEvolution",
]

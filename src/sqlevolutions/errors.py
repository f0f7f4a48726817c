"""Exceptions raised while loading and applying evolutions."""

from __future__ import annotations


class EvolutionError(RuntimeError):
    """Base class for every failure surfaced by sqlevolutions."""


class StreamError(EvolutionError):
    """Raised when a script cannot be read."""

    def __init__(self, message: str, path: str | None = None) -> None:
        super().__init__(message)
        self.path = path


class DownRequiredError(EvolutionError):
    """Raised when the database drifted and no down policy was chosen."""


class DownNotAllowedError(EvolutionError):
    """Raised when a rollback is requested without ``allow_down``."""


class StatementError(EvolutionError):
    """Raised after a statement failed and its transaction was rolled back."""

    def __init__(self, message: str, *, version: int, statement: str | None = None) -> None:
        super().__init__(message)
        self.version = version
        self.statement = statement


__all__ = [
    "DownNotAllowedError",
    "DownRequiredError",
    "EvolutionError",
    "StatementError",
    "StreamError",
]

"""Turn parsed scripts into versioned evolutions and build engines."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Sequence

from sqlalchemy.engine import Connection

from .checksum import generate_checksum
from .config import Config
from .engine import EvolutionEngine
from .models import Evolution, LoadedEvolution
from .parser import parse_files


def load_evolutions(raws: Sequence[Evolution]) -> list[LoadedEvolution]:
    """Assign 1-based versions and checksums, preserving order."""

    return [
        LoadedEvolution(
            version=index + 1,
            checksum=generate_checksum(raw.ups),
            ups=raw.ups,
            downs=raw.downs,
        )
        for index, raw in enumerate(raws)
    ]


def load(
    raws: Sequence[Evolution],
    connection: Connection,
    config: Config | None = None,
    logger: logging.Logger | None = None,
) -> EvolutionEngine:
    return EvolutionEngine(connection, load_evolutions(raws), config, logger)


def load_from_files(
    files_or_folder: str | Path | Sequence[str | Path],
    connection: Connection,
    config: Config | None = None,
    logger: logging.Logger | None = None,
) -> EvolutionEngine:
    """Parse the ``.sql`` scripts of a folder or file list and build an engine."""

    return load(parse_files(files_or_folder), connection, config, logger)


__all__ = ["load", "load_evolutions", "load_from_files"]

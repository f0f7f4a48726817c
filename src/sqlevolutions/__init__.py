"""sqlevolutions package exports."""

from .checksum import generate_checksum
from .config import Config, get_settings
from .db import Database
from .engine import EvolutionEngine
from .errors import (
    DownNotAllowedError,
    DownRequiredError,
    EvolutionError,
    StatementError,
    StreamError,
)
from .loader import load, load_evolutions, load_from_files
from .models import Evolution, EvolutionRecord, EvolutionStatus, LoadedEvolution
from .parser import parse_files, parse_sql_file

__all__ = [
    "Config",
    "Database",
    "DownNotAllowedError",
    "DownRequiredError",
    "Evolution",
    "EvolutionEngine",
    "EvolutionError",
    "EvolutionRecord",
    "EvolutionStatus",
    "LoadedEvolution",
    "StatementError",
    "StreamError",
    "generate_checksum",
    "get_settings",
    "load",
    "load_evolutions",
    "load_from_files",
    "parse_files",
    "parse_sql_file",
]

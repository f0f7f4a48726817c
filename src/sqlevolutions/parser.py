"""Parse SQL evolution scripts into up and down statement lists."""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Iterable, Sequence

from .errors import StreamError
from .models import Evolution

DOWN_DIRECTIVE = "-- DOWN --"
BLOCK_START_DIRECTIVE = "-- BLOCK --"
BLOCK_END_DIRECTIVE = "-- BLOCK END --"
COMMENT_PREFIX = "--"
SCRIPT_SUFFIX = ".sql"


class LineKind(Enum):
    BLANK = "blank"
    DOWN = "down"
    BLOCK_START = "block_start"
    BLOCK_END = "block_end"
    COMMENT = "comment"
    CONTENT = "content"


def classify_line(trimmed: str) -> LineKind:
    """Tokenize an already stripped line."""

    if not trimmed:
        return LineKind.BLANK
    if trimmed == DOWN_DIRECTIVE:
        return LineKind.DOWN
    if trimmed == BLOCK_START_DIRECTIVE:
        return LineKind.BLOCK_START
    if trimmed == BLOCK_END_DIRECTIVE:
        return LineKind.BLOCK_END
    if trimmed.startswith(COMMENT_PREFIX):
        return LineKind.COMMENT
    return LineKind.CONTENT


def parse_sql_file(lines: Iterable[str], *, source: str | None = None) -> Evolution:
    """Split a script into statements.

    Statements end with a line terminated by ``;`` unless they sit between
    ``-- BLOCK --`` and ``-- BLOCK END --``, in which case the whole region is
    a single statement. Everything after ``-- DOWN --`` goes to the downs.
    """

    ups: list[str] = []
    downs: list[str] = []
    target = ups
    buffer: list[str] = []
    in_block = False

    def flush() -> None:
        statement = "\n".join(buffer).strip()
        buffer.clear()
        if statement:
            target.append(statement)

    try:
        for line in lines:
            trimmed = line.strip()
            kind = classify_line(trimmed)
            if kind is LineKind.BLANK:
                continue
            if kind is LineKind.DOWN:
                target = downs
            elif kind is LineKind.BLOCK_START:
                in_block = True
            elif kind is LineKind.BLOCK_END and in_block:
                flush()
                in_block = False
            elif kind is LineKind.CONTENT:
                buffer.append(trimmed)
                if not in_block and trimmed.endswith(";"):
                    flush()
            # comments, and BLOCK END outside of a block, are dropped
    except (OSError, UnicodeDecodeError) as exc:
        msg = f"Unable to read evolution script {source or '<stream>'}: {exc}"
        raise StreamError(msg, path=source) from exc

    flush()
    return Evolution(ups=tuple(ups), downs=tuple(downs) if downs else None)


def list_scripts(files_or_folder: str | Path | Sequence[str | Path]) -> list[Path]:
    """Return the ``.sql`` scripts in version order."""

    if isinstance(files_or_folder, (str, Path)):
        folder = Path(files_or_folder)
        try:
            candidates = [entry for entry in folder.iterdir() if entry.is_file()]
        except OSError as exc:
            msg = f"Unable to list evolution folder {folder}: {exc}"
            raise StreamError(msg, path=str(folder)) from exc
    else:
        candidates = [Path(entry) for entry in files_or_folder]
    scripts = [path for path in candidates if path.name.endswith(SCRIPT_SUFFIX)]
    return sorted(scripts, key=str)


def parse_files(files_or_folder: str | Path | Sequence[str | Path]) -> list[Evolution]:
    """Parse every script of a folder (or an explicit file list) in order."""

    evolutions: list[Evolution] = []
    for path in list_scripts(files_or_folder):
        try:
            with path.open(encoding="utf-8") as handle:
                evolutions.append(parse_sql_file(handle, source=str(path)))
        except OSError as exc:
            msg = f"Unable to open evolution script {path}: {exc}"
            raise StreamError(msg, path=str(path)) from exc
    return evolutions


__all__ = [
    "LineKind",
    "classify_line",
    "list_scripts",
    "parse_files",
    "parse_sql_file",
]

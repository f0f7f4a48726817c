"""Storage format for statement lists in the ``ups``/``downs`` columns.

Statements are stored as a JSON array of strings. PostgreSQL keeps them in a
``JSONB`` column, in which case the driver already hands back a list; SQLite
keeps the JSON text.
"""

from __future__ import annotations

import json
from typing import Sequence


def encode_statements(statements: Sequence[str] | None) -> str | None:
    """Serialize ``statements``; ``None`` maps to SQL ``NULL``."""

    if statements is None:
        return None
    return json.dumps(list(statements))


def decode_statements(value: object) -> tuple[str, ...] | None:
    """Inverse of :func:`encode_statements`."""

    if value is None:
        return None
    if isinstance(value, (bytes, bytearray)):
        value = value.decode("utf-8")
    if isinstance(value, str):
        value = json.loads(value)
    if value is None:
        return None
    if not isinstance(value, (list, tuple)):
        msg = f"Expected a list of statements, got {type(value).__name__}"
        raise ValueError(msg)
    if not all(isinstance(item, str) for item in value):
        msg = "Every stored statement must be a string"
        raise ValueError(msg)
    return tuple(value)


__all__ = ["decode_statements", "encode_statements"]

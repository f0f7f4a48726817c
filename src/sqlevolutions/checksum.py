"""Checksums identifying the up statements of an evolution."""

from __future__ import annotations

import hashlib
from typing import Iterable

SEPARATOR = "; "


def generate_checksum(statements: Iterable[str]) -> str:
    """Return the SHA-1 hex digest of the stripped, non-blank statements."""

    parts = (statement.strip() for statement in statements)
    joined = SEPARATOR.join(part for part in parts if part)
    return hashlib.sha1(joined.encode("utf-8")).hexdigest()


__all__ = ["generate_checksum"]

"""Utility helpers for string normalization and Typst quoting."""

from __future__ import annotations

import re

SLUG_PATTERN = re.compile(r"[^a-z0-9]+")


def slugify(value: str, fallback: str = "ebook") -> str:
    """Generate a filesystem-friendly slug using ASCII characters only."""
    normalized = value.encode("ascii", "ignore").decode("ascii")
    normalized = normalized.lower()
    normalized = SLUG_PATTERN.sub("-", normalized).strip("-")
    return normalized or fallback


def typst_string(value: str) -> str:
    """Escape a value for use inside a double-quoted Typst string literal."""
    return value.replace("\\", "\\\\").replace('"', '\\"')

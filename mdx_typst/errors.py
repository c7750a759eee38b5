"""Exceptions raised by the export pipeline."""

from __future__ import annotations

from typing import Optional


class ExportError(Exception):
    """Base class for failures that abort a conversion."""


class ExtractionError(ExportError):
    """An embedded image reference could not be decoded."""

    def __init__(self, message: str, position: Optional[int] = None) -> None:
        super().__init__(message)
        self.position = position


class ArchiveError(ExportError):
    """The archive could not be assembled or serialized."""

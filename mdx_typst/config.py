"""Configuration objects and constants for the exporter."""

from __future__ import annotations

import os
import zipfile
from dataclasses import dataclass

from .models import DocumentMetadata

DEFAULT_TITLE = "Exported Ebook"
DEFAULT_AUTHOR = "Gemini Editor"
DEFAULT_ARCHIVE_NAME = "ebook_typst.zip"


@dataclass
class ExportConfig:
    """Settings that control how the Typst project archive is produced."""

    title: str = DEFAULT_TITLE
    author: str = DEFAULT_AUTHOR
    main_filename: str = "main.typ"
    template_filename: str = "template.typ"
    figure_width: str = "100%"
    compression: int = zipfile.ZIP_DEFLATED
    max_workers: int = 1

    @classmethod
    def from_env(cls, **overrides) -> "ExportConfig":
        """Build a config, letting MDX_TYPST_TITLE / MDX_TYPST_AUTHOR replace the defaults."""
        values = {}
        title = os.getenv("MDX_TYPST_TITLE")
        if title:
            values["title"] = title
        author = os.getenv("MDX_TYPST_AUTHOR")
        if author:
            values["author"] = author
        values.update({key: value for key, value in overrides.items() if value is not None})
        return cls(**values)

    @property
    def metadata(self) -> DocumentMetadata:
        return DocumentMetadata(title=self.title, author=self.author)

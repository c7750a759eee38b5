"""Data models used throughout the export pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

IMAGE_DIR = "images"


@dataclass
class DocumentMetadata:
    """Metadata passed to the Typst template."""

    title: str
    author: str


@dataclass
class ImageReference:
    """Raw image reference discovered while scanning the document."""

    start: int
    end: int
    caption: str
    source: str

    @property
    def is_data_uri(self) -> bool:
        return self.source.startswith("data:image")


@dataclass
class ImageAsset:
    """Decoded image payload extracted from an inline data URI."""

    index: int
    data: bytes
    extension: str = "png"
    caption: str = ""

    @property
    def filename(self) -> str:
        return f"img_{self.index}.{self.extension}"

    @property
    def relative_path(self) -> str:
        return f"{IMAGE_DIR}/{self.filename}"


@dataclass
class Rewrite:
    """Replacement for one image reference, paired with its asset if any."""

    start: int
    end: int
    replacement: str
    asset: Optional[ImageAsset] = None


@dataclass
class ExtractionResult:
    """Document text with image references rewritten, plus extracted assets."""

    text: str
    assets: List[ImageAsset] = field(default_factory=list)
    figure_count: int = 0


@dataclass
class ArchiveEntry:
    """A single named file inside the exported archive."""

    path: str
    content: bytes


@dataclass
class ExportResult:
    """Outcome of a full markdown to Typst archive conversion."""

    archive: bytes
    main_document: str
    assets: List[ImageAsset]
    figure_count: int
    total_seconds: float

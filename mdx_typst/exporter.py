"""High-level orchestration for converting Markdown into a Typst project archive."""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Optional

from .archive import build_entries, package_entries
from .config import ExportConfig
from .images import extract_images
from .markup import convert_markup
from .models import ExportResult

logger = logging.getLogger("mdx_typst")


def convert_document(markdown: str, config: Optional[ExportConfig] = None) -> ExportResult:
    """Run extraction, markup conversion and packaging on one document.

    Raises ``ExtractionError`` or ``ArchiveError``; nothing is returned for a
    failed conversion.
    """
    config = config or ExportConfig()
    start = time.perf_counter()

    extraction = extract_images(markdown, config.figure_width, config.max_workers)
    body = convert_markup(extraction.text)
    entries = build_entries(body, extraction.assets, config)
    archive = package_entries(entries, config.compression)

    total_elapsed = time.perf_counter() - start
    logger.info(
        "Converted document in %.3fs (%d figure%s, %d embedded image%s, %d bytes)",
        total_elapsed,
        extraction.figure_count,
        "s" if extraction.figure_count != 1 else "",
        len(extraction.assets),
        "s" if len(extraction.assets) != 1 else "",
        len(archive),
    )
    return ExportResult(
        archive=archive,
        main_document=entries[0].content.decode("utf-8"),
        assets=extraction.assets,
        figure_count=extraction.figure_count,
        total_seconds=total_elapsed,
    )


def generate_typst_zip(markdown: str, config: Optional[ExportConfig] = None) -> bytes:
    """Return only the archive bytes for a document."""
    return convert_document(markdown, config).archive


def write_archive(result: ExportResult, output_path: Path) -> Path:
    """Persist an exported archive, creating parent directories as needed."""
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_bytes(result.archive)
    logger.info("Saved Typst project to %s", output_path)
    return output_path

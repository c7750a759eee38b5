"""Zip packaging for the exported Typst project."""

from __future__ import annotations

import io
import logging
import zipfile
from typing import List, Optional, Sequence, Set

from .config import ExportConfig
from .errors import ArchiveError
from .models import ArchiveEntry, ImageAsset
from .template import TYPST_TEMPLATE, compose_main_document

logger = logging.getLogger("mdx_typst")


class ArchiveBuilder:
    """Collect archive entries in memory and serialize them in one step.

    Use as a context manager: unless ``finalize`` ran inside the block, the
    partially written buffer is dropped on exit and ``finalize`` can no
    longer be called.
    """

    def __init__(self, compression: int = zipfile.ZIP_DEFLATED) -> None:
        self.compression = compression
        self._buffer: Optional[io.BytesIO] = None
        self._zip: Optional[zipfile.ZipFile] = None
        self._paths: Set[str] = set()

    def __enter__(self) -> "ArchiveBuilder":
        self._buffer = io.BytesIO()
        try:
            self._zip = zipfile.ZipFile(self._buffer, "w", compression=self.compression)
        except (RuntimeError, ValueError) as exc:
            self._discard()
            raise ArchiveError(f"Unable to open archive: {exc}") from exc
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if exc_type is not None or self._zip is not None:
            self._discard()

    @property
    def paths(self) -> List[str]:
        return sorted(self._paths)

    def add(self, path: str, content: bytes) -> None:
        """Add one file to the archive; paths must be unique."""
        if self._zip is None:
            raise ArchiveError("Archive builder is not open")
        if path in self._paths:
            raise ArchiveError(f"Duplicate archive entry: {path}")
        try:
            self._zip.writestr(path, content)
        except (OSError, MemoryError, ValueError, zipfile.LargeZipFile) as exc:
            raise ArchiveError(f"Failed to write {path}: {exc}") from exc
        self._paths.add(path)

    def finalize(self) -> bytes:
        """Close the archive and return its bytes."""
        if self._zip is None or self._buffer is None:
            raise ArchiveError("Archive builder is not open")
        try:
            self._zip.close()
            blob = self._buffer.getvalue()
        except (OSError, MemoryError, ValueError) as exc:
            raise ArchiveError(f"Failed to serialize archive: {exc}") from exc
        finally:
            self._zip = None
            self._buffer = None
        return blob

    def _discard(self) -> None:
        if self._zip is not None:
            try:
                self._zip.close()
            except (OSError, ValueError):
                logger.debug("Ignoring error while discarding archive", exc_info=True)
        self._zip = None
        self._buffer = None
        self._paths.clear()


def build_entries(
    body: str,
    assets: Sequence[ImageAsset],
    config: ExportConfig,
) -> List[ArchiveEntry]:
    """List the files of the Typst project: main document, template, images."""
    main_document = compose_main_document(body, config.metadata, config.template_filename)
    entries = [
        ArchiveEntry(path=config.main_filename, content=main_document.encode("utf-8")),
        ArchiveEntry(path=config.template_filename, content=TYPST_TEMPLATE.encode("utf-8")),
    ]
    entries.extend(ArchiveEntry(path=asset.relative_path, content=asset.data) for asset in assets)
    return entries


def package_entries(entries: Sequence[ArchiveEntry], compression: int = zipfile.ZIP_DEFLATED) -> bytes:
    """Serialize entries into a single zip blob, all or nothing."""
    with ArchiveBuilder(compression) as builder:
        for entry in entries:
            builder.add(entry.path, entry.content)
        blob = builder.finalize()
    logger.debug("Assembled archive with %d entries (%d bytes)", len(entries), len(blob))
    return blob


def assemble_archive(
    body: str,
    assets: Sequence[ImageAsset],
    config: Optional[ExportConfig] = None,
) -> bytes:
    """Package the main document, template and images into a zip blob."""
    config = config or ExportConfig()
    return package_entries(build_entries(body, assets, config), config.compression)


def read_archive(blob: bytes) -> List[ArchiveEntry]:
    """Read back every entry of an exported archive."""
    try:
        with zipfile.ZipFile(io.BytesIO(blob)) as archive:
            return [
                ArchiveEntry(path=info.filename, content=archive.read(info.filename))
                for info in archive.infolist()
            ]
    except zipfile.BadZipFile as exc:
        raise ArchiveError(f"Not a valid archive: {exc}") from exc

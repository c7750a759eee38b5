"""Embedded image extraction and validation utilities."""

from __future__ import annotations

import base64
import binascii
import logging
import re
from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional, Tuple
from urllib.parse import unquote_to_bytes

from filetype import guess

from .errors import ExtractionError
from .models import ExtractionResult, ImageAsset, ImageReference, Rewrite
from .utils import typst_string

logger = logging.getLogger("mdx_typst")

IMAGE_PATTERN = re.compile(r"!\[(.*?)\]\((.*?)\)")
DEFAULT_EXTENSION = "png"
MIME_EXTENSIONS = {
    "image/jpeg": "jpg",
    "image/webp": "webp",
    "image/png": "png",
}


def detect_image_format(data: bytes) -> Optional[str]:
    """Detect image type using filetype; returns lowercase extension."""
    kind = guess(data)
    if kind and kind.mime.startswith("image/"):
        ext = kind.extension.lower()
        if ext == "jpeg":
            return "jpg"
        return ext
    return None


def extension_for_mime(prefix: str) -> str:
    """Map the metadata part of a data URI to one of png, jpg or webp."""
    mime = prefix.split(":", 1)[-1].split(";")[0].strip().lower()
    extension = MIME_EXTENSIONS.get(mime)
    if extension is None:
        logger.warning(
            "Unsupported image type %r; storing as .%s", mime or prefix, DEFAULT_EXTENSION
        )
        return DEFAULT_EXTENSION
    return extension


def split_data_uri(source: str, position: Optional[int] = None) -> Tuple[str, str]:
    """Separate ``data:<mime>;base64`` from the payload at the first comma."""
    prefix, separator, payload = source.partition(",")
    if not separator:
        raise ExtractionError(
            f"Malformed data URI (missing ',' separator): {source[:40]}",
            position=position,
        )
    return prefix, payload


def decode_payload(prefix: str, payload: str, position: Optional[int] = None) -> bytes:
    """Decode a data URI payload, base64 or percent-encoded."""
    if not prefix.lower().endswith(";base64"):
        return unquote_to_bytes(payload)
    compact = "".join(payload.split())
    compact += "=" * (-len(compact) % 4)
    try:
        return base64.b64decode(compact, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ExtractionError(
            f"Data URI payload is not valid base64: {exc}", position=position
        ) from exc


def figure_markup(path: str, caption: str, width: str = "100%") -> str:
    """Render a Typst figure block for an image path."""
    return f'#figure(image("{typst_string(path)}", width: {width}), caption: [{caption}])'


def scan_image_references(document: str) -> List[ImageReference]:
    """Find every ``![caption](source)`` occurrence in document order."""
    return [
        ImageReference(
            start=match.start(),
            end=match.end(),
            caption=match.group(1),
            source=match.group(2),
        )
        for match in IMAGE_PATTERN.finditer(document)
    ]


def _build_asset(item: Tuple[ImageReference, Optional[int]]) -> Optional[ImageAsset]:
    reference, index = item
    if index is None:
        return None
    prefix, payload = split_data_uri(reference.source, reference.start)
    extension = extension_for_mime(prefix)
    data = decode_payload(prefix, payload, reference.start)

    detected = detect_image_format(data)
    if detected and detected != extension:
        logger.warning(
            "Image %d declares .%s but its contents look like .%s",
            index,
            extension,
            detected,
        )
    return ImageAsset(index=index, data=data, extension=extension, caption=reference.caption)


def plan_rewrites(
    references: List[ImageReference],
    figure_width: str = "100%",
    max_workers: int = 1,
) -> List[Rewrite]:
    """Pair every reference with its replacement text and decoded asset.

    Indices are handed out while walking the references in document order,
    before any payload is decoded, so threaded decoding cannot reorder them.
    External URLs keep their source and consume no index.
    """
    indexed: List[Tuple[ImageReference, Optional[int]]] = []
    next_index = 0
    for reference in references:
        if reference.is_data_uri:
            indexed.append((reference, next_index))
            next_index += 1
        else:
            indexed.append((reference, None))

    if max_workers > 1 and next_index > 1:
        logger.debug("Decoding %d image(s) with %d workers", next_index, max_workers)
        with ThreadPoolExecutor(max_workers=max_workers) as pool:
            assets = list(pool.map(_build_asset, indexed))
    else:
        assets = [_build_asset(item) for item in indexed]

    rewrites: List[Rewrite] = []
    for reference, asset in zip(references, assets):
        target = asset.relative_path if asset else reference.source
        rewrites.append(
            Rewrite(
                start=reference.start,
                end=reference.end,
                replacement=figure_markup(target, reference.caption, figure_width),
                asset=asset,
            )
        )
    return rewrites


def extract_images(
    document: str,
    figure_width: str = "100%",
    max_workers: int = 1,
) -> ExtractionResult:
    """Rewrite image references into Typst figures and collect embedded assets."""
    references = scan_image_references(document)
    if not references:
        return ExtractionResult(text=document)

    rewrites = plan_rewrites(references, figure_width, max_workers)

    pieces: List[str] = []
    assets: List[ImageAsset] = []
    cursor = 0
    for rewrite in rewrites:
        pieces.append(document[cursor : rewrite.start])
        pieces.append(rewrite.replacement)
        cursor = rewrite.end
        if rewrite.asset is not None:
            assets.append(rewrite.asset)
            logger.debug(
                "Extracted %s (%d bytes)", rewrite.asset.relative_path, len(rewrite.asset.data)
            )
    pieces.append(document[cursor:])

    return ExtractionResult(text="".join(pieces), assets=assets, figure_count=len(rewrites))

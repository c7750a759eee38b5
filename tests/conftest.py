"""Shared test fixtures for the Typst exporter."""

import io
import zipfile

import pytest

# 1x1 transparent PNG.
PNG_BASE64 = (
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAQAAAC1HAwCAAAAC0lEQVR42mP8/x8AAwMCAO+lmFoAAAAASUVORK5CYII="
)


@pytest.fixture
def png_data_uri():
    return f"data:image/png;base64,{PNG_BASE64}"


@pytest.fixture
def sample_document():
    return "# Title\n\nSome **bold** and *italic* text.\n\n![pic](data:image/jpeg;base64,QUJD)\n"


@pytest.fixture
def mixed_document(png_data_uri):
    """Two embedded images around one external image."""
    return (
        "# Gallery\n"
        "\n"
        "![first](data:image/jpeg;base64,QUJD)\n"
        "\n"
        "![remote](https://picsum.photos/800/400)\n"
        "\n"
        f"![second]({png_data_uri})\n"
    )


@pytest.fixture
def open_zip():
    """Open archive bytes as a ZipFile for assertions."""

    def _open(blob):
        return zipfile.ZipFile(io.BytesIO(blob))

    return _open

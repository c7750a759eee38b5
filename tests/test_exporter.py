"""End-to-end tests for Markdown to Typst archive conversion."""

import zipfile
from unittest.mock import patch

import pytest

from mdx_typst.config import ExportConfig
from mdx_typst.errors import ArchiveError, ExtractionError
from mdx_typst.exporter import convert_document, generate_typst_zip, write_archive


def _image_names(zf):
    return [name for name in zf.namelist() if name.startswith("images/")]


class TestConvertDocument:
    def test_sample_document(self, sample_document, open_zip):
        result = convert_document(sample_document)

        with open_zip(result.archive) as zf:
            assert sorted(zf.namelist()) == ["images/img_0.jpg", "main.typ", "template.typ"]
            assert zf.read("images/img_0.jpg") == b"ABC"
            main = zf.read("main.typ").decode("utf-8")

        assert main == result.main_document
        assert "= Title" in main
        assert "*bold*" in main
        assert "_italic_" in main
        assert '#figure(image("images/img_0.jpg", width: 100%), caption: [pic])' in main
        assert "**" not in main

    def test_embedded_and_external_counts(self, mixed_document, open_zip):
        result = convert_document(mixed_document)

        with open_zip(result.archive) as zf:
            assert _image_names(zf) == ["images/img_0.jpg", "images/img_1.png"]
            main = zf.read("main.typ").decode("utf-8")
        assert main.count("#figure(") == 3
        assert result.figure_count == 3
        assert len(result.assets) == 2

    def test_only_external_images(self, open_zip):
        document = "![a](https://example.com/a.png)\n![b](https://example.com/b.png)\n"
        with open_zip(generate_typst_zip(document)) as zf:
            assert _image_names(zf) == []
            assert zf.read("main.typ").decode("utf-8").count("#figure(") == 2

    def test_external_url_kept_verbatim(self):
        result = convert_document("![a](https://x.com/a*b*c.png)\n")
        assert (
            '#figure(image("https://x.com/a*b*c.png", width: 100%), caption: [a])'
            in result.main_document
        )

    def test_appearance_order_not_mime_order(self, open_zip):
        document = (
            "![w](data:image/jpeg;base64,QUJD)\n\ntext\n\n![x](data:image/webp;base64,REVG)\n"
        )
        with open_zip(generate_typst_zip(document)) as zf:
            assert _image_names(zf) == ["images/img_0.jpg", "images/img_1.webp"]
            assert zf.read("images/img_1.webp") == b"DEF"

    def test_malformed_data_uri_fails_conversion(self):
        document = "# Broken\n\n![x](data:image/png;base64QUJD)\n"
        with pytest.raises(ExtractionError):
            convert_document(document)

    def test_template_identical_across_documents(self, sample_document, mixed_document, open_zip):
        with open_zip(generate_typst_zip(sample_document)) as first:
            template_a = first.read("template.typ")
        with open_zip(generate_typst_zip(mixed_document)) as second:
            template_b = second.read("template.typ")
        assert template_a == template_b

    def test_metadata_from_config(self):
        result = convert_document("body", ExportConfig(title="Aethelgard", author="Elara"))
        assert 'title: "Aethelgard",' in result.main_document
        assert 'author: "Elara",' in result.main_document

    def test_default_metadata(self):
        result = convert_document("body")
        assert 'title: "Exported Ebook",' in result.main_document
        assert 'author: "Gemini Editor",' in result.main_document

    def test_threaded_matches_sequential(self, mixed_document):
        sequential = convert_document(mixed_document)
        threaded = convert_document(mixed_document, ExportConfig(max_workers=4))
        assert threaded.main_document == sequential.main_document
        assert [a.filename for a in threaded.assets] == [a.filename for a in sequential.assets]

    def test_archive_failure_propagates(self, sample_document):
        with patch.object(zipfile.ZipFile, "writestr", side_effect=MemoryError()):
            with pytest.raises(ArchiveError):
                convert_document(sample_document)


class TestWriteArchive:
    def test_creates_parent_directories(self, tmp_path, sample_document):
        result = convert_document(sample_document)
        target = tmp_path / "exports" / "book.zip"
        assert write_archive(result, target) == target
        assert target.read_bytes() == result.archive

# tests/core/test_recompressor.py
"""
Tests pour le module core.recompressor.
"""

import os
import zipfile
from unittest.mock import MagicMock

import pytest

from epub_album.core.epub.builder import PackageBuilder
from epub_album.core.epub.extractor import ImageExtractor
from epub_album.core.errors import ImageConversionFailed, InvalidPackageStructure, NoImagesFound
from epub_album.core.models import (
    CompressionFormat,
    CompressionSettings,
    ImageList,
)
from epub_album.core.recompressor import Recompressor, replace_filename, update_media_type


@pytest.fixture
def five_image_epub(tmp_path, make_image, sample_metadata):
    """EPUB de cinq images dont la troisième est corrompue."""
    src = tmp_path / "five"
    paths = []
    for i in range(5):
        path = src / f"img{i}.png"
        if i == 2:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(b"this is not a png")
        else:
            make_image(path, color=(40 * i, 100, 200))
        paths.append(path)
    destination = tmp_path / "five.epub"
    PackageBuilder().build(ImageList(paths).as_list(), sample_metadata, destination)
    return destination


def _read(epub, name):
    with zipfile.ZipFile(epub) as zf:
        return zf.read(name).decode("utf-8")


class TestRecompress:
    """Tests pour Recompressor.recompress."""

    def test_one_corrupt_among_five(self, five_image_epub, tmp_path):
        """Test une image corrompue conservée, les quatre autres converties."""
        destination = tmp_path / "small.epub"
        report = Recompressor().recompress(five_image_epub, CompressionSettings(), destination)

        assert len(report.converted) == 4
        assert [o.path for o in report.skipped] == ["OEBPS/Images/image003.png"]
        assert report.skipped[0].reason

        with zipfile.ZipFile(destination) as zf:
            names = zf.namelist()
            assert zf.infolist()[0].filename == "mimetype"
            assert zf.read("OEBPS/Images/image003.png") == b"this is not a png"
        assert "OEBPS/Images/cover-image.jpg" in names
        assert "OEBPS/Images/image002.jpg" in names
        assert "OEBPS/Images/cover-image.png" not in names
        assert not any(name.endswith(".part") for name in names)

    def test_references_updated(self, five_image_epub, tmp_path):
        """Test l'OPF et les pages XHTML suivent le changement d'extension."""
        destination = tmp_path / "small.epub"
        Recompressor().recompress(five_image_epub, CompressionSettings(), destination)

        opf = _read(destination, "OEBPS/content.opf")
        assert 'href="Images/cover-image.jpg" media-type="image/jpeg"' in opf
        assert 'href="Images/image003.png" media-type="image/png"' in opf
        assert "cover-image.png" not in opf
        page = _read(destination, "OEBPS/Text/page002.xhtml")
        assert 'src="../Images/image002.jpg"' in page

    def test_result_still_extractable(self, five_image_epub, tmp_path):
        """Test le paquet recompressé reste lisible par l'extracteur."""
        destination = tmp_path / "small.epub"
        Recompressor().recompress(five_image_epub, CompressionSettings(quality=0.3), destination)

        written = ImageExtractor().extract(destination, tmp_path / "pages")
        assert [p.suffix for p in written] == [".jpg", ".jpg", ".png", ".jpg", ".jpg"]

    def test_webp(self, built_epub, tmp_path):
        """Test conversion en WebP."""
        destination = tmp_path / "webp.epub"
        settings = CompressionSettings(quality=0.5, format=CompressionFormat.WEBP)
        report = Recompressor().recompress(built_epub, settings, destination)

        assert report.fully_converted
        opf = _read(destination, "OEBPS/content.opf")
        assert 'href="Images/cover-image.webp" media-type="image/webp"' in opf

    def test_no_images(self, tmp_path):
        """Test archive sans aucune image."""
        epub = tmp_path / "empty.epub"
        with zipfile.ZipFile(epub, "w") as zf:
            zf.writestr("mimetype", "application/epub+zip")
            zf.writestr("OEBPS/content.opf", "<package/>")

        with pytest.raises(NoImagesFound):
            Recompressor().recompress(epub, CompressionSettings(), tmp_path / "out.epub")
        assert not (tmp_path / "out.epub").exists()

    def test_injected_codec(self, built_epub, tmp_path):
        """Test codec injecté: échec systématique, rien n'est converti."""
        codec = MagicMock()
        codec.reencode.side_effect = ImageConversionFailed("boom")
        destination = tmp_path / "same.epub"

        report = Recompressor(image_codec=codec).recompress(
            built_epub, CompressionSettings(), destination
        )

        assert codec.reencode.call_count == 3
        assert len(report.skipped) == 3
        assert "cover-image.png" in _read(destination, "OEBPS/content.opf")

    def test_working_tree_removed(self, built_epub, tmp_path):
        """Test dossier de travail supprimé."""
        work = tmp_path / "work-compress"
        Recompressor(temp_root=work).recompress(
            built_epub, CompressionSettings(), tmp_path / "out.epub"
        )
        assert list(work.iterdir()) == []

    def test_missing_source(self, tmp_path):
        """Test source introuvable: InvalidPackageStructure, rien n'est écrit."""
        destination = tmp_path / "out.epub"
        with pytest.raises(InvalidPackageStructure):
            Recompressor().recompress(tmp_path / "absent.epub", CompressionSettings(), destination)
        assert not destination.exists()

    def test_replace_failure_keeps_original(self, built_epub, tmp_path, monkeypatch):
        """Test échec du remplacement: image et références d'origine conservées."""
        real_replace = os.replace

        def failing_replace(src, dst):
            if str(src).endswith(".part"):
                raise OSError("disk full")
            return real_replace(src, dst)

        monkeypatch.setattr("epub_album.core.recompressor.os.replace", failing_replace)
        destination = tmp_path / "same.epub"
        report = Recompressor().recompress(built_epub, CompressionSettings(), destination)

        assert not report.converted
        assert len(report.skipped) == 3
        assert report.skipped[0].reason == "disk full"
        with zipfile.ZipFile(destination) as zf:
            names = zf.namelist()
        assert "OEBPS/Images/cover-image.png" in names
        assert not any(name.endswith((".jpg", ".part")) for name in names)
        assert 'href="Images/cover-image.png" media-type="image/png"' in _read(destination, "OEBPS/content.opf")

    def test_reference_update_failure_keeps_original(self, built_epub, tmp_path, monkeypatch):
        """Test échec de mise à jour des références: le fichier converti est retiré."""

        def failing_update(*args):
            raise OSError("read-only document")

        monkeypatch.setattr(Recompressor, "_update_references", failing_update)
        destination = tmp_path / "same.epub"
        report = Recompressor().recompress(built_epub, CompressionSettings(), destination)

        assert len(report.skipped) == 3
        with zipfile.ZipFile(destination) as zf:
            names = zf.namelist()
        assert "OEBPS/Images/cover-image.png" in names
        assert not any(name.endswith((".jpg", ".part")) for name in names)

    def test_container_outside_package(self, tmp_path, make_image):
        """Test full-path hors du paquet: seul l'OPF interne est réécrit."""
        victim = tmp_path / "victim.opf"
        victim.write_text('<item href="Images/cover.png" media-type="image/png"/>', encoding="utf-8")
        before = victim.read_text(encoding="utf-8")
        opf = (
            '<?xml version="1.0"?>'
            '<package xmlns="http://www.idpf.org/2007/opf" version="3.0"><metadata/>'
            '<manifest><item id="c" href="Images/cover.png" media-type="image/png"/></manifest>'
            "</package>"
        )
        container = (
            '<container xmlns="urn:oasis:names:tc:opendocument:xmlns:container"><rootfiles>'
            f'<rootfile full-path="{victim.as_posix()}"/></rootfiles></container>'
        )
        cover = make_image(tmp_path / "cover.png")
        epub = tmp_path / "crafted.epub"
        with zipfile.ZipFile(epub, "w") as zf:
            zf.writestr("mimetype", "application/epub+zip", compress_type=zipfile.ZIP_STORED)
            zf.writestr("META-INF/container.xml", container)
            zf.writestr("OEBPS/content.opf", opf)
            zf.write(cover, "OEBPS/Images/cover.png")

        destination = tmp_path / "small.epub"
        report = Recompressor().recompress(epub, CompressionSettings(), destination)

        assert report.fully_converted
        assert victim.read_text(encoding="utf-8") == before
        assert 'href="Images/cover.jpg" media-type="image/jpeg"' in _read(destination, "OEBPS/content.opf")


class TestReferenceHelpers:
    """Tests pour replace_filename et update_media_type."""

    def test_replace_whole_name_only(self):
        """Test seul le nom complet est remplacé."""
        text = '<img src="../Images/a.png"/><img src="../Images/data.png"/>'
        result = replace_filename(text, "a.png", "a.jpg")
        assert result == '<img src="../Images/a.jpg"/><img src="../Images/data.png"/>'

    def test_update_media_type(self):
        """Test media-type mis à jour pour l'item ciblé seulement."""
        opf = (
            '<item id="a" href="Images/a.jpg" media-type="image/png"/>\n'
            '<item id="b" href="Images/b.png" media-type="image/png"/>'
        )
        result = update_media_type(opf, "a.jpg", "image/jpeg")
        assert 'href="Images/a.jpg" media-type="image/jpeg"' in result
        assert 'href="Images/b.png" media-type="image/png"' in result


class TestEstimate:
    """Tests pour Recompressor.estimate."""

    def test_estimate(self):
        """Test estimation déléguée à l'heuristique."""
        assert Recompressor.estimate(1_200_000, CompressionSettings()) == 58823

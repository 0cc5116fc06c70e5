# tests/core/test_album_service.py
"""
Tests pour le module core.album_service.
"""

from unittest.mock import MagicMock, patch

from epub_album.core.album_service import AlbumService
from epub_album.core.models import CompressionSettings, PackageMetadata


class TestAlbumServiceInit:
    """Tests pour l'initialisation du service."""

    def test_components_share_injected_codecs(self):
        """Test les composants reçoivent les codecs injectés."""
        archive = MagicMock()
        codec = MagicMock()
        service = AlbumService(archive=archive, image_codec=codec)

        assert service.builder.archive is archive
        assert service.extractor.archive is archive
        assert service.recompressor.archive is archive
        assert service.recompressor.image_codec is codec
        assert service.batch.builder is service.builder

    def test_independent_instances(self):
        """Test aucun état partagé entre deux services."""
        assert AlbumService().archive is not AlbumService().archive


class TestCreateAndExtract:
    """Tests de bout en bout: création puis extraction."""

    def test_round_trip_from_paths(self, tmp_path, sample_images):
        """Test création à partir de chemins puis extraction identique."""
        service = AlbumService(temp_root=tmp_path / "work")
        epub = service.create_epub(
            sample_images, tmp_path / "album.epub", PackageMetadata.create(title="Voyage")
        )
        written = service.extract_images(epub, tmp_path / "pages")

        assert [p.read_bytes() for p in written] == [p.read_bytes() for p in sample_images]
        assert service.read_metadata(epub).title == "Voyage"

    def test_default_metadata(self, tmp_path, sample_images):
        """Test métadonnées par défaut si aucune n'est fournie."""
        service = AlbumService()
        epub = service.create_epub(sample_images, tmp_path / "album.epub")
        assert service.read_metadata(epub).title == "Photo Album"


class TestCompress:
    """Tests pour compress_epub et estimate_size."""

    def test_compress_defaults(self, built_epub, tmp_path):
        """Test réglages par défaut (JPEG 60%)."""
        report = AlbumService().compress_epub(built_epub, tmp_path / "small.epub")
        assert report.fully_converted
        assert all(o.new_path.endswith(".jpg") for o in report.converted)

    def test_estimate_size(self, built_epub):
        """Test estimation à partir de la taille de l'archive."""
        original, estimated = AlbumService().estimate_size(built_epub, CompressionSettings())
        assert original == built_epub.stat().st_size
        assert 0 <= estimated < original


class TestBatch:
    """Tests pour scan_folders et convert_folders."""

    def test_language_forwarded(self, tmp_path):
        """Test langue transmise seulement si fournie."""
        service = AlbumService()
        with patch.object(service.batch, "convert", return_value=[]) as mock_convert:
            service.convert_folders([], tmp_path, language="it")
            service.convert_folders([], tmp_path)

        first, second = mock_convert.call_args_list
        assert first.kwargs["language"] == "it"
        assert "language" not in second.kwargs

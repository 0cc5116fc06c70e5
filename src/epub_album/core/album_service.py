# epub_album/src/epub_album/core/album_service.py
"""
Service EPUB Album.

Service réutilisable qui regroupe les trois opérations du moteur:
création d'un EPUB à partir d'images, extraction des images d'un EPUB et
recompression des images d'un EPUB.

Les composants (codec d'archive, codec d'image) sont injectés: aucun état
global n'est partagé entre deux services.
"""

import logging
from pathlib import Path
from typing import Iterable, List, Optional, Tuple, Union

from .batch import BatchConverter, FolderItem, scan_folders
from .epub.archive import ArchiveCodec
from .epub.builder import PackageBuilder
from .epub.extractor import EpubSummary, ImageExtractor
from .file_utils import file_size
from .image_codec import PillowImageCodec
from .models import (
    CompressionSettings,
    ImageAsset,
    ImageList,
    PackageMetadata,
    RecompressionReport,
)
from .progress import ProgressCallback
from .recompressor import Recompressor

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def _as_assets(images: Iterable[Union[ImageAsset, PathLike]]) -> List[ImageAsset]:
    items = list(images)
    if all(isinstance(item, ImageAsset) for item in items):
        return items
    return ImageList(items).as_list()


class AlbumService:
    """
    Service EPUB Album.

    Fournit les opérations de haut niveau:
    - Création d'un EPUB à partir d'images ordonnées
    - Extraction des images et des métadonnées d'un EPUB
    - Recompression des images d'un EPUB
    - Conversion par lot de dossiers d'images
    """

    def __init__(
        self,
        archive: Optional[ArchiveCodec] = None,
        image_codec=None,
        temp_root: Optional[PathLike] = None,
    ):
        self.archive = archive or ArchiveCodec()
        self.image_codec = image_codec or PillowImageCodec()
        self.builder = PackageBuilder(self.archive, temp_root)
        self.extractor = ImageExtractor(self.archive, temp_root)
        self.recompressor = Recompressor(self.archive, self.image_codec, temp_root)
        self.batch = BatchConverter(self.builder)
        logger.debug("AlbumService initialized")

    def create_epub(
        self,
        images: Iterable[Union[ImageAsset, PathLike]],
        destination: PathLike,
        metadata: Optional[PackageMetadata] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> Path:
        """
        Crée un EPUB à partir d'images.

        Args:
            images: Images ordonnées (ImageAsset ou chemins)
            destination: Fichier EPUB à produire
            metadata: Métadonnées (valeurs par défaut si None)
            on_progress: Callback optionnel (fraction, message)

        Returns:
            Chemin du fichier produit
        """
        metadata = metadata or PackageMetadata.create()
        return self.builder.build(_as_assets(images), metadata, destination, on_progress)

    def extract_images(
        self,
        epub_path: PathLike,
        output_dir: PathLike,
        on_progress: Optional[ProgressCallback] = None,
    ) -> List[Path]:
        """Extrait les images d'un EPUB, dans l'ordre du manifeste."""
        return self.extractor.extract(epub_path, output_dir, on_progress)

    def read_metadata(self, epub_path: PathLike) -> PackageMetadata:
        return self.extractor.read_metadata(epub_path)

    def describe(self, epub_path: PathLike) -> EpubSummary:
        return self.extractor.describe(epub_path)

    def compress_epub(
        self,
        epub_path: PathLike,
        destination: PathLike,
        settings: Optional[CompressionSettings] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> RecompressionReport:
        """Recompresse les images d'un EPUB; retourne le rapport par image."""
        settings = settings or CompressionSettings()
        return self.recompressor.recompress(epub_path, settings, destination, on_progress)

    def estimate_size(
        self, epub_path: PathLike, settings: Optional[CompressionSettings] = None
    ) -> Tuple[int, int]:
        """
        Estime la taille d'un EPUB après recompression.

        Returns:
            (taille originale, taille estimée) en octets
        """
        settings = settings or CompressionSettings()
        original = file_size(epub_path)
        return original, self.recompressor.estimate(original, settings)

    def scan_folders(self, root: PathLike) -> List[FolderItem]:
        return scan_folders(root)

    def convert_folders(
        self,
        folders: List[FolderItem],
        output_dir: PathLike,
        double_page: bool = False,
        language: Optional[str] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> List[FolderItem]:
        """Convertit des dossiers d'images en EPUB (un par dossier)."""
        kwargs = {"language": language} if language else {}
        return self.batch.convert(
            folders, output_dir, double_page=double_page, on_progress=on_progress, **kwargs
        )

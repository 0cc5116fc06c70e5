# epub_album/src/epub_album/core/epub/extractor.py
"""
Module d'extraction EPUB.

Responsabilité unique: décompresser un paquet, retrouver les images déclarées
dans son manifeste et les copier, dans l'ordre, vers un dossier de sortie.
"""

import logging
import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Union

from ..errors import InsufficientPermissions, InvalidPackageStructure, NoImagesFound
from ..file_utils import copy_file, temporary_directory
from ..models import PackageMetadata
from ..progress import ProgressCallback, ProgressReporter
from . import parser
from .archive import ArchiveCodec
from .reader import safe_read_epub, spine_length

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


@dataclass
class EpubSummary:
    """Résumé d'un paquet EPUB existant."""

    path: Path
    metadata: PackageMetadata
    image_hrefs: List[str] = field(default_factory=list)
    reader_compatible: bool = False
    spine_length: int = 0

    @property
    def image_count(self) -> int:
        return len(self.image_hrefs)


class ImageExtractor:
    """Extraction des images et des métadonnées d'un paquet EPUB."""

    def __init__(self, archive: Optional[ArchiveCodec] = None, temp_root: Optional[PathLike] = None):
        self.archive = archive or ArchiveCodec()
        self.temp_root = temp_root

    def extract(
        self,
        epub_path: PathLike,
        output_dir: PathLike,
        on_progress: Optional[ProgressCallback] = None,
    ) -> List[Path]:
        """
        Copie les images du manifeste vers ``output_dir`` (page001.<ext>, ...).

        Les images sont d'abord copiées dans le dossier de travail: le dossier
        de sortie n'est créé et rempli qu'une fois toutes les copies réussies.

        Args:
            epub_path: Chemin du fichier EPUB
            output_dir: Dossier de destination (créé si absent)
            on_progress: Callback optionnel (fraction, message)

        Returns:
            Liste des fichiers écrits, dans l'ordre du manifeste

        Raises:
            NoImagesFound: Si le manifeste ne déclare aucune image
            InvalidPackageStructure: Si le paquet est illisible ou incomplet
        """
        progress = ProgressReporter(on_progress)
        output_dir = Path(output_dir)

        with temporary_directory(self.temp_root) as work_dir:
            progress.report(0.1, "Décompression de l'EPUB...")
            unpacked = self.archive.unpack(epub_path, work_dir / "package")

            progress.report(0.3, "Analyse du contenu...")
            root_document = parser.locate_root_document(unpacked)
            hrefs = parser.list_image_manifest_entries(root_document)

            progress.report(0.5, "Extraction des images...")
            staged = self._stage_images(unpacked, root_document, hrefs, work_dir / "staging", progress)

            progress.report(0.9, "Copie vers le dossier de sortie...")
            try:
                output_dir.mkdir(parents=True, exist_ok=True)
                written = []
                for path in staged:
                    target = output_dir / path.name
                    shutil.move(str(path), str(target))
                    written.append(target)
            except PermissionError as e:
                raise InsufficientPermissions(str(e)) from e

        progress.report(1.0, "Terminé")
        logger.info("Extracted %d image(s) from %s to %s", len(written), epub_path, output_dir)
        return written

    def _stage_images(
        self,
        package_root: Path,
        root_document: Path,
        hrefs: List[str],
        staging_dir: Path,
        progress: ProgressReporter,
    ) -> List[Path]:
        staged = []
        total = len(hrefs)
        for index, href in enumerate(hrefs):
            progress.step(0.5, 0.4, index, total, f"Extraction de l'image {index + 1}/{total}...")
            source = parser.resolve_href(root_document, href, package_root)
            if not source.is_file():
                raise InvalidPackageStructure(f"manifest image missing from package: {href}")
            target = staging_dir / f"page{index + 1:03d}{source.suffix.lower()}"
            staged.append(copy_file(source, target))
        return staged

    def read_metadata(self, epub_path: PathLike) -> PackageMetadata:
        """Lit les métadonnées d'un fichier EPUB."""
        with temporary_directory(self.temp_root) as work_dir:
            unpacked = self.archive.unpack(epub_path, work_dir)
            return parser.read_metadata(parser.locate_root_document(unpacked))

    def describe(self, epub_path: PathLike) -> EpubSummary:
        """
        Résume un paquet: métadonnées, images déclarées et compatibilité lecteur.

        Un paquet sans image n'est pas une erreur ici (image_hrefs vide).
        """
        with temporary_directory(self.temp_root) as work_dir:
            unpacked = self.archive.unpack(epub_path, work_dir)
            root_document = parser.locate_root_document(unpacked)
            metadata = parser.read_metadata(root_document)
            try:
                hrefs = parser.list_image_manifest_entries(root_document)
            except NoImagesFound:
                hrefs = []

        summary = EpubSummary(path=Path(epub_path), metadata=metadata, image_hrefs=hrefs)
        book = safe_read_epub(str(epub_path))
        if book is not None:
            summary.reader_compatible = True
            summary.spine_length = spine_length(book)
        return summary

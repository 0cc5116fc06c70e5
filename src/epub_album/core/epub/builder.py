# epub_album/src/epub_album/core/epub/builder.py
"""
Module de construction EPUB.

Responsabilité unique: matérialiser l'arborescence complète d'un paquet
(META-INF, OEBPS/Text, OEBPS/Images) dans un dossier de travail à partir
d'une liste ordonnée d'images, puis la confier au codec d'archive.
"""

import logging
from pathlib import Path
from typing import Optional, Sequence, Union

from ...config import (
    CONTAINER_PATH,
    EPUB_MIMETYPE,
    IMAGES_DIR,
    MIMETYPE_FILENAME,
    NCX_FILENAME,
    OEBPS_DIR,
    OPF_FILENAME,
    TEXT_DIR,
)
from ..errors import InsufficientPermissions, NoImagesFound
from ..file_utils import copy_file, temporary_directory
from ..models import ImageAsset, PackageMetadata
from ..progress import ProgressCallback, ProgressReporter
from . import templates
from .archive import ArchiveCodec

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def _write_text(path: Path, content: str):
    # newline="" : aucune traduction de fin de ligne, le mimetype reste exact
    with open(path, "w", encoding="utf-8", newline="") as f:
        f.write(content)


class PackageBuilder:
    """
    Construit un paquet EPUB3 à partir d'images ordonnées.

    Toute erreur (image source manquante comprise) interrompt la construction:
    la destination n'est écrite qu'en cas de succès complet et le dossier de
    travail est toujours supprimé.
    """

    def __init__(self, archive: Optional[ArchiveCodec] = None, temp_root: Optional[PathLike] = None):
        self.archive = archive or ArchiveCodec()
        self.temp_root = temp_root

    def build(
        self,
        images: Sequence[ImageAsset],
        metadata: PackageMetadata,
        destination: PathLike,
        on_progress: Optional[ProgressCallback] = None,
    ) -> Path:
        """
        Construit l'EPUB et l'écrit à ``destination``.

        Args:
            images: Images dans l'ordre de lecture (la première devient la couverture)
            metadata: Métadonnées du paquet
            destination: Chemin du fichier .epub à produire
            on_progress: Callback optionnel (fraction, message)

        Returns:
            Chemin du fichier EPUB produit

        Raises:
            NoImagesFound: Si la liste d'images est vide
            InsufficientPermissions: Si une lecture/écriture est refusée
            ArchiveCreationFailed: Si l'archive ne peut pas être créée
        """
        images = sorted(images, key=lambda image: image.order)
        if not images:
            raise NoImagesFound("cannot build a package without images")

        progress = ProgressReporter(on_progress)
        logger.info("Building EPUB %s from %d image(s)", destination, len(images))

        with temporary_directory(self.temp_root) as work_dir:
            try:
                self._populate_tree(work_dir, images, metadata, progress)
                progress.report(0.8, "Création de l'archive EPUB...")
                result = self.archive.pack(work_dir, destination)
            except PermissionError as e:
                raise InsufficientPermissions(str(e)) from e

        progress.report(1.0, "Terminé")
        logger.info("Built EPUB %s", result)
        return result

    def _populate_tree(
        self,
        work_dir: Path,
        images: Sequence[ImageAsset],
        metadata: PackageMetadata,
        progress: ProgressReporter,
    ):
        progress.report(0.1, "Préparation de l'arborescence...")
        oebps = work_dir / OEBPS_DIR
        text_dir = oebps / TEXT_DIR
        images_dir = oebps / IMAGES_DIR
        (work_dir / CONTAINER_PATH).parent.mkdir(parents=True)
        text_dir.mkdir(parents=True)
        images_dir.mkdir(parents=True)

        progress.report(0.2, "Écriture du mimetype...")
        _write_text(work_dir / MIMETYPE_FILENAME, EPUB_MIMETYPE)

        progress.report(0.3, "Création du fichier conteneur...")
        _write_text(work_dir / CONTAINER_PATH, templates.container_xml())

        entries = templates.manifest_entries(images)
        total = len(images)
        for index, (image, entry) in enumerate(zip(images, entries)):
            progress.step(0.3, 0.4, index, total, f"Traitement de l'image {index + 1}/{total}...")
            copy_file(image.path, images_dir / entry.image_filename)
            _write_text(
                text_dir / entry.page_filename,
                templates.image_page_xhtml(
                    entry.image_filename, entry.page_number, metadata.double_page
                ),
            )
            logger.debug("Placed %s as %s", image.filename, entry.image_href)

        progress.report(0.7, "Génération de la table des matières...")
        _write_text(oebps / OPF_FILENAME, templates.content_opf(metadata, images))
        _write_text(oebps / NCX_FILENAME, templates.toc_ncx(metadata, total))

# epub_album/src/epub_album/core/batch.py
"""
Conversion par lot: un EPUB par sous-dossier d'images.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import List, Optional, Union

from ..config import DEFAULT_AUTHOR, DEFAULT_LANGUAGE
from .epub.builder import PackageBuilder
from .errors import user_message_for
from .file_utils import find_images_in_folder, sanitize_filename
from .models import ImageList, PackageMetadata
from .progress import ProgressCallback, ProgressReporter

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


class ConversionStatus(Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class FolderItem:
    """Sous-dossier candidat à la conversion."""

    path: Path
    name: str
    image_count: int
    status: ConversionStatus = ConversionStatus.PENDING
    reason: str = ""
    output_path: Optional[Path] = None


def scan_folders(root: PathLike) -> List[FolderItem]:
    """
    Liste les sous-dossiers directs contenant au moins une image, triés par nom.

    Args:
        root: Dossier principal

    Returns:
        Les dossiers convertibles
    """
    root = Path(root)
    folders = []
    for entry in sorted(root.iterdir(), key=lambda p: p.name):
        if not entry.is_dir() or entry.name.startswith("."):
            continue
        images = find_images_in_folder(entry)
        if images:
            folders.append(FolderItem(path=entry, name=entry.name, image_count=len(images)))
    logger.info("Found %d folder(s) with images in %s", len(folders), root)
    return folders


class BatchConverter:
    """Convertit une liste de dossiers en EPUB, un dossier à la fois."""

    def __init__(self, builder: Optional[PackageBuilder] = None):
        self.builder = builder or PackageBuilder()

    def convert(
        self,
        folders: List[FolderItem],
        output_dir: PathLike,
        double_page: bool = False,
        language: str = DEFAULT_LANGUAGE,
        author: str = DEFAULT_AUTHOR,
        on_progress: Optional[ProgressCallback] = None,
    ) -> List[FolderItem]:
        """
        Convertit chaque dossier en ``<output_dir>/<nom du dossier>.epub``.

        L'échec d'un dossier est consigné dans son statut et n'interrompt pas le lot.
        """
        progress = ProgressReporter(on_progress)
        output_dir = Path(output_dir)
        total = len(folders)

        for index, folder in enumerate(folders):
            folder.status = ConversionStatus.PROCESSING
            try:
                self._convert_one(folder, output_dir, double_page, language, author)
            except Exception as e:
                folder.status = ConversionStatus.FAILED
                folder.reason = user_message_for(e)
                logger.exception("Batch conversion failed for %s", folder.name)
            progress.report((index + 1) / total, f"Terminé {index + 1}/{total}")

        completed = sum(1 for f in folders if f.status is ConversionStatus.COMPLETED)
        logger.info("Batch conversion: %d/%d folder(s) converted", completed, total)
        return folders

    def _convert_one(
        self, folder: FolderItem, output_dir: Path, double_page: bool, language: str, author: str
    ):
        images = find_images_in_folder(folder.path)
        if not images:
            folder.status = ConversionStatus.FAILED
            folder.reason = "Aucune image"
            return

        metadata = PackageMetadata.create(
            title=folder.name, author=author, language=language, double_page=double_page
        )
        destination = output_dir / f"{sanitize_filename(folder.name) or 'album'}.epub"
        folder.output_path = self.builder.build(ImageList(images), metadata, destination)
        folder.status = ConversionStatus.COMPLETED

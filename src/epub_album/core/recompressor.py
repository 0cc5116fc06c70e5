# epub_album/src/epub_album/core/recompressor.py
"""
Pipeline de recompression des images d'un EPUB.

Décompresse le paquet, ré-encode chaque image trouvée, met à jour les
références si l'extension change, puis ré-empaquète.

Politique d'erreur: l'échec d'une image est journalisé et consigné dans le
rapport, l'image originale est conservée et le traitement continue. Seuls la
décompression, l'absence totale d'images et le ré-empaquetage font échouer
l'opération.
"""

import logging
import os
import re
from pathlib import Path
from typing import Dict, Iterable, Optional, Union

from ..config import TEXT_DOCUMENT_EXT
from .epub import parser
from .epub.archive import ArchiveCodec
from .errors import NoImagesFound
from .file_utils import file_size, find_image_files, iter_regular_files, temporary_directory
from .image_codec import PillowImageCodec, estimate_compressed_size
from .models import CompressionSettings, ItemOutcome, OutcomeStatus, RecompressionReport
from .progress import ProgressCallback, ProgressReporter

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

_ITEM_TAG_RE = re.compile(r"<(?:[\w-]+:)?item\b[^>]*>", re.DOTALL)
_MEDIA_TYPE_RE = re.compile(r"""(media-type\s*=\s*["'])[^"']*(["'])""")


def _filename_pattern(name: str) -> "re.Pattern[str]":
    # Nom de fichier complet uniquement: "a.png" ne touche pas "data.png"
    return re.compile(r"(?<![\w.-])" + re.escape(name) + r"(?![\w.-])")


def replace_filename(text: str, old_name: str, new_name: str) -> str:
    """Remplace chaque occurrence textuelle d'un nom de fichier par un autre."""
    return _filename_pattern(old_name).sub(lambda _m: new_name, text)


def update_media_type(opf_text: str, filename: str, media_type: str) -> str:
    """Met à jour le media-type des items du manifeste dont le href désigne ``filename``."""
    href_re = re.compile(
        r"""href\s*=\s*["'](?:[^"']*/)?""" + re.escape(filename) + r"""["']"""
    )

    def fix(match):
        tag = match.group(0)
        if not href_re.search(tag):
            return tag
        return _MEDIA_TYPE_RE.sub(lambda m: m.group(1) + media_type + m.group(2), tag)

    return _ITEM_TAG_RE.sub(fix, opf_text)


def _read_text(path: Path) -> Optional[str]:
    try:
        with open(path, encoding="utf-8", newline="") as f:
            return f.read()
    except UnicodeDecodeError:
        logger.warning("Skipping non UTF-8 document %s", path)
        return None


def _remove_quietly(path: Path):
    try:
        path.unlink()
    except FileNotFoundError:
        pass
    except OSError:
        logger.warning("Could not remove %s", path, exc_info=True)


def _write_text(path: Path, content: str):
    with open(path, "w", encoding="utf-8", newline="") as f:
        f.write(content)


class Recompressor:
    """Recompression des images d'un paquet EPUB."""

    def __init__(
        self,
        archive: Optional[ArchiveCodec] = None,
        image_codec=None,
        temp_root: Optional[PathLike] = None,
    ):
        self.archive = archive or ArchiveCodec()
        self.image_codec = image_codec or PillowImageCodec()
        self.temp_root = temp_root

    def recompress(
        self,
        source: PathLike,
        settings: CompressionSettings,
        destination: PathLike,
        on_progress: Optional[ProgressCallback] = None,
    ) -> RecompressionReport:
        """
        Recompresse toutes les images d'un EPUB et écrit le résultat à ``destination``.

        Args:
            source: Fichier EPUB source
            settings: Qualité et format cibles
            destination: Fichier EPUB à produire
            on_progress: Callback optionnel (fraction, message)

        Returns:
            Rapport détaillant le sort de chaque image

        Raises:
            InvalidPackageStructure: Si l'archive source est illisible
            NoImagesFound: Si le paquet ne contient aucune image
            ArchiveCreationFailed: Si le ré-empaquetage échoue
        """
        progress = ProgressReporter(on_progress)
        source = Path(source)
        destination = Path(destination)
        report = RecompressionReport(source=source, destination=destination)
        logger.info(
            "Recompressing %s (%s, quality %d%%)",
            source,
            settings.format.value,
            settings.quality_percentage,
        )

        with temporary_directory(self.temp_root) as work_dir:
            progress.report(0.1, "Décompression de l'EPUB...")
            tree = self.archive.unpack(source, work_dir / "package")
            report.original_size = file_size(source)

            progress.report(0.2, "Recherche des images...")
            images = find_image_files(tree)
            if not images:
                raise NoImagesFound(f"no image file in {source.name}")
            root_document = parser.locate_root_document(tree)

            total = len(images)
            for index, image_path in enumerate(images):
                progress.step(0.2, 0.6, index, total, f"Compression de l'image {index + 1}/{total}...")
                report.outcomes.append(
                    self._recompress_one(tree, root_document, image_path, settings)
                )

            progress.report(0.8, "Ré-empaquetage de l'EPUB...")
            self.archive.pack(tree, destination)

        report.final_size = file_size(destination)
        progress.report(1.0, "Terminé")

        if report.skipped:
            logger.warning(
                "%d image(s) left unconverted in %s: %s",
                len(report.skipped),
                destination,
                ", ".join(o.path for o in report.skipped),
            )
        logger.info(
            "Recompressed %s: %d converted, %d skipped, %d -> %d bytes",
            source.name,
            len(report.converted),
            len(report.skipped),
            report.original_size,
            report.final_size,
        )
        return report

    def _recompress_one(
        self,
        tree: Path,
        root_document: Path,
        image_path: Path,
        settings: CompressionSettings,
    ) -> ItemOutcome:
        relative = image_path.relative_to(tree).as_posix()
        outcome = ItemOutcome(
            path=relative, status=OutcomeStatus.SKIPPED, original_size=file_size(image_path)
        )
        new_path = image_path.with_suffix("." + settings.format.file_extension)
        renamed = new_path.name != image_path.name
        if renamed and new_path.exists() and new_path.name.lower() != image_path.name.lower():
            outcome.reason = f"target file {new_path.name} already exists"
            logger.warning("Skipping %s: %s", relative, outcome.reason)
            return outcome

        part_path = image_path.with_name(image_path.name + ".part")
        separate_file = False
        try:
            encoded = self.image_codec.reencode(
                image_path.read_bytes(), settings.quality, settings.format
            )
            part_path.write_bytes(encoded)
            os.replace(part_path, new_path)
            # Sur un système insensible à la casse, x.JPG et x.jpg sont un seul fichier
            separate_file = image_path.exists() and not os.path.samefile(image_path, new_path)
            if renamed:
                self._update_references(
                    tree, root_document, image_path.name, new_path.name, settings.format.mime_type
                )
        except Exception as e:
            # Une image en échec ne doit pas interrompre le lot
            logger.warning("Failed to compress %s: %s", relative, e, exc_info=True)
            outcome.reason = str(e) or e.__class__.__name__
            _remove_quietly(part_path)
            if separate_file:
                _remove_quietly(new_path)
            return outcome

        if separate_file:
            _remove_quietly(image_path)

        outcome.status = OutcomeStatus.CONVERTED
        outcome.new_path = new_path.relative_to(tree).as_posix()
        outcome.new_size = len(encoded)
        logger.debug("Compressed %s -> %s", relative, outcome.new_path)
        return outcome

    def _update_references(
        self, tree: Path, root_document: Path, old_name: str, new_name: str, media_type: str
    ):
        """
        Remplace l'ancien nom de fichier par le nouveau dans l'OPF et les documents texte.

        Les nouveaux contenus sont tous calculés avant la moindre écriture.
        """
        documents = self._text_documents(tree, root_document)
        updated: Dict[Path, str] = {}
        for document in documents:
            text = _read_text(document)
            if text is None:
                continue
            new_text = replace_filename(text, old_name, new_name)
            if document == root_document:
                new_text = update_media_type(new_text, new_name, media_type)
            if new_text != text:
                updated[document] = new_text

        if root_document not in updated:
            logger.debug("No reference to %s in %s", old_name, root_document.name)
        for document, text in updated.items():
            _write_text(document, text)

    @staticmethod
    def _text_documents(tree: Path, root_document: Path) -> Iterable[Path]:
        documents = []
        if root_document.is_file():
            documents.append(root_document)
        else:
            logger.warning("Package document %s not found, references not updated", root_document)
        for path in iter_regular_files(tree):
            if path.suffix.lower() in TEXT_DOCUMENT_EXT and path != root_document:
                documents.append(path)
        return documents

    @staticmethod
    def estimate(original_size: int, settings: CompressionSettings) -> int:
        """Taille estimée après compression (indicative)."""
        return estimate_compressed_size(original_size, settings.quality, settings.format)

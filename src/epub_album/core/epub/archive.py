# epub_album/src/epub_album/core/epub/archive.py
"""
Module d'archivage EPUB.

Responsabilité unique: empaqueter un dossier de travail en archive EPUB
(mimetype en premier et non compressé) et décompresser une archive existante.
"""

import logging
import os
import zipfile
from pathlib import Path
from typing import List, Tuple, Union

from ...config import EPUB_MIMETYPE, MIMETYPE_FILENAME
from ..errors import ArchiveCreationFailed, InsufficientPermissions, InvalidPackageStructure
from ..file_utils import iter_regular_files

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


class ArchiveCodec:
    """Codec d'archive ZIP respectant les contraintes de l'OCF EPUB."""

    def pack(self, source_tree: PathLike, destination: PathLike) -> Path:
        """
        Empaquète un dossier de travail en archive EPUB.

        L'entrée ``mimetype`` est ajoutée en premier, sans compression; tous les
        autres fichiers réguliers non cachés sont compressés (deflate) sous leur
        chemin relatif. Une destination existante est remplacée.

        Args:
            source_tree: Racine du dossier de travail
            destination: Chemin de l'archive à produire

        Returns:
            Chemin de l'archive écrite

        Raises:
            ArchiveCreationFailed: Si l'archive ne peut pas être créée
            InsufficientPermissions: Si le système de fichiers refuse l'écriture
        """
        source_tree = Path(source_tree)
        destination = Path(destination)
        temp_path = destination.with_name(destination.name + ".tmp")

        try:
            destination.parent.mkdir(parents=True, exist_ok=True)
            archive = zipfile.ZipFile(temp_path, "w")
        except PermissionError as e:
            raise InsufficientPermissions(str(destination)) from e
        except OSError as e:
            raise ArchiveCreationFailed(str(destination)) from e

        try:
            with archive:
                self._write_entries(archive, source_tree)
            os.replace(temp_path, destination)
        except PermissionError as e:
            self._discard(temp_path)
            raise InsufficientPermissions(str(destination)) from e
        except BaseException:
            self._discard(temp_path)
            raise

        logger.info("Packed %s -> %s", source_tree, destination)
        return destination

    def _write_entries(self, archive: zipfile.ZipFile, source_tree: Path):
        mimetype_path = source_tree / MIMETYPE_FILENAME
        if mimetype_path.is_file():
            archive.write(mimetype_path, MIMETYPE_FILENAME, compress_type=zipfile.ZIP_STORED)
        else:
            logger.warning("No mimetype file in %s, writing the standard one", source_tree)
            archive.writestr(MIMETYPE_FILENAME, EPUB_MIMETYPE, compress_type=zipfile.ZIP_STORED)

        for path in iter_regular_files(source_tree):
            arcname = path.relative_to(source_tree).as_posix()
            if arcname == MIMETYPE_FILENAME:
                continue
            archive.write(path, arcname, compress_type=zipfile.ZIP_DEFLATED)

    @staticmethod
    def _discard(temp_path: Path):
        # Nettoyer le fichier temporaire en cas d'échec
        try:
            temp_path.unlink()
        except FileNotFoundError:
            pass
        except OSError:
            logger.warning("Could not remove temporary archive %s", temp_path, exc_info=True)

    def unpack(self, archive: PathLike, destination: PathLike) -> Path:
        """
        Décompresse toute l'archive dans un dossier (créé si absent).

        Raises:
            InvalidPackageStructure: Si l'archive est introuvable ou n'est pas un ZIP
            InsufficientPermissions: Si le système de fichiers refuse l'opération
        """
        destination = Path(destination)
        try:
            zf = zipfile.ZipFile(archive)
        except PermissionError as e:
            raise InsufficientPermissions(str(archive)) from e
        except (OSError, zipfile.BadZipFile) as e:
            raise InvalidPackageStructure(f"cannot open archive {archive}") from e

        try:
            with zf:
                destination.mkdir(parents=True, exist_ok=True)
                zf.extractall(destination)
        except PermissionError as e:
            raise InsufficientPermissions(str(destination)) from e

        logger.info("Unpacked %s -> %s", archive, destination)
        return destination

    def list_entries(self, archive: PathLike) -> List[Tuple[str, int]]:
        """Retourne les couples (nom, méthode de compression) dans l'ordre de l'archive."""
        try:
            with zipfile.ZipFile(archive) as zf:
                return [(info.filename, info.compress_type) for info in zf.infolist()]
        except (OSError, zipfile.BadZipFile) as e:
            raise InvalidPackageStructure(f"cannot open archive {archive}") from e

# epub_album/src/epub_album/core/file_utils.py
"""
Logique pour les opérations sur le système de fichiers (dossiers temporaires,
copie, tailles, recherche d'images).
"""

import logging
import mimetypes
import os
import re
import shutil
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, List, Optional, Union

from ..config import SUPPORTED_IMAGE_EXT, TEMP_DIR_PREFIX

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


@contextmanager
def temporary_directory(root: Optional[PathLike] = None) -> Iterator[Path]:
    """
    Crée un dossier de travail et garantit sa suppression à la sortie.

    Args:
        root: Dossier parent (par défaut le dossier temporaire du système)

    Yields:
        Chemin du dossier de travail
    """
    if root is not None:
        os.makedirs(root, exist_ok=True)
    path = Path(tempfile.mkdtemp(prefix=TEMP_DIR_PREFIX, dir=root))
    logger.debug("Created working tree %s", path)
    try:
        yield path
    finally:
        cleanup_temporary_directory(path)


def cleanup_temporary_directory(path: PathLike):
    """Supprime un dossier de travail sans jamais lever d'exception."""
    try:
        shutil.rmtree(path)
        logger.debug("Removed working tree %s", path)
    except FileNotFoundError:
        pass
    except OSError:
        logger.warning("Could not remove working tree %s", path, exc_info=True)


def copy_file(source: PathLike, destination: PathLike) -> Path:
    """Copie un fichier en créant le dossier parent si besoin."""
    destination = Path(destination)
    destination.parent.mkdir(parents=True, exist_ok=True)
    shutil.copyfile(source, destination)
    return destination


def write_bytes(data: bytes, destination: PathLike) -> Path:
    """Écrit des données binaires en créant le dossier parent si besoin."""
    destination = Path(destination)
    destination.parent.mkdir(parents=True, exist_ok=True)
    destination.write_bytes(data)
    return destination


def file_size(path: PathLike) -> int:
    return os.path.getsize(path)


def is_hidden(relative_path: PathLike) -> bool:
    """Vrai si un composant du chemin relatif commence par un point."""
    return any(part.startswith(".") for part in Path(relative_path).parts)


def iter_regular_files(root: PathLike) -> Iterator[Path]:
    """
    Parcourt les fichiers réguliers non cachés d'un dossier, dans un ordre stable.

    Les dossiers cachés ne sont pas explorés.
    """
    root = Path(root)
    for current, dirs, filenames in os.walk(root):
        dirs[:] = sorted(d for d in dirs if not d.startswith("."))
        for name in sorted(filenames):
            if name.startswith("."):
                continue
            path = Path(current) / name
            if path.is_file() and not path.is_symlink():
                yield path


def directory_size(root: PathLike) -> int:
    """Taille cumulée des fichiers non cachés d'un dossier."""
    return sum(file_size(p) for p in iter_regular_files(root))


def guess_content_type(path: PathLike) -> Optional[str]:
    content_type, _ = mimetypes.guess_type(str(path))
    return content_type


def find_image_files(root: PathLike) -> List[Path]:
    """Trouve toutes les images (tout type image/*) sous un dossier."""
    images = [
        p for p in iter_regular_files(root) if (guess_content_type(p) or "").startswith("image/")
    ]
    logger.info("Found %d image(s) in %s", len(images), root)
    return images


def find_images_in_folder(folder: PathLike) -> List[Path]:
    """
    Trouve les images supportées pour la création d'album, triées par nom de fichier.
    """
    files = [p for p in iter_regular_files(folder) if p.suffix.lower() in SUPPORTED_IMAGE_EXT]
    return sorted(files, key=lambda p: p.name)


def sanitize_filename(value: str) -> str:
    """Nettoie un texte pour un nom de fichier valide."""
    value = re.sub(r'[\\/*?:"<>|]', "", value)
    value = re.sub(r"\s+", " ", value)
    return value.strip()


def format_file_size(size: int) -> str:
    """Formate une taille en octets pour l'affichage (base 1000)."""
    value = float(size)
    for unit in ("bytes", "KB", "MB", "GB"):
        if abs(value) < 1000 or unit == "GB":
            if unit == "bytes":
                return f"{int(value)} bytes"
            return f"{value:.1f} {unit}"
        value /= 1000
    return f"{value:.1f} TB"

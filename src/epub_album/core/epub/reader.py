# epub_album/src/epub_album/core/epub/reader.py
"""
Module de lecture EPUB via ebooklib.

Responsabilité unique: vérifier qu'un paquet s'ouvre avec un lecteur
standard et en donner la longueur de spine.
"""

import logging
from typing import Optional

from ebooklib import epub
from ebooklib.epub import EpubBook

logger = logging.getLogger(__name__)


def safe_read_epub(epub_path: str) -> Optional[EpubBook]:
    """
    Lit un fichier EPUB de manière sécurisée.

    Args:
        epub_path: Chemin vers le fichier EPUB

    Returns:
        Objet EpubBook si succès, None sinon
    """
    try:
        return epub.read_epub(str(epub_path))
    except Exception as e:
        logger.warning("ebooklib failed to read %s: %s", epub_path, e)
        return None


def spine_length(book: EpubBook) -> int:
    """Nombre d'entrées de la spine (pages de lecture)."""
    return len(book.spine)

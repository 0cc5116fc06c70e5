# epub_album/src/epub_album/core/epub/__init__.py
"""
Module EPUB - Construction, analyse et archivage des paquets EPUB.

Ce module regroupe le générateur de documents, le codec d'archive,
l'analyseur de paquet et le constructeur d'arborescence.
"""

from .archive import ArchiveCodec
from .builder import PackageBuilder
from .extractor import EpubSummary, ImageExtractor
from .parser import list_image_manifest_entries, locate_root_document, read_metadata
from .reader import safe_read_epub

__all__ = [
    "ArchiveCodec",
    "EpubSummary",
    "ImageExtractor",
    "PackageBuilder",
    "list_image_manifest_entries",
    "locate_root_document",
    "read_metadata",
    "safe_read_epub",
]

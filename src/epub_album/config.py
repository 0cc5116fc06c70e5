# epub_album/src/epub_album/config.py
"""
Configuration et constantes pour EPUB Album
"""

import os

# ---------- Structure EPUB ----------
EPUB_MIMETYPE = "application/epub+zip"
MIMETYPE_FILENAME = "mimetype"
CONTAINER_PATH = "META-INF/container.xml"
DEFAULT_ROOTFILE_PATH = "OEBPS/content.opf"
OEBPS_DIR = "OEBPS"
TEXT_DIR = "Text"
IMAGES_DIR = "Images"
COVER_IMAGE_ID = "cover-image"
NCX_FILENAME = "toc.ncx"
OPF_FILENAME = "content.opf"

# Viewport fixe du mode double page (une image = une double page scannée)
DOUBLE_PAGE_VIEWPORT = (1600, 1200)

# ---------- Métadonnées par défaut ----------
DEFAULT_TITLE = "Photo Album"
DEFAULT_AUTHOR = "EPUB Album"
DEFAULT_LANGUAGE = "en"

# Valeurs utilisées quand un champ est absent d'un OPF existant
UNKNOWN_TITLE = "Unknown"
UNKNOWN_AUTHOR = "Unknown"

# ---------- Compression ----------
DEFAULT_QUALITY = 0.6
DEFAULT_FORMAT = "jpeg"

# ---------- Extensions supportées ----------
SUPPORTED_IMAGE_EXT = (".png", ".jpg", ".jpeg", ".webp")
TEXT_DOCUMENT_EXT = (".opf", ".xhtml", ".html", ".htm", ".ncx", ".css")

# ---------- Dossiers ----------
TEMP_DIR_PREFIX = "epub_album_"
LOG_DIR = os.getenv("EPUB_ALBUM_LOG_DIR", "logs")

# ---------- Configuration logging ----------
LOG_MAX_BYTES = 5 * 1024 * 1024  # 5MB
LOG_BACKUP_COUNT = 5
LOG_ENCODING = "utf-8"


# ---------- Initialisation des dossiers ----------
def ensure_directories():
    """Crée les dossiers nécessaires s'ils n'existent pas."""
    os.makedirs(LOG_DIR, exist_ok=True)

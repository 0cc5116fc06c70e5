# epub_album/src/epub_album/core/errors.py
"""
Exceptions du moteur de conteneur EPUB.

Chaque type d'erreur correspond à un cas métier précis et porte un message
court et localisé, destiné à l'utilisateur final (aucun chemin interne,
aucune trace de pile).
"""

from enum import Enum
from typing import Optional


class ErrorKind(Enum):
    """Catégories d'erreurs exposées à l'appelant."""

    INVALID_PACKAGE_STRUCTURE = "invalid_package_structure"
    IMAGE_CONVERSION_FAILED = "image_conversion_failed"
    ARCHIVE_CREATION_FAILED = "archive_creation_failed"
    INSUFFICIENT_PERMISSIONS = "insufficient_permissions"
    NO_IMAGES_FOUND = "no_images_found"


USER_MESSAGES = {
    ErrorKind.INVALID_PACKAGE_STRUCTURE: "Structure du fichier EPUB invalide",
    ErrorKind.IMAGE_CONVERSION_FAILED: "Échec de la conversion de l'image",
    ErrorKind.ARCHIVE_CREATION_FAILED: "Impossible de créer l'archive EPUB",
    ErrorKind.INSUFFICIENT_PERMISSIONS: "Permissions insuffisantes sur le fichier",
    ErrorKind.NO_IMAGES_FOUND: "Aucune image trouvée",
}

GENERIC_USER_MESSAGE = "Une erreur inattendue est survenue"


class PackageError(Exception):
    """Exception de base du moteur EPUB."""

    kind: ErrorKind

    def __init__(self, detail: Optional[str] = None):
        self.detail = detail
        message = self.user_message
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)

    @property
    def user_message(self) -> str:
        """Message localisé, sans détail technique."""
        return USER_MESSAGES[self.kind]


class InvalidPackageStructure(PackageError):
    """container.xml ou document racine absent, illisible ou incohérent."""

    kind = ErrorKind.INVALID_PACKAGE_STRUCTURE


class ImageConversionFailed(PackageError):
    """Le codec d'image n'a pas produit de données exploitables."""

    kind = ErrorKind.IMAGE_CONVERSION_FAILED


class ArchiveCreationFailed(PackageError):
    """L'archive de destination n'a pas pu être créée."""

    kind = ErrorKind.ARCHIVE_CREATION_FAILED


class InsufficientPermissions(PackageError):
    """Le système de fichiers a refusé une opération."""

    kind = ErrorKind.INSUFFICIENT_PERMISSIONS


class NoImagesFound(PackageError):
    """Le manifeste ou le parcours du dossier ne contient aucune image."""

    kind = ErrorKind.NO_IMAGES_FOUND


def user_message_for(exc: BaseException) -> str:
    """Retourne le message à afficher à l'utilisateur pour une exception."""
    if isinstance(exc, PackageError):
        return exc.user_message
    if isinstance(exc, PermissionError):
        return USER_MESSAGES[ErrorKind.INSUFFICIENT_PERMISSIONS]
    if isinstance(exc, FileNotFoundError):
        return "Fichier introuvable"
    return GENERIC_USER_MESSAGE

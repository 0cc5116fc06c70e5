# tests/conftest.py
"""
Configuration globale pour pytest.

Fournit des fixtures réutilisables pour tous les tests.
"""

from pathlib import Path

import pytest
from PIL import Image


def write_image(path: Path, color=(200, 30, 30), size=(32, 24), fmt=None, mode="RGB") -> Path:
    """Écrit une petite image unie générée avec Pillow."""
    path.parent.mkdir(parents=True, exist_ok=True)
    if mode == "RGBA" and len(color) == 3:
        color = color + (128,)
    Image.new(mode, size, color).save(path, format=fmt)
    return path


@pytest.fixture
def make_image():
    """Fabrique d'images de test."""
    return write_image


@pytest.fixture
def sample_images(tmp_path) -> list:
    """Trois images PNG distinctes, dans l'ordre de lecture."""
    colors = [(255, 0, 0), (0, 255, 0), (0, 0, 255)]
    return [
        write_image(tmp_path / "src" / f"photo{i + 1}.png", color=color)
        for i, color in enumerate(colors)
    ]


@pytest.fixture
def sample_metadata():
    """Métadonnées d'exemple pour tests."""
    from epub_album.core.models import PackageMetadata

    return PackageMetadata(
        identifier="urn:uuid:1234",
        title="Test Album",
        author="Test Author",
        language="fr",
        modified="2024-01-02T03:04:05Z",
    )


@pytest.fixture
def built_epub(tmp_path, sample_images, sample_metadata) -> Path:
    """Un EPUB construit à partir des trois images d'exemple."""
    from epub_album.core.epub.builder import PackageBuilder
    from epub_album.core.models import ImageList

    destination = tmp_path / "out" / "album.epub"
    PackageBuilder(temp_root=tmp_path / "work").build(
        ImageList(sample_images).as_list(), sample_metadata, destination
    )
    return destination


@pytest.fixture
def temp_dir(tmp_path):
    """Fournit un répertoire temporaire pour les tests."""
    return tmp_path

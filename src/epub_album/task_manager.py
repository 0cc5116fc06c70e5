# epub_album/src/epub_album/task_manager.py
"""
Gestionnaire des tâches de fond (threading).

Chaque opération du service s'exécute dans un thread dédié et signale ses
changements d'état (ProcessingState) via un callback.
"""

import logging
import threading
from pathlib import Path
from typing import TYPE_CHECKING, Callable, Iterable, List, Optional, Union

from .core.errors import user_message_for
from .core.models import CompressionSettings, ProcessingState

if TYPE_CHECKING:
    from .core.album_service import AlbumService
    from .core.batch import FolderItem
    from .core.models import ImageAsset, PackageMetadata

logger = logging.getLogger(__name__)

StateCallback = Callable[[ProcessingState], None]
PathLike = Union[str, Path]


def _start(target, args) -> threading.Thread:
    thread = threading.Thread(target=target, args=args, daemon=True)
    thread.start()
    return thread


def _run_operation(
    name: str,
    operation: Callable,
    output_path: PathLike,
    on_state: StateCallback,
):
    """Exécute une opération et traduit son issue en ProcessingState."""
    on_state(ProcessingState.processing(0.0, "Préparation..."))

    def on_progress(fraction: float, message: str):
        on_state(ProcessingState.processing(fraction, message))

    try:
        operation(on_progress)
    except Exception as e:
        logger.exception("%s task failed", name)
        on_state(ProcessingState.error(user_message_for(e)))
        return
    logger.debug("%s task completed: %s", name, output_path)
    on_state(ProcessingState.completed(output_path))


# --- TÂCHE DE CRÉATION ---


def start_create_task(
    service: "AlbumService",
    images: Iterable["ImageAsset"],
    destination: PathLike,
    on_state: StateCallback,
    metadata: Optional["PackageMetadata"] = None,
) -> threading.Thread:
    """Lance la création d'un EPUB dans un thread."""
    images = list(images)
    logger.debug(f"Démarrage du Create Task pour {len(images)} images.")

    def operation(on_progress):
        service.create_epub(images, destination, metadata=metadata, on_progress=on_progress)

    return _start(_run_operation, ("Create", operation, destination, on_state))


# --- TÂCHE D'EXTRACTION ---


def start_extract_task(
    service: "AlbumService",
    epub_path: PathLike,
    output_dir: PathLike,
    on_state: StateCallback,
) -> threading.Thread:
    """Lance l'extraction des images d'un EPUB dans un thread."""
    logger.debug(f"Démarrage du Extract Task pour {epub_path}.")

    def operation(on_progress):
        service.extract_images(epub_path, output_dir, on_progress=on_progress)

    return _start(_run_operation, ("Extract", operation, output_dir, on_state))


# --- TÂCHE DE COMPRESSION ---


def start_compress_task(
    service: "AlbumService",
    epub_path: PathLike,
    destination: PathLike,
    on_state: StateCallback,
    settings: Optional[CompressionSettings] = None,
) -> threading.Thread:
    """Lance la recompression d'un EPUB dans un thread."""
    logger.debug(f"Démarrage du Compress Task pour {epub_path}.")

    def operation(on_progress):
        service.compress_epub(epub_path, destination, settings=settings, on_progress=on_progress)

    return _start(_run_operation, ("Compress", operation, destination, on_state))


# --- TÂCHE DE CONVERSION PAR LOT ---


def start_batch_task(
    service: "AlbumService",
    folders: List["FolderItem"],
    output_dir: PathLike,
    on_state: StateCallback,
    double_page: bool = False,
) -> threading.Thread:
    """Lance la conversion par lot dans un thread."""
    logger.debug(f"Démarrage du Batch Task pour {len(folders)} dossiers.")

    def operation(on_progress):
        service.convert_folders(folders, output_dir, double_page=double_page, on_progress=on_progress)

    return _start(_run_operation, ("Batch", operation, output_dir, on_state))

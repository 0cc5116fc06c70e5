# epub_album/src/epub_album/cli.py
"""
Logique pour le mode ligne de commande.

Utilise AlbumService pour réutiliser la logique du moteur EPUB.
"""

import argparse
import logging
from pathlib import Path
from typing import List, Optional

from . import config
from .core.album_service import AlbumService
from .core.batch import ConversionStatus, FolderItem
from .core.epub.extractor import EpubSummary
from .core.file_utils import find_images_in_folder, format_file_size
from .core.models import CompressionFormat, CompressionSettings, PackageMetadata, RecompressionReport

logger = logging.getLogger(__name__)


def print_progress(fraction: float, message: str):
    """Affiche la progression sur la console."""
    print(f"[{int(fraction * 100):3d}%] {message}")


def _collect_images(inputs: List[str]) -> List[Path]:
    """Développe les dossiers passés en argument en leurs images triées."""
    images: List[Path] = []
    for item in inputs:
        path = Path(item)
        if path.is_dir():
            images.extend(find_images_in_folder(path))
        else:
            images.append(path)
    return images


def cli_create(
    output: str,
    inputs: List[str],
    title: Optional[str] = None,
    author: Optional[str] = None,
    language: Optional[str] = None,
    identifier: Optional[str] = None,
    double_page: bool = False,
    service: Optional[AlbumService] = None,
) -> Path:
    """
    Crée un EPUB à partir d'images (fichiers ou dossiers).

    Returns:
        Chemin de l'EPUB produit
    """
    service = service or AlbumService()
    images = _collect_images(inputs)
    logger.info(f"CLI mode - creating {output} from {len(images)} image(s)")
    metadata = PackageMetadata.create(
        identifier=identifier,
        title=title,
        author=author,
        language=language,
        double_page=double_page,
    )
    result = service.create_epub(images, output, metadata=metadata, on_progress=print_progress)
    print(f"\nEPUB créé: {result} ({len(images)} pages)")
    return result


def cli_extract(epub: str, output_dir: str, service: Optional[AlbumService] = None) -> List[Path]:
    """Extrait les images d'un EPUB vers un dossier."""
    service = service or AlbumService()
    written = service.extract_images(epub, output_dir, on_progress=print_progress)
    print(f"\nImages extraites: {len(written)} -> {output_dir}")
    return written


def cli_info(epub: str, service: Optional[AlbumService] = None) -> EpubSummary:
    """Affiche le résumé d'un EPUB."""
    service = service or AlbumService()
    summary = service.describe(epub)
    print_summary(summary)
    return summary


def cli_compress(
    epub: str,
    output: str,
    quality: float = config.DEFAULT_QUALITY,
    fmt: str = config.DEFAULT_FORMAT,
    service: Optional[AlbumService] = None,
) -> RecompressionReport:
    """Recompresse les images d'un EPUB."""
    service = service or AlbumService()
    settings = CompressionSettings(quality=quality, format=CompressionFormat.parse(fmt))
    report = service.compress_epub(epub, output, settings=settings, on_progress=print_progress)
    print_report(report)
    return report


def cli_estimate(
    epub: str,
    quality: float = config.DEFAULT_QUALITY,
    fmt: str = config.DEFAULT_FORMAT,
    service: Optional[AlbumService] = None,
) -> int:
    """Affiche la taille estimée après recompression."""
    service = service or AlbumService()
    settings = CompressionSettings(quality=quality, format=CompressionFormat.parse(fmt))
    original, estimated = service.estimate_size(epub, settings)
    print(f"Taille originale: {format_file_size(original)}")
    print(
        f"Taille estimée ({settings.format.value}, {settings.quality_percentage}%): "
        f"{format_file_size(estimated)}"
    )
    return estimated


def cli_batch(
    source_dir: str,
    output_dir: Optional[str] = None,
    double_page: bool = False,
    language: Optional[str] = None,
    service: Optional[AlbumService] = None,
) -> List[FolderItem]:
    """Convertit chaque sous-dossier d'images en EPUB."""
    service = service or AlbumService()
    folders = service.scan_folders(source_dir)
    if not folders:
        print("Aucun dossier contenant des images.")
        return []
    logger.info(f"CLI mode - batch converting {len(folders)} folder(s) from {source_dir}")
    service.convert_folders(
        folders,
        output_dir or source_dir,
        double_page=double_page,
        language=language,
        on_progress=print_progress,
    )
    print_batch_summary(folders)
    return folders


def print_summary(summary: EpubSummary):
    meta = summary.metadata
    print(f"\n=== {summary.path.name} ===")
    print(f"  Titre: {meta.title}")
    print(f"  Auteur: {meta.author}")
    print(f"  Langue: {meta.language}")
    print(f"  Identifiant: {meta.identifier}")
    if meta.modified:
        print(f"  Modifié: {meta.modified}")
    print(f"  Double page: {'oui' if meta.double_page else 'non'}")
    print(f"  Images: {summary.image_count}")
    if summary.reader_compatible:
        print(f"  Lisible par ebooklib: oui ({summary.spine_length} pages)")
    else:
        print("  Lisible par ebooklib: non")


def print_report(report: RecompressionReport):
    """Affiche un résumé de la recompression."""
    print("\n=== Résumé de la compression ===")
    print(f"Images converties: {len(report.converted)}")
    print(f"Images ignorées: {len(report.skipped)}")
    print(
        f"Taille: {format_file_size(report.original_size)} -> "
        f"{format_file_size(report.final_size)}"
    )
    for outcome in report.skipped:
        print(f"  {outcome.path}: {outcome.reason}")


def print_batch_summary(folders: List[FolderItem]):
    print("\n=== Résumé de la conversion ===")
    completed = sum(1 for f in folders if f.status is ConversionStatus.COMPLETED)
    print(f"Dossiers convertis: {completed}/{len(folders)}")
    for folder in folders:
        if folder.status is ConversionStatus.FAILED:
            print(f"  {folder.name}: {folder.reason}")


def _quality(value: str) -> float:
    quality = float(value)
    if not 0.0 <= quality <= 1.0:
        raise argparse.ArgumentTypeError("quality must be between 0.0 and 1.0")
    return quality


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="epub-album",
        description="Crée, extrait et recompresse des EPUB d'images",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Logs détaillés")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("create", help="Créer un EPUB à partir d'images")
    p.add_argument("output", help="Fichier EPUB à produire")
    p.add_argument("images", nargs="+", help="Images ou dossiers d'images, dans l'ordre")
    p.add_argument("--title")
    p.add_argument("--author")
    p.add_argument("--language")
    p.add_argument("--identifier")
    p.add_argument("--double-page", action="store_true", help="Mode double page (paysage)")

    p = sub.add_parser("extract", help="Extraire les images d'un EPUB")
    p.add_argument("epub")
    p.add_argument("output_dir")

    p = sub.add_parser("info", help="Afficher les métadonnées d'un EPUB")
    p.add_argument("epub")

    for name, help_text in (
        ("compress", "Recompresser les images d'un EPUB"),
        ("estimate", "Estimer la taille après recompression"),
    ):
        p = sub.add_parser(name, help=help_text)
        p.add_argument("epub")
        if name == "compress":
            p.add_argument("output")
        p.add_argument("-q", "--quality", type=_quality, default=config.DEFAULT_QUALITY)
        p.add_argument(
            "-f",
            "--format",
            dest="fmt",
            choices=[f.value for f in CompressionFormat],
            default=config.DEFAULT_FORMAT,
        )

    p = sub.add_parser("batch", help="Un EPUB par sous-dossier d'images")
    p.add_argument("source_dir")
    p.add_argument("-o", "--output-dir")
    p.add_argument("--double-page", action="store_true")
    p.add_argument("--language")

    return parser


def run_command(args: argparse.Namespace, service: Optional[AlbumService] = None):
    """Exécute la sous-commande décrite par ``args``."""
    if args.command == "create":
        return cli_create(
            args.output,
            args.images,
            title=args.title,
            author=args.author,
            language=args.language,
            identifier=args.identifier,
            double_page=args.double_page,
            service=service,
        )
    if args.command == "extract":
        return cli_extract(args.epub, args.output_dir, service=service)
    if args.command == "info":
        return cli_info(args.epub, service=service)
    if args.command == "compress":
        return cli_compress(args.epub, args.output, args.quality, args.fmt, service=service)
    if args.command == "estimate":
        return cli_estimate(args.epub, args.quality, args.fmt, service=service)
    if args.command == "batch":
        return cli_batch(
            args.source_dir,
            args.output_dir,
            double_page=args.double_page,
            language=args.language,
            service=service,
        )
    raise ValueError(f"Unknown command: {args.command}")

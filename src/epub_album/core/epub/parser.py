# epub_album/src/epub_album/core/epub/parser.py
"""
Module d'analyse d'un paquet EPUB décompressé.

Responsabilité unique: localiser le document racine (OPF) via container.xml,
puis en extraire les entrées d'images du manifeste et les métadonnées.

Toutes les requêtes XPath utilisent local-name() pour ignorer les préfixes
d'espaces de noms, qui varient d'un producteur à l'autre.
"""

import logging
from pathlib import Path, PurePosixPath
from typing import List, Optional, Union
from urllib.parse import unquote

from lxml import etree

from ...config import CONTAINER_PATH, DEFAULT_LANGUAGE, DEFAULT_ROOTFILE_PATH, UNKNOWN_AUTHOR, UNKNOWN_TITLE
from ..errors import InvalidPackageStructure, NoImagesFound
from ..models import PackageMetadata

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def _parse_xml(path: PathLike) -> etree._ElementTree:
    parser = etree.XMLParser(resolve_entities=False, no_network=True)
    return etree.parse(str(path), parser)


def _first_text(tree: etree._ElementTree, xpath: str) -> Optional[str]:
    nodes = tree.xpath(xpath)
    if not nodes:
        return None
    text = "".join(nodes[0].itertext()).strip()
    return text or None


def locate_root_document(unpacked_tree: PathLike) -> Path:
    """
    Trouve le document racine (OPF) d'un paquet décompressé.

    Lit l'attribut full-path du premier élément rootfile de
    META-INF/container.xml. Repli sur OEBPS/content.opf si le fichier est
    absent, mal formé ou ne contient pas l'élément.

    Args:
        unpacked_tree: Racine du paquet décompressé

    Returns:
        Chemin du document racine
    """
    unpacked_tree = Path(unpacked_tree)
    container = unpacked_tree / CONTAINER_PATH
    fallback = unpacked_tree / DEFAULT_ROOTFILE_PATH

    try:
        tree = _parse_xml(container)
    except (OSError, etree.XMLSyntaxError):
        logger.info("container.xml missing or unreadable, using %s", DEFAULT_ROOTFILE_PATH)
        return fallback

    rootfiles = tree.xpath("//*[local-name()='rootfile']")
    full_path = rootfiles[0].get("full-path") if rootfiles else None
    if not full_path:
        logger.info("No rootfile declared in container.xml, using %s", DEFAULT_ROOTFILE_PATH)
        return fallback

    candidate = unpacked_tree / PurePosixPath(full_path)
    if not is_inside(candidate, unpacked_tree):
        logger.warning("rootfile %s points outside the package, using %s", full_path, DEFAULT_ROOTFILE_PATH)
        return fallback
    return candidate


def is_inside(path: PathLike, root: PathLike) -> bool:
    """Vrai si ``path`` (liens résolus) reste sous ``root``."""
    return Path(path).resolve().is_relative_to(Path(root).resolve())


def load_root_document(root_document: PathLike) -> etree._ElementTree:
    """Charge le document OPF ou lève InvalidPackageStructure."""
    try:
        return _parse_xml(root_document)
    except (OSError, etree.XMLSyntaxError) as e:
        raise InvalidPackageStructure(f"unreadable package document {root_document}") from e


def list_image_manifest_entries(root_document: PathLike) -> List[str]:
    """
    Liste les href des items du manifeste dont le media-type commence par image/.

    Args:
        root_document: Chemin du document OPF

    Returns:
        Les href, dans l'ordre du document

    Raises:
        InvalidPackageStructure: Si l'OPF est illisible
        NoImagesFound: Si aucune image n'est déclarée
    """
    tree = load_root_document(root_document)
    nodes = tree.xpath("//*[local-name()='item'][starts-with(@media-type, 'image/')]")
    hrefs = [node.get("href") for node in nodes if node.get("href")]
    if not hrefs:
        raise NoImagesFound(f"no image item in {Path(root_document).name}")
    logger.debug("Found %d image item(s) in manifest", len(hrefs))
    return hrefs


def read_metadata(root_document: PathLike) -> PackageMetadata:
    """
    Extrait les métadonnées du document OPF.

    Chaque champ a sa propre valeur par défaut; un champ absent n'est jamais
    une erreur.
    """
    tree = load_root_document(root_document)

    layout = _first_text(tree, "//*[local-name()='meta'][@property='rendition:layout']")

    return PackageMetadata(
        identifier=_first_text(tree, "//*[local-name()='identifier']") or "",
        title=_first_text(tree, "//*[local-name()='title']") or UNKNOWN_TITLE,
        author=_first_text(tree, "//*[local-name()='creator']") or UNKNOWN_AUTHOR,
        language=_first_text(tree, "//*[local-name()='language']") or DEFAULT_LANGUAGE,
        modified=_first_text(tree, "//*[local-name()='meta'][@property='dcterms:modified']") or "",
        double_page=layout == "pre-paginated",
    )


def resolve_href(root_document: PathLike, href: str, package_root: PathLike) -> Path:
    """
    Résout un href du manifeste par rapport au dossier du document OPF.

    Raises:
        InvalidPackageStructure: Si le chemin obtenu sort du paquet décompressé
    """
    relative = PurePosixPath(unquote(href.split("#", 1)[0]))
    resolved = Path(root_document).parent / relative
    if not is_inside(resolved, package_root):
        raise InvalidPackageStructure(f"manifest href outside the package: {href}")
    return resolved

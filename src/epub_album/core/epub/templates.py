# epub_album/src/epub_album/core/epub/templates.py
"""
Module de génération des documents EPUB.

Responsabilité unique: produire le texte de container.xml, content.opf,
toc.ncx et des pages XHTML à partir des métadonnées et de la liste d'images.
Fonctions pures, sans accès au système de fichiers.
"""

from typing import List, Sequence
from xml.sax.saxutils import escape

from ...config import COVER_IMAGE_ID, DEFAULT_ROOTFILE_PATH, DOUBLE_PAGE_VIEWPORT, IMAGES_DIR, TEXT_DIR
from ..models import ImageAsset, ManifestEntry, PackageMetadata

_XML_ENTITIES = {'"': "&quot;", "'": "&apos;"}

MIME_TYPES = {
    "png": "image/png",
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "webp": "image/webp",
    "gif": "image/gif",
}


def xml_escape(value: str) -> str:
    """Échappe les cinq entités XML prédéfinies."""
    return escape(str(value), _XML_ENTITIES)


def mime_type_for_extension(ext: str) -> str:
    return MIME_TYPES.get(ext.lower().lstrip("."), "application/octet-stream")


def image_id_for_index(index: int) -> str:
    if index == 0:
        return COVER_IMAGE_ID
    return f"image{index + 1:03d}"


def page_id_for_index(index: int) -> str:
    return f"page{index + 1:03d}"


def manifest_entries(images: Sequence[ImageAsset]) -> List[ManifestEntry]:
    """
    Dérive les entrées de manifeste (image + page) de chaque image, dans l'ordre.

    Args:
        images: Images ordonnées

    Returns:
        Une entrée par image; l'entrée d'indice 0 porte l'identifiant de couverture
    """
    entries = []
    for index, image in enumerate(images):
        image_id = image_id_for_index(index)
        page_id = page_id_for_index(index)
        entries.append(
            ManifestEntry(
                image_id=image_id,
                image_href=f"{IMAGES_DIR}/{image_id}.{image.extension}",
                media_type=mime_type_for_extension(image.extension),
                page_id=page_id,
                page_href=f"{TEXT_DIR}/{page_id}.xhtml",
                page_number=index + 1,
            )
        )
    return entries


def container_xml() -> str:
    return (
        '<?xml version="1.0" encoding="UTF-8"?>\n'
        '<container version="1.0" xmlns="urn:oasis:names:tc:opendocument:xmlns:container">\n'
        "    <rootfiles>\n"
        f'        <rootfile full-path="{DEFAULT_ROOTFILE_PATH}" '
        'media-type="application/oebps-package+xml"/>\n'
        "    </rootfiles>\n"
        "</container>\n"
    )


def _rendition_metadata(metadata: PackageMetadata) -> List[str]:
    # Chaque image est déjà une double page: pas d'appariement par le lecteur
    if not metadata.double_page:
        return []
    return [
        '<meta property="rendition:layout">pre-paginated</meta>',
        '<meta property="rendition:spread">none</meta>',
        '<meta property="rendition:orientation">landscape</meta>',
    ]


def content_opf(metadata: PackageMetadata, images: Sequence[ImageAsset]) -> str:
    """Document de paquet OPF 3.0 (métadonnées, manifeste, spine)."""
    entries = manifest_entries(images)

    meta_lines = [
        f'<dc:identifier id="BookId">{xml_escape(metadata.identifier)}</dc:identifier>',
        f"<dc:title>{xml_escape(metadata.title)}</dc:title>",
        f"<dc:creator>{xml_escape(metadata.author)}</dc:creator>",
        f"<dc:language>{xml_escape(metadata.language)}</dc:language>",
        f'<meta property="dcterms:modified">{xml_escape(metadata.modified)}</meta>',
        f'<meta name="cover" content="{COVER_IMAGE_ID}"/>',
    ]
    meta_lines.extend(_rendition_metadata(metadata))

    manifest_lines = ['<item id="ncx" href="toc.ncx" media-type="application/x-dtbncx+xml"/>']
    for entry in entries:
        properties = ' properties="cover-image"' if entry.is_cover else ""
        manifest_lines.append(
            f'<item id="{entry.image_id}" href="{xml_escape(entry.image_href)}" '
            f'media-type="{entry.media_type}"{properties}/>'
        )
        manifest_lines.append(
            f'<item id="{entry.page_id}" href="{entry.page_href}" '
            'media-type="application/xhtml+xml"/>'
        )

    spine_lines = [f'<itemref idref="{entry.page_id}"/>' for entry in entries]

    return (
        '<?xml version="1.0" encoding="UTF-8"?>\n'
        '<package version="3.0" xmlns="http://www.idpf.org/2007/opf" unique-identifier="BookId">\n'
        '    <metadata xmlns:dc="http://purl.org/dc/elements/1.1/">\n'
        + "".join(f"        {line}\n" for line in meta_lines)
        + "    </metadata>\n"
        "    <manifest>\n"
        + "".join(f"        {line}\n" for line in manifest_lines)
        + "    </manifest>\n"
        '    <spine toc="ncx">\n'
        + "".join(f"        {line}\n" for line in spine_lines)
        + "    </spine>\n"
        "</package>\n"
    )


def toc_ncx(metadata: PackageMetadata, page_count: int) -> str:
    """Table des matières NCX 2005-1, un navPoint par page."""
    nav_points = []
    for index in range(page_count):
        page_id = page_id_for_index(index)
        play_order = index + 1
        nav_points.append(
            f'        <navPoint id="{page_id}" playOrder="{play_order}">\n'
            f"            <navLabel><text>Page {play_order}</text></navLabel>\n"
            f'            <content src="{TEXT_DIR}/{page_id}.xhtml"/>\n'
            "        </navPoint>\n"
        )

    return (
        '<?xml version="1.0" encoding="UTF-8"?>\n'
        '<ncx xmlns="http://www.daisy.org/z3986/2005/ncx/" version="2005-1">\n'
        "    <head>\n"
        f'        <meta name="dtb:uid" content="{xml_escape(metadata.identifier)}"/>\n'
        '        <meta name="dtb:depth" content="1"/>\n'
        "    </head>\n"
        f"    <docTitle><text>{xml_escape(metadata.title)}</text></docTitle>\n"
        "    <navMap>\n" + "".join(nav_points) + "    </navMap>\n"
        "</ncx>\n"
    )


_SINGLE_PAGE_STYLE = """
        body {
            margin: 0;
            padding: 0;
            text-align: center;
        }
        img {
            max-width: 100%;
            max-height: 100vh;
            display: block;
            margin: 0 auto;
        }
"""

_DOUBLE_PAGE_STYLE = """
        body {
            margin: 0;
            padding: 0;
            text-align: center;
            background-color: #000;
        }
        img {
            width: 100%;
            height: 100%;
            object-fit: contain;
        }
"""


def image_page_xhtml(image_file_name: str, page_number: int, is_double_page: bool = False) -> str:
    """
    Page XHTML affichant une seule image.

    Args:
        image_file_name: Nom du fichier image dans le dossier Images
        page_number: Numéro de page (à partir de 1)
        is_double_page: Profil double page (viewport fixe, fond noir)

    Returns:
        Le document XHTML
    """
    viewport = ""
    if is_double_page:
        width, height = DOUBLE_PAGE_VIEWPORT
        viewport = f'\n    <meta name="viewport" content="width={width}, height={height}"/>'
    style = _DOUBLE_PAGE_STYLE if is_double_page else _SINGLE_PAGE_STYLE

    return (
        '<?xml version="1.0" encoding="UTF-8"?>\n'
        "<!DOCTYPE html>\n"
        '<html xmlns="http://www.w3.org/1999/xhtml" xmlns:epub="http://www.idpf.org/2007/ops">\n'
        "<head>\n"
        f"    <title>Page {page_number}</title>{viewport}\n"
        f"    <style>{style}    </style>\n"
        "</head>\n"
        "<body>\n"
        f'    <img src="../{IMAGES_DIR}/{xml_escape(image_file_name)}" alt="Page {page_number}"/>\n'
        "</body>\n"
        "</html>\n"
    )

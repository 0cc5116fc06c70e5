# tests/core/test_epub_parser.py
"""
Tests pour le module core.epub.parser.
"""

import pytest

from epub_album.core.epub import parser
from epub_album.core.errors import InvalidPackageStructure, NoImagesFound

PREFIXED_OPF = """<?xml version="1.0" encoding="UTF-8"?>
<opf:package xmlns:opf="http://www.idpf.org/2007/opf" version="3.0">
  <opf:metadata xmlns:dc="http://purl.org/dc/elements/1.1/">
    <dc:identifier>isbn-42</dc:identifier>
    <dc:title>Vacances</dc:title>
    <dc:creator>Alex</dc:creator>
    <dc:language>de</dc:language>
    <opf:meta property="dcterms:modified">2023-07-01T10:00:00Z</opf:meta>
    <opf:meta property="rendition:layout">pre-paginated</opf:meta>
  </opf:metadata>
  <opf:manifest>
    <opf:item id="ncx" href="toc.ncx" media-type="application/x-dtbncx+xml"/>
    <opf:item id="i1" href="img/first.jpg" media-type="image/jpeg"/>
    <opf:item id="p1" href="Text/p1.xhtml" media-type="application/xhtml+xml"/>
    <opf:item id="i2" href="img/second%20page.png" media-type="image/png"/>
  </opf:manifest>
</opf:package>
"""

BARE_OPF = """<?xml version="1.0" encoding="UTF-8"?>
<package xmlns="http://www.idpf.org/2007/opf" version="3.0">
  <metadata/>
  <manifest>
    <item id="p1" href="p1.xhtml" media-type="application/xhtml+xml"/>
  </manifest>
</package>
"""

CONTAINER = """<?xml version="1.0"?>
<container version="1.0" xmlns="urn:oasis:names:tc:opendocument:xmlns:container">
  <rootfiles>
    <rootfile full-path="{path}" media-type="application/oebps-package+xml"/>
  </rootfiles>
</container>
"""


def _write(path, text):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


class TestLocateRootDocument:
    """Tests pour locate_root_document."""

    def test_reads_container(self, tmp_path):
        """Test lecture du full-path dans container.xml."""
        _write(tmp_path / "META-INF" / "container.xml", CONTAINER.format(path="book/package.opf"))
        assert parser.locate_root_document(tmp_path) == tmp_path / "book" / "package.opf"

    def test_fallback_when_missing(self, tmp_path):
        """Test repli si container.xml absent."""
        assert parser.locate_root_document(tmp_path) == tmp_path / "OEBPS" / "content.opf"

    def test_fallback_when_malformed(self, tmp_path):
        """Test repli si container.xml mal formé."""
        _write(tmp_path / "META-INF" / "container.xml", "<container><rootfiles>")
        assert parser.locate_root_document(tmp_path) == tmp_path / "OEBPS" / "content.opf"

    def test_fallback_without_rootfile(self, tmp_path):
        """Test repli si aucun élément rootfile."""
        _write(tmp_path / "META-INF" / "container.xml", "<container><rootfiles/></container>")
        assert parser.locate_root_document(tmp_path) == tmp_path / "OEBPS" / "content.opf"

    def test_prefixed_container(self, tmp_path):
        """Test élément rootfile avec préfixe d'espace de noms."""
        _write(
            tmp_path / "META-INF" / "container.xml",
            '<c:container xmlns:c="urn:oasis:names:tc:opendocument:xmlns:container">'
            '<c:rootfiles><c:rootfile full-path="pkg/book.opf"/></c:rootfiles></c:container>',
        )
        assert parser.locate_root_document(tmp_path) == tmp_path / "pkg" / "book.opf"

    def test_container_without_namespace(self, tmp_path):
        """Test container.xml sans espace de noms."""
        _write(
            tmp_path / "META-INF" / "container.xml",
            '<container><rootfiles><rootfile full-path="content/x.opf"/></rootfiles></container>',
        )
        assert parser.locate_root_document(tmp_path) == tmp_path / "content" / "x.opf"

    def test_fallback_when_outside_package(self, tmp_path):
        """Test repli si full-path désigne un fichier hors du paquet."""
        package = tmp_path / "package"
        victim = _write(tmp_path / "victim.opf", BARE_OPF)
        _write(package / "META-INF" / "container.xml", CONTAINER.format(path=victim.as_posix()))
        assert parser.locate_root_document(package) == package / "OEBPS" / "content.opf"

    def test_fallback_when_parent_segments_escape(self, tmp_path):
        """Test repli si full-path remonte au-dessus du paquet."""
        package = tmp_path / "package"
        _write(package / "META-INF" / "container.xml", CONTAINER.format(path="../victim.opf"))
        assert parser.locate_root_document(package) == package / "OEBPS" / "content.opf"


class TestListImageManifestEntries:
    """Tests pour list_image_manifest_entries."""

    def test_prefixed_namespace(self, tmp_path):
        """Test préfixes d'espace de noms ignorés, ordre du document."""
        opf = _write(tmp_path / "content.opf", PREFIXED_OPF)
        assert parser.list_image_manifest_entries(opf) == [
            "img/first.jpg",
            "img/second%20page.png",
        ]

    def test_no_images(self, tmp_path):
        """Test manifeste sans image."""
        opf = _write(tmp_path / "content.opf", BARE_OPF)
        with pytest.raises(NoImagesFound):
            parser.list_image_manifest_entries(opf)

    def test_unreadable_document(self, tmp_path):
        """Test document racine absent."""
        with pytest.raises(InvalidPackageStructure):
            parser.list_image_manifest_entries(tmp_path / "missing.opf")


class TestReadMetadata:
    """Tests pour read_metadata."""

    def test_prefixed_fields(self, tmp_path):
        """Test extraction des champs avec préfixes."""
        meta = parser.read_metadata(_write(tmp_path / "content.opf", PREFIXED_OPF))
        assert meta.identifier == "isbn-42"
        assert meta.title == "Vacances"
        assert meta.author == "Alex"
        assert meta.language == "de"
        assert meta.modified == "2023-07-01T10:00:00Z"
        assert meta.double_page is True

    def test_defaults(self, tmp_path):
        """Test valeurs par défaut indépendantes."""
        meta = parser.read_metadata(_write(tmp_path / "content.opf", BARE_OPF))
        assert meta.identifier == ""
        assert meta.title == "Unknown"
        assert meta.author == "Unknown"
        assert meta.language == "en"
        assert meta.modified == ""
        assert meta.double_page is False


class TestResolveHref:
    """Tests pour resolve_href."""

    def test_relative_to_document(self, tmp_path):
        """Test résolution relative et décodage des %XX."""
        opf = tmp_path / "OEBPS" / "content.opf"
        resolved = parser.resolve_href(opf, "Images/my%20pic.png#frag", tmp_path)
        assert resolved == tmp_path / "OEBPS" / "Images" / "my pic.png"

    def test_parent_segments_inside_package(self, tmp_path):
        """Test ../ accepté tant que le chemin reste dans le paquet."""
        opf = tmp_path / "OEBPS" / "content.opf"
        resolved = parser.resolve_href(opf, "../Shared/cover.png", tmp_path)
        assert resolved.resolve() == (tmp_path / "Shared" / "cover.png").resolve()

    def test_parent_segments_escaping_package(self, tmp_path):
        """Test ../../ sortant du paquet refusé."""
        package = tmp_path / "package"
        opf = package / "OEBPS" / "content.opf"
        with pytest.raises(InvalidPackageStructure):
            parser.resolve_href(opf, "../../secret.txt", package)

    def test_absolute_href_rejected(self, tmp_path):
        """Test href absolu refusé."""
        package = tmp_path / "package"
        opf = package / "OEBPS" / "content.opf"
        outside = (tmp_path / "secret.txt").as_posix()
        with pytest.raises(InvalidPackageStructure):
            parser.resolve_href(opf, outside, package)

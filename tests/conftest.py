"""
Configuration pytest pour les tests storybook-converter.

Ce fichier contient les fixtures communes à tous les tests, en particulier
la fabrication de petits paquets EPUB décompressés dans tmp_path.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import pytest
from PIL import Image

from storybook_converter.logger import LogSession


def xhtml(body: str, title: str = "page") -> str:
    """Page XHTML complète autour d'un contenu de <body>."""
    return (
        '<?xml version="1.0" encoding="UTF-8"?>\n'
        '<html xmlns="http://www.w3.org/1999/xhtml">'
        f"<head><title>{title}</title></head><body>{body}</body></html>"
    )


CONTAINER_XML = """<?xml version="1.0" encoding="UTF-8"?>
<container version="1.0" xmlns="urn:oasis:names:tc:opendocument:xmlns:container">
  <rootfiles>
    <rootfile full-path="OEBPS/content.opf" media-type="application/oebps-package+xml"/>
  </rootfiles>
</container>
"""


@dataclass
class EpubBuilder:
    """
    Fabrique un paquet EPUB décompressé minimal.

    Les pages sont nommées chapter-1.xhtml, chapter-2.xhtml... (la première
    est la couverture). Les images sont des PNG unis aux dimensions demandées.
    """

    root: Path
    title: str = "What If?"
    language: str = "en"
    identifier: str = "urn:uuid:0000-what-if"
    modified: Optional[str] = "2020-01-15T10:00:00Z"
    description: str = "A story about curiosity."
    creators: list[tuple[str, Optional[str]]] = field(default_factory=list)
    contributors: list[tuple[str, Optional[str]]] = field(default_factory=list)
    publisher: Optional[str] = None
    pages: list[str] = field(default_factory=list)
    images: dict[str, tuple[int, int]] = field(default_factory=dict)
    timing_files: dict[int, str] = field(default_factory=dict)
    audio_files: list[str] = field(default_factory=list)
    extra_metadata: str = ""

    @staticmethod
    def page_name(index: int) -> str:
        return f"chapter-{index + 1}.xhtml"

    def _metadata(self) -> str:
        parts = [
            f'<dc:identifier id="bookid">{self.identifier}</dc:identifier>',
            f"<dc:title>{self.title}</dc:title>",
            f"<dc:language>{self.language}</dc:language>",
            f"<dc:description>{self.description}</dc:description>",
        ]
        if self.modified:
            parts.append(f'<meta property="dcterms:modified">{self.modified}</meta>')
        for name, role in self.creators:
            role_attr = f' opf:role="{role}"' if role else ""
            parts.append(f"<dc:creator{role_attr}>{name}</dc:creator>")
        for name, role in self.contributors:
            role_attr = f' opf:role="{role}"' if role else ""
            parts.append(f"<dc:contributor{role_attr}>{name}</dc:contributor>")
        if self.publisher:
            parts.append(f"<dc:publisher>{self.publisher}</dc:publisher>")
        parts.append(self.extra_metadata)
        return "\n    ".join(parts)

    def _manifest(self) -> str:
        items = []
        for index in range(len(self.pages)):
            overlay = f' media-overlay="smil{index}"' if index in self.timing_files else ""
            items.append(
                f'<item id="page{index}" href="{self.page_name(index)}" '
                f'media-type="application/xhtml+xml"{overlay}/>'
            )
        for index in self.timing_files:
            items.append(
                f'<item id="smil{index}" href="chapter-{index + 1}.smil" media-type="application/smil+xml"/>'
            )
        for number, name in enumerate(self.images):
            items.append(f'<item id="img{number}" href="images/{name}" media-type="image/png"/>')
        for number, name in enumerate(self.audio_files):
            items.append(f'<item id="audio{number}" href="audio/{name}" media-type="audio/mpeg"/>')
        items.append('<item id="nav" href="nav.xhtml" media-type="application/xhtml+xml" properties="nav"/>')
        return "\n    ".join(items)

    def build(self) -> Path:
        content = self.root / "OEBPS"
        (self.root / "META-INF").mkdir(parents=True, exist_ok=True)
        (content / "images").mkdir(parents=True, exist_ok=True)
        (content / "audio").mkdir(parents=True, exist_ok=True)
        (self.root / "META-INF" / "container.xml").write_text(CONTAINER_XML, encoding="utf-8")

        opf = f"""<?xml version="1.0" encoding="UTF-8"?>
<package xmlns="http://www.idpf.org/2007/opf" version="3.0" unique-identifier="bookid">
  <metadata xmlns:dc="http://purl.org/dc/elements/1.1/" xmlns:opf="http://www.idpf.org/2007/opf">
    {self._metadata()}
  </metadata>
  <manifest>
    {self._manifest()}
  </manifest>
</package>
"""
        (content / "content.opf").write_text(opf, encoding="utf-8")
        (content / "nav.xhtml").write_text(xhtml("<nav/>"), encoding="utf-8")
        for index, body in enumerate(self.pages):
            (content / self.page_name(index)).write_text(xhtml(body), encoding="utf-8")
        for index, smil in self.timing_files.items():
            (content / f"chapter-{index + 1}.smil").write_text(smil, encoding="utf-8")
        for name, size in self.images.items():
            Image.new("RGB", size, color=(200, 120, 40)).save(content / "images" / name)
        for name in self.audio_files:
            (content / "audio" / name).write_bytes(b"ID3" + name.encode() * 64)
        return self.root


def smil(page_name: str, segments: list[tuple[str, str, float, float]]) -> str:
    """Fichier SMIL : (ancre, fichier audio, début, fin) par segment."""
    pars = "\n".join(
        f'<par><text src="{page_name}#{anchor}"/>'
        f'<audio src="audio/{audio}" clipBegin="{start}s" clipEnd="{end}s"/></par>'
        for anchor, audio, start, end in segments
    )
    return (
        '<?xml version="1.0" encoding="UTF-8"?>\n'
        '<smil xmlns="http://www.w3.org/ns/SMIL" version="3.0"><body><seq>'
        f"{pars}</seq></body></smil>"
    )


@pytest.fixture(autouse=True)
def isolated_logs(tmp_path):
    """Redirige les fichiers de log de la session vers un répertoire temporaire."""
    LogSession.reset(base_dir=tmp_path / "logs")
    yield
    LogSession.reset(base_dir=Path("logs"))


@pytest.fixture
def epub_builder(tmp_path):
    """
    Fixture fournissant un EpubBuilder dans un répertoire temporaire.

    Returns:
        EpubBuilder à compléter (pages, images...) puis à construire
    """
    return EpubBuilder(root=tmp_path / "book")


@pytest.fixture
def three_page_book(epub_builder):
    """Livre de trois pages : couverture, une page de contenu, une page de crédits."""
    epub_builder.creators = [("Hari Kumar Nair", "aut")]
    epub_builder.contributors = [("Hari Kumar Nair", "ill")]
    epub_builder.publisher = "Pratham Books"
    epub_builder.images = {"cover.png": (600, 800), "goat.png": (600, 800)}
    epub_builder.pages = [
        '<img src="images/cover.png" alt="cover"/><p>What If?</p>',
        '<img src="images/goat.png"/><p id="s1">The goat ate the <b>red</b> flower.</p>',
        '<div class="attrb-full">'
        "<p>This book was first published on StoryWeaver by Pratham Books. "
        "Story Attribution: This story: What If? is written by Hari Kumar Nair. "
        "© Pratham Books, 2015. Some rights reserved. Released under CC BY 4.0 license. "
        "Illustration Attributions: Cover page: A goat, by Hari Kumar Nair © Pratham Books, 2015. "
        "Some rights reserved. Released under CC BY 4.0 license.</p></div>",
    ]
    return epub_builder.build()

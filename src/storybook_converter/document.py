"""
Document converti : pages produites, division de données et assemblage final.

Les pages converties sont des valeurs immuables ajoutées une à une au
document ; l'assemblage dans le squelette HTML n'a lieu qu'une fois, à la
fin de la conversion du livre.
"""

import copy
from dataclasses import dataclass, field
from html import escape
from pathlib import Path
from typing import TYPE_CHECKING, Optional

from bs4 import BeautifulSoup, Tag

from .audio.splicer import AudioBinding
from .config import TemplateNames
from .credits.base import CreditRecord, ImageAttribution
from .logger import get_logger

if TYPE_CHECKING:
    from .htmlpage.templates import TemplateId

logger = get_logger(__name__)

RESOURCES_DIR = Path(__file__).resolve().parent / "resources"
PORTRAIT_CLASS = "A5Portrait"
LANDSCAPE_CLASS = "A5Landscape"
ANY_LANGUAGE = "*"


# ============================================================
# 🔹 Valeurs produites par la conversion des pages
# ============================================================
@dataclass(frozen=True)
class PageImage:
    src: str
    alt: str = ""


@dataclass(frozen=True)
class TextBlock:
    """
    Bloc de texte d'une page produite.

    Attributes:
        element_id: Identifiant de l'élément produit (uuid4)
        markup: Paragraphes normalisés du bloc
        anchors: Identifiants des éléments source (ancres de narration)
        audio: Audio associé, si le bloc est narré
    """

    element_id: str
    markup: str
    anchors: tuple[str, ...] = ()
    audio: Optional[AudioBinding] = None


@dataclass(frozen=True)
class ConvertedPage:
    """
    Page de contenu produite à partir d'une page source.

    Attributes:
        template_id: Page modèle utilisée
        page_number: Numéro de page produit (contigu à partir de 1)
        source_index: Index de la page source (0 = couverture)
        source_file: Fichier de la page source
        language: Code langue du livre
        page_id: Identifiant unique de la page (uuid4)
        images: Images conservées (au plus une par emplacement)
        text_blocks: Blocs de texte, un par emplacement
        video: Source de la vidéo conservée
    """

    template_id: "TemplateId"
    page_number: int
    source_index: int
    source_file: str
    language: str
    page_id: str
    images: tuple[PageImage, ...] = ()
    text_blocks: tuple[TextBlock, ...] = ()
    video: Optional[str] = None

    @property
    def audio_bindings(self) -> list[AudioBinding]:
        return [block.audio for block in self.text_blocks if block.audio is not None]


# ============================================================
# 🔹 Division de données
# ============================================================
@dataclass(frozen=True)
class DataEntry:
    markup: str
    attributes: tuple[tuple[str, str], ...] = ()


class DataDivision:
    """
    Dictionnaire champ x langue du document produit.

    Example:
        >>> data = DataDivision()
        >>> data.set_text("copyright", "Copyright © Pratham Books, 2015")
        >>> data.get("copyright")
        'Copyright © Pratham Books, 2015'
    """

    def __init__(self):
        self._entries: dict[tuple[str, str], DataEntry] = {}

    def set_markup(
        self, key: str, markup: str, lang: str = ANY_LANGUAGE, **attributes: str
    ) -> None:
        attrs = tuple((name.replace("_", "-"), value) for name, value in attributes.items() if value)
        self._entries[(key, lang)] = DataEntry(markup, attrs)

    def set_text(self, key: str, value: str, lang: str = ANY_LANGUAGE, **attributes: str) -> None:
        self.set_markup(key, escape(value, quote=False), lang, **attributes)

    def set_paragraph(self, key: str, value: str, lang: str = ANY_LANGUAGE) -> None:
        self.set_markup(key, f"<p>{escape(value, quote=False)}</p>", lang)

    def merge_attributes(
        self, key: str, attributes: dict[str, str], lang: str = ANY_LANGUAGE
    ) -> None:
        entry = self._entries.get((key, lang))
        if entry is None:
            return
        merged = dict(entry.attributes)
        merged.update({name: value for name, value in attributes.items() if value})
        self._entries[(key, lang)] = DataEntry(entry.markup, tuple(merged.items()))

    def get(self, key: str, lang: str = ANY_LANGUAGE) -> Optional[str]:
        entry = self._entries.get((key, lang))
        return entry.markup if entry else None

    def attributes(self, key: str, lang: str = ANY_LANGUAGE) -> dict[str, str]:
        entry = self._entries.get((key, lang))
        return dict(entry.attributes) if entry else {}

    def lookup(self, key: str, language: str) -> Optional[DataEntry]:
        """Entrée dans la langue demandée, sinon l'entrée sans langue."""
        return self._entries.get((key, language)) or self._entries.get((key, ANY_LANGUAGE))

    def items(self):
        return self._entries.items()

    def __contains__(self, key: tuple[str, str]) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)


@dataclass
class ConvertedDocument:
    """
    Document en cours de construction pour un livre.

    Les pages sont ajoutées dans l'ordre et ne sont plus modifiées.
    """

    title: str
    language: str
    landscape: bool = False
    rtl: bool = False
    pages: list[ConvertedPage] = field(default_factory=list)
    data: DataDivision = field(default_factory=DataDivision)

    def append_page(self, page: ConvertedPage) -> None:
        self.pages.append(page)

    @property
    def next_page_number(self) -> int:
        return len(self.pages) + 1

    @property
    def page_count(self) -> int:
        return len(self.pages)


# ============================================================
# 🔹 Assemblage
# ============================================================
def _fragment_children(markup: str) -> list:
    fragment = BeautifulSoup(markup, "html.parser")
    return [child.extract() for child in list(fragment.contents)]


def _replace_contents(tag: Tag, markup: str) -> None:
    tag.clear()
    for child in _fragment_children(markup):
        tag.append(child)


def _set_size_class(tag: Tag, landscape: bool) -> None:
    classes = [
        (LANDSCAPE_CLASS if landscape and name == PORTRAIT_CLASS else name)
        for name in tag.get("class", [])
    ]
    tag["class"] = classes


def _credit_attributes(record: Optional[CreditRecord]) -> dict[str, str]:
    if record is None:
        return {}
    attributes = {
        "data-creator": record.creator,
        "data-copyright": record.copyright,
        "data-license": record.license_abbreviation,
    }
    return {name: value for name, value in attributes.items() if value}


class DocumentAssembler:
    """
    Assemble un ConvertedDocument dans le squelette HTML à l'aide du
    catalogue des pages modèles.

    Example:
        >>> assembler = DocumentAssembler()
        >>> html = assembler.assemble(document, state.image_attributions, state.art_record)
    """

    def __init__(
        self,
        template_pages_path: Optional[Path] = None,
        skeleton_path: Optional[Path] = None,
    ):
        self.template_pages_path = template_pages_path or (
            RESOURCES_DIR / TemplateNames.Template_Pages_Document
        )
        self.skeleton_path = skeleton_path or (RESOURCES_DIR / TemplateNames.Book_Skeleton_Document)
        catalog = BeautifulSoup(Path(self.template_pages_path).read_text(encoding="utf-8"), "html.parser")
        self.templates: dict[str, Tag] = {
            str(tag["id"]): tag for tag in catalog.find_all("div", id=True, class_="page")
        }
        logger.debug(f"{len(self.templates)} pages modèles chargées")

    def template(self, template_id: "TemplateId") -> Tag:
        try:
            return self.templates[template_id.value]
        except KeyError:
            raise LookupError(f"Template page {template_id.value!r} missing from catalog") from None

    def assemble(
        self,
        document: ConvertedDocument,
        image_attributions: Optional[dict[int, ImageAttribution]] = None,
        art_record: Optional[CreditRecord] = None,
    ) -> str:
        """
        Produit le HTML final du document.

        Args:
            document: Document converti
            image_attributions: Crédits d'images par index de page source (0 = couverture)
            art_record: Crédit appliqué aux images sans crédit propre

        Returns:
            Document HTML complet
        """
        image_attributions = image_attributions or {}
        soup = BeautifulSoup(Path(self.skeleton_path).read_text(encoding="utf-8"), "html.parser")

        self._apply_cover_credits(document, image_attributions.get(0), art_record)
        if soup.title is not None:
            soup.title.string = document.title
        html = soup.find("html")
        if isinstance(html, Tag):
            html["lang"] = document.language

        self._fill_data_division(soup, document)
        self._fill_bound_fields(soup, document)

        container = soup.find(id="content-pages")
        for page in document.pages:
            element = self._render_page(soup, page, document, image_attributions, art_record)
            if isinstance(container, Tag):
                container.append(element)

        for page_div in soup.find_all("div", class_="page"):
            _set_size_class(page_div, document.landscape)
        return str(soup)

    def _apply_cover_credits(
        self,
        document: ConvertedDocument,
        attribution: Optional[ImageAttribution],
        art_record: Optional[CreditRecord],
    ) -> None:
        entry = document.data.lookup("coverImage", ANY_LANGUAGE)
        if entry is None:
            return
        record = attribution.record if attribution and attribution.record.creator else art_record
        attributes = _credit_attributes(record)
        if attribution and attribution.description:
            attributes["alt"] = attribution.description
            document.data.set_paragraph("coverImageDescription", attribution.description, document.language)
        document.data.merge_attributes("coverImage", attributes)

    def _fill_data_division(self, soup: BeautifulSoup, document: ConvertedDocument) -> None:
        division = soup.find(id="data-division")
        if not isinstance(division, Tag):
            return
        for (key, lang), entry in document.data.items():
            attrs = {"data-book": key, "lang": lang}
            attrs.update(dict(entry.attributes))
            tag = soup.new_tag("div", attrs=attrs)
            for child in _fragment_children(entry.markup):
                tag.append(child)
            division.append(tag)

    def _fill_bound_fields(self, soup: BeautifulSoup, document: ConvertedDocument) -> None:
        """Recopie les champs de la division de données dans les éléments [data-book] des couvertures."""
        division = soup.find(id="data-division")
        for element in soup.find_all(attrs={"data-book": True}):
            if isinstance(division, Tag) and division in element.parents:
                continue
            entry = document.data.lookup(str(element["data-book"]), document.language)
            if entry is None:
                continue
            image = element.find("img")
            if isinstance(image, Tag):
                image["src"] = entry.markup
                for name, value in entry.attributes:
                    image[name] = value
                if not image.get("alt"):
                    image["alt"] = entry.markup
            else:
                element["lang"] = document.language
                _replace_contents(element, entry.markup)

    def _render_page(
        self,
        soup: BeautifulSoup,
        page: ConvertedPage,
        document: ConvertedDocument,
        image_attributions: dict[int, ImageAttribution],
        art_record: Optional[CreditRecord],
    ) -> Tag:
        element = copy.copy(self.template(page.template_id))
        element["id"] = page.page_id
        element["data-page-number"] = str(page.page_number)
        element["data-template"] = page.template_id.value
        element["lang"] = page.language

        attribution = image_attributions.get(page.source_index)
        for slot, image in zip(element.select("div.image-container img"), page.images):
            slot["src"] = image.src
            slot["alt"] = image.alt or image.src
            record = art_record
            if attribution is not None:
                if attribution.description:
                    slot["alt"] = attribution.description
                if attribution.record.creator or attribution.record.copyright:
                    record = attribution.record
            for name, value in _credit_attributes(record).items():
                slot[name] = value

        for slot, block in zip(element.select("div.text-group"), page.text_blocks):
            slot.append(self._render_text_block(soup, block, page.language, document.rtl))

        source = element.select_one("div.video-container video source")
        if source is not None and page.video:
            source["src"] = page.video
        return element

    def _render_text_block(
        self, soup: BeautifulSoup, block: TextBlock, language: str, rtl: bool
    ) -> Tag:
        attrs = {"class": "text-block", "id": block.element_id, "lang": language}
        if rtl:
            attrs["dir"] = "rtl"
        if block.audio is not None:
            attrs["data-audio-file"] = block.audio.output_file
            attrs["data-audio-hash"] = block.audio.content_hash
            attrs["data-duration"] = f"{block.audio.duration:.3f}"
            attrs["data-audio-split"] = "true" if block.audio.split else "false"
        tag = soup.new_tag("div", attrs=attrs)
        for child in _fragment_children(block.markup):
            tag.append(child)
        return tag

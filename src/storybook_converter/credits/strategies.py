"""
Règles d'extraction des crédits, appliquées dans l'ordre du registre.

1. Bloc structuré (en-têtes anglais ou français de la plateforme de partage)
2. Copyright en texte libre
3. Copyright implicite de l'éditeur
4. Licence du livre
5. Copyright des illustrations (après la licence, dont il dépend)
"""

import re
from dataclasses import dataclass
from html import escape
from typing import TYPE_CHECKING, Optional

from ..logger import get_logger
from ..package.catalog import year_or_now
from .base import BookContext, CreditRecord, CreditsStrategy, CreditState, ImageAttribution
from .licenses import clean_abbreviation, find_license_in_catalog, find_license_in_text

if TYPE_CHECKING:
    from .sentences import CreditSentenceRenderer

logger = get_logger(__name__)

YEAR = r"[12][09][0-9][0-9]"
COPYRIGHT_PATTERN = re.compile(rf"(©[^0-9]* ({YEAR}))")


# ============================================================
# 🔹 Bloc structuré
# ============================================================
@dataclass(frozen=True)
class StructuredHeaders:
    """
    En-têtes et motifs d'un bloc de crédits structuré, pour une langue.

    Attributes:
        language: Langue du bloc
        story: En-tête de l'attribution de l'histoire
        other: En-tête des autres crédits
        illustration: En-têtes possibles des attributions d'illustrations
        disclaimer: En-tête de l'avertissement final
        page_label: Motif des étiquettes "Cover page:" / "Page N:"
        cover_label: Début (en minuscules) de l'étiquette de couverture
        credit_markers: Marqueurs du début du crédit dans une attribution
        story_pattern: Motif (copyright, licence) de l'attribution de l'histoire
        image_pattern: Motif (auteur, copyright, licence) d'un crédit d'image
    """

    language: str
    story: str
    other: str
    illustration: tuple[str, ...]
    disclaimer: str
    page_label: re.Pattern
    cover_label: str
    credit_markers: tuple[str, ...]
    story_pattern: re.Pattern
    image_pattern: re.Pattern

    @property
    def headers(self) -> tuple[str, ...]:
        return (self.story, self.other, *self.illustration, self.disclaimer)


ENGLISH_HEADERS = StructuredHeaders(
    language="en",
    story="Story Attribution:",
    other="Other Credits:",
    illustration=("Illustration Attributions:", "Images Attributions:"),
    disclaimer="Disclaimer:",
    page_label=re.compile(r"(Cover [Pp]age:|Page [0-9]+:)"),
    cover_label="cover page",
    credit_markers=(" by ", ", by"),
    story_pattern=re.compile(rf"(©[^0-9]*, {YEAR}).* (CC BY[A-Z0-9-. ]*) license"),
    image_pattern=re.compile(
        rf"by *(.*) *(©.*{YEAR}\.?).*Released under[ a]* (CC[ A-Z0-9.-]+) license"
    ),
)

FRENCH_HEADERS = StructuredHeaders(
    language="fr",
    story="Attribution de l’histoire :",
    other="Autres crédits :",
    illustration=("Attributions de l’illustration :", "Attributions des illustrations :"),
    disclaimer="Déni de responsabilité :",
    page_label=re.compile(r"(Page de couverture ?:|Page [0-9]+ ?:)"),
    cover_label="page de couverture",
    credit_markers=(", de ", " de "),
    story_pattern=re.compile(rf"(©[^0-9]*, {YEAR}).*sous licence (CC BY[A-Z0-9-. ]*)"),
    image_pattern=re.compile(
        rf"de *(.*) *(©.*{YEAR}\.?).*sous licence (CC[ A-Z0-9.-]+)"
    ),
)


def collapse_credits_text(text: str) -> str:
    """Réduit les espaces et répare l'espacement de la ponctuation."""
    text = re.sub(r"\s+", " ", text)
    return (
        text.replace(" ,", ",")
        .replace(" .", ".")
        .replace(" '", "'")
        .replace("' ", "'")
        .replace(":'", ": '")
    )


class StructuredCreditsStrategy:
    """
    Bloc de crédits structuré : attribution de l'histoire, autres crédits,
    attributions des illustrations page par page.

    Example:
        >>> strategy = StructuredCreditsStrategy(ENGLISH_HEADERS)
        >>> strategy.extract(page_text, 14, state, book)
        >>> state.book_copyright
        'Copyright © Pratham Books, 2015'
    """

    def __init__(self, headers: StructuredHeaders = ENGLISH_HEADERS):
        self.headers = headers

    @property
    def name(self) -> str:
        return f"structured_{self.headers.language}"

    def applies_to(self, book: BookContext) -> bool:
        return self.headers.language == "en" or book.sentence_language == self.headers.language

    def _illustration_header(self, text: str) -> Optional[str]:
        for header in self.headers.illustration:
            if header in text:
                return header
        return None

    def _section(self, text: str, header: Optional[str]) -> Optional[str]:
        """Texte qui suit `header` jusqu'au prochain en-tête connu."""
        if not header:
            return None
        begin = text.find(header)
        if begin < 0:
            return None
        start = begin + len(header)
        ends = [
            position
            for other in self.headers.headers
            if other != header and (position := text.find(other, start)) >= 0
        ]
        return text[start : min(ends, default=len(text))].strip()

    def extract(
        self, text: str, page_index: int, state: CreditState, book: BookContext
    ) -> None:
        text = collapse_credits_text(text)
        illustration_header = self._illustration_header(text)
        if "©" not in text or not (self.headers.story in text or illustration_header):
            return
        logger.debug(f"Bloc de crédits structuré ({self.headers.language}) page {page_index}")

        story = self._section(text, self.headers.story)
        if story and state.needs_copyright():
            match = self.headers.story_pattern.search(story)
            if match:
                state.set_book_copyright(match.group(1))
                state.set_book_license(clean_abbreviation(match.group(2)))

        other = self._section(text, self.headers.other)
        if other:
            state.add_contribution(f"<p>{escape(other, quote=False)}</p>")

        illustrations = self._section(text, illustration_header)
        if illustrations:
            self._extract_illustrations(illustrations, state, book)

    def _extract_illustrations(
        self, text: str, state: CreditState, book: BookContext
    ) -> None:
        labels = list(self.headers.page_label.finditer(text))
        for position, label in enumerate(labels):
            end = labels[position + 1].start() if position + 1 < len(labels) else len(text)
            body = text[label.end() : end].strip()
            page = self._page_number(label.group(1), book)
            self._attribute_image(page, body, state)

    def _page_number(self, label: str, book: BookContext) -> int:
        if label.lower().startswith(self.headers.cover_label):
            return 0
        digits = re.search(r"[0-9]+", label)
        return int(digits.group(0)) + book.profile.credit_page_offset if digits else -1

    def _attribute_image(self, page: int, body: str, state: CreditState) -> None:
        begin = -1
        for marker in self.headers.credit_markers:
            begin = body.find(marker)
            if begin > 0:
                if marker.startswith(","):
                    begin += 1
                break
        if begin > 0:
            description = body[:begin].strip().rstrip(",").strip()
            credit = body[begin:].strip()
        else:
            description, credit = "", body

        state.credit_pages.add(credit, page)
        record = CreditRecord()
        match = self.headers.image_pattern.search(credit)
        if match:
            record = CreditRecord(
                creator=match.group(1).strip(),
                copyright=match.group(2).strip().rstrip("."),
                license_abbreviation=clean_abbreviation(match.group(3)),
            )
        if page not in state.image_attributions:
            state.image_attributions[page] = ImageAttribution(page, description, credit, record)


# ============================================================
# 🔹 Copyright en texte libre
# ============================================================
class FreeTextCopyrightStrategy:
    """
    Première mention "© ... ANNÉE" du texte.

    "© Text: X Artwork: Y 2015" est séparé en copyright du livre "© X 2015"
    et copyright des illustrations "Artwork © Y 2015".
    """

    @property
    def name(self) -> str:
        return "free_text_copyright"

    def applies_to(self, book: BookContext) -> bool:
        return True

    def extract(
        self, text: str, page_index: int, state: CreditState, book: BookContext
    ) -> None:
        if not state.needs_copyright():
            return
        match = COPYRIGHT_PATTERN.search(text)
        if not match:
            return
        found = match.group(1)
        if found.startswith("© Text:") and "Artwork:" in found:
            begin_artwork = found.index("Artwork:")
            state.set_book_copyright(f"© {found[7:begin_artwork].strip()} {match.group(2)}")
            state.pending_art_copyright = f"Artwork © {found[begin_artwork + 8:].strip()}"
        else:
            state.set_book_copyright(found)


# ============================================================
# 🔹 Copyright implicite de l'éditeur
# ============================================================
class ImplicitPublisherCopyrightStrategy:
    """
    Éditeur qui ne mentionne jamais son copyright : "Copyright © by <éditeur>, ANNÉE".

    L'année vient de l'entrée de catalogue (mise à jour puis publication),
    sinon de la date de modification du paquet, sinon de l'année courante.
    """

    @property
    def name(self) -> str:
        return "implicit_publisher_copyright"

    def applies_to(self, book: BookContext) -> bool:
        return bool(book.profile.implicit_copyright_holder)

    def extract(
        self, text: str, page_index: int, state: CreditState, book: BookContext
    ) -> None:
        if not state.needs_copyright():
            return
        catalog = book.catalog
        year = year_or_now(
            catalog.updated_year if catalog else None,
            catalog.published_year if catalog else None,
            fallback=book.modified,
        )
        holder = book.profile.implicit_copyright_holder
        state.book_copyright = f"Copyright © by {holder}, {year}"
        logger.info(f"Copyright implicite de l'éditeur : {state.book_copyright}")


# ============================================================
# 🔹 Licence
# ============================================================
class LicenseStrategy:
    """
    Licence du livre, indépendamment du copyright : URL Creative Commons,
    phrase anglaise, abréviation courte, puis licence du catalogue.
    """

    @property
    def name(self) -> str:
        return "license"

    def applies_to(self, book: BookContext) -> bool:
        return True

    def extract(
        self, text: str, page_index: int, state: CreditState, book: BookContext
    ) -> None:
        if not state.needs_license():
            return
        found = find_license_in_text(text)
        if found:
            abbreviation, url = found
            state.set_book_license(abbreviation, url)
            return
        abbreviation = find_license_in_catalog(book.catalog.license_text if book.catalog else None)
        if abbreviation:
            logger.debug(f"Licence tirée du catalogue : {abbreviation}")
            state.set_book_license(abbreviation)


# ============================================================
# 🔹 Copyright des illustrations
# ============================================================
class ArtCopyrightStrategy:
    """Applique le copyright des illustrations trouvé en texte libre, avec la licence du livre."""

    def __init__(self, renderer: "CreditSentenceRenderer"):
        self.renderer = renderer

    @property
    def name(self) -> str:
        return "art_copyright"

    def applies_to(self, book: BookContext) -> bool:
        return True

    def extract(
        self, text: str, page_index: int, state: CreditState, book: BookContext
    ) -> None:
        art = state.pending_art_copyright
        if not art:
            return
        abbreviation = state.license_abbreviation or ""
        state.add_contribution(self.renderer.render_art_copyright(art, abbreviation))
        state.art_record = CreditRecord(copyright=art, license_abbreviation=abbreviation or None)
        state.pending_art_copyright = None


def default_strategies(renderer: "CreditSentenceRenderer") -> list[CreditsStrategy]:
    """Registre ordonné des règles d'extraction."""
    return [
        StructuredCreditsStrategy(ENGLISH_HEADERS),
        StructuredCreditsStrategy(FRENCH_HEADERS),
        FreeTextCopyrightStrategy(),
        ImplicitPublisherCopyrightStrategy(),
        LicenseStrategy(),
        ArtCopyrightStrategy(renderer),
    ]

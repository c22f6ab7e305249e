"""
Types de base et interface des stratégies d'extraction des crédits.

L'état des crédits d'un livre (CreditState) appartient à la session de
conversion du livre : les stratégies le complètent page après page, sans
jamais écraser un champ déjà renseigné.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Optional, Protocol

from ..exceptions import ConversionError
from ..logger import get_logger
from .licenses import clean_abbreviation, license_token, license_url
from .page_ranges import PageCreditPageIndex

if TYPE_CHECKING:
    from ..package.catalog import CatalogEntry
    from .publishers import PublisherProfile

logger = get_logger(__name__)


class ExtractorState(Enum):
    """État de l'extracteur ; le passage en fin d'ouvrage est définitif."""

    IN_CONTENT = "in_content"
    IN_END_MATTER = "in_end_matter"


@dataclass
class CreditRecord:
    """
    Crédit d'une ou plusieurs images.

    Attributes:
        creator: Auteur de l'image
        copyright: Mention de copyright (ex: "© Pratham Books, 2015")
        license_abbreviation: Abréviation de la licence (ex: "CC BY 4.0")
    """

    creator: Optional[str] = None
    copyright: Optional[str] = None
    license_abbreviation: Optional[str] = None

    @property
    def license_url(self) -> Optional[str]:
        if not self.license_abbreviation:
            return None
        return license_url(self.license_abbreviation)


@dataclass(frozen=True)
class ImageAttribution:
    """Crédit et description d'une image, indexés par numéro de page (0 = couverture)."""

    page_number: int
    description: str
    credit_text: str
    record: CreditRecord


@dataclass(frozen=True)
class BookContext:
    """
    Informations du livre utiles aux stratégies, fixées au début de la conversion.

    Attributes:
        title: Titre du livre
        language_code: Code langue du livre
        publisher: Éditeur (catalogue, sinon paquet)
        modified: Date de modification du paquet
        page_count: Nombre de pages source (couverture comprise)
        profile: Profil de l'éditeur
        catalog: Entrée de catalogue, si disponible
    """

    title: str
    language_code: str
    publisher: Optional[str]
    modified: Optional[datetime]
    page_count: int
    profile: "PublisherProfile"
    catalog: Optional["CatalogEntry"] = None

    @property
    def sentence_language(self) -> str:
        return "fr" if self.language_code.lower().startswith("fr") else "en"


@dataclass
class CreditState:
    """
    Tampons de crédits d'un livre, complétés pendant la fin d'ouvrage.

    Règle « première trouvaille gagnante » : set_book_copyright et
    set_book_license ignorent une valeur si le champ est déjà renseigné.
    """

    state: ExtractorState = ExtractorState.IN_CONTENT
    book_copyright: Optional[str] = None
    license_abbreviation: Optional[str] = None
    license_url: Optional[str] = None
    license_token: Optional[str] = None
    art_record: Optional[CreditRecord] = None
    pending_art_copyright: Optional[str] = None
    contributions: list[str] = field(default_factory=list)
    credit_pages: PageCreditPageIndex = field(default_factory=PageCreditPageIndex)
    image_attributions: dict[int, ImageAttribution] = field(default_factory=dict)
    original_acknowledgments: Optional[str] = None
    inside_back_cover: Optional[str] = None
    original_contributions: Optional[str] = None
    end_matter_pages: int = 0
    issues: list[ConversionError] = field(default_factory=list)

    @property
    def in_end_matter(self) -> bool:
        return self.state == ExtractorState.IN_END_MATTER

    def enter_end_matter(self) -> None:
        if not self.in_end_matter:
            logger.debug("Passage en fin d'ouvrage")
        self.state = ExtractorState.IN_END_MATTER

    def needs_copyright(self) -> bool:
        return not self.book_copyright

    def needs_license(self) -> bool:
        return not self.license_url

    def set_book_copyright(self, matched: str) -> None:
        """Enregistre "Copyright " + la mention trouvée."""
        if self.book_copyright:
            logger.debug(f"Copyright déjà connu, mention ignorée : {matched!r}")
            return
        self.book_copyright = "Copyright " + matched.strip()

    def set_book_license(self, abbreviation: str, url: Optional[str] = None) -> None:
        """
        Enregistre la licence du livre.

        Args:
            abbreviation: Abréviation (ex: "CC BY 4.0")
            url: URL trouvée telle quelle dans le texte (sinon déduite de l'abréviation)
        """
        if self.license_url:
            logger.debug(f"Licence déjà connue, abréviation ignorée : {abbreviation!r}")
            return
        url = url or license_url(abbreviation)
        if not url:
            return
        self.license_abbreviation = clean_abbreviation(abbreviation)
        self.license_url = url
        self.license_token = license_token(abbreviation)

    def add_contribution(self, markup: str) -> None:
        self.contributions.append(markup)


class CreditsStrategy(Protocol):
    """
    Interface (Protocol) d'une règle d'extraction des crédits.

    Une stratégie doit implémenter :
    1. Une propriété `name` retournant un identifiant unique
    2. Une méthode `applies_to()` évaluée une seule fois par livre
    3. Une méthode `extract()` appelée pour chaque page de crédits

    Example:
        >>> class MyStrategy:
        ...     @property
        ...     def name(self) -> str:
        ...         return "my_strategy"
        ...
        ...     def applies_to(self, book: BookContext) -> bool:
        ...         return book.publisher == "My Publisher"
        ...
        ...     def extract(self, text, page_index, state, book) -> None:
        ...         ...
    """

    @property
    def name(self) -> str:
        """Identifiant unique de la stratégie (ex: "free_text_copyright")."""
        ...

    def applies_to(self, book: BookContext) -> bool:
        """True si la stratégie doit être utilisée pour ce livre."""
        ...

    def extract(
        self, text: str, page_index: int, state: CreditState, book: BookContext
    ) -> None:
        """
        Complète l'état des crédits à partir du texte d'une page.

        Args:
            text: Texte brut de la page (espaces d'origine conservés)
            page_index: Index de la page source
            state: État des crédits du livre (modifié en place)
            book: Informations du livre
        """
        ...

"""
Machine à états des pages de fin d'ouvrage (crédits, licence, quatrième de couverture).

La machine passe de IN_CONTENT à IN_END_MATTER une seule fois ; l'état est
porté par le CreditState de la session du livre.
"""

from typing import Optional

from bs4 import Tag

from ..config import ConversionSettings
from ..exceptions import CreditExtractionMiss
from ..logger import get_logger
from .base import BookContext, CreditsStrategy, CreditState
from .sentences import CreditSentenceRenderer
from .strategies import default_strategies

logger = get_logger(__name__)

# Classes des blocs de crédits connus (plateforme de partage d'histoires)
END_MATTER_MARKER_CLASSES = {"attrb-full", "attribution-text", "license_container"}

# Classes de la quatrième de couverture
BACK_COVER_MARKER_CLASSES = {"back-cover-top", "back-cover-bottom"}

# Phrases signalant une page de licence
LICENSE_INDICATORS = ("Creative Commons", "http://creativecommons.org/licenses/")


def _has_marker_div(body: Tag, classes: set[str]) -> bool:
    return body.find("div", class_=lambda value: value in classes) is not None


class CreditsExtractor:
    """
    Reconnaît les pages de fin d'ouvrage et en extrait les crédits.

    Les stratégies du registre sont filtrées une seule fois par livre
    (`applies_to`), puis appliquées dans l'ordre à chaque page de crédits.

    Example:
        >>> extractor = CreditsExtractor(book)
        >>> if extractor.is_end_matter(index, body, state):
        ...     extractor.process_end_matter(index, body, state)
        >>> contributions = extractor.finish(state)
    """

    def __init__(
        self,
        book: BookContext,
        strategies: Optional[list[CreditsStrategy]] = None,
        renderer: Optional[CreditSentenceRenderer] = None,
    ):
        self.book = book
        self.renderer = renderer or CreditSentenceRenderer(book.sentence_language)
        registry = strategies if strategies is not None else default_strategies(self.renderer)
        self.strategies = [strategy for strategy in registry if strategy.applies_to(book)]
        logger.debug(
            "Stratégies de crédits : " + ", ".join(strategy.name for strategy in self.strategies)
        )

    # -----------------------------------
    # 🔹 Détection
    # -----------------------------------
    def is_end_matter(self, index: int, body: Optional[Tag], state: CreditState) -> bool:
        """
        Indique si la page `index` fait partie de la fin d'ouvrage.

        La première moitié du livre n'en fait jamais partie ; une fois la fin
        d'ouvrage atteinte, toutes les pages suivantes en font partie.
        """
        if index < self.book.page_count // 2:
            return False
        if state.in_end_matter:
            return True
        if body is None:
            return False
        markup = str(body)
        if _has_marker_div(body, END_MATTER_MARKER_CLASSES) or any(
            indicator in body.get_text() or indicator in markup
            for indicator in LICENSE_INDICATORS
        ):
            state.enter_end_matter()
            return True
        return False

    # -----------------------------------
    # 🔹 Traitement
    # -----------------------------------
    def process_end_matter(self, index: int, body: Tag, state: CreditState) -> None:
        """
        Traite une page de fin d'ouvrage.

        La dernière page avec les blocs de quatrième de couverture est ignorée ;
        toute autre dernière page est conservée comme deuxième de couverture
        (et analysée si le copyright manque encore). Les autres pages passent
        par les stratégies d'extraction.
        """
        state.enter_end_matter()
        state.end_matter_pages += 1
        if index == self.book.page_count - 1:
            if _has_marker_div(body, BACK_COVER_MARKER_CLASSES):
                logger.debug(f"Quatrième de couverture ignorée (page {index})")
                return
            state.inside_back_cover = body.decode_contents().strip()
            if not state.needs_copyright():
                return
        self.parse_credits(body.get_text(), index, state)

    def parse_credits(self, text: str, index: int, state: CreditState) -> None:
        for strategy in self.strategies:
            strategy.extract(text, index, state, self.book)

    # -----------------------------------
    # 🔹 Fin du livre
    # -----------------------------------
    def finish(self, state: CreditState) -> Optional[str]:
        """
        Termine l'extraction : rédige les contributions accumulées et
        signale les informations manquantes.

        Returns:
            Balisage des contributions d'origine, ou None s'il n'y en a aucune
        """
        if state.needs_copyright() or state.needs_license():
            # Dernier passage sans texte : copyright implicite et licence du catalogue
            self.parse_credits("", self.book.page_count - 1, state)

        lines = list(state.contributions)
        image_credits = self.renderer.render_image_credits(state.credit_pages)
        if image_credits:
            lines.append(image_credits)
        state.original_contributions = "\n".join(lines) or None

        for field_name, missing in (
            ("copyright", state.needs_copyright()),
            ("license", state.needs_license()),
        ):
            if missing:
                issue = CreditExtractionMiss(field_name, self.book.title)
                state.issues.append(issue)
                logger.warning(str(issue))

        limit = ConversionSettings.end_matter_max_ratio * self.book.page_count
        if state.end_matter_pages == 0:
            logger.warning(f"Aucune page de fin d'ouvrage trouvée pour {self.book.title}")
        elif state.end_matter_pages > limit:
            logger.warning(
                f"{state.end_matter_pages} pages de fin d'ouvrage sur {self.book.page_count} "
                f"pour {self.book.title} : vérifier la détection"
            )
        return state.original_contributions

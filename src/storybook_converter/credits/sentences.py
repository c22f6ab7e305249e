"""
Rédaction des phrases de crédits avec des templates Jinja2 par langue.

Les templates se trouvent dans resources/templates/<langue>/ ; une langue
sans répertoire utilise les templates anglais.
"""

from pathlib import Path
from typing import Optional, Sequence

from jinja2 import Environment, FileSystemLoader, select_autoescape

from ..config import TemplateNames
from ..logger import get_logger
from .page_ranges import PageCreditPageIndex, summarize_pages

logger = get_logger(__name__)

TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "resources" / "templates"
DEFAULT_LANGUAGE = "en"


class CreditSentenceRenderer:
    """
    Rend les phrases de crédits dans une langue donnée.

    Example:
        >>> renderer = CreditSentenceRenderer("en")
        >>> renderer.render_page_range([0, 1, 2])
        'Images on front cover, pages 1-2'
    """

    def __init__(self, language: str = DEFAULT_LANGUAGE, template_dir: Optional[Path] = None):
        root = Path(template_dir) if template_dir else TEMPLATE_DIR
        if not (root / language).is_dir():
            logger.debug(f"Pas de templates pour « {language} », anglais utilisé")
            language = DEFAULT_LANGUAGE
        self.language = language
        self.env = Environment(
            loader=FileSystemLoader([str(root / language), str(root / DEFAULT_LANGUAGE)]),
            autoescape=select_autoescape(["html", "xml"]),
        )

    # -----------------------------------
    # 🔹 Rendu du template
    # -----------------------------------
    def render(self, template_name: str, **kwargs) -> str:
        template = self.env.get_template(template_name)
        return template.render(**kwargs).strip()

    def render_page_range(self, pages: Sequence[int]) -> str:
        """
        Rédige la liste des pages d'un crédit (sans le crédit lui-même).

        Args:
            pages: Numéros de pages dans l'ordre d'insertion (0 = couverture)

        Returns:
            Phrase du type "Images on pages 4, 7"
        """
        summary = summarize_pages(list(pages))
        return self.render(
            TemplateNames.Page_Range_Template,
            single_page=summary.single_page,
            front_cover=summary.front_cover,
            singular=summary.singular,
            ranges=summary.ranges,
        )

    def render_image_credits(self, credit_pages: PageCreditPageIndex) -> str:
        """
        Rédige les crédits des images : une phrase globale pour un crédit
        unique, sinon un paragraphe par crédit précédé de ses pages.
        """
        if not len(credit_pages):
            return ""
        if len(credit_pages) == 1:
            return self.render(
                TemplateNames.Image_Credits_Template,
                single_credit=credit_pages.credits()[0],
                entries=[],
            )
        entries = [
            (self.render_page_range(pages), credit) for credit, pages in credit_pages.items()
        ]
        return self.render(
            TemplateNames.Image_Credits_Template, single_credit=None, entries=entries
        )

    def render_art_copyright(self, art_copyright: str, abbreviation: str) -> str:
        """
        Example:
            >>> renderer.render_art_copyright("Artwork © African Storybook Initiative 2015", "CC BY 4.0")
            '<p>Artwork © African Storybook Initiative 2015.  Some rights reserved.  Released under the CC BY 4.0 license.</p>'
        """
        return self.render(
            TemplateNames.Art_Copyright_Template,
            art_copyright=art_copyright,
            abbreviation=abbreviation or "",
        )

    def render_cover_credits(
        self,
        authors: Sequence[str] = (),
        illustrators: Sequence[str] = (),
        creators: Sequence[str] = (),
        contributors: Sequence[str] = (),
    ) -> str:
        """Paragraphes de crédits de couverture générés à partir des métadonnées."""
        return self.render(
            TemplateNames.Cover_Credits_Template,
            authors=list(authors),
            illustrators=list(illustrators),
            creators=list(creators),
            contributors=list(contributors),
        )

"""
Conversion de la page de couverture (index 0).

La première image devient l'image de couverture, les suivantes sont
conservées comme images auxiliaires. Les lignes de texte sont classées en
titre (comparaison insensible aux espaces, aux accents et à la casse, avec
accumulation des lignes qui forment le titre par morceaux) ou en crédits.
"""

import re
import unicodedata
from dataclasses import dataclass
from typing import Optional, Sequence

from bs4 import BeautifulSoup

from ..credits.sentences import CreditSentenceRenderer
from ..document import PageImage
from ..logger import get_logger
from .constants import COVER_ATTRIBUTION_HEADERS
from .nodes import ContentNode, NodeFlattener, NodeKind, page_body, parse_page
from .normalizer import MarkupNormalizer
from .page import page_image

logger = get_logger(__name__)


def comparison_key(text: str) -> str:
    """
    Clé de comparaison d'un texte : sans espaces, sans accents, casse repliée.

    Example:
        >>> comparison_key("  Se brosser   n'est pas AMUSANT ") == comparison_key("Se brosser n'est pas amusant")
        True
    """
    decomposed = unicodedata.normalize("NFKD", text)
    return "".join(
        char for char in decomposed if not unicodedata.combining(char) and not char.isspace()
    ).casefold()


def node_text(node: ContentNode) -> str:
    """Texte brut d'un nœud, espaces réduits."""
    text = BeautifulSoup(node.markup, "html.parser").get_text()
    return re.sub(r"\s+", " ", text).strip()


def is_attribution_header(text: str) -> bool:
    """
    True si la ligne commence par un en-tête d'attribution connu.

    Example:
        >>> is_attribution_header("Author: Hari Kumar Nair")
        True
        >>> is_attribution_header("Authority")
        False
    """
    lowered = re.sub(r"\s+", " ", text).strip().casefold()
    for header in COVER_ATTRIBUTION_HEADERS:
        if lowered.startswith(header):
            rest = lowered[len(header) :]
            if not rest or not rest[0].isalpha():
                return True
    return False


@dataclass(frozen=True)
class CoverContent:
    """
    Contenu extrait de la page de couverture.

    Attributes:
        title: Titre du livre (titre du paquet)
        title_found: True si le titre a été reconnu sur la couverture
        cover_image: Image de couverture
        extra_images: Images suivantes (coverImage2, coverImage3...)
        credits: Paragraphes de crédits de couverture
        generated_credits: True si les crédits ont été générés à partir des métadonnées
    """

    title: str
    title_found: bool
    cover_image: Optional[PageImage]
    extra_images: tuple[PageImage, ...] = ()
    credits: tuple[str, ...] = ()
    generated_credits: bool = False

    @property
    def credits_markup(self) -> str:
        return "\n".join(self.credits)


class CoverConverter:
    """
    Classe les éléments de la couverture.

    Example:
        >>> converter = CoverConverter("What If?", renderer, authors=["Hari Kumar Nair"])
        >>> cover = converter.convert_cover(markup)
        >>> cover.credits
        ('<p>Author: Hari Kumar Nair</p>', '<p>Illustrator: Hari Kumar Nair</p>')
    """

    def __init__(
        self,
        title: str,
        renderer: CreditSentenceRenderer,
        authors: Sequence[str] = (),
        illustrators: Sequence[str] = (),
        creators: Sequence[str] = (),
        contributors: Sequence[str] = (),
        normalizer: Optional[MarkupNormalizer] = None,
    ):
        self.title = title
        self.title_key = comparison_key(title)
        self.renderer = renderer
        self.authors = list(authors)
        self.illustrators = list(illustrators)
        self.creators = list(creators)
        self.contributors = list(contributors)
        self.normalizer = normalizer or MarkupNormalizer()

    def convert_cover(self, markup: str | bytes) -> CoverContent:
        nodes = NodeFlattener(page_index=0).flatten(page_body(parse_page(markup)))
        images = [page_image(node) for node in nodes if node.kind == NodeKind.IMAGE]
        if not images:
            logger.warning(f"Aucune image sur la couverture de {self.title}")
        for node in nodes:
            if node.kind == NodeKind.VIDEO:
                logger.debug(f"Vidéo ignorée sur la couverture : {node.src}")

        title_found, credits = self._classify([node for node in nodes if node.is_text])
        if not title_found:
            logger.warning(f"Titre introuvable sur la couverture ; titre du paquet utilisé : {self.title}")

        generated = False
        if not credits:
            markup = self.renderer.render_cover_credits(
                self.authors, self.illustrators, self.creators, self.contributors
            )
            credits = [line for line in markup.splitlines() if line.strip()]
            generated = bool(credits)

        return CoverContent(
            title=self.title,
            title_found=title_found,
            cover_image=images[0] if images else None,
            extra_images=tuple(images[1:]),
            credits=tuple(credits),
            generated_credits=generated,
        )

    def _paragraph(self, node: ContentNode) -> str:
        return f"<p>{self.normalizer.normalize(node.markup.strip())}</p>"

    def _classify(self, nodes: list[ContentNode]) -> tuple[bool, list[str]]:
        """
        Sépare le titre des crédits.

        Les lignes non classées s'accumulent tant que leur concaténation est
        un préfixe du titre ; si elle devient égale au titre, elles sont
        reclassées en titre, sinon elles rejoignent les crédits.
        """
        title_found = False
        credits: list[str] = []
        pending: list[ContentNode] = []
        pending_key = ""

        for node in nodes:
            text = node_text(node)
            key = comparison_key(text)
            if not key:
                continue
            if title_found or is_attribution_header(text):
                credits.extend(self._paragraph(p) for p in pending)
                pending, pending_key = [], ""
                credits.append(self._paragraph(node))
                continue

            candidate = pending_key + key
            if candidate == self.title_key:
                title_found = True
                pending, pending_key = [], ""
                continue
            if self.title_key.startswith(candidate):
                pending.append(node)
                pending_key = candidate
                continue

            credits.extend(self._paragraph(p) for p in pending)
            pending, pending_key = [], ""
            if key == self.title_key:
                title_found = True
            elif self.title_key.startswith(key):
                pending, pending_key = [node], key
            else:
                credits.append(self._paragraph(node))

        credits.extend(self._paragraph(p) for p in pending)
        return title_found, credits

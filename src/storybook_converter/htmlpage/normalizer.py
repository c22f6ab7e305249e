"""
Normalisation du balisage inline extrait des pages sources.

Les pages EPUB contiennent souvent des balises d'emphase vides, fragmentées
ou entourées de sauts de ligne parasites. Le normaliseur applique une liste
ordonnée de réécritures jusqu'à atteindre un point fixe.

Le résultat est un point fixe de toutes les réécritures : normaliser deux
fois donne le même texte que normaliser une fois.
"""

import re
from dataclasses import dataclass
from typing import Optional

from ..config import ConversionSettings
from ..logger import get_logger
from .constants import EMPHASIS_TAGS

logger = get_logger(__name__)

_EMPHASIS = "|".join(EMPHASIS_TAGS)


@dataclass(frozen=True)
class Rewrite:
    """Réécriture nommée : motif compilé et remplacement."""

    name: str
    pattern: re.Pattern
    replacement: str

    def apply(self, fragment: str) -> str:
        return self.pattern.sub(self.replacement, fragment)


def _rewrite(name: str, pattern: str, replacement: str) -> Rewrite:
    return Rewrite(name, re.compile(pattern), replacement)


DEFAULT_REWRITES: tuple[Rewrite, ...] = (
    # 1. Déclarations d'espace de noms héritées du document source
    _rewrite("strip_namespaces", r"""\s+xmlns(?::[\w.-]+)?=(?:"[^"]*"|'[^']*')""", ""),
    # Forme canonique des sauts de ligne
    _rewrite("canonical_breaks", r"<br\s*/?>(?:\s*</br>)?", "<br/>"),
    # 2. Paires d'emphase vides
    _rewrite("empty_emphasis", rf"<({_EMPHASIS})(?:\s[^>]*)?>(\s*)</\1>", r"\2"),
    _rewrite("self_closed_emphasis", rf"<(?:{_EMPHASIS})\s*/>", ""),
    # 3. Emphases adjacentes de même type
    _rewrite("merge_adjacent_emphasis", rf"</({_EMPHASIS})>(\s*)<\1>", r"\2"),
    # 4. Sauts de ligne sortis des emphases
    _rewrite("break_before_close", rf"<br/>(\s*)</({_EMPHASIS})>", r"</\2><br/>\1"),
    _rewrite("break_after_open", rf"<({_EMPHASIS})>(\s*)<br/>", r"<br/><\1>\2"),
    # 5. Sauts de ligne en début et fin de paragraphe ou de fragment
    _rewrite("leading_paragraph_break", r"(<p(?:\s[^>]*)?>)\s*<br/>", r"\1"),
    _rewrite("trailing_paragraph_break", r"<br/>\s*(</p>)", r"\1"),
    _rewrite("leading_fragment_break", r"^\s*<br/>", ""),
    _rewrite("trailing_fragment_break", r"<br/>\s*$", ""),
    # 6. Espaces sortis des emphases
    _rewrite("space_after_open", rf"<({_EMPHASIS})>(\s+)", r"\2<\1>"),
    _rewrite("space_before_close", rf"(\s+)</({_EMPHASIS})>", r"</\2>\1"),
    # 7. Suites d'espaces
    _rewrite("collapse_spaces", r"[ \t]{2,}", " "),
)


class MarkupNormalizer:
    """
    Applique les réécritures jusqu'au point fixe ou jusqu'au plafond d'itérations.

    Le plafond est une soupape de sécurité : s'il est atteint, un
    avertissement est émis et la dernière valeur est renvoyée.

    Example:
        >>> normalizer = MarkupNormalizer()
        >>> normalizer.normalize("<b>Hello</b> <b>world</b><br/>")
        '<b>Hello world</b>'
    """

    def __init__(
        self,
        rewrites: tuple[Rewrite, ...] = DEFAULT_REWRITES,
        max_iterations: Optional[int] = None,
    ):
        self.rewrites = rewrites
        self.max_iterations = max_iterations or ConversionSettings.normalizer_max_iterations

    def apply_once(self, fragment: str) -> str:
        for rewrite in self.rewrites:
            fragment = rewrite.apply(fragment)
        return fragment

    def normalize(self, fragment: str) -> str:
        current = fragment
        for _ in range(self.max_iterations):
            rewritten = self.apply_once(current)
            if rewritten == current:
                return current
            current = rewritten
        logger.warning(
            f"Normalisation non convergente après {self.max_iterations} itérations : "
            f"{fragment[:80]!r}"
        )
        return current


_default_normalizer = MarkupNormalizer()


def normalize(fragment: str) -> str:
    """Normalise un fragment avec les réécritures par défaut."""
    return _default_normalizer.normalize(fragment)

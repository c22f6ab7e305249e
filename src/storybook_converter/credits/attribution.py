"""
Fichier texte d'attribution livré à côté de certains paquets (.epub.zip).
"""

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from ..logger import get_logger
from .base import CreditState

logger = get_logger(__name__)

ATTRIBUTION_TEXT_HEADER = "Attribution Text:"
_COPYRIGHT_PATTERN = re.compile(r"\((©.*, [12][09][0-9][0-9])\)")
_LICENSE_PATTERN = re.compile(r"under a (CC.*) license")


@dataclass(frozen=True)
class AttributionNotes:
    """Informations tirées du fichier d'attribution."""

    acknowledgments: Optional[str] = None
    copyright: Optional[str] = None
    license_abbreviation: Optional[str] = None


def parse_attribution_text(text: str) -> AttributionNotes:
    """
    Analyse le contenu d'un fichier d'attribution.

    Example:
        >>> notes = parse_attribution_text(
        ...     "Attribution Text: This story (© Pratham Books, 2015) is released under a CC BY 4.0 license.\\n"
        ... )
        >>> notes.copyright, notes.license_abbreviation
        ('© Pratham Books, 2015', 'CC BY 4.0')
    """
    acknowledgments = None
    begin = text.find(ATTRIBUTION_TEXT_HEADER)
    if begin >= 0:
        begin += len(ATTRIBUTION_TEXT_HEADER)
        end = text.find("\n", begin)
        acknowledgments = text[begin : end if end >= 0 else len(text)].strip() or None

    copyright_match = _COPYRIGHT_PATTERN.search(text)
    license_match = _LICENSE_PATTERN.search(text)
    return AttributionNotes(
        acknowledgments=acknowledgments,
        copyright=copyright_match.group(1) if copyright_match else None,
        license_abbreviation=license_match.group(1) if license_match else None,
    )


def apply_attribution_file(path: Optional[Path], state: CreditState) -> Optional[AttributionNotes]:
    """Lit le fichier d'attribution (s'il existe) et complète l'état des crédits."""
    if path is None or not Path(path).is_file():
        return None
    notes = parse_attribution_text(Path(path).read_text(encoding="utf-8-sig"))
    logger.info(f"Fichier d'attribution lu : {Path(path).name}")
    if notes.acknowledgments:
        state.original_acknowledgments = notes.acknowledgments
    if notes.copyright:
        state.set_book_copyright(notes.copyright)
    if notes.license_abbreviation:
        state.set_book_license(notes.license_abbreviation)
    return notes

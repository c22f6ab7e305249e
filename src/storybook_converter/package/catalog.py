"""
Lecture d'une entrée de catalogue OPDS (Atom + extensions Dublin Core / LRMI).

Le catalogue fournit des informations absentes du paquet : éditeur,
dates de publication, licence déclarée, niveau de lecture et lien
d'acquisition du fichier EPUB.
"""

import re
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Optional

from bs4 import BeautifulSoup, Tag

from ..logger import get_logger

logger = get_logger(__name__)

EPUB_MEDIA_TYPE = "application/epub+zip"
ACQUISITION_REL = "http://opds-spec.org/acquisition"

_YEAR_PATTERN = re.compile(r"^[12][09][0-9][0-9]$")


@dataclass(frozen=True)
class CatalogEntry:
    """
    Entrée de catalogue associée à un livre.

    Attributes:
        feed_title: Titre du catalogue, sans le suffixe " [extract]"
        publisher: Éditeur déclaré (dc:publisher ou dcterms:publisher)
        published: Date de publication (texte brut)
        updated: Date de mise à jour (texte brut)
        license_text: Licence déclarée en toutes lettres
        reading_level: Niveau de lecture (lrmi:educationalAlignment)
        acquisition_url: Lien de téléchargement du fichier EPUB
    """

    feed_title: Optional[str] = None
    title: Optional[str] = None
    publisher: Optional[str] = None
    published: Optional[str] = None
    updated: Optional[str] = None
    license_text: Optional[str] = None
    reading_level: Optional[str] = None
    acquisition_url: Optional[str] = None

    @staticmethod
    def _year_of(value: Optional[str]) -> Optional[str]:
        if not value:
            return None
        year = value.strip()[:4]
        return year if _YEAR_PATTERN.match(year) else None

    @property
    def updated_year(self) -> Optional[str]:
        return self._year_of(self.updated)

    @property
    def published_year(self) -> Optional[str]:
        return self._year_of(self.published)


def _text(tag) -> Optional[str]:
    if not isinstance(tag, Tag):
        return None
    value = tag.get_text().strip()
    return value or None


def parse_catalog_entry(markup: str | bytes) -> CatalogEntry:
    """
    Analyse un fragment de catalogue contenant un flux et une entrée.

    Args:
        markup: Contenu XML du fichier .opds

    Returns:
        CatalogEntry (champs à None si absents)

    Example:
        >>> entry = parse_catalog_entry(opds_xml)
        >>> entry.publisher
        'Pratham books'
    """
    soup = BeautifulSoup(markup, "xml")
    feed = soup.find("feed")
    entry = soup.find("entry")
    if not isinstance(entry, Tag):
        logger.warning("Aucune entrée trouvée dans le catalogue")
        return CatalogEntry()

    feed_title = None
    if isinstance(feed, Tag):
        feed_title = _text(feed.find("title", recursive=False))
        if feed_title:
            feed_title = re.sub(r" \[extract\]$", "", feed_title)

    reading_level = None
    for alignment in entry.find_all("educationalAlignment"):
        if alignment.get("alignmentType") == "readingLevel":
            reading_level = alignment.get("targetName")
            break

    acquisition_url = None
    for link in entry.find_all("link"):
        rel = str(link.get("rel") or "")
        if link.get("type") == EPUB_MEDIA_TYPE and ACQUISITION_REL in rel:
            acquisition_url = link.get("href")
            break

    return CatalogEntry(
        feed_title=feed_title,
        title=_text(entry.find("title", recursive=False)),
        publisher=_text(entry.find("publisher")),
        published=_text(entry.find("published", recursive=False)),
        updated=_text(entry.find("updated", recursive=False)),
        license_text=_text(entry.find("license")),
        reading_level=reading_level,
        acquisition_url=acquisition_url,
    )


def load_catalog_entry(path: Optional[Path]) -> Optional[CatalogEntry]:
    """Charge le fichier .opds associé au livre, s'il existe."""
    if path is None or not Path(path).is_file():
        return None
    return parse_catalog_entry(Path(path).read_bytes())


def year_or_now(*candidates: Optional[str], fallback: Optional[datetime] = None) -> str:
    """
    Première année valide parmi les candidats, sinon l'année de `fallback`,
    sinon l'année courante.
    """
    for candidate in candidates:
        if candidate and _YEAR_PATTERN.match(candidate):
            return candidate
    if fallback is not None and _YEAR_PATTERN.match(str(fallback.year)):
        return str(fallback.year)
    return str(datetime.now().year)

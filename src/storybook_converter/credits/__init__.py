"""
Extraction des crédits (copyright, licence, attributions) des pages de fin d'ouvrage.

Organisation du module :
- base.py : Types de base (CreditRecord, CreditState, BookContext) et interface CreditsStrategy
- strategies.py : Règles d'extraction, appliquées dans l'ordre du registre
- extractor.py : Machine à états de la fin d'ouvrage (CreditsExtractor)
- licenses.py : Abréviations, URL et détection des licences Creative Commons
- page_ranges.py : Index crédit -> pages et regroupement en plages
- publishers.py : Profils des éditeurs
- attribution.py : Fichier texte d'attribution
- sentences.py : Phrases de crédits rédigées avec Jinja2
"""

from .attribution import AttributionNotes, apply_attribution_file, parse_attribution_text
from .base import (
    BookContext,
    CreditRecord,
    CreditsStrategy,
    CreditState,
    ExtractorState,
    ImageAttribution,
)
from .extractor import CreditsExtractor
from .licenses import LICENSE_URLS, find_license_in_text, license_token, license_url
from .page_ranges import PageCreditPageIndex, collapse_ranges, summarize_pages
from .publishers import DEFAULT_PROFILE, PUBLISHER_PROFILES, PublisherProfile, resolve_profile
from .sentences import CreditSentenceRenderer
from .strategies import (
    ArtCopyrightStrategy,
    FreeTextCopyrightStrategy,
    ImplicitPublisherCopyrightStrategy,
    LicenseStrategy,
    StructuredCreditsStrategy,
    default_strategies,
)

__all__ = [
    "AttributionNotes",
    "apply_attribution_file",
    "parse_attribution_text",
    "BookContext",
    "CreditRecord",
    "CreditsStrategy",
    "CreditState",
    "ExtractorState",
    "ImageAttribution",
    "CreditsExtractor",
    "LICENSE_URLS",
    "find_license_in_text",
    "license_token",
    "license_url",
    "PageCreditPageIndex",
    "collapse_ranges",
    "summarize_pages",
    "DEFAULT_PROFILE",
    "PUBLISHER_PROFILES",
    "PublisherProfile",
    "resolve_profile",
    "CreditSentenceRenderer",
    "ArtCopyrightStrategy",
    "FreeTextCopyrightStrategy",
    "ImplicitPublisherCopyrightStrategy",
    "LicenseStrategy",
    "StructuredCreditsStrategy",
    "default_strategies",
]

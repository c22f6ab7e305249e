"""
Licences Creative Commons : abréviations, URL normalisées et détection
dans le texte des pages de crédits.
"""

import re
from typing import Optional

from ..logger import get_logger

logger = get_logger(__name__)

# Abréviation (sans version) -> URL de la licence
LICENSE_URLS = {
    "CC BY": "http://creativecommons.org/licenses/by/4.0/",
    "CC BY-SA": "http://creativecommons.org/licenses/by-sa/4.0/",
    "CC BY-ND": "http://creativecommons.org/licenses/by-nd/4.0/",
    "CC BY-NC": "http://creativecommons.org/licenses/by-nc/4.0/",
    "CC BY-NC-SA": "https://creativecommons.org/licenses/by-nc-sa/4.0/",
    "CC BY-NC-ND": "http://creativecommons.org/licenses/by-nc-nd/4.0/",
    "CC0": "https://creativecommons.org/share-your-work/public-domain/cc0/",
}

CC_URL_PATTERN = re.compile(r"(http://creativecommons.org/licenses/([a-z-][/0-9.]*)/)")
CC_PHRASE_LINE_PATTERN = re.compile(r"(Creative\s+Commons:?\s+Attribution.*)\n")
CC_PHRASE_VERSION_PATTERN = re.compile(r"(Creative\s+Commons:?\s+Attribution.*4\.0)")
CC_TOKEN_PATTERN = re.compile(r"(CC BY(-[A-Z][A-Z])*( 4.0)?)")

_NON_COMMERCIAL = re.compile(r"Non\s*Commercial")
_NO_DERIVATIVES = re.compile(r"No\s+Derivatives")
_SHARE_ALIKE = re.compile(r"Share\s+Alike")

# (NonCommercial, NoDerivatives, ShareAlike) -> abréviation ; SA + ND n'existe pas
_FLAGS_TO_ABBREVIATION = {
    (False, False, False): "CC BY",
    (True, False, False): "CC BY-NC",
    (False, True, False): "CC BY-ND",
    (True, True, False): "CC BY-NC-ND",
    (False, False, True): "CC BY-SA",
    (True, False, True): "CC BY-NC-SA",
}


def clean_abbreviation(abbreviation: str) -> str:
    """Remplace les espaces insécables et supprime le point final éventuel."""
    return abbreviation.replace("\u00a0", " ").strip().rstrip(".").strip()


def license_url(abbreviation: str) -> Optional[str]:
    """
    URL normalisée d'une abréviation de licence, avec ou sans "4.0".

    Returns:
        URL, ou None (avec avertissement) si l'abréviation est inconnue

    Example:
        >>> license_url("CC BY-NC 4.0")
        'http://creativecommons.org/licenses/by-nc/4.0/'
    """
    key = clean_abbreviation(abbreviation)
    if key.endswith(" 4.0"):
        key = key[: -len(" 4.0")]
    url = LICENSE_URLS.get(key)
    if url is None:
        logger.warning(f'cannot decipher license abbreviation "{abbreviation}"')
    return url


def license_token(abbreviation: str) -> str:
    """
    Jeton de licence pour les métadonnées du livre.

    Example:
        >>> license_token("CC BY-NC 4.0")
        'cc-by-nc 4.0'
    """
    return clean_abbreviation(abbreviation).lower().replace("cc by", "cc-by")


def abbreviation_from_english(license_text: str) -> str:
    """
    Déduit l'abréviation d'une phrase anglaise "Creative Commons Attribution ...".

    Returns:
        Abréviation (avec " 4.0" si la phrase le mentionne), ou "" si la
        combinaison de clauses est invalide (Share Alike avec No Derivatives)
    """
    flags = (
        bool(_NON_COMMERCIAL.search(license_text)),
        bool(_NO_DERIVATIVES.search(license_text)),
        bool(_SHARE_ALIKE.search(license_text)),
    )
    abbreviation = _FLAGS_TO_ABBREVIATION.get(flags, "")
    if not abbreviation:
        logger.warning(f"Combinaison de clauses de licence invalide : {license_text!r}")
        return ""
    if "4.0" in license_text:
        abbreviation += " 4.0"
    return abbreviation


def abbreviation_from_url_path(path: str) -> str:
    """
    Example:
        >>> abbreviation_from_url_path("by-nc/4.0")
        'CC BY-NC 4.0'
    """
    return ("CC " + path.upper().replace("/", " ")).strip()


def find_license_in_text(text: str) -> Optional[tuple[str, Optional[str]]]:
    """
    Cherche une licence dans le texte d'une page, dans l'ordre :
    URL Creative Commons, phrase anglaise décomposée, abréviation courte.

    Returns:
        (abréviation, URL trouvée dans le texte ou None), ou None si rien n'est trouvé
    """
    match = CC_URL_PATTERN.search(text)
    if match:
        return abbreviation_from_url_path(match.group(2)), match.group(1)

    text = text.replace("\u00a0", " ")
    match = CC_PHRASE_LINE_PATTERN.search(text) or CC_PHRASE_VERSION_PATTERN.search(text)
    if match:
        abbreviation = abbreviation_from_english(match.group(1))
        return (abbreviation, None) if abbreviation else None

    match = CC_TOKEN_PATTERN.search(text)
    if match:
        return match.group(1).strip(), None
    return None


def find_license_in_catalog(license_text: Optional[str]) -> Optional[str]:
    """Abréviation tirée de la licence du catalogue, si c'est une licence Creative Commons Attribution."""
    if not license_text or "Creative Commons Attribution" not in license_text:
        return None
    return abbreviation_from_english(license_text.strip()) or None

"""
Profils des éditeurs : conventions propres à chaque éditeur.

Le profil est choisi une seule fois par livre d'après le nom de l'éditeur
(entrée de catalogue, sinon paquet).
"""

from dataclasses import dataclass
from typing import Callable, Optional

from ..logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class PublisherProfile:
    """
    Conventions d'un éditeur.

    Attributes:
        name: Nom du profil
        matches: Prédicat sur le nom de l'éditeur en minuscules
        credit_page_offset: Décalage appliqué aux numéros "Page N" des crédits
            d'illustration (-1 quand l'éditeur compte la couverture comme page 1)
        landscape_default: Orientation paysage imposée quand aucune n'est demandée
        implicit_copyright_holder: Détenteur du copyright quand le livre n'en mentionne aucun
        disclaimer_markers: Textes signalant une page d'avertissement à ignorer
            pour le choix de l'orientation
    """

    name: str
    matches: Callable[[str], bool]
    credit_page_offset: int = 0
    landscape_default: bool = False
    implicit_copyright_holder: Optional[str] = None
    disclaimer_markers: tuple[str, ...] = ()


PRATHAM_BOOKS = PublisherProfile(
    name="pratham",
    matches=lambda publisher: publisher.startswith(("pratham books", "storyweaver")),
    credit_page_offset=-1,
    disclaimer_markers=("Disclaimer:", "Déni de responsabilité :"),
)

AFRICAN_STORYBOOK = PublisherProfile(
    name="african-storybook",
    matches=lambda publisher: publisher.startswith("african storybook"),
    landscape_default=True,
)

BOOK_DASH = PublisherProfile(
    name="book-dash",
    matches=lambda publisher: publisher == "book dash",
    implicit_copyright_holder="Book Dash",
)

DEFAULT_PROFILE = PublisherProfile(name="default", matches=lambda publisher: True)

PUBLISHER_PROFILES: tuple[PublisherProfile, ...] = (
    PRATHAM_BOOKS,
    AFRICAN_STORYBOOK,
    BOOK_DASH,
)


def resolve_profile(
    publisher: Optional[str],
    profiles: tuple[PublisherProfile, ...] = PUBLISHER_PROFILES,
) -> PublisherProfile:
    """
    Choisit le profil correspondant au nom de l'éditeur.

    Example:
        >>> resolve_profile("Pratham Books").name
        'pratham'
        >>> resolve_profile(None).name
        'default'
    """
    key = (publisher or "").strip().lower()
    if key:
        for profile in profiles:
            if profile.matches(key):
                logger.debug(f"Profil éditeur « {profile.name} » pour {publisher!r}")
                return profile
    return DEFAULT_PROFILE

"""
Choix de la page modèle d'après la forme du contenu d'une page.

La sélection est une fonction pure : une même forme (nombre d'images,
de blocs de texte, de vidéos et nature du premier élément) donne toujours
le même modèle.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional

from .nodes import ContentNode, NodeKind


class TemplateId(Enum):
    """Pages modèles du catalogue (valeur = attribut id dans le document des modèles)."""

    JUST_TEXT = "just-text"
    JUST_A_PICTURE = "just-a-picture"
    BASIC_TEXT_AND_PICTURE = "basic-text-and-picture"
    PICTURE_ON_BOTTOM = "picture-on-bottom"
    PICTURE_IN_MIDDLE = "picture-in-middle"
    PICTURE_ON_LEFT = "picture-on-left"
    JUST_VIDEO = "just-video"
    VIDEO_AND_TEXT = "video-and-text"
    TEXT_AND_VIDEO = "text-and-video"
    VIDEO_ON_LEFT = "video-on-left"


# Remplacements appliqués en mise en page paysage
LANDSCAPE_SWAPS = {
    TemplateId.BASIC_TEXT_AND_PICTURE: TemplateId.PICTURE_ON_LEFT,
    TemplateId.VIDEO_AND_TEXT: TemplateId.VIDEO_ON_LEFT,
}

ANY = "*"
MANY = 2  # plafond des images et vidéos : 0, 1, >1
MANY_TEXTS = 3  # plafond des blocs de texte : 0, 1, 2, >2

# (images, vidéos, textes, premier élément) -> modèle
_TEMPLATE_TABLE: dict[tuple[int, int, int, str], TemplateId] = {
    (0, 0, 1, ANY): TemplateId.JUST_TEXT,
    (0, 0, 2, ANY): TemplateId.JUST_TEXT,
    (0, 0, MANY_TEXTS, ANY): TemplateId.JUST_TEXT,
    (1, 0, 0, ANY): TemplateId.JUST_A_PICTURE,
    (1, 0, 1, NodeKind.IMAGE.value): TemplateId.BASIC_TEXT_AND_PICTURE,
    (1, 0, 1, NodeKind.PARAGRAPH.value): TemplateId.PICTURE_ON_BOTTOM,
    (1, 0, 2, ANY): TemplateId.PICTURE_IN_MIDDLE,
    (MANY, 0, 0, ANY): TemplateId.JUST_A_PICTURE,
    (MANY, 0, 1, ANY): TemplateId.BASIC_TEXT_AND_PICTURE,
    (MANY, 0, 2, ANY): TemplateId.PICTURE_IN_MIDDLE,
    (MANY, 0, MANY_TEXTS, ANY): TemplateId.PICTURE_IN_MIDDLE,
    (0, 1, 0, ANY): TemplateId.JUST_VIDEO,
    (0, 1, 1, NodeKind.VIDEO.value): TemplateId.VIDEO_AND_TEXT,
    (0, 1, 1, NodeKind.PARAGRAPH.value): TemplateId.TEXT_AND_VIDEO,
    (0, MANY, 0, ANY): TemplateId.JUST_VIDEO,
    (0, MANY, 1, NodeKind.VIDEO.value): TemplateId.VIDEO_AND_TEXT,
    (0, MANY, 1, NodeKind.PARAGRAPH.value): TemplateId.TEXT_AND_VIDEO,
}


@dataclass(frozen=True)
class PageShapeSummary:
    """
    Forme du contenu d'une page, utilisée uniquement pour choisir le modèle.

    Les paragraphes contigus comptent pour un seul bloc de texte.
    Le texte nu est considéré comme un paragraphe pour `first_kind`.
    """

    image_count: int = 0
    text_count: int = 0
    video_count: int = 0
    first_kind: Optional[str] = None
    previous_kind: Optional[str] = None


def _kind_label(node: ContentNode) -> str:
    return NodeKind.PARAGRAPH.value if node.is_text else node.kind.value


def summarize_shape(nodes: Iterable[ContentNode]) -> PageShapeSummary:
    """
    Calcule la forme d'une suite de nœuds aplatis.

    Example:
        >>> summarize_shape([image, paragraph, paragraph])
        PageShapeSummary(image_count=1, text_count=1, video_count=0, first_kind='img', previous_kind='p')
    """
    images = texts = videos = 0
    first_kind: Optional[str] = None
    previous_kind: Optional[str] = None
    for node in nodes:
        kind = _kind_label(node)
        if first_kind is None:
            first_kind = kind
        if node.kind == NodeKind.IMAGE:
            images += 1
        elif node.kind == NodeKind.VIDEO:
            videos += 1
        elif node.is_text and previous_kind != NodeKind.PARAGRAPH.value:
            texts += 1
        previous_kind = kind
    return PageShapeSummary(images, texts, videos, first_kind, previous_kind)


def select_template(shape: PageShapeSummary, landscape: bool = False) -> Optional[TemplateId]:
    """
    Choisit la page modèle correspondant à une forme de page.

    Args:
        shape: Forme de la page
        landscape: True pour appliquer les remplacements de la mise en page paysage

    Returns:
        Identifiant du modèle, ou None si aucun modèle ne convient

    Example:
        >>> select_template(PageShapeSummary(image_count=1, text_count=1, first_kind="img"))
        <TemplateId.BASIC_TEXT_AND_PICTURE: 'basic-text-and-picture'>
    """
    key = (
        min(shape.image_count, MANY),
        min(shape.video_count, MANY),
        min(shape.text_count, MANY_TEXTS),
    )
    template = _TEMPLATE_TABLE.get((*key, shape.first_kind or ANY))
    if template is None:
        template = _TEMPLATE_TABLE.get((*key, ANY))
    if template is None:
        return None
    if landscape:
        return LANDSCAPE_SWAPS.get(template, template)
    return template


# Nombre d'emplacements de texte de chaque modèle (div.text-group du catalogue)
TEXT_SLOTS = {
    TemplateId.JUST_TEXT: 1,
    TemplateId.JUST_A_PICTURE: 0,
    TemplateId.BASIC_TEXT_AND_PICTURE: 1,
    TemplateId.PICTURE_ON_BOTTOM: 1,
    TemplateId.PICTURE_IN_MIDDLE: 2,
    TemplateId.PICTURE_ON_LEFT: 1,
    TemplateId.JUST_VIDEO: 0,
    TemplateId.VIDEO_AND_TEXT: 1,
    TemplateId.TEXT_AND_VIDEO: 1,
    TemplateId.VIDEO_ON_LEFT: 1,
}

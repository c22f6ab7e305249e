"""
Module de conversion des pages XHTML source en pages produites.

Ce module fournit des outils pour :
- Aplatir le corps d'une page en nœuds de contenu (images, vidéos, textes)
- Normaliser le balisage des paragraphes
- Choisir la page modèle selon la forme de la page
- Convertir la couverture (titre, image, crédits de couverture)

Organisation du module :
- constants.py : Constantes (balises reconnues, en-têtes d'attribution)
- normalizer.py : Réécritures du balisage jusqu'au point fixe
- nodes.py : Aplatissement des pages en ContentNode
- templates.py : Identifiants des pages modèles et table de sélection
- page.py : Conversion d'une page de contenu (PageConverter)
- cover.py : Conversion de la couverture (CoverConverter)

Exports publics :
    Classes :
        - PageConverter : Conversion des pages de contenu
        - CoverConverter : Conversion de la couverture
        - MarkupNormalizer : Normalisation du balisage
        - NodeFlattener : Aplatissement d'une page
        - TemplateId : Identifiants des pages modèles

    Fonctions :
        - normalize : Normalisation avec les réécritures par défaut
        - select_template : Choix de la page modèle
        - summarize_shape : Forme d'une page
"""

from .constants import COVER_ATTRIBUTION_HEADERS, PARAGRAPH_TAGS, WRAPPER_TAGS

from .normalizer import MarkupNormalizer, normalize
from .nodes import ContentNode, NodeFlattener, NodeKind, page_body, parse_page
from .templates import (
    TEXT_SLOTS,
    PageShapeSummary,
    TemplateId,
    select_template,
    summarize_shape,
)
from .page import PageConverter, group_text_blocks, media_file_name
from .cover import CoverContent, CoverConverter, comparison_key, is_attribution_header

__all__ = [
    # Constantes
    "COVER_ATTRIBUTION_HEADERS",
    "PARAGRAPH_TAGS",
    "WRAPPER_TAGS",
    "TEXT_SLOTS",
    # Classes
    "MarkupNormalizer",
    "ContentNode",
    "NodeFlattener",
    "NodeKind",
    "PageShapeSummary",
    "TemplateId",
    "PageConverter",
    "CoverContent",
    "CoverConverter",
    # Fonctions
    "normalize",
    "page_body",
    "parse_page",
    "select_template",
    "summarize_shape",
    "group_text_blocks",
    "media_file_name",
    "comparison_key",
    "is_attribution_header",
]

"""
Conversion d'une page de contenu source en page produite.

La page source est aplatie en nœuds, sa forme choisit la page modèle, puis
les nœuds sont répartis dans les emplacements du modèle : une image, une
vidéo et autant de blocs de texte que d'emplacements (le surplus de texte
est ajouté au dernier emplacement).
"""

import uuid
from typing import TYPE_CHECKING, Optional
from urllib.parse import unquote

from ..audio.splicer import AudioSplicer
from ..document import ConvertedPage, PageImage, TextBlock
from ..exceptions import TemplateNotFoundError
from ..logger import get_logger
from .nodes import ContentNode, NodeFlattener, NodeKind, page_body, parse_page
from .normalizer import MarkupNormalizer
from .templates import TEXT_SLOTS, select_template, summarize_shape

if TYPE_CHECKING:
    from ..session import ConversionSession

logger = get_logger(__name__)


def media_file_name(src: str) -> str:
    """
    Nom du fichier média dans le dossier de sortie (les médias y sont copiés à plat).

    Example:
        >>> media_file_name("images/Goat%20eats.jpg")
        'Goat eats.jpg'
    """
    return unquote(src).replace("\\", "/").rsplit("/", 1)[-1]


def page_image(node: ContentNode) -> PageImage:
    name = media_file_name(node.src)
    return PageImage(name, node.alt or name)


def paragraph_markup(node: ContentNode, normalizer: MarkupNormalizer) -> str:
    """Paragraphe normalisé d'un nœud de texte."""
    return f"<p>{normalizer.normalize(node.markup.strip())}</p>"


def group_text_blocks(nodes: list[ContentNode]) -> list[list[ContentNode]]:
    """
    Regroupe les nœuds de texte contigus : chaque groupe forme un bloc.

    Example:
        >>> [len(group) for group in group_text_blocks([p, p, img, p])]
        [2, 1]
    """
    groups: list[list[ContentNode]] = []
    previous_is_text = False
    for node in nodes:
        if node.is_text:
            if previous_is_text:
                groups[-1].append(node)
            else:
                groups.append([node])
        previous_is_text = node.is_text
    return groups


class PageConverter:
    """
    Convertit les pages de contenu d'un livre.

    Example:
        >>> converter = PageConverter(language="en", landscape=False)
        >>> page = converter.convert_page(3, markup, "chapter-4.xhtml", session)
        >>> page.template_id
        <TemplateId.PICTURE_ON_BOTTOM: 'picture-on-bottom'>
    """

    def __init__(
        self,
        language: str,
        landscape: bool = False,
        splicer: Optional[AudioSplicer] = None,
        normalizer: Optional[MarkupNormalizer] = None,
    ):
        self.language = language
        self.landscape = landscape
        self.splicer = splicer
        self.normalizer = normalizer or MarkupNormalizer()

    def convert_page(
        self,
        index: int,
        markup: str | bytes,
        source_file_name: str,
        session: Optional["ConversionSession"] = None,
    ) -> ConvertedPage:
        """
        Convertit une page source.

        Args:
            index: Index de la page source (0 = couverture)
            markup: Contenu XHTML de la page
            source_file_name: Nom du fichier de la page (pour la narration)
            session: Session du livre (numéro de page produit, problèmes rencontrés)

        Returns:
            Page produite

        Raises:
            TemplateNotFoundError: Aucune page modèle ne correspond au contenu
        """
        flattener = NodeFlattener(page_index=index)
        nodes = flattener.flatten(page_body(parse_page(markup)))
        if session is not None:
            for issue in flattener.issues:
                session.record_issue(issue)

        shape = summarize_shape(nodes)
        template_id = select_template(shape, self.landscape)
        if template_id is None:
            raise TemplateNotFoundError(
                index, shape.image_count, shape.text_count, shape.video_count
            )

        images = [node for node in nodes if node.kind == NodeKind.IMAGE]
        videos = [node for node in nodes if node.kind == NodeKind.VIDEO]
        for extra in images[1:]:
            logger.warning(f"Page {index} : no place on page for image {extra.src}")
        for extra in videos[1:]:
            logger.warning(f"Page {index} : no place on page for video {extra.src}")

        page_number = session.document.next_page_number if session is not None else index
        blocks = self._text_blocks(nodes, TEXT_SLOTS[template_id], source_file_name, session)
        return ConvertedPage(
            template_id=template_id,
            page_number=page_number,
            source_index=index,
            source_file=source_file_name,
            language=self.language,
            page_id=str(uuid.uuid4()),
            images=tuple(page_image(node) for node in images[:1]),
            text_blocks=blocks,
            video=media_file_name(videos[0].src) if videos else None,
        )

    def _text_blocks(
        self,
        nodes: list[ContentNode],
        slots: int,
        source_file_name: str,
        session: Optional["ConversionSession"],
    ) -> tuple[TextBlock, ...]:
        groups = group_text_blocks(nodes)
        if slots and len(groups) > slots:
            logger.debug(f"{len(groups)} blocs de texte pour {slots} emplacements : surplus regroupé")
            groups = groups[: slots - 1] + [[node for group in groups[slots - 1 :] for node in group]]

        blocks = []
        for position, group in enumerate(groups):
            element_id = str(uuid.uuid4())
            anchors = tuple(anchor for node in group for anchor in node.anchors)
            markup = "\n".join(paragraph_markup(node, self.normalizer) for node in group)
            audio = None
            if self.splicer is not None:
                audio = self.splicer.splice_audio(source_file_name, element_id, position, anchors)
                if session is not None:
                    for issue in self.splicer.issues:
                        session.record_issue(issue)
                    self.splicer.issues.clear()
            blocks.append(TextBlock(element_id, markup, anchors, audio))
        return tuple(blocks)

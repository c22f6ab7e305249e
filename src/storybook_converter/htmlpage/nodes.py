"""
Aplatissement des nœuds de contenu d'une page source.

Les pages sources imbriquent souvent des enveloppes inutiles (<div>, <b>,
<span>...) autour des paragraphes. Le parcours les aplatit récursivement pour
produire une suite plate de nœuds : image, vidéo, paragraphe ou texte nu.
"""

from dataclasses import dataclass, field
from enum import Enum
from html import escape
from typing import Optional

from bs4 import BeautifulSoup, Tag
from bs4.element import Comment, Declaration, Doctype, NavigableString, ProcessingInstruction

from ..exceptions import UnexpectedMarkupWarning
from ..logger import get_logger
from .constants import (
    BLOCK_TAGS,
    CONTAINER_TAGS,
    DECORATION_BEGIN,
    DECORATION_END,
    IGNORED_TAGS,
    PARAGRAPH_TAGS,
    WRAPPER_TAGS,
)

logger = get_logger(__name__)

_NON_CONTENT_STRINGS = (Comment, Declaration, Doctype, ProcessingInstruction)


class NodeKind(Enum):
    IMAGE = "img"
    VIDEO = "video"
    PARAGRAPH = "p"
    TEXT = "text"
    BREAK = "br"


@dataclass(frozen=True)
class ContentNode:
    """
    Nœud de contenu aplati.

    Attributes:
        kind: Type du nœud
        markup: Balisage interne (texte) ; vide pour les images et vidéos
        src: Source de l'image ou de la vidéo
        alt: Texte alternatif de l'image
        anchors: Identifiants d'éléments portés par le nœud (ancres de narration)
    """

    kind: NodeKind
    markup: str = ""
    src: str = ""
    alt: str = ""
    anchors: tuple[str, ...] = ()

    @property
    def is_text(self) -> bool:
        return self.kind in (NodeKind.PARAGRAPH, NodeKind.TEXT)


def _anchors_of(tag: Tag) -> tuple[str, ...]:
    ids = []
    if tag.get("id"):
        ids.append(str(tag["id"]))
    ids.extend(str(t["id"]) for t in tag.find_all(id=True))
    return tuple(ids)


def _has_sentinel(tag: Tag) -> bool:
    return any(
        c.strip() in (DECORATION_BEGIN, DECORATION_END)
        for c in tag.find_all(string=lambda s: isinstance(s, Comment))
    )


def _video_source(tag: Tag) -> str:
    if tag.get("src"):
        return str(tag["src"])
    source = tag.find("source", src=True)
    return str(source["src"]) if isinstance(source, Tag) else ""


@dataclass
class NodeFlattener:
    """
    Parcourt le corps d'une page et produit la suite plate des nœuds de contenu.

    Les éléments non reconnus sont ignorés et consignés dans `issues`.

    Example:
        >>> flattener = NodeFlattener(page_index=3)
        >>> nodes = flattener.flatten(soup.body)
        >>> [n.kind for n in nodes]
        [<NodeKind.IMAGE: 'img'>, <NodeKind.PARAGRAPH: 'p'>]
    """

    page_index: int = 0
    issues: list[UnexpectedMarkupWarning] = field(default_factory=list)
    _skip_depth: int = 0

    def flatten(self, body: Optional[Tag]) -> list[ContentNode]:
        if body is None:
            return []
        self._skip_depth = 0
        raw: list[ContentNode] = []
        self._walk(body, raw)
        return _merge_text_runs(raw)

    def _walk(self, element: Tag, out: list[ContentNode]) -> None:
        for child in list(element.children):
            if isinstance(child, Comment):
                marker = child.strip()
                if marker == DECORATION_BEGIN:
                    self._skip_depth += 1
                elif marker == DECORATION_END:
                    self._skip_depth = max(0, self._skip_depth - 1)
                continue
            if self._skip_depth:
                continue
            if isinstance(child, _NON_CONTENT_STRINGS):
                continue
            if isinstance(child, NavigableString):
                if child.strip():
                    out.append(ContentNode(NodeKind.TEXT, markup=escape(str(child), quote=False)))
                continue
            if isinstance(child, Tag):
                self._visit(child, out)

    def _visit(self, tag: Tag, out: list[ContentNode]) -> None:
        name = (tag.name or "").lower()
        if name == "img":
            src = str(tag.get("src") or "").strip()
            if src:
                out.append(ContentNode(NodeKind.IMAGE, src=src, alt=str(tag.get("alt") or "")))
        elif name == "video":
            src = _video_source(tag)
            if src:
                out.append(ContentNode(NodeKind.VIDEO, src=src))
        elif name == "br":
            out.append(ContentNode(NodeKind.BREAK))
        elif name in PARAGRAPH_TAGS:
            if tag.find(list(BLOCK_TAGS)) or _has_sentinel(tag):
                self._walk(tag, out)
            elif tag.get_text().strip():
                out.append(
                    ContentNode(
                        NodeKind.PARAGRAPH,
                        markup=tag.decode_contents(),
                        anchors=_anchors_of(tag),
                    )
                )
        elif name in WRAPPER_TAGS:
            if tag.find(list(BLOCK_TAGS)) or _has_sentinel(tag):
                self._walk(tag, out)
            elif tag.get_text().strip():
                markup = tag.decode_contents() if name in CONTAINER_TAGS else str(tag)
                out.append(ContentNode(NodeKind.TEXT, markup=markup, anchors=_anchors_of(tag)))
        elif name in IGNORED_TAGS:
            return
        else:
            issue = UnexpectedMarkupWarning(name, self.page_index)
            self.issues.append(issue)
            logger.warning(str(issue))


def _merge_text_runs(nodes: list[ContentNode]) -> list[ContentNode]:
    """Fusionne les textes nus consécutifs ; les sauts de ligne entre eux sont conservés."""
    merged: list[ContentNode] = []
    pending_break = False
    for node in nodes:
        if node.kind == NodeKind.BREAK:
            pending_break = bool(merged) and merged[-1].kind == NodeKind.TEXT
            continue
        if node.kind == NodeKind.TEXT and merged and merged[-1].kind == NodeKind.TEXT:
            previous = merged[-1]
            separator = "<br/>" if pending_break else ""
            merged[-1] = ContentNode(
                NodeKind.TEXT,
                markup=previous.markup + separator + node.markup,
                anchors=previous.anchors + node.anchors,
            )
        else:
            merged.append(node)
        pending_break = False
    return merged


def parse_page(markup: str | bytes) -> BeautifulSoup:
    """Analyse une page XHTML (parseur HTML tolérant, comme pour le reste des pages)."""
    return BeautifulSoup(markup, "html.parser")


def page_body(soup: BeautifulSoup) -> Optional[Tag]:
    body = soup.find("body")
    return body if isinstance(body, Tag) else None

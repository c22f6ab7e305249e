"""
Index des crédits d'images par page et regroupement des pages en plages.
"""

from dataclasses import dataclass, field
from typing import Iterator

from ..logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class PageRangeSummary:
    """
    Pages d'un crédit prêtes à être rédigées.

    Attributes:
        single_page: Numéro de l'unique page (0 = couverture), sinon None
        front_cover: True si la liste commence par la couverture
        singular: True s'il ne reste qu'une page après la couverture
        ranges: Plages rédigées ("1-3", "7")
    """

    single_page: int | None
    front_cover: bool
    singular: bool
    ranges: tuple[str, ...]


def _format_range(first: int, last: int) -> str:
    return str(first) if first == last else f"{first}-{last}"


def collapse_ranges(pages: list[int]) -> list[str]:
    """
    Regroupe les pages contiguës en plages, dans l'ordre d'insertion.

    Une page répétée est ignorée avec un avertissement.

    Example:
        >>> collapse_ranges([1, 2, 3, 5, 7, 8])
        ['1-3', '5', '7-8']
    """
    ranges: list[str] = []
    first = previous = None
    for page in pages:
        if previous is not None and page == previous:
            logger.warning(f"processing credits for more than one image on page {page}")
            continue
        if previous is not None and page == previous + 1:
            previous = page
            continue
        if first is not None:
            ranges.append(_format_range(first, previous))
        first = previous = page
    if first is not None:
        ranges.append(_format_range(first, previous))
    return ranges


def summarize_pages(pages: list[int]) -> PageRangeSummary:
    """
    Prépare la rédaction de la liste de pages d'un crédit.

    Example:
        >>> summarize_pages([0, 1, 2])
        PageRangeSummary(single_page=None, front_cover=True, singular=False, ranges=('1-2',))
    """
    if len(pages) == 1:
        return PageRangeSummary(pages[0], pages[0] == 0, True, ())
    front_cover = bool(pages) and pages[0] == 0
    rest = pages[1:] if front_cover else pages
    return PageRangeSummary(
        single_page=None,
        front_cover=front_cover,
        singular=front_cover and len(pages) == 2,
        ranges=tuple(collapse_ranges(rest)),
    )


@dataclass
class PageCreditPageIndex:
    """
    Texte de crédit -> numéros de pages (0 = couverture), dans l'ordre d'insertion.

    Example:
        >>> index = PageCreditPageIndex()
        >>> index.add("by Vusi Malindi", 1)
        >>> index.add("by Vusi Malindi", 2)
        >>> index.pages("by Vusi Malindi")
        [1, 2]
    """

    _pages: dict[str, list[int]] = field(default_factory=dict)

    def add(self, credit: str, page: int) -> None:
        self._pages.setdefault(credit, []).append(page)

    def pages(self, credit: str) -> list[int]:
        return list(self._pages.get(credit, []))

    def credits(self) -> list[str]:
        return list(self._pages)

    def items(self) -> Iterator[tuple[str, list[int]]]:
        for credit, pages in self._pages.items():
            yield credit, list(pages)

    def __len__(self) -> int:
        return len(self._pages)

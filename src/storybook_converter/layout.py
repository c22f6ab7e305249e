"""
Choix de l'orientation du livre (portrait ou paysage).

Utilisé seulement quand aucune orientation n'est demandée explicitement.
Chaque page de contenu est examinée une fois : présence d'image, présence
de texte, longueur du texte et dimensions de l'image (lues avec Pillow).
"""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, Optional, Sequence
from urllib.parse import unquote

from PIL import Image, UnidentifiedImageError

from .credits.base import BookContext, CreditState
from .credits.extractor import CreditsExtractor
from .htmlpage.nodes import page_body, parse_page
from .logger import get_logger

logger = get_logger(__name__)

ImageSizeReader = Callable[[Path], Optional[tuple[int, int]]]


class Orientation(Enum):
    PORTRAIT = "portrait"
    LANDSCAPE = "landscape"

    @property
    def is_landscape(self) -> bool:
        return self is Orientation.LANDSCAPE


def read_image_size(path: Path) -> Optional[tuple[int, int]]:
    """Largeur et hauteur de l'image, None si elle est illisible."""
    try:
        with Image.open(path) as image:
            return image.size
    except (OSError, UnidentifiedImageError) as e:
        logger.warning(f"Dimensions illisibles pour {path.name} : {e}")
        return None


@dataclass(frozen=True)
class PageSurvey:
    index: int
    has_image: bool
    has_text: bool
    text_length: int
    image_size: Optional[tuple[int, int]] = None

    @property
    def image_only(self) -> bool:
        return self.has_image and not self.has_text

    @property
    def text_only(self) -> bool:
        return self.has_text and not self.has_image


class LayoutHeuristic:
    """
    Décide l'orientation d'un livre à partir de ses pages de contenu.

    Les pages de fin d'ouvrage et les pages d'avertissement de l'éditeur
    sont ignorées. Le profil de l'éditeur peut imposer le paysage.

    Example:
        >>> heuristic = LayoutHeuristic(book)
        >>> heuristic.decide_orientation(metadata.page_files)
        <Orientation.PORTRAIT: 'portrait'>
    """

    def __init__(
        self,
        book: BookContext,
        extractor: Optional[CreditsExtractor] = None,
        image_size: ImageSizeReader = read_image_size,
    ):
        self.book = book
        self.extractor = extractor or CreditsExtractor(book)
        self.image_size = image_size

    def survey(self, page_files: Sequence[Path]) -> list[PageSurvey]:
        """Relevé des pages de contenu (couverture exclue)."""
        scan_state = CreditState()
        surveys = []
        for index, page_file in enumerate(page_files):
            if index == 0:
                continue
            body = page_body(parse_page(Path(page_file).read_bytes()))
            if body is None:
                continue
            if self.extractor.is_end_matter(index, body, scan_state):
                continue
            text = body.get_text(" ", strip=True)
            if any(marker in text for marker in self.book.profile.disclaimer_markers):
                logger.debug(f"Page {index} : avertissement de l'éditeur ignoré")
                continue

            image = body.find("img", src=True)
            size = None
            if image is not None:
                size = self.image_size(self._image_path(Path(page_file), str(image["src"])))
            surveys.append(
                PageSurvey(
                    index=index,
                    has_image=image is not None,
                    has_text=bool(text),
                    text_length=len(text),
                    image_size=size,
                )
            )
        return surveys

    @staticmethod
    def _image_path(page_file: Path, src: str) -> Path:
        path = page_file.parent / src
        if not path.exists():
            decoded = page_file.parent / unquote(src)
            if decoded.exists():
                return decoded
        return path

    def decide_orientation(self, page_files: Sequence[Path]) -> Orientation:
        if self.book.profile.landscape_default:
            logger.info(f"Orientation paysage imposée par l'éditeur pour {self.book.title}")
            return Orientation.LANDSCAPE
        return self.decide_from_survey(self.survey(page_files))

    def decide_from_survey(self, surveys: Sequence[PageSurvey]) -> Orientation:
        """
        Paysage si presque toutes les pages ne sont que des images plutôt
        larges, ou si les pages mixtes dominent avec des images plutôt hautes.
        """
        content_pages = len(surveys)
        image_only = sum(1 for survey in surveys if survey.image_only)
        text_only = sum(1 for survey in surveys if survey.text_only)
        sizes = [survey.image_size for survey in surveys if survey.image_size is not None]
        landscape_images = sum(1 for width, height in sizes if width > height)
        portrait_images = sum(1 for width, height in sizes if height > width)

        logger.debug(
            f"{content_pages} pages de contenu ({image_only} images seules, {text_only} textes seuls), "
            f"{landscape_images} images larges, {portrait_images} images hautes"
        )
        if image_only >= content_pages - 1 and landscape_images > portrait_images:
            return Orientation.LANDSCAPE
        if content_pages >= 3 * (text_only + image_only) and portrait_images > landscape_images:
            return Orientation.LANDSCAPE
        return Orientation.PORTRAIT

"""
Index de narration : lecture des fichiers de synchronisation (SMIL).

Chaque élément <par> associe une ancre de texte (page.xhtml#id) à un extrait
d'un fichier audio (clipBegin / clipEnd). L'ordre de rencontre est conservé,
il détermine la fenêtre de découpage d'un bloc de texte.
"""

import re
from collections import defaultdict
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Iterable, Optional

from bs4 import BeautifulSoup, Tag

from ..logger import get_logger

logger = get_logger(__name__)

_CLOCK_PATTERN = re.compile(r"^(?:(\d+):)?(\d+):(\d+(?:\.\d+)?)$")
_TIMECOUNT_PATTERN = re.compile(r"^(\d+(?:\.\d+)?)(h|min|s|ms)?$")
_TIMECOUNT_FACTORS = {"h": 3600.0, "min": 60.0, "s": 1.0, "ms": 0.001, None: 1.0}


def parse_clock_value(value: Optional[str]) -> Optional[float]:
    """
    Convertit une valeur d'horloge SMIL en secondes.

    Formats acceptés : "0:00:01.500", "00:01.5", "1.5s", "1500ms", "2min",
    "npt=1.5" et un nombre de secondes nu.

    Example:
        >>> parse_clock_value("0:01:02.5")
        62.5
        >>> parse_clock_value("1500ms")
        1.5
    """
    if value is None:
        return None
    value = value.strip()
    if value.startswith("npt="):
        value = value[4:]
    if not value:
        return None

    match = _CLOCK_PATTERN.match(value)
    if match:
        hours = int(match.group(1) or 0)
        minutes = int(match.group(2))
        seconds = float(match.group(3))
        return hours * 3600 + minutes * 60 + seconds

    match = _TIMECOUNT_PATTERN.match(value)
    if match:
        return float(match.group(1)) * _TIMECOUNT_FACTORS[match.group(2)]

    logger.warning(f"Valeur d'horloge SMIL illisible : {value!r}")
    return None


@dataclass(frozen=True)
class NarrationSegment:
    """
    Extrait audio lié à une ancre de texte.

    Attributes:
        page_file: Nom du fichier de page (sans répertoire)
        text_anchor: Identifiant de l'élément de texte dans la page
        audio_file: Nom du fichier audio (sans répertoire)
        audio_path: Chemin complet du fichier audio dans le paquet
        clip_start: Début de l'extrait (secondes)
        clip_end: Fin de l'extrait (secondes)
    """

    page_file: str
    text_anchor: str
    audio_file: str
    audio_path: Path
    clip_start: float
    clip_end: float


def parse_timing_file(markup: str | bytes, smil_dir: Path) -> list[NarrationSegment]:
    """
    Extrait les segments d'un fichier SMIL, dans l'ordre du document.

    Les <par> sans enfant <text> ou <audio>, ou sans bornes lisibles, sont ignorés.
    """
    soup = BeautifulSoup(markup, "xml")
    segments: list[NarrationSegment] = []
    for par in soup.find_all("par"):
        text = par.find("text")
        audio = par.find("audio")
        if not isinstance(text, Tag) or not isinstance(audio, Tag):
            continue
        text_src = str(text.get("src") or "")
        audio_src = str(audio.get("src") or "")
        if "#" not in text_src or not audio_src:
            continue
        page_part, anchor = text_src.split("#", 1)
        start = parse_clock_value(audio.get("clipBegin"))
        end = parse_clock_value(audio.get("clipEnd"))
        if start is None or end is None:
            logger.debug(f"Segment sans bornes ignoré : {text_src}")
            continue
        segments.append(
            NarrationSegment(
                page_file=PurePosixPath(page_part).name,
                text_anchor=anchor,
                audio_file=PurePosixPath(audio_src).name,
                audio_path=smil_dir / audio_src,
                clip_start=start,
                clip_end=end,
            )
        )
    return segments


class NarrationIndex:
    """
    Segments de narration d'un livre, groupés par page.

    Example:
        >>> index = NarrationIndex.from_files(book.narration_files)
        >>> index.segments_for("chapter-2.xhtml", ["s1", "s2"])
        [NarrationSegment(...), NarrationSegment(...)]
    """

    def __init__(self, segments: Iterable[NarrationSegment] = ()):
        self._by_page: dict[str, list[NarrationSegment]] = defaultdict(list)
        self._extents: dict[str, tuple[float, float]] = {}
        for segment in segments:
            self._add(segment)

    def _add(self, segment: NarrationSegment) -> None:
        self._by_page[segment.page_file].append(segment)
        start, end = self._extents.get(
            segment.audio_file, (segment.clip_start, segment.clip_end)
        )
        self._extents[segment.audio_file] = (
            min(start, segment.clip_start),
            max(end, segment.clip_end),
        )

    @classmethod
    def from_files(cls, narration_files: dict[str, Path]) -> "NarrationIndex":
        """Construit l'index à partir des fichiers SMIL du paquet (les fichiers absents sont signalés)."""
        index = cls()
        seen: set[Path] = set()
        for page_name, smil_path in narration_files.items():
            if smil_path in seen:
                continue
            seen.add(smil_path)
            if not smil_path.is_file():
                logger.warning(f"Fichier de synchronisation absent pour {page_name} : {smil_path}")
                continue
            for segment in parse_timing_file(smil_path.read_bytes(), smil_path.parent):
                index._add(segment)
        return index

    def __bool__(self) -> bool:
        return bool(self._by_page)

    def page_segments(self, page_file: str) -> list[NarrationSegment]:
        return list(self._by_page.get(PurePosixPath(page_file).name, []))

    def segments_for(self, page_file: str, anchors: Iterable[str]) -> list[NarrationSegment]:
        """Segments de la page dont l'ancre fait partie de `anchors`, dans l'ordre de rencontre."""
        wanted = set(anchors)
        return [s for s in self.page_segments(page_file) if s.text_anchor in wanted]

    def file_extent(self, audio_file: str) -> Optional[tuple[float, float]]:
        """Bornes (début minimal, fin maximale) de tous les segments d'un fichier audio."""
        return self._extents.get(audio_file)

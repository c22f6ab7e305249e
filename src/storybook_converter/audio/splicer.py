"""
Association des extraits de narration aux blocs de texte convertis.

Pour chaque bloc de texte, les segments SMIL de la page dont l'ancre
appartient au bloc déterminent une fenêtre [premier début, dernière fin].
Si la fenêtre couvre tout le fichier audio, le fichier est copié tel quel ;
sinon il est découpé avec ffmpeg. Un découpage raté est remplacé par une
copie non découpée, signalée par `split = False`. Un fichier source absent
ou illisible laisse le bloc sans audio.
"""

import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Iterable, Optional

from ..exceptions import AmbiguousNarrationWarning, AudioTrimFailure, ConversionError
from ..logger import get_logger
from ..package.narration import NarrationIndex, NarrationSegment
from .hasher import calculate_hash
from .trim import trim_audio

logger = get_logger(__name__)

# Écart toléré entre la fenêtre et l'étendue du fichier (secondes)
EXTENT_TOLERANCE = 0.001


@dataclass(frozen=True)
class AudioBinding:
    """
    Audio associé à un bloc de texte.

    Attributes:
        element_id: Identifiant de l'élément de texte produit
        output_file: Nom du fichier audio produit (<element_id><ext>)
        content_hash: Empreinte sha256 du fichier produit
        clip_start: Début de la fenêtre dans le fichier source (secondes)
        clip_end: Fin de la fenêtre dans le fichier source (secondes)
        split: False si le découpage a échoué et que le fichier est une copie complète
    """

    element_id: str
    output_file: str
    content_hash: str
    clip_start: float
    clip_end: float
    split: bool = True

    @property
    def duration(self) -> float:
        return self.clip_end - self.clip_start


TrimFunction = Callable[[Path, Path, float, float], Path]


@dataclass
class AudioSplicer:
    """
    Produit les fichiers audio des blocs de texte narrés.

    Example:
        >>> splicer = AudioSplicer(index, output_dir / "audio")
        >>> binding = splicer.splice_audio("chapter-2.xhtml", "e3f0...", 0, ["s1", "s2"])
        >>> binding.output_file
        'e3f0....mp3'
    """

    index: NarrationIndex
    output_dir: Path
    trim: TrimFunction = trim_audio
    issues: list[ConversionError] = field(default_factory=list)

    def splice_audio(
        self,
        page_file: str,
        element_id: str,
        index: int,
        anchors: Iterable[str],
    ) -> Optional[AudioBinding]:
        """
        Associe l'audio d'un bloc de texte.

        Args:
            page_file: Fichier de la page source
            element_id: Identifiant de l'élément de texte produit
            index: Position du bloc dans la page (pour les messages)
            anchors: Identifiants des éléments source du bloc

        Returns:
            AudioBinding, ou None si le bloc n'est pas narré ou l'est par
            plusieurs fichiers audio, ou si le fichier source est absent ou illisible
        """
        segments = self.index.segments_for(page_file, anchors)
        if not segments:
            return None

        audio_files = list(dict.fromkeys(s.audio_file for s in segments))
        if len(audio_files) > 1:
            self._record(AmbiguousNarrationWarning(page_file, audio_files), f"bloc {index} sans audio")
            return None

        return self._produce(segments, element_id)

    def _produce(
        self, segments: list[NarrationSegment], element_id: str
    ) -> Optional[AudioBinding]:
        first = segments[0]
        clip_start = first.clip_start
        clip_end = segments[-1].clip_end
        destination = self.output_dir / f"{element_id}{first.audio_path.suffix}"

        if not first.audio_path.is_file():
            self._record(AudioTrimFailure(first.audio_file, "source file not found"))
            return None
        self.output_dir.mkdir(parents=True, exist_ok=True)

        split = True
        try:
            if self._covers_whole_file(first.audio_file, clip_start, clip_end):
                logger.debug(f"Copie intégrale de {first.audio_file} -> {destination.name}")
                shutil.copyfile(first.audio_path, destination)
            else:
                try:
                    self.trim(first.audio_path, destination, clip_start, clip_end)
                except AudioTrimFailure as exc:
                    self._record(exc, "copie du fichier non découpé")
                    shutil.copyfile(first.audio_path, destination)
                    split = False
            content_hash = calculate_hash(destination)
        except OSError as e:
            self._record(AudioTrimFailure(first.audio_file, f"unreadable source: {e}"))
            return None

        return AudioBinding(
            element_id=element_id,
            output_file=destination.name,
            content_hash=content_hash,
            clip_start=clip_start,
            clip_end=clip_end,
            split=split,
        )

    def _record(self, issue: ConversionError, action: str = "bloc sans audio") -> None:
        self.issues.append(issue)
        logger.warning(f"{issue} ; {action}")

    def _covers_whole_file(self, audio_file: str, clip_start: float, clip_end: float) -> bool:
        extent = self.index.file_extent(audio_file)
        if extent is None:
            return False
        return (
            abs(extent[0] - clip_start) <= EXTENT_TOLERANCE
            and abs(extent[1] - clip_end) <= EXTENT_TOLERANCE
        )

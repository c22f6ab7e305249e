"""
Découpage d'un extrait audio avec ffmpeg (appel bloquant).
"""

import subprocess
from pathlib import Path
from typing import Optional

from ..config import ConversionSettings
from ..exceptions import AudioTrimFailure
from ..logger import get_logger

logger = get_logger(__name__)


def build_trim_command(
    source: Path,
    destination: Path,
    clip_start: float,
    clip_end: float,
    ffmpeg_path: Optional[str] = None,
) -> list[str]:
    """Construit la ligne de commande ffmpeg qui extrait [clip_start, clip_end]."""
    return [
        ffmpeg_path or ConversionSettings.ffmpeg_executable,
        "-y",
        "-i",
        str(source),
        "-ss",
        f"{clip_start:.3f}",
        "-to",
        f"{clip_end:.3f}",
        "-c",
        "copy",
        str(destination),
    ]


def trim_audio(
    source: Path,
    destination: Path,
    clip_start: float,
    clip_end: float,
    *,
    ffmpeg_path: Optional[str] = None,
    timeout: Optional[float] = None,
) -> Path:
    """
    Extrait une fenêtre d'un fichier audio vers `destination`.

    Args:
        source: Fichier audio complet
        destination: Fichier à produire (écrasé s'il existe)
        clip_start: Début de l'extrait en secondes
        clip_end: Fin de l'extrait en secondes
        ffmpeg_path: Exécutable ffmpeg (par défaut : ConversionSettings.ffmpeg_executable)
        timeout: Délai maximal en secondes (par défaut : ConversionSettings.audio_trim_timeout)

    Returns:
        Chemin du fichier produit

    Raises:
        AudioTrimFailure: Exécutable absent, délai dépassé ou code retour non nul
    """
    cmd = build_trim_command(source, destination, clip_start, clip_end, ffmpeg_path)
    limit = timeout if timeout is not None else ConversionSettings.audio_trim_timeout
    destination.parent.mkdir(parents=True, exist_ok=True)
    logger.debug(f"Découpage audio : {' '.join(cmd)}")
    try:
        subprocess.run(cmd, check=True, capture_output=True, timeout=limit)
    except FileNotFoundError as exc:
        raise AudioTrimFailure(source.name, f"ffmpeg executable not found: {cmd[0]}") from exc
    except subprocess.TimeoutExpired as exc:
        raise AudioTrimFailure(source.name, f"timed out after {limit:g} s") from exc
    except subprocess.CalledProcessError as exc:
        stderr = exc.stderr.decode("utf-8", errors="ignore") if exc.stderr else ""
        raise AudioTrimFailure(
            source.name, f"ffmpeg exited with code {exc.returncode}", stderr.strip()
        ) from exc
    return destination

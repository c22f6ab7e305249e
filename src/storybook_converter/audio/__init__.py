"""
Narration audio des blocs de texte.

- splicer.py : Association segments SMIL -> fichiers audio (AudioSplicer)
- trim.py : Découpage ffmpeg
- hasher.py : Empreinte sha256 des fichiers produits
"""

from .hasher import calculate_hash
from .splicer import AudioBinding, AudioSplicer
from .trim import build_trim_command, trim_audio

__all__ = [
    "AudioBinding",
    "AudioSplicer",
    "calculate_hash",
    "build_trim_command",
    "trim_audio",
]

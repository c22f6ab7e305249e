"""
Tests de la narration audio : découpage ffmpeg, association aux blocs et empreintes.
"""

import hashlib
import subprocess
from pathlib import Path
from unittest.mock import Mock, patch

import pytest

from storybook_converter.audio import (
    AudioSplicer,
    build_trim_command,
    calculate_hash,
    trim_audio,
)
from storybook_converter.exceptions import AmbiguousNarrationWarning, AudioTrimFailure
from storybook_converter.package import NarrationIndex
from storybook_converter.package.narration import parse_timing_file

from conftest import smil


@pytest.fixture
def narrated_page(tmp_path):
    """Fichiers audio et index de narration d'une page (a.mp3 : s1, s2 ; b.mp3 : s3)."""
    audio_dir = tmp_path / "audio"
    audio_dir.mkdir()
    (audio_dir / "a.mp3").write_bytes(b"ID3" + b"a" * 4096)
    (audio_dir / "b.mp3").write_bytes(b"ID3" + b"b" * 4096)
    markup = smil(
        "chapter-2.xhtml",
        [("s1", "a.mp3", 0.0, 1.5), ("s2", "a.mp3", 1.5, 3.0), ("s3", "b.mp3", 0.0, 2.0)],
    )
    return NarrationIndex(parse_timing_file(markup, tmp_path))


def fake_trim(source: Path, destination: Path, clip_start: float, clip_end: float) -> Path:
    destination.write_bytes(b"trimmed")
    return destination


class TestCalculateHash:
    """Tests pour l'empreinte des fichiers."""

    def test_sha256(self, tmp_path):
        """Vérifie que l'empreinte est celle de hashlib sur le contenu complet."""
        path = tmp_path / "clip.mp3"
        content = b"x" * 20000
        path.write_bytes(content)
        assert calculate_hash(path) == hashlib.sha256(content).hexdigest()

    def test_identical_content_same_hash(self, tmp_path):
        (tmp_path / "one").write_bytes(b"same")
        (tmp_path / "two").write_bytes(b"same")
        assert calculate_hash(tmp_path / "one") == calculate_hash(tmp_path / "two")


class TestTrimAudio:
    """Tests pour l'appel à ffmpeg."""

    def test_build_command(self, tmp_path):
        """Vérifie la ligne de commande ffmpeg."""
        cmd = build_trim_command(Path("in.mp3"), Path("out.mp3"), 1.5, 3.25, ffmpeg_path="ff")
        assert cmd == ["ff", "-y", "-i", "in.mp3", "-ss", "1.500", "-to", "3.250", "-c", "copy", "out.mp3"]

    def test_success(self, tmp_path):
        with patch("storybook_converter.audio.trim.subprocess.run") as run:
            result = trim_audio(tmp_path / "in.mp3", tmp_path / "out" / "x.mp3", 0.0, 1.0)
        assert result == tmp_path / "out" / "x.mp3"
        assert run.call_args.kwargs["check"] is True
        assert (tmp_path / "out").is_dir()

    def test_missing_executable(self, tmp_path):
        """Vérifie qu'un exécutable absent devient AudioTrimFailure."""
        with patch("storybook_converter.audio.trim.subprocess.run", side_effect=FileNotFoundError()):
            with pytest.raises(AudioTrimFailure) as exc_info:
                trim_audio(tmp_path / "in.mp3", tmp_path / "x.mp3", 0.0, 1.0, ffmpeg_path="no-ffmpeg")
        assert "no-ffmpeg" in exc_info.value.reason

    def test_non_zero_exit(self, tmp_path):
        """Vérifie le code retour et la sortie d'erreur conservés dans l'exception."""
        error = subprocess.CalledProcessError(1, ["ffmpeg"], stderr=b"Invalid data\n")
        with patch("storybook_converter.audio.trim.subprocess.run", side_effect=error):
            with pytest.raises(AudioTrimFailure) as exc_info:
                trim_audio(tmp_path / "in.mp3", tmp_path / "x.mp3", 0.0, 1.0)
        assert exc_info.value.audio_file == "in.mp3"
        assert "code 1" in exc_info.value.reason
        assert exc_info.value.stderr == "Invalid data"

    def test_timeout(self, tmp_path):
        error = subprocess.TimeoutExpired(["ffmpeg"], 2)
        with patch("storybook_converter.audio.trim.subprocess.run", side_effect=error):
            with pytest.raises(AudioTrimFailure):
                trim_audio(tmp_path / "in.mp3", tmp_path / "x.mp3", 0.0, 1.0, timeout=2)


class TestAudioSplicer:
    """Tests pour l'association de l'audio aux blocs de texte."""

    def test_whole_file_is_copied(self, narrated_page, tmp_path):
        """Vérifie qu'une fenêtre couvrant tout le fichier donne une copie sans découpage."""
        trim = Mock(side_effect=fake_trim)
        splicer = AudioSplicer(narrated_page, tmp_path / "out", trim=trim)

        binding = splicer.splice_audio("chapter-2.xhtml", "e1", 0, ["s1", "s2"])

        trim.assert_not_called()
        assert binding.output_file == "e1.mp3"
        assert (binding.clip_start, binding.clip_end) == (0.0, 3.0)
        assert binding.split
        assert binding.content_hash == calculate_hash(tmp_path / "audio" / "a.mp3")

    def test_partial_window_is_trimmed(self, narrated_page, tmp_path):
        """Vérifie le découpage d'une fenêtre partielle."""
        trim = Mock(side_effect=fake_trim)
        splicer = AudioSplicer(narrated_page, tmp_path / "out", trim=trim)

        binding = splicer.splice_audio("chapter-2.xhtml", "e2", 1, ["s2"])

        trim.assert_called_once_with(
            tmp_path / "audio" / "a.mp3", tmp_path / "out" / "e2.mp3", 1.5, 3.0
        )
        assert binding.split
        assert binding.duration == pytest.approx(1.5)
        assert binding.content_hash == hashlib.sha256(b"trimmed").hexdigest()

    def test_trim_failure_falls_back_to_copy(self, narrated_page, tmp_path):
        """Vérifie la copie non découpée et le problème consigné quand ffmpeg échoue."""
        trim = Mock(side_effect=AudioTrimFailure("a.mp3", "ffmpeg exited with code 1"))
        splicer = AudioSplicer(narrated_page, tmp_path / "out", trim=trim)

        binding = splicer.splice_audio("chapter-2.xhtml", "e3", 0, ["s1"])

        assert not binding.split
        assert (tmp_path / "out" / "e3.mp3").read_bytes() == (tmp_path / "audio" / "a.mp3").read_bytes()
        assert len(splicer.issues) == 1
        assert isinstance(splicer.issues[0], AudioTrimFailure)

    def test_several_audio_files_are_ambiguous(self, narrated_page, tmp_path):
        """Vérifie qu'un bloc narré par deux fichiers n'est pas associé."""
        splicer = AudioSplicer(narrated_page, tmp_path / "out", trim=Mock())

        assert splicer.splice_audio("chapter-2.xhtml", "e4", 0, ["s1", "s3"]) is None
        assert isinstance(splicer.issues[0], AmbiguousNarrationWarning)
        assert splicer.issues[0].audio_files == ["a.mp3", "b.mp3"]

    def test_block_without_narration(self, narrated_page, tmp_path):
        splicer = AudioSplicer(narrated_page, tmp_path / "out", trim=Mock())
        assert splicer.splice_audio("chapter-2.xhtml", "e5", 0, ["s9"]) is None
        assert splicer.splice_audio("chapter-3.xhtml", "e5", 0, ["s1"]) is None
        assert splicer.issues == []

    def test_missing_source_file(self, narrated_page, tmp_path):
        """Vérifie qu'un fichier audio absent du paquet laisse le bloc sans audio."""
        (tmp_path / "audio" / "a.mp3").unlink()
        trim = Mock(side_effect=fake_trim)
        splicer = AudioSplicer(narrated_page, tmp_path / "out", trim=trim)

        assert splicer.splice_audio("chapter-2.xhtml", "e6", 0, ["s1", "s2"]) is None
        assert splicer.splice_audio("chapter-2.xhtml", "e7", 1, ["s2"]) is None

        trim.assert_not_called()
        assert [type(issue) for issue in splicer.issues] == [AudioTrimFailure, AudioTrimFailure]
        assert splicer.issues[0].audio_file == "a.mp3"
        assert not (tmp_path / "out" / "e6.mp3").exists()

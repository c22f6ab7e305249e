"""
Tests de bout en bout : conversion d'un livre, conversion d'un lot et
ligne de commande.
"""

import json
import zipfile
from pathlib import Path
from unittest.mock import patch

import pytest
from bs4 import BeautifulSoup

from storybook_converter import (
    BookConversionWorker,
    BookJob,
    ConversionOrchestrator,
    ConversionStatus,
    ConvertOptions,
    Orientation,
)
from storybook_converter.__main__ import build_parser, collect_packages, main
from storybook_converter.converter import BookMetadataRecord, sanitize_title
from storybook_converter.exceptions import AudioTrimFailure, PackageFormatError, TemplateNotFoundError
from storybook_converter.htmlpage.page import PageConverter

from conftest import smil

PORTRAIT = ConvertOptions(orientation=Orientation.PORTRAIT)

OPDS = """<?xml version="1.0" encoding="UTF-8"?>
<feed xmlns="http://www.w3.org/2005/Atom" xmlns:dc="http://purl.org/dc/terms/">
  <title>Book Catalog [extract]</title>
  <entry>
    <title>What If?</title>
    <dc:publisher>Pratham Books</dc:publisher>
    <link href="https://example.org/what-if.epub" type="application/epub+zip"
          rel="http://opds-spec.org/acquisition/open-access"/>
  </entry>
</feed>
"""


def zip_epub(root: Path, target: Path) -> Path:
    with zipfile.ZipFile(target, "w") as archive:
        for path in sorted(root.rglob("*")):
            if path.is_file():
                archive.write(path, path.relative_to(root).as_posix())
    return target


def data_field(soup: BeautifulSoup, key: str):
    return soup.find(id="data-division").find("div", attrs={"data-book": key})


class TestSanitizeTitle:
    """Tests pour le nom du fichier produit."""

    def test_invalid_characters(self):
        assert sanitize_title('What If? / "Kya Hoga"') == "What If     Kya Hoga"

    def test_truncated(self):
        assert sanitize_title("a" * 80) == "a" * 50

    def test_empty(self):
        assert sanitize_title(" ?? ") == "Book"


class TestBookMetadataRecord:
    def test_none_values_are_omitted(self, tmp_path):
        """Vérifie les clés du fichier meta.json et l'omission des valeurs absentes."""
        record = BookMetadataRecord(
            title="What If?",
            all_titles={"en": "What If?"},
            authors=None,
            summary="",
            display_names={"en": "English"},
        )
        record.save(tmp_path / "meta.json")
        data = json.loads((tmp_path / "meta.json").read_text(encoding="utf-8"))
        assert "author" not in data
        assert data["allTitles"] == {"en": "What If?"}
        assert data["isSuitableForVernacularLibrary"] is True


class TestConversionOrchestrator:
    """Tests de conversion complète d'un livre."""

    def test_three_page_book(self, three_page_book, tmp_path):
        """Vérifie le document, meta.json, les médias copiés et le rapport."""
        out = tmp_path / "out"
        result = ConversionOrchestrator().convert_book(three_page_book, out, PORTRAIT)

        assert result.output_file == out / "What If.htm"
        assert result.report.status == ConversionStatus.SUCCESS
        assert result.report.converted_pages == 1
        assert result.report.end_matter_pages == 1
        assert result.report.dropped_pages == []

        soup = BeautifulSoup(result.output_file.read_text(encoding="utf-8"), "html.parser")
        assert data_field(soup, "copyright").get_text() == "Copyright © Pratham Books, 2015"
        assert data_field(soup, "copyrightUrl").get_text() == "http://creativecommons.org/licenses/by/4.0/"
        assert "All images by Hari Kumar Nair" in data_field(soup, "originalContributions").get_text()
        assert "Author: Hari Kumar Nair" in data_field(soup, "smallCoverCredits").get_text()
        assert data_field(soup, "insideBackCover") is not None

        pages = soup.find_all("div", attrs={"data-template": True})
        assert [page["data-template"] for page in pages] == ["basic-text-and-picture"]
        assert pages[0].select_one("img")["src"] == "goat.png"
        assert "A5Portrait" in pages[0]["class"]

        cover = soup.find(id="front-cover").find("img")
        assert cover["src"] == "cover.png"
        assert cover["alt"] == "A goat"
        assert cover["data-creator"] == "Hari Kumar Nair"

        assert sorted(path.name for path in result.copied_files) == ["cover.png", "goat.png"]
        assert (out / "goat.png").is_file()

        meta = json.loads(result.metadata_file.read_text(encoding="utf-8"))
        assert meta["title"] == "What If?"
        assert meta["author"] == "Hari Kumar Nair"
        assert meta["copyright"] == "Copyright © Pratham Books, 2015"
        assert meta["license"] == "cc-by 4.0"
        assert meta["summary"] == "A story about curiosity."

    def test_minimal_book_gives_cover_and_one_numbered_page(self, epub_builder, tmp_path):
        """Vérifie qu'un livre de trois pages donne la couverture et une seule page numérotée."""
        epub_builder.publisher = "Pratham Books"
        epub_builder.images = {"cover.png": (600, 800), "goat.png": (600, 800)}
        epub_builder.pages = [
            '<img src="images/cover.png"/><p>What If?</p><p>Author: Hari</p><p>Illustrator: Hari</p>',
            '<img src="images/goat.png"/><p>The goat ate the flower.</p>',
            "<p>© Pratham Books, 2015. Creative Commons Attribution 4.0 license.</p>",
        ]
        result = ConversionOrchestrator().convert_book(epub_builder.build(), tmp_path / "out", PORTRAIT)

        soup = BeautifulSoup(result.output_file.read_text(encoding="utf-8"), "html.parser")
        numbered = soup.find_all("div", class_="numberedPage")
        assert len(numbered) == 1
        assert numbered[0]["data-page-number"] == "1"
        assert soup.find(id="front-cover") is not None
        assert numbered[0].select_one("div.image-container img")["src"] == "goat.png"
        assert numbered[0].select_one("div.text-group p").get_text() == "The goat ate the flower."

        credits = data_field(soup, "smallCoverCredits").get_text()
        assert "Author: Hari" in credits and "Illustrator: Hari" in credits
        assert data_field(soup, "copyright").get_text() == "Copyright © Pratham Books, 2015"
        assert data_field(soup, "copyrightUrl").get_text() == "http://creativecommons.org/licenses/by/4.0/"
        assert result.report.converted_pages == 1
        assert result.report.end_matter_pages == 1

    def test_missing_narration_audio(self, epub_builder, tmp_path):
        """Vérifie qu'un fichier audio absent du paquet laisse la page convertie, sans audio."""
        epub_builder.publisher = "Pratham Books"
        epub_builder.images = {"cover.png": (600, 800), "goat.png": (600, 800)}
        epub_builder.pages = [
            '<img src="images/cover.png"/><p>What If?</p>',
            '<img src="images/goat.png"/><p id="s1">The goat ate the flower.</p>',
            "<p>© Pratham Books, 2015. Creative Commons Attribution 4.0 license.</p>",
        ]
        epub_builder.timing_files = {1: smil("chapter-2.xhtml", [("s1", "missing.mp3", 0.0, 1.0)])}

        result = ConversionOrchestrator().convert_book(epub_builder.build(), tmp_path / "out", PORTRAIT)

        assert result.report.converted_pages == 1
        assert result.report.dropped_pages == []
        assert result.report.status == ConversionStatus.PARTIAL
        failures = [issue for issue in result.report.issues if isinstance(issue, AudioTrimFailure)]
        assert [failure.audio_file for failure in failures] == ["missing.mp3"]
        soup = BeautifulSoup(result.output_file.read_text(encoding="utf-8"), "html.parser")
        assert soup.find(attrs={"data-audio-file": True}) is None

    def test_unreadable_page_is_dropped(self, three_page_book, tmp_path):
        """Vérifie qu'une erreur de lecture sur une page abandonne la page et non le livre."""
        with patch.object(PageConverter, "convert_page", side_effect=OSError("Input/output error")):
            result = ConversionOrchestrator().convert_book(three_page_book, tmp_path / "out", PORTRAIT)

        assert result.report.dropped_pages == [1]
        assert result.report.converted_pages == 0
        assert result.report.status == ConversionStatus.PARTIAL
        assert result.output_file.is_file()

    def test_orientation_from_heuristic(self, three_page_book, tmp_path):
        """Vérifie le paysage choisi pour une page mixte avec une image haute."""
        result = ConversionOrchestrator().convert_book(three_page_book, tmp_path / "out")

        assert result.document.landscape
        soup = BeautifulSoup(result.output_file.read_text(encoding="utf-8"), "html.parser")
        page = soup.find("div", attrs={"data-template": True})
        assert page["data-template"] == "picture-on-left"
        assert "A5Landscape" in page["class"]

    def test_language_reconciled(self, three_page_book, tmp_path):
        """Vérifie le code de langue remplacé et les noms d'affichage."""
        options = ConvertOptions(language_name="Kiswahili", orientation=Orientation.PORTRAIT)
        result = ConversionOrchestrator().convert_book(three_page_book, tmp_path / "out", options)

        assert result.document.language == "sw"
        meta = json.loads(result.metadata_file.read_text(encoding="utf-8"))
        assert meta["displayNames"] == {"sw": "Kiswahili"}
        assert meta["allTitles"] == {"sw": "What If?"}

    def test_page_without_template_is_dropped(self, epub_builder, tmp_path):
        """Vérifie qu'une page sans modèle est abandonnée sans interrompre le livre."""
        epub_builder.images = {"cover.png": (600, 800), "a.png": (600, 800)}
        epub_builder.pages = [
            '<img src="images/cover.png"/><p>What If?</p>',
            '<img src="images/a.png"/><video src="clip.mp4"></video>',
            "<p>The goat ate the flower.</p>",
        ]
        result = ConversionOrchestrator().convert_book(epub_builder.build(), tmp_path / "out", PORTRAIT)

        assert result.report.dropped_pages == [1]
        assert result.report.converted_pages == 1
        assert result.report.status == ConversionStatus.PARTIAL
        assert any(isinstance(issue, TemplateNotFoundError) for issue in result.report.issues)

    def test_epub_file_with_sibling_catalog(self, three_page_book, tmp_path):
        """Vérifie la conversion d'un fichier .epub et la lecture du catalogue voisin."""
        books = tmp_path / "books"
        books.mkdir()
        epub = zip_epub(three_page_book, books / "what-if.epub")
        (books / "what-if.opds").write_text(OPDS, encoding="utf-8")
        options = ConvertOptions(orientation=Orientation.PORTRAIT, output_name="book", work_dir=tmp_path / "work")

        result = ConversionOrchestrator().convert_book(epub, tmp_path / "out", options)

        assert result.output_file.name == "book.htm"
        meta = json.loads(result.metadata_file.read_text(encoding="utf-8"))
        assert meta["importedBookSourceUrl"] == "https://example.org/what-if.epub"

    def test_missing_package(self, tmp_path):
        with pytest.raises(PackageFormatError):
            ConversionOrchestrator().convert_book(tmp_path / "missing.epub", tmp_path / "out")


class TestBookConversionWorker:
    """Tests de conversion d'un lot de livres."""

    def test_failure_does_not_stop_batch(self, three_page_book, tmp_path):
        """Vérifie qu'un livre en échec est consigné sans interrompre les autres."""
        jobs = [
            BookJob(tmp_path / "missing.epub", tmp_path / "out" / "missing"),
            BookJob(three_page_book, tmp_path / "out" / "what-if", PORTRAIT),
        ]
        reports = BookConversionWorker(max_workers=2).run(jobs)

        by_title = {report.title: report for report in reports}
        assert by_title["missing.epub"].status == ConversionStatus.FAILURE
        assert by_title["missing.epub"].error.startswith("PackageFormatError")
        assert by_title["What If?"].status == ConversionStatus.SUCCESS


class TestCommandLine:
    """Tests de la ligne de commande."""

    def test_orientation_flags_are_exclusive(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["book", "--portrait", "--landscape"])

    def test_collect_packages(self, three_page_book, tmp_path):
        """Vérifie qu'un dossier est parcouru à la recherche de fichiers .epub."""
        folder = tmp_path / "folder"
        folder.mkdir()
        zip_epub(three_page_book, folder / "b.epub")
        zip_epub(three_page_book, folder / "a.epub")
        (folder / "notes.txt").write_text("x", encoding="utf-8")

        assert collect_packages([str(three_page_book), str(folder)]) == [
            three_page_book,
            folder / "a.epub",
            folder / "b.epub",
        ]

    def test_main_converts_book(self, three_page_book, tmp_path):
        out = tmp_path / "converted"
        assert main([str(three_page_book), "-o", str(out), "--portrait", "-j", "1"]) == 0
        assert (out / "book" / "What If.htm").is_file()

    def test_main_without_packages(self, tmp_path):
        assert main([str(tmp_path / "nothing-here")]) == 1

"""
Tests du choix de l'orientation et de la réconciliation des codes de langue.
"""

from datetime import datetime
from unittest.mock import Mock

import pytest

from storybook_converter.credits import BookContext, resolve_profile
from storybook_converter.language import UNKNOWN_LANGUAGE_CODE, code_for_name, reconcile
from storybook_converter.layout import LayoutHeuristic, Orientation, PageSurvey, read_image_size

WIDE = (800, 600)
TALL = (600, 800)


def book_context(publisher="Pratham Books", page_count=10) -> BookContext:
    return BookContext(
        title="What If?",
        language_code="en",
        publisher=publisher,
        modified=datetime(2020, 1, 15),
        page_count=page_count,
        profile=resolve_profile(publisher),
    )


def surveys(*pages) -> list[PageSurvey]:
    """(image, texte, dimensions) -> relevés numérotés à partir de 1."""
    return [
        PageSurvey(index, has_image, has_text, 40 if has_text else 0, size)
        for index, (has_image, has_text, size) in enumerate(pages, start=1)
    ]


class TestDecideFromSurvey:
    """Tests pour la règle de choix de l'orientation."""

    def test_wide_picture_book(self):
        """Vérifie le paysage pour un livre d'images larges sans texte."""
        pages = surveys(*[(True, False, WIDE)] * 4)
        assert LayoutHeuristic(book_context()).decide_from_survey(pages) == Orientation.LANDSCAPE

    def test_one_text_page_tolerated(self):
        """Vérifie qu'une seule page avec texte ne change pas la décision."""
        pages = surveys((True, False, WIDE), (True, False, WIDE), (True, True, WIDE))
        assert LayoutHeuristic(book_context()).decide_from_survey(pages) == Orientation.LANDSCAPE

    def test_mixed_pages_with_tall_images(self):
        """Vérifie le paysage quand les pages mixtes dominent avec des images hautes."""
        pages = surveys(*[(True, True, TALL)] * 6)
        assert LayoutHeuristic(book_context()).decide_from_survey(pages) == Orientation.LANDSCAPE

    def test_mixed_pages_with_wide_images(self):
        pages = surveys(*[(True, True, WIDE)] * 6)
        assert LayoutHeuristic(book_context()).decide_from_survey(pages) == Orientation.PORTRAIT

    def test_text_book(self):
        """Vérifie le portrait pour un livre de texte."""
        pages = surveys(*[(False, True, None)] * 5)
        assert LayoutHeuristic(book_context()).decide_from_survey(pages) == Orientation.PORTRAIT

    def test_no_content_pages(self):
        assert LayoutHeuristic(book_context()).decide_from_survey([]) == Orientation.PORTRAIT

    @pytest.mark.parametrize(
        "pages, expected",
        [
            ([(True, False, WIDE)] * 3, Orientation.LANDSCAPE),
            (
                [(False, True, None)] * 4
                + [(True, True, TALL), (True, True, TALL), (True, True, WIDE)],
                Orientation.PORTRAIT,
            ),
            (
                [(False, True, None)] * 2
                + [(True, False, TALL), (True, False, TALL), (True, False, WIDE)],
                Orientation.PORTRAIT,
            ),
        ],
        ids=["landscape-pictures-only", "mostly-text-tall-pictures", "text-then-pictures"],
    )
    def test_decision_examples(self, pages, expected):
        """Vérifie les décisions attendues pour des livres d'images et des livres surtout textuels."""
        assert LayoutHeuristic(book_context()).decide_from_survey(surveys(*pages)) == expected

    def test_publisher_default(self):
        """Vérifie le paysage imposé par le profil d'éditeur, sans lire les pages."""
        heuristic = LayoutHeuristic(book_context("African Storybook Initiative"))
        assert heuristic.decide_orientation([]) == Orientation.LANDSCAPE
        assert Orientation.LANDSCAPE.is_landscape
        assert not Orientation.PORTRAIT.is_landscape


class TestSurvey:
    """Tests pour le relevé des pages de contenu."""

    def test_survey_skips_cover_disclaimer_and_end_matter(self, epub_builder):
        """Vérifie que couverture, avertissement et crédits sont exclus du relevé."""
        epub_builder.images = {"goat.png": TALL}
        epub_builder.pages = [
            '<img src="images/goat.png"/><p>What If?</p>',
            '<img src="images/goat.png"/><p>The goat ate the flower.</p>',
            '<img src="images/goat.png"/>',
            "<p>Disclaimer: this book was made on StoryWeaver.</p>",
            '<div class="attrb-full"><p>© Pratham Books, 2015</p></div>',
        ]
        root = epub_builder.build()
        page_files = [root / "OEBPS" / epub_builder.page_name(i) for i in range(5)]
        image_size = Mock(return_value=TALL)

        result = LayoutHeuristic(book_context(page_count=5), image_size=image_size).survey(page_files)

        assert [survey.index for survey in result] == [1, 2]
        assert result[0].has_text and result[0].has_image
        assert result[1].image_only
        image_size.assert_called_with(root / "OEBPS" / "images" / "goat.png")

    def test_read_image_size(self, epub_builder, tmp_path):
        """Vérifie la lecture des dimensions avec Pillow et le cas d'un fichier illisible."""
        epub_builder.images = {"wide.png": WIDE}
        root = epub_builder.build()
        assert read_image_size(root / "OEBPS" / "images" / "wide.png") == WIDE

        broken = tmp_path / "broken.png"
        broken.write_bytes(b"not an image")
        assert read_image_size(broken) is None


class TestLanguage:
    """Tests pour les codes de langue."""

    def test_code_for_name(self):
        assert code_for_name("Kiswahili") == "sw"
        assert code_for_name(" Kiswahili (Kenya) ") == "sw-KE"
        assert code_for_name("Klingon") == UNKNOWN_LANGUAGE_CODE

    @pytest.mark.parametrize(
        "package_code, language_name, expected",
        [
            ("sw", None, "sw"),
            ("sw", "Kiswahili", "sw"),
            ("en", "Kiswahili", "sw"),
            ("SW-ke", "Kiswahili (Kenya)", "sw-KE"),
            ("bxk", "Lubukusu", "luy"),
            ("fr", "Kiswahili", "fr"),
            ("xx", "Klingon", "xx"),
        ],
    )
    def test_reconcile(self, package_code, language_name, expected):
        """Vérifie la réconciliation du code du paquet avec la langue demandée."""
        assert reconcile(package_code, language_name) == expected

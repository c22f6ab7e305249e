"""
Tests du document converti et de son assemblage HTML.
"""

import pytest
from bs4 import BeautifulSoup

from storybook_converter.audio.splicer import AudioBinding
from storybook_converter.credits.base import CreditRecord, ImageAttribution
from storybook_converter.document import (
    ConvertedDocument,
    ConvertedPage,
    DataDivision,
    DocumentAssembler,
    PageImage,
    TextBlock,
)
from storybook_converter.htmlpage.templates import TemplateId


def make_page(number=1, source_index=1, template_id=TemplateId.BASIC_TEXT_AND_PICTURE, audio=None):
    return ConvertedPage(
        template_id=template_id,
        page_number=number,
        source_index=source_index,
        source_file=f"chapter-{source_index + 1}.xhtml",
        language="en",
        page_id=f"page-{number}",
        images=(PageImage("goat.png", "goat.png"),),
        text_blocks=(TextBlock(f"block-{number}", "<p>The goat ate the <b>red</b> flower.</p>", ("s1",), audio),),
    )


@pytest.fixture
def document():
    document = ConvertedDocument("What If?", "en")
    document.data.set_text("bookTitle", "What If?", "en")
    document.data.set_text("coverImage", "cover.png", alt="cover")
    document.data.set_markup("insideBackCover", "<p>Thanks for reading</p>", "en")
    document.append_page(make_page())
    return document


def assemble(document, **kwargs) -> BeautifulSoup:
    return BeautifulSoup(DocumentAssembler().assemble(document, **kwargs), "html.parser")


class TestDataDivision:
    """Tests pour le dictionnaire champ x langue."""

    def test_text_is_escaped(self):
        data = DataDivision()
        data.set_text("bookTitle", "Tom & Jerry <3", "en")
        assert data.get("bookTitle", "en") == "Tom &amp; Jerry &lt;3"

    def test_lookup_falls_back_to_any_language(self):
        """Vérifie le repli sur l'entrée sans langue."""
        data = DataDivision()
        data.set_text("copyright", "Copyright © X, 2015")
        assert data.lookup("copyright", "sw").markup == "Copyright © X, 2015"
        assert data.get("copyright", "sw") is None

    def test_attributes(self):
        """Vérifie les attributs sans valeur ignorés et la fusion d'attributs."""
        data = DataDivision()
        data.set_text("coverImage", "cover.png", alt="cover", data_creator="")
        data.merge_attributes("coverImage", {"data-creator": "Ann"})
        assert data.attributes("coverImage") == {"alt": "cover", "data-creator": "Ann"}

    def test_next_page_number(self):
        document = ConvertedDocument("What If?", "en")
        assert document.next_page_number == 1
        document.append_page(make_page())
        assert document.next_page_number == 2
        assert document.page_count == 1


class TestDocumentAssembler:
    """Tests pour l'assemblage dans le squelette HTML."""

    def test_head_and_data_division(self, document):
        """Vérifie le titre, la langue et les entrées de la division de données."""
        soup = assemble(document)
        assert soup.title.string == "What If?"
        assert soup.html["lang"] == "en"

        division = soup.find(id="data-division")
        title = division.find("div", attrs={"data-book": "bookTitle"})
        assert title["lang"] == "en"
        assert title.get_text() == "What If?"
        cover = division.find("div", attrs={"data-book": "coverImage"})
        assert cover["lang"] == "*"

    def test_bound_cover_fields(self, document):
        """Vérifie la recopie des champs dans les couvertures."""
        soup = assemble(document)
        front = soup.find(id="front-cover")
        assert front.find(attrs={"data-book": "bookTitle"}).get_text() == "What If?"
        assert front.find("img")["src"] == "cover.png"
        back = soup.find(id="inside-back-cover")
        assert back.find("p").get_text() == "Thanks for reading"

    def test_content_page(self, document):
        """Vérifie le modèle, le numéro de page, l'image et le bloc de texte."""
        soup = assemble(document)
        page = soup.find(id="page-1")
        assert page["data-template"] == "basic-text-and-picture"
        assert page["data-page-number"] == "1"
        assert page.select_one("div.image-container img")["src"] == "goat.png"

        block = page.select_one("div.text-group div.text-block")
        assert block["id"] == "block-1"
        assert block["lang"] == "en"
        assert block.find("b").get_text() == "red"
        assert not block.has_attr("data-audio-file")

    def test_audio_attributes(self):
        """Vérifie les attributs audio d'un bloc narré."""
        document = ConvertedDocument("What If?", "en")
        binding = AudioBinding("block-1", "block-1.mp3", "abc123", 1.0, 3.5, split=False)
        document.append_page(make_page(audio=binding))
        block = assemble(document).select_one("div.text-block")

        assert block["data-audio-file"] == "block-1.mp3"
        assert block["data-audio-hash"] == "abc123"
        assert block["data-duration"] == "2.500"
        assert block["data-audio-split"] == "false"

    def test_image_credits(self, document):
        """Vérifie les crédits de la couverture et des pages."""
        record = CreditRecord("Hari Kumar Nair", "© Pratham Books, 2015", "CC BY 4.0")
        attributions = {
            0: ImageAttribution(0, "A goat", "by Hari Kumar Nair", record),
            1: ImageAttribution(1, "A red flower", "by Hari Kumar Nair", record),
        }
        soup = assemble(document, image_attributions=attributions)

        cover = soup.find(id="front-cover").find("img")
        assert cover["alt"] == "A goat"
        assert cover["data-creator"] == "Hari Kumar Nair"
        image = soup.find(id="page-1").select_one("img")
        assert image["alt"] == "A red flower"
        assert image["data-license"] == "CC BY 4.0"

    def test_art_record_for_uncredited_images(self, document):
        """Vérifie le crédit des illustrations appliqué aux images sans crédit propre."""
        art = CreditRecord(copyright="Artwork © Joe 2015", license_abbreviation="CC BY 4.0")
        soup = assemble(document, art_record=art)
        image = soup.find(id="page-1").select_one("img")
        assert image["data-copyright"] == "Artwork © Joe 2015"
        assert not image.has_attr("data-creator")

    def test_landscape_and_rtl(self, document):
        """Vérifie la classe de format paysage et le sens d'écriture."""
        document.landscape = True
        document.rtl = True
        soup = assemble(document)
        pages = soup.find_all("div", class_="page")
        assert all("A5Landscape" in page["class"] for page in pages)
        assert not any("A5Portrait" in page["class"] for page in pages)
        assert soup.select_one("div.text-block")["dir"] == "rtl"

    def test_video_page(self):
        """Vérifie la source vidéo d'une page vidéo."""
        document = ConvertedDocument("What If?", "en")
        page = ConvertedPage(
            template_id=TemplateId.JUST_VIDEO,
            page_number=1,
            source_index=1,
            source_file="chapter-2.xhtml",
            language="en",
            page_id="video-page",
            video="clip.mp4",
        )
        document.append_page(page)
        soup = assemble(document)
        assert soup.find(id="video-page").find("source")["src"] == "clip.mp4"

"""
Conversion complète d'un livre : du paquet EPUB au document produit.

Étapes :
1. Décompression et lecture des métadonnées (PackageFormatError interrompt le livre)
2. Entrée de catalogue, fichier d'attribution et profil de l'éditeur
3. Réconciliation du code de langue
4. Choix de l'orientation
5. Couverture puis pages de contenu, dans l'ordre, avec la session du livre
6. Crédits, assemblage, copie des images et vidéos
7. Écriture de "<titre>.htm" et du fichier meta.json
"""

import json
import re
import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from .audio.splicer import AudioSplicer
from .config import ConversionSettings
from .credits.attribution import apply_attribution_file
from .credits.base import BookContext
from .credits.extractor import CreditsExtractor
from .credits.publishers import resolve_profile
from .credits.sentences import CreditSentenceRenderer
from .document import ConvertedDocument, DocumentAssembler
from .exceptions import ConversionError, PackageFormatError
from .htmlpage.cover import CoverContent, CoverConverter
from .htmlpage.nodes import page_body, parse_page
from .htmlpage.page import PageConverter
from .language import reconcile
from .layout import LayoutHeuristic, Orientation
from .logger import get_logger
from .package.archive import sibling_file, unpack_package
from .package.catalog import CatalogEntry, load_catalog_entry
from .package.metadata import BookPackageMetadata, load
from .package.narration import NarrationIndex
from .session import ConversionReport, ConversionSession

logger = get_logger(__name__)

METADATA_FILENAME = "meta.json"
AUDIO_DIRNAME = "audio"
DEFAULT_TITLE = "Book"
_INVALID_FILENAME_CHARS = re.compile(r'[<>:"/\\|?*\x00-\x1f]')


def sanitize_title(title: str, max_length: Optional[int] = None) -> str:
    """
    Titre utilisable comme nom de fichier.

    Example:
        >>> sanitize_title('What If? / "Kya Hoga"')
        'What If     Kya Hoga'
        >>> sanitize_title("  ")
        'Book'
    """
    max_length = max_length or ConversionSettings.max_title_length
    cleaned = _INVALID_FILENAME_CHARS.sub(" ", title).strip()
    cleaned = cleaned[:max_length].strip()
    return cleaned or DEFAULT_TITLE


# ============================================================
# 🔹 Options et résultats
# ============================================================
@dataclass
class ConvertOptions:
    """
    Options d'un livre.

    Attributes:
        language_name: Nom de la langue du livre (ex: "Kiswahili")
        orientation: Orientation imposée (None = heuristique)
        rtl: Écriture de droite à gauche
        output_name: Nom du fichier produit, sans extension (défaut: titre nettoyé)
        attribution_file: Fichier texte d'attribution
        catalog_file: Fichier .opds (défaut: fichier voisin du paquet)
        work_dir: Répertoire de décompression des archives
    """

    language_name: Optional[str] = None
    orientation: Optional[Orientation] = None
    rtl: bool = False
    output_name: Optional[str] = None
    attribution_file: Optional[Path] = None
    catalog_file: Optional[Path] = None
    work_dir: Optional[Path] = None


@dataclass(frozen=True)
class BookMetadataRecord:
    """Fichier compagnon meta.json du document produit."""

    title: str
    all_titles: dict[str, str]
    authors: Optional[str]
    summary: str
    display_names: dict[str, str]
    copyright: Optional[str] = None
    license: Optional[str] = None
    source_url: Optional[str] = None
    is_suitable_for_making_shells: bool = False
    is_suitable_for_vernacular_library: bool = True

    def to_json(self) -> dict:
        data = {
            "title": self.title,
            "allTitles": self.all_titles,
            "author": self.authors,
            "summary": self.summary,
            "displayNames": self.display_names,
            "copyright": self.copyright,
            "license": self.license,
            "importedBookSourceUrl": self.source_url,
            "isSuitableForMakingShells": self.is_suitable_for_making_shells,
            "isSuitableForVernacularLibrary": self.is_suitable_for_vernacular_library,
        }
        return {key: value for key, value in data.items() if value is not None}

    def save(self, path: Path) -> None:
        with open(path, "w", encoding="utf-8") as f:
            json.dump(self.to_json(), f, ensure_ascii=False, indent=2)


@dataclass
class ConversionResult:
    report: ConversionReport
    document: ConvertedDocument
    output_file: Path
    metadata_file: Path
    copied_files: list[Path] = field(default_factory=list)


# ============================================================
# 🔹 Orchestrateur
# ============================================================
class ConversionOrchestrator:
    """
    Convertit un livre complet.

    Example:
        >>> orchestrator = ConversionOrchestrator()
        >>> result = orchestrator.convert_book(Path("books/goat.epub"), Path("out/goat"))
        >>> result.report.status
        <ConversionStatus.SUCCESS: 'success'>
    """

    def __init__(self, assembler: Optional[DocumentAssembler] = None):
        self.assembler = assembler or DocumentAssembler()

    def convert_book(
        self,
        package_path: Path,
        output_dir: Path,
        options: Optional[ConvertOptions] = None,
    ) -> ConversionResult:
        """
        Convertit un paquet EPUB.

        Args:
            package_path: Répertoire décompressé, fichier .epub ou .epub.zip
            output_dir: Répertoire du document produit
            options: Options du livre

        Returns:
            ConversionResult avec le rapport du livre

        Raises:
            PackageFormatError: Si le paquet est inutilisable
        """
        options = options or ConvertOptions()
        package_path = Path(package_path)
        output_dir = Path(output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)

        unpacked = unpack_package(package_path, options.work_dir or output_dir / ".work")
        metadata = load(unpacked.root)
        logger.info(f"Conversion de {metadata.title} ({metadata.page_count} pages)")

        catalog = load_catalog_entry(options.catalog_file or sibling_file(package_path, ".opds"))
        publisher = (catalog.publisher if catalog else None) or metadata.publisher
        language = reconcile(metadata.language_code, options.language_name)
        book = BookContext(
            title=metadata.title,
            language_code=language,
            publisher=publisher,
            modified=metadata.modified,
            page_count=metadata.page_count,
            profile=resolve_profile(publisher),
            catalog=catalog,
        )
        renderer = CreditSentenceRenderer(book.sentence_language)
        extractor = CreditsExtractor(book, renderer=renderer)

        orientation = options.orientation or LayoutHeuristic(book, extractor).decide_orientation(
            metadata.page_files
        )
        logger.debug(f"Orientation : {orientation.value}")

        document = ConvertedDocument(
            title=metadata.title,
            language=language,
            landscape=orientation.is_landscape,
            rtl=options.rtl,
        )
        session = ConversionSession(document)
        apply_attribution_file(options.attribution_file or unpacked.attribution_file, session.credits)

        self._fill_book_fields(document, metadata, options)
        narration = NarrationIndex.from_files(metadata.narration_files)
        splicer = AudioSplicer(narration, output_dir / AUDIO_DIRNAME) if narration else None
        page_converter = PageConverter(language, orientation.is_landscape, splicer)

        for index, page_file in enumerate(metadata.page_files):
            markup = page_file.read_bytes()
            if index == 0:
                cover = CoverConverter(
                    metadata.title,
                    renderer,
                    metadata.authors,
                    metadata.illustrators,
                    metadata.other_creators,
                    metadata.other_contributors,
                ).convert_cover(markup)
                self._fill_cover_fields(document, cover)
                continue

            body = page_body(parse_page(markup))
            if extractor.is_end_matter(index, body, session.credits):
                if body is not None:
                    extractor.process_end_matter(index, body, session.credits)
                continue

            try:
                page = page_converter.convert_page(index, markup, page_file.name, session)
            except PackageFormatError:
                raise
            except (ConversionError, OSError) as e:
                session.drop_page(index, e)
                continue
            document.append_page(page)

        extractor.finish(session.credits)
        self._fill_credit_fields(document, session)

        html = self.assembler.assemble(
            document, session.credits.image_attributions, session.credits.art_record
        )
        output_file = output_dir / f"{options.output_name or sanitize_title(metadata.title)}.htm"
        output_file.write_text(html, encoding="utf-8")

        copied = self._copy_media(metadata, output_dir)
        metadata_file = output_dir / METADATA_FILENAME
        self._metadata_record(metadata, catalog, session, options).save(metadata_file)

        report = session.finish()
        report.output_file = output_file
        logger.info(
            f"{metadata.title} : {report.converted_pages} pages, "
            f"{len(report.dropped_pages)} abandonnées, statut {report.status.value}"
        )
        return ConversionResult(report, document, output_file, metadata_file, copied)

    # -----------------------------------
    # 🔹 Division de données
    # -----------------------------------
    def _fill_book_fields(
        self, document: ConvertedDocument, metadata: BookPackageMetadata, options: ConvertOptions
    ) -> None:
        data = document.data
        data.set_text("contentLanguage1", document.language)
        if options.language_name:
            data.set_text("languagesOfBook", options.language_name)
        data.set_paragraph("bookTitle", metadata.title, document.language)

    def _fill_cover_fields(self, document: ConvertedDocument, cover: CoverContent) -> None:
        data = document.data
        if cover.cover_image is not None:
            data.set_text("coverImage", cover.cover_image.src, alt=cover.cover_image.alt)
        for number, image in enumerate(cover.extra_images, start=2):
            data.set_text(f"coverImage{number}", image.src, alt=image.alt)
        if cover.credits:
            data.set_markup("smallCoverCredits", cover.credits_markup, document.language)

    def _fill_credit_fields(self, document: ConvertedDocument, session: ConversionSession) -> None:
        data = document.data
        state = session.credits
        if state.book_copyright:
            data.set_text("copyright", state.book_copyright)
        if state.license_url:
            data.set_text("copyrightUrl", state.license_url)
        if state.original_acknowledgments:
            data.set_paragraph("originalAcknowledgments", state.original_acknowledgments, document.language)
        if state.original_contributions:
            data.set_markup("originalContributions", state.original_contributions, document.language)
        if state.inside_back_cover:
            data.set_markup("insideBackCover", state.inside_back_cover, document.language)

    # -----------------------------------
    # 🔹 Fichiers produits
    # -----------------------------------
    def _copy_media(self, metadata: BookPackageMetadata, output_dir: Path) -> list[Path]:
        """Copie les images et vidéos du paquet sous leur nom d'origine."""
        copied = []
        for source in (*metadata.image_files, *metadata.video_files):
            if not source.is_file():
                logger.warning(f"Fichier média introuvable : {source}")
                continue
            destination = output_dir / source.name
            shutil.copyfile(source, destination)
            copied.append(destination)
        logger.debug(f"{len(copied)} fichiers médias copiés")
        return copied

    def _metadata_record(
        self,
        metadata: BookPackageMetadata,
        catalog: Optional[CatalogEntry],
        session: ConversionSession,
        options: ConvertOptions,
    ) -> BookMetadataRecord:
        language = session.document.language
        return BookMetadataRecord(
            title=metadata.title,
            all_titles={language: metadata.title},
            authors=", ".join(metadata.authors) or None,
            summary=metadata.description,
            display_names={language: options.language_name or language},
            copyright=session.credits.book_copyright,
            license=session.credits.license_token,
            source_url=catalog.acquisition_url if catalog else None,
        )

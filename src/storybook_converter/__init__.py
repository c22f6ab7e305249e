"""
Conversion de livres illustrés EPUB en documents d'édition multi-pages.

Storybook Converter lit les livres numériques diffusés en paquets EPUB
(bibliothèques numériques, plateformes de partage d'histoires, éditeurs
régionaux) et produit un document structuré en pages modèles, en conservant
le texte, les images, la narration audio et les informations de droits.

Le processus de conversion d'un livre :
1. Lit le paquet (métadonnées, ordre des pages, narration)
2. Choisit l'orientation (portrait ou paysage)
3. Convertit la couverture puis chaque page vers une page modèle
4. Extrait les crédits des pages de fin d'ouvrage
5. Assemble le document, copie les médias et écrit meta.json

Organisation du package :
- package/ : Lecture des paquets EPUB et des entrées de catalogue
- htmlpage/ : Aplatissement, normalisation et conversion des pages
- audio/ : Découpage et empreinte des fichiers de narration
- credits/ : Copyright, licences et attributions
- layout.py : Choix de l'orientation
- document.py : Document produit et assemblage
- session.py : État et rapport de conversion d'un livre
- converter.py : Orchestration d'un livre
- worker.py : Conversion parallèle de plusieurs livres

Usage minimal :
    >>> from pathlib import Path
    >>> from storybook_converter import ConversionOrchestrator, ConvertOptions
    >>>
    >>> orchestrator = ConversionOrchestrator()
    >>> result = orchestrator.convert_book(
    ...     Path("books/goat.epub"),
    ...     Path("converted/goat"),
    ...     ConvertOptions(language_name="Kiswahili"),
    ... )
    >>> result.report.status
    <ConversionStatus.SUCCESS: 'success'>

Version: 0.1.0
"""

__version__ = "0.1.0"

from .exceptions import (
    ConversionError,
    PackageFormatError,
    TemplateNotFoundError,
    CreditExtractionMiss,
    AudioTrimFailure,
    UnexpectedMarkupWarning,
    AmbiguousNarrationWarning,
)
from .document import ConvertedDocument, ConvertedPage, DocumentAssembler
from .layout import LayoutHeuristic, Orientation
from .session import ConversionReport, ConversionSession, ConversionStatus
from .converter import (
    BookMetadataRecord,
    ConversionOrchestrator,
    ConversionResult,
    ConvertOptions,
)
from .worker import BookConversionWorker, BookJob

__all__ = [
    # Version
    "__version__",
    # Exceptions
    "ConversionError",
    "PackageFormatError",
    "TemplateNotFoundError",
    "CreditExtractionMiss",
    "AudioTrimFailure",
    "UnexpectedMarkupWarning",
    "AmbiguousNarrationWarning",
    # Document
    "ConvertedDocument",
    "ConvertedPage",
    "DocumentAssembler",
    # Conversion
    "LayoutHeuristic",
    "Orientation",
    "ConversionReport",
    "ConversionSession",
    "ConversionStatus",
    "BookMetadataRecord",
    "ConversionOrchestrator",
    "ConversionResult",
    "ConvertOptions",
    "BookConversionWorker",
    "BookJob",
]

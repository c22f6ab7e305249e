"""
État de conversion d'un livre.

La session est le seul état partagé entre les pages d'un même livre : le
document en construction, l'état des crédits (fin d'ouvrage atteinte,
tampons de crédits) et le rapport de conversion.
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional

from .credits.base import CreditState
from .document import ConvertedDocument
from .exceptions import UnexpectedMarkupWarning
from .logger import get_logger

logger = get_logger(__name__)


class ConversionStatus(Enum):
    SUCCESS = "success"
    PARTIAL = "partial"
    FAILURE = "failure"


@dataclass
class ConversionReport:
    """
    Bilan de la conversion d'un livre.

    Attributes:
        title: Titre du livre (ou nom du paquet si illisible)
        status: success, partial ou failure
        converted_pages: Nombre de pages de contenu produites
        dropped_pages: Index des pages source abandonnées
        end_matter_pages: Nombre de pages de fin d'ouvrage
        issues: Problèmes non bloquants rencontrés
        error: Message de l'erreur qui a interrompu le livre
    """

    title: str
    status: ConversionStatus = ConversionStatus.SUCCESS
    converted_pages: int = 0
    dropped_pages: list[int] = field(default_factory=list)
    end_matter_pages: int = 0
    issues: list[Exception] = field(default_factory=list)
    output_file: Optional[Path] = None
    error: Optional[str] = None

    def finalize(self) -> "ConversionStatus":
        """
        Fixe le statut : partial dès qu'une page est abandonnée ou qu'un
        problème autre qu'un élément HTML ignoré a été consigné.
        """
        if self.status == ConversionStatus.FAILURE:
            return self.status
        degraded = self.dropped_pages or any(
            not isinstance(issue, UnexpectedMarkupWarning) for issue in self.issues
        )
        self.status = ConversionStatus.PARTIAL if degraded else ConversionStatus.SUCCESS
        return self.status

    def fail(self, error: BaseException) -> None:
        self.status = ConversionStatus.FAILURE
        self.error = f"{type(error).__name__}: {error}"


@dataclass
class ConversionSession:
    """
    Contexte transmis à chaque appel de conversion de page d'un livre.

    Example:
        >>> session = ConversionSession(ConvertedDocument("What If?", "en"))
        >>> page = converter.convert_page(1, markup, "chapter-2.xhtml", session)
        >>> session.document.append_page(page)
    """

    document: ConvertedDocument
    credits: CreditState = field(default_factory=CreditState)
    report: Optional[ConversionReport] = None

    def __post_init__(self):
        if self.report is None:
            self.report = ConversionReport(title=self.document.title)

    def record_issue(self, issue: Exception) -> None:
        assert self.report is not None
        self.report.issues.append(issue)
        logger.warning(str(issue))

    def drop_page(self, index: int, issue: Exception) -> None:
        """Abandonne une page source et consigne la raison."""
        assert self.report is not None
        self.report.dropped_pages.append(index)
        self.record_issue(issue)

    def finish(self) -> ConversionReport:
        """Reporte les problèmes de crédits et les compteurs dans le rapport."""
        assert self.report is not None
        self.report.issues.extend(self.credits.issues)
        self.credits.issues.clear()
        self.report.converted_pages = self.document.page_count
        self.report.end_matter_pages = self.credits.end_matter_pages
        self.report.finalize()
        return self.report

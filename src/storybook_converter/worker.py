from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from tqdm import tqdm

from .config import ConversionSettings
from .converter import ConversionOrchestrator, ConvertOptions
from .session import ConversionReport, ConversionStatus
from .logger import get_logger

logger = get_logger(__name__)


@dataclass
class BookJob:
    """Un livre à convertir : paquet source, répertoire de sortie et options."""

    package_path: Path
    output_dir: Path
    options: ConvertOptions = field(default_factory=ConvertOptions)

    @property
    def name(self) -> str:
        return Path(self.package_path).name


class BookConversionWorker:
    """
    Convertit plusieurs livres indépendants en parallèle.

    Chaque livre est converti séquentiellement dans un seul thread ; les
    échecs d'un livre sont consignés sans interrompre le lot.
    """

    def __init__(
        self,
        max_workers: Optional[int] = None,
        orchestrator: Optional[ConversionOrchestrator] = None,
    ):
        self.max_workers = max_workers or ConversionSettings.default_max_workers
        self.orchestrator = orchestrator or ConversionOrchestrator()

    def run(self, jobs: list[BookJob]) -> list[ConversionReport]:
        """Soumet toutes les conversions et attend les résultats."""
        reports: list[ConversionReport] = []

        with tqdm(
            total=len(jobs),
            desc="Conversion des livres",
            unit="livre",
            ncols=100,
            bar_format="{l_bar}{bar}| {n_fmt}/{total_fmt} [{elapsed}<{remaining}]",
        ) as pbar:
            with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
                futures = {executor.submit(self._convert, job): job for job in jobs}

                for future in as_completed(futures):
                    job = futures[future]
                    try:
                        reports.append(future.result())

                    except KeyboardInterrupt:
                        pbar.write("\n❌ Conversion interrompue par l'utilisateur")
                        raise

                    except Exception as e:
                        logger.exception(f"Échec de la conversion de {job.name} : {e}")
                        report = ConversionReport(title=job.name)
                        report.fail(e)
                        reports.append(report)
                        pbar.write(f"\n❌ {job.name} : {type(e).__name__}: {e}\n")

                    finally:
                        pbar.update(1)

                self._print_summary(pbar, reports)
        return reports

    def _convert(self, job: BookJob) -> ConversionReport:
        result = self.orchestrator.convert_book(job.package_path, job.output_dir, job.options)
        return result.report

    def _print_summary(self, pbar, reports: list[ConversionReport]):
        """Affiche le résumé final du lot."""
        counts = {status: 0 for status in ConversionStatus}
        for report in reports:
            counts[report.status] += 1

        pbar.write(f"\n{'='*60}")
        pbar.write("📊 Résumé de la conversion:")
        pbar.write(f"   ✅ Réussis: {counts[ConversionStatus.SUCCESS]}")
        if counts[ConversionStatus.PARTIAL] > 0:
            pbar.write(f"   ⚠️  Partiels: {counts[ConversionStatus.PARTIAL]}")
        if counts[ConversionStatus.FAILURE] > 0:
            pbar.write(f"   ❌ Échecs: {counts[ConversionStatus.FAILURE]}")
        if counts[ConversionStatus.PARTIAL] or counts[ConversionStatus.FAILURE]:
            pbar.write("   📁 Consultez les logs dans 'logs/' pour plus de détails")
        pbar.write(f"{'='*60}\n")

"""
Décompression des paquets EPUB livrés sous forme d'archive.

Un livre peut arriver sous trois formes :
- un répertoire déjà décompressé (utilisé tel quel)
- un fichier .epub (archive zip)
- un fichier .epub.zip contenant le .epub et parfois un fichier texte
  d'attribution (« ...StoryWeaverAttribution....txt »)
"""

import shutil
import zipfile
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from ..exceptions import PackageFormatError
from ..logger import get_logger

logger = get_logger(__name__)

ATTRIBUTION_FILE_MARKER = "StoryWeaverAttribution"


@dataclass(frozen=True)
class UnpackedPackage:
    """
    Paquet prêt à être lu.

    Attributes:
        root: Répertoire contenant META-INF/container.xml
        attribution_file: Fichier texte d'attribution trouvé à côté du .epub
    """

    root: Path
    attribution_file: Optional[Path] = None


def extract_zip(zip_path: Path, destination: Path) -> None:
    """
    Extrait une archive zip en refusant les chemins qui sortent de la destination.

    Raises:
        PackageFormatError: Si l'archive est illisible ou contient un chemin dangereux
    """
    destination.mkdir(parents=True, exist_ok=True)
    resolved_root = destination.resolve()
    try:
        with zipfile.ZipFile(zip_path) as archive:
            for member in archive.infolist():
                target = (destination / member.filename).resolve()
                if resolved_root not in target.parents and target != resolved_root:
                    raise PackageFormatError(str(zip_path), f"safe path for {member.filename}")
            archive.extractall(destination)
    except zipfile.BadZipFile as e:
        raise PackageFormatError(str(zip_path), "readable zip archive") from e


def unpack_package(package_path: Path, work_dir: Path) -> UnpackedPackage:
    """
    Rend un paquet lisible depuis le disque.

    Args:
        package_path: Répertoire, fichier .epub ou fichier .epub.zip
        work_dir: Répertoire de travail où décompresser les archives

    Returns:
        UnpackedPackage pointant vers le répertoire décompressé

    Raises:
        PackageFormatError: Si le chemin n'existe pas ou si aucun .epub n'est trouvé
    """
    package_path = Path(package_path)
    if package_path.is_dir():
        return UnpackedPackage(root=package_path)
    if not package_path.exists():
        raise PackageFormatError(str(package_path), "package file")

    attribution_file: Optional[Path] = None
    epub_file = package_path
    if package_path.name.endswith(".epub.zip"):
        logger.info(f"Décompression de {package_path.name} pour obtenir le fichier epub")
        outer_dir = work_dir / "epub_zip"
        if outer_dir.exists():
            shutil.rmtree(outer_dir)
        extract_zip(package_path, outer_dir)
        epub_candidates = sorted(outer_dir.rglob("*.epub"))
        if not epub_candidates:
            raise PackageFormatError(str(package_path), "epub file inside the archive")
        epub_file = epub_candidates[0]
        for text_file in sorted(outer_dir.rglob("*.txt")):
            if ATTRIBUTION_FILE_MARKER in text_file.name:
                attribution_file = text_file
                break

    epub_dir = work_dir / "epub"
    if epub_dir.exists():
        shutil.rmtree(epub_dir)
    extract_zip(epub_file, epub_dir)
    return UnpackedPackage(root=epub_dir, attribution_file=attribution_file)


def sibling_file(package_path: Path, extension: str) -> Path:
    """
    Chemin d'un fichier associé au livre (catalogue .opds, vignette...).

    Example:
        >>> sibling_file(Path("books/goat.epub.zip"), ".opds")
        PosixPath('books/goat.opds')
    """
    name = package_path.name
    for suffix in (".epub.zip", ".epub"):
        if name.endswith(suffix):
            return package_path.with_name(name[: -len(suffix)] + extension)
    return package_path.with_name(name + extension)

"""
Lecture des métadonnées et du manifeste d'un paquet EPUB.

Le fichier pointeur META-INF/container.xml désigne le document de paquet
(OPF). On y lit l'identifiant, le titre, la langue, la date de modification,
les contributeurs répartis par rôle, puis les pages, images, vidéos et
fichiers de synchronisation audio déclarés dans le manifeste.
"""

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Optional
from urllib.parse import unquote

from bs4 import BeautifulSoup, Tag

from ..exceptions import PackageFormatError
from ..logger import get_logger
from .ordering import sort_pages

logger = get_logger(__name__)

CONTAINER_PATH = Path("META-INF") / "container.xml"
XHTML_MEDIA_TYPE = "application/xhtml+xml"
SMIL_MEDIA_TYPE = "application/smil+xml"
NAVIGATION_IDS = {"toc", "nav"}

# Codes de rôle MARC relators
ROLE_AUTHOR = "aut"
ROLE_ILLUSTRATOR = "ill"
ROLE_BOOK_PRODUCER = "bkp"


@dataclass(frozen=True)
class BookPackageMetadata:
    """
    Métadonnées d'un livre, construites une seule fois puis immuables.

    Attributes:
        identifier: Identifiant unique du paquet
        title: Titre du livre
        language_code: Code de langue déclaré (dc:language)
        modified: Date de dernière modification du paquet
        page_files: Pages de contenu dans l'ordre de lecture
        image_files: Images déclarées dans le manifeste
        narration_files: Nom de fichier de page -> fichier de synchronisation (SMIL)
    """

    identifier: str
    title: str
    language_code: str
    modified: datetime
    root: Path
    description: str = ""
    page_files: tuple[Path, ...] = ()
    image_files: tuple[Path, ...] = ()
    video_files: tuple[Path, ...] = ()
    authors: tuple[str, ...] = ()
    illustrators: tuple[str, ...] = ()
    other_creators: tuple[str, ...] = ()
    other_contributors: tuple[str, ...] = ()
    book_producers: tuple[str, ...] = ()
    publisher: Optional[str] = None
    source: Optional[str] = None
    rights: Optional[str] = None
    narration_files: dict[str, Path] = field(default_factory=dict)

    @property
    def page_count(self) -> int:
        return len(self.page_files)


# ============================================================
# 🔹 Fonctions utilitaires XML
# ============================================================


def _parse_xml(markup: str | bytes) -> BeautifulSoup:
    return BeautifulSoup(markup, "xml")


def _text(tag: Optional[Tag]) -> Optional[str]:
    if tag is None:
        return None
    value = tag.get_text().strip()
    return value or None


def _parse_timestamp(value: str) -> Optional[datetime]:
    value = value.strip()
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        return None


def read_container(root: Path) -> Path:
    """
    Localise le document de paquet via META-INF/container.xml.

    Raises:
        PackageFormatError: Si le fichier pointeur ou son rootfile est absent
    """
    container = root / CONTAINER_PATH
    if not container.is_file():
        raise PackageFormatError(str(root), str(CONTAINER_PATH))
    soup = _parse_xml(container.read_bytes())
    rootfile = soup.find("rootfile")
    full_path = rootfile.get("full-path") if isinstance(rootfile, Tag) else None
    if not full_path:
        raise PackageFormatError(str(root), "rootfile full-path")
    return root / str(full_path)


# ============================================================
# 🔹 Répartition des contributeurs par rôle
# ============================================================


class _Roles:
    def __init__(self):
        self.authors: list[str] = []
        self.illustrators: list[str] = []
        self.other_creators: list[str] = []
        self.other_contributors: list[str] = []
        self.book_producers: list[str] = []


def _refined_role(metadata: Tag, element: Tag) -> Optional[str]:
    element_id = element.get("id")
    if not element_id:
        return None
    for meta in metadata.find_all("meta", attrs={"refines": f"#{element_id}"}):
        if meta.get("property") == "role" and meta.get("scheme") == "marc:relators":
            return _text(meta)
    return None


def _split_roles(metadata: Tag) -> _Roles:
    roles = _Roles()

    for creator in metadata.find_all("creator"):
        name = _text(creator)
        if not name:
            continue
        role = creator.get("opf:role") or creator.get("role")
        if role == ROLE_AUTHOR:
            roles.authors.append(name)
        elif role == ROLE_ILLUSTRATOR:
            roles.illustrators.append(name)
        elif role:
            roles.other_creators.append(name)
        else:
            refined = _refined_role(metadata, creator)
            if refined is None or refined == ROLE_AUTHOR:
                roles.authors.append(name)
            elif refined == ROLE_ILLUSTRATOR:
                roles.illustrators.append(name)
            else:
                roles.other_creators.append(name)

    for contributor in metadata.find_all("contributor"):
        name = _text(contributor)
        if not name:
            continue
        role = contributor.get("opf:role") or contributor.get("role")
        if role == ROLE_AUTHOR:
            roles.authors.append(name)
        elif role == ROLE_ILLUSTRATOR:
            roles.illustrators.append(name)
        elif role == ROLE_BOOK_PRODUCER:
            roles.book_producers.append(name)
        elif role:
            roles.other_contributors.append(name)
        else:
            refined = _refined_role(metadata, contributor)
            if refined is None or refined == ROLE_ILLUSTRATOR:
                roles.illustrators.append(name)
            else:
                roles.other_contributors.append(name)

    return roles


# ============================================================
# 🔹 Lecture du document de paquet
# ============================================================


def _resolve_href(content_dir: Path, href: str) -> Path:
    """Chemin d'une ressource, décodé (%20...) si le chemin littéral n'existe pas."""
    path = content_dir / href
    if not path.exists():
        decoded = content_dir / unquote(href)
        if decoded.exists():
            return decoded
    return path


def _find_modified(metadata: Tag) -> Optional[datetime]:
    for meta in metadata.find_all("meta"):
        if meta.get("property") == "dcterms:modified":
            parsed = _parse_timestamp(meta.get_text())
            if parsed is not None:
                return parsed
    for meta in metadata.find_all("meta"):
        if meta.get("name") == "calibre:timestamp" and meta.get("content"):
            parsed = _parse_timestamp(str(meta["content"]))
            if parsed is not None:
                return parsed
    return None


def _publisher_from_source(source: Optional[str], title: str) -> Optional[str]:
    if not source or not source.startswith(title):
        return None
    publisher = source[len(title):]
    if publisher[:1] in (",", ":", ";"):
        publisher = publisher[1:]
    return publisher.strip() or None


def parse_package_document(
    opf_markup: str | bytes, opf_path: Path, root: Optional[Path] = None
) -> BookPackageMetadata:
    """
    Construit les métadonnées à partir du contenu d'un document OPF.

    Args:
        opf_markup: Contenu XML du document de paquet
        opf_path: Chemin du document (les href sont relatifs à son répertoire)
        root: Racine du paquet décompressé (défaut: répertoire de l'OPF)

    Returns:
        BookPackageMetadata complet

    Raises:
        PackageFormatError: Si identifiant, titre, langue ou date de modification manque
    """
    soup = _parse_xml(opf_markup)
    metadata = soup.find("metadata")
    manifest = soup.find("manifest")
    if not isinstance(metadata, Tag):
        raise PackageFormatError(str(opf_path), "metadata element")

    package = soup.find("package")
    unique_id = package.get("unique-identifier") if isinstance(package, Tag) else None
    identifier_tag = None
    if unique_id:
        identifier_tag = metadata.find("identifier", attrs={"id": unique_id})
    identifier = _text(identifier_tag) or _text(metadata.find("identifier"))
    title = _text(metadata.find("title"))
    language = _text(metadata.find("language"))
    modified = _find_modified(metadata)
    if not identifier:
        raise PackageFormatError(str(opf_path), "dc:identifier")
    if not title:
        raise PackageFormatError(str(opf_path), "dc:title")
    if not language:
        raise PackageFormatError(str(opf_path), "dc:language")
    if modified is None:
        raise PackageFormatError(str(opf_path), "dcterms:modified")

    roles = _split_roles(metadata)
    content_dir = opf_path.parent

    items = manifest.find_all("item") if isinstance(manifest, Tag) else []
    smil_by_id: dict[str, Path] = {}
    for item in items:
        if item.get("media-type") == SMIL_MEDIA_TYPE and item.get("href"):
            smil_by_id[str(item.get("id"))] = content_dir / str(item["href"])

    declared_pages: list[str] = []
    overlays: dict[str, str] = {}
    images: list[Path] = []
    videos: list[Path] = []
    for item in items:
        href = item.get("href")
        media_type = str(item.get("media-type") or "")
        if not href:
            continue
        href = str(href)
        if media_type == XHTML_MEDIA_TYPE and item.get("id") not in NAVIGATION_IDS:
            declared_pages.append(href)
            overlay = item.get("media-overlay")
            if overlay:
                overlays[Path(href).name] = str(overlay)
        elif media_type.startswith("image/"):
            images.append(_resolve_href(content_dir, href))
        elif media_type.startswith("video/"):
            videos.append(_resolve_href(content_dir, href))

    ordered_pages = sort_pages(declared_pages)
    if ordered_pages != declared_pages:
        logger.info("L'ordre des fichiers de page a dû être corrigé")

    narration_files: dict[str, Path] = {}
    for page_name, smil_id in overlays.items():
        if smil_id in smil_by_id:
            narration_files[page_name] = smil_by_id[smil_id]
        else:
            logger.warning(f"Fichier de synchronisation {smil_id} introuvable pour {page_name}")

    source = _text(metadata.find("source"))
    publisher = _text(metadata.find("publisher")) or _publisher_from_source(source, title)

    return BookPackageMetadata(
        identifier=identifier,
        title=title,
        language_code=language,
        modified=modified,
        root=root or content_dir,
        description=_text(metadata.find("description")) or "",
        page_files=tuple(content_dir / href for href in ordered_pages),
        image_files=tuple(images),
        video_files=tuple(videos),
        authors=tuple(roles.authors),
        illustrators=tuple(roles.illustrators),
        other_creators=tuple(roles.other_creators),
        other_contributors=tuple(roles.other_contributors),
        book_producers=tuple(roles.book_producers),
        publisher=publisher,
        source=source,
        rights=_text(metadata.find("rights")),
        narration_files=narration_files,
    )


def load(package_path: Path) -> BookPackageMetadata:
    """
    Lit les métadonnées d'un paquet EPUB décompressé.

    Args:
        package_path: Répertoire racine du paquet (contenant META-INF/)

    Returns:
        BookPackageMetadata du livre

    Raises:
        PackageFormatError: Si le fichier pointeur ou un champ obligatoire manque

    Example:
        >>> book = load(Path("work/epub"))
        >>> book.title, book.page_count
        ('What If?', 14)
    """
    root = Path(package_path)
    opf_path = read_container(root)
    if not opf_path.is_file():
        raise PackageFormatError(str(root), str(opf_path.relative_to(root)))
    logger.debug(f"Document de paquet : {opf_path}")
    return parse_package_document(opf_path.read_bytes(), opf_path, root)

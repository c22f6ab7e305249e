"""
Lecture des paquets EPUB sources.

Organisation du module :
- archive.py : Décompression des .epub et .epub.zip
- ordering.py : Ordre de lecture des fichiers de page
- metadata.py : Métadonnées, contributeurs et manifeste (BookPackageMetadata)
- narration.py : Index des fichiers de synchronisation audio (SMIL)
- catalog.py : Entrée de catalogue OPDS associée au livre
"""

from .archive import UnpackedPackage, unpack_package, sibling_file
from .catalog import CatalogEntry, parse_catalog_entry, load_catalog_entry
from .metadata import BookPackageMetadata, load, parse_package_document
from .narration import NarrationIndex, NarrationSegment, parse_clock_value
from .ordering import page_sort_key, sort_pages

__all__ = [
    "UnpackedPackage",
    "unpack_package",
    "sibling_file",
    "CatalogEntry",
    "parse_catalog_entry",
    "load_catalog_entry",
    "BookPackageMetadata",
    "load",
    "parse_package_document",
    "NarrationIndex",
    "NarrationSegment",
    "parse_clock_value",
    "page_sort_key",
    "sort_pages",
]

"""
Point d'entrée en ligne de commande.

Convertit un ou plusieurs paquets EPUB (répertoires décompressés, fichiers
.epub ou .epub.zip) ; un répertoire qui n'est pas un paquet est parcouru à
la recherche de fichiers .epub et .epub.zip.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

from . import __version__
from .config import ConversionSettings, lock_config
from .converter import ConvertOptions, sanitize_title
from .layout import Orientation
from .logger import set_console_level
from .package.metadata import CONTAINER_PATH
from .session import ConversionStatus
from .worker import BookConversionWorker, BookJob


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="storybook-converter",
        description="Convert EPUB storybooks into book-authoring documents.",
    )
    ap.add_argument(
        "-V",
        "--version",
        action="version",
        version=f"storybook-converter {__version__}",
    )
    ap.add_argument(
        "inputs",
        nargs="+",
        help="Unpacked EPUB directory, .epub or .epub.zip file, or a folder of such files",
    )
    ap.add_argument(
        "-o",
        "--output-dir",
        default="converted",
        help="Folder receiving one sub-folder per converted book (default: converted)",
    )
    ap.add_argument(
        "-l",
        "--language",
        help="Language name of the books, e.g. 'Kiswahili'; reconciles the package language code",
    )
    layout = ap.add_mutually_exclusive_group()
    layout.add_argument("--portrait", action="store_true", help="Force portrait pages")
    layout.add_argument("--landscape", action="store_true", help="Force landscape pages")
    ap.add_argument("--rtl", action="store_true", help="Text is written right to left")
    ap.add_argument(
        "--output-name",
        help="File name of the produced document, without extension (single book only)",
    )
    ap.add_argument("--attribution-file", type=Path, help="Attribution text file (single book only)")
    ap.add_argument("--catalog-file", type=Path, help="OPDS catalog entry (single book only)")
    ap.add_argument(
        "-j",
        "--workers",
        type=int,
        default=ConversionSettings.default_max_workers,
        help=f"Books converted in parallel (default: {ConversionSettings.default_max_workers})",
    )
    ap.add_argument("--verbose", action="store_true", help="Show INFO messages on the console")
    return ap


def _is_package(path: Path) -> bool:
    if path.is_dir():
        return (path / CONTAINER_PATH).is_file()
    return path.name.endswith((".epub", ".epub.zip"))


def collect_packages(inputs: list[str]) -> list[Path]:
    """Liste des paquets désignés par les arguments, dans l'ordre."""
    packages: list[Path] = []
    for value in inputs:
        path = Path(value)
        if _is_package(path):
            packages.append(path)
        elif path.is_dir():
            packages.extend(
                sorted(p for p in path.iterdir() if p.is_file() and _is_package(p))
            )
        else:
            print(f"⚠️  Ignoré (ni paquet ni dossier) : {path}", file=sys.stderr)
    return packages


def _book_dir_name(package: Path) -> str:
    name = package.name
    for suffix in (".epub.zip", ".epub"):
        if name.endswith(suffix):
            name = name[: -len(suffix)]
    return sanitize_title(name)


def _orientation(args: argparse.Namespace) -> Optional[Orientation]:
    if args.landscape:
        return Orientation.LANDSCAPE
    if args.portrait:
        return Orientation.PORTRAIT
    return None


def main(argv: Optional[list[str]] = None) -> int:
    """
    Point d'entrée principal du programme.

    Returns:
        0 si aucun livre n'a échoué, 1 sinon
    """
    args = build_parser().parse_args(argv)
    if args.verbose:
        set_console_level(logging.INFO)
    lock_config()

    packages = collect_packages(args.inputs)
    if not packages:
        print("❌ Aucun paquet EPUB à convertir", file=sys.stderr)
        return 1
    single = len(packages) == 1

    output_root = Path(args.output_dir)
    jobs = [
        BookJob(
            package_path=package,
            output_dir=output_root / _book_dir_name(package),
            options=ConvertOptions(
                language_name=args.language,
                orientation=_orientation(args),
                rtl=args.rtl,
                output_name=args.output_name if single else None,
                attribution_file=args.attribution_file if single else None,
                catalog_file=args.catalog_file if single else None,
            ),
        )
        for package in packages
    ]

    reports = BookConversionWorker(max_workers=args.workers).run(jobs)
    return 1 if any(report.status == ConversionStatus.FAILURE for report in reports) else 0


if __name__ == "__main__":
    sys.exit(main())

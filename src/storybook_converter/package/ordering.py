"""
Ordre de lecture des pages d'un paquet EPUB.

L'ordre de déclaration du manifeste n'est pas fiable : les pages sont triées
d'après leur nom de fichier.
"""

import re
from pathlib import PurePosixPath

# Priorités des sections nommées
FRONT_PRIORITY = 0
QUESTIONS_PRIORITY = 990000
GLOSSARY_PRIORITY = 999000
BACK_PRIORITY = 999999

_ROMAN_CHARS = set("ivx")
_TRAILING_NUMBER = re.compile(r"^(.*?)(\d+)$")


def _split_trailing_number(stem: str) -> tuple[str, int]:
    match = _TRAILING_NUMBER.match(stem)
    if match is None:
        return stem, 0
    return match.group(1), int(match.group(2))


def page_sort_key(filename: str) -> tuple[int, str, int, str]:
    """
    Clé de tri d'un fichier de page.

    - nom purement numérique : tri numérique ("2" avant "10")
    - front*, chiffres romains (i, ii, iv...) : en tête
    - questionsN, glossaryN : après le contenu, dans cet ordre
    - back* : en dernier
    - autres noms : groupe par préfixe puis suffixe numérique
      ("chapter-2" avant "chapter-10")

    Les égalités sont départagées par le nom complet, sans tenir compte de la casse.

    Args:
        filename: Nom ou chemin du fichier de page

    Returns:
        Tuple comparable (priorité, préfixe, numéro, nom)

    Example:
        >>> sorted(["glossary10", "glossary9", "1"], key=page_sort_key)
        ['1', 'glossary9', 'glossary10']
    """
    stem = PurePosixPath(filename).stem
    lowered = stem.lower()

    if stem.isdigit():
        return int(stem), "", 0, lowered

    prefix, number = _split_trailing_number(lowered)
    if lowered.startswith("front"):
        return FRONT_PRIORITY, prefix, number, lowered
    if lowered.startswith("back"):
        return BACK_PRIORITY, prefix, number, lowered
    if lowered.startswith("questions"):
        return QUESTIONS_PRIORITY + number, "questions", number, lowered
    if lowered.startswith("glossary"):
        return GLOSSARY_PRIORITY + number, "glossary", number, lowered
    if lowered and set(lowered) <= _ROMAN_CHARS:
        return FRONT_PRIORITY, lowered, 0, lowered
    return FRONT_PRIORITY, prefix, number, lowered


def sort_pages(filenames: list[str]) -> list[str]:
    """Trie une liste de fichiers de page dans l'ordre de lecture."""
    return sorted(filenames, key=page_sort_key)

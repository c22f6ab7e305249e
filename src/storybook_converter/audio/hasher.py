"""
Empreinte de contenu des fichiers audio produits.
"""

import hashlib
from pathlib import Path

CHUNK_SIZE = 8192


def calculate_hash(filepath: str | Path, hash_algorithm: str = "sha256") -> str:
    """
    Calcule l'empreinte d'un fichier, lu par blocs de 8 Kio.

    Args:
        filepath: Chemin du fichier
        hash_algorithm: Algorithme de hachage (par défaut : sha256)

    Returns:
        Empreinte hexadécimale du fichier
    """
    hash_func = hashlib.new(hash_algorithm)
    with open(filepath, "rb") as f:
        while chunk := f.read(CHUNK_SIZE):
            hash_func.update(chunk)
    return hash_func.hexdigest()

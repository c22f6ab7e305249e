"""
Exceptions spécifiques à la conversion des livres.

Seule PackageFormatError interrompt la conversion d'un livre. Les autres
sont levées puis rattrapées localement (page abandonnée, copie non découpée,
élément ignoré) et consignées dans le rapport de conversion.
"""

from typing import Optional


class ConversionError(Exception):
    """Classe de base de toutes les erreurs de conversion."""


class PackageFormatError(ConversionError, ValueError):
    """
    Le paquet EPUB est inutilisable : fichier pointeur absent ou champ
    obligatoire manquant (identifiant, titre, langue, date de modification).

    Attributes:
        package_path: Chemin du paquet analysé
        missing: Élément manquant (fichier ou champ de métadonnées)
    """

    def __init__(self, package_path: str, missing: str):
        self.package_path = package_path
        self.missing = missing
        super().__init__(f"Invalid package {package_path}: missing {missing}")

    def __repr__(self) -> str:
        return f"PackageFormatError(missing={self.missing!r})"


class TemplateNotFoundError(ConversionError, LookupError):
    """
    Aucune page modèle ne correspond à la forme de la page source.

    Attributes:
        page_index: Index de la page source
        image_count: Nombre d'images trouvées
        text_count: Nombre de blocs de texte trouvés
        video_count: Nombre de vidéos trouvées
    """

    def __init__(
        self, page_index: int, image_count: int, text_count: int, video_count: int = 0
    ):
        self.page_index = page_index
        self.image_count = image_count
        self.text_count = text_count
        self.video_count = video_count
        super().__init__(
            f"No template page for page {page_index}: {image_count} images, "
            f"{text_count} text blocks, {video_count} videos"
        )

    def __repr__(self) -> str:
        return (
            f"TemplateNotFoundError(page={self.page_index}, images={self.image_count}, "
            f"texts={self.text_count}, videos={self.video_count})"
        )


class CreditExtractionMiss(ConversionError):
    """
    Information de droits introuvable en fin de conversion.

    Attributes:
        field_name: "copyright" ou "license"
        title: Titre du livre concerné
    """

    def __init__(self, field_name: str, title: str):
        self.field_name = field_name
        self.title = title
        super().__init__(f"Could not find {field_name} information for {title}")

    def __repr__(self) -> str:
        return f"CreditExtractionMiss(field={self.field_name!r})"


class AudioTrimFailure(ConversionError, RuntimeError):
    """
    Échec du découpage externe d'un fichier audio (code retour, délai
    dépassé ou exécutable absent).

    Attributes:
        audio_file: Fichier audio source
        stderr: Sortie d'erreur de l'outil externe, si disponible
    """

    def __init__(self, audio_file: str, reason: str, stderr: Optional[str] = None):
        self.audio_file = audio_file
        self.reason = reason
        self.stderr = stderr
        super().__init__(f"Audio trim failed for {audio_file}: {reason}")

    def __repr__(self) -> str:
        return f"AudioTrimFailure(audio_file={self.audio_file!r}, reason={self.reason!r})"


class UnexpectedMarkupWarning(ConversionError):
    """
    Élément HTML non reconnu dans une page source ; il est ignoré.

    Attributes:
        tag_name: Nom de la balise
        page_index: Index de la page source
    """

    def __init__(self, tag_name: str, page_index: int):
        self.tag_name = tag_name
        self.page_index = page_index
        super().__init__(f"Unexpected <{tag_name}> element on page {page_index}")

    def __repr__(self) -> str:
        return f"UnexpectedMarkupWarning(tag={self.tag_name!r}, page={self.page_index})"


class AmbiguousNarrationWarning(ConversionError):
    """
    Un bloc de texte est narré par plusieurs fichiers audio ; aucun audio
    ne lui est associé, le bloc est à revoir manuellement.

    Attributes:
        page_file: Fichier de la page source
        audio_files: Fichiers audio concernés, dans l'ordre de rencontre
    """

    def __init__(self, page_file: str, audio_files: list[str]):
        self.page_file = page_file
        self.audio_files = audio_files
        super().__init__(
            f"Text block on {page_file} is narrated by {len(audio_files)} audio files: "
            + ", ".join(audio_files)
        )

    def __repr__(self) -> str:
        return f"AmbiguousNarrationWarning(page_file={self.page_file!r}, files={len(self.audio_files)})"

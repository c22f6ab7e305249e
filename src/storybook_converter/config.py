import logging
import shutil


class ConfigBase:
    # Attribut de classe pour le singleton
    _instance = None
    _locked: bool = False

    def __new__(cls, *args, **kwargs):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def lock(self):
        # Verrouiller deux fois est sans effet
        object.__setattr__(self, "_locked", True)

    def __setattr__(self, name, value):
        if getattr(self, "_locked", False):
            raise AttributeError("Configuration is locked")
        super().__setattr__(name, value)


class TemplateNames(ConfigBase):
    Cover_Credits_Template: str = "cover_credits.jinja"
    Image_Credits_Template: str = "image_credits.jinja"
    Page_Range_Template: str = "page_range.jinja"
    Art_Copyright_Template: str = "art_copyright.jinja"
    Template_Pages_Document: str = "pages.html"  # Catalogue des pages modèles
    Book_Skeleton_Document: str = "book.html"  # Document vierge de sortie


class Logger_Level(ConfigBase):
    level: int = logging.INFO
    console_level: int = logging.ERROR
    file_level: int = logging.DEBUG


class ConversionSettings(ConfigBase):
    normalizer_max_iterations: int = 20
    audio_trim_timeout: float = 60.0  # secondes, par appel ffmpeg
    ffmpeg_executable: str = shutil.which("ffmpeg") or "ffmpeg"
    end_matter_max_ratio: float = 0.14
    max_title_length: int = 50  # Nom de fichier du document de sortie
    default_max_workers: int = 2


def lock_config():
    """Verrouille la configuration pour empêcher les modifications ultérieures."""
    Logger_Level().lock()
    TemplateNames().lock()
    ConversionSettings().lock()

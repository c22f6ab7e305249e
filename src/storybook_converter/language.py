"""
Codes de langue : correspondance nom de langue -> code, et réconciliation
avec le code déclaré par le paquet.
"""

from typing import Optional

from .logger import get_logger

logger = get_logger(__name__)

UNKNOWN_LANGUAGE_CODE = "qaa"

# Noms tels qu'ils apparaissent dans les catalogues des bibliothèques numériques
LANGUAGE_CODES: dict[str, str] = {
    "አማርኛ": "am",
    "Afaan Oromo": "om",
    "Afaan Oromoo": "om",
    "Afrikaans": "af",
    "Amharic": "am",
    "Arabic": "ar",
    "Assamese": "as",
    "Awadhi": "awa",
    "Bahasa Indonesia": "id",
    "bahasa Indonesia": "id",
    "Bangla (Bangladesh)": "bn-BD",
    "বাঙালি": "bn",
    "Bengali": "bn",
    "Bhojpuri": "bho",
    "Bukusu": "luy",
    "Cebuano": "ceb",
    "Chinese (Simplified)": "zh-CN",
    "Chinese (Traditional)": "zh-TW",
    "Chinyanja": "ny",
    "ChiShona": "sn",
    "English": "en",
    "Ewe": "ee",
    "Filipino": "fil",
    "French": "fr",
    "Gujarati": "gu",
    "Gusii": "guz",
    "Hausa": "ha",
    "Hausa (Nigeria)": "ha-NG",
    "हिंदी": "hi",
    "Hindi": "hi",
    "Igbo": "ig",
    "isiNdebele": "nd",
    "isiXhosa": "xh",
    "isiZulu": "zu",
    "Kannada": "kn",
    "Khmer": "km",
    "Kikuyu": "ki",
    "Kinyarwanda": "rw",
    "Kiswahili": "sw",
    "Kiswahili (Kenya)": "sw-KE",
    "Lao": "lo",
    "Lingala": "ln",
    "Lubukusu": "luy",
    "Luganda": "lg",
    "Malayalam": "ml",
    "Marathi": "mr",
    "मराठी": "mr",
    "Nepali": "ne",
    "नेपाली (Nepal)": "ne-NP",
    "Odia": "or",
    "Portuguese": "pt",
    "Portuguese (Brazil)": "pt-BR",
    "Punjabi": "pa",
    "Sepedi": "nso",
    "Sesotho": "st",
    "Setswana": "tn",
    "Shona": "sn",
    "Sinhala": "si",
    "siSwati": "ss",
    "Siswati": "ss",
    "Somali (Ethiopia)": "so-ET",
    "Spanish (Spain)": "es-ES",
    "Swedish": "sv",
    "Tamil": "ta",
    "Telugu": "te",
    "Thai": "th",
    "Tibetan": "bo",
    "Tigrigna": "ti",
    "Tigrinya (Ethiopia)": "ti-ET",
    "Tshivenḓa": "ve",
    "Urdu": "ur",
    "Vietnamese": "vi",
    "Wanga": "lwg",
    "Xitsonga": "ts",
    "Yoruba": "yo",
}

# Codes obsolètes encore présents dans certains paquets
OBSOLETE_CODES: dict[str, str] = {"bxk": "luy"}


def code_for_name(name: str) -> str:
    """
    Code de langue pour un nom de langue.

    Example:
        >>> code_for_name("Kiswahili (Kenya)")
        'sw-KE'
        >>> code_for_name("Klingon")
        'qaa'
    """
    code = LANGUAGE_CODES.get(name.strip())
    if code is None:
        logger.info(f"Aucun code de langue connu pour {name}")
        return UNKNOWN_LANGUAGE_CODE
    return code


def reconcile(package_code: str, language_name: Optional[str]) -> str:
    """
    Réconcilie le code déclaré par le paquet avec la langue demandée.

    - pas de langue demandée : code du paquet conservé
    - paquet déclaré "en" : remplacé par le code demandé (avertissement)
    - différence de casse seulement : remplacé (INFO)
    - code obsolète connu (bxk -> luy) : remplacé (INFO)
    - autre différence : avertissement, code du paquet conservé

    Example:
        >>> reconcile("en", "Kiswahili")
        'sw'
        >>> reconcile("bxk", "Lubukusu")
        'luy'
    """
    if not language_name:
        return package_code
    expected = code_for_name(language_name)
    if package_code == expected or expected == UNKNOWN_LANGUAGE_CODE:
        return package_code
    if package_code == "en":
        logger.warning(f"Code de langue 'en' remplacé par '{expected}' ({language_name})")
        return expected
    if package_code.lower() == expected.lower():
        logger.info(f"Code de langue '{package_code}' remplacé par '{expected}'")
        return expected
    if OBSOLETE_CODES.get(package_code) == expected:
        logger.info(f"Code de langue obsolète '{package_code}' remplacé par '{expected}'")
        return expected
    logger.warning(
        f"Code de langue '{package_code}' pour {language_name} différent du code attendu '{expected}'"
    )
    return package_code

"""
Associates every supported TTS language with its provider language code
"""

from enum import Enum

class TTSLanguage(Enum):
    English = "en"
    Vietnamese = "vi"
    Japanese = "ja"
    Korean = "ko"
    Chinese = "zh-CN"
    French = "fr"
    German = "de"
    Spanish = "es"
    Italian = "it"
    Russian = "ru"
    Portuguese = "pt"
    Thai = "th"
    Dutch = "nl"
    Polish = "pl"

LANGUAGE_CODES = [language.value for language in TTSLanguage]

def normalize_code(language_code: str) -> str | None:
    """
    Matches a user-typed language code (any case) to a supported code

    :param language_code: what the user typed, e.g. "EN" or "zh-cn"
    :type language_code: str
    :return: the supported code, None if unsupported
    :rtype: str | None
    """
    wanted = language_code.strip().lower()
    for code in LANGUAGE_CODES:
        if code.lower() == wanted:
            return code
    return None

def language_name(language_code: str) -> str:
    """
    Gets the display name for a language code, falling back to the code itself
    """
    for language in TTSLanguage:
        if language.value == language_code:
            return language.name
    return language_code

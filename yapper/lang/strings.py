"""
Looks up bot replies in the server's language
"""

# my modules
from . import en, vi

LANGUAGES = {
    "en": en.STRINGS,
    "vi": vi.STRINGS,
}

FALLBACK_LANGUAGE = "en"

def _lookup(table: dict, key: str) -> str | None:
    node = table
    for part in key.split("."):
        if not isinstance(node, dict) or part not in node:
            return None
        node = node[part]

    return node if isinstance(node, str) else None

def get_text(key: str, lang: str = FALLBACK_LANGUAGE, *params) -> str:
    """
    Gets a localized string by dotted key, e.g. "join.success", filling in {0}, {1}, ...

    :param key: the dotted path to the string
    :type key: str
    :param lang: the language code, unknown languages use English
    :type lang: str
    :param params: values for the {n} placeholders
    :return: the localized string, "[Missing text: key]" if it doesn't exist anywhere
    :rtype: str
    """
    text = _lookup(LANGUAGES.get(lang, LANGUAGES[FALLBACK_LANGUAGE]), key)
    if text is None:
        text = _lookup(LANGUAGES[FALLBACK_LANGUAGE], key)
    if text is None:
        return f"[Missing text: {key}]"

    # plain replace so braces in params don't matter
    for i, param in enumerate(params):
        text = text.replace(f"{{{i}}}", str(param))

    return text

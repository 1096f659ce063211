"""Czech/other language detection by diacritic presence."""

from __future__ import annotations

import re

from .models import Language

CZECH_LOWER = "áčďéěíňóřšťúůýž"
CZECH_UPPER = "ÁČĎÉĚÍŇÓŘŠŤÚŮÝŽ"
CZECH_DIACRITIC_RE = re.compile(f"[{CZECH_LOWER}{CZECH_UPPER}]")

CZECH_DOCUMENT_LANG = "cs"


def detect_language(text: str) -> Language:
    """Return CZ when the text carries any Czech diacritic, OTHER otherwise."""
    if CZECH_DIACRITIC_RE.search(text):
        return Language.CZ
    return Language.OTHER


def is_czech(text: str) -> bool:
    return detect_language(text) is Language.CZ


def prefers_czech(text: str | None = None, document_lang: str | None = None) -> bool:
    """
    Decide whether a user-facing message should be Czech.

    The text itself wins when it is Czech; otherwise the document locale is
    consulted. Token classification never uses the document locale.
    """
    if text and is_czech(text):
        return True
    return (document_lang or "").lower().split("-")[0] == CZECH_DOCUMENT_LANG


def localize(
    cz_message: str,
    en_message: str,
    text: str | None = None,
    document_lang: str | None = None,
) -> str:
    return cz_message if prefers_czech(text, document_lang) else en_message


def language_name(text: str) -> str:
    """Human language name used inside prompts."""
    return "Czech" if is_czech(text) else "English"

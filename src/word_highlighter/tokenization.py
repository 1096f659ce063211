from __future__ import annotations

import re
from typing import List

from .language import CZECH_LOWER, CZECH_UPPER, detect_language
from .models import Language, Token

LETTERS = f"a-zA-Z{CZECH_LOWER}{CZECH_UPPER}"

WHITESPACE_RE = re.compile(r"\s+")
WHITESPACE_SPLIT_RE = re.compile(r"(\s+)")
NON_LETTER_RE = re.compile(f"[^a-z{CZECH_LOWER}]")
DIGIT_RE = re.compile(r"[0-9]")
SYMBOL_RE = re.compile(r"[!@#$%^&*()_+\-=\[\]{};':\"\\|,.<>/?]+")
INTERNAL_HYPHEN_RE = re.compile(f"(?<=[{LETTERS}])-(?=[{LETTERS}])")

CZ_CAPITALIZED_RE = re.compile(f"^[A-Z{CZECH_UPPER}][a-z{CZECH_LOWER}]+$")
TITLE_CASE_RE = re.compile(r"^[A-Z][a-z]+$")
ACRONYM_RE = re.compile(r"^[A-Z]{2,}$")
LOWERCASE_RE = re.compile(r"^[a-z]+$")

MIN_CLEANED_LENGTH = 4
CZ_LONG_WORD = 10
OTHER_LONG_WORD = 8

STOP_WORDS = frozenset(
    {
        # English
        "the", "a", "an", "in", "on", "at", "to", "for", "with", "by", "from",
        "of", "about", "and", "or", "but", "nor", "yet", "so", "because",
        "although", "unless",
        # Czech
        "aby", "ale", "ani", "ano", "asi", "až", "bez", "bude", "budem",
        "by", "byl", "byla", "byli", "bylo", "být",
        "co", "či", "článek", "další", "dnes", "do", "ho",
        "i", "já", "jak", "jako", "je", "jeho", "jej", "její", "jejich",
        "jen", "ještě", "již", "jsem", "jsi", "jsme", "jsou", "jí",
        "k", "kam", "kde", "kdo", "kdy", "když",
        "ke", "která", "které", "který", "kteří",
        "má", "máte", "mezi", "mi", "mít", "mě", "může",
        "na", "nad", "nam", "napište", "náš", "ne", "nebo", "není",
        "nové", "nový", "než",
        "o", "od", "pak", "po", "pod", "podle", "pokud", "pouze",
        "pro", "proto", "před", "přes", "při",
        "rok", "roce", "roku",
        "s", "se", "si", "sice", "své", "svých", "svým", "svými",
        "ta", "tak", "také", "takže", "tato", "tedy", "ten", "tento", "této",
        "tím", "to", "tohle", "toho", "též", "tu", "tuto", "ty",
        "u", "už", "v", "ve", "více",
        "však", "všech", "všechny", "všichni",
        "z", "za", "zde", "ze", "že",
    }
)


def split_words(text: str) -> List[str]:
    """Split text on whitespace, dropping empty pieces."""
    return [word for word in WHITESPACE_RE.split(text) if word]


def split_preserving_whitespace(text: str) -> List[str]:
    """Split text into alternating word and whitespace pieces."""
    return [piece for piece in WHITESPACE_SPLIT_RE.split(text) if piece]


def clean_word(word: str) -> str:
    """Lower-case the word and keep only Latin (incl. Czech) letters."""
    return NON_LETTER_RE.sub("", word.lower())


def make_token(word: str) -> Token:
    return Token(text=word, cleaned=clean_word(word), language=detect_language(word))


def is_candidate(word: str) -> bool:
    """Decide whether a raw word deserves a highlight."""
    token = make_token(word)
    acronym = bool(ACRONYM_RE.match(word))

    if len(token.cleaned) < MIN_CLEANED_LENGTH and not acronym:
        return False
    if token.cleaned in STOP_WORDS:
        return False
    if DIGIT_RE.search(word):
        return False
    # hyphens joining two letters are allowed so compounds reach the Czech hyphen rule
    if SYMBOL_RE.search(INTERNAL_HYPHEN_RE.sub("", word)):
        return False

    if token.language is Language.CZ:
        return bool(
            CZ_CAPITALIZED_RE.match(word)
            or len(word) > CZ_LONG_WORD
            or "-" in word
        )
    return bool(
        TITLE_CASE_RE.match(word)
        or acronym
        or (len(word) > OTHER_LONG_WORD and LOWERCASE_RE.match(word))
    )


class TokenClassifier:
    """Callable wrapper around is_candidate with per-instance extra stop words."""

    def __init__(self, extra_stop_words: frozenset[str] | None = None) -> None:
        self._extra = frozenset(w.lower() for w in extra_stop_words or ())

    def is_candidate(self, word: str) -> bool:
        if self._extra and clean_word(word) in self._extra:
            return False
        return is_candidate(word)

    __call__ = is_candidate

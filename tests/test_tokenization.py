import pytest

from word_highlighter.models import Language
from word_highlighter.tokenization import (
    TokenClassifier,
    clean_word,
    is_candidate,
    make_token,
    split_preserving_whitespace,
    split_words,
)


def test_split_words_drops_whitespace_runs():
    """split_words splits on any whitespace and ignores empty pieces."""
    assert split_words("  Hello\tworld \n again ") == ["Hello", "world", "again"]


def test_split_preserving_whitespace_round_trips_text():
    """Joining the pieces gives back the original text exactly."""
    text = " Prague  is\nbeautiful "
    assert "".join(split_preserving_whitespace(text)) == text


def test_clean_word_keeps_czech_letters():
    """clean_word lower-cases and strips everything but Latin/Czech letters."""
    assert clean_word("Žluťoučký,") == "žluťoučký"
    assert clean_word("R2-D2") == "rd"


def test_make_token_detects_language():
    """Tokens carry their cleaned form and detected language."""
    token = make_token("Česko")
    assert token.cleaned == "česko"
    assert token.language is Language.CZ


@pytest.mark.parametrize(
    "word,expected",
    [
        ("the", False),
        ("1234", False),
        ("Installation", True),
        ("API", True),
        ("internationalization", True),
        ("AND", False),
        ("Version2", False),
        ("Installation.", False),
        ("house", False),
        ("kilometers", True),
        ("Česko", True),
        ("nejdůležitější", True),
        ("bílo-modrý", True),
        ("pěkný", False),
        ("která", False),
    ],
)
def test_is_candidate(word, expected):
    """is_candidate applies stop words, symbol rules and per-language shapes."""
    assert is_candidate(word) is expected


def test_token_classifier_extra_stop_words():
    """TokenClassifier rejects words from its extra stop list."""
    classifier = TokenClassifier(frozenset({"Installation"}))
    assert classifier("Installation") is False
    assert classifier("Configuration") is True

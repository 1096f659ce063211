"""
word_highlighter package exports convenience helpers for library consumers.
"""

from __future__ import annotations

from .cache import AnnotationCache, make_cache_key
from .config import HighlighterConfig, config_from_dict, config_from_yaml, load_config
from .dom import Document, parse_html, to_html
from .engine import HighlighterEngine
from .errors import classify_error
from .language import detect_language
from .pipeline import AnalysisRequestPipeline
from .rate_limit import RateLimiter
from .scanner import DocumentScanner
from .tokenization import is_candidate

__all__ = [
    "AnalysisRequestPipeline",
    "AnnotationCache",
    "Document",
    "DocumentScanner",
    "HighlighterConfig",
    "HighlighterEngine",
    "RateLimiter",
    "classify_error",
    "config_from_dict",
    "config_from_yaml",
    "detect_language",
    "is_candidate",
    "load_config",
    "make_cache_key",
    "parse_html",
    "to_html",
]

__version__ = "0.1.0"

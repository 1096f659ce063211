from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:  # pragma: no cover - import for typing only
    from .dom import Element, TextNode


class Language(str, Enum):
    """Language bucket used for classification and message localization."""

    CZ = "cz"
    OTHER = "other"


@dataclass(slots=True, frozen=True)
class Token:
    """A whitespace-bounded word with its cleaned form and detected language."""

    text: str
    cleaned: str
    language: Language


@dataclass(slots=True, frozen=True)
class TextSegment:
    """Snapshot of one text node taken at scan time."""

    segment_id: int
    text: str


@dataclass(slots=True)
class Replacement:
    """Pending swap of an original text node for its annotated fragment."""

    segment: TextSegment
    node: "TextNode"
    fragment: "Element"
    highlight_count: int


class ErrorKind(str, Enum):
    """Failure taxonomy reported to the user."""

    API_KEY_INVALID = "api_key_invalid"
    RATE_LIMITED = "rate_limited"
    MODEL_UNAVAILABLE = "model_unavailable"
    NOT_CONFIGURED = "not_configured"
    UNKNOWN = "unknown"


@dataclass(slots=True, frozen=True)
class ErrorInfo:
    """Classified failure with a localized, user-facing message."""

    kind: ErrorKind
    message: str
    retry_after: int | None = None


@dataclass(slots=True, frozen=True)
class AnalysisResult:
    """Outcome of an analyze call: explanation text or a classified error."""

    text: str
    error: ErrorInfo | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def failure(cls, info: ErrorInfo) -> "AnalysisResult":
        return cls(text=info.message, error=info)

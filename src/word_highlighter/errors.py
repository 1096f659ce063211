"""
Failure classification.

Raw failures coming back from the text-generation service have no fixed
shape: plain strings, SDK exceptions, JSON bodies with a nested ``error``
object. They are reduced here, once, to an :class:`ErrorInfo` carrying one
of five kinds and a message localized for the analyzed text.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping

from .language import is_czech, localize
from .models import ErrorInfo, ErrorKind

logger = logging.getLogger(__name__)

API_KEY_INVALID_MARKERS = ("API key not valid", "API_KEY_INVALID", "Incorrect API key")
API_KEY_INVALID_ERROR_CODES = ("invalid_api_key",)
UNAUTHORIZED_CODE = 401
API_KEY_INVALID_REASON = "API_KEY_INVALID"
INVALID_ARGUMENT_STATUS = "INVALID_ARGUMENT"
INVALID_ARGUMENT_CODE = 400
RATE_LIMIT_MARKERS = ("429", "quota", "rate limit", "rate_limit")
RATE_LIMIT_CODE = 429
MODEL_UNAVAILABLE_MARKER = "404"
MODEL_UNAVAILABLE_CODE = 404
LOCALIZED_MESSAGE_TYPE = "LocalizedMessage"


class HighlighterError(RuntimeError):
    """Base class for errors raised by the highlighting engine."""


class RateLimitExceeded(HighlighterError):
    """Raised by the rate limiter while requests are locked out."""

    def __init__(self, retry_after: int) -> None:
        super().__init__(f"Rate limit exceeded; retry in {retry_after} s.")
        self.retry_after = retry_after


@dataclass(slots=True)
class FailureDetails:
    """Fields pulled out of a raw failure before kind selection."""

    message: str = ""
    status: str = ""
    code: int = 0
    error_code: str = ""
    api_key_invalid: bool = False


def _get(obj: Any, name: str) -> Any:
    if isinstance(obj, Mapping):
        return obj.get(name)
    return getattr(obj, name, None)


def _as_int(value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


def _structured_body(raw: Any) -> Any:
    """Return the nested error object, looking inside SDK ``body`` payloads too."""
    error = _get(raw, "error")
    if error is not None:
        return error
    body = _get(raw, "body")
    if isinstance(body, Mapping):
        return body.get("error", body)
    return None


def extract_failure_details(raw: Any) -> FailureDetails:
    details = FailureDetails()

    if isinstance(raw, str):
        details.message = raw
    elif (error := _structured_body(raw)) is not None:
        if isinstance(error, str):
            details.message = error
        else:
            details.message = str(_get(error, "message") or "")
            details.status = str(_get(error, "status") or "")
            details.code = _as_int(_get(error, "code"))
            details.error_code = str(_get(error, "code") or "")
            for detail in _get(error, "details") or []:
                if _get(detail, "reason") == API_KEY_INVALID_REASON:
                    details.api_key_invalid = True
                detail_type = str(_get(detail, "@type") or "")
                if LOCALIZED_MESSAGE_TYPE in detail_type and _get(detail, "message"):
                    details.message = str(_get(detail, "message"))
            if not details.message:
                details.message = str(_get(raw, "message") or "")
    elif _get(raw, "message"):
        details.message = str(_get(raw, "message"))
    elif _get(raw, "name") and _get(raw, "description"):
        details.message = f"{_get(raw, 'name')}: {_get(raw, 'description')}"
    else:
        details.message = str(raw)

    if not details.code:
        details.code = _as_int(_get(raw, "status_code"))
    if not details.error_code:
        details.error_code = str(_get(raw, "code") or "")

    details.api_key_invalid = (
        details.api_key_invalid
        or any(marker in details.message for marker in API_KEY_INVALID_MARKERS)
        or details.status == INVALID_ARGUMENT_STATUS
        or details.code in (INVALID_ARGUMENT_CODE, UNAUTHORIZED_CODE)
        or details.error_code in API_KEY_INVALID_ERROR_CODES
    )
    return details


def _retry_after(raw: Any) -> int | None:
    value = _get(raw, "retry_after")
    return value if isinstance(value, int) else None


def classify_error(raw: Any, analyzed_text: str) -> ErrorInfo:
    """Map an arbitrary failure to an ErrorInfo localized for analyzed_text."""
    logger.error("API error while analyzing %r: %s", analyzed_text[:50], raw)
    details = extract_failure_details(raw)
    czech = is_czech(analyzed_text)
    lowered = details.message.lower()
    retry_after = _retry_after(raw)

    if details.api_key_invalid:
        return ErrorInfo(
            kind=ErrorKind.API_KEY_INVALID,
            message=(
                "API klíč není platný. Zadejte prosím platný API klíč."
                if czech
                else "API key not valid. Please pass a valid API key."
            ),
        )
    if (
        retry_after is not None
        or details.code == RATE_LIMIT_CODE
        or any(marker in lowered for marker in RATE_LIMIT_MARKERS)
    ):
        return ErrorInfo(
            kind=ErrorKind.RATE_LIMITED,
            message=_rate_limited_message(czech, retry_after),
            retry_after=retry_after,
        )
    if MODEL_UNAVAILABLE_MARKER in details.message or details.code == MODEL_UNAVAILABLE_CODE:
        return ErrorInfo(
            kind=ErrorKind.MODEL_UNAVAILABLE,
            message=(
                "API model není dostupný. Zkuste to prosím později."
                if czech
                else "API model not available. Please try again later."
            ),
        )
    return ErrorInfo(
        kind=ErrorKind.UNKNOWN,
        message=(
            "Chyba při analýze. Zkuste to prosím později."
            if czech
            else "Error analyzing text. Please try again later."
        ),
    )


def _rate_limited_message(czech: bool, retry_after: int | None) -> str:
    if retry_after is None:
        if czech:
            return "Příliš mnoho požadavků. Prosím počkejte minutu před dalším pokusem."
        return "Too many requests. Please wait a minute before trying again."
    if czech:
        return f"Příliš mnoho požadavků. Prosím počkejte {retry_after} s před dalším pokusem."
    return f"Too many requests. Please wait {retry_after} seconds before trying again."


def not_configured(text: str | None = None, document_lang: str | None = None) -> ErrorInfo:
    """NOT_CONFIGURED info; unlike classify_error it honours the document locale."""
    return ErrorInfo(
        kind=ErrorKind.NOT_CONFIGURED,
        message=localize(
            "API klíč není nastaven. Prosím nastavte OpenAI API klíč v nastavení.",
            "API key not set. Please configure your OpenAI API key.",
            text,
            document_lang,
        ),
    )

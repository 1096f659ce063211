from __future__ import annotations

import importlib
import logging
from typing import Any, Callable, cast

from ..config import OpenAISettings
from .base import GenerativeClient

logger = logging.getLogger(__name__)

AsyncOpenAI: Callable[..., Any] | None = None


class OpenAIExplainClient(GenerativeClient):
    """Thin wrapper around the OpenAI Responses API; failures propagate unretried."""

    def __init__(self, settings: OpenAISettings, api_key: str) -> None:
        if not api_key:
            raise ValueError("OpenAI API key is required to request explanations.")
        self._settings = settings
        self._api_key = api_key
        self._client_factory: Callable[..., Any] = _load_openai_factory()
        self._client: Any | None = None

    @property
    def settings(self) -> OpenAISettings:
        return self._settings

    async def generate(self, prompt: str) -> str:
        client = self._ensure_client()
        response: Any = await client.responses.create(
            model=self._settings.model,
            input=prompt,
            temperature=self._settings.temperature,
            max_output_tokens=self._settings.max_output_tokens,
            top_p=self._settings.top_p,
            timeout=self._settings.request_timeout,
        )
        text = self._extract_text(response)
        logger.debug(
            "OpenAI generate succeeded model=%s prompt_len=%s output_len=%s",
            self._settings.model,
            len(prompt),
            len(text),
        )
        return text

    def _ensure_client(self) -> Any:
        if self._client is None:
            self._client = self._client_factory(
                api_key=self._api_key,
                base_url=self._settings.base_url,
                organization=self._settings.organization,
            )
        return self._client

    @staticmethod
    def _extract_text(response: Any) -> str:
        """Return the first text segment; an empty string when the item has no content."""
        output = getattr(response, "output", None)
        if not output:
            raise RuntimeError("OpenAI response is missing output content.")
        first = OpenAIExplainClient._materialize_item(output[0])
        content = first.get("content")
        if not content:
            return ""
        segment = OpenAIExplainClient._materialize_item(content[0])
        return segment.get("text") or ""

    @staticmethod
    def _materialize_item(item: Any) -> dict[str, Any]:
        if isinstance(item, dict):
            return cast(dict[str, Any], item)
        if hasattr(item, "model_dump"):
            dumpable: Any = item
            raw_dump: dict[str, Any] = dumpable.model_dump()
            return raw_dump
        if hasattr(item, "__dict__"):
            dumpable = item
            raw_dict: dict[str, Any] = dict(dumpable.__dict__)
            return raw_dict
        raise RuntimeError("Unexpected OpenAI response format.")


def _load_openai_factory() -> Callable[..., Any]:
    """Import the async OpenAI client class on first use."""
    global AsyncOpenAI
    if AsyncOpenAI is not None:
        return AsyncOpenAI
    try:  # pragma: no cover - import guard
        module = importlib.import_module("openai")
    except Exception as exc:  # pragma: no cover - handled at runtime
        raise RuntimeError(
            "openai package is not installed. Install it via 'pip install openai'."
        ) from exc
    client_cls = getattr(module, "AsyncOpenAI", None)
    if client_cls is None:  # pragma: no cover - old SDK
        raise RuntimeError(
            "openai.AsyncOpenAI client class is unavailable in this environment."
        )
    AsyncOpenAI = cast(Callable[..., Any], client_cls)
    return AsyncOpenAI

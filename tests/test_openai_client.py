from __future__ import annotations

import asyncio

import pytest

from word_highlighter.config import OpenAISettings
from word_highlighter.llm import openai_client as oa_client
from word_highlighter.models import ErrorKind
from word_highlighter.pipeline import AnalysisRequestPipeline
from word_highlighter.cache import AnnotationCache
from word_highlighter.rate_limit import RateLimiter


class DummySegment:
    def __init__(self, text: str) -> None:
        self.text = text


class DummyOutput:
    def __init__(self, text: str | None) -> None:
        self.content = [DummySegment(text)] if text is not None else []


class DummyResponse:
    def __init__(self, text: str | None) -> None:
        self.output = [DummyOutput(text)]


def _install_dummy(monkeypatch, calls: dict, reply: str | None = "Explained.", failure=None):
    class DummyResponses:
        async def create(self, **kwargs: object):
            calls.setdefault("requests", []).append(kwargs)
            if failure is not None:
                raise failure
            return DummyResponse(reply)

    class DummyAsyncOpenAI:
        def __init__(self, **kwargs: object) -> None:
            calls["client_kwargs"] = kwargs
            self.responses = DummyResponses()

    monkeypatch.setattr(oa_client, "AsyncOpenAI", DummyAsyncOpenAI)


def test_explain_client_requires_api_key(monkeypatch):
    """Client constructor validates that an API key is provided."""
    monkeypatch.setattr(oa_client, "AsyncOpenAI", object())
    with pytest.raises(ValueError):
        oa_client.OpenAIExplainClient(OpenAISettings(), api_key="")


def test_explain_client_sends_settings_and_returns_text(monkeypatch):
    """generate forwards model parameters and returns the first text segment."""
    calls: dict = {}
    _install_dummy(monkeypatch, calls)
    settings = OpenAISettings(model="gpt-4o-mini", base_url="http://localhost:9999")
    client = oa_client.OpenAIExplainClient(settings, api_key="token")

    text = asyncio.run(client.generate("Explain Prague"))

    assert text == "Explained."
    assert calls["client_kwargs"]["api_key"] == "token"
    assert calls["client_kwargs"]["base_url"] == "http://localhost:9999"
    request = calls["requests"][0]
    assert request["model"] == "gpt-4o-mini"
    assert request["input"] == "Explain Prague"
    assert request["max_output_tokens"] == settings.max_output_tokens


def test_explain_client_empty_content_is_empty_text(monkeypatch):
    """A response item without content yields an empty string."""
    _install_dummy(monkeypatch, {}, reply=None)
    client = oa_client.OpenAIExplainClient(OpenAISettings(), api_key="token")
    assert asyncio.run(client.generate("Explain")) == ""


def test_explain_client_failures_propagate_once(monkeypatch):
    """Failures are not retried; the pipeline classifies them."""
    calls: dict = {}
    _install_dummy(monkeypatch, calls, failure=RuntimeError("quota exceeded"))
    client = oa_client.OpenAIExplainClient(OpenAISettings(), api_key="token")
    pipeline = AnalysisRequestPipeline(AnnotationCache(), RateLimiter(), client)

    result = asyncio.run(pipeline.click_analyze("Installation"))

    assert len(calls["requests"]) == 1
    assert result.error is not None
    assert result.error.kind is ErrorKind.RATE_LIMITED

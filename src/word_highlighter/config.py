from __future__ import annotations

from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any, Mapping, MutableMapping

import yaml


@dataclass(slots=True)
class OpenAISettings:
    """Configuration block for the OpenAI-backed explanation client."""

    model: str = "gpt-4.1-mini"
    api_key: str | None = None
    api_key_env: str = "OPENAI_API_KEY"
    base_url: str | None = None
    organization: str | None = None
    temperature: float = 0.3
    max_output_tokens: int = 300
    top_p: float = 0.95
    request_timeout: float = 30.0


@dataclass(slots=True)
class HighlighterConfig:
    """Timing, capacity and feature switches for the highlighting engine."""

    hover_delay_ms: int = 300
    selection_delay_ms: int = 500
    mutation_delay_ms: int = 500
    rate_limit_requests: int = 30
    rate_limit_window_ms: int = 60_000
    cache_max_size: int = 100
    cache_context_chars: int = 100
    prompt_context_chars: int = 500
    min_selection_length: int = 3
    highlighting_enabled: bool = False
    auto_highlight: bool = True
    document_lang: str | None = None
    extra_stop_words: list[str] = field(default_factory=list)
    openai: OpenAISettings = field(default_factory=OpenAISettings)

    def to_dict(self) -> dict[str, Any]:
        """Return a mutable dictionary representation of the configuration."""
        return dict(asdict(self))


def _build_kwargs(data: Mapping[str, Any]) -> dict[str, Any]:
    allowed = {field.name for field in fields(HighlighterConfig)}
    kwargs = {key: data[key] for key in data if key in allowed}
    if "openai" in data:
        openai_value = data["openai"]
        if isinstance(openai_value, OpenAISettings):
            kwargs["openai"] = openai_value
        elif isinstance(openai_value, Mapping):
            kwargs["openai"] = _build_openai_settings(openai_value)
        else:
            kwargs.pop("openai")
    return kwargs


def _build_openai_settings(data: Mapping[str, Any]) -> OpenAISettings:
    openai_allowed = {field.name for field in fields(OpenAISettings)}
    filtered = {key: data[key] for key in data if key in openai_allowed}
    return OpenAISettings(**filtered)


def config_from_dict(data: Mapping[str, Any] | None) -> HighlighterConfig:
    """Build a HighlighterConfig from a dictionary-like input."""
    if data is None:
        return HighlighterConfig()
    return HighlighterConfig(**_build_kwargs(data))


def config_from_yaml(path: str | Path) -> HighlighterConfig:
    """Load configuration from a YAML file."""
    contents = Path(path).read_text(encoding="utf-8")
    parsed = yaml.safe_load(contents) or {}
    if not isinstance(parsed, MutableMapping):
        raise ValueError("Configuration YAML must define a mapping.")
    return config_from_dict(parsed)


def load_config(path: str | Path | None = None) -> HighlighterConfig:
    """Load configuration from YAML when provided, otherwise return defaults."""
    if path is None:
        return HighlighterConfig()
    return config_from_yaml(path)

"""Commands pushed into the engine by the host, and their wire format."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Union


@dataclass(slots=True, frozen=True)
class ConfigureClient:
    api_key: str | None
    enable_highlighting: bool = False
    auto_highlight: bool = True


@dataclass(slots=True, frozen=True)
class StartHighlighting:
    auto_highlight: bool = True


@dataclass(slots=True, frozen=True)
class StopHighlighting:
    pass


@dataclass(slots=True, frozen=True)
class SetAutoHighlight:
    auto_highlight: bool


@dataclass(slots=True, frozen=True)
class AnalyzeText:
    text: str


Command = Union[ConfigureClient, StartHighlighting, StopHighlighting, SetAutoHighlight, AnalyzeText]


@dataclass(slots=True, frozen=True)
class CommandResult:
    success: bool

    def to_dict(self) -> dict[str, bool]:
        return {"success": self.success}


def command_from_message(message: Mapping[str, Any]) -> Command:
    """Translate a host message such as ``{"type": "STOP_HIGHLIGHTING"}``."""
    kind = message.get("type")
    if kind == "API_KEY_UPDATED":
        return ConfigureClient(
            api_key=message.get("apiKey") or None,
            enable_highlighting=bool(message.get("enableHighlighting", False)),
            auto_highlight=message.get("autoHighlight") is not False,
        )
    if kind == "START_HIGHLIGHTING":
        return StartHighlighting(auto_highlight=message.get("autoHighlight") is not False)
    if kind == "STOP_HIGHLIGHTING":
        return StopHighlighting()
    if kind == "UPDATE_AUTO_HIGHLIGHT":
        return SetAutoHighlight(auto_highlight=bool(message.get("autoHighlight")))
    if kind == "ANALYZE_SELECTED_TEXT":
        return AnalyzeText(text=str(message.get("text") or ""))
    raise ValueError(f"Unknown command type '{kind}'.")

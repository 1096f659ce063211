from __future__ import annotations

from typing import Any, List

from word_highlighter.config import HighlighterConfig
from word_highlighter.dom import Element, Event
from word_highlighter.llm.base import GenerativeClient

SAMPLE_HTML = """<!DOCTYPE html>
<html lang="en">
<head><title>Sample page</title><style>.Stylesheet { color: red; }</style></head>
<body>
<p id="intro">Welcome to the Installation guide for the API reference.</p>
<p id="plain">this line has nothing special</p>
<code>Configuration Variable</code>
<script>var Installation = 1;</script>
</body>
</html>
"""


class FakeClient(GenerativeClient):
    """Records prompts and replies with canned text or raises a canned failure."""

    def __init__(self, reply: str = "An explanation.", failure: Any = None) -> None:
        self.reply = reply
        self.failure = failure
        self.prompts: List[str] = []

    @property
    def calls(self) -> int:
        return len(self.prompts)

    async def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.failure is not None:
            raise self.failure
        return self.reply


class ManualClock:
    """Millisecond clock advanced by hand."""

    def __init__(self, start: float = 0.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, ms: float) -> None:
        self.now += ms


def fast_config(**overrides: Any) -> HighlighterConfig:
    """Config with every delay set to zero so tests do not sleep."""
    values: dict[str, Any] = {
        "hover_delay_ms": 0,
        "selection_delay_ms": 0,
        "mutation_delay_ms": 0,
    }
    values.update(overrides)
    return HighlighterConfig(**values)


def hover(target: Element, x: float = 5, y: float = 5) -> None:
    target.dispatch_event(Event("mouseover", target=target, page_x=x, page_y=y))


def hover_out(target: Element) -> None:
    target.dispatch_event(Event("mouseout", target=target))


def click(target: Element) -> None:
    target.dispatch_event(Event("click", target=target))

"""Minimal example: highlight a page and hover one word with the OpenAI client."""

from __future__ import annotations

import asyncio
import os

from word_highlighter.config import load_config
from word_highlighter.dom import Event, parse_html
from word_highlighter.engine import HighlighterEngine
from word_highlighter.scanner import HIGHLIGHT_CLASS

PAGE = """<html lang="en"><body>
<p>The Installation guide explains how Kubernetes schedules containers.</p>
</body></html>"""


async def run(api_key: str) -> None:
    config = load_config()
    config.hover_delay_ms = 0
    engine = HighlighterEngine(parse_html(PAGE), config)
    engine.configure(api_key, enable_highlighting=True)
    await engine.queue.drain()

    words = engine.document.find_by_class(HIGHLIGHT_CLASS)
    print("Highlighted:", [word.text_content for word in words])
    target = words[0]
    target.dispatch_event(Event("mouseover", target=target, page_x=0, page_y=0))
    await engine.queue.drain()
    print(f"{target.text_content}: {engine.presenter.tooltip.text}")


def main() -> None:
    api_key = os.environ.get("OPENAI_API_KEY", "")
    if not api_key:
        raise RuntimeError("Set OPENAI_API_KEY before running this example.")
    asyncio.run(run(api_key))


if __name__ == "__main__":
    main()

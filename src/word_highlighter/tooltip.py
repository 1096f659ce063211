from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Callable, Union

from .dom import Document, Element, Event, Node
from .language import localize
from .models import AnalysisResult
from .pipeline import AnalysisRequestPipeline
from .scanner import HIGHLIGHT_CLASS
from .scheduler import TaskQueue

logger = logging.getLogger(__name__)

TOOLTIP_ID = "word-highlighter-tooltip"
ERROR_CLASS = "error"
HOVER_OFFSET = 10
SELECTION_OFFSET = 5


@dataclass(slots=True, frozen=True)
class Hidden:
    pass


@dataclass(slots=True, frozen=True)
class Pending:
    token: str
    timer: asyncio.TimerHandle | None = None


@dataclass(slots=True, frozen=True)
class Shown:
    text: str


@dataclass(slots=True, frozen=True)
class ErrorShown:
    text: str


TooltipState = Union[Hidden, Pending, Shown, ErrorShown]


class Tooltip:
    """The single floating element, positioned in document coordinates."""

    def __init__(self, document: Document) -> None:
        existing = document.get_element_by_id(TOOLTIP_ID)
        if existing is None:
            existing = document.create_element("div", {"id": TOOLTIP_ID})
            document.body.append_child(existing)
        self.element = existing
        self.visible = False
        self.left = 0.0
        self.top = 0.0
        self._render_style()

    @property
    def text(self) -> str:
        return self.element.text_content

    @property
    def is_error(self) -> bool:
        return self.element.has_class(ERROR_CLASS)

    def _render_style(self) -> None:
        display = "block" if self.visible else "none"
        self.element.attrs["style"] = (
            f"display: {display}; left: {self.left:g}px; top: {self.top:g}px"
        )

    def move(self, left: float, top: float) -> None:
        self.left, self.top = left, top
        self._render_style()

    def show(self, text: str, error: bool = False) -> None:
        self.element.text_content = text
        if error:
            self.element.add_class(ERROR_CLASS)
        else:
            self.element.remove_class(ERROR_CLASS)
        self.visible = True
        self._render_style()

    def set_text(self, text: str) -> None:
        self.element.text_content = text

    def hide(self) -> None:
        self.visible = False
        self._render_style()

    def remove(self) -> None:
        self.element.remove()


def _is_candidate_target(node: Node) -> bool:
    return isinstance(node, Element) and node.has_class(HIGHLIGHT_CLASS)


class TooltipPresenter:
    """
    Drives the tooltip for hover, click and selection.

    Hover waits ``hover_delay_ms`` before asking for an explanation and shows
    it only while the tooltip is still visible. That guard does not check
    which word the answer belongs to, so a slow answer can replace a newer
    one. Click and selection commit their result as long as the tooltip has
    not been uninstalled meanwhile; whichever request finishes last owns it.
    A word under several attached containers is handled once per event.
    """

    def __init__(
        self,
        document: Document,
        pipeline: AnalysisRequestPipeline,
        queue: TaskQueue,
        *,
        hover_delay_ms: int = 300,
        selection_delay_ms: int = 500,
        min_selection_length: int = 3,
        is_enabled: Callable[[], bool] = lambda: True,
    ) -> None:
        self._document = document
        self._pipeline = pipeline
        self._queue = queue
        self._hover_delay_ms = hover_delay_ms
        self._selection_delay_ms = selection_delay_ms
        self._min_selection_length = min_selection_length
        self._is_enabled = is_enabled
        self._state: TooltipState = Hidden()
        self._hover_timer: asyncio.TimerHandle | None = None
        self._selection_timer: asyncio.TimerHandle | None = None
        # bumped on uninstall; results from an older generation are dropped
        self._generation = 0
        self._last_events: dict[str, Event] = {}
        self.tooltip: Tooltip | None = None

    @property
    def state(self) -> TooltipState:
        return self._state

    # -- lifecycle ---------------------------------------------------------

    def install(self) -> Tooltip:
        if self.tooltip is None:
            self.tooltip = Tooltip(self._document)
            self._document.add_event_listener("click", self.on_document_click)
            self._document.add_event_listener("selectionchange", self.on_selection_change)
        return self.tooltip

    def uninstall(self) -> None:
        self._cancel_hover()
        self._queue.cancel(self._selection_timer)
        self._selection_timer = None
        self._document.remove_event_listener("click", self.on_document_click)
        self._document.remove_event_listener("selectionchange", self.on_selection_change)
        if self.tooltip is not None:
            self.tooltip.remove()
            self.tooltip = None
        self._generation += 1
        self._last_events.clear()
        self._state = Hidden()

    def attach(self, container: Element) -> None:
        """Wire hover and click handling for a highlighted subtree."""
        container.add_event_listener("mouseover", self.on_hover)
        container.add_event_listener("mouseout", self.on_hover_out)
        container.add_event_listener("click", self.on_click)

    def hide(self) -> None:
        self._cancel_hover()
        if self.tooltip is not None:
            self.tooltip.hide()
        self._state = Hidden()

    def _first_delivery(self, event: Event) -> bool:
        """False when event already reached a handler through an inner container."""
        if self._last_events.get(event.type) is event:
            return False
        self._last_events[event.type] = event
        return True

    # -- hover -------------------------------------------------------------

    def _cancel_hover(self) -> None:
        self._queue.cancel(self._hover_timer)
        self._hover_timer = None

    def on_hover(self, event: Event) -> None:
        target = event.target
        if not _is_candidate_target(target) or not self._first_delivery(event):
            return
        tooltip = self.install()
        self._cancel_hover()
        tooltip.move(event.page_x + HOVER_OFFSET, event.page_y + HOVER_OFFSET)
        tooltip.show("Analyzing...")
        token = target.text_content
        self._hover_timer = self._queue.call_later(
            self._hover_delay_ms, lambda: self._fire_hover(target)
        )
        self._state = Pending(token, self._hover_timer)

    def on_hover_out(self, event: Event) -> None:
        if not _is_candidate_target(event.target) or not self._first_delivery(event):
            return
        self.hide()

    def _fire_hover(self, target: Node) -> None:
        self._hover_timer = None
        self._state = Pending(target.text_content)
        self._queue.spawn(self._run_hover(target, self._generation))

    async def _run_hover(self, target: Node, generation: int) -> None:
        token = target.text_content
        context = target.parent.text_content if target.parent is not None else ""
        result = await self._pipeline.hover_analyze(token, context)
        if self.tooltip is not None and self.tooltip.visible:
            self._commit(result, generation, reposition=False)
        else:
            logger.debug("Dropping hover result for %r; tooltip hidden", token)

    # -- click -------------------------------------------------------------

    def on_click(self, event: Event) -> None:
        target = event.target
        if not _is_candidate_target(target) or not self._first_delivery(event):
            return
        self._cancel_hover()
        self._queue.spawn(self.show_detailed(target.text_content))

    async def show_detailed(self, token: str) -> None:
        generation = self._generation
        placeholder = localize(
            "Načítám detailní analýzu...", "Loading detailed analysis...", token
        )
        if not self._show_placeholder(token, placeholder):
            return
        result = await self._pipeline.click_analyze(token)
        self._commit(result, generation)

    def on_document_click(self, event: Event) -> None:
        target = event.target
        if _is_candidate_target(target):
            return
        if self.tooltip is not None and self.tooltip.element.contains(target):
            return
        self.hide()

    # -- selection ---------------------------------------------------------

    def on_selection_change(self, event: Event) -> None:
        self._queue.cancel(self._selection_timer)
        self._selection_timer = self._queue.call_later(
            self._selection_delay_ms, self._on_selection_settled
        )

    def _on_selection_settled(self) -> None:
        self._selection_timer = None
        selection = self._document.selection
        if not self._is_enabled() or selection.is_collapsed:
            self.hide()
            return
        text = selection.text.strip()
        if len(text) <= self._min_selection_length:
            return
        self._position_at_selection()
        self._queue.spawn(self.analyze_selection(text))

    async def analyze_selection(self, text: str) -> None:
        """Summarize text in the tooltip; also the entry point for AnalyzeText."""
        if not self._is_enabled():
            self.hide()
            return
        generation = self._generation
        placeholder = localize("Načítám analýzu...", "Loading analysis...", text)
        if not self._show_placeholder(text, placeholder):
            return
        result = await self._pipeline.selection_analyze(text)
        self._commit(result, generation)

    def _position_at_selection(self) -> None:
        rect = self._document.selection.rect
        if self.tooltip is None or rect is None or self._document.selection.is_collapsed:
            return
        self.tooltip.move(
            self._document.scroll_x + rect.left,
            self._document.scroll_y + rect.bottom + SELECTION_OFFSET,
        )

    # -- rendering ---------------------------------------------------------

    def _show_placeholder(self, token: str, text: str) -> bool:
        if self.tooltip is None:
            logger.debug("Tooltip not installed; skipping analysis of %r", token)
            return False
        self.tooltip.show(text)
        self._position_at_selection()
        self._state = Pending(token)
        return True

    def _commit(
        self, result: AnalysisResult, generation: int, reposition: bool = True
    ) -> None:
        if self.tooltip is None or generation != self._generation:
            logger.debug("Dropping result from an uninstalled tooltip")
            return
        if result.ok:
            self.tooltip.show(result.text)
            self._state = Shown(result.text)
        else:
            self.tooltip.show(result.text, error=True)
            self._state = ErrorShown(result.text)
        if reposition:
            self._position_at_selection()

from __future__ import annotations

import logging
from typing import Any, Callable, Mapping

from .cache import AnnotationCache
from .commands import (
    AnalyzeText,
    Command,
    CommandResult,
    ConfigureClient,
    SetAutoHighlight,
    StartHighlighting,
    StopHighlighting,
    command_from_message,
)
from .config import HighlighterConfig, OpenAISettings
from .dom import Document, Element, Event
from .llm.base import GenerativeClient
from .llm.openai_client import OpenAIExplainClient
from .observer import MutationCoordinator
from .pipeline import AnalysisRequestPipeline
from .rate_limit import Clock, RateLimiter
from .scanner import DocumentScanner
from .scheduler import TaskQueue
from .tokenization import TokenClassifier
from .tooltip import TooltipPresenter

logger = logging.getLogger(__name__)

BUTTON_ID = "word-highlighter-toggle"
BUTTON_LABEL = "Stop Highlighting"

ClientFactory = Callable[[str], GenerativeClient]


def openai_client_factory(settings: OpenAISettings) -> ClientFactory:
    def build(api_key: str) -> GenerativeClient:
        return OpenAIExplainClient(settings, api_key=api_key)

    return build


class HighlighterEngine:
    """
    Owns every piece of highlighter state for one document.

    Hosts drive it through configure()/teardown() and the command methods
    (or handle()/handle_message() for the wire format). Methods that start
    scanning or analysis must be called while an asyncio loop is running.
    """

    def __init__(
        self,
        document: Document,
        config: HighlighterConfig | None = None,
        *,
        client_factory: ClientFactory | None = None,
        on_stopped: Callable[[], None] | None = None,
        clock: Clock | None = None,
    ) -> None:
        self.document = document
        self.config = config or HighlighterConfig()
        cfg = self.config
        self.queue = TaskQueue()
        self.cache = AnnotationCache(cfg.cache_max_size)
        self.limiter = RateLimiter(cfg.rate_limit_requests, cfg.rate_limit_window_ms, clock)
        self.pipeline = AnalysisRequestPipeline(
            self.cache,
            self.limiter,
            document_lang=cfg.document_lang or document.lang or None,
            cache_context_chars=cfg.cache_context_chars,
            prompt_context_chars=cfg.prompt_context_chars,
        )
        self.presenter = TooltipPresenter(
            document,
            self.pipeline,
            self.queue,
            hover_delay_ms=cfg.hover_delay_ms,
            selection_delay_ms=cfg.selection_delay_ms,
            min_selection_length=cfg.min_selection_length,
            is_enabled=lambda: self.highlighting_enabled,
        )
        self.scanner = DocumentScanner(
            self.queue,
            classifier=TokenClassifier(frozenset(cfg.extra_stop_words)),
            on_commit=self.presenter.attach,
        )
        self.coordinator = MutationCoordinator(
            document, self.scanner, self.queue, cfg.mutation_delay_ms
        )
        self.highlighting_enabled = cfg.highlighting_enabled
        self.auto_highlight = cfg.auto_highlight
        self._client_factory = client_factory or openai_client_factory(cfg.openai)
        self._on_stopped = on_stopped
        self.presenter.install()

    @property
    def client(self) -> GenerativeClient | None:
        return self.pipeline.client

    @property
    def stop_button(self) -> Element | None:
        return self.document.get_element_by_id(BUTTON_ID)

    # -- lifecycle ---------------------------------------------------------

    def bootstrap(self, stored: Mapping[str, Any]) -> None:
        """Apply a settings-store snapshot (apiKey, highlightingEnabled, autoHighlight)."""
        api_key = stored.get("apiKey")
        if api_key:
            self.pipeline.set_client(self._client_factory(api_key))
        self.auto_highlight = stored.get("autoHighlight") is not False
        if stored.get("highlightingEnabled"):
            self.highlighting_enabled = True
            self._create_stop_button()
            if self.auto_highlight:
                self._initialize_highlighting()

    def configure(
        self,
        api_key: str | None,
        enable_highlighting: bool = False,
        auto_highlight: bool = True,
    ) -> None:
        """Set or clear the external client; clearing tears everything down."""
        if not api_key:
            logger.info("Client cleared; tearing down highlighting")
            self.teardown()
            return
        self.pipeline.set_client(self._client_factory(api_key))
        self.auto_highlight = auto_highlight
        self._reset_highlighting()
        self.presenter.install()
        if enable_highlighting:
            self.highlighting_enabled = True
            self._create_stop_button()
            if self.auto_highlight:
                self._initialize_highlighting()
        logger.info(
            "Client configured (highlighting=%s, auto=%s)",
            enable_highlighting,
            auto_highlight,
        )

    def teardown(self) -> None:
        self.pipeline.set_client(None)
        self._reset_highlighting()
        self._remove_stop_button()
        self.presenter.uninstall()
        self.highlighting_enabled = False

    def start_highlighting(self, auto_highlight: bool = True) -> None:
        self.auto_highlight = auto_highlight
        self._reset_highlighting()
        self.highlighting_enabled = True
        self.presenter.install()
        self._create_stop_button()
        if self.auto_highlight:
            self._initialize_highlighting()

    def stop_highlighting(self) -> None:
        self._remove_stop_button()
        self._reset_highlighting()
        self.highlighting_enabled = False

    def set_auto_highlight(self, auto_highlight: bool) -> None:
        self.auto_highlight = auto_highlight
        self._reset_highlighting()
        if self.auto_highlight and self.highlighting_enabled:
            self._initialize_highlighting()

    def analyze_text(self, text: str) -> bool:
        if not text:
            return False
        self.queue.spawn(self.presenter.analyze_selection(text))
        return True

    # -- command bus -------------------------------------------------------

    def handle(self, command: Command) -> CommandResult:
        try:
            if isinstance(command, ConfigureClient):
                self.configure(
                    command.api_key, command.enable_highlighting, command.auto_highlight
                )
            elif isinstance(command, StartHighlighting):
                self.start_highlighting(command.auto_highlight)
            elif isinstance(command, StopHighlighting):
                self.stop_highlighting()
            elif isinstance(command, SetAutoHighlight):
                self.set_auto_highlight(command.auto_highlight)
            elif isinstance(command, AnalyzeText):
                return CommandResult(self.analyze_text(command.text))
            else:
                raise ValueError(f"Unsupported command {command!r}.")
        except (ValueError, RuntimeError) as exc:
            logger.error("Command %r failed: %s", command, exc)
            return CommandResult(False)
        return CommandResult(True)

    def handle_message(self, message: Mapping[str, Any]) -> dict[str, bool]:
        try:
            command = command_from_message(message)
        except ValueError as exc:
            logger.warning("Ignoring message: %s", exc)
            return CommandResult(False).to_dict()
        return self.handle(command).to_dict()

    # -- internals ---------------------------------------------------------

    def _reset_highlighting(self) -> None:
        self.coordinator.stop()
        self.presenter.hide()
        self.queue.cancel_all()
        self.scanner.remove_highlights(self.document)

    def _initialize_highlighting(self) -> None:
        self.queue.request_idle(lambda: self.scanner.highlight(self.document.body))
        self.coordinator.start()

    def _create_stop_button(self) -> Element:
        button = self.stop_button
        if button is not None:
            return button
        button = self.document.create_element("button", {"id": BUTTON_ID}, BUTTON_LABEL)
        button.add_event_listener("click", self._on_stop_clicked)
        self.document.body.append_child(button)
        return button

    def _remove_stop_button(self) -> None:
        button = self.stop_button
        if button is not None:
            button.remove()

    def _on_stop_clicked(self, event: Event) -> None:
        logger.info("Highlighting stopped from the page")
        self.stop_highlighting()
        if self._on_stopped is not None:
            self._on_stopped()

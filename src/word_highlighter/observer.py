from __future__ import annotations

import asyncio
import logging
from typing import List

from .dom import Document, Element, MutationRecord, Node
from .scanner import DocumentScanner, is_engine_ui, is_processed_container
from .scheduler import TaskQueue

logger = logging.getLogger(__name__)


class MutationCoordinator:
    """
    Re-scans subtrees inserted into the document after the initial pass.

    Added elements are collected across record batches until the debounce
    delay passes quietly; the whole collection is then scanned as a single
    idle-priority job.
    """

    def __init__(
        self,
        document: Document,
        scanner: DocumentScanner,
        queue: TaskQueue,
        delay_ms: int = 500,
    ) -> None:
        self._document = document
        self._scanner = scanner
        self._queue = queue
        self._delay_ms = delay_ms
        self._pending: List[Element] = []
        self._timer: asyncio.TimerHandle | None = None
        self._active = False

    @property
    def active(self) -> bool:
        return self._active

    @property
    def pending_roots(self) -> List[Element]:
        return list(self._pending)

    def start(self) -> None:
        if self._active:
            return
        self._document.observe(self.on_mutations)
        self._active = True
        logger.debug("Mutation observation started")

    def stop(self) -> None:
        if not self._active:
            return
        self._document.disconnect(self.on_mutations)
        self._queue.cancel(self._timer)
        self._timer = None
        self._pending.clear()
        self._active = False
        logger.debug("Mutation observation stopped")

    @staticmethod
    def _is_relevant_target(target: Node) -> bool:
        if isinstance(target, Element):
            return not is_processed_container(target) and not is_engine_ui(target)
        return True

    @staticmethod
    def _is_relevant_addition(node: Node) -> bool:
        return (
            isinstance(node, Element)
            and not is_processed_container(node)
            and not is_engine_ui(node)
        )

    def on_mutations(self, records: List[MutationRecord]) -> None:
        added = [
            node
            for record in records
            if self._is_relevant_target(record.target)
            for node in record.added_nodes
            if self._is_relevant_addition(node)
        ]
        for node in added:
            if node not in self._pending:
                self._pending.append(node)  # type: ignore[arg-type]
        if not self._pending:
            return
        self._queue.cancel(self._timer)
        self._timer = self._queue.call_later(self._delay_ms, self._flush)

    def _flush(self) -> None:
        self._timer = None
        roots, self._pending = self._pending, []
        if not roots:
            return
        logger.debug("Scheduling re-scan of %s inserted subtrees", len(roots))

        def rescan() -> None:
            for root in roots:
                self._scanner.highlight(root)

        self._queue.request_idle(rescan)

from __future__ import annotations

import itertools
import logging
from typing import Callable, Iterable, List, Set

from .dom import Document, Element, Node, TextNode
from .models import Replacement, TextSegment
from .scheduler import TaskQueue
from .tokenization import is_candidate, split_preserving_whitespace

logger = logging.getLogger(__name__)

HIGHLIGHT_CLASS = "highlightable-word"
PROCESSED_CLASS = "word-highlighter-processed"
UI_ID_PREFIX = "word-highlighter"
EXCLUDED_TAGS = frozenset({"script", "style", "noscript", "iframe", "svg", "code"})

Classifier = Callable[[str], bool]
CommitHook = Callable[[Element], None]


def is_engine_ui(element: Element) -> bool:
    return element.id.startswith(UI_ID_PREFIX)


def is_processed_container(node: Node) -> bool:
    return isinstance(node, Element) and node.has_class(PROCESSED_CLASS)


class SegmentArena:
    """
    Id allocator for scanned text nodes plus the set of ids already wrapped.

    A node only carries the integer id it was given on its first scan; the
    processed state lives here, so clearing the arena forgets every marker.
    Ids are never reused, even across clears.
    """

    def __init__(self) -> None:
        self._ids = itertools.count()
        self._processed: Set[int] = set()

    def register(self, node: TextNode) -> TextSegment:
        if node.segment_id is None:
            node.segment_id = next(self._ids)
        return TextSegment(segment_id=node.segment_id, text=node.data)

    def mark_processed(self, segment: TextSegment) -> None:
        self._processed.add(segment.segment_id)

    def is_processed(self, node: TextNode) -> bool:
        return node.segment_id is not None and node.segment_id in self._processed

    def clear(self) -> None:
        self._processed.clear()

    def __len__(self) -> int:
        return len(self._processed)


class DocumentScanner:
    """
    Finds candidate words in text nodes and wraps them in highlight spans.

    scan() only reads the tree and returns replacements; commit() applies a
    whole batch at once. highlight() runs scan now and commit on the next
    frame of the task queue.
    """

    def __init__(
        self,
        queue: TaskQueue | None = None,
        classifier: Classifier = is_candidate,
        on_commit: CommitHook | None = None,
    ) -> None:
        self._queue = queue
        self._classifier = classifier
        self._on_commit = on_commit
        self.arena = SegmentArena()

    def should_process(self, node: TextNode) -> bool:
        if self.arena.is_processed(node):
            return False
        if node.parent is None:
            return False
        for ancestor in node.iter_ancestors():
            if (
                ancestor.tag in EXCLUDED_TAGS
                or is_engine_ui(ancestor)
                or ancestor.has_class(PROCESSED_CLASS)
            ):
                return False
        return bool(node.data.strip())

    def build_fragment(self, text: str) -> tuple[Element, int]:
        """Return the annotated span for text and how many words it wraps."""
        fragment = Element("span", {"class": PROCESSED_CLASS})
        pending: List[str] = []
        count = 0
        for piece in split_preserving_whitespace(text):
            if piece.isspace() or not self._classifier(piece):
                pending.append(piece)
                continue
            if pending:
                fragment.append_child(TextNode("".join(pending)))
                pending = []
            word = Element("span", {"class": HIGHLIGHT_CLASS})
            word.append_child(TextNode(piece))
            fragment.append_child(word)
            count += 1
        if pending:
            fragment.append_child(TextNode("".join(pending)))
        return fragment, count

    def _text_nodes(self, root: Node) -> Iterable[TextNode]:
        if isinstance(root, TextNode):
            return [root]
        if isinstance(root, Element):
            return list(root.iter_text_nodes())
        return []

    def scan(self, root: Node) -> List[Replacement]:
        """Collect replacements for every eligible text node under root."""
        batch: List[Replacement] = []
        for node in self._text_nodes(root):
            if not self.should_process(node):
                continue
            segment = self.arena.register(node)
            fragment, count = self.build_fragment(segment.text)
            if count:
                batch.append(Replacement(segment, node, fragment, count))
                self.arena.mark_processed(segment)
        logger.debug(
            "Scanned %r: %s segments, %s highlights",
            root,
            len(batch),
            sum(r.highlight_count for r in batch),
        )
        return batch

    def commit(self, batch: List[Replacement], root: Node) -> int:
        """Swap every still-attached original node for its fragment."""
        committed = 0
        for replacement in batch:
            parent = replacement.node.parent
            if parent is None:
                continue
            parent.replace_child(replacement.fragment, replacement.node)
            committed += 1
        container = root if isinstance(root, Element) else root.parent
        if committed and container is not None and self._on_commit is not None:
            self._on_commit(container)
        return committed

    def highlight(self, root: Node) -> List[Replacement]:
        batch = self.scan(root)
        if not batch:
            return batch
        if self._queue is None:
            self.commit(batch, root)
        else:
            self._queue.request_frame(lambda: self.commit(batch, root))
        return batch

    def remove_highlights(self, document: Document) -> int:
        """Unwrap every processed container and forget all markers."""
        containers = document.find_by_class(PROCESSED_CLASS)
        for container in containers:
            parent = container.parent
            if parent is not None:
                parent.replace_child(TextNode(container.text_content), container)
        self.arena.clear()
        logger.info("Removed %s highlighted segments", len(containers))
        return len(containers)

import asyncio

from word_highlighter.dom import Element, TextNode, parse_html
from word_highlighter.observer import MutationCoordinator
from word_highlighter.scanner import HIGHLIGHT_CLASS, DocumentScanner
from word_highlighter.scheduler import TaskQueue


def _paragraph(text: str) -> Element:
    paragraph = Element("p")
    paragraph.append_child(TextNode(text))
    return paragraph


def _setup(delay_ms: int = 0):
    document = parse_html("<div id='feed'></div>")
    queue = TaskQueue()
    scanner = DocumentScanner(queue)
    coordinator = MutationCoordinator(document, scanner, queue, delay_ms=delay_ms)
    return document, queue, scanner, coordinator


def _words(document):
    return [el.text_content for el in document.find_by_class(HIGHLIGHT_CLASS)]


def test_inserted_subtrees_are_highlighted():
    """Paragraphs appended after start are scanned once the delay passes."""
    document, queue, _, coordinator = _setup()

    async def run():
        coordinator.start()
        feed = document.get_element_by_id("feed")
        feed.append_child(_paragraph("Visit Prague"))
        feed.append_child(_paragraph("Visit Vienna"))
        await queue.drain()

    asyncio.run(run())
    assert _words(document) == ["Visit", "Prague", "Visit", "Vienna"]
    assert coordinator.pending_roots == []


def test_bursts_are_coalesced_into_one_scan():
    """Batches arriving inside the debounce window accumulate into one job."""
    document, queue, scanner, coordinator = _setup(delay_ms=20)
    scans = []
    original = scanner.highlight

    def counting_highlight(root):
        scans.append(root)
        return original(root)

    scanner.highlight = counting_highlight  # type: ignore[method-assign]

    async def run():
        coordinator.start()
        feed = document.get_element_by_id("feed")
        feed.append_child(_paragraph("Prague"))
        await asyncio.sleep(0)
        feed.append_child(_paragraph("Vienna"))
        await asyncio.sleep(0)
        assert len(coordinator.pending_roots) == 2
        await queue.drain()

    asyncio.run(run())
    assert len(scans) == 2
    assert sorted(_words(document)) == ["Prague", "Vienna"]


def test_highlight_spans_do_not_retrigger_scans():
    """The scanner's own insertions are filtered out of the mutation stream."""
    document, queue, _, coordinator = _setup()

    async def run():
        coordinator.start()
        document.get_element_by_id("feed").append_child(_paragraph("Prague"))
        await queue.drain()
        return list(coordinator.pending_roots)

    assert asyncio.run(run()) == []
    assert _words(document) == ["Prague"]


def test_engine_ui_insertions_are_ignored():
    """Elements carrying the engine id prefix never schedule a scan."""
    document, queue, _, coordinator = _setup()
    coordinator.start()
    document.body.append_child(Element("div", {"id": "word-highlighter-tooltip"}))
    assert coordinator.pending_roots == []


def test_stop_discards_pending_roots():
    """Stopping clears queued roots and detaches from the document."""
    document, queue, _, coordinator = _setup(delay_ms=1_000)

    async def run():
        coordinator.start()
        document.get_element_by_id("feed").append_child(_paragraph("Prague"))
        await asyncio.sleep(0)
        assert coordinator.pending_roots
        coordinator.stop()
        document.get_element_by_id("feed").append_child(_paragraph("Vienna"))
        await queue.drain()

    asyncio.run(run())
    assert not coordinator.active
    assert coordinator.pending_roots == []
    assert _words(document) == []

from tests.utils import SAMPLE_HTML
from word_highlighter.dom import Element, Event, TextNode, parse_html, to_html


def test_parse_html_builds_tree():
    """parse_html fills head and body and keeps the document language."""
    document = parse_html(SAMPLE_HTML)
    assert document.lang == "en"
    intro = document.get_element_by_id("intro")
    assert intro is not None
    assert intro.text_content == "Welcome to the Installation guide for the API reference."
    assert document.head.children[0].tag == "title"


def test_to_html_escapes_text_but_not_scripts():
    """Text is escaped on output while script bodies are written raw."""
    document = parse_html("<p>a &lt; b</p><script>if (a < b) {}</script>")
    markup = to_html(document.body)
    assert "<p>a &lt; b</p>" in markup
    assert "<script>if (a < b) {}</script>" in markup


def test_void_elements_do_not_swallow_siblings():
    """<br> and <img> never become parents of following content."""
    document = parse_html("<p>one<br>two<img src='x.png'>three</p>")
    paragraph = document.body.children[0]
    assert isinstance(paragraph, Element)
    assert [type(child).__name__ for child in paragraph.children] == [
        "TextNode",
        "Element",
        "TextNode",
        "Element",
        "TextNode",
    ]


def test_mutations_are_batched_for_observers():
    """Synchronous changes outside a loop are delivered straight away."""
    document = parse_html("<div id='root'></div>")
    batches = []
    document.observe(batches.append)
    root = document.get_element_by_id("root")
    root.append_child(Element("p"))

    assert len(batches) == 1
    assert batches[0][0].target is root
    assert batches[0][0].added_nodes[0].tag == "p"


def test_detached_changes_are_not_reported():
    """Building a subtree off-document produces no mutation records."""
    document = parse_html("<div></div>")
    batches = []
    document.observe(batches.append)
    detached = Element("section")
    detached.append_child(TextNode("hello"))
    assert batches == []


def test_events_bubble_to_ancestors_and_document():
    """dispatch_event walks target, ancestors, then document listeners."""
    document = parse_html("<div id='outer'><span id='inner'>x</span></div>")
    seen = []
    outer = document.get_element_by_id("outer")
    inner = document.get_element_by_id("inner")
    outer.add_event_listener("click", lambda e: seen.append("outer"))
    inner.add_event_listener("click", lambda e: seen.append("inner"))
    document.add_event_listener("click", lambda e: seen.append("document"))

    inner.dispatch_event(Event("click", target=inner))
    assert seen == ["inner", "outer", "document"]


def test_same_listener_is_registered_once():
    """Adding an identical handler twice keeps a single registration."""
    element = Element("div")

    def handler(event):
        return None

    element.add_event_listener("click", handler)
    element.add_event_listener("click", handler)
    assert element.listeners("click") == [handler]

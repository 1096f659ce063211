"""
A small document tree standing in for the rendered page.

Only what the highlighter touches is modelled: elements with attributes
and listeners, text nodes, bubbling events, a selection with a bounding
rectangle, and batched mutation records for observers.
"""

from __future__ import annotations

import asyncio
import html
import logging
from dataclasses import dataclass, field
from html.parser import HTMLParser
from typing import Callable, Dict, Iterator, List

logger = logging.getLogger(__name__)

VOID_ELEMENTS = {
    "area", "base", "br", "col", "embed", "hr", "img", "input",
    "link", "meta", "param", "source", "track", "wbr",
}
RAW_TEXT_ELEMENTS = {"script", "style"}

EventHandler = Callable[["Event"], None]
MutationCallback = Callable[[List["MutationRecord"]], None]


@dataclass(slots=True)
class Rect:
    left: float = 0.0
    top: float = 0.0
    right: float = 0.0
    bottom: float = 0.0


@dataclass(slots=True)
class Selection:
    """Current text selection; empty text means collapsed."""

    text: str = ""
    rect: Rect | None = None

    @property
    def is_collapsed(self) -> bool:
        return not self.text

    def __str__(self) -> str:
        return self.text


@dataclass(slots=True)
class Event:
    type: str
    target: "Node"
    page_x: float = 0.0
    page_y: float = 0.0
    current_target: "Node | None" = None
    propagation_stopped: bool = False

    def stop_propagation(self) -> None:
        self.propagation_stopped = True


@dataclass(slots=True)
class MutationRecord:
    target: "Element"
    added_nodes: List["Node"] = field(default_factory=list)


class Node:
    def __init__(self) -> None:
        self.parent: Element | None = None

    @property
    def parent_element(self) -> "Element | None":
        return self.parent

    @property
    def text_content(self) -> str:
        raise NotImplementedError

    @property
    def owner_document(self) -> "Document | None":
        node: Node = self
        while node.parent is not None:
            node = node.parent
        if isinstance(node, Element):
            return node._document
        return None

    @property
    def is_connected(self) -> bool:
        return self.owner_document is not None

    def iter_ancestors(self) -> Iterator["Element"]:
        node = self.parent
        while node is not None:
            yield node
            node = node.parent

    def remove(self) -> None:
        if self.parent is not None:
            self.parent.remove_child(self)


class TextNode(Node):
    def __init__(self, data: str) -> None:
        super().__init__()
        self.data = data
        # Assigned by the scanner's segment arena the first time it is scanned.
        self.segment_id: int | None = None

    @property
    def text_content(self) -> str:
        return self.data

    def __repr__(self) -> str:
        return f"TextNode({self.data!r})"


class Element(Node):
    def __init__(self, tag: str, attrs: Dict[str, str] | None = None) -> None:
        super().__init__()
        self.tag = tag.lower()
        self.attrs: Dict[str, str] = dict(attrs or {})
        self.children: List[Node] = []
        self._listeners: Dict[str, List[EventHandler]] = {}
        self._document: Document | None = None

    def __repr__(self) -> str:
        return f"<Element {self.tag} id={self.id!r} class={self.attrs.get('class', '')!r}>"

    @property
    def id(self) -> str:
        return self.attrs.get("id", "")

    @id.setter
    def id(self, value: str) -> None:
        self.attrs["id"] = value

    @property
    def class_list(self) -> List[str]:
        return self.attrs.get("class", "").split()

    def has_class(self, name: str) -> bool:
        return name in self.class_list

    def add_class(self, name: str) -> None:
        classes = self.class_list
        if name not in classes:
            classes.append(name)
            self.attrs["class"] = " ".join(classes)

    def remove_class(self, name: str) -> None:
        classes = [c for c in self.class_list if c != name]
        if classes:
            self.attrs["class"] = " ".join(classes)
        else:
            self.attrs.pop("class", None)

    @property
    def text_content(self) -> str:
        return "".join(child.text_content for child in self.children)

    @text_content.setter
    def text_content(self, value: str) -> None:
        for child in self.children:
            child.parent = None
        self.children = []
        if value:
            self.append_child(TextNode(value))

    # -- structure -------------------------------------------------------

    def _adopt(self, node: Node) -> None:
        if node.parent is not None:
            node.parent.remove_child(node)
        node.parent = self

    def append_child(self, node: Node) -> Node:
        self._adopt(node)
        self.children.append(node)
        self._notify([node])
        return node

    def insert_before(self, node: Node, reference: Node | None) -> Node:
        if reference is None:
            return self.append_child(node)
        self._adopt(node)
        self.children.insert(self.children.index(reference), node)
        self._notify([node])
        return node

    def replace_child(self, new: Node, old: Node) -> Node:
        self._adopt(new)
        # looked up after _adopt, which may have shifted old
        index = self.children.index(old)
        self.children[index] = new
        old.parent = None
        self._notify([new])
        return old

    def remove_child(self, node: Node) -> Node:
        self.children.remove(node)
        node.parent = None
        return node

    def contains(self, node: Node | None) -> bool:
        while node is not None:
            if node is self:
                return True
            node = node.parent
        return False

    def _notify(self, added: List[Node]) -> None:
        document = self.owner_document
        if document is not None:
            document._queue_record(MutationRecord(target=self, added_nodes=added))

    # -- traversal -------------------------------------------------------

    def iter_descendants(self) -> Iterator[Node]:
        """Depth-first, document-order walk of everything below this element."""
        stack: List[Node] = list(reversed(self.children))
        while stack:
            node = stack.pop()
            yield node
            if isinstance(node, Element):
                stack.extend(reversed(node.children))

    def iter_text_nodes(self) -> Iterator[TextNode]:
        for node in self.iter_descendants():
            if isinstance(node, TextNode):
                yield node

    def find_by_class(self, name: str) -> List["Element"]:
        return [
            node
            for node in self.iter_descendants()
            if isinstance(node, Element) and node.has_class(name)
        ]

    def get_element_by_id(self, element_id: str) -> "Element | None":
        for node in self.iter_descendants():
            if isinstance(node, Element) and node.id == element_id:
                return node
        return None

    # -- events ----------------------------------------------------------

    def add_event_listener(self, event_type: str, handler: EventHandler) -> None:
        handlers = self._listeners.setdefault(event_type, [])
        if handler not in handlers:
            handlers.append(handler)

    def remove_event_listener(self, event_type: str, handler: EventHandler) -> None:
        handlers = self._listeners.get(event_type, [])
        if handler in handlers:
            handlers.remove(handler)

    def listeners(self, event_type: str) -> List[EventHandler]:
        return list(self._listeners.get(event_type, []))

    def dispatch_event(self, event: Event) -> None:
        """Deliver the event to this element, its ancestors, then the document."""
        path: List[Element] = [self, *self.iter_ancestors()]
        for node in path:
            event.current_target = node
            for handler in node.listeners(event.type):
                handler(event)
            if event.propagation_stopped:
                return
        document = self.owner_document
        if document is not None:
            document._deliver(event)


class Document:
    """Root of the tree: html/head/body, selection state and observers."""

    def __init__(self, lang: str | None = None) -> None:
        self.html = Element("html", {"lang": lang} if lang else None)
        self.html._document = self
        self.head = Element("head")
        self.body = Element("body")
        self.html.children = [self.head, self.body]
        self.head.parent = self.html
        self.body.parent = self.html
        self.selection = Selection()
        self.scroll_x = 0.0
        self.scroll_y = 0.0
        self._listeners: Dict[str, List[EventHandler]] = {}
        self._observers: List[MutationCallback] = []
        self._pending_records: List[MutationRecord] = []
        self._flush_scheduled = False

    @property
    def lang(self) -> str:
        return self.html.attrs.get("lang", "")

    def create_element(
        self, tag: str, attrs: Dict[str, str] | None = None, text: str | None = None
    ) -> Element:
        element = Element(tag, attrs)
        if text:
            element.append_child(TextNode(text))
        return element

    def create_text_node(self, data: str) -> TextNode:
        return TextNode(data)

    def get_element_by_id(self, element_id: str) -> Element | None:
        return self.html.get_element_by_id(element_id)

    def find_by_class(self, name: str) -> List[Element]:
        return self.html.find_by_class(name)

    # -- events ----------------------------------------------------------

    def add_event_listener(self, event_type: str, handler: EventHandler) -> None:
        handlers = self._listeners.setdefault(event_type, [])
        if handler not in handlers:
            handlers.append(handler)

    def remove_event_listener(self, event_type: str, handler: EventHandler) -> None:
        handlers = self._listeners.get(event_type, [])
        if handler in handlers:
            handlers.remove(handler)

    def _deliver(self, event: Event) -> None:
        event.current_target = None
        for handler in list(self._listeners.get(event.type, [])):
            handler(event)

    def set_selection(self, text: str, rect: Rect | None = None) -> None:
        self.selection = Selection(text=text, rect=rect)
        self._deliver(Event("selectionchange", target=self.body))

    def clear_selection(self) -> None:
        self.set_selection("")

    # -- mutation observation --------------------------------------------

    def observe(self, callback: MutationCallback) -> None:
        if callback not in self._observers:
            self._observers.append(callback)

    def disconnect(self, callback: MutationCallback) -> None:
        if callback in self._observers:
            self._observers.remove(callback)

    def _queue_record(self, record: MutationRecord) -> None:
        if not self._observers:
            return
        self._pending_records.append(record)
        if self._flush_scheduled:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self.flush_mutations()
            return
        self._flush_scheduled = True
        loop.call_soon(self.flush_mutations)

    def flush_mutations(self) -> None:
        """Hand all queued records to every observer as one batch."""
        self._flush_scheduled = False
        records, self._pending_records = self._pending_records, []
        if not records:
            return
        for callback in list(self._observers):
            callback(records)


class _TreeBuilder(HTMLParser):
    def __init__(self, document: Document) -> None:
        super().__init__(convert_charrefs=True)
        self._document = document
        self._stack: List[Element] = [document.body]

    def handle_starttag(self, tag: str, attrs: list[tuple[str, str | None]]) -> None:
        values = {name: value or "" for name, value in attrs}
        if tag == "html":
            self._document.html.attrs.update(values)
            return
        if tag == "head":
            self._stack = [self._document.head]
            return
        if tag == "body":
            self._document.body.attrs.update(values)
            self._stack = [self._document.body]
            return
        element = Element(tag, values)
        self._stack[-1].append_child(element)
        if tag not in VOID_ELEMENTS:
            self._stack.append(element)

    def handle_startendtag(self, tag: str, attrs: list[tuple[str, str | None]]) -> None:
        self.handle_starttag(tag, attrs)
        if tag not in VOID_ELEMENTS and self._stack[-1].tag == tag:
            self._stack.pop()

    def handle_endtag(self, tag: str) -> None:
        if tag in {"html", "body"}:
            return
        if tag == "head":
            self._stack = [self._document.body]
            return
        for index in range(len(self._stack) - 1, 0, -1):
            if self._stack[index].tag == tag:
                del self._stack[index:]
                return

    def handle_data(self, data: str) -> None:
        if data:
            self._stack[-1].append_child(TextNode(data))


def parse_html(markup: str, lang: str | None = None) -> Document:
    """Build a Document from HTML markup."""
    document = Document(lang=lang)
    builder = _TreeBuilder(document)
    builder.feed(markup)
    builder.close()
    logger.debug(
        "Parsed HTML document with %s text nodes",
        sum(1 for _ in document.body.iter_text_nodes()),
    )
    return document


def to_html(node: Node | Document) -> str:
    """Serialize a node (or whole document) back to HTML."""
    if isinstance(node, Document):
        return "<!DOCTYPE html>\n" + to_html(node.html)
    if isinstance(node, TextNode):
        parent = node.parent
        if parent is not None and parent.tag in RAW_TEXT_ELEMENTS:
            return node.data
        return html.escape(node.data, quote=False)
    assert isinstance(node, Element)
    attrs = "".join(
        f' {name}="{html.escape(value, quote=True)}"' for name, value in node.attrs.items()
    )
    if node.tag in VOID_ELEMENTS:
        return f"<{node.tag}{attrs}>"
    inner = "".join(to_html(child) for child in node.children)
    return f"<{node.tag}{attrs}>{inner}</{node.tag}>"

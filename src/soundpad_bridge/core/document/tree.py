"""Lossless element tree over the soundlist text.

Every element keeps its raw start tag, raw end tag and the raw text between
its children, so rendering an untouched tree gives back the input byte for
byte. Edits replace or move element handles and the whole document is
serialized once at the end.
"""

import re
from collections.abc import Iterator

from soundpad_bridge.core.document.scanner import (
    find_element,
    next_tag,
    parse_attributes,
    set_attribute,
)

_LEADING_BLANK_LINE_RE = re.compile(r"^[ \t]*\r?\n?")


class CategoryLookupError(ValueError):
    """A category name could not be resolved to exactly one element."""


class Element:
    """A handle on one element of the document."""

    def __init__(
        self,
        name: str,
        open_tag: str,
        children: list["str | Element"] | None = None,
        close_tag: str = "",
        parent: "Element | None" = None,
    ) -> None:
        self.name = name
        self.open_tag = open_tag
        # None marks the self-closing form.
        self.children = children
        self.close_tag = close_tag
        self.parent = parent

    def __repr__(self) -> str:
        return f"Element({self.open_tag[:60]!r})"

    @property
    def self_closing(self) -> bool:
        return self.children is None

    @property
    def attributes(self) -> dict[str, str]:
        tag = next_tag(self.open_tag)
        return parse_attributes(tag.attrs) if tag else {}

    def get(self, name: str) -> str | None:
        return self.attributes.get(name)

    def set(self, name: str, value: str) -> None:
        self.open_tag = set_attribute(self.open_tag, name, value)

    def elements(self, name: str | None = None) -> list["Element"]:
        """Direct child elements, optionally filtered by tag name."""
        return [
            c
            for c in self.children or ()
            if isinstance(c, Element) and (name is None or c.name == name)
        ]

    def iter(self, name: str | None = None) -> Iterator["Element"]:
        """Descendants in document order (self excluded)."""
        for child in self.children or ():
            if isinstance(child, Element):
                if name is None or child.name == name:
                    yield child
                yield from child.iter(name)

    def find(self, name: str) -> "Element | None":
        return next(self.iter(name), None)

    def render(self) -> str:
        parts: list[str] = []
        self._render_into(parts)
        return "".join(parts)

    def _render_into(self, parts: list[str]) -> None:
        parts.append(self.open_tag)
        if self.children is None:
            return
        for child in self.children:
            if isinstance(child, str):
                parts.append(child)
            else:
                child._render_into(parts)
        parts.append(self.close_tag)

    # --- structural edits ---

    def _index(self, child: "Element") -> int:
        for i, c in enumerate(self.children or ()):
            if c is child:
                return i
        msg = f"{child!r} is not a child of {self!r}"
        raise ValueError(msg)

    def line_indent(self) -> str:
        """Whitespace that precedes this element on its own line, if any."""
        if self.parent is None or not self.parent.children:
            return ""
        i = self.parent._index(self)
        if i == 0 or not isinstance(self.parent.children[i - 1], str):
            return ""
        before = self.parent.children[i - 1]
        if "\n" not in before:
            return ""
        tail = before.rsplit("\n", 1)[1]
        return tail if not tail.strip() else ""

    def detach(self) -> None:
        """Remove this element along with its line's leading blanks and line break."""
        parent = self.parent
        if parent is None or parent.children is None:
            return
        siblings = parent.children
        i = parent._index(self)
        del siblings[i]
        if i < len(siblings) and isinstance(siblings[i], str):
            siblings[i] = _LEADING_BLANK_LINE_RE.sub("", siblings[i], count=1)
        if i > 0 and isinstance(siblings[i - 1], str):
            siblings[i - 1] = siblings[i - 1].rstrip(" \t")
        self.parent = None
        parent._merge_text()

    def line_break(self) -> str:
        """The line ending used nearest to this element, CRLF or LF."""
        node: Element | None = self
        while node is not None:
            for child in node.children or ():
                if isinstance(child, str) and "\n" in child:
                    return "\r\n" if "\r\n" in child else "\n"
            node = node.parent
        return "\n"

    def _child_list(self) -> list["str | Element"]:
        if self.children is None:
            msg = f"{self!r} is self-closing and has no children"
            raise ValueError(msg)
        return self.children

    def insert_before(self, anchor: "Element", new: "Element") -> None:
        """Insert ``new`` on its own line just before ``anchor``."""
        children = self._child_list()
        i = self._index(anchor)
        new.parent = self
        children[i:i] = [new, self.line_break() + anchor.line_indent()]
        self._merge_text()

    def insert_after(self, anchor: "Element", new: "Element") -> None:
        """Insert ``new`` on its own line just after ``anchor``."""
        children = self._child_list()
        i = self._index(anchor) + 1
        new.parent = self
        children[i:i] = [self.line_break() + anchor.line_indent(), new]
        self._merge_text()

    def prepend_element(self, new: "Element") -> None:
        """Make ``new`` the first child element."""
        first = self.elements()
        if first:
            self.insert_before(first[0], new)
        else:
            self._fill_empty(new)

    def append_element(self, new: "Element") -> None:
        """Make ``new`` the last child element."""
        last = self.elements()
        if last:
            self.insert_after(last[-1], new)
        else:
            self._fill_empty(new)

    def reorder(self, current: list["Element"], new_order: list["Element"]) -> None:
        """Put ``new_order`` into the slots now held by ``current``, leaving text alone."""
        children = self._child_list()
        slots = [self._index(e) for e in current]
        for slot, element in zip(slots, new_order, strict=True):
            children[slot] = element

    def _fill_empty(self, new: "Element") -> None:
        indent = self.line_indent()
        nl = self.line_break()
        if self.children is None:
            self.open_tag = self.open_tag[:-2].rstrip() + ">"
            self.close_tag = f"</{self.name}>"
        kept = "".join(c for c in self.children or () if isinstance(c, str)).rstrip()
        new.parent = self
        self.children = [kept + nl + indent + "  ", new, nl + indent]
        self._merge_text()

    def _merge_text(self) -> None:
        merged: list[str | Element] = []
        for child in self.children or ():
            if isinstance(child, str):
                if not child:
                    continue
                if merged and isinstance(merged[-1], str):
                    merged[-1] += child
                    continue
            merged.append(child)
        self.children = merged


def _parse_children(text: str, start: int, end: int, parent: Element) -> list[str | Element]:
    children: list[str | Element] = []
    pos = text_start = start
    while True:
        tag = next_tag(text, pos, end)
        if tag is None:
            break
        if tag.kind == "close":
            # A stray end tag is left in place as text.
            pos = tag.end
            continue
        span = find_element(text, tag.name, tag.start, end)
        if span is None or span.start != tag.start:
            pos = tag.end
            continue

        if span.start > text_start:
            children.append(text[text_start : span.start])
        element = Element(span.name, text[span.start : span.open_end], parent=parent)
        if span.inner_start is not None and span.inner_end is not None:
            element.children = _parse_children(text, span.inner_start, span.inner_end, element)
            element.close_tag = text[span.inner_end : span.end]
        children.append(element)
        pos = text_start = span.end

    if end > text_start:
        children.append(text[text_start:end])
    return children


def parse_document(text: str) -> Element:
    """Parse ``text`` into a nameless root element that renders back to ``text``."""
    root = Element("", "", children=[])
    root.children = _parse_children(text, 0, len(text), root)
    return root


def new_element(name: str, attrs: dict[str, str]) -> Element:
    """Build a self-closing element with ``attrs`` in the given order."""
    tag = f"<{name}/>"
    for key, value in attrs.items():
        tag = set_attribute(tag, key, value)
    return Element(name, tag)


def is_definition(element: Element) -> bool:
    return element.name == "Sound" and element.get("url") is not None


def reference_id(element: Element) -> int | None:
    """The id held by a ``<Sound id="N"/>`` reference, or None for anything else."""
    if element.name != "Sound":
        return None
    attrs = element.attributes
    if "url" in attrs:
        return None
    raw = attrs.get("id", "").strip()
    return int(raw) if raw.isascii() and raw.isdigit() else None


def is_visible_category(element: Element) -> bool:
    return bool(element.get("name")) and element.get("hidden") != "true"


class SoundlistTree:
    """Soundlist-aware view over a parsed document."""

    def __init__(self, text: str) -> None:
        self.source = text
        self.root = parse_document(text)

    def render(self) -> str:
        return self.root.render()

    @property
    def soundlist(self) -> Element | None:
        return self.root.find("Soundlist")

    @property
    def categories(self) -> Element | None:
        return self.root.find("Categories")

    def definitions(self) -> list[Element]:
        return [e for e in self.root.iter("Sound") if is_definition(e)]

    def references(self, within: Element | None = None) -> list[tuple[Element, int]]:
        """Every reference with its id, in document order."""
        scope = self.root if within is None else within
        refs = []
        for element in scope.iter("Sound"):
            ref_id = reference_id(element)
            if ref_id is not None:
                refs.append((element, ref_id))
        return refs

    def top_level_categories(self) -> list[Element]:
        section = self.categories
        return section.elements("Category") if section else []

    def find_categories(self, name: str) -> list[Element]:
        section = self.categories
        if section is None:
            return []
        return [c for c in section.iter("Category") if c.get("name") == name]

    def resolve_category(self, name: str) -> Element:
        """Resolve a category by full path ("Music/Rock") or by a unique name."""
        if "/" in name:
            by_path = self._walk_path(name.split("/"))
            if by_path is not None:
                return by_path

        matches = self.find_categories(name)
        if not matches:
            msg = f'Category "{name}" not found'
            raise CategoryLookupError(msg)
        if len(matches) > 1:
            msg = (
                f'Category name "{name}" is ambiguous ({len(matches)} matches); '
                "use the full path, e.g. Parent/Child"
            )
            raise CategoryLookupError(msg)
        return matches[0]

    def _walk_path(self, parts: list[str]) -> Element | None:
        node = self.categories
        for part in parts:
            if node is None:
                return None
            found = [c for c in node.elements("Category") if c.get("name") == part]
            if len(found) != 1:
                return None
            node = found[0]
        return node

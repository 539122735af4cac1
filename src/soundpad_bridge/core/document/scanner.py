"""Tag-level scanning of the soundlist grammar without an XML library.

The soundlist is XML-looking but owned by another program, so nothing here
validates it. Elements are located by counting nested open/close tags of the
same name; self-closing occurrences leave the depth unchanged. Anything that
cannot be matched is reported as "not found" instead of raising.
"""

import re
from collections.abc import Iterator
from dataclasses import dataclass

_NAME_RE = re.compile(r"[A-Za-z_][\w.:-]*")

# Body of a start tag up to (not including) its ">". Quoted values may hold ">" or "<".
_TAG_BODY_RE = re.compile(r"""(?:[^<>"']++|"[^"]*+"|'[^']*+')*+""")

_ATTR_RE = re.compile(r"""([A-Za-z_][\w.:-]*)\s*=\s*(?:"([^"]*)"|'([^']*)')""")

_ENTITY_RE = re.compile(r"&(#x[0-9A-Fa-f]+|#[0-9]+|amp|lt|gt|quot|apos);")

_NAMED_ENTITIES = {"amp": "&", "lt": "<", "gt": ">", "quot": '"', "apos": "'"}


@dataclass(frozen=True)
class Tag:
    """A single start, end or empty-element tag."""

    kind: str  # "open", "close" or "self_closing"
    name: str
    start: int
    end: int
    attrs: str = ""


@dataclass(frozen=True)
class ElementSpan:
    """Location of a whole element inside a text.

    ``inner_start``/``inner_end`` bound the content of a block element and are
    ``None`` for the self-closing form.
    """

    name: str
    start: int
    end: int
    attrs: str
    inner_start: int | None = None
    inner_end: int | None = None

    @property
    def self_closing(self) -> bool:
        return self.inner_start is None

    @property
    def open_end(self) -> int:
        """End offset of the start tag."""
        return self.end if self.inner_start is None else self.inner_start


def _skip_markup(text: str, lt: int, end: int) -> int | None:
    """Return the offset after a comment/PI/declaration at ``lt``, or None if not one."""
    if text.startswith("<!--", lt):
        close = text.find("-->", lt + 4, end)
        return end if close == -1 else close + 3
    if text.startswith("<?", lt) or text.startswith("<!", lt):
        close = text.find(">", lt + 2, end)
        return end if close == -1 else close + 1
    return None


def next_tag(text: str, pos: int = 0, end: int | None = None) -> Tag | None:
    """Return the next tag at or after ``pos``, or None when there is none.

    Comments, processing instructions and declarations are stepped over.
    A ``<`` that does not start a well-formed tag is treated as text.
    """
    end = len(text) if end is None else end
    i = pos
    while i < end:
        lt = text.find("<", i, end)
        if lt == -1:
            return None
        skipped = _skip_markup(text, lt, end)
        if skipped is not None:
            i = skipped
            continue

        closing = text.startswith("</", lt)
        name_match = _NAME_RE.match(text, lt + 2 if closing else lt + 1, end)
        if name_match is None:
            i = lt + 1
            continue

        body_end = _TAG_BODY_RE.match(text, name_match.end(), end).end()
        if body_end >= end or text[body_end] != ">":
            i = lt + 1
            continue

        name = name_match.group()
        if closing:
            return Tag("close", name, lt, body_end + 1)
        if body_end > name_match.end() and text[body_end - 1] == "/":
            attrs = text[name_match.end() : body_end - 1].strip()
            return Tag("self_closing", name, lt, body_end + 1, attrs)
        return Tag("open", name, lt, body_end + 1, text[name_match.end() : body_end].strip())
    return None


def _next_named(text: str, name: str, pos: int, end: int) -> Tag | None:
    while True:
        tag = next_tag(text, pos, end)
        if tag is None or tag.name == name:
            return tag
        pos = tag.end


def _matching_close(text: str, name: str, pos: int, end: int) -> Tag | None:
    depth = 1
    while True:
        tag = _next_named(text, name, pos, end)
        if tag is None:
            return None
        if tag.kind == "open":
            depth += 1
        elif tag.kind == "close":
            depth -= 1
            if depth == 0:
                return tag
        pos = tag.end


def _span_for(text: str, tag: Tag, end: int) -> ElementSpan | None:
    if tag.kind == "self_closing":
        return ElementSpan(tag.name, tag.start, tag.end, tag.attrs)
    close = _matching_close(text, tag.name, tag.end, end)
    if close is None:
        return None
    return ElementSpan(tag.name, tag.start, close.end, tag.attrs, tag.end, close.start)


def find_element(text: str, name: str, start: int = 0, end: int | None = None) -> ElementSpan | None:
    """Find the next ``name`` element at depth 0 relative to ``start``.

    Returns None when there is no such element or when the first one found is
    never closed.
    """
    end = len(text) if end is None else end
    pos = start
    while True:
        tag = _next_named(text, name, pos, end)
        if tag is None:
            return None
        if tag.kind == "close":
            pos = tag.end
            continue
        return _span_for(text, tag, end)


def iter_elements(
    text: str, name: str, start: int = 0, end: int | None = None
) -> Iterator[ElementSpan]:
    """Yield the top-level ``name`` elements of ``text[start:end]`` in order.

    An unterminated start tag is skipped and scanning resumes right after it.
    """
    end = len(text) if end is None else end
    pos = start
    while True:
        tag = _next_named(text, name, pos, end)
        if tag is None:
            return
        if tag.kind == "close":
            pos = tag.end
            continue
        span = _span_for(text, tag, end)
        if span is None:
            pos = tag.end
            continue
        yield span
        pos = span.end


def decode_entities(value: str) -> str:
    """Decode the standard markup entities and numeric character references."""

    def _replace(m: re.Match[str]) -> str:
        ref = m.group(1)
        if not ref.startswith("#"):
            return _NAMED_ENTITIES[ref]
        code = int(ref[2:], 16) if ref.startswith("#x") else int(ref[1:])
        # Out-of-range and surrogate references stay as written.
        if code > 0x10FFFF or 0xD800 <= code <= 0xDFFF:
            return m.group(0)
        return chr(code)

    return _ENTITY_RE.sub(_replace, value)


def encode_entities(value: str) -> str:
    """Escape a value for use inside a double-quoted attribute."""
    return (
        value.replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace('"', "&quot;")
    )


def parse_attributes(attrs: str) -> dict[str, str]:
    """Decode every attribute; the first of a duplicated name wins."""
    result: dict[str, str] = {}
    for m in _ATTR_RE.finditer(attrs):
        raw = m.group(2) if m.group(2) is not None else m.group(3)
        result.setdefault(m.group(1), decode_entities(raw))
    return result


def extract_attribute(attrs: str, name: str) -> str | None:
    """Return the decoded value of ``name`` or None when absent."""
    for m in _ATTR_RE.finditer(attrs):
        if m.group(1) == name:
            raw = m.group(2) if m.group(2) is not None else m.group(3)
            return decode_entities(raw)
    return None


def set_attribute(tag_text: str, name: str, value: str) -> str:
    """Return ``tag_text`` (a whole start tag) with ``name`` set to ``value``.

    An existing attribute is rewritten in place; a missing one is appended just
    before the closing ``/>`` or ``>``.
    """
    rendered = f'{name}="{encode_entities(value)}"'
    for m in _ATTR_RE.finditer(tag_text):
        if m.group(1) == name:
            return tag_text[: m.start()] + rendered + tag_text[m.end() :]

    if tag_text.endswith("/>"):
        return f"{tag_text[:-2].rstrip()} {rendered}/>"
    return f"{tag_text[:-1].rstrip()} {rendered}>"

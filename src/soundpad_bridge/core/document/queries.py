"""Read-only views of the soundlist: definitions, categories, icons, placements."""

import re

from soundpad_bridge.core.document.mutations import format_duration
from soundpad_bridge.core.document.scanner import next_tag, parse_attributes
from soundpad_bridge.core.document.tree import (
    Element,
    SoundlistTree,
    is_visible_category,
    reference_id,
)
from soundpad_bridge.models.soundlist import (
    CategoryEntry,
    CategoryIcon,
    CategoryPlacement,
    DefinitionInfo,
)

_BASE64_RE = re.compile(r"^[A-Za-z0-9+/=]{20,}$")


def _to_definition(sound_id: int, element: Element) -> DefinitionInfo:
    attrs = element.attributes
    return DefinitionInfo(
        id=sound_id,
        url=attrs.get("url", ""),
        custom_tag=attrs.get("customTag", ""),
        artist=attrs.get("artist", ""),
        title=attrs.get("title", ""),
        duration=attrs.get("duration", ""),
    )


def list_definitions(text: str) -> list[DefinitionInfo]:
    tree = SoundlistTree(text)
    return [_to_definition(i, e) for i, e in enumerate(tree.definitions())]


def get_definition(text: str, sound_id: int) -> DefinitionInfo | None:
    """Definition at position ``sound_id``, or None when out of range."""
    definitions = SoundlistTree(text).definitions()
    if not 0 <= sound_id < len(definitions):
        return None
    return _to_definition(sound_id, definitions[sound_id])


def list_categories(text: str) -> list[CategoryEntry]:
    """Visible categories depth-first, each with its parent's name.

    Hidden or unnamed categories are skipped together with everything below them.
    """
    result: list[CategoryEntry] = []

    def _walk(node: Element, parent: str) -> None:
        for category in node.elements("Category"):
            if not is_visible_category(category):
                continue
            name = category.get("name") or ""
            result.append(CategoryEntry(name=name, parent=parent))
            _walk(category, name)

    section = SoundlistTree(text).categories
    if section is not None:
        _walk(section, "")
    return result


def list_category_icons(text: str) -> list[CategoryIcon]:
    """Icon of every named category, at any depth."""
    section = SoundlistTree(text).categories
    if section is None:
        return []
    icons = []
    for category in section.iter("Category"):
        name = category.get("name")
        if not name:
            continue
        icon = category.get("icon") or ""
        is_base64 = bool(icon) and not icon.startswith("stock_") and bool(_BASE64_RE.match(icon))
        icons.append(CategoryIcon(name=name, icon=icon, is_base64=is_base64))
    return icons


def category_placements(text: str) -> dict[int, CategoryPlacement]:
    """Map sound id to the visible category that shows it and its slot there.

    Only direct references count for a category; a sound placed in more than
    one category keeps the last placement in document order.
    """
    placements: dict[int, CategoryPlacement] = {}

    def _walk(node: Element, parent: str) -> None:
        for category in node.elements("Category"):
            if not is_visible_category(category):
                continue
            name = category.get("name") or ""
            slot = 0
            for child in category.elements("Sound"):
                ref_id = reference_id(child)
                if ref_id is None:
                    continue
                placements[ref_id] = CategoryPlacement(category=name, parent=parent, position=slot)
                slot += 1
            _walk(category, name)

    section = SoundlistTree(text).categories
    if section is not None:
        _walk(section, "")
    return placements


def _live_duration(attrs: dict[str, str]) -> str:
    if attrs.get("duration"):
        return attrs["duration"]
    millis = attrs.get("durationInMs", "")
    if millis.isascii() and millis.isdigit():
        return format_duration(int(millis) / 1000)
    return ""


def parse_sound_list(reply: str) -> list[DefinitionInfo]:
    """Sounds from a ``GetSoundlist()`` reply, ordered by their 1-based index.

    Soundpad answers with ``<Sound index="N" .../>`` entries, possibly nested in
    categories. Entries without a usable index are skipped and a repeated
    index keeps its first entry. Ids follow the soundlist convention
    (``index - 1``).
    """
    found: dict[int, DefinitionInfo] = {}
    pos = 0
    while (tag := next_tag(reply, pos)) is not None:
        pos = tag.end
        if tag.name != "Sound" or tag.kind == "close":
            continue
        attrs = parse_attributes(tag.attrs)
        raw = attrs.get("index", "").strip()
        if not (raw.isascii() and raw.isdigit()) or int(raw) < 1:
            continue
        index = int(raw)
        found.setdefault(
            index,
            DefinitionInfo(
                id=index - 1,
                url=attrs.get("url", ""),
                custom_tag=attrs.get("customTag") or attrs.get("tag", ""),
                artist=attrs.get("artist", ""),
                title=attrs.get("title", ""),
                duration=_live_duration(attrs),
            ),
        )
    return [found[i] for i in sorted(found)]

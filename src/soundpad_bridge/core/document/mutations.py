"""Pure text-to-text edits of the soundlist.

Each operation parses the text it is given, edits the element tree, renders it
once and returns a MutationResult. A failed operation hands back the input
text unchanged. Files on disk are never touched here.
"""

from soundpad_bridge.core.document.tree import (
    CategoryLookupError,
    Element,
    SoundlistTree,
    is_visible_category,
    new_element,
    reference_id,
)
from soundpad_bridge.models.soundlist import MutationResult

_NO_CATEGORIES = "No Categories section found in soundlist"


def format_duration(seconds: float) -> str:
    """Format a duration as M:SS, the form Soundpad writes."""
    whole = int(seconds)
    return f"{whole // 60}:{whole % 60:02d}"


def _apply(element: Element, attrs: dict[str, str | None]) -> list[str]:
    changed = []
    for key, value in attrs.items():
        if value is None:
            continue
        element.set(key, value)
        changed.append(key)
    return changed


def _strip_references(tree: SoundlistTree, sound_id: int) -> int:
    """Detach every reference to ``sound_id`` from the category tree."""
    section = tree.categories
    if section is None:
        return 0
    removed = 0
    for element, ref_id in tree.references(section):
        if ref_id == sound_id:
            element.detach()
            removed += 1
    return removed


def insert_definition(
    text: str,
    *,
    url: str,
    custom_tag: str = "",
    artist: str = "",
    title: str = "",
    duration_seconds: float = 0,
) -> MutationResult:
    """Append a sound definition right before the Categories section.

    Falls back to the end of the root element when there is no Categories
    section. The new id is the number of definitions that existed before.
    """
    tree = SoundlistTree(text)
    soundlist = tree.soundlist
    if soundlist is None or soundlist.self_closing:
        return MutationResult.fail(text, "Could not find </Soundlist> in soundlist")

    sound_id = len(tree.definitions())
    attrs = {"url": url, "customTag": custom_tag, "artist": artist, "title": title}
    if duration_seconds > 0:
        attrs["duration"] = format_duration(duration_seconds)
    element = new_element("Sound", attrs)

    categories = tree.categories
    if categories is not None and categories.parent is not None:
        categories.parent.insert_before(categories, element)
    else:
        soundlist.append_element(element)

    return MutationResult.ok(
        tree.render(), f'Added sound definition {sound_id} ("{custom_tag}")', sound_id=sound_id
    )


def insert_reference(text: str, category: str, sound_id: int, position: int) -> MutationResult:
    """Place a reference to ``sound_id`` in ``category`` at ``position``.

    Any existing reference to the same id anywhere in the category tree is
    removed first. ``position`` counts the category's direct references only
    and is clamped to ``[0, len(direct)]``.
    """
    tree = SoundlistTree(text)
    if tree.categories is None:
        return MutationResult.fail(text, _NO_CATEGORIES)

    count = len(tree.definitions())
    if not 0 <= sound_id < count:
        return MutationResult.fail(
            text, f"Sound id {sound_id} does not match any definition (file has {count} sounds)"
        )

    try:
        target = tree.resolve_category(category)
    except CategoryLookupError as e:
        return MutationResult.fail(text, str(e))

    stripped = _strip_references(tree, sound_id)

    direct = [e for e in target.elements("Sound") if reference_id(e) is not None]
    position = max(0, min(position, len(direct)))
    ref = new_element("Sound", {"id": str(sound_id)})
    if not direct:
        target.prepend_element(ref)
    elif position < len(direct):
        target.insert_before(direct[position], ref)
    else:
        target.insert_after(direct[-1], ref)

    return MutationResult.ok(
        tree.render(),
        f'Sound {sound_id} placed in "{category}" at position {position}',
        position=position,
        stripped=stripped,
    )


def remove_reference(text: str, sound_id: int) -> MutationResult:
    """Remove every category reference to ``sound_id`` without renumbering."""
    tree = SoundlistTree(text)
    if tree.categories is None:
        return MutationResult.fail(text, _NO_CATEGORIES)
    removed = _strip_references(tree, sound_id)
    if not removed:
        return MutationResult.fail(text, f"Sound id {sound_id} is not in any category")
    return MutationResult.ok(
        tree.render(), f"Removed {removed} reference(s) to sound {sound_id}", removed=removed
    )


def remove_and_renumber(text: str, sound_id: int) -> MutationResult:
    """Delete definition ``sound_id`` and keep every reference pointing at the right sound.

    All references (categories, hotbar, anywhere) are collected once before
    anything is rewritten: those equal to ``sound_id`` are removed, those
    greater are decremented by one, smaller ones are left as they are.
    """
    tree = SoundlistTree(text)
    definitions = tree.definitions()
    if not 0 <= sound_id < len(definitions):
        return MutationResult.fail(
            text,
            f"Sound definition {sound_id} not found in soundlist "
            f"(file has {len(definitions)} sounds)",
        )

    target = definitions[sound_id]
    url = target.get("url") or ""
    snapshot = tree.references()

    target.detach()
    removed = renumbered = 0
    for element, ref_id in snapshot:
        if ref_id == sound_id:
            element.detach()
            removed += 1
        elif ref_id > sound_id:
            element.set("id", str(ref_id - 1))
            renumbered += 1

    return MutationResult.ok(
        tree.render(),
        f"Deleted sound {sound_id}: {removed} reference(s) removed, {renumbered} renumbered",
        url=url,
        removed=removed,
        renumbered=renumbered,
    )


def reorder_category(text: str, name: str, target_position: int) -> MutationResult:
    """Move a top-level category among the visible (named, non-hidden) ones."""
    tree = SoundlistTree(text)
    section = tree.categories
    if section is None:
        return MutationResult.fail(text, _NO_CATEGORIES)

    visible = [c for c in section.elements("Category") if is_visible_category(c)]
    source = next((i for i, c in enumerate(visible) if c.get("name") == name), None)
    if source is None:
        return MutationResult.fail(text, f'Category "{name}" not found')

    target = max(0, min(target_position, len(visible) - 1))
    if source == target:
        return MutationResult.ok(text, f'Category "{name}" already at position {target}')

    reordered = list(visible)
    reordered.insert(target, reordered.pop(source))
    section.reorder(visible, reordered)
    return MutationResult.ok(
        tree.render(), f'Category "{name}" moved to position {target}', position=target
    )


def update_attributes(
    text: str, tag_name: str, ordinal: int, attrs: dict[str, str | None]
) -> MutationResult:
    """Set attributes on the ``ordinal``-th (1-based, document order) ``tag_name`` element.

    ``None`` values are skipped.
    """
    tree = SoundlistTree(text)
    matches = list(tree.root.iter(tag_name))
    if not 1 <= ordinal <= len(matches):
        return MutationResult.fail(
            text,
            f"{tag_name} with index {ordinal} not found in soundlist "
            f"(file has {len(matches)})",
        )
    element = matches[ordinal - 1]
    changed = _apply(element, attrs)
    return MutationResult.ok(
        tree.render(), f"Updated {', '.join(changed) or 'nothing'} on {tag_name} {ordinal}"
    )


def update_definition(text: str, sound_id: int, attrs: dict[str, str | None]) -> MutationResult:
    """Set attributes on the definition with id ``sound_id``."""
    tree = SoundlistTree(text)
    definitions = tree.definitions()
    if not 0 <= sound_id < len(definitions):
        return MutationResult.fail(
            text,
            f"Sound definition {sound_id} not found in soundlist "
            f"(file has {len(definitions)} sounds)",
        )
    element = definitions[sound_id]
    changed = _apply(element, attrs)
    return MutationResult.ok(
        tree.render(),
        f"Updated {', '.join(changed) or 'nothing'} on sound {sound_id}",
        changed=changed,
    )


def set_category_icon(text: str, category: str, icon: str) -> MutationResult:
    """Replace or add the ``icon`` attribute of a category."""
    tree = SoundlistTree(text)
    if tree.categories is None:
        return MutationResult.fail(text, _NO_CATEGORIES)
    try:
        target = tree.resolve_category(category)
    except CategoryLookupError as e:
        return MutationResult.fail(text, str(e))
    target.set("icon", icon)
    return MutationResult.ok(tree.render(), f'Category "{category}" icon updated')

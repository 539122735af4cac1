"""Soundboard write operations, each run as one stop/edit/relaunch cycle.

Sounds are addressed by their 1-based Soundpad index; the document stores
0-based ids, so ``sound_id = index - 1``.
"""

import asyncio
import sys
from pathlib import Path
from typing import Any

from loguru import logger

from soundpad_bridge.context import BridgeContext
from soundpad_bridge.core.document.mutations import (
    insert_definition,
    insert_reference,
    remove_and_renumber,
    reorder_category,
    set_category_icon,
    update_attributes,
    update_definition,
)
from soundpad_bridge.core.lifecycle.coordinator import Mutation
from soundpad_bridge.errors import SoundboardError
from soundpad_bridge.models.soundlist import LifecycleOutcome, MutationResult

# Past the end of any category; insert_reference clamps it.
_APPEND = sys.maxsize


def _outcome_to_dict(outcome: LifecycleOutcome) -> dict[str, Any]:
    if not outcome.success:
        return {"success": False, "error": outcome.error, "ready": outcome.ready}
    return {"success": True, "message": outcome.message, "ready": outcome.ready, **outcome.data}


def _bad_index(index: int) -> dict[str, Any] | None:
    if index < 1:
        return {"success": False, "error": f"Sound index must be 1 or greater, got {index}"}
    return None


async def _run(ctx: BridgeContext, mutation: Mutation, description: str) -> dict[str, Any]:
    try:
        outcome = await ctx.coordinator.run(mutation, description=description)
    except SoundboardError as e:
        return {"success": False, "error": str(e)}
    return _outcome_to_dict(outcome)


async def rename_sound(ctx: BridgeContext, *, index: int, name: str) -> dict[str, Any]:
    """Set the display name (``customTag``) of a sound."""
    if error := _bad_index(index):
        return error
    result = await _run(
        ctx,
        lambda text: update_definition(text, index - 1, {"customTag": name}),
        f"rename sound {index}",
    )
    if result["success"]:
        result["index"] = index
    return result


async def update_sound_details(
    ctx: BridgeContext,
    *,
    index: int,
    custom_tag: str | None = None,
    artist: str | None = None,
    title: str | None = None,
    category: str | None = None,
) -> dict[str, Any]:
    """Update a sound's tag, artist and title, optionally moving it to the end of a category.

    Args:
        ctx: Bridge context.
        index: 1-based Soundpad index.
        custom_tag: New display name.
        artist: New artist.
        title: New title.
        category: Category name or "Parent/Child" path to move the sound into.
    """
    if error := _bad_index(index):
        return error
    attrs = {"customTag": custom_tag, "artist": artist, "title": title}
    if all(v is None for v in attrs.values()) and category is None:
        return {"success": False, "error": "No fields to update."}

    sound_id = index - 1

    def mutation(text: str) -> MutationResult:
        updated = update_definition(text, sound_id, attrs)
        if not updated.success or category is None:
            return updated
        moved = insert_reference(updated.content, category, sound_id, _APPEND)
        if not moved.success:
            # The detail change still stands; only the move is dropped.
            logger.warning("Sound {} updated but not moved: {}", index, moved.error)
            return MutationResult.ok(
                updated.content, updated.message, moved=False, move_error=moved.error
            )
        return MutationResult.ok(
            moved.content,
            f"{updated.message}; {moved.message}",
            moved=True,
            position=moved.data["position"],
        )

    result = await _run(ctx, mutation, f"update sound {index}")
    if result["success"]:
        result["index"] = index
    return result


async def move_sound(
    ctx: BridgeContext, *, index: int, category: str, position: int = _APPEND
) -> dict[str, Any]:
    """Place a sound in ``category`` at ``position`` (0-based, clamped)."""
    if error := _bad_index(index):
        return error
    return await _run(
        ctx,
        lambda text: insert_reference(text, category, index - 1, position),
        f"move sound {index} to {category}",
    )


async def reorder_category_position(
    ctx: BridgeContext, *, name: str, position: int
) -> dict[str, Any]:
    return await _run(
        ctx,
        lambda text: reorder_category(text, name, position),
        f"move category {name}",
    )


async def set_icon(ctx: BridgeContext, *, category: str, icon: str) -> dict[str, Any]:
    return await _run(
        ctx,
        lambda text: set_category_icon(text, category, icon),
        f"set icon of {category}",
    )


async def set_attributes(
    ctx: BridgeContext, *, tag: str, ordinal: int, attrs: dict[str, str | None]
) -> dict[str, Any]:
    """Set attributes on the ``ordinal``-th ``tag`` element (1-based, document order)."""
    if not attrs:
        return {"success": False, "error": "No fields to update."}
    return await _run(
        ctx,
        lambda text: update_attributes(text, tag, ordinal, attrs),
        f"update {tag} {ordinal}",
    )


async def add_sound(
    ctx: BridgeContext,
    *,
    source: Path,
    category: str | None = None,
    custom_tag: str | None = None,
    artist: str = "",
    title: str = "",
    duration_seconds: float = 0,
) -> dict[str, Any]:
    """Copy an audio file into the sounds directory and add it to the soundlist.

    The new definition goes after the existing ones. With ``category`` the
    sound is also appended to that category; a category that cannot be
    resolved leaves the sound uncategorized and is reported as
    ``category_error``.
    """
    try:
        ctx.coordinator.check_preconditions()
    except SoundboardError as e:
        return {"success": False, "error": str(e)}

    try:
        dest = await asyncio.to_thread(ctx.store.import_audio, source)
    except OSError as e:
        return {"success": False, "error": f"Could not copy audio file: {e}"}

    tag = custom_tag or dest.stem

    def mutation(text: str) -> MutationResult:
        added = insert_definition(
            text,
            url=str(dest),
            custom_tag=tag,
            artist=artist,
            title=title,
            duration_seconds=duration_seconds,
        )
        if not added.success or category is None:
            return added
        sound_id = added.data["sound_id"]
        placed = insert_reference(added.content, category, sound_id, _APPEND)
        if not placed.success:
            logger.warning("Sound {} added but not categorized: {}", sound_id + 1, placed.error)
            return MutationResult.ok(
                added.content, added.message, sound_id=sound_id, category_error=placed.error
            )
        return MutationResult.ok(
            placed.content,
            f"{added.message}; {placed.message}",
            sound_id=sound_id,
            position=placed.data["position"],
        )

    result = await _run(ctx, mutation, f"add sound {dest.name}")
    if not result["success"]:
        # Nothing references the copy.
        await asyncio.to_thread(dest.unlink, missing_ok=True)
        return result
    result["index"] = result.pop("sound_id") + 1
    result["path"] = str(dest)
    return result


async def delete_sound(
    ctx: BridgeContext, *, index: int, delete_file: bool = True
) -> dict[str, Any]:
    """Remove a sound and renumber every later reference.

    The audio file and its ``_uncropped`` backup are deleted only after the
    new soundlist has been written.
    """
    if error := _bad_index(index):
        return error
    result = await _run(
        ctx, lambda text: remove_and_renumber(text, index - 1), f"delete sound {index}"
    )
    if not result["success"]:
        return result
    deleted: list[Path] = []
    if delete_file:
        deleted = await asyncio.to_thread(ctx.store.remove_audio, result.get("url", ""))
    result["index"] = index
    result["deleted_files"] = [str(p) for p in deleted]
    return result


async def restart(ctx: BridgeContext) -> dict[str, Any]:
    try:
        outcome = await ctx.coordinator.restart()
    except SoundboardError as e:
        return {"success": False, "error": str(e)}
    return _outcome_to_dict(outcome)


async def launch(ctx: BridgeContext) -> dict[str, Any]:
    try:
        outcome = await ctx.coordinator.launch()
    except SoundboardError as e:
        return {"success": False, "error": str(e)}
    return _outcome_to_dict(outcome)

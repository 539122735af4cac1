"""CLI for controlling Soundpad: inspect the soundlist, edit it, drive playback."""

import asyncio
import json
from pathlib import Path
from typing import Annotated, Any

import typer
from loguru import logger

from soundpad_bridge.context import BridgeContext, create_context
from soundpad_bridge.core.document.queries import (
    category_placements,
    list_categories,
    list_category_icons,
    list_definitions,
    parse_sound_list,
)
from soundpad_bridge.core.write import editor
from soundpad_bridge.errors import ControlChannelError
from soundpad_bridge.logging_config import configure_logging

app = typer.Typer(help="Soundpad bridge: edit the soundlist and control playback.")


@app.callback()
def main(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
    soundlist: Annotated[
        Path | None,
        typer.Option("--soundlist", "-s", help="Path to soundlist.spl"),
    ] = None,
    executable: Annotated[
        Path | None,
        typer.Option("--executable", "-e", help="Path to Soundpad.exe"),
    ] = None,
    channel: Annotated[
        str | None,
        typer.Option("--channel", "-c", help="Control channel (pipe, tcp://host:port, socket)"),
    ] = None,
    log_file: Annotated[
        Path | None,
        typer.Option("--log-file", help="Also write debug logs to this file"),
    ] = None,
) -> None:
    configure_logging(verbose=verbose, log_file=log_file)
    ctx.obj = create_context(soundlist=soundlist, executable=executable, channel_address=channel)


def _read_soundlist(bridge: BridgeContext) -> str:
    if not bridge.store.exists():
        logger.error("Soundlist not found: {}", bridge.store.path)
        raise typer.Exit(1)
    return bridge.store.read_text()


def _finish(result: dict[str, Any]) -> None:
    """Print a write result and exit non-zero on failure."""
    if not result["success"]:
        typer.echo(f"Error: {result['error']}", err=True)
        raise typer.Exit(1)
    typer.echo(result.get("message") or "Done")
    if result.get("ready") is False:
        typer.echo("Warning: Soundpad did not answer after relaunch", err=True)


def _send(coro: Any) -> None:
    try:
        reply = asyncio.run(coro)
    except ControlChannelError as e:
        logger.error("{}", e)
        raise typer.Exit(1) from e
    typer.echo(reply)


# --- inspection ---


@app.command()
def status(ctx: typer.Context) -> None:
    """Show whether Soundpad is running and what the soundlist holds."""
    bridge: BridgeContext = ctx.obj

    async def _probe() -> tuple[bool, bool]:
        running = await bridge.coordinator.process.is_running()
        connected = await bridge.monitor.is_connected()
        return running, connected

    running, connected = asyncio.run(_probe())
    typer.echo(f"Process running:  {'yes' if running else 'no'}")
    typer.echo(f"Control channel:  {'connected' if connected else 'unreachable'}")
    if bridge.store.exists():
        text = bridge.store.read_text()
        typer.echo(f"Soundlist:        {bridge.store.path}")
        typer.echo(
            f"                  {len(list_definitions(text))} sounds, "
            f"{len(list_categories(text))} categories"
        )
    else:
        typer.echo(f"Soundlist:        {bridge.store.path} (missing)")


@app.command()
def categories(
    ctx: typer.Context,
    output_json: bool = typer.Option(False, "--json", "-j", help="Output as JSON"),
) -> None:
    """List visible categories with their parents."""
    entries = list_categories(_read_soundlist(ctx.obj))
    if output_json:
        typer.echo(json.dumps([{"name": e.name, "parent": e.parent} for e in entries], indent=2))
        return
    for e in entries:
        typer.echo(f"  {e.parent}/{e.name}" if e.parent else f"  {e.name}")


@app.command()
def icons(
    ctx: typer.Context,
    output_json: bool = typer.Option(False, "--json", "-j", help="Output as JSON"),
) -> None:
    """List category icons."""
    entries = list_category_icons(_read_soundlist(ctx.obj))
    if output_json:
        data = [{"name": e.name, "icon": e.icon, "is_base64": e.is_base64} for e in entries]
        typer.echo(json.dumps(data, indent=2))
        return
    for e in entries:
        shown = f"<base64, {len(e.icon)} chars>" if e.is_base64 else (e.icon or "-")
        typer.echo(f"  {e.name}: {shown}")


@app.command()
def placements(
    ctx: typer.Context,
    output_json: bool = typer.Option(False, "--json", "-j", help="Output as JSON"),
) -> None:
    """List sounds with the category each one is shown in."""
    text = _read_soundlist(ctx.obj)
    where = category_placements(text)
    rows = []
    for d in list_definitions(text):
        p = where.get(d.id)
        rows.append(
            {
                "index": d.id + 1,
                "name": d.custom_tag,
                "category": p.category if p else None,
                "parent": p.parent if p else None,
                "position": p.position if p else None,
            }
        )
    if output_json:
        typer.echo(json.dumps(rows, indent=2))
        return
    for r in rows:
        place = f"{r['category']} #{r['position']}" if r["category"] else "(uncategorized)"
        typer.echo(f"  {r['index']:>4}  {r['name'][:50]:<50}  {place}")


@app.command()
def sounds(
    ctx: typer.Context,
    output_json: bool = typer.Option(False, "--json", "-j", help="Output as JSON"),
) -> None:
    """List the sounds Soundpad has loaded right now."""
    bridge: BridgeContext = ctx.obj
    try:
        reply = asyncio.run(bridge.channel.get_sound_list())
    except ControlChannelError as e:
        logger.error("{}", e)
        raise typer.Exit(1) from e
    if reply.startswith("E-"):
        logger.error("Soundpad refused GetSoundlist: {}", reply)
        raise typer.Exit(1)

    entries = parse_sound_list(reply)
    if output_json:
        rows = [
            {
                "index": e.id + 1,
                "name": e.custom_tag or e.title,
                "artist": e.artist,
                "duration": e.duration,
                "url": e.url,
            }
            for e in entries
        ]
        typer.echo(json.dumps(rows, indent=2))
        return
    for e in entries:
        typer.echo(f"  {e.id + 1:>4}  {(e.custom_tag or e.title)[:50]:<50}  {e.duration}")


# --- edits ---


@app.command()
def rename(
    ctx: typer.Context,
    index: int = typer.Argument(..., help="1-based sound index"),
    name: str = typer.Argument(..., help="New display name"),
) -> None:
    """Rename a sound."""
    _finish(asyncio.run(editor.rename_sound(ctx.obj, index=index, name=name)))


@app.command()
def details(
    ctx: typer.Context,
    index: int = typer.Argument(..., help="1-based sound index"),
    tag: Annotated[str | None, typer.Option("--tag", help="Display name")] = None,
    artist: Annotated[str | None, typer.Option("--artist", help="Artist")] = None,
    title: Annotated[str | None, typer.Option("--title", help="Title")] = None,
    category: Annotated[
        str | None,
        typer.Option("--category", help="Move to the end of this category"),
    ] = None,
) -> None:
    """Update a sound's details."""
    _finish(
        asyncio.run(
            editor.update_sound_details(
                ctx.obj,
                index=index,
                custom_tag=tag,
                artist=artist,
                title=title,
                category=category,
            )
        )
    )


@app.command()
def move(
    ctx: typer.Context,
    index: int = typer.Argument(..., help="1-based sound index"),
    category: str = typer.Argument(..., help="Category name or Parent/Child path"),
    position: Annotated[
        int | None,
        typer.Option("--position", "-p", help="0-based slot (default: end)"),
    ] = None,
) -> None:
    """Move a sound into a category."""
    kwargs: dict[str, Any] = {} if position is None else {"position": position}
    _finish(asyncio.run(editor.move_sound(ctx.obj, index=index, category=category, **kwargs)))


@app.command(name="reorder-category")
def reorder_category_cmd(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Top-level category name"),
    position: int = typer.Argument(..., help="0-based target position"),
) -> None:
    """Move a top-level category."""
    _finish(asyncio.run(editor.reorder_category_position(ctx.obj, name=name, position=position)))


@app.command()
def delete(
    ctx: typer.Context,
    index: int = typer.Argument(..., help="1-based sound index"),
    keep_file: bool = typer.Option(False, "--keep-file", help="Do not delete the audio file"),
) -> None:
    """Delete a sound."""
    result = asyncio.run(editor.delete_sound(ctx.obj, index=index, delete_file=not keep_file))
    _finish(result)
    for path in result.get("deleted_files", []):
        typer.echo(f"  removed {path}")


@app.command()
def add(
    ctx: typer.Context,
    source: Path = typer.Argument(..., help="Audio file to add"),
    category: Annotated[
        str | None,
        typer.Option("--category", help="Category to append the sound to"),
    ] = None,
    tag: Annotated[str | None, typer.Option("--tag", help="Display name")] = None,
    artist: str = typer.Option("", "--artist", help="Artist"),
    title: str = typer.Option("", "--title", help="Title"),
    duration: float = typer.Option(0, "--duration", help="Duration in seconds"),
) -> None:
    """Copy an audio file into the sounds folder and add it."""
    result = asyncio.run(
        editor.add_sound(
            ctx.obj,
            source=source,
            category=category,
            custom_tag=tag,
            artist=artist,
            title=title,
            duration_seconds=duration,
        )
    )
    _finish(result)
    if result.get("category_error"):
        typer.echo(f"Warning: {result['category_error']}", err=True)


@app.command(name="set-icon")
def set_icon_cmd(
    ctx: typer.Context,
    category: str = typer.Argument(..., help="Category name or Parent/Child path"),
    icon: str = typer.Argument(..., help="Icon value (stock_ name or base64 image)"),
) -> None:
    """Set a category icon."""
    _finish(asyncio.run(editor.set_icon(ctx.obj, category=category, icon=icon)))


@app.command(name="set-attr")
def set_attr_cmd(
    ctx: typer.Context,
    tag: str = typer.Argument(..., help="Element name, e.g. Sound"),
    ordinal: int = typer.Argument(..., help="1-based position among elements with that name"),
    assignments: list[str] = typer.Argument(..., help="key=value pairs"),
) -> None:
    """Set raw attributes on the Nth element of a given name."""
    attrs: dict[str, str | None] = {}
    for item in assignments:
        key, sep, value = item.partition("=")
        if not sep or not key:
            typer.echo(f"Error: expected key=value, got {item!r}", err=True)
            raise typer.Exit(2)
        attrs[key] = value
    _finish(asyncio.run(editor.set_attributes(ctx.obj, tag=tag, ordinal=ordinal, attrs=attrs)))


# --- process ---


@app.command()
def restart(ctx: typer.Context) -> None:
    """Stop and relaunch Soundpad."""
    _finish(asyncio.run(editor.restart(ctx.obj)))


@app.command()
def launch(ctx: typer.Context) -> None:
    """Start Soundpad if it is not running."""
    _finish(asyncio.run(editor.launch(ctx.obj)))


# --- playback ---


@app.command()
def play(
    ctx: typer.Context,
    index: int = typer.Argument(..., help="1-based sound index"),
    speakers_only: bool = typer.Option(False, "--speakers-only", help="Play on speakers only"),
    mic_only: bool = typer.Option(False, "--mic-only", help="Play on microphone only"),
) -> None:
    """Play a sound."""
    bridge: BridgeContext = ctx.obj
    _send(bridge.channel.play_sound(index, speakers_only=speakers_only, mic_only=mic_only))


@app.command()
def stop(ctx: typer.Context) -> None:
    """Stop playback."""
    _send(ctx.obj.channel.stop_sound())


@app.command()
def pause(ctx: typer.Context) -> None:
    """Toggle pause."""
    _send(ctx.obj.channel.toggle_pause())


@app.command()
def volume(
    ctx: typer.Context,
    level: int = typer.Argument(..., help="Volume 0-100"),
) -> None:
    """Set playback volume."""
    _send(ctx.obj.channel.set_volume(level))


if __name__ == "__main__":
    app()

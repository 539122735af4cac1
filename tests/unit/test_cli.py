"""Tests for the soundpad-bridge CLI."""

import json
from collections.abc import Iterator
from pathlib import Path
from unittest.mock import AsyncMock

import pytest
from loguru import logger
from typer.testing import CliRunner

from soundpad_bridge import cli
from soundpad_bridge.cli import app
from soundpad_bridge.context import BridgeContext
from soundpad_bridge.core.document.queries import list_definitions
from soundpad_bridge.errors import ControlChannelError
from tests.unit.fakes import FakeProcess

runner = CliRunner()


@pytest.fixture(autouse=True)
def _drop_log_sinks() -> Iterator[None]:
    """configure_logging() binds a sink to the runner's captured stderr; drop it afterwards."""
    yield
    logger.remove()


@pytest.fixture
def use_bridge(bridge: BridgeContext, monkeypatch: pytest.MonkeyPatch) -> BridgeContext:
    """Make every CLI invocation use the fake-process bridge."""
    monkeypatch.setattr(cli, "create_context", lambda **kwargs: bridge)
    return bridge


def test_categories_lists_visible_tree(soundlist_file: Path) -> None:
    result = runner.invoke(app, ["--soundlist", str(soundlist_file), "categories"])

    assert result.exit_code == 0
    lines = result.output.splitlines()
    assert "  Memes" in lines
    assert "  Music/Rock" in lines
    assert "  Archive/Rock" in lines
    assert "Secret" not in result.output


def test_categories_json(soundlist_file: Path) -> None:
    result = runner.invoke(app, ["--soundlist", str(soundlist_file), "categories", "--json"])

    assert result.exit_code == 0
    data = json.loads(result.output)
    assert data[0] == {"name": "Memes", "parent": ""}


def test_icons(soundlist_file: Path) -> None:
    result = runner.invoke(app, ["--soundlist", str(soundlist_file), "icons"])

    assert result.exit_code == 0
    assert "Memes: stock_smile" in result.output
    assert "Music: <base64, 32 chars>" in result.output


def test_placements_json(soundlist_file: Path) -> None:
    result = runner.invoke(app, ["--soundlist", str(soundlist_file), "placements", "--json"])

    assert result.exit_code == 0
    rows = json.loads(result.output)
    assert rows[0] == {
        "index": 1,
        "name": "Airhorn",
        "category": "Memes",
        "parent": "",
        "position": 0,
    }
    assert rows[4]["category"] is None


def test_missing_soundlist_exits_nonzero(tmp_path: Path) -> None:
    result = runner.invoke(app, ["--soundlist", str(tmp_path / "nope.spl"), "categories"])
    assert result.exit_code == 1


def test_status(use_bridge: BridgeContext) -> None:
    result = runner.invoke(app, ["status"])

    assert result.exit_code == 0
    assert "Process running:  yes" in result.output
    assert "connected" in result.output
    assert "5 sounds, 5 categories" in result.output


def test_rename(use_bridge: BridgeContext, process: FakeProcess) -> None:
    result = runner.invoke(app, ["rename", "3", "Applause"])

    assert result.exit_code == 0
    assert list_definitions(use_bridge.store.read_text())[2].custom_tag == "Applause"
    assert process.events == ["graceful_stop", "launch"]


def test_delete_out_of_range_fails(use_bridge: BridgeContext) -> None:
    result = runner.invoke(app, ["delete", "42"])

    assert result.exit_code == 1
    assert "Error:" in result.output


def test_move_with_position(use_bridge: BridgeContext) -> None:
    result = runner.invoke(app, ["move", "5", "Memes", "--position", "0"])

    assert result.exit_code == 0
    assert "position 0" in result.output


def test_set_attr_parses_assignments(use_bridge: BridgeContext) -> None:
    result = runner.invoke(app, ["set-attr", "Sound", "1", "artist=Someone", "title=Thing"])

    assert result.exit_code == 0
    info = list_definitions(use_bridge.store.read_text())[0]
    assert (info.artist, info.title) == ("Someone", "Thing")


def test_set_attr_rejects_bad_assignment(use_bridge: BridgeContext) -> None:
    result = runner.invoke(app, ["set-attr", "Sound", "1", "artist"])
    assert result.exit_code == 2


def test_launch_when_running(use_bridge: BridgeContext) -> None:
    result = runner.invoke(app, ["launch"])

    assert result.exit_code == 0
    assert "already running" in result.output


def test_play_sends_command(use_bridge: BridgeContext) -> None:
    play = AsyncMock(return_value="R-200")
    use_bridge.channel.play_sound = play  # type: ignore[method-assign]

    result = runner.invoke(app, ["play", "2", "--mic-only"])

    assert result.exit_code == 0
    assert "R-200" in result.output
    play.assert_awaited_once_with(2, speakers_only=False, mic_only=True)


def test_volume_unreachable_exits_nonzero(use_bridge: BridgeContext) -> None:
    use_bridge.channel.set_volume = AsyncMock(  # type: ignore[method-assign]
        side_effect=ControlChannelError("Cannot reach Soundpad")
    )

    result = runner.invoke(app, ["volume", "50"])

    assert result.exit_code == 1


def test_log_file_records_debug(use_bridge: BridgeContext, tmp_path: Path) -> None:
    log_file = tmp_path / "logs" / "bridge.log"

    result = runner.invoke(app, ["--log-file", str(log_file), "rename", "1", "Horn"])

    assert result.exit_code == 0
    logger.remove()
    content = log_file.read_text(encoding="utf-8")
    assert "Lifecycle -> stopping" in content
    assert "DEBUG" in content


def test_sounds_lists_live_sound_list(use_bridge: BridgeContext) -> None:
    reply = (
        '<Soundlist><Sound index="1" url="a.mp3" customTag="Horn" duration="0:02"/>'
        '<Sound index="2" url="b.mp3" title="Bell"/></Soundlist>'
    )
    use_bridge.channel.get_sound_list = AsyncMock(return_value=reply)  # type: ignore[method-assign]

    result = runner.invoke(app, ["sounds", "--json"])

    assert result.exit_code == 0
    rows = json.loads(result.output)
    assert [r["name"] for r in rows] == ["Horn", "Bell"]
    assert rows[0] == {
        "index": 1,
        "name": "Horn",
        "artist": "",
        "duration": "0:02",
        "url": "a.mp3",
    }


def test_sounds_error_reply_exits_nonzero(use_bridge: BridgeContext) -> None:
    use_bridge.channel.get_sound_list = AsyncMock(  # type: ignore[method-assign]
        return_value="E-404"
    )

    result = runner.invoke(app, ["sounds"])

    assert result.exit_code == 1

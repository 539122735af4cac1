"""Shared test fixtures."""

from collections.abc import Iterator
from pathlib import Path

import pytest
from loguru import logger

from soundpad_bridge.context import BridgeContext
from soundpad_bridge.core.control.channel import ControlChannel
from soundpad_bridge.core.control.health import ConnectionHealthMonitor
from soundpad_bridge.core.lifecycle.coordinator import LifecycleCoordinator
from soundpad_bridge.store import SoundlistStore
from tests.unit.fakes import FakeClock, FakeProcess

SOUNDLIST_TEMPLATE = """\
<?xml version="1.0" encoding="UTF-8"?>
<Soundlist>
  <Sound url="{sounds}/airhorn.mp3" customTag="Airhorn" artist="DJ" title="Horn" duration="0:03"/>
  <Sound url="{sounds}/bell.wav" customTag="Bell" artist="" title="" duration="0:01"/>
  <Sound url="{sounds}/crowd.mp3" customTag="Crowd &amp; Cheers" artist="" title="" duration="1:05"/>
  <Sound url="{sounds}/drum.ogg" customTag="Drum roll" artist="" title="" duration="0:07"/>
  <Sound url="{sounds}/echo.mp3" customTag="Echo" artist="" title="" duration="0:02"/>
  <Categories>
    <Category name="Memes" icon="stock_smile">
      <Sound id="0"/>
      <Sound id="2"/>
    </Category>
    <Category name="Music" icon="iVBORw0KGgoAAAANSUhEUgAAAAEAAAAB">
      <Sound id="1"/>
      <Category name="Rock"/>
    </Category>
    <Category name="Archive">
      <Category name="Rock">
        <Sound id="2"/>
      </Category>
    </Category>
    <Category name="Secret" hidden="true">
      <Sound id="3"/>
    </Category>
  </Categories>
  <Hotbar>
    <Sound id="2"/>
  </Hotbar>
</Soundlist>
"""

SAMPLE_SOUNDLIST = SOUNDLIST_TEMPLATE.format(sounds="C:/Sounds")


@pytest.fixture
def sample_text() -> str:
    return SAMPLE_SOUNDLIST


@pytest.fixture
def soundlist_file(tmp_path: Path) -> Path:
    """A soundlist on disk whose sounds point at real files in ``sounds/``."""
    root = tmp_path / "Leppsoft"
    sounds = root / "sounds"
    sounds.mkdir(parents=True)
    for name in ("airhorn.mp3", "bell.wav", "crowd.mp3", "drum.ogg", "echo.mp3"):
        (sounds / name).write_bytes(b"ID3fake")
    path = root / "soundlist.spl"
    path.write_text(SOUNDLIST_TEMPLATE.format(sounds=sounds.as_posix()), encoding="utf-8")
    return path


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def process() -> FakeProcess:
    return FakeProcess()


@pytest.fixture
def bridge(soundlist_file: Path, process: FakeProcess, clock: FakeClock) -> BridgeContext:
    """Context over a real store with a fake Soundpad process and clock."""
    store = SoundlistStore(soundlist_file)
    channel = ControlChannel("tcp://127.0.0.1:9")
    monitor = ConnectionHealthMonitor(process.probe, clock=clock)
    coordinator = LifecycleCoordinator(store, process, monitor, sleep=clock.sleep, clock=clock)
    return BridgeContext(store=store, channel=channel, monitor=monitor, coordinator=coordinator)


@pytest.fixture
def log_messages() -> Iterator[list[str]]:
    """Capture loguru messages as "LEVEL message" strings."""
    messages: list[str] = []
    handler_id = logger.add(
        lambda m: messages.append(f"{m.record['level'].name} {m.record['message']}"),
        level="DEBUG",
    )
    yield messages
    logger.remove(handler_id)

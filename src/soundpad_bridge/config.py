"""Configuration constants for soundpad-bridge."""

import os
from dataclasses import dataclass
from pathlib import Path

# Soundpad keeps its whole configuration in this file, next to its roaming app data.
_APPDATA = Path(os.environ.get("APPDATA") or Path("~/AppData/Roaming").expanduser())
SOUNDLIST_PATH: Path = _APPDATA / "Leppsoft" / "soundlist.spl"

# Copied audio files live beside the soundlist.
SOUNDS_DIRNAME: str = "sounds"

SOUNDPAD_EXECUTABLE: Path = Path("C:/Program Files/Soundpad/Soundpad.exe")
SOUNDPAD_PROCESS_NAME: str = "Soundpad.exe"

# Local control channel. Also accepts "tcp://host:port" or a Unix socket path.
CONTROL_CHANNEL: str = "\\\\.\\pipe\\sp_remote_control"

# Extensions checked when looking for an "_uncropped" backup next to a sound file.
AUDIO_EXTENSIONS: tuple[str, ...] = (
    ".mp3",
    ".wav",
    ".ogg",
    ".flac",
    ".aac",
    ".wma",
    ".m4a",
    ".opus",
    ".aiff",
    ".ape",
)


@dataclass(frozen=True)
class Timings:
    """Every wait budget used by the lifecycle, in seconds."""

    stop_poll_interval: float = 0.25
    graceful_stop_timeout: float = 6.0
    forced_stop_timeout: float = 3.0
    ready_poll_interval: float = 0.5
    ready_timeout: float = 15.0
    health_cache_ttl: float = 2.0
    probe_timeout: float = 0.5
    request_timeout: float = 5.0
    presence_check_timeout: float = 3.0


DEFAULT_TIMINGS = Timings()


def resolve_soundlist_path() -> Path:
    """Soundlist location, honouring SOUNDPAD_SOUNDLIST."""
    env = os.environ.get("SOUNDPAD_SOUNDLIST")
    return Path(env).expanduser() if env else SOUNDLIST_PATH


def resolve_executable() -> Path:
    """Soundpad executable, honouring SOUNDPAD_EXECUTABLE."""
    env = os.environ.get("SOUNDPAD_EXECUTABLE")
    return Path(env).expanduser() if env else SOUNDPAD_EXECUTABLE


def resolve_channel_address() -> str:
    """Control channel address, honouring SOUNDPAD_CHANNEL."""
    return os.environ.get("SOUNDPAD_CHANNEL") or CONTROL_CHANNEL


def resolve_process_name() -> str:
    """Image name used for presence checks, honouring SOUNDPAD_PROCESS_NAME."""
    return os.environ.get("SOUNDPAD_PROCESS_NAME") or SOUNDPAD_PROCESS_NAME

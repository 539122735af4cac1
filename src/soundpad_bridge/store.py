"""Fresh reads and atomic replacement of the soundlist file."""

import asyncio
import os
import shutil
import tempfile
from contextlib import suppress
from pathlib import Path

from loguru import logger

from soundpad_bridge.config import AUDIO_EXTENSIONS, SOUNDS_DIRNAME


class SoundlistStore:
    """Read and write the soundlist without touching bytes nobody edited.

    - Text is read and written with ``newline=""`` so line endings survive.
    - A write goes to a temp file in the same directory, then replaces the
      original in one rename. Readers never see a half-written file.
    - Audio files copied in get names that do not collide with existing ones.
    """

    def __init__(self, path: str | Path, *, sounds_dir: str | Path | None = None) -> None:
        self.path = Path(path)
        self.sounds_dir = Path(sounds_dir) if sounds_dir else self.path.parent / SOUNDS_DIRNAME

    def exists(self) -> bool:
        return self.path.is_file()

    def read_text(self) -> str:
        with open(self.path, encoding="utf-8", newline="") as f:
            return f.read()

    async def read(self) -> str:
        return await asyncio.to_thread(self.read_text)

    def write_text(self, content: str) -> None:
        fd, tmp = tempfile.mkstemp(
            prefix=f".{self.path.name}.", suffix=".tmp", dir=self.path.parent
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8", newline="") as f:
                f.write(content)
                f.flush()
                os.fsync(f.fileno())
            if self.path.exists():
                shutil.copymode(self.path, tmp)
            os.replace(tmp, self.path)
        except BaseException:
            with suppress(FileNotFoundError):
                os.unlink(tmp)
            raise
        logger.debug("Wrote {} ({} chars)", self.path, len(content))

    async def write(self, content: str) -> None:
        await asyncio.to_thread(self.write_text, content)

    # --- audio files ---

    def make_unique_name(self, filename: str) -> Path:
        """Path in the sounds directory for ``filename``, avoiding existing files.

        Appends " (1)", " (2)", ... to the stem until the name is free.
        """
        base = Path(filename)
        candidate = self.sounds_dir / base.name
        counter = 1
        while candidate.exists():
            candidate = self.sounds_dir / f"{base.stem} ({counter}){base.suffix}"
            counter += 1
        return candidate

    def import_audio(self, source: str | Path, *, name: str | None = None) -> Path:
        """Copy ``source`` into the sounds directory and return the new path."""
        source = Path(source)
        if not source.is_file():
            msg = f"Audio file not found: {source}"
            raise FileNotFoundError(msg)
        self.sounds_dir.mkdir(parents=True, exist_ok=True)
        dest = self.make_unique_name(name or source.name)
        shutil.copy2(source, dest)
        logger.info("Stored audio as {}", dest)
        return dest

    def remove_audio(self, url: str) -> list[Path]:
        """Delete an audio file and its ``_uncropped`` backup, if present.

        Missing files are ignored; failures are logged. Returns what was removed.
        """
        if not url:
            return []
        audio = Path(url)
        candidates = [audio]
        candidates += [audio.with_name(f"{audio.stem}_uncropped{ext}") for ext in AUDIO_EXTENSIONS]
        removed = []
        for path in candidates:
            if not path.is_file():
                continue
            try:
                path.unlink()
            except OSError as e:
                logger.warning("Could not delete {}: {}", path, e)
                continue
            removed.append(path)
            logger.info("Deleted {}", path)
        return removed

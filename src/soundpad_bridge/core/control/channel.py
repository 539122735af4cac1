"""Client for Soundpad's local remote-control channel.

Commands are UTF-8 strings terminated by a NUL byte. Replies are either a
short status token ("R-..." / "E-...") or an XML fragment.
"""

import asyncio
from collections.abc import Callable
from contextlib import suppress

from loguru import logger

from soundpad_bridge.errors import ControlChannelError

_PIPE_PREFIX = "\\\\.\\pipe\\"
_STATUS_PREFIXES = ("R-", "E-")
_TERMINATORS = ("</Soundlist>", "</Sounds>", "</PlayStatus>", "/>")

StateCallback = Callable[[bool], None]


async def open_channel(address: str) -> tuple[asyncio.StreamReader, asyncio.StreamWriter]:
    """Connect to a named pipe, ``tcp://host:port`` or a Unix socket path."""
    if address.startswith(_PIPE_PREFIX):
        loop = asyncio.get_running_loop()
        reader = asyncio.StreamReader()
        protocol = asyncio.StreamReaderProtocol(reader)
        # Only the Windows proactor loop implements create_pipe_connection.
        transport, _ = await loop.create_pipe_connection(  # type: ignore[attr-defined]
            lambda: protocol, address
        )
        return reader, asyncio.StreamWriter(transport, protocol, reader, loop)
    if address.startswith("tcp://"):
        host, _, port = address.removeprefix("tcp://").rpartition(":")
        return await asyncio.open_connection(host, int(port))
    return await asyncio.open_unix_connection(address)


def is_complete_response(data: str) -> bool:
    """True once a reply holds a status token or a closed XML fragment."""
    if data.startswith(_STATUS_PREFIXES):
        return True
    return any(t in data for t in _TERMINATORS)


class ControlChannel:
    """Request/response access to a running Soundpad."""

    def __init__(
        self,
        address: str,
        *,
        request_timeout: float = 5.0,
        probe_timeout: float = 0.5,
        on_state: StateCallback | None = None,
    ) -> None:
        self.address = address
        self.request_timeout = request_timeout
        self.probe_timeout = probe_timeout
        self.on_state = on_state

    def _report(self, connected: bool) -> None:
        if self.on_state is not None:
            self.on_state(connected)

    async def send_command(self, command: str) -> str:
        """Send ``command`` and return the reply with NUL bytes stripped.

        Whatever arrived before the request timeout is returned; a timeout with
        nothing received raises ControlChannelError.
        """
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.request_timeout
        try:
            reader, writer = await asyncio.wait_for(
                open_channel(self.address), self.request_timeout
            )
        except (OSError, TimeoutError) as e:
            self._report(False)
            msg = f"Cannot reach Soundpad at {self.address!r}: {str(e) or 'timeout'}"
            raise ControlChannelError(msg) from e

        data = bytearray()
        timed_out = False
        try:
            writer.write(command.encode("utf-8") + b"\0")
            await writer.drain()
            while True:
                remaining = deadline - loop.time()
                if remaining <= 0:
                    timed_out = True
                    break
                try:
                    chunk = await asyncio.wait_for(reader.read(8192), remaining)
                except TimeoutError:
                    timed_out = True
                    break
                if not chunk:
                    break
                data.extend(chunk)
                self._report(True)
                if is_complete_response(data.decode("utf-8", errors="replace")):
                    break
        except OSError as e:
            self._report(False)
            msg = f"Soundpad channel error during {command!r}: {e}"
            raise ControlChannelError(msg) from e
        finally:
            writer.close()
            with suppress(OSError):
                await writer.wait_closed()

        if timed_out and not data:
            self._report(False)
            msg = f"Connection timeout waiting for reply to {command!r}"
            raise ControlChannelError(msg)

        reply = data.decode("utf-8", errors="replace").replace("\0", "")
        logger.debug("Soundpad {} -> {!r}", command, reply[:200])
        return reply

    async def probe(self) -> bool:
        """Send a no-op status request; any byte back means Soundpad is up."""
        try:
            async with asyncio.timeout(self.probe_timeout):
                reader, writer = await open_channel(self.address)
                try:
                    writer.write(b"GetPlayStatus()\0")
                    await writer.drain()
                    chunk = await reader.read(1)
                finally:
                    writer.close()
        except (OSError, TimeoutError):
            return False
        return bool(chunk)

    # --- playback commands ---

    async def get_sound_list(self) -> str:
        return await self.send_command("GetSoundlist()")

    async def play_sound(
        self, index: int, *, speakers_only: bool = False, mic_only: bool = False
    ) -> str:
        """Play the sound with 1-based ``index``."""
        if not speakers_only and not mic_only:
            return await self.send_command(f"DoPlaySound({index})")
        flags = f"{str(speakers_only).lower()},{str(mic_only).lower()}"
        return await self.send_command(f"DoPlaySound({index},{flags})")

    async def stop_sound(self) -> str:
        return await self.send_command("DoStopSound()")

    async def toggle_pause(self) -> str:
        return await self.send_command("DoTogglePause()")

    async def set_volume(self, volume: int) -> str:
        return await self.send_command(f"SetVolume({max(0, min(100, volume))})")

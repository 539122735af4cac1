"""Protocols for dependency injection in the soundboard bridge."""

from typing import Protocol, runtime_checkable


@runtime_checkable
class ProcessControllerProtocol(Protocol):
    """Protocol for finding, stopping and starting the Soundpad process."""

    def executable_exists(self) -> bool:
        """Return True if the Soundpad executable is present on disk."""
        ...

    async def is_running(self) -> bool:
        """Return True if a Soundpad process is alive."""
        ...

    async def request_graceful_stop(self) -> None:
        """Ask Soundpad to exit on its own."""
        ...

    async def force_stop(self) -> None:
        """Kill every Soundpad process."""
        ...

    async def launch(self) -> None:
        """Start Soundpad detached from this process."""
        ...


@runtime_checkable
class SoundlistStoreProtocol(Protocol):
    """Protocol for reading and replacing the soundlist file."""

    def exists(self) -> bool:
        """Return True if the soundlist file is present."""
        ...

    async def read(self) -> str:
        """Read the whole soundlist fresh from disk."""
        ...

    async def write(self, content: str) -> None:
        """Replace the soundlist atomically."""
        ...

"""Find, stop and start the Soundpad process."""

import asyncio
import subprocess
import sys
from pathlib import Path

import psutil
from loguru import logger


class ProcessController:
    """OS-level control of Soundpad, matched by executable name.

    Blocking psutil and subprocess calls run in worker threads.
    """

    def __init__(
        self,
        executable: str | Path,
        process_name: str,
        *,
        presence_timeout: float = 3.0,
    ) -> None:
        self.executable = Path(executable)
        self.process_name = process_name
        self.presence_timeout = presence_timeout

    def executable_exists(self) -> bool:
        return self.executable.is_file()

    def _matches(self, name: str | None) -> bool:
        if not name:
            return False
        target = self.process_name.lower()
        name = name.lower()
        return name == target or name == target.removesuffix(".exe")

    def find_processes(self) -> list[psutil.Process]:
        return [p for p in psutil.process_iter(["name"]) if self._matches(p.info.get("name"))]

    async def is_running(self) -> bool:
        """True if any matching process is alive.

        A lookup that fails or takes longer than ``presence_timeout`` cannot
        rule the process out, so it counts as running.
        """
        try:
            procs = await asyncio.wait_for(
                asyncio.to_thread(self.find_processes), self.presence_timeout
            )
        except (TimeoutError, psutil.Error) as e:
            logger.warning(
                "Process lookup for {} failed, assuming it runs: {}", self.process_name, e
            )
            return True
        return bool(procs)

    def _signal_all(self, *, kill: bool) -> int:
        signalled = 0
        try:
            procs = self.find_processes()
        except psutil.Error as e:
            logger.warning("Could not list processes to stop {}: {}", self.process_name, e)
            return 0
        for proc in procs:
            try:
                if kill:
                    proc.kill()
                else:
                    proc.terminate()
                signalled += 1
            except psutil.NoSuchProcess:
                continue
            except psutil.AccessDenied:
                logger.warning("Not allowed to stop {} (pid {})", self.process_name, proc.pid)
        return signalled

    async def _run_quiet(self, *cmd: str) -> None:
        try:
            proc = await asyncio.create_subprocess_exec(
                *cmd,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
            )
            await proc.wait()
        except OSError as e:
            logger.debug("{} failed: {}", cmd[0], e)

    async def request_graceful_stop(self) -> None:
        if sys.platform == "win32":
            # taskkill without /F posts a close request, so Soundpad saves and exits itself.
            await self._run_quiet("taskkill", "/IM", self.process_name)
        else:
            count = await asyncio.to_thread(self._signal_all, kill=False)
            logger.debug("Sent terminate to {} process(es)", count)

    async def force_stop(self) -> None:
        count = await asyncio.to_thread(self._signal_all, kill=True)
        logger.debug("Killed {} process(es)", count)

    def _spawn(self) -> None:
        if sys.platform == "win32":
            flags = subprocess.DETACHED_PROCESS | subprocess.CREATE_NEW_PROCESS_GROUP
            subprocess.Popen(
                [str(self.executable)],
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                creationflags=flags,
                close_fds=True,
            )
        else:
            subprocess.Popen(
                [str(self.executable)],
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                start_new_session=True,
                close_fds=True,
            )

    async def launch(self) -> None:
        logger.info("Launching {}", self.executable)
        await asyncio.to_thread(self._spawn)

"""External command execution."""

from __future__ import annotations

import asyncio
import logging
import shlex
import signal
from pathlib import Path

logger = logging.getLogger(__name__)


class CommandError(Exception):
    """An external command exited with a non-zero status or was killed."""

    def __init__(self, command: list[str], returncode: int, stderr: str = "") -> None:
        self.command = command
        self.returncode = returncode
        self.stderr = stderr
        super().__init__(f"`{shlex.join(command)}` {self.reason}")

    @property
    def reason(self) -> str:
        """Exit code or terminating signal, for messages."""
        if self.returncode < 0:
            try:
                name = signal.Signals(-self.returncode).name
            except ValueError:
                name = str(-self.returncode)
            return f"was terminated by signal {name}"
        return f"exited with code {self.returncode}"


class CommandRunner:
    """Runs external commands one at a time in the repository directory."""

    def __init__(self, cwd: Path | None = None) -> None:
        self.cwd = cwd

    async def run(self, command: list[str], input: bytes | None = None) -> None:
        """Run a command attached to the terminal.

        Output goes straight to the user's terminal, and interactive
        commands (editors, pagers) keep working.

        Args:
            command: Executable and arguments
            input: Bytes fed to the command's stdin instead of the terminal

        Raises:
            CommandError: If the command fails
        """
        logger.debug(f"Running command: {shlex.join(command)}")

        process = await asyncio.create_subprocess_exec(
            *command,
            stdin=asyncio.subprocess.PIPE if input is not None else None,
            cwd=self.cwd,
        )
        await process.communicate(input)

        if process.returncode != 0:
            raise CommandError(command, process.returncode or 0)

    async def capture(self, command: list[str]) -> str:
        """Run a command and return its standard output.

        Raises:
            CommandError: If the command fails
        """
        logger.debug(f"Capturing command: {shlex.join(command)}")

        process = await asyncio.create_subprocess_exec(
            *command,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            cwd=self.cwd,
        )
        stdout, stderr = await process.communicate()

        if process.returncode != 0:
            raise CommandError(
                command,
                process.returncode or 0,
                stderr.decode("utf-8", errors="replace"),
            )

        return stdout.decode("utf-8", errors="replace")

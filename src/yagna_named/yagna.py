"""Run yagna CLI commands and capture their JSON output."""

from __future__ import annotations

import asyncio
import json
import logging
import os
import shlex
from collections.abc import Iterable
from pathlib import Path
from typing import Any

import psutil

from yagna_named.exceptions import YagnaCommandError

_logger = logging.getLogger(__name__)


def parent_process() -> Path:
    """Executable of the process that started us.

    yagna-named is meant to be invoked by yagna as a plugin, so the
    parent is the yagna binary to call back into.
    """
    try:
        parent = psutil.Process(os.getpid()).parent()
        if parent is None:
            raise YagnaCommandError("Can't find parent process pid.")
        exe = parent.exe()
    except psutil.Error as exc:
        raise YagnaCommandError(f"Can't inspect parent process: {exc}") from exc
    if not exe:
        raise YagnaCommandError("Parent process has no executable path.")
    return Path(exe)


class YagnaCommand:
    """A yagna invocation built up argument by argument."""

    def __init__(self, executable: Path | str | None = None) -> None:
        self._executable = Path(executable) if executable is not None else parent_process()
        self._args: list[str] = []
        _logger.info("Using yagna at: %s", self._executable)

    @property
    def argv(self) -> list[str]:
        return [str(self._executable), *self._args]

    def args(self, args: Iterable[str]) -> YagnaCommand:
        self._args.extend(str(arg) for arg in args)
        return self

    async def run(self) -> Any:
        """Run the command and return its stdout decoded as JSON.

        Raises
        ------
        YagnaCommandError
            If the process cannot be started, exits with a non-zero status,
            or prints something that is not JSON.
        """
        argv = self.argv
        _logger.debug("Running: %s", shlex.join(argv))
        try:
            process = await asyncio.create_subprocess_exec(
                *argv,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as exc:
            raise YagnaCommandError(f"Failed to start {argv[0]}: {exc}") from exc

        raw_stdout, raw_stderr = await process.communicate()
        stdout = raw_stdout.decode("utf-8", errors="replace")
        stderr = raw_stderr.decode("utf-8", errors="replace")

        if process.returncode != 0:
            raise YagnaCommandError(
                f"{shlex.join(argv)} failed.: Stdout:\n{stdout}\nStderr:\n{stderr}",
                returncode=process.returncode,
                stdout=stdout,
                stderr=stderr,
            )

        _logger.debug("%s", stdout)
        try:
            return json.loads(stdout)
        except json.JSONDecodeError as exc:
            raise YagnaCommandError(
                f"Error parsing yagna command result: {exc}",
                returncode=process.returncode,
                stdout=stdout,
                stderr=stderr,
            ) from exc

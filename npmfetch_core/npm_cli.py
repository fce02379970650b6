"""Async wrapper around the npm CLI."""

from __future__ import annotations

import asyncio
import logging
import shutil
from dataclasses import dataclass
from pathlib import Path

from .errors import LocateError
from .names import PackageSpec
from .security import redact_command_for_log

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CommandResult:
    returncode: int
    stdout: str
    stderr: str


class NpmCli:
    """Runs ``npm view`` and ``npm pack`` as child processes.

    A cancelled call kills its child process before propagating the
    cancellation.
    """

    def __init__(self, command: str = "npm") -> None:
        self.command = command

    async def view_tarball(self, spec: PackageSpec) -> str:
        result = await self._run(["view", spec.display, "dist.tarball"])
        url = _last_tarball_line(result.stdout)
        if not url:
            raise LocateError(f"npm view returned no tarball for {spec.display}")
        return url

    async def pack(self, spec: PackageSpec, destination: Path, *, cwd: Path | None = None) -> None:
        await self._run(["pack", spec.display, "--pack-destination", str(destination)], cwd=cwd)

    async def _run(self, args: list[str], *, cwd: Path | None = None) -> CommandResult:
        executable = shutil.which(self.command)
        if executable is None:
            raise LocateError(f"{self.command} CLI not found. Install Node.js and ensure npm is available in PATH.")
        command = [executable, *args]
        logger.debug("npm command cmd=%s cwd=%s", " ".join(redact_command_for_log(command)), cwd)
        try:
            proc = await asyncio.create_subprocess_exec(
                *command,
                cwd=str(cwd) if cwd is not None else None,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as exc:
            raise LocateError(f"unable to start {self.command}: {exc}") from exc
        try:
            stdout, stderr = await proc.communicate()
        except asyncio.CancelledError:
            if proc.returncode is None:
                proc.kill()
                await proc.wait()
            raise
        result = CommandResult(
            returncode=proc.returncode if proc.returncode is not None else -1,
            stdout=stdout.decode("utf-8", errors="replace"),
            stderr=stderr.decode("utf-8", errors="replace"),
        )
        if result.returncode != 0:
            raise LocateError(_format_failure(command, result.returncode, result.stderr))
        return result


def _last_tarball_line(text: str) -> str:
    lines = [line.strip() for line in (text or "").splitlines() if line.strip()]
    if not lines:
        return ""
    line = lines[-1]
    # "pkg@1.0.0 'https://...'" when a range matched several versions
    if " " in line:
        line = line.rsplit(" ", 1)[-1]
    return line.strip("'\"")


def _format_failure(command: list[str], code: int, stderr: str | None) -> str:
    redacted = " ".join(redact_command_for_log(command))
    detail = (stderr or "").strip()
    if detail:
        return f"npm command failed (exit={code}) cmd='{redacted}' err='{detail}'"
    return f"npm command failed (exit={code}) cmd='{redacted}'"

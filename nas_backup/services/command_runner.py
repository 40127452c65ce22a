"""External command execution with timeouts and structured results."""

import asyncio
import logging
import os
import shutil
import time
from typing import Mapping, Optional, Sequence

from ..core.exceptions import ToolMissing
from ..models import CommandResult

TOOL_HINTS = {
    "smbclient": "Please install the smbclient package.",
    "mount": "Please install util-linux and cifs-utils.",
    "umount": "Please install util-linux.",
    "rsync": "Please install the rsync package.",
    "7z": "Please install p7zip-full package.",
}


class CommandRunner:
    """Runs external programs one at a time and returns a CommandResult."""

    async def run(
        self,
        argv: Sequence[str],
        *,
        timeout: Optional[float] = None,
        env: Optional[Mapping[str, str]] = None,
    ) -> CommandResult:
        argv = [str(arg) for arg in argv]
        full_env = {**os.environ, **env} if env else None
        logging.debug(f"Running command: {' '.join(argv)}")

        start = time.monotonic()
        try:
            process = await asyncio.create_subprocess_exec(
                *argv,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                env=full_env,
            )
        except FileNotFoundError as e:
            return CommandResult(
                argv=argv,
                returncode=127,
                stderr=str(e),
                elapsed_seconds=time.monotonic() - start,
            )

        try:
            stdout, stderr = await asyncio.wait_for(
                process.communicate(), timeout=timeout or None
            )
        except asyncio.TimeoutError:
            logging.error(f"{argv[0]} timed out after {timeout}s - killing process")
            await self._kill(process)
            return CommandResult(
                argv=argv,
                returncode=process.returncode,
                elapsed_seconds=time.monotonic() - start,
                timed_out=True,
            )
        except asyncio.CancelledError:
            await self._kill(process)
            raise

        result = CommandResult(
            argv=argv,
            returncode=process.returncode,
            stdout=stdout.decode(errors="replace") if stdout else "",
            stderr=stderr.decode(errors="replace") if stderr else "",
            elapsed_seconds=time.monotonic() - start,
        )
        logging.debug(
            f"{argv[0]} finished with status {result.returncode} "
            f"in {result.elapsed_seconds:.1f}s"
        )
        return result

    async def _kill(self, process: asyncio.subprocess.Process) -> None:
        if process.returncode is not None:
            return
        try:
            process.kill()
        except ProcessLookupError:
            return
        await process.wait()

    def which(self, program: str) -> Optional[str]:
        return shutil.which(program)

    def require_tools(self, *programs: str) -> None:
        """Raise ToolMissing for the first program not found on PATH."""
        for program in programs:
            if self.which(program) is None:
                raise ToolMissing(program, TOOL_HINTS.get(program))
            logging.debug(f"Found required tool: {program}")

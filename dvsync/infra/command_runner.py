"""
Command runner infrastructure for dvsync.

Runs an external program and captures its output. Everything that talks
to the dv client goes through a runner, which makes it:
- Easy to mock for testing
- Consistent in error handling
- Isolated from business logic
"""

import subprocess
from dataclasses import dataclass
from typing import Optional, Sequence, Union
from pathlib import Path
import logging

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CommandResult:
    """Captured result of one external command."""
    stdout: str
    stderr: str
    returncode: int

    @property
    def ok(self) -> bool:
        return self.returncode == 0


class CommandRunner:
    """
    Synchronous, blocking execution of external programs.

    Example:
        runner = CommandRunner()
        result = runner.run("dv", ["log", "-n", "10"], cwd="/srv/workspace")
        if result.ok:
            print(result.stdout)
    """

    def __init__(self, timeout: Optional[float] = None):
        """
        Initialize CommandRunner.

        Args:
            timeout: Command timeout in seconds (default: None, wait forever)
        """
        self.timeout = timeout or None

    def run(
        self,
        program: str,
        args: Sequence[str],
        cwd: Optional[Union[str, Path]] = None,
    ) -> CommandResult:
        """
        Run a program to completion.

        Args:
            program: Executable name or path
            args: Arguments (no shell interpretation)
            cwd: Working directory

        Returns:
            CommandResult with both streams and the exit code

        Raises:
            OSError: if the program cannot be started
            subprocess.TimeoutExpired: if a timeout is configured and exceeded
        """
        command = [program, *args]
        logger.debug(f"Running: {' '.join(command)} (cwd={cwd or '.'})")

        result = subprocess.run(
            command,
            cwd=str(cwd) if cwd else None,
            capture_output=True,
            text=True,
            timeout=self.timeout,
        )

        stdout = (result.stdout or "").replace('\r\n', '\n')
        stderr = (result.stderr or "").replace('\r\n', '\n')
        return CommandResult(
            stdout=stdout.rstrip('\n'),
            stderr=stderr.rstrip('\n'),
            returncode=result.returncode,
        )

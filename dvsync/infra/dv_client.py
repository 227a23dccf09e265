"""
Diversion client infrastructure for dvsync.

Provides one method per ``dv`` sub-command the engine needs. All calls
go through a CommandRunner; a non-zero exit becomes a DvCommandError
whose message embeds both output streams.

Assumes ``dv login`` has been run for the account the process runs as.
"""

import os
import tempfile
from pathlib import Path
from typing import Optional, List, Sequence, Union
import logging

from .command_runner import CommandRunner
from ..errors import DvCommandError

logger = logging.getLogger(__name__)

# Directories that mark a dv workspace; never part of a patch.
WORKSPACE_MARKERS = ('.dv', '.diversion')


class DvClient:
    """
    Abstraction over dv commands.

    Example:
        client = DvClient(working_directory="/srv/dv/workspace")
        head = client.current_commit_id()
        print(client.log(10))
    """

    def __init__(
        self,
        executable: str = "dv",
        working_directory: Optional[Union[str, Path]] = None,
        runner: Optional[CommandRunner] = None,
    ):
        """
        Initialize DvClient.

        Args:
            executable: Path to the dv executable (default: "dv" on PATH)
            working_directory: Workspace directory commands run in
            runner: CommandRunner instance (creates new if None)
        """
        self.executable = executable
        self.working_directory = Path(working_directory) if working_directory else None
        self.runner = runner or CommandRunner()

    def execute(self, *args: str, cwd: Optional[Union[str, Path]] = None) -> str:
        """
        Run a dv command and return its stdout.

        Args:
            *args: Command arguments (e.g. "log", "-n", "10")
            cwd: Working directory override (default: the workspace)

        Returns:
            Command stdout

        Raises:
            DvCommandError: if the command cannot start or exits non-zero
        """
        workdir = cwd if cwd is not None else self.working_directory
        try:
            result = self.runner.run(self.executable, list(args), cwd=workdir)
        except Exception as e:
            raise DvCommandError(
                f"Failed to execute Diversion command: {self.executable} {' '.join(args)}: {e}",
                args=args,
            ) from e

        if result.returncode != 0:
            message = f"Diversion command failed with exit code {result.returncode}"
            if result.stderr:
                message += f"\nStderr: {result.stderr}"
            if result.stdout:
                message += f"\nStdout: {result.stdout}"
            raise DvCommandError(
                message,
                args=args,
                returncode=result.returncode,
                stdout=result.stdout,
                stderr=result.stderr,
            )

        return result.stdout

    def current_commit_id(self) -> str:
        """
        Get the head commit of the remote branch.

        Uses ``dv branch``, whose output looks like::

            branch main (dv.branch.1)
            commit dv.commit.15
        """
        output = self.execute("branch")
        for line in output.strip().splitlines():
            trimmed = line.strip()
            if trimmed.startswith("commit "):
                return trimmed[len("commit "):].strip()

        raise DvCommandError(
            f"Could not parse commit ID from 'dv branch' output: {output}",
            args=["branch"],
            stdout=output,
        )

    def log(self, max_results: int) -> str:
        """Get the text of the newest ``max_results`` commits."""
        return self.execute("log", "-n", str(max_results))

    def checkout(self, ref: str, discard_changes: bool = False) -> None:
        """
        Check out a commit, branch or tag once (no retry).

        See CheckoutCoordinator for the retrying variant.
        """
        if discard_changes:
            self.execute("checkout", ref, "--discard-changes")
        else:
            self.execute("checkout", ref)

    def update(self) -> None:
        """Update the workspace to the latest changes of the current branch."""
        self.execute("update")

    def commit_files(self, commit_id: str) -> str:
        """
        Get the file list of a commit as JSON text.

        ``dv ls <commit> <file>`` writes its JSON to a file rather than
        stdout, so this runs it against a temporary file and reads it back.
        """
        fd, temp_path = tempfile.mkstemp(prefix="dv-ls-", suffix=".json")
        os.close(fd)
        try:
            self.execute("ls", commit_id, temp_path)
            with open(temp_path, 'r', encoding='utf-8') as f:
                return f.read()
        finally:
            try:
                os.unlink(temp_path)
            except OSError:
                pass

    def test_connection(self) -> None:
        """Verify the dv command works against the repository."""
        self.execute("repo")

    def clone(self, repository_id: str, target: Union[str, Path], cwd: Optional[Union[str, Path]] = None) -> None:
        """Clone a repository into ``target`` as a new workspace."""
        self.execute("clone", repository_id, str(target), "--new-workspace", cwd=cwd)

    def create_tag(self, tag_name: str, commit_id: str, message: Optional[str] = None) -> None:
        """Create a tag at a commit."""
        args: List[str] = ["tag", tag_name, commit_id]
        if message:
            args += ["-m", message]
        self.execute(*args)

    def is_available(self) -> bool:
        """Check that the dv executable can be run at all."""
        try:
            self.execute("--help", cwd=Path.cwd())
            return True
        except DvCommandError as e:
            logger.debug(f"dv not available: {e}")
            return False

    def is_workspace_initialized(self, path: Optional[Union[str, Path]] = None) -> bool:
        """Check if a dv workspace exists in ``path`` (default: the workspace)."""
        root = Path(path) if path else self.working_directory
        return is_workspace(root)

    def ensure_workspace_initialized(self, repository_id: str) -> None:
        """
        Clone the repository into the working directory unless it is already a workspace.

        Raises:
            DvCommandError: if there is no working directory or cloning fails
        """
        if self.is_workspace_initialized():
            return

        if self.working_directory is None:
            raise DvCommandError("Cannot initialize workspace: working directory is not configured")

        self.working_directory.mkdir(parents=True, exist_ok=True)
        logger.info(f"Cloning {repository_id} into {self.working_directory}")
        self.clone(repository_id, self.working_directory.resolve())


def is_workspace(path: Optional[Union[str, Path]], markers: Sequence[str] = WORKSPACE_MARKERS) -> bool:
    """True if ``path`` contains one of the dv workspace marker directories."""
    if path is None:
        return False
    root = Path(path)
    if not root.is_dir():
        return False
    return any((root / marker).is_dir() for marker in markers)

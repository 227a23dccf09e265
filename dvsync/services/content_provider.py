"""
File content retrieval for dvsync.

Reads a file as it was at a given version by checking that version out
in the workspace and reading it from disk.
"""

import logging

from ..domain.commit import FileChange
from ..errors import ConfigError, PatchFileReadFailed, VcsFileNotFound
from .checkout import CheckoutCoordinator

logger = logging.getLogger(__name__)


class FileContentProvider:
    """Serves file contents at arbitrary versions from the workspace."""

    def __init__(self, coordinator: CheckoutCoordinator):
        self.coordinator = coordinator

    def get_content(self, path: str, version: str) -> bytes:
        """
        Content of ``path`` at ``version``.

        Raises:
            ConfigError: if there is no workspace
            CheckoutFailed: if the version cannot be checked out
            VcsFileNotFound: if the file does not exist at that version
            PatchFileReadFailed: if the file cannot be read
        """
        workspace = self.coordinator.workspace
        if workspace is None:
            raise ConfigError("Working directory is not configured for this root")

        self.coordinator.ensure(version)
        logger.debug(f"Reading {path} at {version}")

        file_path = workspace.file(path)
        if not file_path.exists():
            raise VcsFileNotFound(path, version)
        try:
            return file_path.read_bytes()
        except OSError as e:
            raise PatchFileReadFailed(path, version, e) from e

    def get_change_content(self, change: FileChange, before: bool) -> bytes:
        """
        Content on one side of a change.

        Added files have no before content and deleted files no after
        content; both give empty bytes.
        """
        version = change.before if before else change.after
        if version is None:
            return b""
        return self.get_content(change.path, version)

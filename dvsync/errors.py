"""
Error taxonomy for the revision synchronization engine.

Every error carries the context an operator needs (version, path,
attempt count) so callers can log it without re-deriving anything.
Only FileStatusUnavailable is recoverable: the commit assembler absorbs
it into a degraded modification. Everything else propagates.
"""

from typing import Optional, Sequence

from .exit_codes import (
    CommandError,
    ConfigError,
    DV_COMMAND_ERROR,
    CHECKOUT_ERROR,
    DATA_ERROR,
    NOT_FOUND_ERROR,
    PATCH_ERROR,
)


class DvSyncError(CommandError):
    """Base class for all dvsync engine errors."""


class DvCommandError(DvSyncError):
    """A dv invocation exited with a non-zero status (or could not start)."""

    def __init__(
        self,
        message: str,
        args: Optional[Sequence[str]] = None,
        returncode: Optional[int] = None,
        stdout: str = "",
        stderr: str = "",
    ):
        super().__init__(message, DV_COMMAND_ERROR)
        self.command_args = list(args or [])
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr


class MalformedLogEntry(DvSyncError):
    """Log text violated the fixed date format."""

    def __init__(self, text: str, cause: Optional[Exception] = None):
        super().__init__(f"Failed to parse date: {text}", DATA_ERROR)
        self.text = text
        self.cause = cause


class InvalidVersionFormat(DvSyncError):
    """A version id that should carry a commit number does not."""

    def __init__(self, version: str):
        super().__init__(f"Invalid commit ID format: {version}", DATA_ERROR)
        self.version = version


class FileStatusUnavailable(DvSyncError):
    """Per-commit file status could not be obtained or decoded."""

    def __init__(self, commit_id: str, cause: Exception):
        super().__init__(
            f"Failed to get file list for commit {commit_id}: {cause}",
            DV_COMMAND_ERROR,
        )
        self.commit_id = commit_id
        self.cause = cause


class CheckoutFailed(DvSyncError):
    """Checkout failed for a non-transient reason or ran out of attempts."""

    def __init__(self, version: str, attempts: int, reason: str = ""):
        message = f"Checkout of {version} failed after {attempts} attempt(s)"
        if reason:
            message += f": {reason}"
        super().__init__(message, CHECKOUT_ERROR)
        self.version = version
        self.attempts = attempts
        self.reason = reason


class PatchFileReadFailed(DvSyncError):
    """A file needed for a patch could not be read from the workspace."""

    def __init__(self, path: str, version: Optional[str], cause: Optional[Exception] = None):
        message = f"Failed to read {path} at version {version}"
        if cause is not None:
            message += f": {cause}"
        super().__init__(message, PATCH_ERROR)
        self.path = path
        self.version = version
        self.cause = cause


class VcsFileNotFound(DvSyncError):
    """The requested file does not exist at the requested version."""

    def __init__(self, path: str, version: str):
        super().__init__(f"File {path} not found in version {version}", NOT_FOUND_ERROR)
        self.path = path
        self.version = version


__all__ = [
    'DvSyncError',
    'DvCommandError',
    'MalformedLogEntry',
    'InvalidVersionFormat',
    'FileStatusUnavailable',
    'CheckoutFailed',
    'PatchFileReadFailed',
    'VcsFileNotFound',
    'ConfigError',
]

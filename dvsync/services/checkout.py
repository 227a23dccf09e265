"""
Checkout coordination for dvsync.

Right after ``dv update`` the client may refuse a checkout with
"Sync is incomplete" until the workspace has caught up. The coordinator
retries that one condition a bounded number of times with a fixed delay;
every other failure is fatal immediately.

The workspace is a single mutable directory. The Workspace handle makes
"one workspace, one caller at a time" explicit: every component that
checks out or reads files takes the same handle.
"""

import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional
import logging

from ..errors import CheckoutFailed
from ..infra.dv_client import DvClient

logger = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = 10
DEFAULT_RETRY_DELAY = 1.0  # seconds

TRANSIENT_SYNC_MESSAGE = "sync is incomplete"


@dataclass
class Workspace:
    """
    Handle on a dv workspace directory.

    Attributes:
        path: Workspace root
        current_ref: Ref last checked out successfully, None if unknown
    """
    path: Path
    current_ref: Optional[str] = None

    def __post_init__(self):
        self.path = Path(self.path)

    def file(self, relative_path: str) -> Path:
        return self.path / relative_path


def is_transient_sync_error(error: Exception) -> bool:
    """True if the error is the client's "Sync is incomplete" condition."""
    return TRANSIENT_SYNC_MESSAGE in str(error).lower()


class CheckoutCoordinator:
    """
    Checks out versions with bounded retry on incomplete syncs.

    Example:
        coordinator = CheckoutCoordinator(client, Workspace(Path("/srv/ws")))
        coordinator.checkout("dv.commit.12")
    """

    def __init__(
        self,
        client: DvClient,
        workspace: Optional[Workspace] = None,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        retry_delay: float = DEFAULT_RETRY_DELAY,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """
        Initialize CheckoutCoordinator.

        Args:
            client: DvClient running the commands
            workspace: Workspace handle (derived from the client if None)
            max_attempts: Total attempts per checkout, including the first
            retry_delay: Seconds to wait between attempts
            sleep: Sleep function (injectable for tests)
        """
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.client = client
        if workspace is None and client.working_directory is not None:
            workspace = Workspace(client.working_directory)
        self.workspace = workspace
        self.max_attempts = max_attempts
        self.retry_delay = retry_delay
        self.sleep = sleep

    def checkout(self, version: str, discard_local_changes: bool = True) -> int:
        """
        Check out ``version``.

        Returns:
            Number of attempts it took

        Raises:
            CheckoutFailed: on a non-transient error or when attempts run out
        """
        for attempt in range(1, self.max_attempts + 1):
            try:
                self.client.checkout(version, discard_local_changes)
            except Exception as e:
                self._forget_ref()
                if not is_transient_sync_error(e):
                    raise CheckoutFailed(version, attempt, str(e)) from e
                if attempt >= self.max_attempts:
                    raise CheckoutFailed(
                        version, attempt, "sync did not complete"
                    ) from e
                logger.info(
                    f"Sync incomplete checking out {version}, "
                    f"retrying in {self.retry_delay}s (attempt {attempt}/{self.max_attempts})"
                )
                self.sleep(self.retry_delay)
                continue

            if self.workspace is not None:
                self.workspace.current_ref = version
            if attempt > 1:
                logger.info(f"Checked out {version} after {attempt} attempts")
            return attempt

        # Unreachable: the loop either returns or raises.
        raise CheckoutFailed(version, self.max_attempts)

    def ensure(self, version: str) -> None:
        """Check out ``version`` unless the workspace is known to be on it already."""
        if self.workspace is not None and self.workspace.current_ref == version:
            return
        self.checkout(version, discard_local_changes=True)

    def refresh(self) -> None:
        """Pull the latest remote changes into the workspace."""
        self._forget_ref()
        self.client.update()

    def _forget_ref(self) -> None:
        if self.workspace is not None:
            self.workspace.current_ref = None

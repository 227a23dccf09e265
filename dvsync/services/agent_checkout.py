"""
Agent-side checkout for dvsync.

Brings a build agent's checkout directory to a version with the dv
client installed on the agent: clone a fresh workspace when there is
none (or a clean checkout was requested), then check out the version.
"""

import shutil
import time
from pathlib import Path
from typing import Callable, Generator, Optional, Union
import logging

from ..errors import ConfigError
from ..infra.command_runner import CommandRunner
from ..infra.dv_client import DvClient, is_workspace
from .checkout import CheckoutCoordinator, Workspace, DEFAULT_MAX_ATTEMPTS, DEFAULT_RETRY_DELAY

logger = logging.getLogger(__name__)


class AgentCheckoutService:
    """
    Updates sources on a build agent.

    Example:
        service = AgentCheckoutService()
        for message in service.update_sources("dv.repo.123", "dv.commit.9", Path("work")):
            print(message)
    """

    def __init__(
        self,
        executable: str = "dv",
        runner: Optional[CommandRunner] = None,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        retry_delay: float = DEFAULT_RETRY_DELAY,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.executable = executable
        self.runner = runner or CommandRunner()
        self.max_attempts = max_attempts
        self.retry_delay = retry_delay
        self.sleep = sleep

    def can_checkout(self) -> bool:
        """True if the dv client is installed and runs on this agent."""
        return DvClient(self.executable, runner=self.runner).is_available()

    def update_sources(
        self,
        repository_id: str,
        to_version: str,
        checkout_dir: Union[str, Path],
        clean: bool = False,
    ) -> Generator[str, None, Workspace]:
        """
        Bring ``checkout_dir`` to ``to_version``.

        Yields:
            Progress messages

        Returns:
            Workspace handle for the checkout directory

        Raises:
            ConfigError: if no repository id is given
            DvCommandError: if cloning fails
            CheckoutFailed: if the version cannot be checked out
        """
        if not repository_id or not repository_id.strip():
            raise ConfigError("Repository ID not configured")

        checkout_dir = Path(checkout_dir).expanduser().absolute()
        client = DvClient(self.executable, checkout_dir, runner=self.runner)

        yield f"Updating sources to {to_version} in {checkout_dir}"

        if clean or not is_workspace(checkout_dir):
            if clean:
                yield "Clean checkout requested - removing existing workspace"
            else:
                yield "First time checkout - initializing workspace"

            if checkout_dir.exists():
                yield f"Cleaning existing directory {checkout_dir}"
                shutil.rmtree(checkout_dir)

            parent = checkout_dir.parent
            parent.mkdir(parents=True, exist_ok=True)

            yield f"Cloning {repository_id} to {checkout_dir.name}"
            client.clone(repository_id, checkout_dir.name, cwd=parent)
        else:
            yield "Incremental update - reusing existing workspace"

        workspace = Workspace(checkout_dir)
        coordinator = CheckoutCoordinator(
            client,
            workspace,
            max_attempts=self.max_attempts,
            retry_delay=self.retry_delay,
            sleep=self.sleep,
        )
        yield f"Checking out version {to_version}"
        coordinator.checkout(to_version, discard_local_changes=True)

        logger.info(f"Checked out {to_version} into {checkout_dir}")
        yield "Checkout completed successfully"
        return workspace

"""
High-level Python API for dvsync.

This is the surface a CI host integration calls. It wires the engine
components to one configured root: one repository, one tracked branch,
one workspace.

Example:
    import dvsync

    # Create instance (uses config defaults)
    sync = dvsync.DvSync()

    # Or with explicit configuration
    sync = dvsync.DvSync(
        working_directory="/srv/dv/workspace",
        branch="main",
    )

    # Where is the branch now?
    head = sync.current_version()

    # What changed since the last build?
    for mod in sync.collect_changes("dv.commit.40", head):
        print(mod.version, mod.commit.user_name, mod.description)

    # Bring a build directory up to date
    sync.build_patch("dv.commit.40", head, DirectoryPatchSink("/srv/agent/checkout"))

    # Low-level access to services
    sync.collector
    sync.patch_builder
"""

import time
from dataclasses import replace
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Union
import logging

from .config import SyncSettings, load_config
from .domain import Modification, PatchOperation, RepositoryState, compare_versions
from .errors import DvSyncError
from .infra import CommandRunner, DvClient, PatchSink
from .services import (
    ChangeRangeCollector,
    CheckoutCoordinator,
    CommitAssembler,
    FileContentProvider,
    FileStatusResolver,
    PatchBuilder,
    Workspace,
)

logger = logging.getLogger(__name__)


def sanitize_label(label: str) -> str:
    """Make a label usable as a dv tag name."""
    return label.strip().replace(' ', '_').replace('\t', '_').replace('\n', '_')


class DvSync:
    """
    High-level API for one Diversion root.

    Example:
        sync = DvSync(working_directory="/srv/dv/ws")
        state = sync.current_state()
        print(state.version)
    """

    def __init__(
        self,
        config: Optional[Dict[str, Any]] = None,
        config_path: Optional[Union[str, Path]] = None,
        working_directory: Optional[Union[str, Path]] = None,
        branch: Optional[str] = None,
        executable: Optional[str] = None,
        runner: Optional[CommandRunner] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """
        Initialize DvSync.

        Args:
            config: Full config dict (overrides file if provided)
            config_path: Path to config file (default: ~/.dvsync/config.json)
            working_directory: Workspace directory (overrides config)
            branch: Tracked branch (overrides config)
            executable: dv executable (overrides config)
            runner: CommandRunner to use (creates new if None)
            sleep: Sleep function used between checkout retries
        """
        self._config = config if config is not None else load_config(config_path)
        settings = SyncSettings.from_config(self._config)

        overrides = {}
        if working_directory:
            overrides['working_directory'] = Path(working_directory).expanduser()
        if branch:
            overrides['branch_name'] = branch
        if executable:
            overrides['executable'] = executable
        if overrides:
            settings = replace(settings, **overrides)
        self.settings = settings

        self.client = DvClient(
            executable=settings.executable,
            working_directory=settings.working_directory,
            runner=runner or CommandRunner(timeout=settings.command_timeout),
        )
        workspace = Workspace(settings.working_directory) if settings.working_directory else None
        self.coordinator = CheckoutCoordinator(
            self.client,
            workspace,
            max_attempts=settings.max_checkout_retries,
            retry_delay=settings.checkout_retry_delay,
            sleep=sleep,
        )
        self.collector = ChangeRangeCollector(
            self.client,
            self.coordinator,
            assembler=CommitAssembler(FileStatusResolver(self.client)),
            buffer=settings.log_fetch_buffer,
            max_refetch_rounds=settings.max_refetch_rounds,
        )
        self.patch_builder = PatchBuilder(self.coordinator, settings.metadata_directories)
        self.content_provider = FileContentProvider(self.coordinator)

    @property
    def config(self) -> Dict[str, Any]:
        return self._config

    @property
    def branch(self) -> str:
        return self.settings.branch_name

    def current_version(self) -> str:
        """Head commit of the tracked branch on the remote."""
        logger.info(f"Getting current version for repository: {self.settings.repository_id or '(unset)'}")
        version = self.client.current_commit_id()
        logger.info(f"Current version: {version}")
        return version

    def current_state(self) -> RepositoryState:
        return RepositoryState(version=self.current_version(), branch=self.branch)

    def fetch_all_refs(self) -> RepositoryState:
        """Only one branch is tracked, so this is the current state."""
        return self.current_state()

    def collect_changes(
        self,
        from_version: Union[str, RepositoryState],
        to_version: Union[str, RepositoryState],
    ) -> List[Modification]:
        """Modifications after ``from_version`` up to and including ``to_version``, oldest first."""
        if isinstance(from_version, RepositoryState):
            from_version = from_version.version
        if isinstance(to_version, RepositoryState):
            to_version = to_version.version
        return self.collector.collect_range(from_version, to_version, self.branch)

    def patch_operations(self, from_version: Optional[str], to_version: str) -> List[PatchOperation]:
        """Operations for a full (no ``from_version``) or incremental patch."""
        return self.patch_builder.build(from_version, to_version, self.collector, self.branch)

    def build_patch(self, from_version: Optional[str], to_version: str, sink: PatchSink) -> int:
        """Build a patch and apply it to ``sink``; returns the number of operations."""
        return self.patch_builder.write(from_version, to_version, self.collector, self.branch, sink)

    def get_content(self, path: str, version: str) -> bytes:
        return self.content_provider.get_content(path, version)

    def label(self, label: str, version: str) -> str:
        """Tag ``version`` with a sanitized ``label``; returns the tag name used."""
        tag_name = sanitize_label(label)
        self.client.create_tag(tag_name, version)
        logger.info(f"Labeled {version} as {tag_name}")
        return tag_name

    def test_connection(self) -> Optional[str]:
        """None when dv can reach the repository, an error message otherwise."""
        try:
            self.client.test_connection()
            return None
        except DvSyncError as e:
            return f"Connection test failed: {e}"

    def ensure_workspace(self) -> None:
        """Clone the repository into the working directory if it is not a workspace yet."""
        self.client.ensure_workspace_initialized(self.settings.repository_id)

    def describe(self) -> str:
        return f"Diversion repository: {self.settings.repository_id} (branch: {self.branch})"

    @staticmethod
    def compare_versions(v1: str, v2: str) -> int:
        return compare_versions(v1, v2)


def create(**kwargs) -> DvSync:
    """Create a DvSync instance (convenience alias)."""
    return DvSync(**kwargs)

"""
Patch building for dvsync.

The dv client has no diff primitive, so patches are built from the
workspace itself:

- Full patch: check out the target version and add every file.
- Incremental patch: for each changed file of each commit (oldest first),
  check out that commit and copy the file, or delete it. A commit whose
  file list is unknown turns the range into a full patch of its newest
  commit.

Operations are collected before anything reaches a sink, so a failed
build never leaves a partial patch behind.
"""

import os
from pathlib import Path
from typing import Iterable, List, Optional, Sequence
import logging

from ..domain.commit import ChangeKind, Modification
from ..domain.patch import PatchOperation
from ..errors import ConfigError, PatchFileReadFailed
from ..infra.dv_client import WORKSPACE_MARKERS
from ..infra.patch_sink import PatchSink
from .change_collector import ChangeRangeCollector
from .checkout import CheckoutCoordinator, Workspace

logger = logging.getLogger(__name__)


class PatchBuilder:
    """
    Builds patch operations from workspace checkouts.

    Example:
        builder = PatchBuilder(coordinator)
        ops = builder.build_full("dv.commit.12")
        DirectoryPatchSink("/srv/agent/checkout").apply_all(ops)
    """

    def __init__(
        self,
        coordinator: CheckoutCoordinator,
        metadata_directories: Sequence[str] = WORKSPACE_MARKERS,
    ):
        self.coordinator = coordinator
        self.metadata_directories = frozenset(metadata_directories)

    @property
    def workspace(self) -> Workspace:
        if self.coordinator.workspace is None:
            raise ConfigError("Working directory is not configured")
        return self.coordinator.workspace

    def build_full(self, to_version: str) -> List[PatchOperation]:
        """
        Every file of ``to_version``, skipping workspace metadata directories.

        Raises:
            CheckoutFailed: if the version cannot be checked out
            PatchFileReadFailed: if a file cannot be read
        """
        workspace = self.workspace
        self.coordinator.checkout(to_version, discard_local_changes=True)

        operations = []
        for relative_path in self._walk(workspace.path):
            content = self._read(workspace, relative_path, to_version)
            operations.append(PatchOperation.create_or_replace(relative_path, content, to_version))

        logger.info(f"Full patch for {to_version}: {len(operations)} file(s)")
        return operations

    def build_incremental(self, modifications: Iterable[Modification]) -> List[PatchOperation]:
        """
        Operations for each file change, in commit order.

        A path touched by several commits gets one operation per commit;
        the sink applying them in order ends up with the last one.

        When any commit in the range has no file list, the changes cannot
        be replayed, so a full patch of the newest commit is built instead.

        Raises:
            CheckoutFailed: if a commit cannot be checked out
            PatchFileReadFailed: if a file cannot be read
        """
        modifications = list(modifications)
        degraded = [mod for mod in modifications if mod.is_degraded]
        if degraded:
            newest = max(modifications, key=lambda mod: mod.commit_number)
            logger.warning(
                f"{len(degraded)} commit(s) without a file list "
                f"(first: {degraded[0].version}), building a full patch for {newest.version}"
            )
            return self.build_full(newest.version)

        workspace = self.workspace
        operations = []

        for mod in modifications:
            for change in mod.changes:
                if change.kind == ChangeKind.DELETED:
                    operations.append(PatchOperation.delete(change.path, mod.version))
                    continue

                self.coordinator.ensure(mod.version)
                content = self._read(workspace, change.path, mod.version)
                operations.append(PatchOperation.create_or_replace(change.path, content, mod.version))

        logger.info(f"Incremental patch: {len(operations)} operation(s)")
        return operations

    def build(
        self,
        from_version: Optional[str],
        to_version: str,
        collector: ChangeRangeCollector,
        branch: str,
    ) -> List[PatchOperation]:
        """Full patch when there is no previous version, incremental otherwise."""
        if from_version is None:
            return self.build_full(to_version)
        modifications = collector.collect_range(from_version, to_version, branch)
        return self.build_incremental(modifications)

    def write(
        self,
        from_version: Optional[str],
        to_version: str,
        collector: ChangeRangeCollector,
        branch: str,
        sink: PatchSink,
    ) -> int:
        """Build a patch and hand it to ``sink``; returns the number of operations."""
        operations = self.build(from_version, to_version, collector, branch)
        return sink.apply_all(operations)

    def _walk(self, root: Path) -> List[str]:
        """Relative paths of regular files under ``root``, sorted, metadata excluded."""
        paths = []
        for dirpath, dirnames, filenames in os.walk(root):
            dirnames[:] = sorted(d for d in dirnames if d not in self.metadata_directories)
            relative_dir = Path(dirpath).relative_to(root)
            for name in sorted(filenames):
                full_path = Path(dirpath) / name
                if full_path.is_symlink() or not full_path.is_file():
                    continue
                paths.append((relative_dir / name).as_posix())
        return paths

    @staticmethod
    def _read(workspace: Workspace, relative_path: str, version: str) -> bytes:
        try:
            return workspace.file(relative_path).read_bytes()
        except OSError as e:
            raise PatchFileReadFailed(relative_path, version, e) from e

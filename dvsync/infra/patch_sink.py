"""
Patch sink infrastructure for dvsync.

A patch sink consumes patch operations in order. Applying them
sequentially gives last-write-wins for repeated paths.

- CollectingPatchSink: keeps operations in memory (tests, dry runs)
- DirectoryPatchSink: applies operations to a directory with
  atomic writes (write to temp, then rename)
"""

import os
import tempfile
from pathlib import Path
from typing import Iterable, List, Union
import logging

from ..domain.patch import PatchOperation, PatchOperationType

logger = logging.getLogger(__name__)


class PatchSink:
    """Base class for patch consumers."""

    def apply(self, operation: PatchOperation) -> None:
        raise NotImplementedError

    def apply_all(self, operations: Iterable[PatchOperation]) -> int:
        """Apply operations in order and return how many were applied."""
        count = 0
        for operation in operations:
            self.apply(operation)
            count += 1
        return count


class CollectingPatchSink(PatchSink):
    """Keeps every operation it receives, in order."""

    def __init__(self):
        self.operations: List[PatchOperation] = []

    def apply(self, operation: PatchOperation) -> None:
        self.operations.append(operation)

    @property
    def paths(self) -> List[str]:
        return [op.path for op in self.operations]


class DirectoryPatchSink(PatchSink):
    """
    Applies patch operations to a target directory.

    Example:
        sink = DirectoryPatchSink(Path("/srv/agent/checkout"))
        sink.apply(PatchOperation.create_or_replace("src/main.c", b"..."))
    """

    def __init__(self, root: Union[str, Path]):
        self.root = Path(root).expanduser().resolve()
        self.root.mkdir(parents=True, exist_ok=True)

    def _target(self, relative_path: str) -> Path:
        target = (self.root / relative_path).resolve()
        if target != self.root and self.root not in target.parents:
            raise ValueError(f"Patch path escapes target directory: {relative_path}")
        return target

    def _write_atomic(self, target: Path, content: bytes) -> None:
        """Write bytes atomically using temp file and rename."""
        target.parent.mkdir(parents=True, exist_ok=True)
        fd, temp_path = tempfile.mkstemp(
            dir=target.parent,
            prefix=f".{target.name}.",
            suffix=".tmp"
        )

        try:
            with os.fdopen(fd, 'wb') as f:
                f.write(content)

            # Atomic rename
            os.replace(temp_path, target)

        except Exception:
            # Clean up temp file on error
            try:
                os.unlink(temp_path)
            except OSError:
                pass
            raise

    def apply(self, operation: PatchOperation) -> None:
        target = self._target(operation.path)

        if operation.type == PatchOperationType.DELETE:
            if target.is_file() or target.is_symlink():
                target.unlink()
            else:
                logger.debug(f"Nothing to delete at {operation.path}")
            return

        self._write_atomic(target, operation.content or b"")

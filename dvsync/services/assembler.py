"""
Commit assembly for dvsync.

Combines a CommitRecord with the commit's file changes into a
Modification. A commit is never dropped because its file list is
unavailable: the modification is degraded to a single placeholder
change instead, so a build still runs.
"""

from typing import List, Optional
import logging

from ..domain.commit import (
    CHANGES_DETECTED_PATH,
    ChangeKind,
    CommitRecord,
    FileChange,
    FileDetail,
    Modification,
)
from ..domain.version import parent_version
from ..errors import FileStatusUnavailable, InvalidVersionFormat
from .file_status import FileStatusResolver

logger = logging.getLogger(__name__)

NO_DETAIL_REASON = "Changes have been detected, specific changes are not available at present"


def build_file_changes(record: CommitRecord, resolver: FileStatusResolver) -> List[FileChange]:
    """
    Resolve the real file changes of a commit, sorted by path.

    Raises:
        FileStatusUnavailable: if the file list cannot be obtained
        InvalidVersionFormat: if the commit id carries no commit number
    """
    statuses = resolver.resolve(record.version)
    before_version = parent_version(record.version)

    changes = []
    for path in sorted(statuses):
        kind = statuses[path].kind
        changes.append(FileChange(
            path=path,
            kind=kind,
            before=None if kind == ChangeKind.ADDED else before_version,
            after=None if kind == ChangeKind.DELETED else record.version,
            description=f"{kind.value}: {path}",
        ))
    return changes


def placeholder_change(record: CommitRecord, description: str) -> FileChange:
    """The single change reported when the real file list is unknown."""
    try:
        before_version = parent_version(record.version)
    except InvalidVersionFormat:
        before_version = None
    return FileChange(
        path=CHANGES_DETECTED_PATH,
        kind=ChangeKind.MODIFIED,
        before=before_version,
        after=record.version,
        description=description,
    )


class CommitAssembler:
    """
    Builds Modifications from commit records.

    Example:
        assembler = CommitAssembler(FileStatusResolver(client))
        mods = [assembler.assemble(r) for r in parser.parse(log_text)]
    """

    def __init__(self, resolver: Optional[FileStatusResolver] = None):
        self.resolver = resolver

    def assemble(self, record: CommitRecord, resolver: Optional[FileStatusResolver] = None) -> Modification:
        """
        Assemble one modification.

        Args:
            record: Parsed commit
            resolver: Overrides the assembler's resolver for this call

        Returns:
            Modification with at least one change
        """
        resolver = resolver or self.resolver

        if resolver is None:
            return self._degraded(record, NO_DETAIL_REASON)

        try:
            changes = build_file_changes(record, resolver)
        except (FileStatusUnavailable, InvalidVersionFormat) as e:
            logger.warning(f"Failed to get file changes for commit {record.version}: {e}")
            return self._degraded(record, f"Changes detected (file list unavailable: {e})")

        if not changes:
            return self._degraded(record, NO_DETAIL_REASON)

        return Modification(
            commit=record,
            changes=changes,
            detail=FileDetail.resolved(changes),
        )

    def assemble_all(self, records: List[CommitRecord]) -> List[Modification]:
        return [self.assemble(record) for record in records]

    @staticmethod
    def _degraded(record: CommitRecord, reason: str) -> Modification:
        return Modification(
            commit=record,
            changes=[placeholder_change(record, reason)],
            detail=FileDetail.degraded(reason),
        )

"""
Domain layer for dvsync.

Contains pure domain objects with no I/O or side effects:
- Version ids and the tracked repository state
- CommitRecord, FileChange and Modification
- PatchOperation

These objects are immutable where possible and provide
serialization methods for JSONL output.
"""

from .version import (
    RepositoryState,
    commit_id,
    compare_versions,
    extract_commit_number,
    parent_version,
    version_sort_key,
)
from .commit import (
    CHANGES_DETECTED_PATH,
    ChangeKind,
    CommitRecord,
    FileChange,
    FileDetail,
    Modification,
)
from .patch import PatchOperation, PatchOperationType

__all__ = [
    'RepositoryState',
    'commit_id',
    'compare_versions',
    'extract_commit_number',
    'parent_version',
    'version_sort_key',
    'CHANGES_DETECTED_PATH',
    'ChangeKind',
    'CommitRecord',
    'FileChange',
    'FileDetail',
    'Modification',
    'PatchOperation',
    'PatchOperationType',
]

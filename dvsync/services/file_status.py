"""
File status resolution for dvsync.

``dv ls <commit> <file>`` writes a JSON object mapping each path to its
status in that commit::

    {"src/main.c": {"status": 3}, "README.md": {"status": 1}}

Status codes: 1 = intact, 2 = added, 3 = modified, 4 = deleted.
"""

import json
from dataclasses import dataclass
from typing import Dict
import logging

from ..domain.commit import ChangeKind
from ..errors import FileStatusUnavailable
from ..infra.dv_client import DvClient

logger = logging.getLogger(__name__)

STATUS_INTACT = 1
STATUS_ADDED = 2
STATUS_MODIFIED = 3
STATUS_DELETED = 4


@dataclass(frozen=True)
class FileStatus:
    """Status of one path in one commit."""
    kind: ChangeKind
    code: int

    @classmethod
    def from_code(cls, code: int) -> 'FileStatus':
        if code == STATUS_ADDED:
            return cls(ChangeKind.ADDED, code)
        if code == STATUS_DELETED:
            return cls(ChangeKind.DELETED, code)
        # Modified and anything unrecognized
        return cls(ChangeKind.MODIFIED, code)


def parse_file_status(document: str) -> Dict[str, FileStatus]:
    """
    Parse a file-status document, dropping intact paths.

    A path without a ``status`` field counts as intact.

    Raises:
        ValueError: if the document is not a JSON object of objects
    """
    data = json.loads(document)
    if not isinstance(data, dict):
        raise ValueError(f"expected a JSON object, got {type(data).__name__}")

    result: Dict[str, FileStatus] = {}
    for path, info in data.items():
        if not isinstance(info, dict):
            raise ValueError(f"entry for {path!r} is not an object")
        code = int(info.get('status', STATUS_INTACT))
        if code == STATUS_INTACT:
            continue
        result[path] = FileStatus.from_code(code)
    return result


class FileStatusResolver:
    """
    Resolves the changed files of a commit through the dv client.

    Failures are reported as FileStatusUnavailable, which callers may
    treat as recoverable.
    """

    def __init__(self, client: DvClient):
        self.client = client

    def resolve(self, commit_id: str) -> Dict[str, FileStatus]:
        """
        Get the changed paths of a commit.

        Returns:
            Mapping of path to FileStatus (intact paths excluded)

        Raises:
            FileStatusUnavailable: if the command fails or its output is malformed
        """
        try:
            document = self.client.commit_files(commit_id)
            statuses = parse_file_status(document)
        except Exception as e:
            raise FileStatusUnavailable(commit_id, e) from e

        logger.debug(f"{commit_id}: {len(statuses)} changed file(s)")
        return statuses

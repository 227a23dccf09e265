"""
Commit domain objects for dvsync.

CommitRecord is what the log parser reads out of ``dv log``. Modification
is what the engine hands to a CI host: one record plus the file changes
it made. All objects serialize to plain dicts for JSONL output.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, Any, List, Optional, Tuple
import json

from .version import extract_commit_number

# Path used by the placeholder change when file detail is unknown.
CHANGES_DETECTED_PATH = "(changes detected)"


class ChangeKind(Enum):
    """Kind of change a commit made to one path."""
    ADDED = "added"
    MODIFIED = "modified"
    DELETED = "deleted"


@dataclass(frozen=True)
class CommitRecord:
    """
    One commit as read from the log.

    Attributes:
        version: Commit id (e.g. dv.commit.7)
        branch: Branch label from the commit header (e.g. dv.branch.1)
        author_name: Trimmed author name
        author_email: Author email without angle brackets
        timestamp: Commit time (naive, as printed by the client)
        message: Line-trimmed message, lines joined by newlines
    """
    version: str
    branch: str
    author_name: Optional[str] = None
    author_email: Optional[str] = None
    timestamp: Optional[datetime] = None
    message: str = ""

    @property
    def commit_number(self) -> int:
        return extract_commit_number(self.version)

    @property
    def user_name(self) -> str:
        """Display name in ``Name <email>`` form."""
        return f"{self.author_name} <{self.author_email}>"

    def to_dict(self) -> Dict[str, Any]:
        return {
            'version': self.version,
            'branch': self.branch,
            'author': self.author_name,
            'email': self.author_email,
            'timestamp': self.timestamp.isoformat() if self.timestamp else None,
            'message': self.message,
        }


@dataclass(frozen=True)
class FileChange:
    """
    A change to one path in one commit.

    Added changes have no before revision, deleted changes have no after
    revision, modified changes have both (except on the very first commit,
    which has no parent).
    """
    path: str
    kind: ChangeKind
    before: Optional[str]
    after: Optional[str]
    description: str = ""

    @property
    def is_placeholder(self) -> bool:
        """True for the synthetic entry that stands in for unknown file detail."""
        return self.path == CHANGES_DETECTED_PATH

    def to_dict(self) -> Dict[str, Any]:
        return {
            'path': self.path,
            'type': self.kind.value,
            'before': self.before,
            'after': self.after,
            'description': self.description,
        }


@dataclass(frozen=True)
class FileDetail:
    """
    Outcome of resolving a commit's file list.

    ``resolved`` detail carries the real changes; degraded detail carries
    the reason the file list could not be used.
    """
    changes: Tuple[FileChange, ...] = ()
    reason: Optional[str] = None

    @classmethod
    def resolved(cls, changes: List[FileChange]) -> 'FileDetail':
        return cls(changes=tuple(changes))

    @classmethod
    def degraded(cls, reason: str) -> 'FileDetail':
        return cls(reason=reason)

    @property
    def is_degraded(self) -> bool:
        return self.reason is not None


@dataclass
class Modification:
    """
    One commit together with the file changes it made.

    ``changes`` is never empty: when the real file list is unknown the
    assembler substitutes a single placeholder change.
    """
    commit: CommitRecord
    changes: List[FileChange] = field(default_factory=list)
    detail: FileDetail = field(default_factory=FileDetail)

    @property
    def version(self) -> str:
        return self.commit.version

    @property
    def commit_number(self) -> int:
        return self.commit.commit_number

    @property
    def is_degraded(self) -> bool:
        return self.detail.is_degraded

    @property
    def description(self) -> str:
        """Text shown to users for this change: the commit message."""
        return self.commit.message

    def to_dict(self) -> Dict[str, Any]:
        result = self.commit.to_dict()
        result['user'] = self.commit.user_name
        result['changes'] = [change.to_dict() for change in self.changes]
        if self.detail.is_degraded:
            result['degraded'] = self.detail.reason
        return result

    def to_jsonl(self) -> str:
        """Convert to single-line JSON for streaming output."""
        return json.dumps(self.to_dict(), ensure_ascii=False)

    def __str__(self) -> str:
        return f"{self.version} by {self.commit.user_name}: {len(self.changes)} change(s)"

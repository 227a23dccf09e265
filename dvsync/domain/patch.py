"""
Patch operation domain objects for dvsync.

A patch is an ordered stream of operations against a relative file tree.
Operations are produced by the patch builder and consumed immediately by
a patch sink; dvsync never persists them itself.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Any, Optional


class PatchOperationType(Enum):
    """Type of a patch operation."""
    CREATE_OR_REPLACE = "create_or_replace"
    DELETE = "delete"


@dataclass(frozen=True)
class PatchOperation:
    """
    A single file-system operation.

    Attributes:
        type: Operation type
        path: Relative path using forward slashes
        content: File bytes (create/replace only)
        version: Version the content was read from, if any
    """
    type: PatchOperationType
    path: str
    content: Optional[bytes] = None
    version: Optional[str] = None

    @classmethod
    def create_or_replace(cls, path: str, content: bytes, version: Optional[str] = None) -> 'PatchOperation':
        return cls(PatchOperationType.CREATE_OR_REPLACE, path, content, version)

    @classmethod
    def delete(cls, path: str, version: Optional[str] = None) -> 'PatchOperation':
        return cls(PatchOperationType.DELETE, path, None, version)

    @property
    def length(self) -> int:
        return len(self.content) if self.content is not None else 0

    @property
    def is_delete(self) -> bool:
        return self.type == PatchOperationType.DELETE

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization (content omitted)."""
        result = {
            'op': self.type.value,
            'path': self.path,
        }
        if not self.is_delete:
            result['length'] = self.length
        if self.version:
            result['version'] = self.version
        return result

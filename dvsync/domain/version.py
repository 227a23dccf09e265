"""
Version identifiers for Diversion commits.

A version id is an opaque string such as ``dv.commit.7`` whose trailing
integer (the commit number, or ordinal) increases monotonically along the
tracked branch. Ordinals start at 1; the parent of commit 1 is "none".
"""

import re
from dataclasses import dataclass
from functools import cmp_to_key
from typing import Optional, Dict, Any, Tuple

from ..errors import InvalidVersionFormat

COMMIT_PREFIX = "dv.commit."

# Envelope is free-form; only the trailing decimal number matters.
_COMMIT_ID_PATTERN = re.compile(r"^(?P<prefix>(?:.*\D)?)(?P<number>\d+)$")


def _split(version: str) -> Tuple[str, int]:
    match = _COMMIT_ID_PATTERN.match(version.strip()) if version else None
    if not match:
        raise InvalidVersionFormat(version)
    number = int(match.group('number'))
    if number < 1:
        raise InvalidVersionFormat(version)
    return match.group('prefix'), number


def extract_commit_number(version: str) -> int:
    """
    Extract the commit number from a version id.

    Example:
        >>> extract_commit_number("dv.commit.7")
        7

    Raises:
        InvalidVersionFormat: if the id carries no commit number
    """
    return _split(version)[1]


def commit_id(number: int, prefix: str = COMMIT_PREFIX) -> str:
    """Build the version id for a commit number."""
    return f"{prefix}{number}"


def parent_version(version: str) -> Optional[str]:
    """Version id of the commit immediately before ``version``, or None for commit 1."""
    prefix, number = _split(version)
    return commit_id(number - 1, prefix) if number > 1 else None


def compare_versions(v1: str, v2: str) -> int:
    """
    Compare two version ids by commit number.

    Falls back to plain string comparison when either id carries
    no commit number.
    """
    try:
        n1 = extract_commit_number(v1)
        n2 = extract_commit_number(v2)
    except InvalidVersionFormat:
        return (v1 > v2) - (v1 < v2)
    return (n1 > n2) - (n1 < n2)


version_sort_key = cmp_to_key(compare_versions)


@dataclass(frozen=True)
class RepositoryState:
    """
    Current known position of the single tracked branch.

    The engine tracks exactly one branch per configured root, so a
    state is one version id plus the branch it belongs to.
    """
    version: str
    branch: str = "main"

    @property
    def commit_number(self) -> int:
        return extract_commit_number(self.version)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'branch': self.branch,
            'version': self.version,
        }

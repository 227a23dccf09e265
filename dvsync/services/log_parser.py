"""
Commit log parser for dvsync.

Turns ``dv log`` text into CommitRecords. The log looks like::

    commit dv.commit.7 (dv.branch.1)
    Author: Chris Ashworth <cashworth@example.com>
    Date:   10-31-2025 09:36:28

        Fix the build script

The parser is a small finite-state machine over lines: an enumerated
state plus one accumulator that is replaced on every commit header.
"""

import re
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional
import logging

from ..domain.commit import CommitRecord
from ..errors import MalformedLogEntry

logger = logging.getLogger(__name__)

DATE_FORMAT = "%m-%d-%Y %H:%M:%S"

COMMIT_PATTERN = re.compile(r"^commit\s+(\S+)\s+\(([^)]+)\)\s*$")
AUTHOR_PATTERN = re.compile(r"^Author:\s+([^<]+)<([^>]+)>\s*$")
DATE_PATTERN = re.compile(r"^Date:\s+(.+)$")


class ParserState(Enum):
    """Where the scanner is within the current log entry."""
    SEEKING_COMMIT = "seeking_commit"
    AFTER_COMMIT = "after_commit"
    AFTER_AUTHOR = "after_author"
    IN_MESSAGE = "in_message"


@dataclass
class _Entry:
    """Accumulator for the commit currently being read."""
    version: str
    branch: str
    author_name: Optional[str] = None
    author_email: Optional[str] = None
    timestamp: Optional[datetime] = None
    message_lines: List[str] = field(default_factory=list)

    def to_record(self) -> CommitRecord:
        return CommitRecord(
            version=self.version,
            branch=self.branch,
            author_name=self.author_name,
            author_email=self.author_email,
            timestamp=self.timestamp,
            message="\n".join(self.message_lines),
        )


def parse_date(text: str) -> datetime:
    """
    Parse a log timestamp (``MM-DD-YYYY HH:MM:SS``).

    Raises:
        MalformedLogEntry: if the text does not fit the format
    """
    try:
        return datetime.strptime(text.strip(), DATE_FORMAT)
    except ValueError as e:
        raise MalformedLogEntry(text.strip(), e) from e


class CommitLogParser:
    """
    Parses dv log text into commit records, in source order.

    Example:
        parser = CommitLogParser()
        for record in parser.parse(client.log(20)):
            print(record.version, record.message)
    """

    def parse(self, log_text: str) -> List[CommitRecord]:
        """
        Parse log text.

        Emits exactly one record per commit header. Lines that match no
        known pattern outside a message body are ignored.

        Raises:
            MalformedLogEntry: if a Date line cannot be parsed
        """
        records: List[CommitRecord] = []
        state = ParserState.SEEKING_COMMIT
        entry: Optional[_Entry] = None

        for raw_line in log_text.splitlines():
            line = raw_line.rstrip('\r')

            header = COMMIT_PATTERN.match(line)
            if header:
                if entry is not None:
                    records.append(entry.to_record())
                entry = _Entry(version=header.group(1), branch=header.group(2).strip())
                state = ParserState.AFTER_COMMIT
                continue

            if state == ParserState.SEEKING_COMMIT:
                continue

            if state == ParserState.IN_MESSAGE:
                if line.strip():
                    entry.message_lines.append(line.strip())
                continue

            author = AUTHOR_PATTERN.match(line)
            if author:
                entry.author_name = author.group(1).strip()
                entry.author_email = author.group(2).strip()
                state = ParserState.AFTER_AUTHOR
                continue

            date = DATE_PATTERN.match(line)
            if date:
                entry.timestamp = parse_date(date.group(1))
                state = ParserState.IN_MESSAGE
                continue

            if line.strip():
                logger.debug(f"Ignoring unrecognized log line: {line!r}")

        if entry is not None:
            records.append(entry.to_record())

        return records

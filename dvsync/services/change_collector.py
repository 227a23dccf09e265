"""
Change range collection for dvsync.

Turns two version markers into the ordered list of commits between
them. ``from`` is exclusive (it was already synchronized) and ``to`` is
inclusive, so the result covers commit numbers in ``(from, to]``.
"""

from typing import List, Optional, Tuple
import logging

from ..domain.commit import CommitRecord, Modification
from ..domain.version import extract_commit_number
from ..errors import InvalidVersionFormat
from ..infra.dv_client import DvClient
from .assembler import CommitAssembler
from .checkout import CheckoutCoordinator
from .file_status import FileStatusResolver
from .log_parser import CommitLogParser

logger = logging.getLogger(__name__)

DEFAULT_LOG_FETCH_BUFFER = 10
DEFAULT_MAX_REFETCH_ROUNDS = 2


class ChangeRangeCollector:
    """
    Collects the modifications between two versions, oldest first.

    The log is fetched newest-first with some headroom (``buffer``). When
    a full page still does not reach back to the commit after ``from``,
    the collector doubles the page and fetches again, up to
    ``max_refetch_rounds`` extra times.

    Example:
        collector = ChangeRangeCollector(client, coordinator)
        for mod in collector.collect_range("dv.commit.4", "dv.commit.9", "main"):
            print(mod.version, mod.description)
    """

    def __init__(
        self,
        client: DvClient,
        coordinator: CheckoutCoordinator,
        assembler: Optional[CommitAssembler] = None,
        parser: Optional[CommitLogParser] = None,
        buffer: int = DEFAULT_LOG_FETCH_BUFFER,
        max_refetch_rounds: int = DEFAULT_MAX_REFETCH_ROUNDS,
    ):
        self.client = client
        self.coordinator = coordinator
        self.assembler = assembler or CommitAssembler(FileStatusResolver(client))
        self.parser = parser or CommitLogParser()
        self.buffer = buffer
        self.max_refetch_rounds = max_refetch_rounds

    def collect_range(self, from_version: str, to_version: str, branch: str) -> List[Modification]:
        """
        Collect modifications in ``(from_version, to_version]``.

        Returns:
            Modifications sorted by ascending commit number; empty when
            ``from_version`` is not older than ``to_version``

        Raises:
            InvalidVersionFormat: if either marker has no commit number
            CheckoutFailed: if the branch cannot be checked out
            DvCommandError: if updating or reading the log fails
            MalformedLogEntry: if the log text is malformed
        """
        low = extract_commit_number(from_version)
        high = extract_commit_number(to_version)
        if low >= high:
            return []

        # Leave any detached state, then pull the newest commits.
        self.coordinator.checkout(branch, discard_local_changes=True)
        self.coordinator.refresh()

        records = self._fetch_records(low, high)

        in_range: List[Tuple[int, CommitRecord]] = []
        for record in records:
            try:
                number = extract_commit_number(record.version)
            except InvalidVersionFormat as e:
                logger.warning(f"Skipping commit with unusable id {record.version!r}: {e}")
                continue
            if low < number <= high:
                in_range.append((number, record))

        in_range.sort(key=lambda item: item[0])
        modifications = [self.assembler.assemble(record) for _, record in in_range]

        logger.info(
            f"Collected {len(modifications)} change(s) between {from_version} and {to_version}"
        )
        return modifications

    def _fetch_records(self, low: int, high: int) -> List[CommitRecord]:
        count = (high - low) + self.buffer
        rounds = 0
        while True:
            records = self.parser.parse(self.client.log(count))
            if rounds >= self.max_refetch_rounds or not self._needs_more(records, low, count):
                return records
            rounds += 1
            count *= 2
            logger.info(f"Log page did not reach commit {low + 1}, re-fetching {count} commits")

    @staticmethod
    def _needs_more(records: List[CommitRecord], low: int, count: int) -> bool:
        """True when a full page was returned but it stops short of ``low + 1``."""
        if len(records) < count:
            return False
        numbers = []
        for record in records:
            try:
                numbers.append(extract_commit_number(record.version))
            except InvalidVersionFormat:
                continue
        return bool(numbers) and min(numbers) > low + 1

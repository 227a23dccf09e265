"""
Tests for file content retrieval at a version.
"""

import pytest
from unittest.mock import MagicMock

from dvsync.domain import ChangeKind, FileChange
from dvsync.errors import CheckoutFailed, ConfigError, VcsFileNotFound
from dvsync.services.checkout import CheckoutCoordinator, Workspace
from dvsync.services.content_provider import FileContentProvider


@pytest.fixture
def coordinator(tmp_path):
    coordinator = MagicMock(spec=CheckoutCoordinator)
    coordinator.workspace = Workspace(tmp_path)
    return coordinator


class TestGetContent:
    """Tests for FileContentProvider.get_content."""

    def test_reads_after_checkout(self, coordinator, tmp_path):
        (tmp_path / "docs").mkdir()
        (tmp_path / "docs" / "a.md").write_bytes(b"hello")

        data = FileContentProvider(coordinator).get_content("docs/a.md", "dv.commit.3")

        coordinator.ensure.assert_called_once_with("dv.commit.3")
        assert data == b"hello"

    def test_missing_file(self, coordinator):
        with pytest.raises(VcsFileNotFound) as exc_info:
            FileContentProvider(coordinator).get_content("nope.txt", "dv.commit.3")

        assert str(exc_info.value) == "File nope.txt not found in version dv.commit.3"

    def test_checkout_failure_propagates(self, coordinator):
        coordinator.ensure.side_effect = CheckoutFailed("dv.commit.3", 1, "bad ref")

        with pytest.raises(CheckoutFailed):
            FileContentProvider(coordinator).get_content("a.txt", "dv.commit.3")

    def test_requires_workspace(self):
        coordinator = MagicMock(spec=CheckoutCoordinator)
        coordinator.workspace = None

        with pytest.raises(ConfigError):
            FileContentProvider(coordinator).get_content("a.txt", "dv.commit.3")


class TestGetChangeContent:
    """Tests for FileContentProvider.get_change_content."""

    def test_added_file_has_empty_before(self, coordinator):
        change = FileChange("a.txt", ChangeKind.ADDED, None, "dv.commit.3")

        assert FileContentProvider(coordinator).get_change_content(change, before=True) == b""
        coordinator.ensure.assert_not_called()

    def test_deleted_file_has_empty_after(self, coordinator):
        change = FileChange("a.txt", ChangeKind.DELETED, "dv.commit.2", None)

        assert FileContentProvider(coordinator).get_change_content(change, before=False) == b""

    def test_before_side_uses_parent(self, coordinator, tmp_path):
        (tmp_path / "a.txt").write_bytes(b"old")
        change = FileChange("a.txt", ChangeKind.MODIFIED, "dv.commit.2", "dv.commit.3")

        data = FileContentProvider(coordinator).get_change_content(change, before=True)

        coordinator.ensure.assert_called_once_with("dv.commit.2")
        assert data == b"old"

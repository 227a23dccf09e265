"""
Tests for the DvSync high-level API.

A scripted fake runner stands in for the dv executable: it answers
``branch``, ``log``, ``ls``, ``checkout`` and ``update`` and lays out the
workspace files for whichever commit is checked out.
"""

import json
import pytest
from pathlib import Path
from unittest.mock import MagicMock

from dvsync import DvSync, create
from dvsync.config import get_default_config, merge_configs
from dvsync.domain import RepositoryState
from dvsync.errors import CheckoutFailed, DvCommandError, VcsFileNotFound
from dvsync.infra.command_runner import CommandResult, CommandRunner
from dvsync.infra.patch_sink import CollectingPatchSink


# Files present at each commit, and the dv ls status of each commit.
TREES = {
    1: {"README.md": b"readme v1"},
    2: {"README.md": b"readme v1", "src/main.c": b"int main(void);"},
    3: {"README.md": b"readme v3", "src/main.c": b"int main(void);"},
    4: {"README.md": b"readme v3"},
}
STATUS = {
    1: {"README.md": {"status": 2}},
    2: {"README.md": {"status": 1}, "src/main.c": {"status": 2}},
    3: {"README.md": {"status": 3}, "src/main.c": {"status": 1}},
    4: {"src/main.c": {"status": 4}},
}
HEAD = 4


def log_text(count):
    entries = []
    for n in range(HEAD, max(HEAD - count, 0), -1):
        entries.append(
            f"commit dv.commit.{n} (dv.branch.1)\n"
            f"Author: Dev <dev@example.com>\n"
            f"Date:   02-0{n}-2025 10:00:00\n"
            f"\n"
            f"    Commit {n}\n"
        )
    return "\n".join(entries)


class FakeDv:
    """Answers dv sub-commands against an in-memory history."""

    def __init__(self, workspace: Path):
        self.workspace = workspace
        self.calls = []
        self.incomplete_syncs = 0

    def run(self, program, args, cwd=None):
        self.calls.append(list(args))
        command = args[0]
        if command == "branch":
            return CommandResult(f"branch main (dv.branch.1)\ncommit dv.commit.{HEAD}", "", 0)
        if command == "log":
            return CommandResult(log_text(int(args[2])), "", 0)
        if command == "ls":
            number = int(args[1].rsplit(".", 1)[1])
            Path(args[2]).write_text(json.dumps(STATUS[number]))
            return CommandResult("", "", 0)
        if command == "checkout":
            if self.incomplete_syncs:
                self.incomplete_syncs -= 1
                return CommandResult("", "Sync is incomplete", 1)
            ref = args[1]
            number = HEAD if ref == "main" else int(ref.rsplit(".", 1)[1])
            if number not in TREES:
                return CommandResult("", f"unknown ref {ref}", 1)
            self._lay_out(TREES[number])
            return CommandResult("", "", 0)
        if command in ("update", "repo", "tag"):
            return CommandResult("", "", 0)
        return CommandResult("", f"unknown command {command}", 2)

    def _lay_out(self, tree):
        for path in list(self.workspace.rglob("*")):
            if path.is_file() and ".dv" not in path.parts:
                path.unlink()
        for relative, content in tree.items():
            target = self.workspace / relative
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(content)


@pytest.fixture
def workspace(tmp_path):
    root = tmp_path / "ws"
    (root / ".dv").mkdir(parents=True)
    (root / ".dv" / "meta").write_bytes(b"internal")
    return root


@pytest.fixture
def fake(workspace):
    return FakeDv(workspace)


@pytest.fixture
def sync(fake, workspace):
    config = merge_configs(get_default_config(), {
        'diversion': {'repository_id': 'dv.repo.5', 'working_directory': str(workspace)},
    })
    return DvSync(config=config, runner=fake, sleep=lambda seconds: None)


class TestConstruction:
    """Tests for DvSync settings and overrides."""

    def test_overrides(self, fake, tmp_path):
        sync = DvSync(
            config=get_default_config(),
            working_directory=tmp_path,
            branch="release",
            executable="/opt/dv",
            runner=fake,
        )

        assert sync.branch == "release"
        assert sync.settings.working_directory == tmp_path
        assert sync.client.executable == "/opt/dv"
        assert sync.coordinator.workspace.path == tmp_path

    def test_describe(self, sync):
        assert sync.describe() == "Diversion repository: dv.repo.5 (branch: main)"

    def test_create_alias(self, fake):
        assert isinstance(create(config=get_default_config(), runner=fake), DvSync)

    def test_compare_versions(self):
        assert DvSync.compare_versions("dv.commit.2", "dv.commit.10") == -1


class TestVersions:
    """Tests for current version queries."""

    def test_current_version(self, sync):
        assert sync.current_version() == "dv.commit.4"

    def test_current_state(self, sync):
        state = sync.current_state()
        assert state == RepositoryState("dv.commit.4", "main")
        assert sync.fetch_all_refs() == state


class TestCollectChanges:
    """Tests for DvSync.collect_changes."""

    def test_collects_range(self, sync):
        mods = sync.collect_changes("dv.commit.1", "dv.commit.4")

        assert [m.version for m in mods] == ["dv.commit.2", "dv.commit.3", "dv.commit.4"]
        assert [(c.path, c.kind.value) for c in mods[0].changes] == [("src/main.c", "added")]
        assert mods[2].changes[0].before == "dv.commit.3"
        assert mods[2].changes[0].after is None

    def test_accepts_states(self, sync):
        mods = sync.collect_changes(RepositoryState("dv.commit.3"), RepositoryState("dv.commit.4"))
        assert [m.version for m in mods] == ["dv.commit.4"]

    def test_same_version_is_empty(self, sync, fake):
        assert sync.collect_changes("dv.commit.4", "dv.commit.4") == []
        assert fake.calls == []


class TestPatches:
    """Tests for full and incremental patches through the API."""

    def test_full_patch(self, sync):
        ops = sync.patch_operations(None, "dv.commit.2")

        assert [(op.path, op.content) for op in ops] == [
            ("README.md", b"readme v1"),
            ("src/main.c", b"int main(void);"),
        ]

    def test_incremental_patch(self, sync):
        sink = CollectingPatchSink()

        count = sync.build_patch("dv.commit.2", "dv.commit.4", sink)

        assert count == 2
        first, second = sink.operations
        assert (first.path, first.content, first.version) == ("README.md", b"readme v3", "dv.commit.3")
        assert second.is_delete
        assert second.path == "src/main.c"

    def test_checkout_retries_are_absorbed(self, sync, fake):
        fake.incomplete_syncs = 2

        ops = sync.patch_operations(None, "dv.commit.1")

        assert [op.path for op in ops] == ["README.md"]

    def test_unknown_version_fails(self, sync):
        with pytest.raises(CheckoutFailed):
            sync.patch_operations(None, "dv.commit.99")


class TestContentAndLabels:
    """Tests for content retrieval, labels and connection checks."""

    def test_get_content(self, sync):
        assert sync.get_content("README.md", "dv.commit.3") == b"readme v3"

    def test_get_content_missing(self, sync):
        with pytest.raises(VcsFileNotFound):
            sync.get_content("src/main.c", "dv.commit.1")

    def test_label_sanitizes(self, sync, fake):
        assert sync.label(" nightly build 7 ", "dv.commit.3") == "nightly_build_7"
        assert fake.calls[-1] == ["tag", "nightly_build_7", "dv.commit.3"]

    def test_connection_ok(self, sync):
        assert sync.test_connection() is None

    def test_connection_failure_message(self, workspace):
        runner = MagicMock(spec=CommandRunner)
        runner.run.return_value = CommandResult("", "not logged in", 1)
        sync = DvSync(config=get_default_config(), working_directory=workspace, runner=runner)

        message = sync.test_connection()

        assert message.startswith("Connection test failed: ")
        assert "not logged in" in message

    def test_ensure_workspace_is_a_no_op_for_existing_workspace(self, sync, fake):
        sync.ensure_workspace()
        assert fake.calls == []

    def test_current_version_error_propagates(self, workspace):
        runner = MagicMock(spec=CommandRunner)
        runner.run.return_value = CommandResult("", "boom", 1)
        sync = DvSync(config=get_default_config(), working_directory=workspace, runner=runner)

        with pytest.raises(DvCommandError):
            sync.current_version()

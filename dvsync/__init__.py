"""
dvsync - Revision synchronization for Diversion repositories.

dvsync drives the ``dv`` command-line client to answer the questions a
CI server asks of a version control root: what is the head version,
which commits happened since the last build, and what does the build
directory need to look like at a version.

Quick Start:
    import dvsync

    # Create instance (reads ~/.dvsync/config.json)
    sync = dvsync.DvSync()

    # Or with explicit settings
    sync = dvsync.DvSync(working_directory="~/dv/workspace", branch="main")

    # Head of the tracked branch
    head = sync.current_version()

    # Commits since the last build, oldest first
    for mod in sync.collect_changes("dv.commit.40", head):
        print(mod.version, mod.description)

    # Incremental patch into a build directory
    from dvsync.infra import DirectoryPatchSink
    sync.build_patch("dv.commit.40", head, DirectoryPatchSink("build/src"))

Domain Objects:
    CommitRecord - One parsed dv log entry
    FileChange - One path touched by a commit
    Modification - A commit with its file changes
    PatchOperation - Create/replace or delete of one file

Services:
    ChangeRangeCollector - Ordered modifications between two versions
    CheckoutCoordinator - Checkout with retry on incomplete syncs
    PatchBuilder - Full and incremental patches
    FileContentProvider - File contents at a version
"""

__version__ = "0.1.0"

# High-level API
from .api import DvSync, create

# Domain objects
from .domain import (
    ChangeKind,
    CommitRecord,
    FileChange,
    FileDetail,
    Modification,
    PatchOperation,
    PatchOperationType,
    RepositoryState,
    compare_versions,
)

# Services (for advanced use)
from .services import (
    ChangeRangeCollector,
    CheckoutCoordinator,
    PatchBuilder,
    FileContentProvider,
    AgentCheckoutService,
)

# Errors
from .errors import (
    DvSyncError,
    DvCommandError,
    CheckoutFailed,
    FileStatusUnavailable,
    MalformedLogEntry,
    PatchFileReadFailed,
    VcsFileNotFound,
    ConfigError,
)

# Configuration
from .config import load_config, save_config

__all__ = [
    # Version
    "__version__",
    # High-level API
    "DvSync",
    "create",
    # Domain objects
    "ChangeKind",
    "CommitRecord",
    "FileChange",
    "FileDetail",
    "Modification",
    "PatchOperation",
    "PatchOperationType",
    "RepositoryState",
    "compare_versions",
    # Services
    "ChangeRangeCollector",
    "CheckoutCoordinator",
    "PatchBuilder",
    "FileContentProvider",
    "AgentCheckoutService",
    # Errors
    "DvSyncError",
    "DvCommandError",
    "CheckoutFailed",
    "FileStatusUnavailable",
    "MalformedLogEntry",
    "PatchFileReadFailed",
    "VcsFileNotFound",
    "ConfigError",
    # Configuration
    "load_config",
    "save_config",
]

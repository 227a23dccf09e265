"""
Service layer for dvsync.

Contains the revision synchronization engine:
- CommitLogParser: dv log text to commit records
- FileStatusResolver: per-commit changed files
- CommitAssembler: records plus file changes to modifications
- ChangeRangeCollector: ordered modifications between two versions
- CheckoutCoordinator: checkout with retry on incomplete syncs
- PatchBuilder: full and incremental patches
- FileContentProvider: file contents at a version
- AgentCheckoutService: agent-side source updates

Services are the primary API for the facade and commands to use.
"""

from .log_parser import CommitLogParser, ParserState
from .file_status import FileStatus, FileStatusResolver
from .assembler import CommitAssembler
from .change_collector import ChangeRangeCollector
from .checkout import CheckoutCoordinator, Workspace
from .patch_builder import PatchBuilder
from .content_provider import FileContentProvider
from .agent_checkout import AgentCheckoutService

__all__ = [
    'CommitLogParser',
    'ParserState',
    'FileStatus',
    'FileStatusResolver',
    'CommitAssembler',
    'ChangeRangeCollector',
    'CheckoutCoordinator',
    'Workspace',
    'PatchBuilder',
    'FileContentProvider',
    'AgentCheckoutService',
]

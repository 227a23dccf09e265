"""
Infrastructure layer for dvsync.

Contains abstractions for external systems:
- CommandRunner: external process execution
- DvClient: dv command execution
- Patch sinks: consumers of patch operations

These provide clean interfaces that can be mocked for testing.
"""

from .command_runner import CommandRunner, CommandResult
from .dv_client import DvClient, WORKSPACE_MARKERS, is_workspace
from .patch_sink import PatchSink, CollectingPatchSink, DirectoryPatchSink

__all__ = [
    'CommandRunner',
    'CommandResult',
    'DvClient',
    'WORKSPACE_MARKERS',
    'is_workspace',
    'PatchSink',
    'CollectingPatchSink',
    'DirectoryPatchSink',
]

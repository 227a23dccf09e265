"""
Synchronization commands for dvsync.

Expose the engine to operators:
- current: head version of the tracked branch
- changes: modifications between two versions
- patch: build a full or incremental patch into a directory
- content: a file as it was at a version
- label: tag a version
- test-connection / describe / init-workspace
"""

import json
from pathlib import Path
from typing import Optional

import click

from ..api import DvSync
from ..cli_utils import add_common_options, handle_errors
from ..exit_codes import DV_COMMAND_ERROR
from ..infra import DirectoryPatchSink
from ..output import emit, emit_error, emit_success
from ..render import render_modifications, render_patch


def get_sync(ctx: click.Context) -> DvSync:
    """The DvSync instance for this invocation, created on first use."""
    obj = ctx.ensure_object(dict)
    if 'sync' not in obj:
        obj['sync'] = DvSync(
            config=obj.get('config'),
            config_path=obj.get('config_path'),
            working_directory=obj.get('working_directory'),
            branch=obj.get('branch'),
            executable=obj.get('executable'),
        )
    return obj['sync']


@click.command('current')
@click.pass_context
@handle_errors
def current_cmd(ctx):
    """Show the head version of the tracked branch.

    \b
    Examples:
        dvsync current
        dvsync --branch release current
    """
    sync = get_sync(ctx)
    emit([sync.current_state()])


@click.command('changes')
@click.argument('from_version')
@click.argument('to_version')
@add_common_options('pretty')
@click.pass_context
@handle_errors
def changes_cmd(ctx, from_version, to_version, pretty):
    """List the commits after FROM_VERSION up to TO_VERSION, oldest first.

    FROM_VERSION is exclusive (already synchronized); TO_VERSION is inclusive.

    \b
    Examples:
        dvsync changes dv.commit.40 dv.commit.45
        dvsync changes dv.commit.40 dv.commit.45 --pretty
    """
    sync = get_sync(ctx)
    mods = sync.collect_changes(from_version, to_version)
    if pretty:
        render_modifications(mods, title=f"Changes {from_version} .. {to_version}")
    else:
        emit(mods)


@click.command('patch')
@click.argument('to_version')
@click.option('--from', 'from_version', default=None,
              help='Previously synchronized version (omit for a full patch)')
@click.option('--out', 'out_dir', type=click.Path(file_okay=False, path_type=Path),
              help='Directory to apply the patch to')
@add_common_options('pretty', 'dry_run')
@click.pass_context
@handle_errors
def patch_cmd(ctx, to_version, from_version, out_dir, pretty, dry_run):
    """Build a patch up to TO_VERSION and apply it to a directory.

    Without --from every file of TO_VERSION is written. With --from only
    the files changed after that version are written or deleted.

    \b
    Examples:
        dvsync patch dv.commit.45 --out build/src
        dvsync patch dv.commit.45 --from dv.commit.40 --out build/src
        dvsync patch dv.commit.45 --from dv.commit.40 --dry-run --pretty
    """
    if not dry_run and out_dir is None:
        raise click.UsageError("--out is required unless --dry-run is given")

    sync = get_sync(ctx)
    operations = sync.patch_operations(from_version, to_version)

    if dry_run:
        if pretty:
            render_patch(operations, title=f"Patch to {to_version} (dry run)")
        else:
            emit(operations)
        return

    sink = DirectoryPatchSink(out_dir)
    applied = sink.apply_all(operations)
    deleted = sum(1 for op in operations if op.is_delete)
    emit_success(
        f"Applied {applied} operation(s) to {sink.root}",
        data={
            'to': to_version,
            'from': from_version,
            'written': applied - deleted,
            'deleted': deleted,
        },
    )


@click.command('content')
@click.argument('path')
@click.argument('version')
@click.option('--output', '-o', type=click.Path(dir_okay=False, path_type=Path),
              help='Write the content to a file instead of stdout')
@click.pass_context
@handle_errors
def content_cmd(ctx, path, version, output: Optional[Path]):
    """Print PATH as it was at VERSION.

    \b
    Examples:
        dvsync content src/main.c dv.commit.12
        dvsync content assets/logo.png dv.commit.12 -o logo.png
    """
    sync = get_sync(ctx)
    data = sync.get_content(path, version)
    if output:
        output.write_bytes(data)
        emit_success(f"Wrote {len(data)} bytes to {output}")
    else:
        stream = click.get_binary_stream('stdout')
        stream.write(data)
        stream.flush()


@click.command('label')
@click.argument('label')
@click.argument('version')
@click.pass_context
@handle_errors
def label_cmd(ctx, label, version):
    """Tag VERSION with LABEL (whitespace becomes underscores).

    \b
    Examples:
        dvsync label "build 1042" dv.commit.45
    """
    sync = get_sync(ctx)
    tag_name = sync.label(label, version)
    emit_success(f"Labeled {version}", data={'label': tag_name, 'version': version})


@click.command('test-connection')
@click.pass_context
@handle_errors
def test_connection_cmd(ctx):
    """Check that the dv client can reach the repository."""
    sync = get_sync(ctx)
    message = sync.test_connection()
    if message:
        emit_error(message, type="connection_failed")
        ctx.exit(DV_COMMAND_ERROR)
    emit_success("Connection OK", data={'root': sync.describe()})


@click.command('describe')
@click.pass_context
@handle_errors
def describe_cmd(ctx):
    """Describe the configured root."""
    sync = get_sync(ctx)
    print(json.dumps({
        'description': sync.describe(),
        'repository_id': sync.settings.repository_id,
        'branch': sync.branch,
        'working_directory': str(sync.settings.working_directory or ''),
    }, ensure_ascii=False))


@click.command('init-workspace')
@click.pass_context
@handle_errors
def init_workspace_cmd(ctx):
    """Clone the repository into the working directory if needed."""
    sync = get_sync(ctx)
    sync.ensure_workspace()
    emit_success("Workspace ready", data={'working_directory': str(sync.settings.working_directory)})

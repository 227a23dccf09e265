#!/usr/bin/env python3

import click
from pathlib import Path

from dvsync.config import configure_logging, load_config
from dvsync.cli_utils import handle_errors
from dvsync.commands.config import config_cmd
from dvsync.commands.agent import agent_checkout_cmd
from dvsync.commands.sync import (
    changes_cmd,
    content_cmd,
    current_cmd,
    describe_cmd,
    init_workspace_cmd,
    label_cmd,
    patch_cmd,
    test_connection_cmd,
)

# Commands that never talk to dv and must work without a valid config
CONFIG_FREE_COMMANDS = {'config'}


@click.group()
@click.version_option(package_name='dvsync')
@click.option('--config', 'config_path', type=click.Path(dir_okay=False, path_type=Path),
              envvar='DVSYNC_CONFIG', help='Config file (default: ~/.dvsync/config.json)')
@click.option('--workdir', type=click.Path(file_okay=False, path_type=Path),
              help='Diversion workspace directory (overrides config)')
@click.option('--branch', help='Tracked branch (overrides config)')
@click.option('--dv', 'executable', help='dv executable (overrides config)')
@click.option('-v', '--verbose', is_flag=True, help='Log debug output to stderr')
@click.pass_context
@handle_errors
def cli(ctx, config_path, workdir, branch, executable, verbose):
    """dvsync - Revision synchronization for Diversion repositories.

    Lists the commits between two versions, builds full and incremental
    patches of the workspace, and serves file contents at a version.
    """
    obj = ctx.ensure_object(dict)
    obj.setdefault('config_path', config_path)
    obj.setdefault('working_directory', workdir)
    obj.setdefault('branch', branch)
    obj.setdefault('executable', executable)

    if ctx.invoked_subcommand in CONFIG_FREE_COMMANDS:
        configure_logging(None, verbose)
        return

    if 'config' not in obj and 'sync' not in obj:
        obj['config'] = load_config(obj['config_path'])
    configure_logging(obj.get('config'), verbose)


cli.add_command(current_cmd)
cli.add_command(changes_cmd)
cli.add_command(patch_cmd)
cli.add_command(content_cmd)
cli.add_command(label_cmd)
cli.add_command(test_connection_cmd)
cli.add_command(describe_cmd)
cli.add_command(init_workspace_cmd)
cli.add_command(agent_checkout_cmd)
cli.add_command(config_cmd)


def main():
    cli()

if __name__ == "__main__":
    main()

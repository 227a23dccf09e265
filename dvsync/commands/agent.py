"""
Agent-side commands for dvsync.

Run on a build agent that has the dv client installed, to bring a
checkout directory to a version without going through a patch.
"""

import sys
from pathlib import Path

import click

from ..cli_utils import handle_errors
from ..exit_codes import DV_COMMAND_ERROR
from ..output import emit_error, emit_success
from ..services import AgentCheckoutService


def _run_with_progress(progress_iter, quiet: bool = False):
    """Print progress messages to stderr and return the generator's result."""
    while True:
        try:
            message = next(progress_iter)
        except StopIteration as done:
            return done.value
        if not quiet:
            print(message, file=sys.stderr)


@click.command('agent-checkout')
@click.argument('version')
@click.argument('checkout_dir', type=click.Path(file_okay=False, path_type=Path))
@click.option('--repository-id', '-r', default=None,
              help='Repository to clone (default: diversion.repository_id from config)')
@click.option('--clean', is_flag=True, help='Remove the directory and clone a fresh workspace')
@click.option('--quiet', '-q', is_flag=True, help='Suppress progress messages')
@click.pass_context
@handle_errors
def agent_checkout_cmd(ctx, version, checkout_dir, repository_id, clean, quiet):
    """Bring CHECKOUT_DIR to VERSION using the dv client on this agent.

    A workspace is cloned first when CHECKOUT_DIR is not one yet or
    --clean is given. Progress goes to stderr.

    \b
    Examples:
        dvsync agent-checkout dv.commit.45 work/src -r dv.repo.1234
        dvsync agent-checkout dv.commit.45 work/src --clean
    """
    from .sync import get_sync

    sync = get_sync(ctx)
    settings = sync.settings
    service = AgentCheckoutService(
        executable=settings.executable,
        max_attempts=settings.max_checkout_retries,
        retry_delay=settings.checkout_retry_delay,
    )

    if not service.can_checkout():
        emit_error(
            f"Diversion CLI '{settings.executable}' is not available on this agent",
            type="dv_unavailable",
        )
        ctx.exit(DV_COMMAND_ERROR)

    workspace = _run_with_progress(
        service.update_sources(
            repository_id or settings.repository_id,
            version,
            checkout_dir,
            clean=clean,
        ),
        quiet=quiet,
    )
    emit_success(
        f"Checked out {version}",
        data={'version': version, 'checkout_dir': str(workspace.path)},
    )

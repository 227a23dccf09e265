"""
Common CLI utilities and decorators for consistent command behavior.
"""

import sys
import click
from functools import wraps

from .exit_codes import (
    INTERRUPTED,
    get_exit_code_for_exception, CommandError
)
from .output import emit_error


def handle_errors(func):
    """
    Decorator that provides consistent error handling:
    - CommandError subclasses exit with their own exit code
    - Other exceptions exit with the code mapped from their type
    - Errors are reported on stderr as a JSON object
    """
    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except KeyboardInterrupt:
            emit_error("Interrupted by user", type="interrupted")
            sys.exit(INTERRUPTED)
        except (click.ClickException, click.exceptions.Exit, click.Abort):
            # Click exceptions already have their exit code
            raise
        except CommandError as e:
            emit_error(str(e), type=type(e).__name__, context=_error_context(e))
            sys.exit(e.exit_code)
        except Exception as e:
            emit_error(f"Command failed: {e}", type=type(e).__name__)
            sys.exit(get_exit_code_for_exception(e))

    return wrapper


def _error_context(error: Exception) -> dict:
    """Pick the operator-relevant attributes off an engine error."""
    context = {}
    for name in ('version', 'path', 'attempts', 'returncode', 'commit_id'):
        value = getattr(error, name, None)
        if value is not None:
            context[name] = value
    return context


# Standard options that many commands share
common_options = {
    'pretty': click.option('--pretty', is_flag=True,
                           help='Display as a formatted table instead of JSONL'),
    'dry_run': click.option('--dry-run', is_flag=True,
                            help='Preview changes without writing anything'),
}


def add_common_options(*option_names):
    """
    Decorator to add common options to a command.

    Example:
        @add_common_options('pretty', 'dry_run')
        def my_command(pretty, dry_run):
            ...
    """
    def decorator(func):
        for name in reversed(option_names):
            if name in common_options:
                func = common_options[name](func)
        return func
    return decorator

"""
Machine-readable output for dvsync commands.

Results go to stdout one JSON object per line; errors go to stderr as a
single JSON object so scripts can tell them apart. Tables for --pretty
live in render.py.
"""

import json
import sys
from typing import Any, Dict, Iterable, Optional


def _write(obj: Dict[str, Any], stream) -> None:
    print(json.dumps(obj, ensure_ascii=False), file=stream, flush=True)


def emit(items: Iterable[Any]) -> None:
    """Write each item's to_dict() (or the dict itself) as a JSON line."""
    for item in items:
        _write(item if isinstance(item, dict) else item.to_dict(), sys.stdout)


def emit_error(error: str, type: str = "error", context: Optional[Dict[str, Any]] = None) -> None:
    """
    Report a failure on stderr.

    Args:
        error: Message for the operator
        type: Exception class name or a short tag such as "connection_failed"
        context: Versions, paths or command details attached to the error
    """
    obj = {'error': error, 'type': type}
    if context:
        obj['context'] = context
    _write(obj, sys.stderr)


def emit_success(message: str, data: Optional[Dict[str, Any]] = None) -> None:
    obj = {'success': True, 'message': message}
    if data:
        obj['data'] = data
    _write(obj, sys.stdout)

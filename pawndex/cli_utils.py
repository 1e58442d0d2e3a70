"""
Common CLI utilities and decorators for consistent command behavior.
"""

import json
import logging
import sys
from functools import wraps
from typing import Any, Generator

import click

from .errors import PawndexError
from .exit_codes import (
    INTERRUPTED,
    CommandError,
    get_exit_code_for_exception,
)

logger = logging.getLogger(__name__)


def standard_command():
    """
    Decorator that provides standard CLI behavior:
    - Clean JSON output on stdout
    - Errors as a JSON object on stdout plus a message on stderr
    - Exit code chosen from the exception type
    """
    def decorator(func):

        @wraps(func)
        def wrapper(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            except KeyboardInterrupt:
                click.echo("Interrupted by user", err=True)
                sys.exit(INTERRUPTED)
            except click.ClickException:
                # Click exceptions already have their exit code
                raise
            except (CommandError, PawndexError) as e:
                exit_code = get_exit_code_for_exception(e)
                click.echo(f"Error: {e}", err=True)
                print(json.dumps({
                    "error": str(e),
                    "type": type(e).__name__,
                    "exit_code": exit_code,
                }, ensure_ascii=False), flush=True)
                sys.exit(exit_code)

        return wrapper
    return decorator


def output_result(result: Any):
    """
    Standard output handler for results: one JSON object per line.

    Args:
        result: The result to output (dict, list, or generator)
    """
    if isinstance(result, (Generator, list, tuple)):
        for item in result:
            print(json.dumps(item, ensure_ascii=False), flush=True)
    elif isinstance(result, dict):
        print(json.dumps(result, ensure_ascii=False), flush=True)


pretty_option = click.option('--pretty', is_flag=True, help='Display as a formatted table')


def get_app(ctx: click.Context):
    """
    The Pawndex instance for this invocation, built on first use.

    Tests can pre-populate ``ctx.obj['app']``.
    """
    from .api import Pawndex

    obj = ctx.ensure_object(dict)
    if 'app' not in obj:
        obj['app'] = Pawndex(config=obj.get('config'))
    return obj['app']

"""
Common CLI utilities and decorators for consistent command behavior.
"""

import json
import logging
import sys
from functools import wraps
from typing import Generator

import click
from rich.console import Console

from .exit_codes import (
    SUCCESS, INTERRUPTED,
    get_exit_code_for_exception, CommandError
)
from .format_utils import FORMATS, format_output, get_format_from_env

logger = logging.getLogger(__name__)

err_console = Console(stderr=True)


def standard_command(func):
    """
    Decorator that provides standard CLI behavior:
    - Clean JSON output on stdout
    - Human-readable errors on stderr
    - --verbose/-v raises the log level to DEBUG
    - --quiet/-q suppresses data output
    - Exit codes from tagregistry.exit_codes

    The wrapped command returns a dict, a list/tuple or a generator of
    dicts to be formatted, or None when it prints its own output.
    """
    @wraps(func)
    def wrapper(*args, **kwargs):
        verbose = kwargs.get('verbose', False)
        quiet = kwargs.get('quiet', False)
        output_format = kwargs.get('format') or get_format_from_env('jsonl')
        kwargs['format'] = output_format

        if verbose:
            logging.getLogger('tagregistry').setLevel(logging.DEBUG)

        try:
            result = func(*args, **kwargs)

            if quiet:
                if isinstance(result, Generator):
                    for _ in result:
                        pass
            elif result is None or output_format == 'table':
                pass
            else:
                if isinstance(result, dict):
                    items = iter([result])
                elif isinstance(result, (list, tuple)):
                    items = iter(result)
                else:
                    items = result
                for line in format_output(items, output_format):
                    print(line, flush=True)

            sys.exit(SUCCESS)

        except KeyboardInterrupt:
            err_console.print("[red]Interrupted by user[/red]")
            sys.exit(INTERRUPTED)
        except click.ClickException:
            raise
        except CommandError as e:
            err_console.print(f"[red]Error:[/red] {e}")
            if not quiet:
                error_obj = {
                    "error": str(e),
                    "type": type(e).__name__,
                    "exit_code": e.exit_code,
                }
                print(json.dumps(error_obj, ensure_ascii=False), flush=True)
            sys.exit(e.exit_code)
        except Exception as e:
            logger.debug("Command failed", exc_info=True)
            err_console.print(f"[red]Command failed:[/red] {e}")
            if not quiet:
                error_obj = {
                    "error": str(e),
                    "type": type(e).__name__,
                }
                print(json.dumps(error_obj, ensure_ascii=False), flush=True)
            sys.exit(get_exit_code_for_exception(e))

    return wrapper


# Standard options that many commands share
common_options = {
    'verbose': click.option('-v', '--verbose', is_flag=True,
                            help='Show debug logging on stderr'),
    'quiet': click.option('-q', '--quiet', is_flag=True,
                          help='Suppress data output'),
    'format': click.option('-f', '--format',
                           type=click.Choice(FORMATS + ('table',)),
                           help='Output format (default: jsonl, or from TAGREGISTRY_FORMAT env)'),
    'as_user': click.option('--as', 'as_user', metavar='USER',
                            help='Act as this user; reads default to anonymous, writes without --as skip permission checks'),
}


def add_common_options(*option_names):
    """
    Decorator to add common options to a command.

    Example:
        @add_common_options('verbose', 'format')
        def my_command(verbose, format):
            ...
    """
    def decorator(func):
        for name in reversed(option_names):
            if name in common_options:
                func = common_options[name](func)
        return func
    return decorator

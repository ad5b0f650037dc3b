"""
Common CLI utilities and decorators for consistent command behavior.
"""

import json
import logging
import sys
import click
from functools import wraps
from typing import Iterable, Optional

from .domain.operation import OperationDetail, OperationSummary
from .exit_codes import (
    SUCCESS, INTERRUPTED,
    get_exit_code_for_exception, CommandError, PartialSuccessError
)
from .render import render_details_table, print_summary

logger = logging.getLogger(__name__)


def standard_command(func):
    """
    Decorator that provides standard CLI behavior:
    - Clean JSON output on stdout, logs on stderr
    - Consistent error handling with specific exit codes

    The wrapped command returns nothing on success; errors become a JSON
    error object on stdout and the matching exit code.
    """
    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            func(*args, **kwargs)
        except KeyboardInterrupt:
            logger.error("Interrupted by user")
            sys.exit(INTERRUPTED)
        except click.ClickException:
            # Click exceptions already have their exit code
            raise
        except CommandError as e:
            logger.error(str(e))
            error_obj = {
                "error": str(e),
                "type": type(e).__name__,
                "exit_code": e.exit_code
            }
            # Add extra fields for PartialSuccessError
            if isinstance(e, PartialSuccessError):
                error_obj['succeeded'] = e.succeeded
                error_obj['failed'] = e.failed
            print(json.dumps(error_obj, ensure_ascii=False), flush=True)
            sys.exit(e.exit_code)
        except Exception as e:
            logger.error(f"Command failed: {e}")
            error_obj = {
                "error": str(e),
                "type": type(e).__name__
            }
            print(json.dumps(error_obj, ensure_ascii=False), flush=True)
            sys.exit(get_exit_code_for_exception(e))
        sys.exit(SUCCESS)

    return wrapper


def emit_details(
    details: Iterable[OperationDetail],
    summary_of,
    pretty: bool = False,
    strict: bool = False,
    title: str = "Packages"
) -> Optional[OperationSummary]:
    """
    Stream details as JSONL (or collect them for a table) and finish the run.

    Args:
        details: Details as produced by a SyncService workflow
        summary_of: Callable returning the run's OperationSummary once drained
        pretty: Render a rich table instead of JSONL
        strict: Raise PartialSuccessError when any package failed
        title: Table title for pretty output
    """
    collected = []
    for detail in details:
        if pretty:
            collected.append(detail)
        else:
            print(json.dumps(detail.to_dict(), ensure_ascii=False), flush=True)

    summary = summary_of()
    if summary is None:
        return None

    if pretty:
        render_details_table(collected, title=title)
        print_summary(summary)
    else:
        print(json.dumps(summary.to_dict(), ensure_ascii=False), flush=True)

    if strict and not summary.success:
        raise PartialSuccessError(
            f"{summary.failed} of {summary.total} packages failed",
            succeeded=summary.succeeded,
            failed=summary.failed,
        )
    return summary


# Standard options that many commands share
common_options = {
    'workers': click.option('-w', '--workers', type=click.IntRange(min=1),
                            help='Number of concurrent workers (default: from config)'),
    'pretty': click.option('--pretty', is_flag=True,
                           help='Render a table instead of JSONL'),
    'strict': click.option('--strict', is_flag=True,
                           help='Exit non-zero if any package failed'),
}


def add_common_options(*option_names):
    """
    Decorator to add common options to a command.

    Example:
        @add_common_options('workers', 'pretty')
        def my_command(workers, pretty):
            ...
    """
    def decorator(func):
        for name in reversed(option_names):
            if name in common_options:
                func = common_options[name](func)
        return func
    return decorator

"""CLI error rendering: human-readable by default, JSON on request."""

import json
import sys
from typing import NoReturn

from rich.console import Console

from contextpack.foundation.errors import ContextPackError, ErrorCode

err_console = Console(stderr=True)


def handle_error(error: Exception, json_output: bool = False) -> NoReturn:
    """Print an error with its recovery hint and exit with status 1.

    Args:
        error: The error to report. Non-ContextPackError exceptions are
            reported with the fetch_failed code.
        json_output: Emit a single JSON object on stderr instead of text.

    Raises:
        SystemExit: Always, with code 1.
    """
    if isinstance(error, ContextPackError):
        code, hint, spec = error.code, error.hint, error.spec
    else:
        code, hint, spec = ErrorCode.FETCH_FAILED, "", None

    if json_output:
        payload = {
            "error": True,
            "code": code.value,
            "message": str(error),
            "spec": spec,
            "hint": hint,
        }
        sys.stderr.write(json.dumps(payload) + "\n")
    else:
        err_console.print(f"[red]Error ({code.value}):[/red] {error}", highlight=False)
        if hint:
            err_console.print(f"[dim]Hint: {hint}[/dim]", highlight=False)
    sys.exit(1)

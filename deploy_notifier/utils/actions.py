"""GitHub Actions workflow commands.

The orchestrator reports failures and warnings through plain callables so it
can be exercised without a runner. These are the callables the CLI wires in:
they print ``::error::`` and ``::warning::`` lines, which the runner turns
into annotations on the workflow run.

See https://docs.github.com/actions/using-workflows/workflow-commands-for-github-actions
"""

from collections.abc import Callable

import click
import structlog

log = structlog.get_logger(__name__)

Reporter = Callable[[str], None]


def escape_data(value: str) -> str:
    """Escape a message so multi-line text survives as a single command."""
    return value.replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")


def issue_command(command: str, message: str) -> None:
    """Write a workflow command to stdout."""
    click.echo(f"::{command}::{escape_data(message)}")


def set_failed(message: str) -> None:
    """Report a failed run.

    The exit code is set by the caller; this only emits the annotation.
    """
    log.error("run_failed", message=message)
    issue_command("error", message)


def warning(message: str) -> None:
    """Report a warning annotation."""
    log.warning("run_warning", message=message)
    issue_command("warning", message)

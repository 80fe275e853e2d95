"""
CLI commands for maintenance (rebuild, check).

Author: Vasiliy Zdanovskiy
email: vasilyvz@gmail.com
"""

# mypy: ignore-errors

from typing import Optional

import click

from ..core.constants import EXIT_ERROR
from .context import echo_json, get_service, handle_errors


@click.command()
@click.option("--root", "-r", type=int, help="Renumber only the subtree under this node")
@click.pass_context
@handle_errors
def rebuild(ctx: click.Context, root: Optional[int]) -> None:
    """
    Recompute all intervals from parent pointers.

    Run it after bulk edits made outside the engine. Run it offline: readers
    see the old numbering until it finishes.
    """
    service = get_service(ctx)
    closing = service.rebuild(root)
    echo_json({"root": root, "closing": closing})


@click.command()
@click.pass_context
@handle_errors
def check(ctx: click.Context) -> None:
    """Verify every interval invariant; exit 1 if any is violated."""
    service = get_service(ctx)
    violations = service.check_integrity(raise_on_error=False)
    echo_json({"consistent": not violations, "violations": violations})
    if violations:
        raise click.exceptions.Exit(EXIT_ERROR)

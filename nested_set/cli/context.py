"""
Shared helpers for CLI commands: service construction and error reporting.

Author: Vasiliy Zdanovskiy
email: vasilyvz@gmail.com
"""

# mypy: ignore-errors

import functools
import json
import logging
from typing import Any, Callable

import click

from ..core.constants import EXIT_ERROR, EXIT_RETRYABLE
from ..core.exceptions import NestedSetError
from ..core.service import NestedSetService
from ..logging import configure_logging

logger = logging.getLogger(__name__)


def get_service(ctx: click.Context) -> NestedSetService:
    """Build the service from the group's config; closed when the command ends."""
    config = ctx.obj["config"]
    configure_logging(config.logging.level, config.logging.file)
    service = NestedSetService.from_config(config)
    ctx.call_on_close(service.close)
    return service


def echo_json(data: Any) -> None:
    click.echo(json.dumps(data, indent=2, default=str))


def handle_errors(func: Callable) -> Callable:
    """Report domain errors and exit with 1, or 75 when the caller may retry."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return func(*args, **kwargs)
        except NestedSetError as e:
            logger.debug(f"Command failed: {e.code}: {e.message}")
            click.echo(f"❌ Error: {e.message}", err=True)
            if e.retryable:
                click.echo("The operation was rolled back and can be retried.", err=True)
            raise click.exceptions.Exit(EXIT_RETRYABLE if e.retryable else EXIT_ERROR)

    return wrapper

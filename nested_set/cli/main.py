"""
Main CLI entry point for the nested set engine.

Author: Vasiliy Zdanovskiy
email: vasilyvz@gmail.com
"""

# mypy: ignore-errors

import click
import importlib
from pathlib import Path
from typing import Dict, Optional

from ..core.config import NestedSetConfig, StoreConfig, load_config
from ..core.constants import LOG_LEVELS

_COMMANDS: Dict[str, str] = {
    "add": "nested_set.cli.node_cli:add",
    "delete": "nested_set.cli.node_cli:delete",
    "move": "nested_set.cli.node_cli:move",
    "reparent": "nested_set.cli.node_cli:reparent",
    "show": "nested_set.cli.node_cli:show",
    "rebuild": "nested_set.cli.maintenance_cli:rebuild",
    "check": "nested_set.cli.maintenance_cli:check",
}

DEFAULT_DB_PATH = "nested_set.db"


def _load_click_command(import_path: str) -> click.Command:
    module_path, obj_name = import_path.split(":", 1)
    mod = importlib.import_module(module_path)
    return getattr(mod, obj_name)


class LazyGroup(click.Group):
    """Click group that imports subcommand modules on demand."""

    def list_commands(self, ctx: click.Context) -> list[str]:
        return sorted(_COMMANDS.keys())

    def get_command(self, ctx: click.Context, cmd_name: str) -> click.Command | None:
        target = _COMMANDS.get(cmd_name)
        if not target:
            return None
        return _load_click_command(target)


@click.group(cls=LazyGroup)
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    help="JSON configuration file",
)
@click.option(
    "--db",
    "db_path",
    type=click.Path(dir_okay=False),
    help=f"SQLite database path when no config is given (default: {DEFAULT_DB_PATH})",
)
@click.option(
    "--log-level",
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    help="Override the configured log level",
)
@click.pass_context
def cli(
    ctx: click.Context,
    config_path: Optional[Path],
    db_path: Optional[str],
    log_level: Optional[str],
) -> None:
    """Nested set engine - maintain interval-encoded trees."""
    if config_path is not None:
        try:
            config = load_config(config_path)
        except ValueError as e:
            raise click.BadParameter(str(e), param_hint="--config")
        if db_path:
            config.store = StoreConfig(
                type="sqlite", path=db_path, lock_timeout=config.store.lock_timeout
            )
    else:
        config = NestedSetConfig(
            store=StoreConfig(type="sqlite", path=db_path or DEFAULT_DB_PATH)
        )
    if log_level:
        config.logging.level = log_level.upper()
    ctx.obj = {"config": config}


if __name__ == "__main__":
    cli()

"""
CLI commands for node operations (add, delete, move, reparent, show).

Author: Vasiliy Zdanovskiy
email: vasilyvz@gmail.com
"""

# mypy: ignore-errors

import json
from typing import Optional

import click

from ..core.constants import EXIT_ERROR
from ..core.node import MoveDirection
from .context import echo_json, get_service, handle_errors


def _parse_payload(ctx, param, value: Optional[str]) -> dict:
    if value is None:
        return {}
    try:
        payload = json.loads(value)
    except json.JSONDecodeError as e:
        raise click.BadParameter(f"Invalid JSON: {e}")
    if not isinstance(payload, dict):
        raise click.BadParameter("Payload must be a JSON object")
    return payload


@click.command()
@click.option("--parent", "-p", type=int, help="Parent node id (omit for a new root)")
@click.option(
    "--payload",
    callback=_parse_payload,
    help='Domain fields as a JSON object, e.g. \'{"name": "Books"}\'',
)
@click.pass_context
@handle_errors
def add(ctx: click.Context, parent: Optional[int], payload: dict) -> None:
    """
    Create a node as the last child of PARENT.

    Example:
        nested-set add --payload '{"name": "Electronics"}'
        nested-set add --parent 1 --payload '{"name": "Phones"}'
    """
    service = get_service(ctx)
    node = service.create_node(parent, payload)
    echo_json(node.to_dict())


@click.command()
@click.argument("node_id", type=int)
@click.pass_context
@handle_errors
def delete(ctx: click.Context, node_id: int) -> None:
    """Delete NODE_ID together with its whole subtree."""
    service = get_service(ctx)
    removed = service.delete_node(node_id)
    echo_json({"deleted": removed})


@click.command()
@click.argument("node_id", type=int)
@click.argument(
    "direction", type=click.Choice(["up", "down"], case_sensitive=False)
)
@click.pass_context
@handle_errors
def move(ctx: click.Context, node_id: int, direction: str) -> None:
    """Swap NODE_ID with its previous (up) or next (down) sibling."""
    service = get_service(ctx)
    if MoveDirection(direction.upper()) is MoveDirection.UP:
        node = service.move_up(node_id)
    else:
        node = service.move_down(node_id)
    echo_json(node.to_dict())


@click.command()
@click.argument("node_id", type=int)
@click.option("--parent", "-p", type=int, help="New parent id (omit to make it a root)")
@click.pass_context
@handle_errors
def reparent(ctx: click.Context, node_id: int, parent: Optional[int]) -> None:
    """Move NODE_ID and its subtree under a new parent."""
    service = get_service(ctx)
    node = service.update_node(node_id, parent)
    echo_json(node.to_dict())


@click.command()
@click.argument("node_id", type=int, required=False)
@click.pass_context
@handle_errors
def show(ctx: click.Context, node_id: Optional[int]) -> None:
    """Print the forest (or the subtree under NODE_ID) as nested JSON."""
    service = get_service(ctx)
    if node_id is not None and service.get_node(node_id) is None:
        click.echo(f"❌ Error: Node not found with id: {node_id}", err=True)
        raise click.exceptions.Exit(EXIT_ERROR)
    trees = service.get_tree(node_id)
    echo_json([tree.to_dict() for tree in trees])

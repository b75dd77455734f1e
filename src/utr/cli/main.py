"""
UTR command-line interface.

- ``utr validate FILE``: decode an execute request and list its actions
- ``utr simulate FILE``: run a scenario's request against an in-memory world
"""

from __future__ import annotations

import json
import logging
import sys
from typing import Any, Dict

import click
import yaml
from pydantic import ValidationError as SchemaValidationError
from rich import box
from rich.console import Console
from rich.table import Table

from ..core import config
from ..core.input_validation_schemas import ExecuteRequestInput
from ..core.logging_config import setup_logging
from ..core.router import UniversalTokenRouter
from ..core.router.types import Action, ExecutionReceipt
from ..core.router_exceptions import RouterError, revert_reason
from .scenario import build_world, holdings, load_document, load_scenario

logger = logging.getLogger(__name__)
console = Console()


def _cli_fail(exc: Exception, exit_code: int = 1) -> None:
    """Centralized CLI error handler for consistent messaging/exit codes."""
    logger.error("CLI error: %s", exc, exc_info=True)
    console.print(f"[bold red]Error:[/] {exc}")
    sys.exit(exit_code)


def _actions_table(actions: tuple[Action, ...]) -> Table:
    table = Table(title="Actions", box=box.SIMPLE_HEAVY)
    table.add_column("#", justify="right")
    table.add_column("Kind")
    table.add_column("Target")
    table.add_column("Payload", justify="right")
    table.add_column("Tokens")
    for index, action in enumerate(actions):
        tokens = "\n".join(
            f"{t.asset.asset_class.name} {t.asset.contract[:10]} "
            f"amount={t.amount} offset={t.offset} to={t.recipient[:10]}"
            for t in action.tokens
        )
        table.add_row(
            str(index),
            action.kind.name,
            action.target if action.has_call else "-",
            f"{len(action.payload)} B",
            tokens or "-",
        )
    return table


def _receipt_dict(receipt: ExecutionReceipt) -> Dict[str, Any]:
    return {
        "caller": receipt.caller,
        "actions_executed": receipt.actions_executed,
        "optional_failures": [
            {"action_index": index, "reason": reason}
            for index, reason in receipt.optional_failures
        ],
        "refunded": receipt.refunded,
        "last_result": "0x" + receipt.last_result.hex(),
    }


@click.group()
@click.option("--json-output", is_flag=True, help="Output raw JSON")
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default=None,
    help="Log level (defaults to UTR_LOG_LEVEL)",
)
@click.pass_context
def cli(ctx: click.Context, json_output: bool, log_level: str | None) -> None:
    """Universal Token Router - atomic multi-asset action execution."""
    ctx.ensure_object(dict)
    setup_logging(
        name="utr",
        log_file=config.LOG_FILE,
        level=(log_level or config.LOG_LEVEL).upper(),
        environment=config.ENVIRONMENT,
    )
    ctx.obj["json_output"] = json_output


@cli.command("validate")
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
@click.pass_context
def validate(ctx: click.Context, path: str) -> None:
    """Decode an execute request (JSON or YAML) and list its actions."""
    try:
        document = load_document(path)
        if isinstance(document, dict) and "request" in document:
            document = document["request"]
        request = ExecuteRequestInput.model_validate(document)
        actions = request.to_actions()
    except (SchemaValidationError, yaml.YAMLError, RouterError, ValueError) as exc:
        _cli_fail(exc)
        return

    if ctx.obj["json_output"]:
        click.echo(json.dumps({"valid": True, "caller": request.caller, "actions": len(actions)}))
        return

    console.print(f"[bold green]Valid request[/] from {request.caller}, value {request.value}")
    console.print(_actions_table(actions))


@cli.command("simulate")
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
@click.pass_context
def simulate(ctx: click.Context, path: str) -> None:
    """Execute a scenario's request against an in-memory world."""
    try:
        scenario = load_scenario(path)
        state = build_world(scenario)
        actions = scenario.request.to_actions()
    except (SchemaValidationError, yaml.YAMLError, RouterError, ValueError) as exc:
        _cli_fail(exc)
        return

    router = UniversalTokenRouter(state, scenario.router_address)
    try:
        receipt = router.execute(scenario.request.caller, actions, scenario.request.value)
    except RouterError as exc:
        reason = revert_reason(exc)
        if ctx.obj["json_output"]:
            click.echo(json.dumps({"success": False, "reason": reason}))
        else:
            console.print(f"[bold red]Reverted:[/] {reason}")
        sys.exit(1)
    except Exception as exc:
        _cli_fail(exc)
        return

    if ctx.obj["json_output"]:
        click.echo(
            json.dumps(
                {"success": True, "receipt": _receipt_dict(receipt), "holdings": holdings(state)},
                default=str,
            )
        )
        return

    console.print(f"[bold green]Executed[/] {receipt.actions_executed} actions, refunded {receipt.refunded}")
    for index, reason in receipt.optional_failures:
        console.print(f"[yellow]Optional action {index} failed:[/] {reason}")

    table = Table(title="Holdings", box=box.SIMPLE_HEAVY)
    for column in ("Asset", "Id", "Holder", "Amount"):
        table.add_column(column)
    for row in holdings(state):
        table.add_row(row["asset"], row["id"], row["holder"], str(row["amount"]))
    console.print(table)


def main() -> None:
    """Main CLI entry point"""
    try:
        cli(obj={})
    except KeyboardInterrupt:
        console.print("\n[yellow]Operation cancelled by user[/]")
        sys.exit(130)


if __name__ == "__main__":
    main()

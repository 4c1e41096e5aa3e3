"""Diff command for showing what a deploy would change without executing it."""

import json
import sys

import click
from rich.console import Console
from rich.syntax import Syntax

from ..orchestrator.resolver import CREATE, UPDATE, DiffReport
from ..utils.errors import PricectlError
from ..utils.logging import get_logger
from .app import create_orchestrator, load_app

logger = get_logger(__name__)
console = Console()


@click.command()
@click.option('--app', '-a', help='Python file that defines the stack')
@click.option('--state-dir', help='Directory holding pricectl.state.json')
@click.option('--json-output', is_flag=True, help='Output in JSON format')
@click.pass_context
def diff(ctx, app, state_dir, json_output):
    """Show what would change in a deployment without executing it."""
    config = ctx.obj['config']
    try:
        stack = load_app(app or config.settings.app)
        manifest = stack.synth()
        orchestrator = create_orchestrator(config, stack, state_dir)
    except PricectlError as e:
        console.print(f"[red]Error:[/red] {e.to_user_message()}")
        sys.exit(1)

    report = orchestrator.diff(manifest)

    if json_output:
        click.echo(json.dumps(report.to_dict(), indent=2, default=str))
    else:
        print_diff_report(report)

    if report.has_errors():
        sys.exit(1)


def print_diff_report(report: DiffReport) -> None:
    """Render a diff report: [+] for creates, [~] with a patch for changes."""
    console.print(f"Stack: [bold]{report.stack_id}[/bold]\n")

    for resource_diff in report.diffs:
        entry = resource_diff.entry
        label = f"{entry.path} \\[{entry.kind}]"

        if resource_diff.action == CREATE:
            console.print(f"[green]\\[+] {label}[/green]")
            console.print("    [dim]Will be created[/dim]")
        elif resource_diff.action == UPDATE:
            note = " [bold red](replacement)[/bold red]" if resource_diff.replacement else ""
            console.print(f"[yellow]\\[~] {label}[/yellow]{note}")
            console.print(f"    [dim]{resource_diff.physical_id}[/dim]")
            console.print(Syntax(resource_diff.patch, "diff", theme="ansi_dark"))

    for error in report.errors:
        console.print(f"[red]\\[!] {error['id']} \\[{error['kind']}]: {error['error']}[/red]")

    if not report.has_changes() and not report.has_errors():
        console.print("[green]No changes detected[/green]")
        return

    summary = report.summary()
    console.print(
        f"\n[bold]Summary:[/bold] {summary[CREATE]} to create, "
        f"{summary[UPDATE]} to update, {summary['no_change']} unchanged"
    )

"""Main CLI entry point."""

import json
import sys
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn, BarColumn, TaskProgressColumn
from rich.table import Table
from rich.panel import Panel

from pricectl.cli.app import create_orchestrator, load_app
from pricectl.cli.diff import diff, print_diff_report
from pricectl.config.parser import Config, ConfigValidationError
from pricectl.core.manifest import StackManifest
from pricectl.utils.errors import PricectlError
from pricectl.utils.logging import setup_logging, get_logger

console = Console()
logger = get_logger(__name__)

MANIFEST_FILE_NAME = 'manifest.json'

STATUS_STYLES = {
    'created': 'green',
    'updated': 'yellow',
    'unchanged': 'dim',
    'deleted': 'red',
    'deactivated': 'yellow',
    'failed': 'red',
    'skipped': 'dim',
}


@click.group()
@click.option('--config', 'config_path', default='pricectl.yaml', help='Path to configuration file')
@click.option('--log-level', type=click.Choice(['debug', 'info', 'warning', 'error']),
              help='Console log level (overrides configuration)')
@click.pass_context
def cli(ctx, config_path, log_level):
    """Stripe pricing as code."""
    ctx.ensure_object(dict)
    config = load_config(config_path, log_level)
    ctx.obj['config'] = config

    setup_logging(config.settings.log_level, config.settings.log_dir)


cli.add_command(diff)


def load_config(config_path: str, log_level: Optional[str] = None) -> Config:
    """Load and validate configuration file."""
    try:
        return Config(config_path).load(overrides={'log_level': log_level})
    except ConfigValidationError as e:
        console.print("[red]Configuration validation failed:[/red]\n")
        console.print(str(e))
        sys.exit(1)
    except PricectlError as e:
        console.print(f"[red]Error loading configuration:[/red] {e.to_user_message()}")
        sys.exit(1)


def fail(error: PricectlError) -> None:
    """Print a pricectl error with its suggestions and exit 1."""
    console.print(f"[red]Error:[/red] {error.to_user_message()}")
    sys.exit(1)


def make_progress() -> Progress:
    return Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TaskProgressColumn(),
        console=console
    )


class RichProgressCallback:
    """Advances a rich task once per manifest entry."""

    def __init__(self, progress: Progress, task_id, verb: str):
        self.progress = progress
        self.task_id = task_id
        self.verb = verb

    def __call__(self, resource_id: str, status: str):
        style = STATUS_STYLES.get(status, 'white')
        self.progress.update(
            self.task_id,
            advance=1,
            description=f"[cyan]{self.verb}:[/cyan] {resource_id} [{style}]{status}[/{style}]"
        )


def _summary_lines(summary: dict, errors: int) -> str:
    lines = [f"{status.capitalize()}: {count}" for status, count in sorted(summary.items())]
    if errors:
        lines.append(f"Errors: {errors}")
    return "\n".join(lines) or "Nothing to do"


def _print_errors(errors) -> None:
    console.print("\n[bold]Errors:[/bold]")
    for error in errors:
        console.print(f"  [red]✗[/red] {error.id} \\[{error.kind}]: {error.error}")


@cli.command()
@click.option('--app', '-a', help='Python file that defines the stack')
@click.option('--output', '-o', help='Output directory for the manifest')
@click.option('--json-output', is_flag=True, help='Print the manifest to stdout instead')
@click.pass_context
def synth(ctx, app, output, json_output):
    """Synthesize the stack into a JSON manifest."""
    settings = ctx.obj['config'].settings
    try:
        stack = load_app(app or settings.app)
        manifest: StackManifest = stack.synth()
    except PricectlError as e:
        fail(e)

    if json_output:
        click.echo(json.dumps(manifest.to_dict(), indent=2))
        return

    manifest_path = manifest.write(Path(output or settings.output_dir) / MANIFEST_FILE_NAME)
    logger.info(f"Wrote manifest for {manifest.stack_id} to {manifest_path}")

    console.print(f"[green]✓ Synthesized stack[/green] [bold]{manifest.stack_id}[/bold]")
    console.print(f"  Resources: {len(manifest.resources)}")
    console.print(f"  Output: {manifest_path}\n")

    for entry in manifest.resources:
        console.print(f"  {entry.path} [dim]\\[{entry.kind}][/dim]")


@cli.command()
@click.option('--app', '-a', help='Python file that defines the stack')
@click.option('--state-dir', help='Directory holding pricectl.state.json')
@click.option('--dry-run', is_flag=True, help='Show the diff without changing anything')
@click.pass_context
def deploy(ctx, app, state_dir, dry_run):
    """Create or update the stack's resources in Stripe."""
    config = ctx.obj['config']
    try:
        stack = load_app(app or config.settings.app)
        manifest: StackManifest = stack.synth()
        orchestrator = create_orchestrator(config, stack, state_dir)
    except PricectlError as e:
        fail(e)

    if dry_run:
        console.print("[bold cyan]Dry run: no changes will be made to Stripe[/bold cyan]\n")
        report = orchestrator.diff(manifest)
        print_diff_report(report)
        if report.has_errors():
            sys.exit(1)
        return

    console.print(Panel.fit(
        f"[bold]Deploying {manifest.stack_id}[/bold]\n"
        f"Resources: {len(manifest.resources)}\n"
        f"API version: {manifest.api_version}\n"
        f"State: {orchestrator.state_manager.file_path}",
        title="Deployment",
        border_style="cyan"
    ))

    with make_progress() as progress:
        task_id = progress.add_task("[cyan]Starting deployment...", total=len(manifest.resources))
        result = orchestrator.deploy(
            manifest, progress_callback=RichProgressCallback(progress, task_id, 'Deploying')
        )

    if result.deployed:
        table = Table(title="Deployed Resources")
        table.add_column("Resource", style="cyan")
        table.add_column("Kind")
        table.add_column("Status")
        table.add_column("Stripe ID", style="dim")
        for item in result.deployed:
            style = STATUS_STYLES.get(item.status, 'white')
            table.add_row(item.id, item.kind, f"[{style}]{item.status}[/{style}]", item.physical_id)
        console.print(table)

    if result.has_errors():
        _print_errors(result.errors)

    border = 'red' if result.has_errors() else 'green'
    headline = "[red]✗ Deployment finished with errors[/red]" if result.has_errors() \
        else "[green]✓ Deployment completed[/green]"
    console.print(Panel.fit(
        f"{headline}\n\n{_summary_lines(result.summary(), len(result.errors))}",
        title="Summary",
        border_style=border
    ))

    if result.has_errors():
        sys.exit(1)


@cli.command()
@click.option('--app', '-a', help='Python file that defines the stack')
@click.option('--state-dir', help='Directory holding pricectl.state.json')
@click.option('--force', '-f', is_flag=True, help='Actually destroy; without it only the plan is shown')
@click.pass_context
def destroy(ctx, app, state_dir, force):
    """Delete or deactivate every resource in the stack."""
    config = ctx.obj['config']
    try:
        stack = load_app(app or config.settings.app)
        manifest: StackManifest = stack.synth()
    except PricectlError as e:
        fail(e)

    lines = "\n".join(
        f"  [red]-[/red] {entry.path} \\[{entry.kind}]" for entry in reversed(manifest.resources)
    )
    console.print(Panel.fit(
        f"[bold red]⚠ You are about to destroy stack {manifest.stack_id}[/bold red]\n\n"
        f"{lines or '  (no resources)'}\n\n"
        "Prices, features and meters are deactivated; products and coupons are deleted.",
        title="Destruction Plan",
        border_style="red"
    ))

    if not force:
        console.print("[bold]This action cannot be undone.[/bold] Run again with [cyan]--force[/cyan] to proceed.")
        return

    try:
        orchestrator = create_orchestrator(config, stack, state_dir)
    except PricectlError as e:
        fail(e)

    with make_progress() as progress:
        task_id = progress.add_task("[cyan]Starting destruction...", total=len(manifest.resources))
        result = orchestrator.destroy(
            manifest, progress_callback=RichProgressCallback(progress, task_id, 'Destroying')
        )

    if result.destroyed:
        console.print("\n[bold]Destroyed resources:[/bold]")
        for item in result.destroyed:
            style = STATUS_STYLES.get(item.status, 'white')
            console.print(f"  [{style}]{item.status}[/{style}] {item.id} \\[{item.kind}]")

    if result.has_errors():
        _print_errors(result.errors)
        console.print("\n[yellow]Some resources may need manual cleanup[/yellow]")

    border = 'red' if result.has_errors() else 'green'
    headline = "[red]✗ Destruction finished with errors[/red]" if result.has_errors() \
        else "[green]✓ Destruction completed[/green]"
    console.print(Panel.fit(
        f"{headline}\n\n{_summary_lines(result.summary(), len(result.errors))}",
        title="Summary",
        border_style=border
    ))

    if result.has_errors():
        sys.exit(1)


def main():
    """Main entry point."""
    cli(obj={})


if __name__ == '__main__':
    main()

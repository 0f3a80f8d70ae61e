"""haitask CLI: commit in, task out."""

import json
import logging
from pathlib import Path
from typing import Annotated

import typer
from rich import print as rprint
from rich.markup import escape
from rich.table import Table

from haitask.errors import ConfigError
from haitask.models import RunResult
from haitask.pipeline import run_pipeline
from haitask.settings import CONFIG_FILENAME, Credentials, load_config, missing_credentials, write_default_config

app = typer.Typer(help="haitask: turn Git commits into Jira, Trello or Linear tasks with AI", no_args_is_help=True)

ConfigOpt = Annotated[
    Path | None,
    typer.Option("--config", "-c", help=f"Path to {CONFIG_FILENAME} (default: ./{CONFIG_FILENAME})"),
]


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


def _render_result(result: RunResult) -> None:
    if not result.ok:
        rprint(f"[red]✗[/red] {escape(result.error or '')}")
        return

    if result.skipped:
        rprint(f"[yellow]↷[/yellow] Already created for this commit: [bold]{result.key}[/bold]")
        if result.url:
            rprint(f"  {result.url}")
        return

    if result.dry:
        rprint("[dim](dry run: nothing was sent to the tracker)[/dim]")

    if result.payload:
        table = Table(title="Task payload")
        table.add_column("Field", style="bold")
        table.add_column("Value")
        table.add_row("Title", result.payload.title)
        table.add_row("Priority", result.payload.priority)
        table.add_row("Labels", ", ".join(result.payload.labels) if result.payload.labels else "none")
        table.add_row("Description", result.payload.description)
        rprint(table)

    if result.key:
        verb = "Commented on" if result.commented else "Created"
        rprint(f"[green]✓[/green] {verb} [bold]{result.key}[/bold]")
        if result.url:
            rprint(f"  {result.url}")


@app.command("run")
def run_cmd(
    dry: Annotated[bool, typer.Option("--dry", help="Generate the payload only; do not create a task")] = False,
    commits: Annotated[int, typer.Option("--commits", "-n", min=1, help="Batch the last N commits into one task")] = 1,
    as_json: Annotated[bool, typer.Option("--json", help="Print the result as JSON")] = False,
    config: ConfigOpt = None,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Debug logging")] = False,
) -> None:
    """Create a task from the latest commit(s)."""
    _setup_logging(verbose)
    try:
        cfg = load_config(config)
    except ConfigError as exc:
        result = RunResult(ok=False, error=str(exc))
    else:
        result = run_pipeline(cfg, dry=dry, commits=commits)

    if as_json:
        typer.echo(json.dumps(result.to_json_dict(), indent=2))
    else:
        _render_result(result)

    if not result.ok:
        raise typer.Exit(1)


@app.command("check")
def check_cmd(config: ConfigOpt = None) -> None:
    """Validate .haitaskrc and required credentials without calling any API."""
    try:
        cfg = load_config(config)
    except ConfigError as exc:
        rprint(f"[red]Config error:[/red] {escape(str(exc))}")
        raise typer.Exit(1)

    missing = missing_credentials(cfg, Credentials())
    if missing:
        rprint(f"[red]Missing env keys:[/red] {', '.join(missing)}")
        rprint("Env is read from the process environment and ./.env")
        raise typer.Exit(1)

    rprint(f"[green]✓[/green] Config OK. Target: {cfg.target}. AI: {cfg.ai.provider}.")
    rprint("[green]✓[/green] Env OK.")


@app.command("init")
def init_cmd(
    force: Annotated[bool, typer.Option("--force", help=f"Overwrite an existing {CONFIG_FILENAME}")] = False,
) -> None:
    """Write a template .haitaskrc in the current directory."""
    directory = Path.cwd()
    if not write_default_config(directory, force=force):
        rprint(f"[yellow]{CONFIG_FILENAME} already exists.[/yellow] Use --force to overwrite.")
        raise typer.Exit(0)
    rprint(f"[green]✓[/green] Wrote {directory / CONFIG_FILENAME}")
    rprint("Edit it, then add your API keys to .env and run: haitask check")

"""
Command-line interface for gh-todoist-sync.

This module provides the Typer-based CLI for mirroring GitHub issues and
pull requests into a Todoist project.
"""

import asyncio
import logging
from enum import Enum
from pathlib import Path
from typing import Annotated

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from . import __version__
from .classifier import SectionClassifier
from .config import load_config, read_config_file
from .exceptions import GitHubTodoistSyncError
from .github_client import GitHubClient
from .models import SyncConfig, SyncResult
from .state import SyncStateStore
from .sync import TodoistSync
from .todoist_client import TodoistClient

load_dotenv()

# Create Typer app
app = typer.Typer(
    name="gh-todoist-sync",
    help="Mirror GitHub issues and pull requests into Todoist",
    add_completion=False,
    rich_markup_mode="rich",
)

console = Console()
error_console = Console(stderr=True)


class LogLevel(str, Enum):
    """Log level options."""

    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


ConfigOption = Annotated[
    Path | None,
    typer.Option(
        "-c",
        "--config",
        help="TOML file with section map, tracked and ignored repositories",
        envvar="GH_TODOIST_CONFIG",
        show_default=False,
    ),
]
AccountOption = Annotated[
    str | None,
    typer.Option("--account", help="GitHub account to sync", envvar="GITHUB_ACCOUNT"),
]
GitHubTokenOption = Annotated[
    str | None,
    typer.Option(
        "--github-token",
        help="GitHub API token (or set GITHUB_TOKEN env var)",
        envvar="GITHUB_TOKEN",
        show_default=False,
    ),
]
TodoistTokenOption = Annotated[
    str | None,
    typer.Option(
        "--todoist-token",
        help="Todoist API token (or set TODOIST_TOKEN env var)",
        envvar="TODOIST_TOKEN",
        show_default=False,
    ),
]
ProjectOption = Annotated[
    str | None,
    typer.Option("-p", "--project", help="Target Todoist project name"),
]
StateFileOption = Annotated[
    Path | None,
    typer.Option("--state-file", help="Path of the last-sync state file"),
]
VerboseOption = Annotated[
    bool,
    typer.Option("-v", "--verbose", help="Enable verbose output"),
]


def setup_logging(level: LogLevel, verbose: bool = False) -> None:
    """Configure logging with Rich handler."""
    log_level = getattr(logging, level.value.upper())

    if verbose:
        log_level = logging.DEBUG

    logging.basicConfig(
        level=log_level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=error_console, show_time=False, show_path=False)],
    )
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING if not verbose else logging.DEBUG)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"gh-todoist-sync version {__version__}")
        raise typer.Exit


def _report_error(e: GitHubTodoistSyncError) -> None:
    error_console.print(f"[red]Error:[/red] {e.message}")
    if e.hint:
        error_console.print(f"[dim]Hint: {e.hint}[/dim]")


@app.command()
def sync(
    config_file: ConfigOption = None,
    account: AccountOption = None,
    github_token: GitHubTokenOption = None,
    todoist_token: TodoistTokenOption = None,
    project: ProjectOption = None,
    state_file: StateFileOption = None,
    dry_run: Annotated[
        bool,
        typer.Option(
            "--dry-run",
            "-n",
            help="Show what would happen without making changes",
        ),
    ] = False,
    timeout: Annotated[
        int | None,
        typer.Option(
            "--timeout",
            help="API timeout in seconds",
            min=5,
            max=300,
        ),
    ] = None,
    verbose: VerboseOption = False,
    log_level: Annotated[
        LogLevel,
        typer.Option(
            "--log-level",
            help="Set log level",
        ),
    ] = LogLevel.INFO,
    _version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit",
        ),
    ] = None,
) -> None:
    """
    Run one sync pass.

    Lists the account's public repositories, creates a Todoist task for
    every issue and pull request opened since the last run, and records
    the new last-sync time. Individual failures are reported but do not
    change the exit code.

    Examples:

        gh-todoist-sync sync --config sync.toml

        gh-todoist-sync sync --account octocat --project GitHub --dry-run
    """
    setup_logging(log_level, verbose)

    try:
        config = load_config(
            config_file,
            account=account,
            github_token=github_token,
            todoist_token=todoist_token,
            project_name=project,
            state_file=state_file,
            timeout=timeout,
            dry_run=dry_run or None,
        )
    except GitHubTodoistSyncError as e:
        _report_error(e)
        raise typer.Exit(1) from None

    if config.dry_run:
        console.print("[yellow]Dry run mode - no changes will be written[/yellow]")
    console.print(
        f"Syncing [bold]{config.account}[/bold] -> Todoist project [bold]{config.project_name}[/bold]"
    )

    try:
        result = asyncio.run(TodoistSync(config).run())
    except GitHubTodoistSyncError as e:
        _report_error(e)
        raise typer.Exit(1) from None
    except KeyboardInterrupt:
        error_console.print("\n[yellow]Interrupted[/yellow]")
        raise typer.Exit(130) from None

    _display_result(result)


@app.command()
def sections(
    repos: Annotated[
        list[str] | None,
        typer.Argument(help="Repository names to classify", show_default=False),
    ] = None,
    config_file: ConfigOption = None,
) -> None:
    """
    Show the sections the sync maintains.

    Works offline: prints the section set that would be provisioned and,
    for any repository names given, the section each one maps to.
    """
    try:
        data = read_config_file(config_file) if config_file is not None else {}
        defaults = SyncConfig.model_fields
        classifier = SectionClassifier(
            section_map=data.get("section_map", {}),
            tracked_repos=data.get("tracked_repos", []),
            ignored_repos=data.get("ignored_repos", []),
            default_section=data.get("default_section", defaults["default_section"].default),
            pull_request_section=data.get(
                "pull_request_section", defaults["pull_request_section"].default
            ),
        )
    except GitHubTodoistSyncError as e:
        _report_error(e)
        raise typer.Exit(1) from None

    required = classifier.required_sections()
    table = Table(title="Required sections")
    table.add_column("#", style="dim")
    table.add_column("Section")
    table.add_column("Repositories")

    for i, name in enumerate(required, 1):
        members = sorted(
            repo for repo, section in classifier.section_map.items() if section == name
        )
        if name in classifier.tracked_repos and name not in classifier.section_map:
            members.append(name)
        table.add_row(str(i), name, ", ".join(members) or "-")

    console.print(table)

    for repo in repos or []:
        if classifier.is_ignored(repo):
            console.print(f"{repo} -> [dim]ignored[/dim]")
        else:
            console.print(f"{repo} -> [bold]{classifier.section_for(repo)}[/bold]")


@app.command()
def check(
    config_file: ConfigOption = None,
    account: AccountOption = None,
    github_token: GitHubTokenOption = None,
    todoist_token: TodoistTokenOption = None,
    project: ProjectOption = None,
    verbose: VerboseOption = False,
) -> None:
    """
    Check credentials and the target project.

    Verifies that both tokens are accepted and that the Todoist project
    exists.
    """
    setup_logging(LogLevel.WARNING, verbose)

    try:
        config = load_config(
            config_file,
            account=account,
            github_token=github_token,
            todoist_token=todoist_token,
            project_name=project,
        )
    except GitHubTodoistSyncError as e:
        _report_error(e)
        raise typer.Exit(1) from None

    with console.status("Checking connections..."):
        ok = asyncio.run(_run_checks(config))

    if not ok:
        raise typer.Exit(1)
    console.print("\n[green]All checks passed![/green]")


async def _run_checks(config: SyncConfig) -> bool:
    github = GitHubClient(
        account=config.account,
        token=config.github_token,
        base_url=config.github_api_url,
        timeout=config.timeout,
    )
    todoist = TodoistClient(
        token=config.todoist_token,
        base_url=config.todoist_api_url,
        timeout=config.timeout,
    )
    ok = True
    try:
        if await github.check_connection():
            console.print("[green]✓[/green] GitHub token is valid")
        else:
            error_console.print("[red]✗[/red] GitHub token was rejected")
            ok = False

        found = await todoist.find_project(config.project_name)
        if not found.ok:
            error_console.print(f"[red]✗[/red] Todoist API error: {found.error}")
            ok = False
        elif found.value is None:
            error_console.print(
                f"[red]✗[/red] Todoist project '{config.project_name}' not found"
            )
            ok = False
        else:
            console.print(f"[green]✓[/green] Todoist project '{found.value.name}' found")
    finally:
        await github.close()
        await todoist.close()
    return ok


@app.command()
def state(
    config_file: ConfigOption = None,
    state_file: StateFileOption = None,
    reset: Annotated[
        bool,
        typer.Option("--reset", help="Delete the state so the next run backfills"),
    ] = False,
) -> None:
    """
    Show or reset the last-sync time.

    The state file is taken from --state-file, then from the config file,
    then the default used by sync.
    """
    if state_file is None:
        try:
            data = read_config_file(config_file) if config_file is not None else {}
        except GitHubTodoistSyncError as e:
            _report_error(e)
            raise typer.Exit(1) from None
        state_file = Path(data.get("state_file", SyncConfig.model_fields["state_file"].default))

    store = SyncStateStore(state_file)

    if reset:
        try:
            removed = store.clear()
        except GitHubTodoistSyncError as e:
            _report_error(e)
            raise typer.Exit(1) from None
        if removed:
            console.print(f"Removed {state_file}; the next sync is a full backfill")
        else:
            console.print(f"No state at {state_file}")
        return

    last_sync = store.load()
    if last_sync is None:
        console.print("[yellow]Never synced[/yellow]")
    else:
        console.print(f"Last sync: [bold]{last_sync.isoformat()}[/bold]")


def _display_result(result: SyncResult) -> None:
    """Display sync result as a formatted table."""
    action_word = "Dry Run" if result.dry_run else "Sync"

    # Summary panel
    summary = Table.grid(padding=(0, 2))
    summary.add_column(style="bold")
    summary.add_column()

    summary.add_row("Repositories:", str(result.repositories_processed))
    summary.add_row("Issues found:", str(result.issues_found))
    summary.add_row("Pull requests found:", str(result.pull_requests_found))
    if result.dry_run:
        summary.add_row("Would create:", f"[green]{result.would_create}[/green]")
    else:
        summary.add_row("Tasks created:", f"[green]{result.created}[/green]")
    summary.add_row("Skipped:", str(result.skipped))
    summary.add_row(
        "Sections:",
        f"{result.sections_reused} reused, {result.sections_created} created, "
        f"{result.sections_unavailable} unavailable",
    )

    if result.errors:
        summary.add_row("Errors:", f"[red]{len(result.errors)}[/red]")

    panel = Panel(
        summary,
        title=f"{action_word} Results",
        border_style="green" if not result.errors else "yellow",
    )
    console.print(panel)

    # Show errors if any
    if result.errors:
        error_console.print("\n[red]Errors:[/red]")
        for error in result.errors[:10]:
            error_console.print(f"  - {error}")
        if len(result.errors) > 10:
            error_console.print(f"  ... and {len(result.errors) - 10} more")


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()

"""Command line interface for commit-data."""

import json
import logging
from pathlib import Path
from typing import Optional

import click
import git as gitpython
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from commit_data.core.config import CommitDataConfig, load_config
from commit_data.core.encoding import EncodingReconciler, decode_lossless
from commit_data.core.errors import CommitDataError
from commit_data.core.manager import CommitDataManager, GitPythonRunner
from commit_data.core.parser import (
    LOG_FORMAT,
    SHORT_LOG_FORMAT,
    create_from_formatted_data,
    decode_message_record,
)
from commit_data.models.commit import CommitData

console = Console()
err_console = Console(stderr=True)


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


def _print_commit(commit: CommitData, as_json: bool) -> None:
    if as_json:
        click.echo(commit.model_dump_json(indent=2))
        return

    table = Table(show_header=False, box=None)
    table.add_column("Field", style="bold")
    table.add_column("Value")
    rows = [("Commit", commit.id)]
    if commit.tree_id is not None:
        rows.append(("Tree", commit.tree_id))
    rows += [
        ("Parents", " ".join(commit.parent_ids) or "(root commit)"),
        ("Author", commit.author),
        ("Author date", commit.author_date.isoformat()),
        ("Committer", commit.committer),
        ("Commit date", commit.committer_date.isoformat()),
    ]
    for field, value in rows:
        table.add_row(field, Text(value))
    console.print(table)
    _print_message(commit.body)


def _print_message(body: str) -> None:
    console.print(Panel(Text(body.rstrip("\n") or "(no message)"), title="Message"))


def _load_config_or_exit(search_dir: Optional[Path] = None) -> CommitDataConfig:
    try:
        return load_config(search_dir=search_dir)
    except CommitDataError as e:
        console.print(Text(f"Error: {e}", style="red"))
        raise click.Abort() from e


def _open_repo_or_exit(repo_path: str) -> gitpython.Repo:
    try:
        return gitpython.Repo(repo_path, search_parent_directories=True)
    except (gitpython.exc.InvalidGitRepositoryError, gitpython.exc.NoSuchPathError):
        console.print(f"[red]Error: Not a git repository: {repo_path}[/red]")
        raise click.Abort()


@click.group()
@click.version_option(package_name="commit-data")
@click.option("--verbose", "-v", is_flag=True, help="Show debug logging")
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False),
    default=None,
    help="Path to a JSON config file",
)
@click.pass_context
def main(ctx: click.Context, verbose: bool, config_path: Optional[str]):
    """commit-data - decode commit metadata from git log output."""
    _setup_logging(verbose)
    try:
        ctx.obj = load_config(Path(config_path)) if config_path else None
    except CommitDataError as e:
        console.print(Text(f"Error: {e}", style="red"))
        raise click.Abort() from e


@main.command()
@click.argument("revision", default="HEAD")
@click.option(
    "--repo",
    "repo_path",
    type=click.Path(exists=True, file_okay=False),
    default=".",
    help="Path to the git repository",
)
@click.option("--json", "as_json", is_flag=True, help="Print the record as JSON")
@click.option(
    "--no-query",
    is_flag=True,
    help="Build the record from repository objects instead of git log (no notes)",
)
@click.pass_obj
def show(
    config: Optional[CommitDataConfig],
    revision: str,
    repo_path: str,
    as_json: bool,
    no_query: bool,
):
    """Show the metadata and message of a commit."""
    repo = _open_repo_or_exit(repo_path)
    if config is None:
        config = _load_config_or_exit(Path(repo.working_tree_dir or repo.git_dir))
    manager = CommitDataManager(GitPythonRunner(repo), config)

    try:
        git_commit = repo.commit(revision)
    except (gitpython.exc.BadName, gitpython.exc.BadObject, ValueError):
        console.print(Text(f"Cannot find commit {revision}", style="red"))
        raise click.Abort()

    if no_query:
        _print_commit(manager.create_from_git_commit(git_commit), as_json)
        return

    result = manager.get_commit_data(git_commit.hexsha)
    if not result.ok:
        console.print(Text(result.error, style="red"))
        raise click.Abort()
    _print_commit(result.commit, as_json)


@main.command()
@click.argument("source", type=click.File("rb"), default="-")
@click.option(
    "--short",
    "short_format",
    is_flag=True,
    help="Input was produced with the message-only format",
)
@click.option("--json", "as_json", is_flag=True, help="Print the result as JSON")
@click.pass_obj
def parse(config: Optional[CommitDataConfig], source, short_format: bool, as_json: bool):
    """Decode formatted git log output read from SOURCE (default: stdin)."""
    reconciler = EncodingReconciler.from_config(config or _load_config_or_exit())
    data = decode_lossless(source.read())

    try:
        if short_format:
            commit_id, body = decode_message_record(data, reconciler)
        else:
            commit = create_from_formatted_data(data, reconciler)
    except CommitDataError as e:
        if as_json:
            click.echo(json.dumps(e.to_payload(), indent=2))
        err_console.print(Text(f"Error: {e}", style="red"))
        raise click.Abort() from e

    if not short_format:
        _print_commit(commit, as_json)
    elif as_json:
        click.echo(json.dumps({"id": commit_id, "body": body}, indent=2))
    else:
        console.print(f"[bold]Commit:[/bold] {commit_id}")
        _print_message(body)


@main.command()
def formats():
    """Print the git log formats the decoders expect."""
    click.echo(f"full:  {LOG_FORMAT}")
    click.echo(f"short: {SHORT_LOG_FORMAT}")


if __name__ == "__main__":
    main()

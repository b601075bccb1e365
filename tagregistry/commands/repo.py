"""
Repository registration commands for tagregistry.
"""

import click
from rich.console import Console
from rich.table import Table

from ..api import Registry
from ..cli_utils import add_common_options, standard_command

console = Console()


def split_full_name(full_name: str):
    """Split OWNER/NAME, rejecting anything else."""
    owner, sep, name = full_name.strip().partition('/')
    if not sep or not owner or not name or '/' in name:
        raise click.BadParameter(f"expected OWNER/NAME, got {full_name!r}")
    return owner, name


@click.group(name='repo')
def repo_cmd():
    """Register repositories whose releases are tracked."""
    pass


@repo_cmd.command('add')
@click.argument('full_name')
@click.option('--default-branch', default='main', show_default=True,
              help='Branch compare links fall back to for untagged drafts')
@click.option('--path', type=click.Path(file_okay=False), help='Local git checkout backing the tags')
@click.option('--private', is_flag=True, help='Hide the repository from anonymous viewers')
@add_common_options('verbose', 'quiet', 'format')
@standard_command
def add_repo(full_name, default_branch, path, private, verbose, quiet, format):
    """Register OWNER/NAME (or update its settings)."""
    owner, name = split_full_name(full_name)
    with Registry() as reg:
        repo_id = reg.add_repository(owner, name, default_branch, path, private)
        return reg.repository(repo_id).to_dict()


@repo_cmd.command('list')
@add_common_options('verbose', 'quiet', 'format')
@standard_command
def list_repos(verbose, quiet, format):
    """List registered repositories."""
    from ..database.repositories import list_repositories

    with Registry() as reg:
        repos = list_repositories(reg.db)

    if format != 'table':
        return [repo.to_dict() for repo in repos]

    if not repos:
        console.print("[yellow]No repositories registered[/yellow]")
        return None
    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("Repository", style="cyan")
    table.add_column("Default branch")
    table.add_column("Private")
    table.add_column("Path", style="dim")
    for repo in repos:
        table.add_row(repo.full_name, repo.default_branch,
                      "yes" if repo.is_private else "", repo.path or "")
    console.print(table)
    return None


@repo_cmd.command('remove')
@click.argument('full_name')
@click.option('--yes', is_flag=True, help='Skip the confirmation prompt')
@add_common_options('verbose', 'quiet', 'format')
@standard_command
def remove_repo(full_name, yes, verbose, quiet, format):
    """Unregister OWNER/NAME and drop its release records (tags are kept)."""
    if not yes:
        click.confirm(f"Remove {full_name} and all of its release records?", abort=True)
    with Registry() as reg:
        removed = reg.remove_repository(full_name)
    return {'full_name': full_name, 'removed': True, 'releases_removed': removed}

"""
Tag commands for tagregistry.

Tags exist independently of releases: a tag may have no release
attached, and deleting a tag removes the release backed by it.
"""

import click
from rich.console import Console
from rich.table import Table

from ..api import Registry
from ..cli_utils import add_common_options, standard_command

console = Console()


@click.group(name='tag')
def tag_cmd():
    """List, create and delete repository tags."""
    pass


@tag_cmd.command('list')
@click.argument('full_name')
@add_common_options('as_user', 'verbose', 'quiet', 'format')
@standard_command
def list_tags(full_name, as_user, verbose, quiet, format):
    """List all tags of OWNER/NAME, newest first."""
    with Registry() as reg:
        repo = reg.find_repository(full_name)
        tags = reg.tags.list_tags(repo.id, viewer_id=as_user)

    if format != 'table':
        return [tag.to_dict() for tag in tags]

    if not tags:
        console.print("[yellow]No tags found[/yellow]")
        return None
    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("Tag", style="cyan")
    table.add_column("Commit")
    table.add_column("Date")
    table.add_column("Release")
    for tag in tags:
        table.add_row(
            tag.name,
            tag.commit[:10],
            tag.date.strftime('%Y-%m-%d %H:%M') if tag.date else "",
            repo.release_link(tag.name) if tag.has_release else "[dim]-[/dim]",
        )
    console.print(table)
    return None


@tag_cmd.command('create')
@click.argument('full_name')
@click.argument('tag_name')
@click.option('--target', help='Branch or commit to tag (default: the default branch)')
@add_common_options('as_user', 'verbose', 'quiet', 'format')
@standard_command
def create_tag(full_name, tag_name, target, as_user, verbose, quiet, format):
    """Create TAG_NAME in OWNER/NAME without a release."""
    with Registry() as reg:
        repo = reg.find_repository(full_name)
        commit = reg.tags.create_tag(repo.id, tag_name, target, actor_id=as_user)
    return {'name': tag_name, 'commit': commit}


@tag_cmd.command('delete')
@click.argument('full_name')
@click.argument('tag_name')
@add_common_options('as_user', 'verbose', 'quiet', 'format')
@standard_command
def delete_tag(full_name, tag_name, as_user, verbose, quiet, format):
    """Delete TAG_NAME from OWNER/NAME along with its release."""
    with Registry() as reg:
        repo = reg.find_repository(full_name)
        removed = reg.tags.delete_tag(repo.id, tag_name, actor_id=as_user)
    return {'name': tag_name, 'deleted': True, 'releases_removed': removed}

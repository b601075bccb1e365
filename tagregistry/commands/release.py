"""
Release commands for tagregistry.

Create, edit, publish and delete releases, and list them the way a
given user sees them: drafts only for writers, newest first, with the
latest-release banner and compare links for every row.
"""

import click
from rich.console import Console
from rich.table import Table

from ..api import Registry
from ..cli_utils import add_common_options, standard_command
from ..services.release_service import ReleaseListing

console = Console()

LABEL_STYLES = {
    'draft': 'yellow',
    'prerelease': 'magenta',
    'stable': 'green',
}


@click.group(name='release')
def release_cmd():
    """Manage releases of a repository."""
    pass


@release_cmd.command('create')
@click.argument('full_name')
@click.argument('tag_name')
@click.option('--target', help='Branch or commit to tag (default: the default branch)')
@click.option('--title', help='Release title (default: the tag name)')
@click.option('--body', default='', help='Release notes')
@click.option('--prerelease', is_flag=True, help='Mark as a pre-release')
@click.option('--draft', is_flag=True, help='Save as a draft without creating the tag')
@add_common_options('as_user', 'verbose', 'quiet', 'format')
@standard_command
def create_release(full_name, tag_name, target, title, body, prerelease, draft,
                   as_user, verbose, quiet, format):
    """Create a release TAG_NAME in OWNER/NAME."""
    with Registry() as reg:
        repo = reg.find_repository(full_name)
        release_id = reg.releases.create_release(
            repo.id,
            tag_name,
            target,
            title if title is not None else tag_name,
            body=body,
            is_prerelease=prerelease,
            publish=not draft,
            publisher_id=as_user,
        )
        release = _release_by_id(reg, repo.id, release_id)

    if format == 'table':
        label = reg.releases.label_of(release)
        console.print(f"[green]Created {label} {release.tag_name}[/green] (id={release.id})")
        return None
    return reg.releases.release_dict(release)


@release_cmd.command('list')
@click.argument('full_name')
@click.option('--page', type=int, default=1, show_default=True, help='Page number (1-indexed)')
@click.option('--limit', type=int, help='Releases per page (default from config)')
@click.option('--json', 'json_output', is_flag=True, help='Output the listing as one JSON object')
@add_common_options('as_user', 'verbose', 'quiet', 'format')
@standard_command
def list_releases(full_name, page, limit, json_output, as_user, verbose, quiet, format):
    """List releases of OWNER/NAME as the given user sees them."""
    with Registry() as reg:
        repo = reg.find_repository(full_name)
        listing = reg.releases.list_releases(repo.id, viewer_id=as_user, page=page, page_size=limit)

    if json_output:
        return listing.to_dict()
    if format != 'table':
        return listing.to_dict()['releases']

    _print_listing(listing)
    return None


@release_cmd.command('show')
@click.argument('full_name')
@click.argument('tag_name')
@add_common_options('as_user', 'verbose', 'quiet', 'format')
@standard_command
def show_release(full_name, tag_name, as_user, verbose, quiet, format):
    """Show one release of OWNER/NAME."""
    with Registry() as reg:
        repo = reg.find_repository(full_name)
        release = reg.releases.get_release(repo.id, tag_name, as_user)

    if format == 'table':
        label = reg.releases.label_of(release)
        style = LABEL_STYLES[label]
        console.print(f"[bold]{release.title}[/bold] [{style}]{label}[/{style}]")
        console.print(f"  Tag:    {release.tag_name}{'' if release.has_tag else ' (not created yet)'}")
        console.print(f"  Target: {release.target} {release.sha or ''}")
        console.print(f"  Link:   {repo.release_link(release.tag_name)}")
        if release.body:
            console.print()
            console.print(release.body)
        return None
    return {**reg.releases.release_dict(release), 'url': repo.release_link(release.tag_name)}


@release_cmd.command('edit')
@click.argument('full_name')
@click.argument('release_id', type=int)
@click.option('--title', help='New title')
@click.option('--body', help='New release notes')
@click.option('--prerelease/--stable', default=None, help='Change the pre-release flag')
@click.option('--tag', 'tag_name', help='New tag name (drafts only)')
@click.option('--target', help='New target (drafts only)')
@add_common_options('as_user', 'verbose', 'quiet', 'format')
@standard_command
def edit_release(full_name, release_id, title, body, prerelease, tag_name, target,
                 as_user, verbose, quiet, format):
    """Edit release RELEASE_ID of OWNER/NAME."""
    with Registry() as reg:
        repo = reg.find_repository(full_name)
        release = reg.releases.update_release(
            repo.id, release_id, actor_id=as_user,
            title=title, body=body, is_prerelease=prerelease,
            tag_name=tag_name, target=target,
        )
    return reg.releases.release_dict(release)


@release_cmd.command('publish')
@click.argument('full_name')
@click.argument('release_id', type=int)
@add_common_options('as_user', 'verbose', 'quiet', 'format')
@standard_command
def publish_release(full_name, release_id, as_user, verbose, quiet, format):
    """Publish draft RELEASE_ID of OWNER/NAME, creating its tag."""
    with Registry() as reg:
        repo = reg.find_repository(full_name)
        release = reg.releases.publish_release(repo.id, release_id, actor_id=as_user)
    return reg.releases.release_dict(release)


@release_cmd.command('delete')
@click.argument('full_name')
@click.argument('release_id', type=int)
@click.option('--delete-tag', is_flag=True, help='Also delete the tag from the repository')
@add_common_options('as_user', 'verbose', 'quiet', 'format')
@standard_command
def delete_release(full_name, release_id, delete_tag, as_user, verbose, quiet, format):
    """Delete release RELEASE_ID of OWNER/NAME."""
    with Registry() as reg:
        repo = reg.find_repository(full_name)
        deleted = reg.releases.delete_release(repo.id, release_id, actor_id=as_user,
                                              delete_tag=delete_tag)
    return {'id': release_id, 'deleted': deleted, 'tag_deleted': deleted and delete_tag}


def _release_by_id(reg: Registry, repo_id: int, release_id: int):
    from ..database.releases import get_release_by_id
    return get_release_by_id(reg.db, repo_id, release_id)


def _print_listing(listing: ReleaseListing) -> None:
    """Render a release listing as a rich table."""
    repo = listing.repository
    if listing.latest:
        style = LABEL_STYLES[listing.latest.label]
        console.print(
            f"Latest: [bold]{listing.latest.release.tag_name}[/bold] "
            f"[{style}]{listing.latest.label}[/{style}]"
        )

    if not listing.releases:
        console.print("[yellow]No releases on this page[/yellow]")
    else:
        table = Table(show_header=True, header_style="bold cyan")
        table.add_column("ID", justify="right")
        table.add_column("Tag", style="cyan")
        table.add_column("Title")
        table.add_column("Label")
        table.add_column("Compare", style="dim")
        for release, row in listing.rows():
            label = listing.label_of(release)
            style = LABEL_STYLES[label]
            table.add_row(
                str(release.id),
                release.tag_name,
                release.title,
                f"[{style}]{label}[/{style}]",
                ", ".join(option.label for option in row.options),
            )
        console.print(table)

    console.print(
        f"[dim]{repo.full_name}: page {listing.page.page}/{max(listing.page.total_pages, 1)}, "
        f"{listing.total_count} release(s)[/dim]"
    )

#!/usr/bin/env python3

import click

from tagregistry.commands.config import config_cmd
from tagregistry.commands.release import release_cmd
from tagregistry.commands.repo import repo_cmd
from tagregistry.commands.tag import tag_cmd


@click.group()
@click.version_option(package_name='tagregistry')
def cli():
    """tagregistry - Release & tag registry for git repositories.

    Tracks draft, pre-release and stable releases per repository, lists
    them the way each user is allowed to see them, and builds the compare
    links between any two tags.
    """
    pass


cli.add_command(repo_cmd)
cli.add_command(release_cmd)
cli.add_command(tag_cmd)
cli.add_command(config_cmd)


def main():
    cli()

if __name__ == "__main__":
    main()

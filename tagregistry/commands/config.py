import json
from pathlib import Path

import click

from tagregistry.config import get_config_path, get_default_config, load_config, save_config
from tagregistry.database.connection import get_database_info


@click.group("config")
def config_cmd():
    """Configuration management commands."""
    pass


@config_cmd.command("init")
@click.option("--path", "config_path", type=click.Path(dir_okay=False),
              help="Where to write the file (.json, .toml or .yaml)")
@click.option("--force", is_flag=True, help="Overwrite an existing file")
def init_config(config_path, force):
    """Write a configuration file with the default settings."""
    path = Path(config_path).expanduser() if config_path else get_config_path()
    if path.exists() and not force:
        click.echo(f"Configuration already exists at {path} (use --force to overwrite)", err=True)
        raise SystemExit(1)
    save_config(get_default_config(), path)
    click.echo(json.dumps({"config_path": str(path)}))


@config_cmd.command("show")
@click.option("--pretty", is_flag=True, help="Display as formatted JSON instead of single-line JSONL")
@click.option("--path", is_flag=True, help="Show the config file path being used")
@click.option("--db", "db_info", is_flag=True, help="Show the registry database location and counts")
def show_config(pretty, path, db_info):
    """Show the current configuration with all merges applied.

    By default, outputs single-line JSON (JSONL format).
    Use --pretty for human-readable formatted output.
    Use --path to see which config file is being used.
    Use --db to see the database path, schema version and record counts.
    """
    if path:
        print(json.dumps({"config_path": str(get_config_path())}))
        return

    config = load_config()
    if db_info:
        print(json.dumps(get_database_info(config)))
        return
    if pretty:
        print(json.dumps(config, indent=2, ensure_ascii=False))
    else:
        print(json.dumps(config, ensure_ascii=False))

"""
Output format utilities for tagregistry CLI commands.

Provides functions to format data as JSON Lines, JSON and YAML.
"""

import json
import os
from typing import Any, Dict, Iterator

import yaml

FORMATS = ('jsonl', 'json', 'yaml')


def format_output(data: Iterator[Dict[str, Any]], format: str) -> Iterator[str]:
    """
    Format data according to the specified format.

    Args:
        data: Iterator of dictionaries to format
        format: Output format (jsonl, json, yaml)

    Yields:
        Formatted strings for output
    """
    if format == "jsonl":
        yield from format_jsonl(data)
    elif format == "json":
        yield from format_json(data)
    elif format == "yaml":
        yield from format_yaml(data)
    else:
        raise ValueError(f"Unknown format: {format}")


def format_jsonl(data: Iterator[Dict[str, Any]]) -> Iterator[str]:
    """Format data as JSON Lines (one JSON object per line)."""
    for item in data:
        yield json.dumps(item, ensure_ascii=False)


def format_json(data: Iterator[Dict[str, Any]]) -> Iterator[str]:
    """Format data as a single JSON array."""
    yield json.dumps(list(data), ensure_ascii=False, indent=2)


def format_yaml(data: Iterator[Dict[str, Any]]) -> Iterator[str]:
    """Format data as YAML."""
    yield yaml.safe_dump(list(data), default_flow_style=False, allow_unicode=True, sort_keys=False)


def get_format_from_env(default: str = 'jsonl') -> str:
    """
    Get output format from the TAGREGISTRY_FORMAT environment variable.

    Unknown values fall back to the default.
    """
    format = os.environ.get('TAGREGISTRY_FORMAT', default).lower()
    if format not in FORMATS + ('table',):
        return default
    return format

"""
Database module for tagregistry.

Provides SQLite-based persistence for release metadata.

Key components:
- connection: Database connection management and transactions
- schema: Table definitions and schema versioning
- repositories: Repository registry
- releases: Release record store
"""

from .connection import (
    get_connection,
    get_db_path,
    Database,
    get_database_info,
    transaction,
    read_transaction,
)
from .schema import CURRENT_VERSION, ensure_schema
from .repositories import (
    upsert_repository,
    get_repository,
    get_repository_by_name,
    list_repositories,
    delete_repository,
)
from .releases import (
    insert_release,
    update_release,
    list_releases,
    count_releases,
    find_tagged_release,
    get_release_by_tag,
    get_release_by_id,
    delete_release,
    delete_releases_for_tag,
    get_tagged_release_ids,
)

__all__ = [
    # Connection
    'get_connection',
    'get_db_path',
    'Database',
    'get_database_info',
    'transaction',
    'read_transaction',
    # Schema
    'ensure_schema',
    'CURRENT_VERSION',
    # Repositories
    'upsert_repository',
    'get_repository',
    'get_repository_by_name',
    'list_repositories',
    'delete_repository',
    # Releases
    'insert_release',
    'update_release',
    'list_releases',
    'count_releases',
    'find_tagged_release',
    'get_release_by_tag',
    'get_release_by_id',
    'delete_release',
    'delete_releases_for_tag',
    'get_tagged_release_ids',
]

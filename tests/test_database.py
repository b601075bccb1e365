"""
Tests for tagregistry.database module.

Tests cover:
- Database connection management and transactions
- Schema creation and migrations
- Repository registry
- Release record store: ordering, uniqueness, lookups
"""

import dataclasses
import os
import shutil
import sqlite3
import tempfile
import unittest
from datetime import datetime, timedelta
from pathlib import Path
from unittest.mock import patch

from tagregistry.database.connection import (
    Database,
    get_database_info,
    get_db_path,
    read_transaction,
    transaction,
)
from tagregistry.database.schema import (
    CURRENT_VERSION,
    SCHEMA_V1,
    ensure_schema,
    get_schema_version,
)
from tagregistry.database.repositories import (
    delete_repository,
    get_repository,
    get_repository_by_name,
    list_repositories,
    upsert_repository,
)
from tagregistry.database.releases import (
    count_releases,
    delete_release,
    delete_releases_for_tag,
    find_tagged_release,
    get_release_by_id,
    get_release_by_tag,
    get_tagged_release_ids,
    insert_release,
    list_releases,
    update_release,
)
from tagregistry.exceptions import DuplicateTagError, NotFoundError

T0 = datetime(2024, 1, 1, 12, 0, 0)


class DatabaseTestCase(unittest.TestCase):
    """Temp database with user2/repo1 registered."""

    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()
        self.db_path = Path(self.temp_dir) / 'test.db'
        self.db = Database(db_path=self.db_path).__enter__()
        with transaction(self.db):
            self.repo_id = upsert_repository(self.db, "user2", "repo1", "master")

    def tearDown(self):
        self.db.__exit__(None, None, None)
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def insert(self, tag_name, hours=0, **kwargs):
        with transaction(self.db):
            return insert_release(
                self.db, self.repo_id, tag_name, "master", kwargs.pop('title', tag_name),
                created_at=T0 + timedelta(hours=hours), **kwargs
            )


class TestDatabaseConnection(unittest.TestCase):
    """Tests for database connection management."""

    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()
        self.db_path = Path(self.temp_dir) / 'test.db'

    def tearDown(self):
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def test_get_db_path_from_env(self):
        with patch.dict(os.environ, {'TAGREGISTRY_DB': '/tmp/custom.db'}):
            self.assertEqual(get_db_path(), Path('/tmp/custom.db'))

    def test_get_db_path_from_config(self):
        with patch.dict(os.environ, {}, clear=True):
            path = get_db_path({'database': {'path': '/data/registry.db'}})
            self.assertEqual(path, Path('/data/registry.db'))

    def test_get_db_path_default(self):
        with patch.dict(os.environ, {}, clear=True):
            path = get_db_path({'database': {'path': ''}})
            self.assertEqual(path.name, 'registry.db')
            self.assertEqual(path.parent.name, '.tagregistry')

    def test_creates_schema(self):
        with Database(db_path=self.db_path) as db:
            self.assertEqual(get_schema_version(db.conn), CURRENT_VERSION)
            db.execute("SELECT name FROM sqlite_master WHERE type='table'")
            tables = {row['name'] for row in db.fetchall()}
        self.assertTrue({'repositories', 'releases', '_schema_info'} <= tables)

    def test_transaction_rolls_back_on_error(self):
        with Database(db_path=self.db_path) as db:
            with self.assertRaises(RuntimeError):
                with transaction(db):
                    upsert_repository(db, "user2", "repo1")
                    raise RuntimeError("boom")
            self.assertEqual(list_repositories(db), [])

    def test_read_transaction_joins_open_transaction(self):
        with Database(db_path=self.db_path) as db:
            with transaction(db):
                upsert_repository(db, "user2", "repo1")
                with read_transaction(db):
                    self.assertEqual(len(list_repositories(db)), 1)
                self.assertTrue(db.in_transaction)
            self.assertFalse(db.in_transaction)

    def test_database_info(self):
        config = {'database': {'path': str(self.db_path)}}
        with patch.dict(os.environ, {}, clear=True):
            self.assertFalse(get_database_info(config)['exists'])
            with Database(config=config) as db:
                upsert_repository(db, "user2", "repo1")
            info = get_database_info(config)
        self.assertTrue(info['exists'])
        self.assertEqual(info['repositories'], 1)
        self.assertEqual(info['releases'], 0)
        self.assertEqual(info['schema_version'], CURRENT_VERSION)


class TestSchemaMigration(unittest.TestCase):
    """Old databases are migrated forward, keeping their data."""

    def test_migrates_v1_database(self):
        conn = sqlite3.connect(":memory:")
        conn.row_factory = sqlite3.Row
        conn.executescript(SCHEMA_V1)
        conn.execute("INSERT INTO _schema_info (version, description) VALUES (1, 'v1')")
        conn.execute("INSERT INTO repositories (owner, name) VALUES ('user2', 'repo1')")
        conn.execute(
            """INSERT INTO releases (repo_id, tag_name, target, title, has_tag, created_at)
               VALUES (1, 'v1.1', 'master', 'v1.1', 1, '2024-01-01T00:00:00.000000')"""
        )
        conn.commit()

        ensure_schema(conn)

        self.assertEqual(get_schema_version(conn), CURRENT_VERSION)
        columns = {row['name'] for row in conn.execute("PRAGMA table_info(releases)")}
        self.assertIn('sha', columns)
        self.assertIn('updated_at', columns)
        count = conn.execute("SELECT COUNT(*) FROM releases").fetchone()[0]
        self.assertEqual(count, 1)
        conn.close()


class TestRepositories(DatabaseTestCase):

    def test_upsert_updates_existing(self):
        with transaction(self.db):
            again = upsert_repository(self.db, "user2", "repo1", "main", "/src/repo1", True)
        self.assertEqual(again, self.repo_id)
        repo = get_repository(self.db, self.repo_id)
        self.assertEqual(repo.default_branch, "main")
        self.assertEqual(repo.path, "/src/repo1")
        self.assertTrue(repo.is_private)

    def test_get_by_name(self):
        repo = get_repository_by_name(self.db, "user2/repo1")
        self.assertEqual(repo.id, self.repo_id)
        self.assertEqual(repo.link, "/user2/repo1")

    def test_unknown_repository(self):
        with self.assertRaises(NotFoundError):
            get_repository(self.db, 999)
        with self.assertRaises(NotFoundError):
            get_repository_by_name(self.db, "user2/nope")

    def test_delete_cascades_to_releases(self):
        self.insert("v1.0")
        with transaction(self.db):
            self.assertTrue(delete_repository(self.db, self.repo_id))
        self.assertEqual(count_releases(self.db, self.repo_id), 0)


class TestReleaseOrdering(DatabaseTestCase):
    """list_releases is newest first with id as the tie-breaker."""

    def test_newest_first(self):
        self.insert("v1.0", hours=0)
        self.insert("v1.2", hours=2)
        self.insert("v1.1", hours=1)
        names = [r.tag_name for r in list_releases(self.db, self.repo_id)]
        self.assertEqual(names, ["v1.2", "v1.1", "v1.0"])

    def test_same_timestamp_breaks_ties_by_id(self):
        first = self.insert("a", hours=0)
        second = self.insert("b", hours=0)
        ids = [r.id for r in list_releases(self.db, self.repo_id)]
        self.assertEqual(ids, [second, first])

    def test_order_includes_drafts(self):
        self.insert("v1.0", hours=0)
        self.insert("v2.0", hours=1, publish=False)
        releases = list_releases(self.db, self.repo_id)
        self.assertEqual([r.tag_name for r in releases], ["v2.0", "v1.0"])
        self.assertTrue(releases[0].is_draft)
        self.assertFalse(releases[0].has_tag)


class TestReleaseUniqueness(DatabaseTestCase):
    """Tagged releases are unique per repository, case-insensitively."""

    def test_duplicate_tag_rejected(self):
        self.insert("v1.0")
        with self.assertRaises(DuplicateTagError):
            self.insert("v1.0", hours=1)

    def test_duplicate_is_case_insensitive(self):
        self.insert("v1.0")
        with self.assertRaises(DuplicateTagError):
            self.insert("V1.0", hours=1)

    def test_unique_index_backs_the_check(self):
        self.insert("v1.0")
        with self.assertRaises(sqlite3.IntegrityError):
            with transaction(self.db):
                self.db.execute(
                    """INSERT INTO releases (repo_id, tag_name, target, title, has_tag, created_at)
                       VALUES (?, 'V1.0', 'master', 'x', 1, '2024-01-01')""",
                    (self.repo_id,)
                )

    def test_drafts_may_share_a_name(self):
        self.insert("v1.0")
        self.insert("v1.0", hours=1, publish=False)
        self.insert("v1.0", hours=2, publish=False)
        self.assertEqual(count_releases(self.db, self.repo_id), 3)
        self.assertEqual(count_releases(self.db, self.repo_id, include_drafts=False), 1)

    def test_other_repository_may_reuse_name(self):
        with transaction(self.db):
            other = upsert_repository(self.db, "user3", "repo3")
        self.insert("v1.0")
        with transaction(self.db):
            insert_release(self.db, other, "v1.0", "main", "v1.0")
        self.assertIsNotNone(find_tagged_release(self.db, other, "V1.0"))

    def test_unknown_repository(self):
        with self.assertRaises(NotFoundError):
            with transaction(self.db):
                insert_release(self.db, 999, "v1.0", "master", "v1.0")


class TestReleaseLookups(DatabaseTestCase):

    def test_get_by_tag_prefers_tagged_release(self):
        tagged = self.insert("v1.0", hours=0)
        self.insert("v1.0", hours=5, publish=False)
        self.assertEqual(get_release_by_tag(self.db, self.repo_id, "V1.0").id, tagged)

    def test_get_by_tag_missing(self):
        with self.assertRaises(NotFoundError):
            get_release_by_tag(self.db, self.repo_id, "nope")

    def test_get_by_id_scoped_to_repository(self):
        release_id = self.insert("v1.0")
        with transaction(self.db):
            other = upsert_repository(self.db, "user3", "repo3")
        with self.assertRaises(NotFoundError):
            get_release_by_id(self.db, other, release_id)

    def test_update_release(self):
        release_id = self.insert("v1.0", publish=False)
        release = get_release_by_id(self.db, self.repo_id, release_id)
        with transaction(self.db):
            update_release(self.db, dataclasses.replace(release, title="Renamed", is_draft=False, has_tag=True))
        updated = get_release_by_id(self.db, self.repo_id, release_id)
        self.assertEqual(updated.title, "Renamed")
        self.assertTrue(updated.has_tag)
        self.assertIsNotNone(updated.updated_at)

    def test_publish_collision_detected_on_update(self):
        self.insert("v1.0")
        draft_id = self.insert("v1.0", hours=1, publish=False)
        draft = get_release_by_id(self.db, self.repo_id, draft_id)
        with self.assertRaises(DuplicateTagError):
            with transaction(self.db):
                update_release(self.db, dataclasses.replace(draft, is_draft=False, has_tag=True))

    def test_delete(self):
        release_id = self.insert("v1.0")
        with transaction(self.db):
            self.assertTrue(delete_release(self.db, self.repo_id, release_id))
            self.assertFalse(delete_release(self.db, self.repo_id, release_id))

    def test_delete_for_tag_keeps_drafts(self):
        self.insert("v1.0")
        self.insert("v1.0", hours=1, publish=False)
        with transaction(self.db):
            self.assertEqual(delete_releases_for_tag(self.db, self.repo_id, "V1.0"), 1)
        remaining = list_releases(self.db, self.repo_id)
        self.assertEqual(len(remaining), 1)
        self.assertTrue(remaining[0].is_draft)

    def test_tagged_release_ids(self):
        tagged = self.insert("V1.1")
        self.insert("draft-release", hours=1, publish=False)
        self.assertEqual(get_tagged_release_ids(self.db, self.repo_id), {"v1.1": tagged})


if __name__ == '__main__':
    unittest.main()

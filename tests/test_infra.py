"""
Tests for the infrastructure layer: GitClient, the version-control
implementations and the config-driven permission provider.
"""

import subprocess
import unittest
from datetime import datetime
from unittest.mock import MagicMock, patch

import pytest

from tagregistry.domain import Capability, RepositoryInfo
from tagregistry.exceptions import (
    DuplicateTagError,
    InvalidTargetError,
    NotFoundError,
    VersionControlError,
)
from tagregistry.infra.git_client import GitClient, GitTag
from tagregistry.infra.permissions import ConfigPermissionProvider
from tagregistry.infra.version_control import GitVersionControl, InMemoryVersionControl

SHA = "65f1bf27bc3bf70f64657658635e66094edbcb4d"


def completed(stdout="", returncode=0, stderr=""):
    return subprocess.CompletedProcess(args=[], returncode=returncode, stdout=stdout, stderr=stderr)


class TestGitClient(unittest.TestCase):
    """GitClient with subprocess mocked out."""

    def setUp(self):
        self.client = GitClient(timeout=5)

    @patch('tagregistry.infra.git_client.subprocess.run')
    def test_rev_parse(self, mock_run):
        mock_run.return_value = completed(SHA + "\n")
        self.assertEqual(self.client.rev_parse("/repo", "master"), SHA)
        args = mock_run.call_args[0][0]
        self.assertEqual(args, ['git', 'rev-parse', '--verify', '--quiet', 'master^{commit}'])
        self.assertEqual(mock_run.call_args[1]['cwd'], "/repo")

    @patch('tagregistry.infra.git_client.subprocess.run')
    def test_rev_parse_unknown(self, mock_run):
        mock_run.return_value = completed("", returncode=1)
        self.assertIsNone(self.client.rev_parse("/repo", "nope"))

    @patch('tagregistry.infra.git_client.subprocess.run')
    def test_rev_parse_rejects_options(self, mock_run):
        self.assertIsNone(self.client.rev_parse("/repo", "--all"))
        mock_run.assert_not_called()

    @patch('tagregistry.infra.git_client.subprocess.run')
    def test_timeout(self, mock_run):
        mock_run.side_effect = subprocess.TimeoutExpired(cmd='git', timeout=5)
        self.assertIsNone(self.client.rev_parse("/repo", "master"))

    @patch('tagregistry.infra.git_client.subprocess.run')
    def test_create_tag(self, mock_run):
        mock_run.return_value = completed()
        ok, _ = self.client.create_tag("/repo", "v1.0", SHA)
        self.assertTrue(ok)
        self.assertEqual(mock_run.call_args[0][0], ['git', 'tag', '--', 'v1.0', SHA])

    @patch('tagregistry.infra.git_client.subprocess.run')
    def test_create_annotated_tag(self, mock_run):
        mock_run.return_value = completed()
        self.client.create_tag("/repo", "v1.0", SHA, message="Release 1.0")
        self.assertEqual(mock_run.call_args[0][0],
                         ['git', 'tag', '-a', '-m', 'Release 1.0', '--', 'v1.0', SHA])

    @patch('tagregistry.infra.git_client.subprocess.run')
    def test_delete_tag_failure(self, mock_run):
        mock_run.return_value = completed(returncode=1, stderr="error: tag 'v9' not found.")
        ok, err = self.client.delete_tag("/repo", "v9")
        self.assertFalse(ok)
        self.assertIn("not found", err)

    @patch('tagregistry.infra.git_client.subprocess.run')
    def test_tags(self, mock_run):
        lightweight = f"v1.1|{SHA}||2024-01-01T10:00:00+02:00|||"
        annotated = ("delete-tag|1111111111111111111111111111111111111111|" + SHA +
                     "||2024-03-01T00:00:00Z|<user2@example.com>|Tag message")
        mock_run.return_value = completed(lightweight + "\n" + annotated + "\n")

        tags = self.client.tags("/repo")

        self.assertEqual([t.name for t in tags], ["v1.1", "delete-tag"])
        self.assertEqual(tags[0].commit, SHA)
        self.assertEqual(tags[0].date, datetime(2024, 1, 1, 8, 0, 0))
        self.assertEqual(tags[1].commit, SHA)
        self.assertEqual(tags[1].date, datetime(2024, 3, 1))
        self.assertEqual(tags[1].message, "Tag message")

    @patch('tagregistry.infra.git_client.subprocess.run')
    def test_tags_failure(self, mock_run):
        mock_run.return_value = completed(returncode=128)
        self.assertEqual(self.client.tags("/repo"), [])


class TestGitVersionControl:

    def make(self, tmp_path, client):
        (tmp_path / ".git").mkdir()
        return GitVersionControl(lambda repo_id: str(tmp_path), client)

    def test_no_checkout(self):
        vcs = GitVersionControl(lambda repo_id: None, MagicMock())
        with pytest.raises(VersionControlError):
            vcs.resolve_commitish(1, "master")

    def test_not_a_repository(self, tmp_path):
        vcs = GitVersionControl(lambda repo_id: str(tmp_path))
        with pytest.raises(VersionControlError):
            vcs.list_tags(1)

    def test_resolve(self, tmp_path):
        client = MagicMock(spec=GitClient)
        client.is_git_repo.return_value = True
        client.rev_parse.side_effect = lambda path, ref: SHA if ref == "master" else None
        vcs = self.make(tmp_path, client)
        assert vcs.resolve_commitish(1, "master") == SHA
        with pytest.raises(InvalidTargetError):
            vcs.resolve_commitish(1, "nope")

    def test_create_duplicate(self, tmp_path):
        client = MagicMock(spec=GitClient)
        client.is_git_repo.return_value = True
        client.tags.return_value = [GitTag("V1.0", SHA)]
        vcs = self.make(tmp_path, client)
        with pytest.raises(DuplicateTagError):
            vcs.create_tag(1, "v1.0", SHA)
        client.create_tag.assert_not_called()

    def test_create_failure(self, tmp_path):
        client = MagicMock(spec=GitClient)
        client.is_git_repo.return_value = True
        client.tags.return_value = []
        client.create_tag.return_value = (False, "fatal: bad object")
        vcs = self.make(tmp_path, client)
        with pytest.raises(VersionControlError):
            vcs.create_tag(1, "v1.0", SHA)

    def test_delete_missing(self, tmp_path):
        client = MagicMock(spec=GitClient)
        client.is_git_repo.return_value = True
        client.tags.return_value = []
        vcs = self.make(tmp_path, client)
        with pytest.raises(NotFoundError):
            vcs.delete_tag(1, "v1.0")


class TestInMemoryVersionControl:

    def test_refs_tags_and_prefixes(self):
        vcs = InMemoryVersionControl()
        vcs.add_ref(1, "master", SHA)
        assert vcs.resolve_commitish(1, "master") == SHA
        assert vcs.resolve_commitish(1, SHA[:7]) == SHA
        with pytest.raises(InvalidTargetError):
            vcs.resolve_commitish(1, SHA[:6])
        with pytest.raises(InvalidTargetError):
            vcs.resolve_commitish(2, "master")

        vcs.create_tag(1, "v1.0", SHA)
        assert vcs.resolve_commitish(1, "v1.0") == SHA

    def test_tags_are_case_insensitive(self):
        vcs = InMemoryVersionControl()
        vcs.create_tag(1, "v1.0", SHA)
        assert vcs.tag_exists(1, "V1.0")
        with pytest.raises(DuplicateTagError):
            vcs.create_tag(1, "V1.0", SHA)
        vcs.delete_tag(1, "V1.0")
        assert vcs.list_tags(1) == []
        with pytest.raises(NotFoundError):
            vcs.delete_tag(1, "v1.0")


class TestConfigPermissionProvider:

    @pytest.fixture
    def repos(self):
        return {
            1: RepositoryInfo(id=1, owner="user2", name="repo1"),
            2: RepositoryInfo(id=2, owner="user2", name="private", is_private=True),
        }

    @pytest.fixture
    def provider(self, repos):
        config = {'permissions': {
            'site_admins': ["user1"],
            'grants': {"user2/repo1": {"user5": "write", "user6": "bogus"},
                       "user2/private": {"user4": "read"}},
        }}
        return ConfigPermissionProvider.from_config(repos.__getitem__, config)

    @pytest.mark.parametrize("viewer,repo_id,expected", [
        (None, 1, Capability.READ),
        (None, 2, Capability.NONE),
        ("user1", 2, Capability.ADMIN),
        ("user2", 1, Capability.ADMIN),
        ("user5", 1, Capability.WRITE),
        ("user6", 1, Capability.READ),
        ("user4", 2, Capability.READ),
        ("user5", 2, Capability.NONE),
        ("stranger", 1, Capability.READ),
    ])
    def test_capability(self, provider, viewer, repo_id, expected):
        assert provider.capability(viewer, repo_id) is expected

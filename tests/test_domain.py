"""Tests for the domain layer."""

import dataclasses
from datetime import datetime

import pytest

from tagregistry.domain import (
    BranchRef,
    Capability,
    LabelPolicy,
    Release,
    ReleaseState,
    RepositoryInfo,
    TagInfo,
    TagRef,
    sort_tags_newest_first,
    validate_tag_name,
)
from tagregistry.exceptions import InvalidTagNameError


def make_release(**overrides):
    fields = dict(id=1, repo_id=1, tag_name="v1.0", target="master", title="v1.0")
    fields.update(overrides)
    return Release(**fields)


class TestReleaseLabel:
    """Tests for draft/prerelease/stable labels."""

    def test_stable_when_no_flags(self):
        assert make_release().label == "stable"
        assert make_release().state is ReleaseState.STABLE

    def test_prerelease(self):
        assert make_release(is_prerelease=True).label == "prerelease"

    def test_draft(self):
        assert make_release(is_draft=True, has_tag=False).label == "draft"

    def test_draft_wins_over_prerelease_by_default(self):
        release = make_release(is_draft=True, is_prerelease=True, has_tag=False)
        assert release.label == "draft"
        assert LabelPolicy().label_of(release) == "draft"

    def test_prerelease_wins_when_policy_says_so(self):
        release = make_release(is_draft=True, is_prerelease=True, has_tag=False)
        policy = LabelPolicy(draft_over_prerelease=False)
        assert policy.label_of(release) == "prerelease"
        assert release.to_dict(policy)['label'] == "prerelease"
        assert release.to_dict()['label'] == "draft"
        # Single-flag releases are unaffected by the policy
        assert policy.label_of(make_release(is_draft=True)) == "draft"
        assert policy.label_of(make_release()) == "stable"


class TestReference:
    """Tests for the compare anchor of a release."""

    def test_tagged_release_refs_its_tag(self):
        ref = make_release(tag_name="v1.1").ref("master")
        assert ref == TagRef("v1.1")
        assert ref.kind == "tag"

    def test_untagged_draft_refs_default_branch(self):
        ref = make_release(tag_name="draft-release", is_draft=True, has_tag=False).ref("master")
        assert ref == BranchRef("master")
        assert ref.kind == "branch"
        assert str(ref) == "master"

    def test_to_dict_includes_label(self):
        data = make_release(is_prerelease=True, created_at=datetime(2024, 1, 1)).to_dict()
        assert data['label'] == "prerelease"
        assert data['created_at'] == "2024-01-01T00:00:00"

    def test_release_is_immutable(self):
        release = make_release()
        with pytest.raises(dataclasses.FrozenInstanceError):
            release.title = "changed"


class TestValidateTagName:
    """Tests for git ref-format validation of tag names."""

    @pytest.mark.parametrize("name", ["v1.0", "v1.1", "release/2024-01", "delete-tag", "v0.0.1-rc.1"])
    def test_valid_names(self, name):
        assert validate_tag_name(name) == name

    def test_strips_whitespace(self):
        assert validate_tag_name("  v1.0 ") == "v1.0"

    @pytest.mark.parametrize("name", [
        "", "   ", "has space", "v1..0", "-v1", "v1.lock", "v1/", "a//b",
        "ref@{1}", "what?", "star*", "col:on", "tilde~1", "caret^", "back\\slash",
        "@", ".hidden", "a/.b",
    ])
    def test_invalid_names(self, name):
        with pytest.raises(InvalidTagNameError):
            validate_tag_name(name)


class TestTagOrdering:
    """Tests for the tag list order."""

    def test_newest_commit_first(self):
        tags = [
            TagInfo("v1.1", "a" * 40, date=datetime(2024, 1, 1)),
            TagInfo("delete-tag", "b" * 40, date=datetime(2024, 3, 1)),
        ]
        assert [t.name for t in sort_tags_newest_first(tags)] == ["delete-tag", "v1.1"]

    def test_name_ascending_on_same_date(self):
        same = datetime(2024, 1, 1)
        tags = [TagInfo("v2", "a" * 40, date=same), TagInfo("v10", "b" * 40, date=same),
                TagInfo("alpha", "c" * 40, date=same)]
        assert [t.name for t in sort_tags_newest_first(tags)] == ["alpha", "v10", "v2"]

    def test_undated_tags_last(self):
        tags = [TagInfo("undated", "a" * 40), TagInfo("dated", "b" * 40, date=datetime(2020, 1, 1))]
        assert [t.name for t in sort_tags_newest_first(tags)] == ["dated", "undated"]


class TestRepositoryInfo:

    def test_links(self):
        repo = RepositoryInfo(id=1, owner="user2", name="repo1", default_branch="master")
        assert repo.full_name == "user2/repo1"
        assert repo.link == "/user2/repo1"
        assert repo.release_link("v1.1") == "/user2/repo1/releases/tag/v1.1"
        assert repo.release_link("v1.0+build 1") == "/user2/repo1/releases/tag/v1.0%2Bbuild%201"
        assert repo.tag_delete_link("release/2024") == "/user2/repo1/tags/release/2024/delete"


class TestCapability:

    def test_parse(self):
        assert Capability.parse(" Write ") is Capability.WRITE

    def test_parse_unknown(self):
        with pytest.raises(ValueError):
            Capability.parse("owner")

    def test_flags(self):
        assert not Capability.NONE.can_read
        assert Capability.READ.can_read and not Capability.READ.can_write
        assert Capability.WRITE.can_write
        assert Capability.ADMIN.can_write

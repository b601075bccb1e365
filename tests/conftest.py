"""
Shared fixtures for tagregistry tests.

The standard repository mirrors the classic fixture: user2/repo1 with
default branch "master", readable by everyone, with user2 as owner,
user1 as site admin and user5 holding a write grant.
"""

from datetime import datetime, timedelta
from itertools import count

import pytest

from tagregistry.database.connection import Database, transaction
from tagregistry.database.repositories import get_repository, upsert_repository
from tagregistry.infra.permissions import ConfigPermissionProvider
from tagregistry.infra.version_control import InMemoryVersionControl
from tagregistry.services.release_service import ReleaseService
from tagregistry.services.tag_service import TagService

MASTER_SHA = "65f1bf27bc3bf70f64657658635e66094edbcb4d"
FEATURE_SHA = "985f0301dba5e7b34be866819cd15ad3d8f508ee"

BASE_TIME = datetime(2024, 1, 1, 12, 0, 0)


def ticking_clock(start=BASE_TIME, step=timedelta(minutes=1)):
    """A clock that advances by `step` on every call."""
    ticks = count()
    return lambda: start + step * next(ticks)


@pytest.fixture
def db(tmp_path):
    with Database(db_path=tmp_path / "registry.db") as database:
        yield database


@pytest.fixture
def vcs():
    return InMemoryVersionControl(clock=ticking_clock())


@pytest.fixture
def repo_id(db, vcs):
    with transaction(db):
        rid = upsert_repository(db, "user2", "repo1", default_branch="master")
    vcs.add_ref(rid, "master", MASTER_SHA)
    vcs.add_ref(rid, "feature", FEATURE_SHA)
    return rid


@pytest.fixture
def permissions(db):
    return ConfigPermissionProvider(
        lambda rid: get_repository(db, rid),
        grants={"user2/repo1": {"user5": "write", "user4": "read"}},
        site_admins=["user1"],
    )


@pytest.fixture
def service(db, vcs, permissions):
    return ReleaseService(db, vcs, permissions)


@pytest.fixture
def tag_service(db, vcs, permissions):
    return TagService(db, vcs, permissions)


@pytest.fixture
def at():
    """Creation timestamps one hour apart: at(0), at(1), ..."""
    return lambda n: BASE_TIME + timedelta(hours=n)

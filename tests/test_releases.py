from datetime import datetime, timezone

import pytest

from ota_server.models import Bundle, Release
from ota_server.services.releases import (
    ReleaseIdentity,
    ReleaseNotFound,
    ReleaseNotServable,
    list_releases,
    rollback_release,
)
from ota_server.services.repository import ReleaseRepository


def current_release_id(db, runtime_version="1.0.0"):
    return ReleaseRepository(db).find_latest_active_release(runtime_version).id


def test_rollback_promotes_older_release(db, make_release):
    older = make_release(path="r-old", created_at=datetime(2024, 1, 1, tzinfo=timezone.utc), file_hash="old")
    make_release(path="r-new", created_at=datetime(2024, 2, 1, tzinfo=timezone.utc), file_hash="new")

    rollback_release(db, ReleaseIdentity(path="r-old", runtime_version="1.0.0"))

    assert current_release_id(db) == older.id


def test_rollback_reactivates_inactive_release(db, make_release):
    inactive = make_release(path="r-off", is_active=False)

    release = rollback_release(db, ReleaseIdentity(path="r-off", runtime_version="1.0.0"))

    assert release.is_active is True
    assert current_release_id(db) == inactive.id


def test_rollback_is_idempotent(db, make_release):
    older = make_release(path="r-old", created_at=datetime(2024, 1, 1, tzinfo=timezone.utc))
    make_release(path="r-new", created_at=datetime(2024, 2, 1, tzinfo=timezone.utc))
    identity = ReleaseIdentity(path="r-old", runtime_version="1.0.0")

    rollback_release(db, identity)
    first_created_at = db.get(Release, older.id).created_at
    rollback_release(db, identity)

    assert current_release_id(db) == older.id
    assert db.get(Release, older.id).created_at == first_created_at


def test_rollback_keeps_bundle_and_publish_time(db, make_release):
    published = datetime(2024, 1, 1, tzinfo=timezone.utc)
    older = make_release(path="r-old", created_at=published, file_hash="keep-me")
    make_release(path="r-new", created_at=datetime(2024, 2, 1, tzinfo=timezone.utc))

    rollback_release(db, ReleaseIdentity(path="r-old", runtime_version="1.0.0"))

    bundle = db.query(Bundle).filter(Bundle.release_id == older.id).one()
    assert bundle.hash == "keep-me"
    assert bundle.file_path == "b1.bundle"
    db.refresh(older)
    assert older.published_at.replace(tzinfo=None) == published.replace(tzinfo=None)


def test_rollback_matches_commit_hash(db, make_release):
    make_release(path="r1", commit_hash="aaa", created_at=datetime(2024, 1, 1, tzinfo=timezone.utc))
    make_release(path="r2", commit_hash="bbb", created_at=datetime(2024, 2, 1, tzinfo=timezone.utc))

    with pytest.raises(ReleaseNotFound):
        rollback_release(db, ReleaseIdentity(path="r1", runtime_version="1.0.0", commit_hash="bbb"))


def test_rollback_unknown_release_changes_nothing(db, make_release):
    current = make_release(path="r1")

    with pytest.raises(ReleaseNotFound):
        rollback_release(db, ReleaseIdentity(path="missing", runtime_version="1.0.0"))

    assert current_release_id(db) == current.id


def test_rollback_to_release_without_bundle_changes_nothing(db, make_release):
    served = make_release(path="r-new", created_at=datetime(2024, 2, 1, tzinfo=timezone.utc))
    broken = make_release(
        path="r-broken", created_at=datetime(2024, 1, 1, tzinfo=timezone.utc), is_active=False, with_bundle=False
    )

    with pytest.raises(ReleaseNotServable):
        rollback_release(db, ReleaseIdentity(path="r-broken", runtime_version="1.0.0"))

    db.refresh(broken)
    assert broken.is_active is False
    assert broken.created_at.replace(tzinfo=None) == datetime(2024, 1, 1)
    assert current_release_id(db) == served.id


def test_list_releases_flags_current_per_runtime(db, make_release):
    make_release(path="r1", created_at=datetime(2024, 1, 1, tzinfo=timezone.utc))
    make_release(path="r2", created_at=datetime(2024, 2, 1, tzinfo=timezone.utc))
    make_release(path="r3", runtime_version="2.0.0", created_at=datetime(2024, 1, 15, tzinfo=timezone.utc))

    rows = list_releases(db)

    assert [row.release.path for row in rows] == ["r2", "r3", "r1"]
    assert [row.is_current for row in rows] == [True, True, False]

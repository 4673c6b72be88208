"""Release administration: listing and rollback."""
import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.orm import Session, joinedload

from ota_server.models import Release
from ota_server.services.repository import ReleaseRepository
from ota_server.utils.time import utcnow

logger = logging.getLogger(__name__)


class ReleaseNotFound(Exception):
    pass


class ReleaseNotServable(Exception):
    """Release exists but has no bundle to serve."""


@dataclass(frozen=True)
class ReleaseIdentity:
    path: str
    runtime_version: str
    commit_hash: Optional[str] = None


@dataclass(frozen=True)
class ReleaseRow:
    release: Release
    is_current: bool


def list_releases(db: Session) -> list[ReleaseRow]:
    """All releases, newest first, flagging the current one per runtime version."""
    releases = (
        db.query(Release)
        .options(joinedload(Release.bundle))
        .order_by(Release.created_at.desc())
        .all()
    )
    seen_runtimes: set[str] = set()
    rows = []
    for release in releases:
        is_current = False
        if release.is_active and release.runtime_version not in seen_runtimes:
            seen_runtimes.add(release.runtime_version)
            is_current = True
        rows.append(ReleaseRow(release=release, is_current=is_current))
    return rows


def find_release(db: Session, identity: ReleaseIdentity) -> Optional[Release]:
    query = db.query(Release).filter(
        Release.path == identity.path,
        Release.runtime_version == identity.runtime_version,
    )
    if identity.commit_hash:
        query = query.filter(Release.commit_hash == identity.commit_hash)
    return query.order_by(Release.created_at.desc()).first()


def rollback_release(db: Session, identity: ReleaseIdentity) -> Release:
    """Promote an existing release to current for its runtime version.

    The release is activated and its ``created_at`` moved to now. Calling this
    for the release that is already current changes nothing.
    """
    release = find_release(db, identity)
    if release is None:
        raise ReleaseNotFound(f"Release {identity.path} ({identity.runtime_version}) not found")
    repository = ReleaseRepository(db)
    if repository.find_bundle_for_release(release.id) is None:
        raise ReleaseNotServable(f"Release {release.id} has no bundle")

    current = repository.find_latest_active_release(release.runtime_version)
    if current is not None and current.id == release.id:
        logger.info("Release %s is already current for runtime %s", release.id, release.runtime_version)
        return release

    release.is_active = True
    release.created_at = utcnow()
    db.commit()
    db.refresh(release)
    logger.info("Rolled back runtime %s to release %s (%s)", release.runtime_version, release.id, release.path)
    return release

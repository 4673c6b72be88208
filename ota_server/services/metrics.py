"""Download counters and dashboard statistics."""
import logging
import uuid
from dataclasses import dataclass
from typing import Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ota_server.models import DownloadMetric, Platform, Release

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DownloadStats:
    total_releases: int
    total_downloads: int
    ios_downloads: int
    android_downloads: int

    @property
    def ios_percent(self) -> int:
        return percent(self.ios_downloads, self.total_downloads)

    @property
    def android_percent(self) -> int:
        return percent(self.android_downloads, self.total_downloads)

    @property
    def average_downloads_per_release(self) -> int:
        if self.total_releases <= 0:
            return 0
        return round(self.total_downloads / self.total_releases)


def percent(part: int, total: int) -> int:
    if total <= 0:
        return 0
    return round(part / total * 100)


def parse_platform(value: Optional[str]) -> Optional[Platform]:
    if not value:
        return None
    try:
        return Platform(value.strip().lower())
    except ValueError:
        return None


def record_download(db: Session, release_id: uuid.UUID, platform: Platform) -> DownloadMetric:
    """Increment the download counter for a release on one platform."""
    metric = (
        db.query(DownloadMetric)
        .filter(DownloadMetric.release_id == release_id, DownloadMetric.platform == platform)
        .first()
    )
    if metric is None:
        metric = DownloadMetric(release_id=release_id, platform=platform, count=1)
        db.add(metric)
        try:
            db.commit()
        except IntegrityError:
            # Row created concurrently; fall through to the increment.
            db.rollback()
            metric = (
                db.query(DownloadMetric)
                .filter(DownloadMetric.release_id == release_id, DownloadMetric.platform == platform)
                .one()
            )
        else:
            db.refresh(metric)
            return metric

    db.query(DownloadMetric).filter(DownloadMetric.id == metric.id).update(
        {DownloadMetric.count: DownloadMetric.count + 1}, synchronize_session=False
    )
    db.commit()
    db.refresh(metric)
    return metric


def list_trackings(db: Session) -> list[DownloadMetric]:
    return db.query(DownloadMetric).order_by(DownloadMetric.release_id, DownloadMetric.platform).all()


def count_releases(db: Session) -> int:
    return db.query(func.count(Release.id)).scalar() or 0


def get_download_stats(db: Session) -> DownloadStats:
    totals = dict(
        db.query(DownloadMetric.platform, func.coalesce(func.sum(DownloadMetric.count), 0))
        .group_by(DownloadMetric.platform)
        .all()
    )
    ios = int(totals.get(Platform.ios, 0))
    android = int(totals.get(Platform.android, 0))
    return DownloadStats(
        total_releases=count_releases(db),
        total_downloads=ios + android,
        ios_downloads=ios,
        android_downloads=android,
    )

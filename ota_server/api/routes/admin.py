from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from ota_server.api.deps import get_db, require_admin
from ota_server.schemas import (
    AllTrackingResponse,
    ReleaseListResponse,
    ReleaseResponse,
    RollbackRequest,
    RollbackResponse,
    StatsResponse,
    TrackingResponse,
    UserOtaSettingRequest,
    UserOtaSettingResponse,
)
from ota_server.services.metrics import count_releases, get_download_stats, list_trackings
from ota_server.services.releases import (
    ReleaseIdentity,
    ReleaseNotFound,
    ReleaseNotServable,
    ReleaseRow,
    list_releases,
    rollback_release,
)
from ota_server.services.user_settings import get_user_setting, set_user_ota_enabled

router = APIRouter(prefix="/api", tags=["admin"], dependencies=[Depends(require_admin)])


def serialize_release(row: ReleaseRow) -> ReleaseResponse:
    release = row.release
    bundle = release.bundle
    return ReleaseResponse(
        id=release.id,
        path=release.path,
        runtime_version=release.runtime_version,
        version=release.version,
        commit_hash=release.commit_hash,
        commit_message=release.commit_message,
        is_active=release.is_active,
        is_current=row.is_current,
        timestamp=release.created_at,
        published_at=release.published_at,
        size=bundle.size if bundle else 0,
        hash=bundle.hash if bundle else None,
    )


@router.get("/releases", response_model=ReleaseListResponse)
def releases(db: Session = Depends(get_db)) -> ReleaseListResponse:
    return ReleaseListResponse(releases=[serialize_release(row) for row in list_releases(db)])


@router.post("/rollback", response_model=RollbackResponse)
def rollback(payload: RollbackRequest, db: Session = Depends(get_db)):
    identity = ReleaseIdentity(
        path=payload.path,
        runtime_version=payload.runtime_version,
        commit_hash=payload.commit_hash,
    )
    try:
        release = rollback_release(db, identity)
    except ReleaseNotFound:
        return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"error": "Release not found"})
    except ReleaseNotServable:
        return JSONResponse(
            status_code=status.HTTP_409_CONFLICT, content={"error": "Release has no bundle and cannot be served"}
        )
    return RollbackResponse(success=True, release=serialize_release(ReleaseRow(release=release, is_current=True)))


@router.get("/tracking/all", response_model=AllTrackingResponse)
def all_trackings(db: Session = Depends(get_db)) -> AllTrackingResponse:
    trackings = [
        TrackingResponse(release_id=metric.release_id, platform=metric.platform.value, count=metric.count)
        for metric in list_trackings(db)
    ]
    return AllTrackingResponse(trackings=trackings, total_releases=count_releases(db))


@router.get("/stats", response_model=StatsResponse)
def stats(db: Session = Depends(get_db)) -> StatsResponse:
    data = get_download_stats(db)
    return StatsResponse(
        total_releases=data.total_releases,
        total_downloads=data.total_downloads,
        ios_downloads=data.ios_downloads,
        android_downloads=data.android_downloads,
        ios_percent=data.ios_percent,
        android_percent=data.android_percent,
        average_downloads_per_release=data.average_downloads_per_release,
    )


@router.get("/users/{user_id}/ota-setting", response_model=UserOtaSettingResponse)
def show_user_setting(user_id: str, db: Session = Depends(get_db)) -> UserOtaSettingResponse:
    setting = get_user_setting(db, user_id)
    if setting is None:
        return UserOtaSettingResponse(user_id=user_id, ota_enabled=True, explicit=False)
    return UserOtaSettingResponse(user_id=user_id, ota_enabled=setting.ota_enabled, explicit=True)


@router.put("/users/{user_id}/ota-setting", response_model=UserOtaSettingResponse)
def update_user_setting(
    user_id: str, payload: UserOtaSettingRequest, db: Session = Depends(get_db)
) -> UserOtaSettingResponse:
    setting = set_user_ota_enabled(db, user_id, payload.ota_enabled)
    return UserOtaSettingResponse(user_id=user_id, ota_enabled=setting.ota_enabled, explicit=True)

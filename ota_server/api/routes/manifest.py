"""Device-facing manifest endpoint."""
import logging
import uuid

from fastapi import APIRouter, Body, Depends, Response, status
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ota_server.api.deps import get_db, get_resolver
from ota_server.config import get_settings
from ota_server.schemas import ManifestRequest, ManifestResponse
from ota_server.services.metrics import parse_platform, record_download
from ota_server.services.resolver import BundleMissing, ManifestResolver, NoUpdate, SigningFailed

router = APIRouter(prefix="/api", tags=["manifest"])
settings = get_settings()

logger = logging.getLogger(__name__)


@router.post(
    "/manifest",
    response_model=ManifestResponse,
    responses={
        204: {"description": "No update for this device"},
        400: {"description": "userId or runtimeVersion missing"},
        404: {"description": "Active release has no bundle"},
        500: {"description": "Signed URL could not be created"},
    },
)
def get_manifest(
    payload: ManifestRequest | None = Body(default=None),
    resolver: ManifestResolver = Depends(get_resolver),
    db: Session = Depends(get_db),
):
    """Resolve the bundle a device should run for its runtime version."""
    if payload is None or not payload.user_id or not payload.runtime_version:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": "userId and runtimeVersion are required"},
        )

    try:
        result = resolver.resolve(
            app_id=payload.app_id,
            platform=payload.platform,
            runtime_version=payload.runtime_version,
            user_id=payload.user_id,
        )
    except BundleMissing:
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content={"error": "Bundle not found for release"},
        )
    except SigningFailed as exc:
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Failed to create signed URL", "details": exc.details},
        )

    if isinstance(result, NoUpdate):
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    if settings.track_downloads:
        platform = parse_platform(payload.platform)
        if platform is not None:
            try:
                record_download(db, uuid.UUID(result.release_id), platform)
            except SQLAlchemyError as e:
                db.rollback()
                logger.error(f"Failed to record download for release {result.release_id}: {e}")

    return ManifestResponse(id=result.release_id, bundle_url=result.signed_url, hash=result.hash)

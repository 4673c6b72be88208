"""Signed bundle downloads for the local artifact store."""
import logging

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import FileResponse

from ota_server.api.deps import get_local_store
from ota_server.services.storage import LocalArtifactStore

router = APIRouter(prefix="/api", tags=["bundles"])

logger = logging.getLogger(__name__)


@router.get("/bundles/{file_path:path}")
def download_bundle(
    file_path: str,
    expires: int | None = None,
    sig: str | None = None,
    store: LocalArtifactStore = Depends(get_local_store),
) -> FileResponse:
    if expires is None or sig is None:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Missing download signature")
    if not store.verify(file_path, expires, sig):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Invalid or expired download link")

    bundle_path = store.resolve_path(file_path)
    if bundle_path is None:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Invalid bundle path")
    if not bundle_path.is_file():
        logger.error(f"Bundle file not found: {bundle_path}")
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Bundle file not found")

    return FileResponse(
        path=bundle_path,
        filename=bundle_path.name,
        media_type="application/octet-stream",
        headers={"Cache-Control": "private, max-age=3600"},
    )
